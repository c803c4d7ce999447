"""
Tests for the tokenvest CLI commands.

Each invocation loads the state file, runs one command and writes it back,
so the tests chain invocations against a temporary state file.
"""

import json

import pytest
from click.testing import CliRunner

from tokenvest.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def state(tmp_path):
    return str(tmp_path / "state.json")


def invoke(runner, state, *args, now=0, caller=None):
    base = ["--state", state, "--now", str(now), "--json-output"]
    if caller:
        base += ["--caller", caller]
    return runner.invoke(cli, base + list(args), obj={})


def _json(result):
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


@pytest.fixture
def funded_round(runner, state):
    _json(invoke(runner, state, "round", "create", "--start", "100", "--cliff-end", "200", "--period", "100", "--percent", "50"))
    _json(invoke(runner, state, "mint", "admin", "5000"))
    _json(invoke(runner, state, "deposit", "5000"))
    _json(invoke(runner, state, "enroll", "--round", "0", "alice=1000", "bob=2000"))
    return state


def test_help_lists_commands(runner):
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    for command in ("round", "enroll", "claim", "status", "schedule"):
        assert command in result.output


def test_round_create_and_list(runner, state):
    created = _json(invoke(runner, state, "round", "create", "--start", "100", "--cliff-end", "200", "--period", "100", "--percent", "12.5"))
    assert created["round_index"] == 0
    assert created["vesting_percent"] == 10**20 // 8

    rounds = _json(invoke(runner, state, "round", "list"))
    assert rounds == [
        {"unlock_start": 100, "unlock_cliff_end": 200, "vesting_period": 100, "vesting_percent": 10**20 // 8}
    ]


def test_invalid_schedule_reports_error(runner, state):
    result = invoke(runner, state, "round", "create", "--start", "500", "--cliff-end", "500", "--period", "1", "--percent", "10")
    assert result.exit_code == 1
    assert "Error" in result.output


def test_bad_percent_is_usage_error(runner, state):
    result = invoke(runner, state, "round", "create", "--start", "1", "--cliff-end", "2", "--period", "1", "--percent", "150")
    assert result.exit_code == 2


def test_claim_flow(runner, funded_round):
    state = funded_round
    result = invoke(runner, state, "claim", now=50, caller="alice")
    assert result.exit_code == 1

    assert _json(invoke(runner, state, "claim", now=200, caller="alice"))["amount"] == 500
    assert _json(invoke(runner, state, "claim", now=250, caller="alice"))["amount"] == 250

    status = _json(invoke(runner, state, "status", "alice", now=250))
    assert status["claimed"] == 750
    assert status["available"] == 0
    assert status["balance"] == 750
    assert status["state"] == "partially_vested"


def test_enroll_twice_fails_and_keeps_first(runner, funded_round):
    state = funded_round
    result = invoke(runner, state, "enroll", "--round", "0", "alice=9")
    assert result.exit_code == 1
    assert _json(invoke(runner, state, "status", "alice"))["allotted"] == 1000


def test_enroll_rejects_malformed_entry(runner, funded_round):
    result = invoke(runner, funded_round, "enroll", "--round", "0", "carol")
    assert result.exit_code == 2


def test_non_admin_cannot_enroll(runner, funded_round):
    result = invoke(runner, funded_round, "enroll", "--round", "0", "mallory=10", caller="mallory")
    assert result.exit_code == 1


def test_admin_send_and_withdraw(runner, funded_round):
    state = funded_round
    assert _json(invoke(runner, state, "send", "bob"))["amount"] == 2000
    withdrawn = _json(invoke(runner, state, "withdraw", "1000"))
    assert withdrawn["balance"] == 2000

    summary = _json(invoke(runner, state, "summary"))
    assert summary == {
        "rounds": 1,
        "participants": 2,
        "total_allotted": 3000,
        "total_claimed": 2000,
        "pool_balance": 2000,
    }


def test_schedule_preview(runner, funded_round):
    rows = _json(invoke(runner, funded_round, "schedule", "--round", "0", "--allotted", "1000", "--steps", "2"))
    assert rows == [
        {"timestamp": 100, "vested": 0},
        {"timestamp": 200, "vested": 500},
        {"timestamp": 250, "vested": 750},
        {"timestamp": 300, "vested": 1000},
        {"timestamp": 301, "vested": 1000},
    ]


def test_rich_output_without_json(runner, funded_round):
    result = runner.invoke(cli, ["--state", funded_round, "--now", "0", "round", "list"], obj={})
    assert result.exit_code == 0
    assert "Vesting Rounds" in result.output
