import json

import pytest

from tokenvest.core.access_control import static_admins
from tokenvest.core.fixed_point import SCALE
from tokenvest.vesting.state_store import StateFileError, load_state, save_state

ADMINS = static_admins(["admin"])


def _load(path, now=0):
    return load_state(path, ADMINS, pool_address="vesting_pool", token_address="VEST", time_provider=lambda: now)


def test_missing_file_starts_empty_pool(tmp_path):
    pool, token = _load(tmp_path / "state.json")
    assert pool.round_count() == 0
    assert pool.participants() == {}
    assert token.address == "VEST"


def test_save_and_reload_preserves_pool(tmp_path):
    path = tmp_path / "nested" / "state.json"
    pool, token = _load(path, now=250)
    token.mint("vesting_pool", 5000)
    pool.create_round("admin", 100, 200, 100, SCALE // 2)
    pool.enroll("admin", [("alice", 1000)], 0)
    pool.claim("alice")
    save_state(path, pool, token)

    reloaded, reloaded_token = _load(path, now=300)
    assert reloaded.list_rounds() == pool.list_rounds()
    record, available = reloaded.get_participant("alice")
    assert (record.allotted, record.claimed) == (1000, 750)
    assert available == 250
    assert reloaded_token.balance_of("alice") == 750
    assert reloaded_token.balance_of("vesting_pool") == 4250
    assert reloaded.claim("alice") == 250


def test_no_temporary_files_left_behind(tmp_path):
    path = tmp_path / "state.json"
    pool, token = _load(path)
    save_state(path, pool, token)
    assert [p.name for p in tmp_path.iterdir()] == ["state.json"]


def test_corrupt_file(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json")
    with pytest.raises(StateFileError):
        _load(path)


@pytest.mark.parametrize(
    "payload",
    [
        {"version": 99},
        {"version": 1, "token": {"address": "VEST"}},
        {"version": 1, "pool_address": "p", "token": {"address": "VEST"}, "rounds": [{"bogus": 1}], "participants": {}},
    ],
)
def test_unexpected_layout(tmp_path, payload):
    path = tmp_path / "state.json"
    path.write_text(json.dumps(payload))
    with pytest.raises(StateFileError):
        _load(path)


def _saved_snapshot(path):
    pool, token = _load(path, now=250)
    token.mint("vesting_pool", 5000)
    pool.create_round("admin", 100, 200, 100, SCALE // 2)
    pool.enroll("admin", [("alice", 1000)], 0)
    save_state(path, pool, token)
    return json.loads(path.read_text())


@pytest.mark.parametrize(
    "field, value",
    [
        ("unlock_start", 900),
        ("vesting_period", -1),
        ("vesting_percent", SCALE + 1),
    ],
)
def test_invalid_round_in_file(tmp_path, field, value):
    path = tmp_path / "state.json"
    data = _saved_snapshot(path)
    data["rounds"][0][field] = value
    path.write_text(json.dumps(data))
    with pytest.raises(StateFileError):
        _load(path)


@pytest.mark.parametrize(
    "field, value",
    [
        ("claimed", 5000),
        ("claimed", -1),
        ("round_index", 3),
        ("round_index", -1),
        ("allotted", "1000"),
    ],
)
def test_inconsistent_record_in_file(tmp_path, field, value):
    path = tmp_path / "state.json"
    data = _saved_snapshot(path)
    data["participants"]["alice"][field] = value
    path.write_text(json.dumps(data))
    with pytest.raises(StateFileError):
        _load(path)
