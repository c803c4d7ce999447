"""
JSON persistence for a pool backed by an InMemoryToken.

The snapshot holds rounds, ledger records and token balances. Events are
not persisted. Writes go to a temporary file that is then renamed over the
target, so a crash never leaves a half-written state file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Tuple

from ..core.access_control import AdminCheck
from ..core.token import InMemoryToken
from ..core.vesting_exceptions import InvalidSchedule, VestingError
from .ledger import ParticipantLedger, ParticipantRecord
from .pool import VestingPool, create_pool
from .rounds import RoundRegistry, VestingRound

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class StateFileError(VestingError):
    """Raised when a state file cannot be read or has an unexpected layout."""
    pass


def snapshot(pool: VestingPool, token: InMemoryToken) -> Dict[str, Any]:
    return {
        "version": STATE_VERSION,
        "pool_address": pool.pool_address,
        "token": token.to_dict(),
        "rounds": [vesting_round.to_dict() for vesting_round in pool.list_rounds()],
        "participants": {
            identity: record.to_dict() for identity, record in pool.participants().items()
        },
    }


def restore(
    data: Dict[str, Any],
    is_admin: AdminCheck,
    time_provider: Callable[[], int] | None = None,
) -> Tuple[VestingPool, InMemoryToken]:
    if data.get("version") != STATE_VERSION:
        raise StateFileError(
            f"Unsupported state version {data.get('version')!r}",
            details={"expected": STATE_VERSION},
        )
    try:
        token = InMemoryToken.from_dict(data["token"])
        rounds = RoundRegistry()
        for entry in data["rounds"]:
            rounds.append(VestingRound(**entry))
        records = {
            identity: ParticipantRecord(**record) for identity, record in data["participants"].items()
        }
        pool_address = data["pool_address"]
    except (KeyError, TypeError) as exc:
        raise StateFileError(f"Malformed state: {exc}") from exc
    except InvalidSchedule as exc:
        raise StateFileError(f"Invalid round in state: {exc}", details=exc.details) from exc

    for identity, record in records.items():
        _check_record(identity, record, len(rounds))

    pool = create_pool(
        token,
        is_admin=is_admin,
        pool_address=pool_address,
        time_provider=time_provider,
        rounds=rounds,
        ledger=ParticipantLedger(records),
    )
    return pool, token


def _check_record(identity: str, record: ParticipantRecord, round_count: int) -> None:
    """Reject records that break claimed <= allotted or point at a missing round."""
    values = (record.allotted, record.claimed, record.round_index)
    if any(not isinstance(value, int) or isinstance(value, bool) for value in values):
        raise StateFileError(f"Record for {identity} has non-integer fields", details={"identity": identity})
    if not 0 <= record.claimed <= record.allotted:
        raise StateFileError(
            f"Record for {identity} claims {record.claimed} of {record.allotted}",
            details={"identity": identity, "allotted": record.allotted, "claimed": record.claimed},
        )
    if not 0 <= record.round_index < round_count:
        raise StateFileError(
            f"Record for {identity} references round {record.round_index}, pool has {round_count}",
            details={"identity": identity, "round_index": record.round_index},
        )


def new_state(
    is_admin: AdminCheck,
    pool_address: str,
    token_address: str,
    time_provider: Callable[[], int] | None = None,
) -> Tuple[VestingPool, InMemoryToken]:
    token = InMemoryToken(address=token_address)
    pool = create_pool(token, is_admin=is_admin, pool_address=pool_address, time_provider=time_provider)
    return pool, token


def load_state(
    path: str | Path,
    is_admin: AdminCheck,
    pool_address: str,
    token_address: str,
    time_provider: Callable[[], int] | None = None,
) -> Tuple[VestingPool, InMemoryToken]:
    """Load the pool at ``path``, or start an empty one if the file does not exist."""
    state_path = Path(path)
    if not state_path.exists():
        logger.info(
            "No state file at %s, starting empty pool",
            state_path,
            extra={"event": "state.new", "path": str(state_path)},
        )
        return new_state(is_admin, pool_address, token_address, time_provider)

    try:
        data = json.loads(state_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise StateFileError(f"Could not read state file {state_path}: {exc}") from exc
    return restore(data, is_admin, time_provider)


def save_state(path: str | Path, pool: VestingPool, token: InMemoryToken) -> None:
    state_path = Path(path)
    state_path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(snapshot(pool, token), indent=2, sort_keys=True)

    fd, tmp_name = tempfile.mkstemp(dir=str(state_path.parent), prefix=".tokenvest-", suffix=".json")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(payload)
        os.replace(tmp_name, state_path)
    except OSError:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

    logger.debug(
        "State saved to %s",
        state_path,
        extra={"event": "state.saved", "path": str(state_path)},
    )
