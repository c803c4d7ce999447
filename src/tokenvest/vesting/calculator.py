"""
Vesting calculator.

Pure functions of (record, round, now). Nothing here reads a clock or
touches the ledger, so queries and the claim flow share one definition of
"vested".

Schedule shape for a round with percent ``p``:

    now < cliff_end                      -> nothing
    cliff_end <= now <= cliff_end + T    -> A*p + (A - A*p) * (now - cliff_end) / T
    now > cliff_end + T                  -> A
"""

from __future__ import annotations

from enum import Enum

from ..core.fixed_point import SCALE, mul_div
from .ledger import ParticipantRecord
from .rounds import VestingRound


class VestingState(Enum):
    UNVESTED = "unvested"
    PARTIALLY_VESTED = "partially_vested"
    FULLY_VESTED = "fully_vested"


def locked_portion(allotted: int, vesting_percent: int) -> int:
    """Part of the allotment released linearly after the cliff."""
    return mul_div(allotted, SCALE - vesting_percent, SCALE)


def vested_total(record: ParticipantRecord, vesting_round: VestingRound, now: int) -> int:
    """Total amount vested at ``now``, before subtracting what was claimed."""
    allotted = record.allotted
    if allotted == 0 or now < vesting_round.unlock_start:
        return 0
    if now > vesting_round.vesting_end:
        return allotted
    if now < vesting_round.unlock_cliff_end:
        return 0

    locked = locked_portion(allotted, vesting_round.vesting_percent)
    immediate = allotted - locked
    if vesting_round.vesting_period == 0:
        return allotted

    elapsed = now - vesting_round.unlock_cliff_end
    return immediate + mul_div(locked, elapsed, vesting_round.vesting_period)


def available_to_claim(record: ParticipantRecord, vesting_round: VestingRound, now: int) -> int:
    """Amount the participant could withdraw at ``now``."""
    return max(0, vested_total(record, vesting_round, now) - record.claimed)


def vesting_state(record: ParticipantRecord, vesting_round: VestingRound, now: int) -> VestingState:
    vested = vested_total(record, vesting_round, now)
    if record.allotted == 0 or vested == 0:
        return VestingState.UNVESTED
    if vested >= record.allotted:
        return VestingState.FULLY_VESTED
    return VestingState.PARTIALLY_VESTED
