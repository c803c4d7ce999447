"""Round registry: the append-only sequence of vesting schedules."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import List

from ..core.fixed_point import SCALE
from ..core.vesting_exceptions import InvalidSchedule, RoundNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VestingRound:
    """
    Unlock schedule shared by every participant bound to the round.

    ``vesting_percent`` of the allotment (scaled by ``SCALE``) unlocks at the
    cliff. The rest releases linearly over ``vesting_period`` seconds
    starting at ``unlock_cliff_end``.
    """

    unlock_start: int
    unlock_cliff_end: int
    vesting_period: int
    vesting_percent: int

    @property
    def vesting_end(self) -> int:
        return self.unlock_cliff_end + self.vesting_period

    def to_dict(self) -> dict:
        return asdict(self)


def validate_schedule(
    unlock_start: int,
    unlock_cliff_end: int,
    vesting_period: int,
    vesting_percent: int,
) -> None:
    """Raise InvalidSchedule unless the four round parameters are consistent."""
    fields = {
        "unlock_start": unlock_start,
        "unlock_cliff_end": unlock_cliff_end,
        "vesting_period": vesting_period,
        "vesting_percent": vesting_percent,
    }
    for name, value in fields.items():
        if not isinstance(value, int) or isinstance(value, bool):
            raise InvalidSchedule(f"{name} must be an integer, got {value!r}", details=fields)
    if unlock_start >= unlock_cliff_end:
        raise InvalidSchedule("Unlock start must be before cliff end.", details=fields)
    if vesting_period < 0:
        raise InvalidSchedule("Vesting period cannot be negative.", details=fields)
    if not 0 <= vesting_percent <= SCALE:
        raise InvalidSchedule(f"Vesting percent must be within [0, {SCALE}].", details=fields)


class RoundRegistry:
    """Rounds in creation order. Rounds are never edited or removed."""

    def __init__(self, rounds: List[VestingRound] | None = None):
        self._rounds: List[VestingRound] = list(rounds or [])

    def append(self, vesting_round: VestingRound) -> int:
        validate_schedule(
            vesting_round.unlock_start,
            vesting_round.unlock_cliff_end,
            vesting_round.vesting_period,
            vesting_round.vesting_percent,
        )
        self._rounds.append(vesting_round)
        return len(self._rounds) - 1

    def get(self, round_index: int) -> VestingRound:
        if not isinstance(round_index, int) or not 0 <= round_index < len(self._rounds):
            raise RoundNotFound(round_index, len(self._rounds))
        return self._rounds[round_index]

    def exists(self, round_index: int) -> bool:
        return isinstance(round_index, int) and 0 <= round_index < len(self._rounds)

    def rounds(self) -> List[VestingRound]:
        return list(self._rounds)

    def __len__(self) -> int:
        return len(self._rounds)
