"""Participant ledger: identity -> entitlement record."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace
from typing import Dict, Iterable, Tuple

from ..core.events import EnrollmentEntry
from ..core.vesting_exceptions import AlreadyEnrolled, InvalidAmount, ParticipantNotFound

logger = logging.getLogger(__name__)


@dataclass
class ParticipantRecord:
    allotted: int = 0
    claimed: int = 0
    round_index: int = 0

    @property
    def remaining(self) -> int:
        return self.allotted - self.claimed

    @property
    def is_enrolled(self) -> bool:
        return self.allotted != 0 or self.claimed != 0

    def to_dict(self) -> dict:
        return asdict(self)


class ParticipantLedger:
    """
    Entitlement records keyed by participant identity.

    Records are only written through ``enroll_batch`` and ``add_claimed`` /
    ``revert_claimed``. Reads return copies so callers cannot bypass the
    ``claimed <= allotted`` invariant.
    """

    def __init__(self, records: Dict[str, ParticipantRecord] | None = None):
        self._records: Dict[str, ParticipantRecord] = dict(records or {})

    def get(self, identity: str) -> ParticipantRecord:
        """Return a copy of the record, zero-valued for unknown identities."""
        record = self._records.get(identity)
        return replace(record) if record else ParticipantRecord()

    def require(self, identity: str) -> ParticipantRecord:
        record = self._records.get(identity)
        if record is None or not record.is_enrolled:
            raise ParticipantNotFound(identity)
        return replace(record)

    def validate_batch(self, entries: Iterable[EnrollmentEntry]) -> None:
        """Reject the whole batch if any entry is invalid. Writes nothing."""
        seen: set[str] = set()
        for entry in entries:
            if not entry.participant:
                raise InvalidAmount("Participant identity cannot be empty.")
            if not isinstance(entry.amount, int) or isinstance(entry.amount, bool) or entry.amount < 0:
                raise InvalidAmount(
                    f"Allotment for {entry.participant} must be a non-negative integer",
                    details={"participant": entry.participant, "amount": entry.amount},
                )
            if entry.participant in seen or self.get(entry.participant).is_enrolled:
                raise AlreadyEnrolled(entry.participant)
            seen.add(entry.participant)

    def enroll_batch(self, entries: Tuple[EnrollmentEntry, ...], round_index: int) -> None:
        self.validate_batch(entries)
        for entry in entries:
            self._records[entry.participant] = ParticipantRecord(
                allotted=entry.amount,
                claimed=0,
                round_index=round_index,
            )

    def add_claimed(self, identity: str, amount: int) -> None:
        record = self._records[identity]
        if record.claimed + amount > record.allotted:
            raise InvalidAmount(
                f"Claim of {amount} would exceed allotment for {identity}",
                details={"identity": identity, "claimed": record.claimed, "allotted": record.allotted},
            )
        record.claimed += amount

    def revert_claimed(self, identity: str, amount: int) -> None:
        self._records[identity].claimed -= amount

    def records(self) -> Dict[str, ParticipantRecord]:
        return {identity: replace(record) for identity, record in self._records.items()}

    def totals(self) -> Tuple[int, int]:
        """(total allotted, total claimed) across all participants."""
        allotted = sum(record.allotted for record in self._records.values())
        claimed = sum(record.claimed for record in self._records.values())
        return allotted, claimed

    def __contains__(self, identity: str) -> bool:
        return identity in self._records

    def __len__(self) -> int:
        return len(self._records)
