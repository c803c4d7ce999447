"""
Vesting pool service.

Owns the round registry and participant ledger and exposes every entry
point of the pool:

- Configuration: create_round, enroll (admin)
- Claim flow: claim (participant), admin_send (admin)
- Pool funding: admin_deposit, admin_withdraw (admin)
- Queries: list_rounds, round_count, get_participant, available_to_claim

Mutating entry points are serialised by a ReentrancyGuard. Claims stage
the ledger increment before calling the token service, so a callback from
the transfer sees the updated claimed amount. The increment is reverted if
the transfer fails.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Iterable, List, Mapping, Tuple

from ..core.access_control import AdminCheck
from ..core.events import Claimed, Enrolled, EnrollmentEntry, EventLog, RoundCreated
from ..core.reentrancy import ReentrancyGuard
from ..core.token import InMemoryToken, TokenTransferService
from ..core.vesting_exceptions import (
    InvalidAmount,
    NothingToClaim,
    RoundNotFound,
    TooEarly,
    TransferFailed,
    Unauthorized,
    UnknownToken,
)
from .calculator import VestingState, available_to_claim, vesting_state
from .ledger import ParticipantLedger, ParticipantRecord
from .rounds import RoundRegistry, VestingRound, validate_schedule

logger = logging.getLogger(__name__)


class ClaimTransaction:
    """
    Stage a claimed-amount increment, commit on clean exit, revert on error.

    Usage:
        with ClaimTransaction(ledger, identity, amount):
            token.transfer(identity, amount)
    """

    def __init__(self, ledger: ParticipantLedger, identity: str, amount: int):
        self.ledger = ledger
        self.identity = identity
        self.amount = amount

    def __enter__(self) -> "ClaimTransaction":
        self.ledger.add_claimed(self.identity, self.amount)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.ledger.revert_claimed(self.identity, self.amount)
            logger.error(
                "Claim of %d for %s rolled back",
                self.amount,
                self.identity,
                extra={"event": "vesting.claim_rolled_back", "error_type": exc_type.__name__},
            )
        return False


class VestingPool:
    def __init__(
        self,
        token: TokenTransferService,
        is_admin: AdminCheck,
        pool_address: str = "vesting_pool",
        time_provider: Callable[[], int] | None = None,
        extra_tokens: Mapping[str, TokenTransferService] | None = None,
        rounds: RoundRegistry | None = None,
        ledger: ParticipantLedger | None = None,
        events: EventLog | None = None,
    ):
        self.token = token
        self.pool_address = pool_address
        self.rounds = rounds or RoundRegistry()
        self.ledger = ledger or ParticipantLedger()
        self.events = events or EventLog()
        self._is_admin = is_admin
        self._extra_tokens: Dict[str, TokenTransferService] = dict(extra_tokens or {})
        self._guard = ReentrancyGuard(name=f"VestingPool({pool_address})")
        self._time_provider = time_provider or (lambda: int(time.time()))
        logger.info(
            "VestingPool initialized with deterministic time provider: %s",
            bool(time_provider),
            extra={"event": "vesting.pool_initialized", "pool": pool_address},
        )

    def _current_time(self) -> int:
        timestamp = self._time_provider()
        try:
            return int(timestamp)
        except (TypeError, ValueError) as exc:
            raise ValueError("time_provider must return an integer timestamp") from exc

    def _require_admin(self, caller: str, operation: str) -> None:
        if not self._is_admin(caller):
            logger.warning(
                "Unauthorized %s by %s",
                operation,
                caller,
                extra={"event": "vesting.unauthorized", "operation": operation, "caller": caller},
            )
            raise Unauthorized(
                f"Caller {caller} lacks the admin role required for {operation}",
                details={"caller": caller, "operation": operation},
            )

    # ==================== Configuration ====================

    def create_round(
        self,
        caller: str,
        unlock_start: int,
        unlock_cliff_end: int,
        vesting_period: int,
        vesting_percent: int,
    ) -> int:
        """
        Append a new vesting round.

        Args:
            caller: Identity performing the call, must hold the admin role
            unlock_start: Timestamp before which nothing can be claimed
            unlock_cliff_end: Timestamp at which the unlock percent releases
                and linear vesting begins
            vesting_period: Length of the linear window in seconds
            vesting_percent: Fraction released at the cliff, scaled by SCALE

        Returns:
            Index of the new round

        Raises:
            Unauthorized: Caller is not an admin
            InvalidSchedule: unlock_start >= unlock_cliff_end, or other
                parameter out of range
        """
        self._require_admin(caller, "create_round")
        with self._guard.enter("create_round"):
            validate_schedule(unlock_start, unlock_cliff_end, vesting_period, vesting_percent)
            now = self._current_time()
            round_index = self.rounds.append(
                VestingRound(
                    unlock_start=unlock_start,
                    unlock_cliff_end=unlock_cliff_end,
                    vesting_period=vesting_period,
                    vesting_percent=vesting_percent,
                )
            )

        logger.info(
            "Vesting round %d created",
            round_index,
            extra={
                "event": "vesting.round_created",
                "round_index": round_index,
                "unlock_start": unlock_start,
                "unlock_cliff_end": unlock_cliff_end,
                "vesting_period": vesting_period,
                "vesting_percent": vesting_percent,
            },
        )
        self.events.emit(
            RoundCreated(
                round_index=round_index,
                unlock_start=unlock_start,
                unlock_cliff_end=unlock_cliff_end,
                vesting_period=vesting_period,
                vesting_percent=vesting_percent,
                timestamp=now,
            )
        )
        return round_index

    def enroll(
        self,
        caller: str,
        entries: Iterable[EnrollmentEntry | Tuple[str, int]],
        round_index: int,
    ) -> None:
        """
        Assign allotments to a batch of participants, all or nothing.

        Raises:
            Unauthorized: Caller is not an admin
            RoundNotFound: round_index does not exist
            AlreadyEnrolled: A participant already has an allotment or claim,
                or appears twice in the batch
            InvalidAmount: An allotment is negative or not an integer
        """
        self._require_admin(caller, "enroll")
        batch = tuple(
            entry if isinstance(entry, EnrollmentEntry) else EnrollmentEntry(*entry)
            for entry in entries
        )
        with self._guard.enter("enroll"):
            if not self.rounds.exists(round_index):
                raise RoundNotFound(round_index, len(self.rounds))
            now = self._current_time()
            self.ledger.enroll_batch(batch, round_index)

        logger.info(
            "Enrolled %d participants in round %d",
            len(batch),
            round_index,
            extra={
                "event": "vesting.enrolled",
                "round_index": round_index,
                "participants": len(batch),
                "total_allotted": sum(entry.amount for entry in batch),
            },
        )
        self.events.emit(Enrolled(entries=batch, round_index=round_index, timestamp=now))

    # ==================== Claim Flow ====================

    def claim(self, caller: str) -> int:
        """
        Withdraw everything vested for ``caller`` so far.

        Returns:
            Amount transferred

        Raises:
            ParticipantNotFound: Caller was never enrolled
            TooEarly: Now is at or before the round's unlock start
            NothingToClaim: Nothing new has vested since the last claim
            TransferFailed: Token transfer failed, ledger unchanged
            ReentrancyError: Called from inside another pool operation
        """
        with self._guard.enter("claim"):
            record = self.ledger.require(caller)
            vesting_round = self.rounds.get(record.round_index)
            now = self._current_time()
            if now <= vesting_round.unlock_start:
                logger.warning(
                    "Claim by %s before unlock start",
                    caller,
                    extra={"event": "vesting.claim_too_early", "now": now, "unlock_start": vesting_round.unlock_start},
                )
                raise TooEarly(
                    f"Round {record.round_index} unlocks after {vesting_round.unlock_start}, now is {now}",
                    details={"unlock_start": vesting_round.unlock_start, "now": now},
                )

            amount = available_to_claim(record, vesting_round, now)
            if amount == 0:
                logger.warning(
                    "No tokens available to claim for %s",
                    caller,
                    extra={"event": "vesting.nothing_to_claim", "identity": caller},
                )
                raise NothingToClaim(f"Nothing to claim for {caller}", details={"identity": caller})

            self._settle(caller, amount, "claim")

        self.events.emit(Claimed(identity=caller, amount=amount, timestamp=now))
        return amount

    def admin_send(self, caller: str, identity: str) -> int:
        """
        Push the full remaining allotment to ``identity``, ignoring the schedule.

        Raises:
            Unauthorized: Caller is not an admin
            ParticipantNotFound: Identity was never enrolled
            NothingToClaim: Allotment already fully claimed
            TransferFailed: Token transfer failed, ledger unchanged
        """
        self._require_admin(caller, "admin_send")
        with self._guard.enter("admin_send"):
            record = self.ledger.require(identity)
            amount = record.remaining
            if amount == 0:
                raise NothingToClaim(f"Nothing left to send to {identity}", details={"identity": identity})
            now = self._current_time()
            self._settle(identity, amount, "admin_send")

        self.events.emit(Claimed(identity=identity, amount=amount, timestamp=now))
        return amount

    def _settle(self, identity: str, amount: int, operation: str) -> None:
        with ClaimTransaction(self.ledger, identity, amount):
            self._transfer(self.token, identity, amount)

        logger.info(
            "Sent %d tokens to %s",
            amount,
            identity,
            extra={"event": f"vesting.{operation}", "identity": identity, "amount": amount},
        )

    def _transfer(self, token: TokenTransferService, to: str, amount: int) -> None:
        description = f"Transfer of {amount} {token.address} to {to}"
        self._invoke_token(description, lambda: token.transfer(to, amount), {"to": to, "amount": amount})

    @staticmethod
    def _invoke_token(description: str, call: Callable[[], bool | None], details: dict) -> None:
        """Run a token service call, turning any failure into TransferFailed."""
        try:
            ok = call()
        except TransferFailed:
            raise
        except Exception as exc:
            raise TransferFailed(
                f"{description} failed: {exc}",
                details={**details, "error_type": type(exc).__name__},
            ) from exc
        if ok is False:
            raise TransferFailed(f"{description} was refused", details=details)

    # ==================== Pool Funding ====================

    def admin_deposit(self, caller: str, amount: int) -> None:
        """Pull ``amount`` pool tokens from the caller into the pool."""
        self._require_admin(caller, "admin_deposit")
        _require_positive(amount)
        with self._guard.enter("admin_deposit"):
            self._invoke_token(
                f"Deposit of {amount} {self.token.address} from {caller}",
                lambda: self.token.transfer_from(caller, self.pool_address, amount),
                {"caller": caller, "amount": amount},
            )

        logger.info(
            "Deposited %d tokens from %s",
            amount,
            caller,
            extra={"event": "vesting.admin_deposit", "caller": caller, "amount": amount},
        )

    def admin_withdraw(self, caller: str, amount: int, token_address: str) -> None:
        """Send ``amount`` of the token at ``token_address`` from the pool to the caller."""
        self._require_admin(caller, "admin_withdraw")
        _require_positive(amount)
        token = self._resolve_token(token_address)
        with self._guard.enter("admin_withdraw"):
            self._transfer(token, caller, amount)

        logger.info(
            "Withdrew %d %s to %s",
            amount,
            token_address,
            caller,
            extra={"event": "vesting.admin_withdraw", "caller": caller, "amount": amount, "token": token_address},
        )

    def register_token(self, caller: str, token: TokenTransferService) -> None:
        """Make another token withdrawable through admin_withdraw."""
        self._require_admin(caller, "register_token")
        self._extra_tokens[token.address] = token

    def _resolve_token(self, token_address: str) -> TokenTransferService:
        if token_address == self.token.address:
            return self.token
        token = self._extra_tokens.get(token_address)
        if token is None:
            raise UnknownToken(f"Token {token_address} is not held by this pool", details={"token": token_address})
        return token

    # ==================== Queries ====================

    def list_rounds(self) -> List[VestingRound]:
        return self.rounds.rounds()

    def round_count(self) -> int:
        return len(self.rounds)

    def get_round(self, round_index: int) -> VestingRound:
        return self.rounds.get(round_index)

    def available_to_claim(self, identity: str, current_time: int | None = None) -> int:
        record = self.ledger.get(identity)
        if record.allotted == 0:
            return 0
        now = self._current_time() if current_time is None else current_time
        return available_to_claim(record, self.rounds.get(record.round_index), now)

    def get_participant(self, identity: str, current_time: int | None = None) -> Tuple[ParticipantRecord, int]:
        """Ledger record for ``identity`` plus what it could claim now."""
        return self.ledger.get(identity), self.available_to_claim(identity, current_time)

    def vesting_state(self, identity: str, current_time: int | None = None) -> VestingState:
        record = self.ledger.get(identity)
        if record.allotted == 0:
            return VestingState.UNVESTED
        now = self._current_time() if current_time is None else current_time
        return vesting_state(record, self.rounds.get(record.round_index), now)

    def participants(self) -> Dict[str, ParticipantRecord]:
        return self.ledger.records()

    def totals(self) -> Tuple[int, int]:
        return self.ledger.totals()


def create_pool(
    token: InMemoryToken,
    is_admin: AdminCheck,
    pool_address: str = "vesting_pool",
    time_provider: Callable[[], int] | None = None,
    **kwargs,
) -> VestingPool:
    """Build a pool whose transfers spend from ``pool_address``'s balance in ``token``."""
    return VestingPool(
        token.account(pool_address),
        is_admin=is_admin,
        pool_address=pool_address,
        time_provider=time_provider,
        **kwargs,
    )


def _require_positive(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise InvalidAmount(f"Amount must be a positive integer, got {amount!r}")
