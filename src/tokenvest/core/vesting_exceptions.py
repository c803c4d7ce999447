"""
Vesting-specific exception hierarchy for tokenvest.

Provides typed exceptions for pool operations so callers can tell a
rejected request (bad schedule, too early, nothing to claim) from a failure
in an external collaborator (token transfer) and react accordingly.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class VestingError(Exception):
    """Base exception for all vesting pool errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether the operation can be retried
    """

    recoverable = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: Optional[bool] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if recoverable is not None:
            self.recoverable = recoverable


# ==================== Access Errors ====================


class AccessError(VestingError):
    """Raised when a caller is not allowed to perform an operation."""
    pass


class Unauthorized(AccessError):
    """Raised when the caller lacks the admin role for an admin-only operation."""
    pass


# ==================== Validation Errors ====================


class ValidationError(VestingError):
    """Raised when request parameters fail validation rules."""
    pass


class InvalidSchedule(ValidationError):
    """Raised when round timing or percentage constraints are violated."""
    pass


class InvalidAmount(ValidationError):
    """Raised when an amount is negative, zero where not allowed, or not an integer."""
    pass


# ==================== Lookup Errors ====================


class LookupFailure(VestingError):
    """Raised when a referenced entity does not exist."""
    pass


class RoundNotFound(LookupFailure):
    """Raised when a round index is out of bounds."""

    def __init__(self, round_index: int, round_count: int) -> None:
        super().__init__(
            f"Round {round_index} not found ({round_count} rounds exist)",
            details={"round_index": round_index, "round_count": round_count},
        )
        self.round_index = round_index


class ParticipantNotFound(LookupFailure):
    """Raised when an identity has never been enrolled."""

    def __init__(self, identity: str) -> None:
        super().__init__(f"Participant {identity} is not enrolled", details={"identity": identity})
        self.identity = identity


class UnknownToken(LookupFailure):
    """Raised when a token address is not managed by the pool."""
    pass


# ==================== Enrollment Errors ====================


class EnrollmentError(VestingError):
    """Raised when a participant enrollment is rejected."""
    pass


class AlreadyEnrolled(EnrollmentError):
    """Raised when a participant already holds a nonzero allotment or claimed amount."""

    def __init__(self, identity: str) -> None:
        super().__init__(f"Participant {identity} is already enrolled", details={"identity": identity})
        self.identity = identity


# ==================== Claim Errors ====================


class ClaimError(VestingError):
    """Raised when a claim cannot be honoured."""
    pass


class TooEarly(ClaimError):
    """Raised when a claim is attempted at or before the round's unlock start."""
    recoverable = True  # Can retry once the round unlocks


class NothingToClaim(ClaimError):
    """Raised when the computed available amount is zero."""
    recoverable = True  # More may vest later


# ==================== Transfer Errors ====================


class TransferError(VestingError):
    """Raised when the external token service misbehaves."""
    pass


class TransferFailed(TransferError):
    """Raised when the token transfer collaborator reports failure.

    Any ledger mutation staged for the call has been reverted by the time
    this propagates.
    """
    recoverable = True


class InsufficientBalanceError(TransferError):
    """Raised by the in-memory token when an account lacks funds or allowance."""
    pass


# ==================== Concurrency Errors ====================


class ReentrancyError(VestingError):
    """Raised when a protected entry point is re-entered during its own execution."""
    pass
