"""
tokenvest Vesting Module

Round registry, participant ledger, vesting calculator and the pool
service that ties them to the token collaborator.
"""

from .calculator import VestingState, available_to_claim, vested_total, vesting_state
from .ledger import ParticipantLedger, ParticipantRecord
from .pool import ClaimTransaction, VestingPool, create_pool
from .rounds import RoundRegistry, VestingRound

__all__ = [
    # Calculator
    "VestingState",
    "available_to_claim",
    "vested_total",
    "vesting_state",
    # Ledger
    "ParticipantLedger",
    "ParticipantRecord",
    # Registry
    "RoundRegistry",
    "VestingRound",
    # Pool
    "ClaimTransaction",
    "VestingPool",
    "create_pool",
]
