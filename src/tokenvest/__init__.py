"""
tokenvest - Round-based token vesting pool

Tracks time-locked token entitlements for enrolled participants and lets
each participant withdraw what has vested so far.

Main Components:
- Vesting: round registry, participant ledger, vesting calculator, pool service
- Core: exceptions, configuration, logging, access control, token collaborator
- CLI: operator commands backed by a JSON state file
"""

__version__ = "0.1.0"
__author__ = "tokenvest Development Team"

__all__ = []
