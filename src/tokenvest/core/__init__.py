"""
tokenvest Core Module

Shared building blocks for the vesting pool:
- Typed exception hierarchy
- Environment configuration and JSON logging
- Role-based admin checks and the reentrancy guard
- Events and the fungible token collaborator
"""

__all__ = []
