"""
Role-based access control for the vesting pool.

The pool never inspects roles itself. It receives an ``is_admin(caller)``
callable, which keeps the role mechanism swappable. ``RoleRegistry`` is the
in-process implementation used by the CLI and the tests.

Usage:
    roles = RoleRegistry(admin_address="treasury")
    pool = VestingPool(token, is_admin=roles.admin_check())
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Set

from .vesting_exceptions import Unauthorized

logger = logging.getLogger(__name__)

AdminCheck = Callable[[str], bool]


class Role(Enum):
    """Standard roles for pool access control."""
    ADMIN = "admin"
    OPERATOR = "operator"


@dataclass
class RoleRegistry:
    """
    Role assignments with an audit trail.

    Only holders of the admin role can grant or revoke roles.
    """

    # Role assignments: role -> set of addresses
    roles: Dict[str, Set[str]] = field(default_factory=dict)

    # Initial admin address
    admin_address: str = ""

    # Audit log
    role_changes: list = field(default_factory=list)

    def __post_init__(self) -> None:
        for role in Role:
            if role.value not in self.roles:
                self.roles[role.value] = set()

        if self.admin_address:
            self.roles[Role.ADMIN.value].add(self.admin_address.lower())

    def grant_role(self, caller: str, role: Role, address: str) -> None:
        """Grant ``role`` to ``address``. Raises Unauthorized if caller is not admin."""
        self._require_admin(caller)
        address_norm = address.lower()
        self.roles.setdefault(role.value, set()).add(address_norm)
        self._record("grant", role, address_norm, caller)

    def revoke_role(self, caller: str, role: Role, address: str) -> None:
        """Revoke ``role`` from ``address``. Raises Unauthorized if caller is not admin."""
        self._require_admin(caller)
        address_norm = address.lower()
        self.roles.get(role.value, set()).discard(address_norm)
        self._record("revoke", role, address_norm, caller)

    def has_role(self, role: Role, address: str) -> bool:
        return address.lower() in self.roles.get(role.value, set())

    def get_role_members(self, role: Role) -> Set[str]:
        return set(self.roles.get(role.value, set()))

    def admin_check(self) -> AdminCheck:
        """Return the capability check injected into the pool."""
        return lambda caller: self.has_role(Role.ADMIN, caller)

    def _require_admin(self, caller: str) -> None:
        if not self.has_role(Role.ADMIN, caller):
            raise Unauthorized(
                f"Caller {caller} lacks the admin role",
                details={"caller": caller},
            )

    def _record(self, action: str, role: Role, address: str, admin: str) -> None:
        self.role_changes.append({
            "action": action,
            "role": role.value,
            "address": address,
            "admin": admin,
            "timestamp": time.time(),
        })
        logger.info(
            "Role %s: %s for %s",
            action,
            role.value,
            address,
            extra={
                "event": f"rbac.role_{action}",
                "role": role.value,
                "address": address,
                "admin": admin,
            },
        )


def static_admins(addresses: list[str] | set[str]) -> AdminCheck:
    """Admin check backed by a fixed set of identities, e.g. from configuration."""
    admins = {address.lower() for address in addresses}
    return lambda caller: caller.lower() in admins
