"""Reentrancy guard shared by the state-mutating pool entry points."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from .vesting_exceptions import ReentrancyError

logger = logging.getLogger(__name__)


class ReentrancyGuard:
    """
    Mutual exclusion across protected entry points of one pool instance.

    A second entry while the guard is held raises ReentrancyError instead of
    blocking, since the only way to get there is a callback from inside the
    first call.
    """

    def __init__(self, name: str = "pool") -> None:
        self.name = name
        self._locked = False

    @property
    def locked(self) -> bool:
        return self._locked

    @contextmanager
    def enter(self, operation: str) -> Iterator[None]:
        self._require_not_locked(operation)
        try:
            self._locked = True
            yield
        finally:
            self._locked = False

    def _require_not_locked(self, operation: str) -> None:
        if self._locked:
            logger.error(
                "Reentrant call rejected",
                extra={"event": "reentrancy.rejected", "guard": self.name, "operation": operation},
            )
            raise ReentrancyError(
                f"{self.name} is locked; reentrant call to {operation} rejected",
                details={"operation": operation},
            )
