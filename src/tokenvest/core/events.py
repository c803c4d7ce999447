"""
Pool events and the in-process event log.

Events are emitted only after an operation has committed. Subscriber
failures are logged and never undo the operation that produced the event.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoundCreated:
    round_index: int
    unlock_start: int
    unlock_cliff_end: int
    vesting_period: int
    vesting_percent: int
    timestamp: int

    name = "RoundCreated"


@dataclass(frozen=True)
class EnrollmentEntry:
    participant: str
    amount: int


@dataclass(frozen=True)
class Enrolled:
    entries: Tuple[EnrollmentEntry, ...]
    round_index: int
    timestamp: int

    name = "Enrolled"


@dataclass(frozen=True)
class Claimed:
    identity: str
    amount: int
    timestamp: int

    name = "Claimed"


PoolEvent = RoundCreated | Enrolled | Claimed
EventCallback = Callable[[PoolEvent], None]


@dataclass
class EventLog:
    """Ordered record of emitted events with named subscribers."""

    events: List[PoolEvent] = field(default_factory=list)
    subscribers: Dict[str, EventCallback] = field(default_factory=dict)

    def subscribe(self, name: str, callback: EventCallback) -> None:
        """
        Register a callback invoked for every event.

        Args:
            name: Subscriber identifier, reusing a name replaces the callback
            callback: Function taking the event instance
        """
        self.subscribers[name] = callback

    def unsubscribe(self, name: str) -> None:
        self.subscribers.pop(name, None)

    def emit(self, event: PoolEvent) -> None:
        self.events.append(event)
        for name, callback in list(self.subscribers.items()):
            try:
                callback(event)
            except Exception as e:
                # The operation behind the event has already committed
                logger.error(
                    "Event subscriber failed: %s - %s",
                    type(e).__name__,
                    str(e),
                    exc_info=True,
                    extra={
                        "subscriber": name,
                        "error_type": type(e).__name__,
                        "event": "events.subscriber_error",
                    },
                )

    def of_type(self, event_type: type) -> List[PoolEvent]:
        return [event for event in self.events if isinstance(event, event_type)]

    @staticmethod
    def to_dict(event: PoolEvent) -> Dict[str, Any]:
        payload = asdict(event)
        payload["type"] = event.name
        return payload
