# PATH: core/events.py
"""
Ledger events.

Events raised inside an atomic unit are buffered and only appended to
the EventLog when the unit commits. A failed unit leaves no trace here.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from core.constants import EventName


@dataclass(frozen=True)
class Event:
    """A committed ledger event."""
    name: EventName
    block_number: int
    timestamp: int
    data: Dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name.value,
            "block_number": self.block_number,
            "timestamp": self.timestamp,
            "data": dict(self.data),
        }


class EventLog:
    """Append-only list of committed events."""

    def __init__(self):
        self._events: List[Event] = []

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events)

    def extend(self, events: List[Event]) -> None:
        self._events.extend(events)

    def filter(self, name: EventName) -> List[Event]:
        """All committed events with the given name, oldest first."""
        return [e for e in self._events if e.name == name]

    def last(self, name: Optional[EventName] = None) -> Optional[Event]:
        """Most recent event, optionally restricted to one name."""
        for event in reversed(self._events):
            if name is None or event.name == name:
                return event
        return None

    def to_list(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self._events]
