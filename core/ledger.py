# PATH: core/ledger.py
"""
Single-writer ledger.

LEDGER CONTRACT:
================

- Every mutating operation runs inside `Ledger.atomic(operation)`.
- The outermost unit snapshots every registered participant; any
  exception restores all of them and drops the events buffered during
  the unit before re-raising. Callers observe full success or a typed
  failure, never a partial commit.
- Nested `atomic()` calls join the enclosing unit.
- A process-wide RLock serializes units across threads, standing in for
  the host's globally ordered execution.
- `guard(name)` rejects re-entry into an operation that is already
  executing on the current call stack.

Participants are the named storage regions of the system (token book,
vault, registry, migration, governance, simulated instruments). Each
implements snapshot()/restore().
================
"""

import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Protocol, Set, runtime_checkable

from core.constants import EventName
from core.events import Event, EventLog
from core.exceptions import ReentrantCallError, VaultError
from core.logging import get_logger, log_error, log_event
from core.time import Clock

logger = get_logger("switchvault.ledger")


@runtime_checkable
class Journaled(Protocol):
    """State that can be captured and restored by the ledger."""

    def snapshot(self) -> Any:
        ...

    def restore(self, snapshot: Any) -> None:
        ...


class Ledger:
    """
    Coordinates atomic units over all registered state regions.

    Usage:
        ledger = Ledger(clock)
        ledger.register("vault", vault_state)
        with ledger.atomic("deposit"), ledger.guard("vault"):
            ...
            ledger.emit(EventName.DEPOSIT, user="alice", assets=10, shares=10)
    """

    def __init__(self, clock: Clock):
        self.clock = clock
        self.events = EventLog()
        self._lock = threading.RLock()
        self._participants: Dict[str, Journaled] = {}
        self._snapshots: Dict[str, Any] = {}
        self._displaced: Dict[str, Journaled] = {}
        self._pending: List[Event] = []
        self._depth = 0
        self._active_guards: Set[str] = set()

    @property
    def in_unit(self) -> bool:
        return self._depth > 0

    @property
    def participants(self) -> List[str]:
        return sorted(self._participants)

    def register(self, name: str, participant: Journaled, replace: bool = False) -> None:
        """
        Register a state region.

        Registering inside a unit snapshots the participant immediately so
        a rollback of that unit also covers it. With replace=True a
        different object may take over an existing name; rolling the unit
        back reinstates the displaced participant.
        """
        if not isinstance(participant, Journaled):
            raise TypeError(f"Participant '{name}' must implement snapshot()/restore()")
        existing = self._participants.get(name)
        displacing = existing is not None and existing is not participant
        if displacing and not replace:
            raise ValueError(f"Ledger region '{name}' is already registered")
        with self._lock:
            if displacing and self._depth > 0:
                self._displaced.setdefault(name, existing)
            self._participants[name] = participant
            if self._depth > 0 and name not in self._snapshots:
                self._snapshots[name] = participant.snapshot()

    @contextmanager
    def atomic(self, operation: str) -> Iterator["Ledger"]:
        """Run the enclosed block as one all-or-nothing unit."""
        with self._lock:
            if self._depth > 0:
                self._depth += 1
                try:
                    yield self
                finally:
                    self._depth -= 1
                return

            self._snapshots = {
                name: participant.snapshot()
                for name, participant in self._participants.items()
            }
            self._pending = []
            self._depth = 1
            try:
                yield self
            except BaseException as exc:
                self._rollback()
                if isinstance(exc, VaultError):
                    log_error(
                        logger,
                        exc.code.value,
                        f"{operation} reverted: {exc.message}",
                        operation=operation,
                        block_number=self.clock.block_number,
                    )
                else:
                    logger.error(
                        f"{operation} reverted: {exc!r}",
                        extra={"context": {"operation": operation}},
                    )
                raise
            else:
                committed = self._pending
                self.events.extend(committed)
                for event in committed:
                    log_event(
                        logger,
                        event.name.value,
                        event.block_number,
                        event.timestamp,
                        event.data,
                    )
            finally:
                self._depth = 0
                self._snapshots = {}
                self._displaced = {}
                self._pending = []

    @contextmanager
    def guard(self, name: str) -> Iterator[None]:
        """Reject re-entry into `name` while it is executing."""
        if name in self._active_guards:
            raise ReentrantCallError(name)
        self._active_guards.add(name)
        try:
            yield
        finally:
            self._active_guards.discard(name)

    def emit(self, name: EventName, **data: Any) -> Event:
        """Buffer an event in the current unit."""
        if self._depth == 0:
            raise RuntimeError(f"Event {name.value} emitted outside an atomic unit")
        event = Event(
            name=name,
            block_number=self.clock.block_number,
            timestamp=self.clock.timestamp,
            data=data,
        )
        self._pending.append(event)
        return event

    def _rollback(self) -> None:
        self._participants.update(self._displaced)
        for name, snapshot in self._snapshots.items():
            self._participants[name].restore(snapshot)
        self._pending = []
