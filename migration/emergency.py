"""
migration/emergency.py - Emergency switch.

Emergency stop for the vault:
- Manual trigger by the authority (pauses deposits/withdrawals and
  clears any pending migration request)
- Release by the authority once the incident is resolved

The switch keeps a trigger history so operators can see why and when
the vault was stopped.
"""

import copy
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

MAX_TRIGGER_HISTORY = 50


@dataclass
class EmergencyTrigger:
    """Emergency trigger event."""
    timestamp: int
    reason: str
    triggered_by: str
    cancelled_target: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "reason": self.reason,
            "triggered_by": self.triggered_by,
            "cancelled_target": self.cancelled_target,
        }


class EmergencySwitch:
    """
    Tracks whether the vault is in an emergency stop.

    Default: released. Triggering is idempotent; each call is recorded.
    """

    def __init__(self):
        self._active = False
        self._triggers: List[EmergencyTrigger] = []
        self._released_at: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def triggers(self) -> List[EmergencyTrigger]:
        return list(self._triggers)

    def trigger(
        self,
        timestamp: int,
        reason: str,
        triggered_by: str,
        cancelled_target: Optional[str] = None,
    ) -> EmergencyTrigger:
        """Enter emergency stop."""
        self._active = True
        record = EmergencyTrigger(
            timestamp=timestamp,
            reason=reason or "MANUAL",
            triggered_by=triggered_by,
            cancelled_target=cancelled_target,
        )
        self._triggers.append(record)
        del self._triggers[:-MAX_TRIGGER_HISTORY]
        return record

    def release(self, timestamp: int) -> bool:
        """Leave emergency stop. Returns False if it was not active."""
        if not self._active:
            return False
        self._active = False
        self._released_at = timestamp
        return True

    def get_status(self) -> Dict[str, Any]:
        return {
            "active": self._active,
            "released_at": self._released_at,
            "trigger_count": len(self._triggers),
            "triggers": [t.to_dict() for t in self._triggers[-5:]],
        }

    def snapshot(self) -> Any:
        return (self._active, copy.deepcopy(self._triggers), self._released_at)

    def restore(self, snapshot: Any) -> None:
        active, triggers, released_at = snapshot
        self._active = active
        self._triggers = copy.deepcopy(triggers)
        self._released_at = released_at
