"""
governance/state_machine.py - Proposal lifecycle.

PROPOSAL STATE CONTRACT:
========================

States (ProposalState):
  PENDING    -> created, voting not yet open (block < start_block)
  ACTIVE     -> voting open (start_block <= block <= end_block)
  DEFEATED   -> voting closed; for <= against or for < quorum
  SUCCEEDED  -> voting closed and passed, not yet queued
  QUEUED     -> eta set; executable once timestamp >= eta
  EXPIRED    -> queued but not executed by eta + grace period
  EXECUTED   -> migration performed
  CANCELED   -> canceled before execution

Transitions:
  PENDING   -> ACTIVE                   (clock)
  ACTIVE    -> SUCCEEDED | DEFEATED     (clock, tally)
  SUCCEEDED -> QUEUED                   (queue)
  QUEUED    -> EXECUTED                 (execute)
  QUEUED    -> EXPIRED                  (clock)
  *         -> CANCELED                 (cancel; not from EXECUTED)

Clock-driven states are resolved on read. Transitions are recorded on a
proposal when an action observes them.
========================
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.constants import ProposalState
from core.time import timestamp_to_iso

VALID_TRANSITIONS: Dict[ProposalState, List[ProposalState]] = {
    ProposalState.PENDING: [ProposalState.ACTIVE, ProposalState.CANCELED],
    ProposalState.ACTIVE: [ProposalState.SUCCEEDED, ProposalState.DEFEATED, ProposalState.CANCELED],
    ProposalState.SUCCEEDED: [ProposalState.QUEUED, ProposalState.CANCELED],
    ProposalState.DEFEATED: [ProposalState.CANCELED],
    ProposalState.QUEUED: [ProposalState.EXECUTED, ProposalState.EXPIRED, ProposalState.CANCELED],
    ProposalState.EXPIRED: [ProposalState.CANCELED],
    ProposalState.EXECUTED: [],  # Terminal state
    ProposalState.CANCELED: [],  # Terminal state
}

# Clock-driven states that can be skipped over between two observations
_IMPLIED_PATH: Dict[ProposalState, List[ProposalState]] = {
    ProposalState.SUCCEEDED: [ProposalState.ACTIVE],
    ProposalState.DEFEATED: [ProposalState.ACTIVE],
    ProposalState.EXPIRED: [],
}


class InvalidTransitionError(Exception):
    """Raised when an invalid proposal state transition is recorded."""
    pass


@dataclass
class StateTransition:
    """Record of a state transition."""
    from_state: ProposalState
    to_state: ProposalState
    block_number: int
    timestamp: int
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_state": self.from_state.value,
            "to_state": self.to_state.value,
            "block_number": self.block_number,
            "timestamp": self.timestamp,
            "time": timestamp_to_iso(self.timestamp),
            "reason": self.reason,
        }


def can_transition(from_state: ProposalState, to_state: ProposalState) -> bool:
    return to_state in VALID_TRANSITIONS.get(from_state, [])


def is_terminal(state: ProposalState) -> bool:
    return len(VALID_TRANSITIONS.get(state, [])) == 0


def resolve_state(
    *,
    executed: bool,
    canceled: bool,
    start_block: int,
    end_block: int,
    for_votes: int,
    against_votes: int,
    quorum: int,
    eta: int,
    grace_period: int,
    block_number: int,
    timestamp: int,
) -> ProposalState:
    """Compute a proposal's state at (block_number, timestamp)."""
    if executed:
        return ProposalState.EXECUTED
    if canceled:
        return ProposalState.CANCELED
    if block_number < start_block:
        return ProposalState.PENDING
    if block_number <= end_block:
        return ProposalState.ACTIVE
    if for_votes <= against_votes or for_votes < quorum:
        return ProposalState.DEFEATED
    if eta == 0:
        return ProposalState.SUCCEEDED
    if timestamp > eta + grace_period:
        return ProposalState.EXPIRED
    return ProposalState.QUEUED


def record_transition(
    history: List[StateTransition],
    current: ProposalState,
    new_state: ProposalState,
    block_number: int,
    timestamp: int,
    reason: str = "",
) -> List[StateTransition]:
    """
    Append the transitions from `current` to `new_state` to `history`.

    Clock-driven intermediate states (ACTIVE before a tally outcome) are
    filled in. Returns the transitions appended.

    Raises InvalidTransitionError if no valid path exists.
    """
    if current == new_state:
        return []

    path = [new_state]
    if not can_transition(current, new_state):
        implied = [s for s in _IMPLIED_PATH.get(new_state, []) if s != current]
        path = implied + [new_state]

    appended = []
    state = current
    for step in path:
        if not can_transition(state, step):
            raise InvalidTransitionError(
                f"Cannot transition from {state.value} to {step.value}. "
                f"Valid transitions: {[s.value for s in VALID_TRANSITIONS.get(state, [])]}"
            )
        transition = StateTransition(
            from_state=state,
            to_state=step,
            block_number=block_number,
            timestamp=timestamp,
            reason=reason if step == new_state else "clock",
        )
        history.append(transition)
        appended.append(transition)
        state = step
    return appended


def last_recorded_state(history: List[StateTransition], default: Optional[ProposalState] = None) -> ProposalState:
    if history:
        return history[-1].to_state
    return default or ProposalState.PENDING
