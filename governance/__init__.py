"""
governance - Share-weighted proposals, checkpointed voting power, timelock.
"""

from governance.checkpoints import Checkpoint, VoteCheckpoints
from governance.governor import Governor
from governance.proposals import GovernanceStorage, Proposal, VoteReceipt
from governance.state_machine import (
    VALID_TRANSITIONS,
    InvalidTransitionError,
    StateTransition,
    resolve_state,
)

__all__ = [
    "Checkpoint",
    "GovernanceStorage",
    "Governor",
    "InvalidTransitionError",
    "Proposal",
    "StateTransition",
    "VALID_TRANSITIONS",
    "VoteCheckpoints",
    "VoteReceipt",
    "resolve_state",
]
