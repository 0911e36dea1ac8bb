"""
governance/proposals.py - Proposal and receipt records.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from config.settings import GovernanceParams
from core.constants import VoteSupport
from governance.state_machine import StateTransition


@dataclass
class VoteReceipt:
    """One account's vote on one proposal. Written once."""
    voter: str
    support: VoteSupport
    weight: int
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "voter": self.voter,
            "support": self.support.name,
            "weight": self.weight,
            "reason": self.reason,
        }


@dataclass
class Proposal:
    """A request to migrate the vault to `target_source`."""
    proposal_id: int
    proposer: str
    target_source: str
    description: str
    start_block: int
    end_block: int
    quorum: int
    created_block: int
    created_at: int
    for_votes: int = 0
    against_votes: int = 0
    abstain_votes: int = 0
    eta: int = 0
    executed: bool = False
    canceled: bool = False
    history: List[StateTransition] = field(default_factory=list)

    def add_votes(self, support: VoteSupport, weight: int) -> None:
        if support == VoteSupport.FOR:
            self.for_votes += weight
        elif support == VoteSupport.AGAINST:
            self.against_votes += weight
        else:
            self.abstain_votes += weight

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.proposal_id,
            "proposer": self.proposer,
            "target_source": self.target_source,
            "description": self.description,
            "start_block": self.start_block,
            "end_block": self.end_block,
            "quorum": self.quorum,
            "for_votes": self.for_votes,
            "against_votes": self.against_votes,
            "abstain_votes": self.abstain_votes,
            "eta": self.eta,
            "executed": self.executed,
            "canceled": self.canceled,
            "history": [t.to_dict() for t in self.history],
        }


@dataclass
class GovernanceStorage:
    """Governance storage region."""
    params: GovernanceParams = field(default_factory=GovernanceParams)
    proposals: Dict[int, Proposal] = field(default_factory=dict)
    receipts: Dict[Tuple[int, str], VoteReceipt] = field(default_factory=dict)
    proposal_count: int = 0

    def receipt(self, proposal_id: int, voter: str) -> Optional[VoteReceipt]:
        return self.receipts.get((proposal_id, voter))

    def snapshot(self) -> Any:
        return copy.deepcopy(self.__dict__)

    def restore(self, snapshot: Any) -> None:
        self.__dict__.update(copy.deepcopy(snapshot))
