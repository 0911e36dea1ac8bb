"""
governance/governor.py - Share-weighted governance over migrations.

GOVERNANCE CONTRACT:
====================

Voting power is an account's vault share balance. Every balance change
is checkpointed at the current block; a vote weighs the voter's power at
the proposal's start_block, so shares acquired after voting opens do not
count.

propose   power >= proposal_threshold, target whitelisted
cast_vote ACTIVE only, once per account
queue     SUCCEEDED only; eta = now + timelock_delay
execute   QUEUED only, eta <= now <= eta + grace_period; migrates the
          vault through the controller using the governance capability
cancel    proposer, authority, or anyone once the proposer's power has
          fallen below threshold; never after execution

Quorum is fixed on each proposal at creation. Windows are measured in
blocks, eta and grace in seconds.
====================
"""

from dataclasses import asdict, replace
from typing import Any, Dict, List, Optional

from config.settings import GovernanceParams
from core.access import GovernanceCapability, require_authority, require_identity
from core.constants import REGION_GOVERNANCE, ErrorCode, EventName, ProposalState, VoteSupport
from core.exceptions import AuthorizationError, StateError, ValidationError
from core.logging import get_logger
from governance.checkpoints import VoteCheckpoints
from governance.proposals import GovernanceStorage, Proposal, VoteReceipt
from governance.state_machine import last_recorded_state, record_transition, resolve_state
from migration.controller import MigrationRecord, StrategyMigrationController

logger = get_logger("switchvault.governance")

GOVERNANCE_GUARD = "governance"
REGION_CHECKPOINTS = "checkpoints"


class Governor:
    """
    Proposal lifecycle and checkpointed voting power.

    Usage:
        governor = Governor(controller, controller.bind_governance(), params)
        pid = governor.propose("alice", "compound-usdc", "Move to Compound")
        clock.mine(params.voting_delay)
        governor.cast_vote("alice", pid, VoteSupport.FOR)
    """

    def __init__(
        self,
        controller: StrategyMigrationController,
        capability: GovernanceCapability,
        params: Optional[GovernanceParams] = None,
    ):
        self.controller = controller
        self.engine = controller.engine
        self.ledger = controller.ledger
        self._capability = capability
        self.storage = GovernanceStorage(params=replace(params) if params else GovernanceParams())
        self.checkpoints = VoteCheckpoints()

        problems = self.storage.params.validate()
        if problems:
            raise ValueError(f"Invalid governance parameters: {'; '.join(problems)}")

        self.ledger.register(REGION_GOVERNANCE, self.storage)
        self.ledger.register(REGION_CHECKPOINTS, self.checkpoints)

        block = self.ledger.clock.block_number
        for account, balance in self.engine.state.share_balance.items():
            self.checkpoints.write(account, balance, block)
        self.engine.add_balance_listener(self._on_balance_change)

    @property
    def params(self) -> GovernanceParams:
        return self.storage.params

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def propose(self, proposer: str, target_source: str, description: str = "") -> int:
        """Create a proposal to migrate to `target_source`. Returns its id."""
        with self.ledger.atomic("propose"):
            require_identity(proposer, "proposer")
            params = self.storage.params
            power = self.checkpoints.get_current_votes(proposer)
            if power < params.proposal_threshold:
                raise StateError(
                    f"{proposer} has {power} votes, threshold is {params.proposal_threshold}",
                    ErrorCode.BELOW_PROPOSAL_THRESHOLD,
                    {"votes": power, "threshold": params.proposal_threshold},
                )
            self.engine.registry.info(target_source)

            clock = self.ledger.clock
            start_block = clock.block_number + params.voting_delay
            self.storage.proposal_count += 1
            proposal = Proposal(
                proposal_id=self.storage.proposal_count,
                proposer=proposer,
                target_source=target_source,
                description=description,
                start_block=start_block,
                end_block=start_block + params.voting_period,
                quorum=params.quorum,
                created_block=clock.block_number,
                created_at=clock.timestamp,
            )
            self.storage.proposals[proposal.proposal_id] = proposal
            self.ledger.emit(
                EventName.PROPOSAL_CREATED,
                id=proposal.proposal_id,
                proposer=proposer,
                target=target_source,
                description=description,
                start_block=proposal.start_block,
                end_block=proposal.end_block,
            )

        logger.info(
            "Proposal created",
            extra={"context": {
                "proposal_id": proposal.proposal_id,
                "proposer": proposer,
                "target": target_source,
            }},
        )
        return proposal.proposal_id

    def cast_vote(
        self,
        voter: str,
        proposal_id: int,
        support: VoteSupport,
        reason: str = "",
    ) -> int:
        """Vote with the voter's power at start_block. Returns the weight."""
        with self.ledger.atomic("cast_vote"):
            require_identity(voter, "voter")
            support = self._parse_support(support)
            proposal = self._get(proposal_id)
            state = self._sync_state(proposal)
            if state != ProposalState.ACTIVE:
                raise StateError(
                    f"Proposal {proposal_id} is {state.value}, voting closed",
                    ErrorCode.PROPOSAL_NOT_ACTIVE,
                    {"proposal_id": proposal_id, "state": state.value},
                )
            if self.storage.receipt(proposal_id, voter) is not None:
                raise StateError(
                    f"{voter} already voted on proposal {proposal_id}",
                    ErrorCode.ALREADY_VOTED,
                    {"proposal_id": proposal_id, "voter": voter},
                )

            weight = self.checkpoints.get_prior_votes(voter, proposal.start_block)
            proposal.add_votes(support, weight)
            self.storage.receipts[(proposal_id, voter)] = VoteReceipt(
                voter=voter, support=support, weight=weight, reason=reason
            )
            self.ledger.emit(
                EventName.VOTE_CAST,
                voter=voter,
                proposal_id=proposal_id,
                support=support.name,
                weight=weight,
                reason=reason,
            )
            return weight

    def queue(self, proposal_id: int) -> int:
        """Queue a succeeded proposal behind the timelock. Returns eta."""
        with self.ledger.atomic("queue"):
            proposal = self._get(proposal_id)
            state = self._sync_state(proposal)
            if state != ProposalState.SUCCEEDED:
                raise StateError(
                    f"Proposal {proposal_id} is {state.value}, not SUCCEEDED",
                    ErrorCode.PROPOSAL_NOT_SUCCEEDED,
                    {"proposal_id": proposal_id, "state": state.value},
                )
            clock = self.ledger.clock
            proposal.eta = clock.timestamp + self.storage.params.timelock_delay
            record_transition(
                proposal.history, state, ProposalState.QUEUED,
                clock.block_number, clock.timestamp, reason="queue",
            )
            self.ledger.emit(EventName.PROPOSAL_QUEUED, id=proposal_id, eta=proposal.eta)
            return proposal.eta

    def execute(self, proposal_id: int, min_assets: int = 0) -> MigrationRecord:
        """Execute a queued proposal: migrate the vault to its target."""
        with self.ledger.atomic("execute"), self.ledger.guard(GOVERNANCE_GUARD):
            proposal = self._get(proposal_id)
            state = self._sync_state(proposal)
            if state == ProposalState.EXPIRED:
                raise StateError(
                    f"Proposal {proposal_id} expired at {proposal.eta + self.storage.params.grace_period}",
                    ErrorCode.PROPOSAL_EXPIRED,
                    {"proposal_id": proposal_id, "eta": proposal.eta},
                )
            if state == ProposalState.EXECUTED:
                raise StateError(
                    f"Proposal {proposal_id} was already executed",
                    ErrorCode.PROPOSAL_ALREADY_EXECUTED,
                    {"proposal_id": proposal_id},
                )
            if state != ProposalState.QUEUED:
                raise StateError(
                    f"Proposal {proposal_id} is {state.value}, not QUEUED",
                    ErrorCode.PROPOSAL_NOT_QUEUED,
                    {"proposal_id": proposal_id, "state": state.value},
                )
            clock = self.ledger.clock
            if clock.timestamp < proposal.eta:
                raise StateError(
                    f"Proposal {proposal_id} executable at {proposal.eta}, now {clock.timestamp}",
                    ErrorCode.TIMELOCK_NOT_EXPIRED,
                    {"eta": proposal.eta, "now": clock.timestamp},
                )

            proposal.executed = True
            record_transition(
                proposal.history, state, ProposalState.EXECUTED,
                clock.block_number, clock.timestamp, reason="execute",
            )
            record = self.controller.upgrade_strategy(
                self._capability, proposal.target_source, min_assets
            )
            self.ledger.emit(
                EventName.PROPOSAL_EXECUTED,
                id=proposal_id,
                target=proposal.target_source,
            )

        logger.info(
            "Proposal executed",
            extra={"context": {
                "proposal_id": proposal_id,
                "target": proposal.target_source,
                "loss_bps": record.loss_bps,
            }},
        )
        return record

    def cancel(self, caller: str, proposal_id: int) -> None:
        """Cancel a proposal that has not been executed."""
        with self.ledger.atomic("cancel"):
            require_identity(caller, "caller")
            proposal = self._get(proposal_id)
            state = self._sync_state(proposal)
            if state == ProposalState.EXECUTED:
                raise StateError(
                    f"Proposal {proposal_id} was already executed",
                    ErrorCode.PROPOSAL_ALREADY_EXECUTED,
                    {"proposal_id": proposal_id},
                )
            if state == ProposalState.CANCELED:
                raise StateError(
                    f"Proposal {proposal_id} is already canceled",
                    ErrorCode.PROPOSAL_NOT_ACTIVE,
                    {"proposal_id": proposal_id, "state": state.value},
                )

            proposer_votes = self.checkpoints.get_current_votes(proposal.proposer)
            allowed = (
                caller == proposal.proposer
                or caller == self.engine.state.authority
                or proposer_votes < self.storage.params.proposal_threshold
            )
            if not allowed:
                raise AuthorizationError(
                    f"{caller} may not cancel proposal {proposal_id}",
                    ErrorCode.UNAUTHORIZED_CALLER,
                    {"proposal_id": proposal_id, "caller": caller},
                )

            clock = self.ledger.clock
            proposal.canceled = True
            record_transition(
                proposal.history, state, ProposalState.CANCELED,
                clock.block_number, clock.timestamp, reason=f"cancel by {caller}",
            )
            self.ledger.emit(EventName.PROPOSAL_CANCELED, id=proposal_id, by=caller)

    # =========================================================================
    # PARAMETERS (authority only)
    # =========================================================================

    def set_parameters(self, caller: str, **changes: int) -> GovernanceParams:
        """
        Update governance parameters.

        Only fields of GovernanceParams are accepted. Quorum changes do
        not affect existing proposals.
        """
        with self.ledger.atomic("set_parameters"):
            self.engine.require_initialized()
            require_authority(caller, self.engine.state.authority)
            known = set(asdict(self.storage.params))
            unknown = sorted(set(changes) - known)
            if unknown:
                raise ValidationError(
                    f"Unknown governance parameters: {unknown}",
                    ErrorCode.INVALID_PARAMETER,
                    {"unknown": unknown},
                )
            updated = replace(self.storage.params, **changes)
            problems = updated.validate()
            if problems:
                raise ValidationError(
                    f"Invalid governance parameters: {'; '.join(problems)}",
                    ErrorCode.INVALID_PARAMETER,
                    {"problems": problems},
                )
            self.storage.params = updated
            self.ledger.emit(EventName.GOVERNANCE_PARAMETERS_UPDATED, **changes)
            return updated

    # =========================================================================
    # QUERIES
    # =========================================================================

    def state(self, proposal_id: int) -> ProposalState:
        proposal = self._get(proposal_id)
        return self._resolve(proposal)

    def get_proposal(self, proposal_id: int) -> Proposal:
        return self._get(proposal_id)

    def get_receipt(self, proposal_id: int, voter: str) -> Optional[VoteReceipt]:
        self._get(proposal_id)
        return self.storage.receipt(proposal_id, voter)

    def has_voted(self, proposal_id: int, voter: str) -> bool:
        return self.get_receipt(proposal_id, voter) is not None

    def get_votes(self, account: str) -> int:
        return self.checkpoints.get_current_votes(account)

    def get_prior_votes(self, account: str, block_number: int) -> int:
        return self.checkpoints.get_prior_votes(account, block_number)

    @property
    def proposal_count(self) -> int:
        return self.storage.proposal_count

    def proposals(self) -> List[Proposal]:
        return [self.storage.proposals[pid] for pid in sorted(self.storage.proposals)]

    def state_counts(self) -> Dict[str, int]:
        """Number of proposals per state."""
        counts: Dict[str, int] = {}
        for proposal in self.storage.proposals.values():
            state = self._resolve(proposal).value
            counts[state] = counts.get(state, 0) + 1
        return counts

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _on_balance_change(self, account: str, balance: int) -> None:
        self.checkpoints.write(account, balance, self.ledger.clock.block_number)

    def _get(self, proposal_id: int) -> Proposal:
        proposal = self.storage.proposals.get(proposal_id)
        if proposal is None:
            raise StateError(
                f"Proposal {proposal_id} not found",
                ErrorCode.PROPOSAL_NOT_FOUND,
                {"proposal_id": proposal_id},
            )
        return proposal

    def _resolve(self, proposal: Proposal) -> ProposalState:
        clock = self.ledger.clock
        return resolve_state(
            executed=proposal.executed,
            canceled=proposal.canceled,
            start_block=proposal.start_block,
            end_block=proposal.end_block,
            for_votes=proposal.for_votes,
            against_votes=proposal.against_votes,
            quorum=proposal.quorum,
            eta=proposal.eta,
            grace_period=self.storage.params.grace_period,
            block_number=clock.block_number,
            timestamp=clock.timestamp,
        )

    def _sync_state(self, proposal: Proposal) -> ProposalState:
        """Resolve the state and record clock-driven transitions since the last action."""
        state = self._resolve(proposal)
        recorded = last_recorded_state(proposal.history)
        if state != recorded and not proposal.executed and not proposal.canceled:
            clock = self.ledger.clock
            record_transition(
                proposal.history, recorded, state,
                clock.block_number, clock.timestamp, reason="clock",
            )
        return state

    @staticmethod
    def _parse_support(support: Any) -> VoteSupport:
        try:
            return VoteSupport(support)
        except ValueError:
            try:
                return VoteSupport[str(support).upper()]
            except KeyError:
                raise ValidationError(
                    f"Invalid vote support {support!r}",
                    ErrorCode.INVALID_PARAMETER,
                    {"support": repr(support)},
                ) from None
