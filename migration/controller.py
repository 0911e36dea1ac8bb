"""
migration/controller.py - Strategy migration ("the switch").

SWITCH CONTRACT:
================

Given the current source OLD and a whitelisted target NEW (NEW != OLD):
  1. Resync, then withdraw the vault's entire total_assets from OLD
  2. current_source = NEW, record timestamp, migration_count += 1
  3. Deposit everything recovered into NEW; total_assets = NEW's value
  4. Emit StrategyUpgraded(old, new, rate, timestamp)

Share balances and total_shares never change; only total_assets may
move, reflecting cross-instrument slippage. The whole sequence is one
ledger unit: any failure restores every region, so funds are never
observably "in transit".

Safety bounds on every path:
  after < min_assets                      -> SLIPPAGE_TOO_HIGH
  (before - after) / before > max bps     -> EXCEEDS_MAX_SLIPPAGE
  0 < loss within bounds                  -> MigrationSlippage event

Entry points:
  upgrade_strategy      authority or governance capability, immediate
  schedule_upgrade      authority, starts the migration delay
  execute_upgrade       authority, after the delay
  cancel_upgrade        authority, clears the pending request
  migrate_to_best_yield authority or governance, highest-rate source
  emergency_pause       authority, pause + cancel pending request
  emergency_resume      authority, the only way out of an emergency stop
================
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.access import (
    Caller,
    GovernanceCapability,
    require_authority,
    require_authority_or_governance,
)
from core.constants import (
    DEFAULT_MAX_SLIPPAGE_BPS,
    DEFAULT_MIGRATION_DELAY_SECONDS,
    BPS_DENOMINATOR,
    REGION_MIGRATION,
    ErrorCode,
    EventName,
)
from core.exceptions import SafetyError, StateError, ValidationError
from core.logging import get_logger
from core.math import exceeds_bps, loss_bps
from migration.emergency import EmergencySwitch
from vault.engine import VAULT_GUARD, VaultAccountingEngine

logger = get_logger("switchvault.migration")


@dataclass
class PendingMigration:
    """A scheduled, not yet executed migration request."""
    target_source: str
    requested_at: int
    executable_at: int
    executed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_source": self.target_source,
            "requested_at": self.requested_at,
            "executable_at": self.executable_at,
            "executed": self.executed,
        }


@dataclass
class MigrationRecord:
    """Outcome of one completed switch."""
    old_source: Optional[str]
    new_source: str
    assets_before: int
    assets_after: int
    loss_bps: int
    rate_bps: int
    timestamp: int
    trigger: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "old_source": self.old_source,
            "new_source": self.new_source,
            "assets_before": self.assets_before,
            "assets_after": self.assets_after,
            "loss_bps": self.loss_bps,
            "rate_bps": self.rate_bps,
            "timestamp": self.timestamp,
            "trigger": self.trigger,
        }


@dataclass
class MigrationState:
    """Controller storage region."""
    pending: Optional[PendingMigration] = None
    history: List[MigrationRecord] = field(default_factory=list)

    def snapshot(self) -> Any:
        return copy.deepcopy((self.pending, self.history))

    def restore(self, snapshot: Any) -> None:
        self.pending, self.history = copy.deepcopy(snapshot)


class StrategyMigrationController:
    """Moves the vault's whole balance between yield instruments."""

    def __init__(
        self,
        engine: VaultAccountingEngine,
        delay_seconds: int = DEFAULT_MIGRATION_DELAY_SECONDS,
        max_slippage_bps: int = DEFAULT_MAX_SLIPPAGE_BPS,
    ):
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be non-negative")
        if not 0 <= max_slippage_bps <= BPS_DENOMINATOR:
            raise ValueError("max_slippage_bps must be within [0, 10000]")
        self.engine = engine
        self.ledger = engine.ledger
        self.delay_seconds = delay_seconds
        self.max_slippage_bps = max_slippage_bps
        self.state = MigrationState()
        self.emergency = EmergencySwitch()
        self._governance = GovernanceCapability("governance")
        self._governance_issued = False

        self.ledger.register(REGION_MIGRATION, self.state)
        self.ledger.register("emergency", self.emergency)
        engine.add_pause_hold(lambda: self.emergency.is_active)

    def bind_governance(self) -> GovernanceCapability:
        """
        Hand out the governance capability. Can be issued only once, to
        the governor wired to this controller.
        """
        if self._governance_issued:
            raise RuntimeError("Governance capability already issued")
        self._governance_issued = True
        return self._governance

    @property
    def pending(self) -> Optional[PendingMigration]:
        return self.state.pending

    @property
    def history(self) -> List[MigrationRecord]:
        return list(self.state.history)

    # =========================================================================
    # DIRECT VARIANT
    # =========================================================================

    def upgrade_strategy(self, caller: Caller, new_source: str, min_assets: int = 0) -> MigrationRecord:
        """Switch immediately. Authority or governance only."""
        with self.ledger.atomic("upgrade_strategy"), self.ledger.guard(VAULT_GUARD):
            self._require_governance(caller)
            trigger = "governance" if isinstance(caller, GovernanceCapability) else "direct"
            return self._switch(new_source, min_assets, trigger)

    def migrate_to_best_yield(self, caller: Caller, min_assets: int = 0) -> MigrationRecord:
        """
        Switch to the whitelisted source with the highest current yield.

        Ties go to the earliest-added source.

        Raises:
            StateError: SAME_SOURCE when the vault already sits on the best
                source; SOURCE_NOT_WHITELISTED when the whitelist is empty
        """
        with self.ledger.atomic("migrate_to_best_yield"), self.ledger.guard(VAULT_GUARD):
            self._require_governance(caller)
            best = self.engine.registry.best_yield_source()
            if best is None:
                raise StateError("No whitelisted sources", ErrorCode.SOURCE_NOT_WHITELISTED)
            return self._switch(best[0], min_assets, "best_yield")

    # =========================================================================
    # PRODUCTION VARIANT
    # =========================================================================

    def schedule_upgrade(self, caller: Caller, target_source: str) -> PendingMigration:
        """Record a migration request; executable after delay_seconds."""
        with self.ledger.atomic("schedule_upgrade"):
            self._require_authority(caller)
            if self.state.pending is not None:
                raise StateError(
                    f"Upgrade to {self.state.pending.target_source} already scheduled",
                    ErrorCode.UPGRADE_ALREADY_SCHEDULED,
                    self.state.pending.to_dict(),
                )
            self.engine.registry.info(target_source)
            if target_source == self.engine.state.current_source:
                raise StateError(
                    f"{target_source} is already the active source",
                    ErrorCode.SAME_SOURCE,
                    {"source": target_source},
                )
            now = self.ledger.clock.timestamp
            pending = PendingMigration(
                target_source=target_source,
                requested_at=now,
                executable_at=now + self.delay_seconds,
            )
            self.state.pending = pending
            self.ledger.emit(
                EventName.UPGRADE_SCHEDULED,
                target=target_source,
                requested_at=pending.requested_at,
                executable_at=pending.executable_at,
            )
            return pending

    def execute_upgrade(self, caller: Caller, min_assets: int = 0) -> MigrationRecord:
        """Run the scheduled migration once its delay has elapsed."""
        with self.ledger.atomic("execute_upgrade"), self.ledger.guard(VAULT_GUARD):
            self._require_authority(caller)
            pending = self._require_pending()
            now = self.ledger.clock.timestamp
            if now < pending.executable_at:
                raise StateError(
                    f"Upgrade executable at {pending.executable_at}, now {now}",
                    ErrorCode.TIMELOCK_NOT_EXPIRED,
                    {"executable_at": pending.executable_at, "now": now},
                )
            record = self._switch(pending.target_source, min_assets, "scheduled")
            pending.executed = True
            self.state.pending = None
            return record

    def cancel_upgrade(self, caller: Caller) -> PendingMigration:
        """Drop the pending request."""
        with self.ledger.atomic("cancel_upgrade"):
            self._require_authority(caller)
            pending = self._require_pending()
            self.state.pending = None
            self.ledger.emit(EventName.UPGRADE_CANCELLED, target=pending.target_source)
            return pending

    # =========================================================================
    # EMERGENCY CONTROLS
    # =========================================================================

    def emergency_pause(self, caller: Caller, reason: str = "") -> None:
        """Pause the vault and clear any pending migration request."""
        with self.ledger.atomic("emergency_pause"):
            self._require_authority(caller)
            cancelled = self.state.pending
            if cancelled is not None:
                self.state.pending = None
                self.ledger.emit(EventName.UPGRADE_CANCELLED, target=cancelled.target_source)
            self.engine.state.paused = True
            trigger = self.emergency.trigger(
                timestamp=self.ledger.clock.timestamp,
                reason=reason,
                triggered_by=str(caller),
                cancelled_target=cancelled.target_source if cancelled else None,
            )
            self.ledger.emit(EventName.EMERGENCY_PAUSED, **trigger.to_dict())

        logger.warning(
            "Emergency pause engaged",
            extra={"context": {"reason": reason, "caller": caller}},
        )

    def emergency_resume(self, caller: Caller) -> None:
        """Leave emergency stop and unpause the vault."""
        with self.ledger.atomic("emergency_resume"):
            self._require_authority(caller)
            self.emergency.release(self.ledger.clock.timestamp)
            self.engine.state.paused = False
            self.ledger.emit(EventName.EMERGENCY_RESUMED, by=caller)

    # =========================================================================
    # THE SWITCH (inside a ledger unit)
    # =========================================================================

    def _switch(self, new_source: str, min_assets: int, trigger: str) -> MigrationRecord:
        engine = self.engine
        state = engine.state
        old_source = state.current_source

        if min_assets < 0:
            raise ValidationError("min_assets must be non-negative", ErrorCode.INVALID_PARAMETER)
        if new_source == old_source:
            raise StateError(
                f"{new_source} is already the active source",
                ErrorCode.SAME_SOURCE,
                {"source": new_source},
            )
        new_adapter = engine.registry.get(new_source)
        old_adapter = engine.current_adapter()
        if old_adapter is not None and old_adapter.has_pending_withdrawal(engine.vault_id):
            raise StateError(
                f"{old_source} has a queued withdrawal; migration blocked",
                ErrorCode.SOURCE_LOCKED,
                {"source": old_source},
            )

        # 1. Pull everything out of the old source
        before = engine.resync()
        if old_adapter is None:
            recovered = before
        elif before > 0:
            recovered = old_adapter.withdraw(engine.vault_id, before)
        else:
            recovered = 0

        # 2. Point the vault at the new source
        now = self.ledger.clock.timestamp
        state.current_source = new_source
        state.last_migration_timestamp = now
        state.migration_count += 1

        # 3. Place everything into the new source
        if recovered > 0:
            new_adapter.deposit(engine.vault_id, recovered)
        after = new_adapter.value_of(engine.vault_id) if state.total_shares > 0 else 0
        state.total_assets = after

        if after < min_assets:
            raise SafetyError(
                f"Post-migration assets {after} below minimum {min_assets}",
                ErrorCode.SLIPPAGE_TOO_HIGH,
                {"before": before, "after": after, "min_assets": min_assets},
            )
        if exceeds_bps(before, after, self.max_slippage_bps):
            raise SafetyError(
                f"Migration loss {loss_bps(before, after)} bps exceeds "
                f"ceiling {self.max_slippage_bps} bps",
                ErrorCode.EXCEEDS_MAX_SLIPPAGE,
                {"before": before, "after": after, "max_slippage_bps": self.max_slippage_bps},
            )

        # 4. Report
        rate = new_adapter.current_yield()
        record = MigrationRecord(
            old_source=old_source,
            new_source=new_source,
            assets_before=before,
            assets_after=after,
            loss_bps=loss_bps(before, after),
            rate_bps=rate,
            timestamp=now,
            trigger=trigger,
        )
        if after < before:
            self.ledger.emit(
                EventName.MIGRATION_SLIPPAGE,
                old=old_source,
                new=new_source,
                before=before,
                after=after,
                loss_bps=record.loss_bps,
            )
        self.ledger.emit(
            EventName.STRATEGY_UPGRADED,
            old=old_source,
            new=new_source,
            rate=rate,
            timestamp=now,
        )
        self.state.history.append(record)
        return record

    # =========================================================================
    # CHECKS
    # =========================================================================

    def _require_authority(self, caller: Caller) -> None:
        self.engine.require_initialized()
        require_authority(caller, self.engine.state.authority)

    def _require_governance(self, caller: Caller) -> None:
        self.engine.require_initialized()
        require_authority_or_governance(caller, self.engine.state.authority, self._governance)

    def _require_pending(self) -> PendingMigration:
        if self.state.pending is None:
            raise StateError("No upgrade scheduled", ErrorCode.NO_UPGRADE_SCHEDULED)
        return self.state.pending
