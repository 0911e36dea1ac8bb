"""
vault/engine.py - Share accounting engine.

PRICING CONTRACT:
=================

deposit(amount):
  bootstrap (total_shares == 0 or total_assets == 0) -> shares = amount
  otherwise -> shares = floor(amount * total_shares / total_assets)

withdraw(shares):
  resync total_assets to the instrument's live value first (captures
  yield accrued since the last interaction), then
  assets = floor(shares * total_assets / total_shares)
  The instrument releases the assets before bookkeeping changes.

preview_deposit / preview_withdraw:
  same formulas on the stored totals, no resync. Previews can diverge
  from the executed result once yield has accrued.

All rounding is floor; dust stays with the vault.
=================

Every mutating method runs as one ledger unit under the vault's
reentrancy guard.
"""

from typing import Callable, List, Optional

from adapters.base import YieldSourceAdapter
from core.access import Caller, require_authority, require_identity
from core.constants import (
    DEFAULT_MIN_DEPOSIT,
    REGION_REGISTRY,
    REGION_TOKEN,
    REGION_VAULT,
    ErrorCode,
    EventName,
)
from core.exceptions import StateError, ValidationError
from core.ledger import Journaled, Ledger
from core.logging import get_logger
from core.math import convert_to_assets, convert_to_shares, price_per_share
from core.token import BaseAsset
from vault.registry import SourceInfo, YieldSourceRegistry
from vault.state import VaultState

logger = get_logger("switchvault.vault")

# Shared by deposit/withdraw/transfer and the migration controller
VAULT_GUARD = "vault"

BalanceListener = Callable[[str, int], None]
PauseHold = Callable[[], bool]


class VaultAccountingEngine:
    """
    Owns share/asset bookkeeping for one vault.

    Usage:
        engine = VaultAccountingEngine(ledger, token, vault_id="vault")
        engine.initialize("admin", initial_source=source)
        shares = engine.deposit("alice", 10_000)
        assets = engine.withdraw("alice", shares)
    """

    def __init__(
        self,
        ledger: Ledger,
        token: BaseAsset,
        registry: Optional[YieldSourceRegistry] = None,
        vault_id: str = "vault",
    ):
        require_identity(vault_id, "vault_id")
        self.ledger = ledger
        self.token = token
        self.registry = registry or YieldSourceRegistry()
        self.vault_id = vault_id
        self.state = VaultState(asset=token.symbol)
        self._listeners: List[BalanceListener] = []
        self._pause_holds: List[PauseHold] = []

        ledger.register(REGION_TOKEN, token)
        ledger.register(REGION_VAULT, self.state)
        ledger.register(REGION_REGISTRY, self.registry)

    # =========================================================================
    # SETUP
    # =========================================================================

    def initialize(
        self,
        authority: str,
        initial_source: Optional[YieldSourceAdapter] = None,
        min_deposit: int = DEFAULT_MIN_DEPOSIT,
    ) -> None:
        """
        One-time setup: authority, minimum deposit, optional first source.

        Raises:
            StateError: ALREADY_INITIALIZED on a second call
            ValidationError: empty authority or negative min_deposit
        """
        with self.ledger.atomic("initialize"):
            if self.state.initialized:
                raise StateError("Vault is already initialized", ErrorCode.ALREADY_INITIALIZED)
            require_identity(authority, "authority")
            if min_deposit < 0:
                raise ValidationError(
                    "min_deposit must be non-negative",
                    ErrorCode.INVALID_PARAMETER,
                    {"min_deposit": min_deposit},
                )
            self.state.authority = authority
            self.state.min_deposit = min_deposit
            self.state.initialized = True
            if initial_source is not None:
                self._whitelist(initial_source)
                self.state.current_source = initial_source.source_id
                self.state.last_migration_timestamp = self.ledger.clock.timestamp

        logger.info(
            "Vault initialized",
            extra={"context": {
                "vault": self.vault_id,
                "authority": authority,
                "source": self.state.current_source,
            }},
        )

    def add_balance_listener(self, listener: BalanceListener) -> None:
        """Subscribe to (account, new_share_balance) notifications."""
        self._listeners.append(listener)

    def add_pause_hold(self, hold: PauseHold) -> None:
        """Register a check that keeps unpause() refused while it returns True."""
        self._pause_holds.append(hold)

    # =========================================================================
    # DEPOSIT / WITHDRAW
    # =========================================================================

    def deposit(self, caller: str, amount: int) -> int:
        """
        Deposit base asset for shares.

        Returns:
            Shares minted to the caller
        """
        with self.ledger.atomic("deposit"), self.ledger.guard(VAULT_GUARD):
            require_identity(caller, "caller")
            self._require_active()
            if amount <= 0:
                raise ValidationError("Deposit amount must be positive", ErrorCode.ZERO_AMOUNT)
            if amount < self.state.min_deposit:
                raise ValidationError(
                    f"Deposit {amount} below minimum {self.state.min_deposit}",
                    ErrorCode.DEPOSIT_TOO_SMALL,
                    {"amount": amount, "min_deposit": self.state.min_deposit},
                )

            shares = self.preview_deposit(amount)
            if shares == 0:
                raise ValidationError(
                    f"Deposit {amount} prices to zero shares",
                    ErrorCode.ZERO_SHARES,
                    {"amount": amount},
                )

            self.token.transfer(caller, self.vault_id, amount)
            self.state.total_shares += shares
            self.state.total_assets += amount
            self._set_shares(caller, self.state.balance_of(caller) + shares)

            adapter = self.current_adapter()
            if adapter is not None:
                adapter.deposit(self.vault_id, amount)

            self.ledger.emit(EventName.DEPOSIT, user=caller, assets=amount, shares=shares)
            return shares

    def withdraw(self, caller: str, shares: int) -> int:
        """
        Redeem shares for base asset.

        Returns:
            Base-asset units delivered to the caller
        """
        with self.ledger.atomic("withdraw"), self.ledger.guard(VAULT_GUARD):
            require_identity(caller, "caller")
            self._require_active()
            if shares <= 0:
                raise ValidationError("Withdraw shares must be positive", ErrorCode.ZERO_AMOUNT)
            held = self.state.balance_of(caller)
            if shares > held:
                raise ValidationError(
                    f"{caller} holds {held} shares, requested {shares}",
                    ErrorCode.INSUFFICIENT_SHARES,
                    {"held": held, "requested": shares},
                )

            self.resync()
            assets = convert_to_assets(shares, self.state.total_shares, self.state.total_assets)

            received = self._release(assets)

            self.state.total_shares -= shares
            self.state.total_assets -= assets
            self._set_shares(caller, held - shares)
            self.token.transfer(self.vault_id, caller, received)

            self.ledger.emit(EventName.WITHDRAW, user=caller, shares=shares, assets=received)
            return received

    def transfer_shares(self, caller: str, to: str, shares: int) -> None:
        """Move shares between accounts; voting power moves with them."""
        with self.ledger.atomic("transfer_shares"), self.ledger.guard(VAULT_GUARD):
            require_identity(caller, "caller")
            require_identity(to, "recipient")
            self._require_active()
            if shares <= 0:
                raise ValidationError("Transfer shares must be positive", ErrorCode.ZERO_AMOUNT)
            held = self.state.balance_of(caller)
            if shares > held:
                raise ValidationError(
                    f"{caller} holds {held} shares, requested {shares}",
                    ErrorCode.INSUFFICIENT_SHARES,
                    {"held": held, "requested": shares},
                )
            if to == caller:
                return
            self._set_shares(caller, held - shares)
            self._set_shares(to, self.state.balance_of(to) + shares)
            self.ledger.emit(EventName.SHARES_TRANSFERRED, sender=caller, recipient=to, shares=shares)

    def sync_total_assets(self) -> int:
        """Public resync of total_assets to the instrument's live value."""
        with self.ledger.atomic("sync_total_assets"):
            self.require_initialized()
            previous = self.state.total_assets
            current = self.resync()
            if current != previous:
                self.ledger.emit(EventName.ASSETS_SYNCED, previous=previous, current=current)
            return current

    # =========================================================================
    # QUERIES
    # =========================================================================

    def preview_deposit(self, amount: int) -> int:
        """Shares `amount` would mint at the stored (possibly stale) totals."""
        return convert_to_shares(amount, self.state.total_shares, self.state.total_assets)

    def preview_withdraw(self, shares: int) -> int:
        """Assets `shares` would redeem at the stored (possibly stale) totals."""
        return convert_to_assets(shares, self.state.total_shares, self.state.total_assets)

    def share_balance_of(self, account: str) -> int:
        return self.state.balance_of(account)

    @property
    def total_shares(self) -> int:
        return self.state.total_shares

    @property
    def total_assets(self) -> int:
        return self.state.total_assets

    @property
    def price_per_share(self):
        return price_per_share(self.state.total_assets, self.state.total_shares)

    def current_adapter(self) -> Optional[YieldSourceAdapter]:
        source_id = self.state.current_source
        if source_id is None:
            return None
        return self.registry.get(source_id)

    def live_value(self) -> int:
        """What the vault's position is worth right now."""
        adapter = self.current_adapter()
        if adapter is None:
            return self.token.balance_of(self.vault_id)
        return adapter.value_of(self.vault_id)

    # =========================================================================
    # ADMINISTRATION (authority only)
    # =========================================================================

    def add_source(self, caller: Caller, adapter: YieldSourceAdapter) -> SourceInfo:
        with self.ledger.atomic("add_source"):
            self._require_authority(caller)
            return self._whitelist(adapter)

    def remove_source(self, caller: Caller, source_id: str) -> SourceInfo:
        with self.ledger.atomic("remove_source"):
            self._require_authority(caller)
            if source_id == self.state.current_source:
                raise StateError(
                    f"Cannot remove active source {source_id}",
                    ErrorCode.SOURCE_IS_ACTIVE,
                    {"source": source_id},
                )
            info = self.registry.remove(source_id)
            self.ledger.emit(EventName.SOURCE_REMOVED, source=source_id)
            return info

    def set_min_deposit(self, caller: Caller, amount: int) -> None:
        with self.ledger.atomic("set_min_deposit"):
            self._require_authority(caller)
            if amount < 0:
                raise ValidationError(
                    "min_deposit must be non-negative",
                    ErrorCode.INVALID_PARAMETER,
                    {"min_deposit": amount},
                )
            previous = self.state.min_deposit
            self.state.min_deposit = amount
            self.ledger.emit(EventName.MIN_DEPOSIT_UPDATED, previous=previous, current=amount)

    def pause(self, caller: Caller) -> None:
        with self.ledger.atomic("pause"):
            self._require_authority(caller)
            if not self.state.paused:
                self.state.paused = True
                self.ledger.emit(EventName.VAULT_PAUSED, by=caller)

    def unpause(self, caller: Caller) -> None:
        """
        Raises:
            StateError: EMERGENCY_ACTIVE while an emergency stop holds the
                pause; leave it through the controller's emergency_resume
        """
        with self.ledger.atomic("unpause"):
            self._require_authority(caller)
            if any(hold() for hold in self._pause_holds):
                raise StateError(
                    "Vault is under emergency stop",
                    ErrorCode.EMERGENCY_ACTIVE,
                    {"vault": self.vault_id},
                )
            if self.state.paused:
                self.state.paused = False
                self.ledger.emit(EventName.VAULT_UNPAUSED, by=caller)

    # =========================================================================
    # INTERNALS (callers must already be inside a ledger unit)
    # =========================================================================

    def resync(self) -> int:
        """Set total_assets to the live position value while shares exist."""
        if self.state.total_shares > 0:
            self.state.total_assets = self.live_value()
        return self.state.total_assets

    def _release(self, assets: int) -> int:
        if assets == 0:
            return 0
        adapter = self.current_adapter()
        if adapter is None:
            return assets
        return adapter.withdraw(self.vault_id, assets)

    def _whitelist(self, adapter: YieldSourceAdapter) -> SourceInfo:
        require_identity(adapter.source_id, "source")
        info = self.registry.add(adapter, self.ledger.clock.timestamp)
        if isinstance(adapter, Journaled):
            # A re-added source may come back as a fresh instrument instance
            self.ledger.register(f"source:{adapter.source_id}", adapter, replace=True)
        self.ledger.emit(
            EventName.SOURCE_WHITELISTED,
            source=adapter.source_id,
            source_name=adapter.name,
        )
        return info

    def _set_shares(self, account: str, shares: int) -> None:
        self.state.set_balance(account, shares)
        for listener in self._listeners:
            listener(account, shares)

    def require_initialized(self) -> None:
        if not self.state.initialized:
            raise StateError("Vault is not initialized", ErrorCode.NOT_INITIALIZED)

    def _require_active(self) -> None:
        self.require_initialized()
        if self.state.paused:
            raise StateError("Vault is paused", ErrorCode.VAULT_PAUSED)

    def _require_authority(self, caller: Caller) -> None:
        self.require_initialized()
        require_authority(caller, self.state.authority)
