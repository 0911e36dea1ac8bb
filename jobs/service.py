"""
jobs/service.py - Wires a complete vault from configuration.

One clock, one ledger, one token book; simulated instruments from the
`sources` section; the accounting engine, migration controller and
governor sharing that ledger. The governor receives the controller's
governance capability at construction.

Usage:
    service = VaultService.from_settings(load_settings())
    service.fund("alice", 10_000)
    service.engine.deposit("alice", 10_000)
"""

from typing import Dict, Optional

from adapters.simulated import SimulatedYieldSource
from config.settings import Settings, SourceParams, load_settings
from core.ledger import Ledger
from core.logging import get_logger
from core.time import ManualClock
from core.token import BaseAsset
from governance.governor import Governor
from migration.controller import StrategyMigrationController
from monitoring.vault_report import VaultReport, build_vault_report
from vault.engine import VaultAccountingEngine

logger = get_logger("switchvault.service")


class VaultService:
    """Composition root for one vault."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        clock_params = self.settings.clock
        vault_params = self.settings.vault

        self.clock = ManualClock(
            block_number=clock_params.genesis_block,
            timestamp=clock_params.genesis_timestamp,
            seconds_per_block=clock_params.seconds_per_block,
        )
        self.ledger = Ledger(self.clock)
        self.token = BaseAsset(vault_params.asset_symbol, vault_params.asset_decimals)
        self.sources: Dict[str, SimulatedYieldSource] = {
            params.source_id: self._build_source(params)
            for params in self.settings.sources
        }

        self.engine = VaultAccountingEngine(self.ledger, self.token, vault_id=vault_params.vault_id)
        self.controller = StrategyMigrationController(
            self.engine,
            delay_seconds=self.settings.migration.delay_seconds,
            max_slippage_bps=self.settings.migration.max_slippage_bps,
        )
        self.governor = Governor(
            self.controller,
            self.controller.bind_governance(),
            self.settings.governance,
        )

        initial = self.sources.get(self.settings.initial_source) if self.settings.initial_source else None
        self.engine.initialize(vault_params.authority, initial_source=initial, min_deposit=vault_params.min_deposit)
        for source_id, source in self.sources.items():
            if source is not initial:
                self.engine.add_source(vault_params.authority, source)

        logger.info(
            "Vault service ready",
            extra={"context": {
                "vault": vault_params.vault_id,
                "sources": list(self.sources),
                "initial_source": self.settings.initial_source,
            }},
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "VaultService":
        return cls(settings)

    @classmethod
    def from_config(cls, config_path=None) -> "VaultService":
        return cls(load_settings(config_path))

    @property
    def authority(self) -> str:
        return self.engine.state.authority

    def fund(self, account: str, amount: int) -> None:
        """Mint base asset to an account (simulation faucet)."""
        self.token.mint(account, amount)

    def report(self) -> VaultReport:
        return build_vault_report(self.engine, self.controller, self.governor)

    def _build_source(self, params: SourceParams) -> SimulatedYieldSource:
        return SimulatedYieldSource(
            params.source_id,
            self.token,
            self.clock,
            rate_bps=params.rate_bps,
            name=params.name,
            entry_cost_bps=params.entry_cost_bps,
            exit_cost_bps=params.exit_cost_bps,
        )
