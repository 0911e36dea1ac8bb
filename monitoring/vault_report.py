"""
Vault status report.

What an external directory would poll from a vault: totals, price per
share, the active instrument and its yield, pending migration, migration
count and proposal counts by state.

All amounts are rendered as strings (base units formatted with the
asset's decimals); raw integers are kept alongside under *_raw keys.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.format_money import format_bps, format_units
from core.logging import get_logger
from core.time import timestamp_to_iso
from governance.governor import Governor
from migration.controller import StrategyMigrationController
from vault.engine import VaultAccountingEngine

logger = get_logger("switchvault.monitoring.vault_report")

SCHEMA_VERSION = "1.0.0"


@dataclass
class VaultReport:
    """Point-in-time vault status."""
    block_number: int
    timestamp: int
    vault: Dict[str, Any] = field(default_factory=dict)
    source: Dict[str, Any] = field(default_factory=dict)
    migration: Dict[str, Any] = field(default_factory=dict)
    governance: Dict[str, Any] = field(default_factory=dict)
    whitelist: List[Dict[str, Any]] = field(default_factory=list)
    invariant_problems: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": SCHEMA_VERSION,
            "block_number": self.block_number,
            "timestamp": self.timestamp,
            "time": timestamp_to_iso(self.timestamp),
            "vault": self.vault,
            "source": self.source,
            "migration": self.migration,
            "governance": self.governance,
            "whitelist": self.whitelist,
            "invariant_problems": self.invariant_problems,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def save(self, path: Path) -> None:
        """Save report to file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.to_json())
        logger.info(f"Vault report saved: {path}")


def build_vault_report(
    engine: VaultAccountingEngine,
    controller: Optional[StrategyMigrationController] = None,
    governor: Optional[Governor] = None,
) -> VaultReport:
    """Collect a report from the wired components. Read-only."""
    clock = engine.ledger.clock
    state = engine.state
    decimals = engine.token.decimals

    vault = {
        "vault_id": engine.vault_id,
        "asset": state.asset,
        "authority": state.authority,
        "paused": state.paused,
        "total_assets": format_units(state.total_assets, decimals),
        "total_assets_raw": state.total_assets,
        "live_value": format_units(engine.live_value(), decimals),
        "total_shares": state.total_shares,
        "price_per_share": str(engine.price_per_share),
        "holders": len(state.share_balance),
        "min_deposit": state.min_deposit,
    }

    source: Dict[str, Any] = {"source_id": state.current_source}
    adapter = engine.current_adapter()
    if adapter is not None:
        rate = adapter.current_yield()
        source.update({
            "name": adapter.name,
            "rate_bps": rate,
            "rate": format_bps(rate),
        })

    migration: Dict[str, Any] = {
        "migration_count": state.migration_count,
        "last_migration_timestamp": state.last_migration_timestamp,
    }
    if controller is not None:
        pending = controller.pending
        migration.update({
            "pending": pending.to_dict() if pending else None,
            "delay_seconds": controller.delay_seconds,
            "max_slippage_bps": controller.max_slippage_bps,
            "emergency": controller.emergency.get_status(),
            "history": [record.to_dict() for record in controller.history],
        })

    governance: Dict[str, Any] = {}
    if governor is not None:
        governance = {
            "proposal_count": governor.proposal_count,
            "by_state": governor.state_counts(),
            "params": vars(governor.params).copy(),
        }

    return VaultReport(
        block_number=clock.block_number,
        timestamp=clock.timestamp,
        vault=vault,
        source=source,
        migration=migration,
        governance=governance,
        whitelist=[info.to_dict() for info in engine.registry.all_sources()],
        invariant_problems=state.check_invariants(),
    )


def print_vault_report(report: VaultReport) -> None:
    """Print vault report to console in formatted style."""
    vault = report.vault
    print("\n" + "=" * 60)
    print("VAULT REPORT")
    print("=" * 60)
    print(f"Block: {report.block_number} | Time: {timestamp_to_iso(report.timestamp)}")
    print(f"Vault: {vault.get('vault_id')} ({vault.get('asset')})"
          f"{' [PAUSED]' if vault.get('paused') else ''}")

    print("\n--- ACCOUNTING ---")
    print(f"Total assets: {vault.get('total_assets')} (live {vault.get('live_value')})")
    print(f"Total shares: {vault.get('total_shares')} across {vault.get('holders')} holders")
    print(f"Price per share: {vault.get('price_per_share')}")

    print("\n--- SOURCE ---")
    source = report.source
    if source.get("source_id"):
        print(f"{source.get('source_id')} ({source.get('name')}): {source.get('rate')}")
    else:
        print("No active source (funds idle)")

    print("\n--- MIGRATION ---")
    migration = report.migration
    print(f"Migrations: {migration.get('migration_count', 0)}")
    pending = migration.get("pending")
    if pending:
        print(f"Pending: -> {pending['target_source']} executable at {pending['executable_at']}")
    emergency = migration.get("emergency") or {}
    if emergency.get("active"):
        triggers = emergency.get("triggers") or [{}]
        print(f"EMERGENCY STOP: {triggers[-1].get('reason')}")

    if report.governance:
        print("\n--- GOVERNANCE ---")
        print(f"Proposals: {report.governance.get('proposal_count', 0)}")
        for state, count in sorted(report.governance.get("by_state", {}).items()):
            print(f"  {state}: {count}")

    if report.invariant_problems:
        print("\n--- INVARIANT PROBLEMS ---")
        for problem in report.invariant_problems:
            print(f"  {problem}")
    print("=" * 60 + "\n")
