"""
vault/state.py - Vault bookkeeping record.

One instance per vault, registered on the ledger as the "vault" region.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from core.constants import DEFAULT_MIN_DEPOSIT


@dataclass
class VaultState:
    """
    Share and asset bookkeeping.

    Invariants (checked by check_invariants):
    - sum(share_balance) == total_shares
    - total_shares == 0  <=>  total_assets == 0 (after bootstrap)
    """
    asset: str = ""
    authority: str = ""
    total_shares: int = 0
    total_assets: int = 0
    share_balance: Dict[str, int] = field(default_factory=dict)
    min_deposit: int = DEFAULT_MIN_DEPOSIT
    paused: bool = False
    current_source: Optional[str] = None
    last_migration_timestamp: int = 0
    migration_count: int = 0
    initialized: bool = False

    def balance_of(self, account: str) -> int:
        return self.share_balance.get(account, 0)

    def set_balance(self, account: str, shares: int) -> None:
        if shares == 0:
            self.share_balance.pop(account, None)
        else:
            self.share_balance[account] = shares

    def check_invariants(self) -> list[str]:
        """Return a list of violated invariants (empty when consistent)."""
        problems = []
        if sum(self.share_balance.values()) != self.total_shares:
            problems.append("sum(share_balance) != total_shares")
        if (self.total_shares == 0) != (self.total_assets == 0):
            problems.append("total_shares == 0 does not match total_assets == 0")
        if any(v < 0 for v in self.share_balance.values()):
            problems.append("negative share balance")
        return problems

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset": self.asset,
            "authority": self.authority,
            "total_shares": self.total_shares,
            "total_assets": self.total_assets,
            "holders": len(self.share_balance),
            "min_deposit": self.min_deposit,
            "paused": self.paused,
            "current_source": self.current_source,
            "last_migration_timestamp": self.last_migration_timestamp,
            "migration_count": self.migration_count,
        }

    def snapshot(self) -> Any:
        return copy.deepcopy(self.__dict__)

    def restore(self, snapshot: Any) -> None:
        self.__dict__.update(copy.deepcopy(snapshot))
