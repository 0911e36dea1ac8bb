"""
vault/ - Share accounting.

Modules:
- state: VaultState bookkeeping record
- registry: whitelist of yield instruments
- engine: deposit/withdraw pricing and administration
"""

from vault.engine import VAULT_GUARD, VaultAccountingEngine
from vault.registry import SourceInfo, YieldSourceRegistry
from vault.state import VaultState

__all__ = [
    "VAULT_GUARD",
    "VaultAccountingEngine",
    "SourceInfo",
    "YieldSourceRegistry",
    "VaultState",
]
