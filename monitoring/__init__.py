"""
Monitoring package for SWITCHVAULT.

Stable import contract:
- VaultReport
- build_vault_report
- print_vault_report
"""

from monitoring.vault_report import (
    SCHEMA_VERSION,
    VaultReport,
    build_vault_report,
    print_vault_report,
)

__all__ = [
    "SCHEMA_VERSION",
    "VaultReport",
    "build_vault_report",
    "print_vault_report",
]
