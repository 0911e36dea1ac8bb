"""
migration - Strategy migration and emergency controls.
"""

from migration.controller import (
    MigrationRecord,
    MigrationState,
    PendingMigration,
    StrategyMigrationController,
)
from migration.emergency import EmergencySwitch, EmergencyTrigger

__all__ = [
    "EmergencySwitch",
    "EmergencyTrigger",
    "MigrationRecord",
    "MigrationState",
    "PendingMigration",
    "StrategyMigrationController",
]
