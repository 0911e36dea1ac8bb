"""
core - Core utilities for SWITCHVAULT.

This package contains:
- constants.py: Enums, error codes, and protocol defaults
- exceptions.py: Typed exceptions with error codes
- math.py: Integer share pricing and accrual helpers (floor rounding)
- time.py: Monotonic block/timestamp clock
- logging.py: Structured JSON logging
- events.py: Ledger event records
- ledger.py: Single-writer atomic units and reentrancy guard
- token.py: Base-asset balance book
- access.py: Authority checks and the governance capability
- format_money.py: Display formatting for base-unit amounts
"""

from core.access import (
    GovernanceCapability,
    require_authority,
    require_authority_or_governance,
    require_identity,
)
from core.constants import (
    BPS_DENOMINATOR,
    SECONDS_PER_YEAR,
    ErrorCode,
    EventName,
    ProposalState,
    VoteSupport,
)
from core.events import Event, EventLog
from core.exceptions import (
    AdapterError,
    AuthorizationError,
    ReentrantCallError,
    SafetyError,
    StateError,
    ValidationError,
    VaultError,
)
from core.ledger import Journaled, Ledger
from core.logging import get_logger, setup_logging
from core.time import Clock, ManualClock
from core.token import BaseAsset

__all__ = [
    # Constants
    "BPS_DENOMINATOR",
    "SECONDS_PER_YEAR",
    "ErrorCode",
    "EventName",
    "ProposalState",
    "VoteSupport",
    # Exceptions
    "AdapterError",
    "AuthorizationError",
    "ReentrantCallError",
    "SafetyError",
    "StateError",
    "ValidationError",
    "VaultError",
    # Ledger
    "Event",
    "EventLog",
    "Journaled",
    "Ledger",
    "BaseAsset",
    "Clock",
    "ManualClock",
    # Access
    "GovernanceCapability",
    "require_authority",
    "require_authority_or_governance",
    "require_identity",
    # Logging
    "get_logger",
    "setup_logging",
]
