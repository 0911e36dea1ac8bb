# PATH: core/constants.py
"""
Constants for SWITCHVAULT.

Contains enums, defaults, and protocol constants shared by the vault,
migration controller, and governance packages.

All amounts are integers in base-asset units. Rates and slippage bounds
are basis points (10_000 bps = 100%).
"""

from enum import Enum
from typing import Final

# =============================================================================
# NUMERIC CONSTANTS
# =============================================================================

BPS_DENOMINATOR: Final[int] = 10_000

SECONDS_PER_YEAR: Final[int] = 365 * 24 * 60 * 60

# Fixed-point scale for instrument exchange indexes
INDEX_SCALE: Final[int] = 10**18

# =============================================================================
# DEFAULTS (overridable via config/vault.yaml)
# =============================================================================

# Vault
DEFAULT_MIN_DEPOSIT = 1

# Migration safety layer
DEFAULT_MIGRATION_DELAY_SECONDS = 2 * 24 * 60 * 60  # 48h
DEFAULT_MAX_SLIPPAGE_BPS = 100  # 1%

# Governance
DEFAULT_VOTING_DELAY_BLOCKS = 1
DEFAULT_VOTING_PERIOD_BLOCKS = 17_280  # ~2.4 days at 12s blocks
DEFAULT_PROPOSAL_THRESHOLD = 100
DEFAULT_QUORUM = 1_000
DEFAULT_TIMELOCK_DELAY_SECONDS = 24 * 60 * 60  # 86_400
DEFAULT_GRACE_PERIOD_SECONDS = 7 * 24 * 60 * 60

# Clock
DEFAULT_SECONDS_PER_BLOCK = 12
DEFAULT_GENESIS_TIMESTAMP = 1_700_000_000

# Ledger participant names (one storage region per logical component)
REGION_TOKEN: Final[str] = "token"
REGION_VAULT: Final[str] = "vault"
REGION_REGISTRY: Final[str] = "registry"
REGION_MIGRATION: Final[str] = "migration"
REGION_GOVERNANCE: Final[str] = "governance"


# =============================================================================
# ENUMS
# =============================================================================

class ErrorCode(str, Enum):
    """
    Canonical error codes.

    Every VaultError carries one of these so callers can distinguish
    failure reasons without parsing messages.
    """
    # Validation
    ZERO_ADDRESS = "ZERO_ADDRESS"
    ZERO_AMOUNT = "ZERO_AMOUNT"
    ZERO_SHARES = "ZERO_SHARES"
    DEPOSIT_TOO_SMALL = "DEPOSIT_TOO_SMALL"
    INSUFFICIENT_SHARES = "INSUFFICIENT_SHARES"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    INVALID_PARAMETER = "INVALID_PARAMETER"

    # Authorization
    UNAUTHORIZED_CALLER = "UNAUTHORIZED_CALLER"
    NOT_GOVERNANCE = "NOT_GOVERNANCE"

    # State
    ALREADY_INITIALIZED = "ALREADY_INITIALIZED"
    NOT_INITIALIZED = "NOT_INITIALIZED"
    VAULT_PAUSED = "VAULT_PAUSED"
    SOURCE_ALREADY_WHITELISTED = "SOURCE_ALREADY_WHITELISTED"
    SOURCE_NOT_WHITELISTED = "SOURCE_NOT_WHITELISTED"
    SOURCE_IS_ACTIVE = "SOURCE_IS_ACTIVE"
    SOURCE_LOCKED = "SOURCE_LOCKED"
    EMERGENCY_ACTIVE = "EMERGENCY_ACTIVE"
    SAME_SOURCE = "SAME_SOURCE"
    UPGRADE_ALREADY_SCHEDULED = "UPGRADE_ALREADY_SCHEDULED"
    NO_UPGRADE_SCHEDULED = "NO_UPGRADE_SCHEDULED"
    TIMELOCK_NOT_EXPIRED = "TIMELOCK_NOT_EXPIRED"
    PROPOSAL_NOT_FOUND = "PROPOSAL_NOT_FOUND"
    PROPOSAL_NOT_ACTIVE = "PROPOSAL_NOT_ACTIVE"
    PROPOSAL_NOT_SUCCEEDED = "PROPOSAL_NOT_SUCCEEDED"
    PROPOSAL_NOT_QUEUED = "PROPOSAL_NOT_QUEUED"
    PROPOSAL_EXPIRED = "PROPOSAL_EXPIRED"
    PROPOSAL_ALREADY_EXECUTED = "PROPOSAL_ALREADY_EXECUTED"
    ALREADY_VOTED = "ALREADY_VOTED"
    BELOW_PROPOSAL_THRESHOLD = "BELOW_PROPOSAL_THRESHOLD"
    REENTRANT_CALL = "REENTRANT_CALL"

    # Economic / safety
    SLIPPAGE_TOO_HIGH = "SLIPPAGE_TOO_HIGH"
    EXCEEDS_MAX_SLIPPAGE = "EXCEEDS_MAX_SLIPPAGE"

    # Instrument
    ADAPTER_FAILURE = "ADAPTER_FAILURE"

    UNKNOWN = "UNKNOWN"


class EventName(str, Enum):
    """Names of events emitted to the ledger event log."""
    DEPOSIT = "Deposit"
    WITHDRAW = "Withdraw"
    SHARES_TRANSFERRED = "SharesTransferred"
    ASSETS_SYNCED = "AssetsSynced"
    STRATEGY_UPGRADED = "StrategyUpgraded"
    MIGRATION_SLIPPAGE = "MigrationSlippage"
    SOURCE_WHITELISTED = "SourceWhitelisted"
    SOURCE_REMOVED = "SourceRemoved"
    UPGRADE_SCHEDULED = "UpgradeScheduled"
    UPGRADE_CANCELLED = "UpgradeCancelled"
    EMERGENCY_PAUSED = "EmergencyPaused"
    EMERGENCY_RESUMED = "EmergencyResumed"
    VAULT_PAUSED = "VaultPaused"
    VAULT_UNPAUSED = "VaultUnpaused"
    MIN_DEPOSIT_UPDATED = "MinDepositUpdated"
    PROPOSAL_CREATED = "ProposalCreated"
    VOTE_CAST = "VoteCast"
    PROPOSAL_QUEUED = "ProposalQueued"
    PROPOSAL_EXECUTED = "ProposalExecuted"
    PROPOSAL_CANCELED = "ProposalCanceled"
    GOVERNANCE_PARAMETERS_UPDATED = "GovernanceParametersUpdated"


class ProposalState(str, Enum):
    """Governance proposal lifecycle states."""
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    CANCELED = "CANCELED"
    DEFEATED = "DEFEATED"
    SUCCEEDED = "SUCCEEDED"
    QUEUED = "QUEUED"
    EXPIRED = "EXPIRED"
    EXECUTED = "EXECUTED"


class VoteSupport(int, Enum):
    """Ballot options. Values match the conventional 0/1/2 encoding."""
    AGAINST = 0
    FOR = 1
    ABSTAIN = 2
