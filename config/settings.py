"""
config/settings.py - Vault configuration.

Protocol parameters grouped by component, loaded from YAML with
per-section defaults. Missing file or missing keys fall back to the
defaults in core.constants.
"""

import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from core.constants import (
    DEFAULT_GENESIS_TIMESTAMP,
    DEFAULT_GRACE_PERIOD_SECONDS,
    DEFAULT_MAX_SLIPPAGE_BPS,
    DEFAULT_MIGRATION_DELAY_SECONDS,
    DEFAULT_MIN_DEPOSIT,
    DEFAULT_PROPOSAL_THRESHOLD,
    DEFAULT_QUORUM,
    DEFAULT_SECONDS_PER_BLOCK,
    DEFAULT_TIMELOCK_DELAY_SECONDS,
    DEFAULT_VOTING_DELAY_BLOCKS,
    DEFAULT_VOTING_PERIOD_BLOCKS,
)

ENV_CONFIG_PATH = "SWITCHVAULT_CONFIG"
ENV_LOG_LEVEL = "SWITCHVAULT_LOG_LEVEL"
ENV_LOG_JSON = "SWITCHVAULT_LOG_JSON"

DEFAULT_CONFIG_PATH = Path(__file__).parent / "vault.yaml"


@dataclass
class VaultParams:
    """Accounting engine settings."""
    vault_id: str = "vault"
    authority: str = "admin"
    asset_symbol: str = "USDC"
    asset_decimals: int = 6
    min_deposit: int = DEFAULT_MIN_DEPOSIT


@dataclass
class MigrationParams:
    """Migration safety layer settings."""
    delay_seconds: int = DEFAULT_MIGRATION_DELAY_SECONDS
    max_slippage_bps: int = DEFAULT_MAX_SLIPPAGE_BPS  # 1%


@dataclass
class GovernanceParams:
    """
    Governance settings. Block-denominated windows, second-denominated
    timelock and grace period.
    """
    voting_delay: int = DEFAULT_VOTING_DELAY_BLOCKS
    voting_period: int = DEFAULT_VOTING_PERIOD_BLOCKS
    proposal_threshold: int = DEFAULT_PROPOSAL_THRESHOLD
    quorum: int = DEFAULT_QUORUM
    timelock_delay: int = DEFAULT_TIMELOCK_DELAY_SECONDS
    grace_period: int = DEFAULT_GRACE_PERIOD_SECONDS

    def validate(self) -> list[str]:
        """Return a list of problems (empty when valid)."""
        problems = []
        if self.voting_delay < 0:
            problems.append("voting_delay must be >= 0")
        if self.voting_period <= 0:
            problems.append("voting_period must be > 0")
        if self.proposal_threshold < 0:
            problems.append("proposal_threshold must be >= 0")
        if self.quorum < 0:
            problems.append("quorum must be >= 0")
        if self.timelock_delay < 0:
            problems.append("timelock_delay must be >= 0")
        if self.grace_period <= 0:
            problems.append("grace_period must be > 0")
        return problems


@dataclass
class ClockParams:
    """Simulation clock settings."""
    genesis_block: int = 1
    genesis_timestamp: int = DEFAULT_GENESIS_TIMESTAMP
    seconds_per_block: int = DEFAULT_SECONDS_PER_BLOCK


@dataclass
class LoggingParams:
    level: str = "INFO"
    json: bool = False
    log_file: str | None = None


@dataclass
class SourceParams:
    """A yield instrument to whitelist at startup."""
    source_id: str
    name: str = ""
    rate_bps: int = 0
    entry_cost_bps: int = 0
    exit_cost_bps: int = 0


@dataclass
class Settings:
    """Full configuration."""
    vault: VaultParams = field(default_factory=VaultParams)
    migration: MigrationParams = field(default_factory=MigrationParams)
    governance: GovernanceParams = field(default_factory=GovernanceParams)
    clock: ClockParams = field(default_factory=ClockParams)
    logging: LoggingParams = field(default_factory=LoggingParams)
    sources: list[SourceParams] = field(default_factory=list)
    initial_source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _section(cls: type, data: dict[str, Any] | None) -> Any:
    """Build a params dataclass from a YAML mapping, ignoring unknown keys."""
    data = data or {}
    known = {f.name for f in fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in known})


def settings_from_dict(data: dict[str, Any]) -> Settings:
    """
    Build Settings from a parsed YAML mapping.

    Raises:
        ValueError: If governance parameters are invalid or a source
            entry lacks source_id
    """
    sources = []
    for entry in data.get("sources", []) or []:
        if not entry or "source_id" not in entry:
            raise ValueError(f"Source entry missing source_id: {entry!r}")
        sources.append(_section(SourceParams, entry))

    settings = Settings(
        vault=_section(VaultParams, data.get("vault")),
        migration=_section(MigrationParams, data.get("migration")),
        governance=_section(GovernanceParams, data.get("governance")),
        clock=_section(ClockParams, data.get("clock")),
        logging=_section(LoggingParams, data.get("logging")),
        sources=sources,
        initial_source=data.get("initial_source"),
    )

    problems = settings.governance.validate()
    if problems:
        raise ValueError(f"Invalid governance parameters: {'; '.join(problems)}")
    if settings.initial_source and settings.initial_source not in {s.source_id for s in sources}:
        raise ValueError(f"initial_source {settings.initial_source} is not among sources")
    return settings


def load_settings(config_path: Path | None = None) -> Settings:
    """
    Load configuration.

    Resolution order for the file: explicit argument, then the
    SWITCHVAULT_CONFIG environment variable (a .env file is honoured),
    then config/vault.yaml. A missing file yields defaults.

    SWITCHVAULT_LOG_LEVEL / SWITCHVAULT_LOG_JSON override the logging
    section.
    """
    load_dotenv()

    if config_path is None:
        env_path = os.getenv(ENV_CONFIG_PATH)
        config_path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH

    data: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    settings = settings_from_dict(data)

    level = os.getenv(ENV_LOG_LEVEL)
    if level:
        settings.logging.level = level.upper()
    json_flag = os.getenv(ENV_LOG_JSON)
    if json_flag:
        settings.logging.json = json_flag.strip().lower() in ("1", "true", "yes")

    return settings
