"""
Pytest configuration and fixtures for SWITCHVAULT tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from adapters.simulated import SimulatedYieldSource  # noqa: E402
from config.settings import GovernanceParams, Settings, SourceParams  # noqa: E402
from core.ledger import Ledger  # noqa: E402
from core.time import ManualClock  # noqa: E402
from core.token import BaseAsset  # noqa: E402
from governance.governor import Governor  # noqa: E402
from migration.controller import StrategyMigrationController  # noqa: E402
from vault.engine import VaultAccountingEngine  # noqa: E402

AUTHORITY = "admin"


def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def ledger(clock):
    return Ledger(clock)


@pytest.fixture
def token():
    return BaseAsset("USDC", 6)


@pytest.fixture
def aave(token, clock):
    return SimulatedYieldSource("aave", token, clock, rate_bps=420, name="Aave")


@pytest.fixture
def compound(token, clock):
    return SimulatedYieldSource("compound", token, clock, rate_bps=510, name="Compound")


@pytest.fixture
def engine(ledger, token, aave):
    """Initialized vault parked in `aave`."""
    vault = VaultAccountingEngine(ledger, token)
    vault.initialize(AUTHORITY, initial_source=aave)
    return vault


@pytest.fixture
def controller(engine, compound):
    """Migration controller with `compound` whitelisted as a second source."""
    engine.add_source(AUTHORITY, compound)
    return StrategyMigrationController(engine, delay_seconds=3_600, max_slippage_bps=100)


@pytest.fixture
def governance_params():
    return GovernanceParams(
        voting_delay=1,
        voting_period=10,
        proposal_threshold=100,
        quorum=1_000,
        timelock_delay=86_400,
        grace_period=7 * 86_400,
    )


@pytest.fixture
def governor(controller, governance_params):
    return Governor(controller, controller.bind_governance(), governance_params)


@pytest.fixture
def fund(token):
    """Mint base asset to an account."""
    def _fund(account: str, amount: int) -> None:
        token.mint(account, amount)
    return _fund


@pytest.fixture
def settings():
    return Settings(
        sources=[
            SourceParams("aave-usdc", "Aave", rate_bps=420),
            SourceParams("compound-usdc", "Compound", rate_bps=510),
        ],
        initial_source="aave-usdc",
    )
