"""
tests/unit/test_registry.py - Yield source whitelist.
"""

import pytest

from adapters.simulated import SimulatedYieldSource
from core.constants import ErrorCode
from core.exceptions import StateError
from vault.registry import YieldSourceRegistry


@pytest.fixture
def registry():
    return YieldSourceRegistry()


def make(token, clock, source_id, rate):
    return SimulatedYieldSource(source_id, token, clock, rate_bps=rate, name=source_id.title())


class TestWhitelist:
    def test_add_and_get(self, registry, token, clock):
        source = make(token, clock, "aave", 420)
        info = registry.add(source, added_at=clock.timestamp)
        assert info.active
        assert "aave" in registry
        assert registry.get("aave") is source

    def test_duplicate_rejected(self, registry, token, clock):
        registry.add(make(token, clock, "aave", 420), 0)
        with pytest.raises(StateError) as exc_info:
            registry.add(make(token, clock, "aave", 420), 0)
        assert exc_info.value.code == ErrorCode.SOURCE_ALREADY_WHITELISTED

    def test_unknown_source(self, registry):
        with pytest.raises(StateError) as exc_info:
            registry.get("nope")
        assert exc_info.value.code == ErrorCode.SOURCE_NOT_WHITELISTED

    def test_remove_is_soft(self, registry, token, clock):
        registry.add(make(token, clock, "aave", 420), 0)
        registry.remove("aave")
        assert "aave" not in registry
        assert [i.source_id for i in registry.all_sources()] == ["aave"]
        assert registry.active_sources() == []

    def test_readd_moves_to_end(self, registry, token, clock):
        aave = make(token, clock, "aave", 420)
        registry.add(aave, 0)
        registry.add(make(token, clock, "compound", 510), 0)
        registry.remove("aave")
        registry.add(aave, 10)
        assert [i.source_id for i in registry.active_sources()] == ["compound", "aave"]


class TestBestYield:
    def test_empty(self, registry):
        assert registry.best_yield_source() is None

    def test_highest_rate(self, registry, token, clock):
        registry.add(make(token, clock, "aave", 420), 0)
        registry.add(make(token, clock, "compound", 510), 0)
        registry.add(make(token, clock, "morpho", 480), 0)
        assert registry.best_yield_source() == ("compound", 510)

    def test_tie_goes_to_earliest_added(self, registry, token, clock):
        registry.add(make(token, clock, "aave", 500), 0)
        registry.add(make(token, clock, "compound", 500), 0)
        assert registry.best_yield_source() == ("aave", 500)

    def test_removed_sources_ignored(self, registry, token, clock):
        registry.add(make(token, clock, "aave", 420), 0)
        registry.add(make(token, clock, "compound", 510), 0)
        registry.remove("compound")
        assert registry.best_yield_source() == ("aave", 420)
