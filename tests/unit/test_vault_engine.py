"""
Unit tests for vault/engine.py.

Tests:
- Bootstrap pricing and proportional deposits
- Withdraw resync and round trip
- Share transfers
- Administration and authority checks
- Invariants after every operation
"""

import pytest

from adapters.simulated import SimulatedYieldSource
from core.constants import SECONDS_PER_YEAR, ErrorCode, EventName
from core.exceptions import (
    AdapterError,
    AuthorizationError,
    ReentrantCallError,
    StateError,
    ValidationError,
)
from vault.engine import VAULT_GUARD, VaultAccountingEngine

AUTHORITY = "admin"


def assert_consistent(engine):
    assert engine.state.check_invariants() == []


class TestInitialize:
    def test_second_initialize_fails(self, engine):
        with pytest.raises(StateError) as exc_info:
            engine.initialize(AUTHORITY)
        assert exc_info.value.code == ErrorCode.ALREADY_INITIALIZED

    def test_uninitialized_rejects_deposit(self, ledger, token, fund):
        vault = VaultAccountingEngine(ledger, token, vault_id="v2")
        fund("alice", 10)
        with pytest.raises(StateError) as exc_info:
            vault.deposit("alice", 10)
        assert exc_info.value.code == ErrorCode.NOT_INITIALIZED

    def test_initial_source_whitelisted(self, engine, aave):
        assert engine.state.current_source == "aave"
        assert engine.current_adapter() is aave
        assert engine.ledger.events.last(EventName.SOURCE_WHITELISTED)["source"] == "aave"


class TestDeposit:
    def test_first_depositor_one_to_one(self, engine, fund, token):
        fund("alice", 10_000)
        shares = engine.deposit("alice", 10_000)
        assert shares == 10_000
        assert engine.total_shares == 10_000
        assert engine.total_assets == 10_000
        assert token.balance_of("aave") == 10_000
        event = engine.ledger.events.last(EventName.DEPOSIT)
        assert (event["user"], event["assets"], event["shares"]) == ("alice", 10_000, 10_000)
        assert_consistent(engine)

    def test_proportional_after_yield(self, engine, fund, clock):
        fund("alice", 10_000)
        fund("bob", 1_051)
        engine.deposit("alice", 10_000)
        clock.advance(SECONDS_PER_YEAR)
        engine.sync_total_assets()
        assert engine.total_assets == 10_420
        shares = engine.deposit("bob", 1_042)
        assert shares == 1_000
        assert_consistent(engine)

    def test_deposit_prices_on_stored_totals(self, engine, fund, clock):
        fund("alice", 10_000)
        fund("bob", 1_000)
        engine.deposit("alice", 10_000)
        clock.advance(SECONDS_PER_YEAR)
        assert engine.preview_deposit(1_000) == 1_000
        assert engine.deposit("bob", 1_000) == 1_000

    def test_zero_amount(self, engine):
        with pytest.raises(ValidationError) as exc_info:
            engine.deposit("alice", 0)
        assert exc_info.value.code == ErrorCode.ZERO_AMOUNT

    def test_below_minimum(self, engine, fund):
        engine.set_min_deposit(AUTHORITY, 100)
        fund("alice", 99)
        with pytest.raises(ValidationError) as exc_info:
            engine.deposit("alice", 99)
        assert exc_info.value.code == ErrorCode.DEPOSIT_TOO_SMALL

    def test_zero_shares_rejected(self, engine, fund, aave):
        fund("alice", 10)
        fund("bob", 1)
        engine.deposit("alice", 10)
        aave.credit_yield(10)
        engine.sync_total_assets()
        with pytest.raises(ValidationError) as exc_info:
            engine.deposit("bob", 1)
        assert exc_info.value.code == ErrorCode.ZERO_SHARES
        assert engine.token.balance_of("bob") == 1

    def test_empty_caller(self, engine):
        with pytest.raises(ValidationError) as exc_info:
            engine.deposit("", 10)
        assert exc_info.value.code == ErrorCode.ZERO_ADDRESS

    def test_insufficient_funds_rolls_back(self, engine, fund):
        fund("alice", 5)
        with pytest.raises(ValidationError) as exc_info:
            engine.deposit("alice", 10)
        assert exc_info.value.code == ErrorCode.INSUFFICIENT_BALANCE
        assert engine.total_shares == 0
        assert len(engine.ledger.events.filter(EventName.DEPOSIT)) == 0

    def test_adapter_failure_rolls_back(self, engine, fund, aave, token):
        fund("alice", 100)
        aave.fail_deposits = True
        with pytest.raises(AdapterError):
            engine.deposit("alice", 100)
        assert token.balance_of("alice") == 100
        assert engine.total_shares == 0
        assert engine.share_balance_of("alice") == 0

    def test_paused(self, engine, fund):
        fund("alice", 10)
        engine.pause(AUTHORITY)
        with pytest.raises(StateError) as exc_info:
            engine.deposit("alice", 10)
        assert exc_info.value.code == ErrorCode.VAULT_PAUSED
        engine.unpause(AUTHORITY)
        assert engine.deposit("alice", 10) == 10

    def test_idle_vault_without_source(self, ledger, token, fund):
        vault = VaultAccountingEngine(ledger, token, vault_id="idle")
        vault.initialize(AUTHORITY)
        fund("alice", 100)
        vault.deposit("alice", 100)
        assert token.balance_of("idle") == 100
        assert vault.withdraw("alice", 100) == 100


class TestWithdraw:
    def test_round_trip(self, engine, fund, token):
        fund("alice", 10_000)
        shares = engine.deposit("alice", 10_000)
        assert engine.withdraw("alice", shares) == 10_000
        assert token.balance_of("alice") == 10_000
        assert engine.total_shares == 0
        assert engine.total_assets == 0
        assert_consistent(engine)

    def test_withdraw_includes_accrued_yield(self, engine, fund, clock, token):
        fund("alice", 10_000)
        engine.deposit("alice", 10_000)
        clock.advance(SECONDS_PER_YEAR)
        assert engine.preview_withdraw(10_000) == 10_000
        assert engine.withdraw("alice", 10_000) == 10_420
        assert token.balance_of("alice") == 10_420
        assert_consistent(engine)

    def test_partial_withdraw(self, engine, fund):
        fund("alice", 1_000)
        engine.deposit("alice", 1_000)
        assert engine.withdraw("alice", 400) == 400
        assert engine.share_balance_of("alice") == 600
        assert_consistent(engine)

    def test_more_than_held(self, engine, fund):
        fund("alice", 100)
        engine.deposit("alice", 100)
        with pytest.raises(ValidationError) as exc_info:
            engine.withdraw("alice", 101)
        assert exc_info.value.code == ErrorCode.INSUFFICIENT_SHARES

    def test_zero_shares(self, engine):
        with pytest.raises(ValidationError):
            engine.withdraw("alice", 0)

    def test_locked_source_rolls_back(self, engine, fund, aave):
        fund("alice", 100)
        engine.deposit("alice", 100)
        aave.lock(engine.vault_id)
        with pytest.raises(AdapterError):
            engine.withdraw("alice", 100)
        assert engine.share_balance_of("alice") == 100
        assert engine.total_assets == 100


class TestTransfer:
    def test_transfer(self, engine, fund):
        fund("alice", 100)
        engine.deposit("alice", 100)
        engine.transfer_shares("alice", "bob", 30)
        assert engine.share_balance_of("alice") == 70
        assert engine.share_balance_of("bob") == 30
        assert engine.ledger.events.last()["recipient"] == "bob"
        assert_consistent(engine)

    def test_transfer_too_many(self, engine, fund):
        fund("alice", 100)
        engine.deposit("alice", 100)
        with pytest.raises(ValidationError) as exc_info:
            engine.transfer_shares("alice", "bob", 101)
        assert exc_info.value.code == ErrorCode.INSUFFICIENT_SHARES

    def test_self_transfer_noop(self, engine, fund):
        fund("alice", 100)
        engine.deposit("alice", 100)
        engine.transfer_shares("alice", "alice", 50)
        assert engine.share_balance_of("alice") == 100

    def test_listener_notified(self, engine, fund):
        seen = []
        engine.add_balance_listener(lambda account, balance: seen.append((account, balance)))
        fund("alice", 100)
        engine.deposit("alice", 100)
        engine.transfer_shares("alice", "bob", 40)
        assert seen == [("alice", 100), ("alice", 60), ("bob", 40)]


class TestAdministration:
    def test_non_authority_rejected(self, engine, token, clock):
        source = SimulatedYieldSource("x", token, clock)
        with pytest.raises(AuthorizationError) as exc_info:
            engine.add_source("mallory", source)
        assert exc_info.value.code == ErrorCode.UNAUTHORIZED_CALLER
        assert "x" not in engine.registry

    def test_remove_active_source_fails(self, engine):
        with pytest.raises(StateError) as exc_info:
            engine.remove_source(AUTHORITY, "aave")
        assert exc_info.value.code == ErrorCode.SOURCE_IS_ACTIVE

    def test_remove_inactive_source(self, engine, compound):
        engine.add_source(AUTHORITY, compound)
        engine.remove_source(AUTHORITY, "compound")
        assert "compound" not in engine.registry
        assert engine.ledger.events.last()["source"] == "compound"

    def test_whitelist_event_payload(self, engine, compound):
        initial = engine.ledger.events.filter(EventName.SOURCE_WHITELISTED)
        assert [e.data for e in initial] == [{"source": "aave", "source_name": "Aave"}]

        engine.add_source(AUTHORITY, compound)
        event = engine.ledger.events.last(EventName.SOURCE_WHITELISTED)
        assert event.data == {"source": "compound", "source_name": "Compound"}

    def test_readd_removed_source_with_new_instance(self, engine, compound, token, clock):
        engine.add_source(AUTHORITY, compound)
        engine.remove_source(AUTHORITY, "compound")

        replacement = SimulatedYieldSource("compound", token, clock, rate_bps=600, name="Compound v3")
        info = engine.add_source(AUTHORITY, replacement)

        assert info.active
        assert info.name == "Compound v3"
        assert engine.registry.get("compound") is replacement
        assert [s.source_id for s in engine.registry.active_sources()] == ["aave", "compound"]

        # The new instance is the journaled region from now on
        with pytest.raises(RuntimeError):
            with engine.ledger.atomic("retune"):
                replacement.set_rate(900)
                raise RuntimeError("boom")
        assert replacement.current_yield() == 600

    def test_readd_rolled_back_keeps_old_instance(self, engine, compound, token, clock):
        engine.add_source(AUTHORITY, compound)
        engine.remove_source(AUTHORITY, "compound")
        replacement = SimulatedYieldSource("compound", token, clock, rate_bps=600)

        with pytest.raises(RuntimeError):
            with engine.ledger.atomic("readd"):
                engine.add_source(AUTHORITY, replacement)
                raise RuntimeError("boom")

        assert "compound" not in engine.registry
        with pytest.raises(RuntimeError):
            with engine.ledger.atomic("retune"):
                compound.set_rate(1)
                raise RuntimeError("boom")
        assert compound.current_yield() == 510

    def test_readd_active_source_fails(self, engine, compound, token, clock):
        engine.add_source(AUTHORITY, compound)
        with pytest.raises(StateError) as exc_info:
            engine.add_source(AUTHORITY, SimulatedYieldSource("compound", token, clock))
        assert exc_info.value.code == ErrorCode.SOURCE_ALREADY_WHITELISTED
        assert engine.registry.get("compound") is compound

    def test_negative_min_deposit(self, engine):
        with pytest.raises(ValidationError) as exc_info:
            engine.set_min_deposit(AUTHORITY, -1)
        assert exc_info.value.code == ErrorCode.INVALID_PARAMETER

    def test_pause_events(self, engine):
        engine.pause(AUTHORITY)
        engine.pause(AUTHORITY)
        engine.unpause(AUTHORITY)
        assert len(engine.ledger.events.filter(EventName.VAULT_PAUSED)) == 1
        assert len(engine.ledger.events.filter(EventName.VAULT_UNPAUSED)) == 1


class TestSync:
    def test_sync_emits_on_change(self, engine, fund, clock):
        fund("alice", 10_000)
        engine.deposit("alice", 10_000)
        clock.advance(SECONDS_PER_YEAR)
        assert engine.sync_total_assets() == 10_420
        event = engine.ledger.events.last(EventName.ASSETS_SYNCED)
        assert (event["previous"], event["current"]) == (10_000, 10_420)

    def test_sync_empty_vault_is_noop(self, engine):
        assert engine.sync_total_assets() == 0
        assert engine.ledger.events.last(EventName.ASSETS_SYNCED) is None


class TestReentrancy:
    def test_deposit_from_inside_guarded_operation(self, engine, fund, aave):
        fund("alice", 200)
        original = aave.deposit

        def reentering_deposit(holder, amount):
            engine.deposit("alice", 50)
            original(holder, amount)

        aave.deposit = reentering_deposit
        with pytest.raises(ReentrantCallError):
            engine.deposit("alice", 100)
        assert engine.total_shares == 0

    def test_guard_name_shared_with_migration(self):
        assert VAULT_GUARD == "vault"
