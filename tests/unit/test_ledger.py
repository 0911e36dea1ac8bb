"""
Unit tests for core/ledger.py.

Tests:
- Commit publishes buffered events
- Any exception restores every participant and drops events
- Nested units join the outer unit
- Reentrancy guard
"""

import pytest

from core.constants import ErrorCode, EventName
from core.exceptions import ReentrantCallError, StateError
from core.ledger import Ledger
from core.token import BaseAsset


class Counter:
    def __init__(self):
        self.value = 0

    def snapshot(self):
        return self.value

    def restore(self, snapshot):
        self.value = snapshot


@pytest.fixture
def counter(ledger):
    c = Counter()
    ledger.register("counter", c)
    return c


class TestRegistration:
    def test_rejects_non_journaled(self, ledger):
        with pytest.raises(TypeError):
            ledger.register("bad", object())

    def test_rejects_duplicate_region(self, ledger, counter):
        with pytest.raises(ValueError):
            ledger.register("counter", Counter())

    def test_same_object_twice_is_allowed(self, ledger, counter):
        ledger.register("counter", counter)
        assert ledger.participants == ["counter"]

    def test_replace_takes_over_region(self, ledger, counter):
        fresh = Counter()
        with ledger.atomic("swap"):
            ledger.register("counter", fresh, replace=True)
        with pytest.raises(RuntimeError):
            with ledger.atomic("bump"):
                fresh.value = 4
                counter.value = 4
                raise RuntimeError("boom")
        assert fresh.value == 0
        assert counter.value == 4

    def test_replace_rolled_back_reinstates_original(self, ledger, counter):
        counter.value = 3
        fresh = Counter()
        with pytest.raises(RuntimeError):
            with ledger.atomic("swap"):
                counter.value = 7
                ledger.register("counter", fresh, replace=True)
                raise RuntimeError("boom")
        assert counter.value == 3
        with pytest.raises(RuntimeError):
            with ledger.atomic("bump"):
                counter.value = 8
                raise RuntimeError("boom")
        assert counter.value == 3

    def test_registered_inside_unit_is_rolled_back(self, ledger):
        late = Counter()
        late.value = 5
        with pytest.raises(RuntimeError):
            with ledger.atomic("late"):
                ledger.register("late", late)
                late.value = 99
                raise RuntimeError("boom")
        assert late.value == 5


class TestAtomic:
    def test_commit_keeps_changes_and_events(self, ledger, counter):
        with ledger.atomic("inc"):
            counter.value += 1
            ledger.emit(EventName.DEPOSIT, user="alice", assets=1, shares=1)
        assert counter.value == 1
        assert len(ledger.events) == 1
        event = ledger.events.last()
        assert event.name == EventName.DEPOSIT
        assert event["user"] == "alice"
        assert event.block_number == ledger.clock.block_number

    def test_failure_restores_all_regions(self, ledger, counter):
        token = BaseAsset()
        ledger.register("token", token)
        token.mint("alice", 100)

        with pytest.raises(StateError):
            with ledger.atomic("fail"):
                counter.value = 42
                token.transfer("alice", "bob", 60)
                ledger.emit(EventName.DEPOSIT, user="alice", assets=60, shares=60)
                raise StateError("nope", ErrorCode.VAULT_PAUSED)

        assert counter.value == 0
        assert token.balance_of("alice") == 100
        assert token.balance_of("bob") == 0
        assert len(ledger.events) == 0
        assert not ledger.in_unit

    def test_nested_unit_joins_outer(self, ledger, counter):
        with pytest.raises(RuntimeError):
            with ledger.atomic("outer"):
                with ledger.atomic("inner"):
                    counter.value = 7
                    ledger.emit(EventName.VAULT_PAUSED, by="admin")
                assert ledger.in_unit
                raise RuntimeError("outer fails")
        assert counter.value == 0
        assert len(ledger.events) == 0

    def test_inner_failure_caught_by_outer_still_commits_outer(self, ledger, counter):
        with ledger.atomic("outer"):
            counter.value = 1
            try:
                with ledger.atomic("inner"):
                    raise ValueError("inner")
            except ValueError:
                pass
        assert counter.value == 1

    def test_emit_outside_unit(self, ledger):
        with pytest.raises(RuntimeError):
            ledger.emit(EventName.DEPOSIT)


class TestGuard:
    def test_reentry_rejected(self, ledger):
        with ledger.guard("vault"):
            with pytest.raises(ReentrantCallError) as exc_info:
                with ledger.guard("vault"):
                    pass
        assert exc_info.value.code == ErrorCode.REENTRANT_CALL

    def test_guard_released_after_exit(self, ledger):
        with ledger.guard("vault"):
            pass
        with ledger.guard("vault"):
            pass

    def test_different_guards_nest(self, ledger):
        with ledger.guard("governance"):
            with ledger.guard("vault"):
                pass

    def test_guard_released_after_exception(self, ledger):
        with pytest.raises(RuntimeError):
            with ledger.guard("vault"):
                raise RuntimeError("boom")
        with ledger.guard("vault"):
            pass
