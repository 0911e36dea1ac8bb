"""
adapters/simulated.py - In-memory yield instrument.

Models a pooled lending/savings instrument with an exchange index:

- A position is a number of units; value = units * index / INDEX_SCALE.
- The index grows by simple interest at `rate_bps` per year between
  accrual points, measured on the shared clock.
- Accrued yield is minted into the instrument's own balance so it can
  always pay out what it reports.
- Optional entry/exit costs (bps) simulate slippage on the way in/out.

Failure injection (`fail_deposits`, `fail_withdrawals`, `lock`) lets
tests drive the vault's rollback paths.

Usage:
    source = SimulatedYieldSource("aave-usdc", token, clock, rate_bps=510)
    source.deposit("vault", 10_000)
    clock.advance(SECONDS_PER_YEAR)
    source.value_of("vault")  # 10_510
"""

import copy
from typing import Any, Dict, Set

from adapters.base import YieldSourceAdapter
from core.constants import BPS_DENOMINATOR, INDEX_SCALE
from core.exceptions import AdapterError
from core.logging import get_logger
from core.math import accrue_index, mul_div, mul_div_up
from core.time import Clock
from core.token import BaseAsset

logger = get_logger("switchvault.adapters.simulated")


class SimulatedYieldSource(YieldSourceAdapter):
    """Index-based instrument that accrues yield against a Clock."""

    def __init__(
        self,
        source_id: str,
        token: BaseAsset,
        clock: Clock,
        rate_bps: int = 0,
        name: str = "",
        entry_cost_bps: int = 0,
        exit_cost_bps: int = 0,
    ):
        super().__init__(source_id, name)
        if rate_bps < 0:
            raise ValueError("rate_bps must be non-negative")
        self.token = token
        self.clock = clock
        self.rate_bps = rate_bps
        self.entry_cost_bps = entry_cost_bps
        self.exit_cost_bps = exit_cost_bps
        self.fail_deposits = False
        self.fail_withdrawals = False
        self._index = INDEX_SCALE
        self._last_accrual = clock.timestamp
        self._units: Dict[str, int] = {}
        self._locked: Set[str] = set()

    # -------------------------------------------------------------------------
    # Interface
    # -------------------------------------------------------------------------

    def deposit(self, holder: str, amount: int) -> None:
        if amount <= 0:
            return
        if self.fail_deposits:
            raise AdapterError(
                f"{self.source_id} rejected deposit",
                {"source": self.source_id, "holder": holder, "amount": amount},
            )
        self._accrue()
        self.token.transfer(holder, self.source_id, amount)
        net = amount - mul_div(amount, self.entry_cost_bps, BPS_DENOMINATOR)
        self._units[holder] = self._units.get(holder, 0) + mul_div(net, INDEX_SCALE, self._index)

    def withdraw(self, holder: str, amount: int) -> int:
        if amount <= 0:
            return 0
        if self.fail_withdrawals:
            raise AdapterError(
                f"{self.source_id} rejected withdrawal",
                {"source": self.source_id, "holder": holder, "amount": amount},
            )
        if holder in self._locked:
            raise AdapterError(
                f"{self.source_id} position of {holder} is locked",
                {"source": self.source_id, "holder": holder},
            )
        self._accrue()
        held = self._units.get(holder, 0)
        value = mul_div(held, self._index, INDEX_SCALE)
        if amount > value:
            raise AdapterError(
                f"{self.source_id}: withdrawal {amount} exceeds position value {value}",
                {"source": self.source_id, "holder": holder, "amount": amount, "value": value},
            )
        burned = min(held, mul_div_up(amount, INDEX_SCALE, self._index))
        self._units[holder] = held - burned
        delivered = amount - mul_div(amount, self.exit_cost_bps, BPS_DENOMINATOR)
        self.token.transfer(self.source_id, holder, delivered)
        return delivered

    def value_of(self, holder: str) -> int:
        return mul_div(self._units.get(holder, 0), self._index_now(), INDEX_SCALE)

    def current_yield(self) -> int:
        return self.rate_bps

    def has_pending_withdrawal(self, holder: str) -> bool:
        return holder in self._locked

    # -------------------------------------------------------------------------
    # Simulation controls
    # -------------------------------------------------------------------------

    def set_rate(self, rate_bps: int) -> None:
        """Change the yield rate; interest up to now accrues at the old rate."""
        if rate_bps < 0:
            raise ValueError("rate_bps must be non-negative")
        self._accrue()
        self.rate_bps = rate_bps

    def credit_yield(self, amount: int) -> None:
        """Distribute a lump of yield pro rata to all positions."""
        self._accrue()
        total_units = sum(self._units.values())
        if amount <= 0 or total_units == 0:
            return
        self.token.mint(self.source_id, amount)
        self._index += mul_div(amount, INDEX_SCALE, total_units)

    def lock(self, holder: str) -> None:
        """Put the holder's position behind a withdrawal queue."""
        self._locked.add(holder)

    def unlock(self, holder: str) -> None:
        self._locked.discard(holder)

    @property
    def index(self) -> int:
        return self._index_now()

    # -------------------------------------------------------------------------
    # Journaled
    # -------------------------------------------------------------------------

    def snapshot(self) -> Any:
        return copy.deepcopy({
            "index": self._index,
            "last_accrual": self._last_accrual,
            "units": self._units,
            "locked": self._locked,
            "rate_bps": self.rate_bps,
        })

    def restore(self, snapshot: Any) -> None:
        state = copy.deepcopy(snapshot)
        self._index = state["index"]
        self._last_accrual = state["last_accrual"]
        self._units = state["units"]
        self._locked = state["locked"]
        self.rate_bps = state["rate_bps"]

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _index_now(self) -> int:
        elapsed = self.clock.timestamp - self._last_accrual
        return accrue_index(self._index, self.rate_bps, elapsed)

    def _accrue(self) -> None:
        new_index = self._index_now()
        if new_index != self._index:
            total_units = sum(self._units.values())
            before = mul_div(total_units, self._index, INDEX_SCALE)
            after = mul_div(total_units, new_index, INDEX_SCALE)
            if after > before:
                self.token.mint(self.source_id, after - before)
            logger.debug(
                "Index accrued",
                extra={"context": {"source": self.source_id, "index": new_index}},
            )
            self._index = new_index
        self._last_accrual = self.clock.timestamp
