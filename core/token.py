# PATH: core/token.py
"""
Base-asset balance book.

Holds the fungible asset the vault accepts (e.g. USDC in 6-decimal base
units). Depositors, the vault, and each yield instrument are holders.
"""

import copy
from typing import Any, Dict

from core.constants import ErrorCode
from core.exceptions import ValidationError


class BaseAsset:
    """In-process ledger of base-asset balances."""

    def __init__(self, symbol: str = "USDC", decimals: int = 6):
        self.symbol = symbol
        self.decimals = decimals
        self._balances: Dict[str, int] = {}
        self._total_supply = 0

    @property
    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def mint(self, to: str, amount: int) -> None:
        """Credit new units to `to` (faucet for simulations and tests)."""
        if not to:
            raise ValidationError("Mint recipient is empty", ErrorCode.ZERO_ADDRESS)
        if amount <= 0:
            raise ValidationError("Mint amount must be positive", ErrorCode.ZERO_AMOUNT)
        self._balances[to] = self.balance_of(to) + amount
        self._total_supply += amount

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """
        Move `amount` from sender to recipient.

        Raises:
            ValidationError: Empty recipient, negative amount, or short balance
        """
        if not recipient:
            raise ValidationError("Transfer recipient is empty", ErrorCode.ZERO_ADDRESS)
        if amount < 0:
            raise ValidationError("Transfer amount is negative", ErrorCode.ZERO_AMOUNT)
        if amount == 0:
            return
        balance = self.balance_of(sender)
        if balance < amount:
            raise ValidationError(
                f"{sender} holds {balance} {self.symbol}, needs {amount}",
                ErrorCode.INSUFFICIENT_BALANCE,
                {"holder": sender, "balance": balance, "required": amount},
            )
        self._balances[sender] = balance - amount
        self._balances[recipient] = self.balance_of(recipient) + amount

    def snapshot(self) -> Any:
        return (copy.copy(self._balances), self._total_supply)

    def restore(self, snapshot: Any) -> None:
        balances, total_supply = snapshot
        self._balances = copy.copy(balances)
        self._total_supply = total_supply
