"""
adapters/base.py - Normalized yield instrument interface.

The vault only ever talks to an instrument through these operations.
Each concrete instrument implements the interface directly; calling
conventions of the underlying protocol are resolved inside the adapter.
"""

from abc import ABC, abstractmethod


class YieldSourceAdapter(ABC):
    """
    Boundary to one external yield-generating instrument.

    Amounts are base-asset units. `holder` is the identity whose position
    is affected (the vault, in practice).
    """

    def __init__(self, source_id: str, name: str = ""):
        if not source_id:
            raise ValueError("source_id is required")
        self.source_id = source_id
        self.name = name or source_id

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.source_id!r})"

    @abstractmethod
    def deposit(self, holder: str, amount: int) -> None:
        """Place `amount` of the holder's base asset into the instrument."""

    @abstractmethod
    def withdraw(self, holder: str, amount: int) -> int:
        """
        Release `amount` of position value back to the holder.

        Returns:
            Base-asset units actually delivered (may be below `amount`
            when the instrument charges an exit cost)
        """

    @abstractmethod
    def value_of(self, holder: str) -> int:
        """Current redeemable value of the holder's position."""

    @abstractmethod
    def current_yield(self) -> int:
        """Current annualized yield rate in basis points."""

    def has_pending_withdrawal(self, holder: str) -> bool:
        """
        Whether the holder's position is locked behind a withdrawal queue.

        Instruments without lock-ups never block.
        """
        return False
