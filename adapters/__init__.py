"""
adapters/ - Yield instrument adapters.

Adapters:
- base: YieldSourceAdapter interface the vault depends on
- simulated: in-memory index-accruing instrument
"""

from adapters.base import YieldSourceAdapter
from adapters.simulated import SimulatedYieldSource

__all__ = [
    "YieldSourceAdapter",
    "SimulatedYieldSource",
]
