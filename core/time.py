# PATH: core/time.py
"""
Time utilities for SWITCHVAULT.

The vault never reads wall-clock time for protocol decisions. Voting
windows are measured in block heights and timelocks in timestamps, both
supplied by a Clock that only moves forward.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

from core.constants import DEFAULT_GENESIS_TIMESTAMP, DEFAULT_SECONDS_PER_BLOCK


class Clock(Protocol):
    """Monotonic source of block height and timestamp."""

    @property
    def block_number(self) -> int: ...

    @property
    def timestamp(self) -> int: ...


@dataclass
class BlockPin:
    """Block number and timestamp captured at one instant."""

    block_number: int
    timestamp: int


class ManualClock:
    """
    Clock advanced explicitly by the caller.

    Used by the simulation runner and tests. Each mined block moves the
    timestamp forward by seconds_per_block.

    Usage:
        clock = ManualClock()
        clock.mine(10)               # 10 blocks, 120 seconds
        clock.advance(86_400)        # one day, blocks follow
    """

    def __init__(
        self,
        block_number: int = 1,
        timestamp: int = DEFAULT_GENESIS_TIMESTAMP,
        seconds_per_block: int = DEFAULT_SECONDS_PER_BLOCK,
    ):
        if seconds_per_block <= 0:
            raise ValueError("seconds_per_block must be positive")
        self._block_number = block_number
        self._timestamp = timestamp
        self.seconds_per_block = seconds_per_block

    @property
    def block_number(self) -> int:
        return self._block_number

    @property
    def timestamp(self) -> int:
        return self._timestamp

    def pin(self) -> BlockPin:
        """Capture the current block and timestamp."""
        return BlockPin(block_number=self._block_number, timestamp=self._timestamp)

    def mine(self, blocks: int = 1) -> BlockPin:
        """Advance by whole blocks."""
        if blocks < 0:
            raise ValueError("Cannot mine a negative number of blocks")
        self._block_number += blocks
        self._timestamp += blocks * self.seconds_per_block
        return self.pin()

    def advance(self, seconds: int) -> BlockPin:
        """
        Advance by wall seconds; the block height follows at
        seconds_per_block (at least one block for any positive advance).
        """
        if seconds < 0:
            raise ValueError("Clock cannot move backwards")
        if seconds == 0:
            return self.pin()
        self._timestamp += seconds
        self._block_number += max(1, seconds // self.seconds_per_block)
        return self.pin()


def now_iso() -> str:
    """Get current UTC datetime as ISO string (for reports only)."""
    return datetime.now(timezone.utc).isoformat()


def timestamp_to_iso(timestamp: int) -> str:
    """Render a clock timestamp as ISO 8601 UTC."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()
