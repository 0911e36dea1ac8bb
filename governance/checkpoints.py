"""
governance/checkpoints.py - Historical voting power.

Each account has an append-only list of (block, votes) entries, one per
block at which its share balance changed. A second change within the
same block overwrites that block's entry. Historical lookups binary
search for the last entry at or before the queried block.
"""

import copy
from bisect import bisect_right
from dataclasses import dataclass
from typing import Any, Dict, List


@dataclass(frozen=True)
class Checkpoint:
    block_number: int
    votes: int


class VoteCheckpoints:
    """Per-account checkpoint log."""

    def __init__(self):
        self._checkpoints: Dict[str, List[Checkpoint]] = {}

    def write(self, account: str, votes: int, block_number: int) -> None:
        """Record `votes` as the account's power from `block_number` on."""
        if votes < 0:
            raise ValueError("votes must be non-negative")
        entries = self._checkpoints.setdefault(account, [])
        if entries and entries[-1].block_number > block_number:
            raise ValueError(
                f"Checkpoint block {block_number} precedes last entry "
                f"{entries[-1].block_number} for {account}"
            )
        if entries and entries[-1].block_number == block_number:
            entries[-1] = Checkpoint(block_number, votes)
        else:
            entries.append(Checkpoint(block_number, votes))

    def get_current_votes(self, account: str) -> int:
        entries = self._checkpoints.get(account)
        return entries[-1].votes if entries else 0

    def get_prior_votes(self, account: str, block_number: int) -> int:
        """Votes held at `block_number` (0 before the first checkpoint)."""
        entries = self._checkpoints.get(account)
        if not entries:
            return 0
        position = bisect_right(entries, block_number, key=lambda entry: entry.block_number)
        if position == 0:
            return 0
        return entries[position - 1].votes

    def num_checkpoints(self, account: str) -> int:
        return len(self._checkpoints.get(account, []))

    def checkpoints_of(self, account: str) -> List[Checkpoint]:
        return list(self._checkpoints.get(account, []))

    def snapshot(self) -> Any:
        return copy.deepcopy(self._checkpoints)

    def restore(self, snapshot: Any) -> None:
        self._checkpoints = copy.deepcopy(snapshot)
