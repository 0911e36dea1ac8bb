"""
vault/registry.py - Whitelist of yield instruments.

The vault may only hold funds in an active, whitelisted instrument.
Removal is soft (active=False) so the history of what was ever approved
stays inspectable; re-adding a removed source reactivates it and moves
it to the back of the insertion order.
"""

import copy
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple

from adapters.base import YieldSourceAdapter
from core.constants import ErrorCode
from core.exceptions import StateError


@dataclass
class SourceInfo:
    """Whitelist entry."""
    source_id: str
    name: str
    active: bool
    added_at: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class YieldSourceRegistry:
    """Insertion-ordered whitelist of yield instruments."""

    def __init__(self):
        self._info: Dict[str, SourceInfo] = {}
        self._adapters: Dict[str, YieldSourceAdapter] = {}

    def __contains__(self, source_id: str) -> bool:
        return self.is_whitelisted(source_id)

    def is_whitelisted(self, source_id: Optional[str]) -> bool:
        info = self._info.get(source_id) if source_id else None
        return info is not None and info.active

    def add(self, adapter: YieldSourceAdapter, added_at: int) -> SourceInfo:
        """
        Whitelist an instrument.

        Raises:
            StateError: SOURCE_ALREADY_WHITELISTED if it is already active
        """
        source_id = adapter.source_id
        if self.is_whitelisted(source_id):
            raise StateError(
                f"Source {source_id} is already whitelisted",
                ErrorCode.SOURCE_ALREADY_WHITELISTED,
                {"source": source_id},
            )
        self._info.pop(source_id, None)
        info = SourceInfo(source_id=source_id, name=adapter.name, active=True, added_at=added_at)
        self._info[source_id] = info
        self._adapters[source_id] = adapter
        return info

    def remove(self, source_id: str) -> SourceInfo:
        """Deactivate a whitelisted instrument."""
        info = self.info(source_id)
        info.active = False
        return info

    def info(self, source_id: str) -> SourceInfo:
        """Whitelist entry for an active source."""
        if not self.is_whitelisted(source_id):
            raise StateError(
                f"Source {source_id} is not whitelisted",
                ErrorCode.SOURCE_NOT_WHITELISTED,
                {"source": source_id},
            )
        return self._info[source_id]

    def get(self, source_id: str) -> YieldSourceAdapter:
        """Adapter for an active source."""
        self.info(source_id)
        return self._adapters[source_id]

    def active_sources(self) -> List[SourceInfo]:
        """Active entries in insertion order."""
        return [info for info in self._info.values() if info.active]

    def all_sources(self) -> List[SourceInfo]:
        return list(self._info.values())

    def best_yield_source(self) -> Optional[Tuple[str, int]]:
        """
        Active source with the highest current yield.

        Ties go to the earliest-added source. Returns (source_id, rate_bps)
        or None when the whitelist is empty.
        """
        best: Optional[Tuple[str, int]] = None
        for info in self.active_sources():
            rate = self._adapters[info.source_id].current_yield()
            if best is None or rate > best[1]:
                best = (info.source_id, rate)
        return best

    def snapshot(self) -> Any:
        return (copy.deepcopy(self._info), dict(self._adapters))

    def restore(self, snapshot: Any) -> None:
        info, adapters = snapshot
        self._info = copy.deepcopy(info)
        self._adapters = dict(adapters)
