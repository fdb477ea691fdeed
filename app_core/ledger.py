"""
EAS Station - Emergency Alert System
Copyright (c) 2025 Timothy Kramer (KR8MER)

This file is part of EAS Station.

EAS Station is dual-licensed software:
- GNU Affero General Public License v3 (AGPL-3.0) for open-source use
- Commercial License for proprietary use

You should have received a copy of both licenses with this software.
For more information, see LICENSE and LICENSE-COMMERCIAL files.

IMPORTANT: This software cannot be rebranded or have attribution removed.
See NOTICE file for complete terms.

Repository: https://github.com/KR8MER/eas-station
"""

from __future__ import annotations

"""Bounded ledger of alert ids the importer has already handled."""

import logging
from typing import Iterable, List, Optional, Set

from .poll_state import PROCESSED_ALERTS_KEY, PollStateStore

MAX_LEDGER_ENTRIES = 10000

logger = logging.getLogger(__name__)


class ProcessedAlertLedger:
    """Append-only working copy of the processed-alert list.

    Load once at the start of a poll cycle and persist once at the end.
    Ids added during the cycle are visible to ``contains`` straight away.
    Only the newest ``max_entries`` ids survive a persist.
    """

    def __init__(self, entries: Optional[Iterable[str]] = None, max_entries: int = MAX_LEDGER_ENTRIES):
        self.max_entries = max_entries
        self._entries: List[str] = []
        self._index: Set[str] = set()
        for entry in entries or []:
            self.add(entry)

    @classmethod
    def load(cls, state_store: PollStateStore, max_entries: int = MAX_LEDGER_ENTRIES) -> "ProcessedAlertLedger":
        stored = state_store.get(PROCESSED_ALERTS_KEY, [])
        if not isinstance(stored, list):
            logger.warning("Ignoring malformed processed alert ledger (%s)", type(stored).__name__)
            stored = []
        return cls((str(item) for item in stored if item), max_entries=max_entries)

    def contains(self, full_id: str) -> bool:
        return full_id in self._index

    __contains__ = contains

    def add(self, full_id: str) -> None:
        if full_id in self._index:
            return
        self._entries.append(full_id)
        self._index.add(full_id)

    def entries(self) -> List[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def evict(self) -> int:
        """Drop the oldest ids beyond ``max_entries``; return how many went."""

        overflow = len(self._entries) - self.max_entries
        if overflow <= 0:
            return 0
        dropped = self._entries[:overflow]
        self._entries = self._entries[overflow:]
        self._index.difference_update(dropped)
        return overflow

    def persist(self, state_store: PollStateStore) -> List[str]:
        evicted = self.evict()
        if evicted:
            logger.debug("Evicted %d oldest processed alert ids", evicted)
        entries = self.entries()
        state_store.set(PROCESSED_ALERTS_KEY, entries)
        return entries


__all__ = ["MAX_LEDGER_ENTRIES", "ProcessedAlertLedger"]
