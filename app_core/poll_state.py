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

"""Persistence for the importer's two pieces of bookkeeping state."""

import copy
import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from .models import PollerState

LAST_POLL_TIME_KEY = "nws_last_poll_time"
PROCESSED_ALERTS_KEY = "nws_processed_alerts"

STATE_KEYS = frozenset({LAST_POLL_TIME_KEY, PROCESSED_ALERTS_KEY})


class PollStateStore:
    """``get``/``set`` access to the last poll time and the ledger."""

    def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    @staticmethod
    def _check_key(key: str) -> None:
        if key not in STATE_KEYS:
            raise KeyError(f"Unknown poller state key: {key}")


class InMemoryPollStateStore(PollStateStore):
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        self._check_key(key)
        return copy.deepcopy(self._values.get(key, default))

    def set(self, key: str, value: Any) -> None:
        self._check_key(key)
        self._values[key] = copy.deepcopy(value)


class DatabasePollStateStore(PollStateStore):
    """State rows in the ``poller_state`` table, one row per key."""

    def __init__(self, session, logger: Optional[logging.Logger] = None):
        self.session = session
        self.logger = logger or logging.getLogger(__name__)

    def get(self, key: str, default: Any = None) -> Any:
        self._check_key(key)
        row = self.session.get(PollerState, key)
        if row is None or row.value is None:
            return default
        return row.value

    def set(self, key: str, value: Any) -> None:
        self._check_key(key)
        try:
            row = self.session.get(PollerState, key)
            if row is None:
                row = PollerState(key=key)
                self.session.add(row)
            row.value = value
            self.session.commit()
        except SQLAlchemyError as exc:
            self.logger.error("Failed to store poller state %s: %s", key, exc)
            self.session.rollback()
            raise


__all__ = [
    "DatabasePollStateStore",
    "InMemoryPollStateStore",
    "LAST_POLL_TIME_KEY",
    "PROCESSED_ALERTS_KEY",
    "PollStateStore",
]
