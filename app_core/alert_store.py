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

"""Query layer over the ``weather_alerts`` table."""

import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from app_utils import ROOT_SEQUENCE

from .alerts import AlertRecord
from .models import WeatherAlert


class AlertPersistError(Exception):
    """Raised when the database rejects a new alert row."""


class AlertStore:
    """Lookups and inserts used by the importer.

    The store is a second duplicate guard next to the processed-alert ledger,
    so ``find_by_full_id`` must hit the database every time.
    """

    def __init__(self, session, logger: Optional[logging.Logger] = None):
        self.session = session
        self.logger = logger or logging.getLogger(__name__)

    def find_by_full_id(self, full_id: str) -> Optional[WeatherAlert]:
        return self.session.execute(
            select(WeatherAlert).where(WeatherAlert.nws_id == full_id).limit(1)
        ).scalar_one_or_none()

    def find_root_by_identifier(self, identifier: str) -> Optional[WeatherAlert]:
        return self.session.execute(
            select(WeatherAlert)
            .where(
                WeatherAlert.identifier == identifier,
                WeatherAlert.sequence == ROOT_SEQUENCE,
            )
            .order_by(WeatherAlert.id)
            .limit(1)
        ).scalar_one_or_none()

    def insert(self, record: AlertRecord, parent: Optional[WeatherAlert] = None) -> WeatherAlert:
        """Insert ``record`` with every column set in one transaction."""

        alert = WeatherAlert(**record.to_columns())
        if parent is not None:
            alert.parent_id = parent.id

        try:
            self.session.add(alert)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.logger.error("Failed to store alert %s: %s", record.nws_id, exc)
            self.session.rollback()
            raise AlertPersistError(f"Failed to create alert record: {exc}") from exc

        return alert

    def rollback(self) -> None:
        self.session.rollback()

    def children_of(self, parent: WeatherAlert) -> List[WeatherAlert]:
        return list(
            self.session.execute(
                select(WeatherAlert)
                .where(WeatherAlert.parent_id == parent.id)
                .order_by(WeatherAlert.created_at, WeatherAlert.id)
            ).scalars()
        )

    def recent(self, limit: int = 20) -> List[WeatherAlert]:
        return list(
            self.session.execute(
                select(WeatherAlert)
                .order_by(WeatherAlert.created_at.desc(), WeatherAlert.id.desc())
                .limit(limit)
            ).scalars()
        )

    def recent_roots(self, limit: int = 10) -> List[WeatherAlert]:
        return list(
            self.session.execute(
                select(WeatherAlert)
                .where(WeatherAlert.sequence == ROOT_SEQUENCE)
                .order_by(WeatherAlert.created_at.desc(), WeatherAlert.id.desc())
                .limit(limit)
            ).scalars()
        )

    def count(self) -> int:
        return int(
            self.session.execute(select(func.count(WeatherAlert.id))).scalar() or 0
        )


__all__ = ["AlertPersistError", "AlertStore"]
