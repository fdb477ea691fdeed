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

"""NWS alert importer: one gated poll cycle with parent/child resolution.

A cycle runs: cadence gate, fetch active alerts, then for every alert in
feed order parse the id, drop duplicates (ledger first, database second),
resolve the root alert for follow-ups (backfilling it from the API when it
was never stored) and insert the record. The ledger is persisted and the
last poll time advanced once at the end.

Policy decisions:

* A failed fetch does not advance the last poll time, so the next tick
  retries straight away.
* A follow-up whose root cannot be found or created is dismissed and is not
  added to the ledger; a later cycle will look for its root again.
* When a root is backfilled but the follow-up insert then fails, the root
  stays stored and ledgered. Only the follow-up is reported as an error.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError

from app_core.alert_store import AlertPersistError, AlertStore
from app_core.alerts import build_alert_record
from app_core.extensions import db
from app_core.ledger import ProcessedAlertLedger
from app_core.models import PollHistory, SystemLog, WeatherAlert
from app_core.poll_lock import (
    POLL_LOCK_NAME,
    PollAlreadyRunning,
    PollLockHandle,
    PollLockUnavailable,
    poll_lock,
)
from app_core.poll_log import PollTranscript
from app_core.poll_state import (
    LAST_POLL_TIME_KEY,
    DatabasePollStateStore,
    PollStateStore,
)
from app_core.poller_settings import PollerConfig, get_poller_config
from app_utils import (
    AlertIdentifier,
    derive_root_alert_id,
    format_local_datetime,
    parse_alert_id,
    parse_timestamp,
    utc_now,
)

from .nws_client import AlertSourceError, NWSAlertClient

STATUS_SKIPPED = "skipped"
STATUS_SUCCESS = "success"
STATUS_ERROR = "error"

OUTCOME_UPLOADED = "uploaded"
OUTCOME_SKIPPED = "skipped"
OUTCOME_DISMISSED = "dismissed"
OUTCOME_ERROR = "error"


@dataclass
class PollCounts:
    total: int = 0
    uploaded: int = 0
    skipped: int = 0
    dismissed: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "uploaded": self.uploaded,
            "skipped": self.skipped,
            "dismissed": self.dismissed,
            "errors": list(self.errors),
        }


@dataclass
class PollResult:
    status: str
    message: Optional[str] = None
    polled_at: Optional[datetime] = None
    results: Optional[PollCounts] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"status": self.status}
        if self.message:
            payload["message"] = self.message
        if self.polled_at is not None:
            payload["polledAt"] = self.polled_at.isoformat()
        if self.results is not None:
            payload["results"] = self.results.to_dict()
        return payload


class AlertImporter:
    """Runs poll cycles against explicit collaborators.

    ``config`` is a settings snapshot and ``state_store`` holds the last poll
    time and the processed-alert ledger; neither is read from globals.
    """

    def __init__(
        self,
        client: NWSAlertClient,
        store: AlertStore,
        state_store: PollStateStore,
        config: PollerConfig,
        *,
        clock: Callable[[], datetime] = utc_now,
        transcript_factory: Callable[..., PollTranscript] = PollTranscript,
        lock_name: str = POLL_LOCK_NAME,
        use_redis_lock: Optional[bool] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.client = client
        self.store = store
        self.state_store = state_store
        self.config = config
        self.clock = clock
        self.transcript_factory = transcript_factory
        self.lock_name = lock_name
        self.use_redis_lock = use_redis_lock
        self.logger = logger or logging.getLogger(__name__)
        self._lock_handle: Optional[PollLockHandle] = None

    # ---------- Entry point ----------
    def poll(self) -> PollResult:
        """Run one cycle unless another one holds the poll lock."""

        try:
            with poll_lock(self.lock_name, use_redis=self.use_redis_lock) as held:
                self._lock_handle = held
                transcript = self.transcript_factory(logger=self.logger)
                try:
                    return self._run_cycle(transcript)
                finally:
                    transcript.flush()
                    self._lock_handle = None
        except PollAlreadyRunning:
            self.logger.info("Poll skipped - another poll is already in progress")
            return PollResult(STATUS_SKIPPED, message="Poll already in progress")
        except PollLockUnavailable as exc:
            self.logger.error("Poll aborted: %s", exc)
            return PollResult(STATUS_ERROR, message=str(exc))

    # ---------- Cadence gate ----------
    def check_cadence(self, now: datetime, log: PollTranscript) -> Optional[PollResult]:
        """Return a ``skipped`` result when the configured interval hasn't passed."""

        interval = self.config.interval_seconds
        last_poll = parse_timestamp(self.state_store.get(LAST_POLL_TIME_KEY))

        log.info(f"Last poll: {format_local_datetime(last_poll) if last_poll else 'Never'}")
        if last_poll is None:
            log.info(f"Required interval: {interval} seconds")
            return None

        elapsed = (now - last_poll).total_seconds()
        log.info(f"Time since last poll: {int(elapsed)} seconds")
        log.info(f"Required interval: {interval} seconds")

        if elapsed < interval:
            log.info("Polling skipped - too soon since last poll")
            return PollResult(
                STATUS_SKIPPED,
                message=f"Polling skipped. Last polled at {format_local_datetime(last_poll, include_utc=False)}",
            )
        return None

    # ---------- Cycle ----------
    def _run_cycle(self, log: PollTranscript) -> PollResult:
        now = self.clock()
        log.info("=== NWS Poll Task Started ===")
        log.info(f"Timestamp: {format_local_datetime(now)}")

        skipped = self.check_cadence(now, log)
        if skipped is not None:
            return skipped

        log.info(f"Fetching alerts from: {self.client.active_url}")
        try:
            features = self.client.fetch_active()
        except AlertSourceError as exc:
            message = str(exc) or exc.__class__.__name__
            log.error(f"Error: {message}")
            return PollResult(STATUS_ERROR, message=message)

        log.info(f"Fetched {len(features)} alerts from NWS")

        counts = PollCounts(total=len(features))
        ledger = ProcessedAlertLedger.load(self.state_store)

        log.info("--- Processing Alerts ---")
        for index, feature in enumerate(features, start=1):
            self._process_feature(feature, index, counts, ledger, log)
            if self._lock_handle is not None:
                self._lock_handle.refresh()

        try:
            ledger.persist(self.state_store)
            self.state_store.set(LAST_POLL_TIME_KEY, now.isoformat())
        except SQLAlchemyError as exc:
            self.logger.exception("Failed to save poll state")
            log.error(f"Error: failed to save poll state: {exc}")
            return PollResult(STATUS_ERROR, message=f"Failed to save poll state: {exc}", results=counts)

        log.info(f"Set last poll time to: {format_local_datetime(now)}")

        log.info("=== Poll Complete ===")
        log.info(f"Total alerts: {counts.total}")
        log.info(f"Uploaded: {counts.uploaded}")
        log.info(f"Skipped: {counts.skipped}")
        log.info(f"Dismissed: {counts.dismissed}")
        log.info(f"Errors: {len(counts.errors)}")

        return PollResult(STATUS_SUCCESS, polled_at=now, results=counts)

    def _process_feature(
        self,
        feature: Any,
        index: int,
        counts: PollCounts,
        ledger: ProcessedAlertLedger,
        log: PollTranscript,
    ) -> str:
        properties = feature.get("properties") if isinstance(feature, Mapping) else None
        if not isinstance(properties, Mapping):
            log.error(f"[{index}/{counts.total}] Alert has no properties")
            counts.errors.append(f"alert #{index}: Missing alert properties")
            return OUTCOME_ERROR

        raw_id = properties.get("id")
        log.info(f"[{index}/{counts.total}] Processing alert: {raw_id}")
        log.info(f"  Event: {properties.get('event', '')}")
        log.info(f"  Area: {properties.get('areaDesc', '')}")

        try:
            outcome = self._process_alert(feature, raw_id, counts, ledger, log)
        except SQLAlchemyError as exc:
            self.logger.exception("Database error while processing %s", raw_id)
            self.store.rollback()
            log.error(f"  Error: {exc}")
            counts.errors.append(f"{raw_id}: {exc}")
            return OUTCOME_ERROR

        if outcome == OUTCOME_UPLOADED:
            counts.uploaded += 1
        elif outcome == OUTCOME_SKIPPED:
            counts.skipped += 1
        elif outcome == OUTCOME_DISMISSED:
            counts.dismissed += 1
        return outcome

    def _process_alert(
        self,
        feature: Mapping[str, Any],
        raw_id: Any,
        counts: PollCounts,
        ledger: ProcessedAlertLedger,
        log: PollTranscript,
    ) -> str:
        parsed = parse_alert_id(raw_id)
        if parsed is None:
            log.error("  Could not parse NWS ID format")
            counts.errors.append(f"{raw_id}: Invalid ID format")
            return OUTCOME_ERROR

        log.info(f"  Identifier: {parsed.identifier}")
        log.info(f"  Sequence: {parsed.sequence}")
        log.info(f"  Version: {parsed.version}")

        if ledger.contains(parsed.full_id):
            log.info("  Skipped - already processed")
            return OUTCOME_SKIPPED

        existing = self.store.find_by_full_id(parsed.full_id)
        if existing is not None:
            log.info(f"  Skipped - already stored (record {existing.id})")
            ledger.add(parsed.full_id)
            return OUTCOME_SKIPPED

        parent: Optional[WeatherAlert] = None
        if not parsed.is_root:
            log.info(f"  Follow-up (sequence {parsed.sequence}), looking for parent...")
            parent = self.resolve_parent(parsed, ledger, log)
            if parent is None:
                log.warning("  Dismissed - parent (sequence 001) could not be found or created")
                return OUTCOME_DISMISSED

        record = build_alert_record(feature, parsed)
        log.info("  Creating alert record...")
        try:
            alert = self.store.insert(record, parent)
        except AlertPersistError as exc:
            log.error(f"  Failed to create record: {exc}")
            counts.errors.append(f"{parsed.full_id}: {exc}")
            return OUTCOME_ERROR

        log.info(f"  Created record {alert.id}")
        if parent is not None:
            log.info(f"  Linked to parent record {parent.id}")
        ledger.add(parsed.full_id)
        return OUTCOME_UPLOADED

    # ---------- Parent resolution ----------
    def resolve_parent(
        self,
        parsed: AlertIdentifier,
        ledger: ProcessedAlertLedger,
        log: PollTranscript,
    ) -> Optional[WeatherAlert]:
        """Find the stored root of ``parsed``'s series or backfill it from the API."""

        root = self.store.find_root_by_identifier(parsed.identifier)
        if root is not None:
            log.info(f"  Found parent record {root.id}")
            return root

        root_id = derive_root_alert_id(parsed)
        log.warning("  Parent (sequence 001) not found, attempting to fetch...")
        log.info(f"  Fetching parent: {root_id}")

        payload = self.client.fetch_by_id(root_id)
        if payload is None:
            log.error("  Could not fetch parent from API")
            return None

        record = build_alert_record(payload)
        if record is None:
            log.error("  Parent payload has an unrecognised alert id")
            return None

        existing = self.store.find_by_full_id(record.nws_id)
        if existing is not None:
            log.info(f"  Parent already stored as record {existing.id}")
            ledger.add(record.nws_id)
            return existing

        try:
            root = self.store.insert(record, None)
        except AlertPersistError as exc:
            log.error(f"  Failed to create parent record: {exc}")
            return None

        log.info(f"  Created parent record {root.id}")
        ledger.add(record.nws_id)
        return root

    def close(self) -> None:
        self.client.close()


# =======================================================================================
# Application entry point (scheduler tick and manual "poll now" both land here)
# =======================================================================================

def build_importer(logger: Optional[logging.Logger] = None) -> AlertImporter:
    """Wire an importer to the application database; needs an app context."""

    logger = logger or logging.getLogger(__name__)
    config = get_poller_config()
    return AlertImporter(
        client=NWSAlertClient(config.user_agent, logger=logger),
        store=AlertStore(db.session, logger=logger),
        state_store=DatabasePollStateStore(db.session, logger=logger),
        config=config,
        logger=logger,
    )


def record_poll_history(result: PollResult, execution_time_ms: int, logger: Optional[logging.Logger] = None) -> None:
    """Store a ``PollHistory`` row and a system log entry for a finished cycle."""

    logger = logger or logging.getLogger(__name__)
    if result.status == STATUS_SKIPPED:
        return

    counts = result.results or PollCounts()
    try:
        db.session.add(
            PollHistory(
                status=result.status.upper(),
                alerts_fetched=counts.total,
                alerts_uploaded=counts.uploaded,
                alerts_skipped=counts.skipped,
                alerts_dismissed=counts.dismissed,
                error_count=len(counts.errors),
                execution_time_ms=execution_time_ms,
                error_message=result.message,
            )
        )
        if result.status == STATUS_SUCCESS:
            entry = SystemLog(
                level="INFO",
                message=f"NWS polling successful: {counts.uploaded} new alerts",
                module="nws_poller",
                details=result.to_dict(),
            )
        else:
            entry = SystemLog(
                level="ERROR",
                message=f"NWS polling failed: {result.message}",
                module="nws_poller",
                details=result.to_dict(),
            )
        db.session.add(entry)
        db.session.commit()
    except SQLAlchemyError as exc:
        logger.error("Failed to record poll history: %s", exc)
        db.session.rollback()


def poll_alerts() -> Dict[str, Any]:
    """Run one gated poll cycle and return its result as a dictionary."""

    logger = logging.getLogger(__name__)
    importer = build_importer(logger)
    start = time.time()
    try:
        result = importer.poll()
    finally:
        importer.close()

    record_poll_history(result, int((time.time() - start) * 1000), logger)
    return result.to_dict()


__all__ = [
    "AlertImporter",
    "PollCounts",
    "PollResult",
    "STATUS_ERROR",
    "STATUS_SKIPPED",
    "STATUS_SUCCESS",
    "build_importer",
    "poll_alerts",
    "record_poll_history",
]
