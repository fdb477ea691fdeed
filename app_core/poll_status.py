"""Status summary for the poller dashboard."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from app_utils import format_local_datetime, parse_timestamp

from .alert_store import AlertStore
from .extensions import db
from .models import PollHistory
from .poll_lock import is_poll_running
from .poll_state import LAST_POLL_TIME_KEY, PROCESSED_ALERTS_KEY, DatabasePollStateStore
from .poller_settings import get_poller_config


def _recent_history(limit: int) -> List[Dict[str, Any]]:
    rows = db.session.execute(
        select(PollHistory).order_by(PollHistory.timestamp.desc(), PollHistory.id.desc()).limit(limit)
    ).scalars()
    return [row.to_dict() for row in rows]


def build_poll_status(recent_limit: int = 20, tree_limit: int = 10, history_limit: int = 10) -> Dict[str, Any]:
    """Collect what the operator dashboard shows.

    Includes last/next poll times, the configured interval, ledger size,
    recent alerts and the most recent root alerts that have follow-ups.
    """

    config = get_poller_config()
    state = DatabasePollStateStore(db.session)
    store = AlertStore(db.session)

    last_poll = parse_timestamp(state.get(LAST_POLL_TIME_KEY))
    next_eligible = last_poll + timedelta(seconds=config.interval_seconds) if last_poll else None
    ledger = state.get(PROCESSED_ALERTS_KEY, []) or []

    series: List[Dict[str, Any]] = []
    for root in store.recent_roots(tree_limit):
        children = store.children_of(root)
        if not children:
            continue
        entry = root.to_summary()
        entry["children"] = [child.to_summary() for child in children]
        series.append(entry)

    def _iso(value) -> Optional[str]:
        return value.isoformat() if value else None

    return {
        "last_poll": _iso(last_poll),
        "last_poll_display": format_local_datetime(last_poll),
        "next_eligible_poll": _iso(next_eligible),
        "poll_interval": config.poll_interval,
        "poll_interval_label": config.interval_label,
        "poll_interval_seconds": config.interval_seconds,
        "user_agent": config.user_agent,
        "poll_running": is_poll_running(),
        "processed_alerts": len(ledger) if isinstance(ledger, list) else 0,
        "stored_alerts": store.count(),
        "recent_alerts": [alert.to_summary() for alert in store.recent(recent_limit)],
        "alert_series": series,
        "poll_history": _recent_history(history_limit),
    }


__all__ = ["build_poll_status"]
