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

"""Human readable transcript of each poll cycle.

Every line is mirrored to the Python logger as it happens and the whole
cycle is appended to the transcript file as one block when the cycle ends.
Nothing parses this file; it backs the operator log viewer.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Union

DEFAULT_POLL_LOG_PATH = os.path.join("logs", "nws-alerts-log.txt")

PathLike = Union[str, os.PathLike]


def get_poll_log_path() -> Path:
    return Path(os.getenv("NWS_POLL_LOG_PATH", DEFAULT_POLL_LOG_PATH))


class PollTranscript:
    def __init__(self, path: Optional[PathLike] = None, logger: Optional[logging.Logger] = None):
        self.path = Path(path) if path is not None else get_poll_log_path()
        self.logger = logger or logging.getLogger(__name__)
        self.lines: List[str] = []

    def _add(self, level: int, message: str) -> None:
        self.lines.append(message)
        self.logger.log(level, message.strip())

    def info(self, message: str) -> None:
        self._add(logging.INFO, message)

    def warning(self, message: str) -> None:
        self._add(logging.WARNING, message)

    def error(self, message: str) -> None:
        self._add(logging.ERROR, message)

    def flush(self) -> None:
        """Append the collected lines to the transcript file."""

        if not self.lines:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write("\n".join(self.lines) + "\n\n")
        except OSError as exc:
            self.logger.error("Failed to write poll transcript to %s: %s", self.path, exc)
        finally:
            self.lines = []


def read_poll_log(path: Optional[PathLike] = None, max_bytes: int = 65536) -> str:
    """Return the tail of the transcript file (empty when it doesn't exist)."""

    log_path = Path(path) if path is not None else get_poll_log_path()
    if not log_path.exists():
        return ""

    size = log_path.stat().st_size
    with log_path.open("rb") as handle:
        if size > max_bytes:
            handle.seek(size - max_bytes)
        data = handle.read()
    return data.decode("utf-8", errors="replace")


def clear_poll_log(path: Optional[PathLike] = None) -> bool:
    """Delete the transcript file; return ``True`` when something was removed."""

    log_path = Path(path) if path is not None else get_poll_log_path()
    if not log_path.exists():
        return False
    log_path.unlink()
    return True


__all__ = [
    "DEFAULT_POLL_LOG_PATH",
    "PollTranscript",
    "clear_poll_log",
    "get_poll_log_path",
    "read_poll_log",
]
