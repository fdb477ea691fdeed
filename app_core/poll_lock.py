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

"""Named mutual exclusion for poll cycles.

Both the scheduled tick and the manual "poll now" action take the same named
lock, so two cycles never overlap. Within a process a ``threading.Lock`` per
name is used. Across processes (the web process and the poller process) a
Redis lock with the same name is held when Redis is configured, otherwise an
exclusive ``fcntl`` lock on ``<NWS_POLL_LOCK_DIR>/<name>.lock``.
"""

import fcntl
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from typing import IO, Dict, Iterator, Optional

from redis.exceptions import LockError, RedisError

from .redis_client import get_redis_client, redis_configured

POLL_LOCK_NAME = "nws-alert-poll"

# Redis lock lifetime. The importer refreshes it after every alert it
# processes, so a cycle only loses the lock when a single alert (at most one
# parent fetch with a 30 s timeout plus its inserts) takes longer than this.
DEFAULT_LOCK_TTL_SECONDS = int(os.getenv("NWS_POLL_LOCK_TTL", "900"))

logger = logging.getLogger(__name__)

_local_locks: Dict[str, threading.Lock] = {}
_registry_lock = threading.Lock()


class PollLockError(Exception):
    """Base class for poll lock failures."""


class PollAlreadyRunning(PollLockError):
    def __init__(self, name: str):
        super().__init__(f"Poll '{name}' is already in progress")
        self.name = name


class PollLockUnavailable(PollLockError):
    """The shared lock backend could not be reached."""


class PollLockHandle:
    """What ``poll_lock`` yields; ``refresh`` extends a Redis lock's TTL."""

    def __init__(self, name: str, redis_lock=None):
        self.name = name
        self.redis_lock = redis_lock

    def refresh(self) -> None:
        if self.redis_lock is None:
            return
        try:
            self.redis_lock.reacquire()
        except (LockError, RedisError) as exc:
            logger.warning("Failed to refresh shared poll lock %s: %s", self.name, exc)


def get_lock_dir() -> str:
    return os.getenv("NWS_POLL_LOCK_DIR") or tempfile.gettempdir()


def _local_lock(name: str) -> threading.Lock:
    with _registry_lock:
        lock = _local_locks.get(name)
        if lock is None:
            lock = threading.Lock()
            _local_locks[name] = lock
        return lock


def is_poll_running(name: str = POLL_LOCK_NAME) -> bool:
    """Report whether this process currently holds the named lock."""

    return _local_lock(name).locked()


def _acquire_file_lock(name: str) -> IO:
    lock_path = os.path.join(get_lock_dir(), f"{name}.lock")
    try:
        lock_file = open(lock_path, "a")
    except OSError as exc:
        raise PollLockUnavailable(f"Unable to open poll lock file {lock_path}: {exc}") from exc

    try:
        fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:
        lock_file.close()
        raise PollAlreadyRunning(name)
    return lock_file


def _release_file_lock(lock_file: IO) -> None:
    try:
        fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
    finally:
        lock_file.close()


@contextmanager
def poll_lock(
    name: str = POLL_LOCK_NAME,
    *,
    use_redis: Optional[bool] = None,
    ttl_seconds: int = DEFAULT_LOCK_TTL_SECONDS,
) -> Iterator[PollLockHandle]:
    """Hold the named poll lock or raise ``PollAlreadyRunning`` immediately."""

    local = _local_lock(name)
    if not local.acquire(blocking=False):
        raise PollAlreadyRunning(name)

    shared_lock = None
    shared_acquired = False
    lock_file = None
    try:
        if use_redis is None:
            use_redis = redis_configured()

        if use_redis:
            try:
                client = get_redis_client()
                shared_lock = client.lock(f"lock:{name}", timeout=ttl_seconds)
                shared_acquired = shared_lock.acquire(blocking=False)
            except (RedisError, RuntimeError) as exc:
                raise PollLockUnavailable(f"Unable to acquire shared poll lock: {exc}") from exc
            if not shared_acquired:
                raise PollAlreadyRunning(name)
        else:
            lock_file = _acquire_file_lock(name)

        yield PollLockHandle(name, shared_lock if shared_acquired else None)
    finally:
        if shared_acquired:
            try:
                shared_lock.release()
            except (LockError, RedisError) as exc:
                # Expired locks were already released by their TTL.
                logger.warning("Failed to release shared poll lock %s: %s", name, exc)
        if lock_file is not None:
            _release_file_lock(lock_file)
        local.release()


__all__ = [
    "DEFAULT_LOCK_TTL_SECONDS",
    "POLL_LOCK_NAME",
    "PollAlreadyRunning",
    "PollLockError",
    "PollLockHandle",
    "PollLockUnavailable",
    "get_lock_dir",
    "is_poll_running",
    "poll_lock",
]
