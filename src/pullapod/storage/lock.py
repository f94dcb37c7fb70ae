"""Advisory lock file guarding writes to the favorites file.

The lock is a sibling file ``<target>.lock`` created with exclusive-create
semantics. It holds ``{"pid": ..., "time": ...}`` (time in milliseconds) for
debugging. A lock older than the stale threshold is assumed to belong to a
crashed process and is removed.
"""

import json
import logging
import os
import random
import time
from collections.abc import Callable
from pathlib import Path

from pullapod.utils.datetime import now_millis
from pullapod.utils.errors import FileWriteError, LockTimeoutError

logger = logging.getLogger(__name__)

LOCK_TIMEOUT_SECONDS = 5.0
LOCK_STALE_SECONDS = 30.0
RETRY_JITTER_SECONDS = (0.05, 0.1)


class FileLock:
    """Cross-process mutual exclusion through a lock file.

    Usage:
        with FileLock(path):
            ...  # exclusive section

    Args:
        target: File being protected; the lock lives at ``<target>.lock``
        timeout: Seconds to keep retrying before giving up
        stale_after: Age in seconds after which a lock is considered abandoned
        sleep: Sleep function between attempts (injectable for tests)
        clock: Monotonic clock used for the timeout
    """

    def __init__(
        self,
        target: Path,
        timeout: float = LOCK_TIMEOUT_SECONDS,
        stale_after: float = LOCK_STALE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.target = Path(target)
        self.lock_path = self.target.with_name(self.target.name + ".lock")
        self.timeout = timeout
        self.stale_after = stale_after
        self._sleep = sleep
        self._clock = clock
        self._held = False

    @property
    def is_held(self) -> bool:
        return self._held

    def acquire(self) -> None:
        """Acquire the lock, retrying with jitter until the timeout.

        Raises:
            LockTimeoutError: If the lock is still held by someone else
            FileWriteError: If the lock file cannot be created
        """
        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
        except OSError as e:
            raise FileWriteError(
                f"Failed to create favorites directory: {e}",
                path=self.target,
            ) from e
        deadline = self._clock() + self.timeout

        while self._clock() < deadline:
            try:
                fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o600)
            except FileExistsError:
                if self._remove_if_stale():
                    continue
                self._sleep(random.uniform(*RETRY_JITTER_SECONDS))
                continue
            except OSError as e:
                raise FileWriteError(
                    f"Failed to create lock file {self.lock_path}: {e}",
                    path=self.target,
                ) from e

            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump({"pid": os.getpid(), "time": now_millis()}, f)
            self._held = True
            logger.debug(f"Acquired lock {self.lock_path}")
            return

        raise LockTimeoutError(
            "Unable to acquire lock on favorites file. "
            "Another process may be modifying it. Please try again.",
            path=self.target,
            suggestion=f"If no other pullapod process is running, delete {self.lock_path}",
        )

    def _remove_if_stale(self) -> bool:
        """Delete an abandoned lock. Returns True when the caller should retry now."""
        try:
            age = time.time() - self.lock_path.stat().st_mtime
        except FileNotFoundError:
            # Released between our open and stat
            return True

        if age <= self.stale_after:
            return False

        logger.warning(f"Removing stale lock file {self.lock_path} ({age:.0f}s old)")
        try:
            self.lock_path.unlink()
        except FileNotFoundError:
            pass
        return True

    def release(self) -> None:
        """Release the lock. Failures are logged, never raised."""
        if not self._held:
            return
        self._held = False
        try:
            self.lock_path.unlink()
            logger.debug(f"Released lock {self.lock_path}")
        except OSError as e:
            logger.warning(f"Failed to release lock file {self.lock_path}: {e}")

    def __enter__(self) -> "FileLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()
