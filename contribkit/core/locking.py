"""
Concurrent access control for contribkit.

The orchestrator mutates the content store in place without internal locking.
Callers that may run several operations against the same store (a GUI worker
and a command-line session, for instance) serialize them with the file-based
lock provided here.

Usage:
    from contribkit.core.locking import StoreLock

    with StoreLock(store.packages_dir).acquire(timeout=60):
        installer.install(platform)
"""

import logging
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout as LockTimeout

logger = logging.getLogger(__name__)

LOCK_FILE_NAME = ".contribkit.lock"


class StoreLock:
    """
    Cross-process lock guarding one content store root.

    Attributes:
        lock_path: Lock file location inside the store root
    """

    def __init__(self, store_root: Path):
        store_root = Path(store_root)
        store_root.mkdir(parents=True, exist_ok=True)
        self.lock_path = store_root / LOCK_FILE_NAME

    @contextmanager
    def acquire(self, timeout: int = 300):
        """
        Hold the store lock for the duration of the block.

        Args:
            timeout: Maximum wait time in seconds (-1 waits forever)

        Raises:
            LockTimeout: If lock can't be acquired within timeout
        """
        lock = FileLock(self.lock_path, timeout=timeout)

        try:
            with lock:
                logger.debug(f"Acquired store lock: {self.lock_path}")
                yield
                logger.debug(f"Released store lock: {self.lock_path}")
        except LockTimeout as e:
            logger.error(
                f"Could not acquire store lock after {timeout}s. "
                "Another contribkit operation may be running."
            )
            raise LockTimeout(str(self.lock_path)) from e


__all__ = ["StoreLock", "LockTimeout", "LOCK_FILE_NAME"]
