"""Single-writer run lock.

The catalog and the ledger are owned by exactly one process at a time.
RunLock takes an exclusive, non-blocking flock on a lock file next to the
catalog. The kernel drops the lock when the holder exits, so a killed run
never blocks the next one. The file stays in place and records the pid of
the last holder for diagnosis.
"""

import fcntl
import os
from pathlib import Path
from typing import Optional, Union
import structlog

from paperwatch.utils.exceptions import LockError

logger = structlog.get_logger()


class RunLock:
    """Exclusive lock held for the duration of a cycle.

    Usage:
        with RunLock("data/catalog.csv.lock"):
            cycle.run()
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._fd: Optional[int] = None

    @property
    def held(self) -> bool:
        return self._fd is not None

    def acquire(self) -> None:
        """Take the lock.

        Raises:
            LockError: If another process holds the lock.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_CREAT | os.O_RDWR, 0o600)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            os.close(fd)
            holder = self._read_holder()
            logger.error("run_lock_busy", path=str(self.path), holder=holder)
            raise LockError(
                f"Another run holds {self.path} (pid {holder or 'unknown'})"
            )

        os.ftruncate(fd, 0)
        os.write(fd, str(os.getpid()).encode())
        self._fd = fd
        logger.debug("run_lock_acquired", path=str(self.path))

    def release(self) -> None:
        if self._fd is None:
            return
        fcntl.flock(self._fd, fcntl.LOCK_UN)
        os.close(self._fd)
        self._fd = None
        logger.debug("run_lock_released", path=str(self.path))

    def _read_holder(self) -> Optional[str]:
        try:
            return self.path.read_text().strip() or None
        except OSError:
            return None

    def __enter__(self) -> "RunLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()
