from __future__ import annotations

import shutil
import subprocess
from collections.abc import Iterator
from contextlib import contextmanager


class CaffeinateKeepAlive:
    """Keeps macOS from idle-sleeping while a batch runs.

    On hosts without ``caffeinate`` the hold is a no-op.
    """

    def __init__(self, logger, binary: str = "caffeinate", enabled: bool = True) -> None:
        self.logger = logger
        self.binary = binary
        self.enabled = enabled

    @contextmanager
    def hold(self) -> Iterator[None]:
        exe = shutil.which(self.binary) if self.enabled else None
        if exe is None:
            yield
            return

        proc = subprocess.Popen([exe, "-i"], stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        self.logger.info("keep_alive.acquired", pid=proc.pid)
        try:
            yield
        finally:
            proc.terminate()
            try:
                proc.wait(timeout=3)
            except subprocess.TimeoutExpired:
                proc.kill()
            self.logger.info("keep_alive.released", pid=proc.pid)
