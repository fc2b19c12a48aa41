from __future__ import annotations

import subprocess
import threading

from range_clip_factory.domain.models import TranscodeResult

ERROR_TAIL_CHARS = 500


class FFmpegTranscoder:
    def __init__(self, binary: str, logger) -> None:
        self.binary = binary
        self.logger = logger
        self._lock = threading.Lock()
        self._proc: subprocess.Popen | None = None
        self._cancel_requested = False

    def run(self, args: list[str]) -> TranscodeResult:
        cmd = [self.binary, *args]
        self.logger.info("transcoder.started", command=" ".join(cmd))
        try:
            # Own session: a terminal Ctrl-C must not reach ffmpeg, only cancel() stops it.
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                encoding="utf-8",
                errors="replace",
                start_new_session=True,
            )
        except OSError as exc:
            self.logger.warning("transcoder.spawn_failed", error=str(exc))
            return TranscodeResult(success=False, error=f"ffmpeg not found: {exc}")

        with self._lock:
            self._proc = proc
            self._cancel_requested = False
        try:
            stdout, stderr = proc.communicate()
        finally:
            with self._lock:
                self._proc = None
                cancelled = self._cancel_requested
            if proc.poll() is None:
                proc.kill()

        output = (stderr or "") + (stdout or "")
        ret = proc.returncode
        if ret == 0:
            return TranscodeResult(success=True, return_code=0, output=output)
        if cancelled:
            return TranscodeResult(success=False, error="command cancelled", return_code=ret, output=output)

        error = f"ffmpeg failed with return code {ret}"
        tail = output.strip()[-ERROR_TAIL_CHARS:]
        if tail:
            error += f": {tail}"
        self.logger.warning("transcoder.failed", return_code=ret)
        return TranscodeResult(success=False, error=error, return_code=ret, output=output)

    def cancel(self) -> None:
        with self._lock:
            proc = self._proc
            if proc is None:
                return
            self._cancel_requested = True
        proc.terminate()
        try:
            proc.wait(timeout=3)
        except subprocess.TimeoutExpired:
            proc.kill()
        self.logger.info("transcoder.cancelled", pid=proc.pid)
