from __future__ import annotations

from contextlib import AbstractContextManager
from pathlib import Path
from typing import Protocol

from .models import CopyResult, MoveResult, TranscodeResult


class Transcoder(Protocol):
    def run(self, args: list[str]) -> TranscodeResult:
        """Run one transcode synchronously and report its result."""

    def cancel(self) -> None:
        """Ask a running transcode to stop. Best-effort."""


class SourceCopier(Protocol):
    def copy_to_local(self, handle: str) -> CopyResult:
        """Copy an opaque content handle to a readable local file."""


class Relocator(Protocol):
    def move_to_destination(self, scratch_path: Path, filename: str, dest_folder: Path) -> MoveResult:
        """Move a finished clip out of scratch into the user's folder."""


class ProgressNotifier(Protocol):
    def show_progress(self, percent: int, current: int, total: int) -> None:
        ...

    def hide_progress(self) -> None:
        ...


class KeepAlive(Protocol):
    def hold(self) -> AbstractContextManager[None]:
        """Keep the machine awake while the returned context is open."""
