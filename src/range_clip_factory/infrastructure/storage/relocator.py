from __future__ import annotations

import shutil
from pathlib import Path

from range_clip_factory.domain.models import MoveResult


class FolderRelocator:
    def __init__(self, logger) -> None:
        self.logger = logger

    def move_to_destination(self, scratch_path: Path, filename: str, dest_folder: Path) -> MoveResult:
        if not scratch_path.exists():
            return MoveResult(success=False, error=f"source file not found: {scratch_path}")

        name = filename or scratch_path.name
        try:
            dest_folder.mkdir(parents=True, exist_ok=True)
            final_path = Path(shutil.move(str(scratch_path), str(dest_folder / name)))
        except OSError as exc:
            return MoveResult(success=False, error=str(exc))

        self.logger.info("relocator.moved", source=str(scratch_path), destination=str(final_path))
        return MoveResult(success=True, final_path=final_path)
