from __future__ import annotations

import os
import shutil
import urllib.request
from pathlib import Path

from range_clip_factory.domain.errors import StagingError
from range_clip_factory.domain.models import CopyResult, StagedSource
from range_clip_factory.domain.protocols import SourceCopier
from range_clip_factory.infrastructure.storage.artifact_store import ArtifactStore
from range_clip_factory.utils.config import DEFAULT_CONTENT_SCHEMES
from range_clip_factory.utils.paths import handle_suffix


class UrlSourceCopier:
    """Streams a URL-style handle into the store's staging area."""

    def __init__(self, store: ArtifactStore, timeout_sec: int = 300) -> None:
        self.store = store
        self.timeout_sec = timeout_sec

    def copy_to_local(self, handle: str) -> CopyResult:
        target = self.store.staging_path(handle_suffix(handle))
        try:
            with urllib.request.urlopen(handle, timeout=self.timeout_sec) as res, target.open("wb") as out:
                shutil.copyfileobj(res, out)
        except (OSError, ValueError) as exc:
            target.unlink(missing_ok=True)
            return CopyResult(success=False, error=str(exc))
        return CopyResult(success=True, local_path=target)


class StagingResolver:
    """Maps a source handle to a readable local path, copying at most once per handle.

    One resolver lives for exactly one batch; ``cleanup`` drops the memo and
    deletes whatever was staged.
    """

    def __init__(
        self,
        copier: SourceCopier,
        logger,
        content_schemes: tuple[str, ...] = DEFAULT_CONTENT_SCHEMES,
    ) -> None:
        self.copier = copier
        self.logger = logger
        self.content_schemes = tuple(s.lower() for s in content_schemes)
        self._memo: dict[str, StagedSource] = {}

    def is_content_handle(self, handle: str | Path) -> bool:
        return str(handle).lower().startswith(self.content_schemes)

    def resolve(self, handle: str | Path) -> Path:
        key = str(handle)
        cached = self._memo.get(key)
        if cached is not None:
            return cached.local_path

        if self.is_content_handle(key):
            result = self.copier.copy_to_local(key)
            if not result.success or result.local_path is None:
                raise StagingError(f"could not stage {key}: {result.error or 'no local path returned'}")
            entry = StagedSource(handle=key, local_path=result.local_path, staged=True)
            self.logger.info("staging.copied", handle=key, local_path=str(result.local_path))
        else:
            path = Path(key).expanduser()
            if not path.is_file() or not os.access(path, os.R_OK):
                raise StagingError(f"source is not a readable file: {key}")
            entry = StagedSource(handle=key, local_path=path, staged=False)

        self._memo[key] = entry
        return entry.local_path

    def cleanup(self) -> None:
        for entry in self._memo.values():
            if not entry.staged:
                continue
            try:
                entry.local_path.unlink(missing_ok=True)
            except OSError as exc:
                self.logger.warning("staging.cleanup_failed", path=str(entry.local_path), error=str(exc))
        self._memo.clear()
