from pathlib import Path

import pytest

from range_clip_factory.domain.errors import StagingError
from range_clip_factory.domain.models import CopyResult
from range_clip_factory.infrastructure.staging.staging_resolver import StagingResolver, UrlSourceCopier
from range_clip_factory.infrastructure.storage.artifact_store import ArtifactStore


class DummyLogger:
    def info(self, *args, **kwargs):
        pass

    def warning(self, *args, **kwargs):
        pass


class CountingCopier:
    def __init__(self, target: Path, fail: bool = False):
        self.target = target
        self.fail = fail
        self.calls = []

    def copy_to_local(self, handle):
        self.calls.append(handle)
        if self.fail:
            return CopyResult(success=False, error="permission denied")
        self.target.write_bytes(b"video")
        return CopyResult(success=True, local_path=self.target)


def test_local_path_is_returned_unchanged(tmp_path: Path):
    video = tmp_path / "in.mp4"
    video.write_bytes(b"x")
    copier = CountingCopier(tmp_path / "staged.mp4")
    resolver = StagingResolver(copier, DummyLogger())

    assert resolver.resolve(video) == video
    assert resolver.resolve(str(video)) == video
    assert copier.calls == []


def test_content_handle_is_copied_once(tmp_path: Path):
    copier = CountingCopier(tmp_path / "staged.mp4")
    resolver = StagingResolver(copier, DummyLogger())
    handle = "content://media/external/video/42"

    first = resolver.resolve(handle)
    second = resolver.resolve(handle)

    assert first == second == tmp_path / "staged.mp4"
    assert copier.calls == [handle]


def test_copy_failure_is_a_staging_error(tmp_path: Path):
    resolver = StagingResolver(CountingCopier(tmp_path / "x.mp4", fail=True), DummyLogger())

    with pytest.raises(StagingError, match="permission denied"):
        resolver.resolve("content://media/external/video/42")


def test_missing_local_file_is_a_staging_error(tmp_path: Path):
    resolver = StagingResolver(CountingCopier(tmp_path / "x.mp4"), DummyLogger())

    with pytest.raises(StagingError, match="not a readable file"):
        resolver.resolve(tmp_path / "missing.mp4")


def test_cleanup_removes_only_staged_copies(tmp_path: Path):
    original = tmp_path / "in.mp4"
    original.write_bytes(b"x")
    staged = tmp_path / "staged.mp4"
    resolver = StagingResolver(CountingCopier(staged), DummyLogger())
    resolver.resolve(original)
    resolver.resolve("content://media/1")

    resolver.cleanup()

    assert original.exists()
    assert not staged.exists()


def test_url_copier_streams_file_urls_into_store(tmp_path: Path):
    source = tmp_path / "source.mov"
    source.write_bytes(b"frames")
    store = ArtifactStore(tmp_path / "scratch")

    result = UrlSourceCopier(store).copy_to_local(source.as_uri())

    assert result.success
    assert result.local_path.suffix == ".mov"
    assert result.local_path.parent == tmp_path / "scratch" / "staging"
    assert result.local_path.read_bytes() == b"frames"


def test_url_copier_reports_unreadable_handles(tmp_path: Path):
    store = ArtifactStore(tmp_path / "scratch")

    result = UrlSourceCopier(store).copy_to_local("content://media/external/video/42")

    assert not result.success
    assert result.error
    assert list((tmp_path / "scratch" / "staging").iterdir()) == []
