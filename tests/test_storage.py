from datetime import datetime, timezone
from pathlib import Path

from range_clip_factory.infrastructure.storage.artifact_store import ArtifactStore
from range_clip_factory.infrastructure.storage.relocator import FolderRelocator
from range_clip_factory.utils.paths import clip_filename, handle_suffix


class DummyLogger:
    def info(self, *args, **kwargs):
        pass


def test_relocator_moves_into_created_folder(tmp_path: Path):
    scratch = tmp_path / "scratch" / "part_01.mp4"
    scratch.parent.mkdir()
    scratch.write_bytes(b"clip")
    dest = tmp_path / "Movies" / "Klipper"

    result = FolderRelocator(DummyLogger()).move_to_destination(scratch, "clip_01.mp4", dest)

    assert result.success
    assert result.final_path == dest / "clip_01.mp4"
    assert result.final_path.read_bytes() == b"clip"
    assert not scratch.exists()


def test_relocator_reports_missing_source(tmp_path: Path):
    result = FolderRelocator(DummyLogger()).move_to_destination(tmp_path / "gone.mp4", "x.mp4", tmp_path / "out")

    assert not result.success
    assert result.error.startswith("source file not found")
    assert not (tmp_path / "out").exists()


def test_relocator_reports_unwritable_destination(tmp_path: Path):
    scratch = tmp_path / "part_01.mp4"
    scratch.write_bytes(b"clip")
    blocker = tmp_path / "blocker"
    blocker.write_text("not a folder")

    result = FolderRelocator(DummyLogger()).move_to_destination(scratch, "x.mp4", blocker / "Klipper")

    assert not result.success
    assert result.error
    assert scratch.exists()


def test_store_paths_are_per_batch(tmp_path: Path):
    store = ArtifactStore(tmp_path)

    assert store.scratch_output_path("abc", 3) == tmp_path / "batches" / "abc" / "part_03.mp4"
    staged = store.staging_path(".mov")
    assert staged.parent == tmp_path / "staging"
    assert staged.name.startswith("ffmpeg_input_") and staged.suffix == ".mov"


def test_prune_only_removes_empty_batch_dirs(tmp_path: Path):
    store = ArtifactStore(tmp_path)
    store.batch_dir("empty")
    kept = store.scratch_output_path("kept", 1)
    kept.write_bytes(b"x")

    store.prune_batch_dir("empty")
    store.prune_batch_dir("kept")
    store.prune_batch_dir("never-created")

    assert not (tmp_path / "batches" / "empty").exists()
    assert kept.exists()


def test_watermark_text_preference_round_trip(tmp_path: Path):
    store = ArtifactStore(tmp_path)
    assert store.last_watermark_text() == ""

    store.save_watermark_text("@channel")

    assert ArtifactStore(tmp_path).last_watermark_text() == "@channel"


def test_corrupt_preferences_are_ignored(tmp_path: Path):
    store = ArtifactStore(tmp_path)
    store.preferences_path().write_text("{not json", encoding="utf-8")

    assert store.load_preferences() == {}
    store.save_watermark_text("x")
    assert store.last_watermark_text() == "x"


def test_clip_filename_uses_index_and_utc_stamp():
    now = datetime(2024, 5, 1, 12, 30, 5, tzinfo=timezone.utc)

    assert clip_filename(3, now=now) == "clip_03_2024-05-01T12-30-05.mp4"
    assert clip_filename(12, "mov", now=now) == "clip_12_2024-05-01T12-30-05.mov"


def test_handle_suffix_falls_back_to_mp4():
    assert handle_suffix("https://cdn.example.com/v/talk.webm?sig=1") == ".webm"
    assert handle_suffix("content://media/external/video/42") == ".mp4"
