from __future__ import annotations

import json
import time
from pathlib import Path


class ArtifactStore:
    """Private scratch area: staged inputs, per-batch outputs and preferences."""

    def __init__(self, scratch_root: Path) -> None:
        self.scratch_root = scratch_root
        self.scratch_root.mkdir(parents=True, exist_ok=True)

    def batch_dir(self, batch_id: str) -> Path:
        path = self.scratch_root / "batches" / batch_id
        path.mkdir(parents=True, exist_ok=True)
        return path

    def scratch_output_path(self, batch_id: str, index: int, extension: str = "mp4") -> Path:
        return self.batch_dir(batch_id) / f"part_{index:02d}.{extension}"

    def staging_path(self, suffix: str = ".mp4") -> Path:
        path = self.scratch_root / "staging"
        path.mkdir(parents=True, exist_ok=True)
        return path / f"ffmpeg_input_{int(time.time() * 1000)}{suffix}"

    def prune_batch_dir(self, batch_id: str) -> None:
        path = self.scratch_root / "batches" / batch_id
        if path.is_dir() and not any(path.iterdir()):
            path.rmdir()

    def preferences_path(self) -> Path:
        return self.scratch_root / "preferences.json"

    def write_json(self, path: Path, payload: dict | list) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")

    def load_preferences(self) -> dict:
        path = self.preferences_path()
        if not path.exists():
            return {}
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            return {}
        return payload if isinstance(payload, dict) else {}

    def last_watermark_text(self) -> str:
        return str(self.load_preferences().get("watermark_text", ""))

    def save_watermark_text(self, text: str) -> None:
        prefs = self.load_preferences()
        prefs["watermark_text"] = text
        self.write_json(self.preferences_path(), prefs)
