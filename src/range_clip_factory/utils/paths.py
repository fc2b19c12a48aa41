from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path


def clip_filename(index: int, extension: str = "mp4", now: datetime | None = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H-%M-%S")
    return f"clip_{index:02d}_{stamp}.{extension}"


def handle_suffix(handle: str, default: str = ".mp4") -> str:
    name = handle.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1]
    suffix = Path(name).suffix
    return suffix if 1 < len(suffix) <= 6 else default
