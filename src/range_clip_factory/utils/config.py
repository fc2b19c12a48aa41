from __future__ import annotations

import os
import tempfile
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_VIDEO_CODEC = "libx264"
DEFAULT_PRESET = "fast"
DEFAULT_CRF = 23
DEFAULT_AUDIO_CODEC = "aac"
DEFAULT_AUDIO_BITRATE = "128k"
DEFAULT_OUTPUT_SUBDIR = "Klipper"
DEFAULT_CONTENT_SCHEMES = ("content://", "file://", "http://", "https://")

PROJECT_ROOT = Path(__file__).resolve().parents[3]


@dataclass(slots=True)
class RenderConfig:
    video_codec: str = DEFAULT_VIDEO_CODEC
    preset: str = DEFAULT_PRESET
    crf: int = DEFAULT_CRF
    audio_codec: str = DEFAULT_AUDIO_CODEC
    audio_bitrate: str = DEFAULT_AUDIO_BITRATE
    font_file: str = ""
    output_extension: str = "mp4"


@dataclass(slots=True)
class PipelineConfig:
    ffmpeg_binary: str = "ffmpeg"
    max_parts: int = 20
    output_subdir: str = DEFAULT_OUTPUT_SUBDIR
    default_output_dir: str = "~/Movies"
    scratch_dir: str = ""
    crop_enabled: bool = True
    abort_on_clip_failure: bool = False
    strict_relocation: bool = False
    keep_awake: bool = True


@dataclass(slots=True)
class StagingConfig:
    content_schemes: tuple[str, ...] = DEFAULT_CONTENT_SCHEMES
    copy_timeout_sec: int = 300


@dataclass(slots=True)
class Settings:
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    staging: StagingConfig = field(default_factory=StagingConfig)
    root_dir: Path = field(default_factory=Path.cwd)

    @property
    def scratch_root(self) -> Path:
        if self.pipeline.scratch_dir:
            return Path(self.pipeline.scratch_dir).expanduser()
        return Path(tempfile.gettempdir()) / "range-clip-factory"


def load_settings(root_dir: Path) -> Settings:
    config_path = root_dir / "config" / "default.toml"
    raw: dict = {}
    if config_path.exists():
        with config_path.open("rb") as fh:
            raw = tomllib.load(fh)

    pipeline = raw.get("pipeline", {})
    render = raw.get("render", {})
    staging = raw.get("staging", {})

    return Settings(
        pipeline=PipelineConfig(
            ffmpeg_binary=os.getenv("FFMPEG_BINARY", str(pipeline.get("ffmpeg_binary", "ffmpeg"))),
            max_parts=max(1, int(pipeline.get("max_parts", 20))),
            output_subdir=str(pipeline.get("output_subdir", DEFAULT_OUTPUT_SUBDIR)),
            default_output_dir=os.getenv(
                "RANGE_CLIPS_OUTPUT_DIR", str(pipeline.get("default_output_dir", "~/Movies"))
            ),
            scratch_dir=os.getenv("RANGE_CLIPS_SCRATCH_DIR", str(pipeline.get("scratch_dir", ""))),
            crop_enabled=bool(pipeline.get("crop_enabled", True)),
            abort_on_clip_failure=bool(pipeline.get("abort_on_clip_failure", False)),
            strict_relocation=bool(pipeline.get("strict_relocation", False)),
            keep_awake=bool(pipeline.get("keep_awake", True)),
        ),
        render=RenderConfig(
            video_codec=str(render.get("video_codec", DEFAULT_VIDEO_CODEC)),
            preset=str(render.get("preset", DEFAULT_PRESET)),
            crf=int(render.get("crf", DEFAULT_CRF)),
            audio_codec=str(render.get("audio_codec", DEFAULT_AUDIO_CODEC)),
            audio_bitrate=str(render.get("audio_bitrate", DEFAULT_AUDIO_BITRATE)),
            font_file=os.getenv("RANGE_CLIPS_FONT_FILE", str(render.get("font_file", ""))),
            output_extension=str(render.get("output_extension", "mp4")).lstrip("."),
        ),
        staging=StagingConfig(
            content_schemes=tuple(str(s) for s in staging.get("content_schemes", DEFAULT_CONTENT_SCHEMES)),
            copy_timeout_sec=max(1, int(staging.get("copy_timeout_sec", 300))),
        ),
        root_dir=root_dir,
    )
