from __future__ import annotations

from pathlib import Path

from range_clip_factory.domain.models import ClipSpec, WatermarkConfig, WatermarkPosition
from range_clip_factory.utils.config import RenderConfig

WATERMARK_FONT_SIZE = 48
WATERMARK_FONT_COLOR = "white@0.6"
WATERMARK_BOX_COLOR = "black@0.4"
WATERMARK_BOX_PADDING = 10
PORTRAIT_CROP = "crop=ih*9/16:ih:(iw-ih*9/16)/2:0"

_WATERMARK_Y = {
    WatermarkPosition.TOP: "h*0.15",
    WatermarkPosition.CENTER: "(h-th)/2",
    WatermarkPosition.BOTTOM: "h*0.85-th",
}


def escape_drawtext(text: str) -> str:
    # Quotes first: the colon pass must not touch what the quote pass inserts.
    return text.replace("'", r"'\''").replace(":", r"\:")


def build_watermark_filter(watermark: WatermarkConfig, font_file: str = "") -> str:
    y_pos = _WATERMARK_Y.get(WatermarkPosition(watermark.position), _WATERMARK_Y[WatermarkPosition.CENTER])
    font_opt = f"fontfile={escape_drawtext(font_file)}:" if font_file else ""
    return (
        f"drawtext={font_opt}text='{escape_drawtext(watermark.text)}'"
        f":fontsize={WATERMARK_FONT_SIZE}:fontcolor={WATERMARK_FONT_COLOR}"
        f":x=(w-tw)/2:y={y_pos}"
        f":box=1:boxcolor={WATERMARK_BOX_COLOR}:boxborderw={WATERMARK_BOX_PADDING}"
    )


def build_filtergraph(watermark: WatermarkConfig | None, crop_enabled: bool, font_file: str = "") -> str:
    filters: list[str] = []
    if crop_enabled:
        filters.append(PORTRAIT_CROP)
    if watermark is not None and watermark.active:
        filters.append(build_watermark_filter(watermark, font_file=font_file))
    return ",".join(filters)


class FFmpegCommandBuilder:
    def __init__(self, config: RenderConfig) -> None:
        self.config = config

    def build(
        self,
        source_path: Path,
        output_path: Path,
        clip: ClipSpec,
        watermark: WatermarkConfig | None = None,
        crop_enabled: bool = True,
    ) -> list[str]:
        filter_graph = build_filtergraph(watermark, crop_enabled, font_file=self.config.font_file)

        args = [
            "-y",
            "-ss",
            str(clip.start_sec),
            "-i",
            str(source_path),
            "-t",
            str(clip.duration),
        ]
        if filter_graph:
            args += ["-vf", filter_graph]
        args += [
            "-c:v",
            self.config.video_codec,
            "-preset",
            self.config.preset,
            "-crf",
            str(self.config.crf),
            "-c:a",
            self.config.audio_codec,
            "-b:a",
            self.config.audio_bitrate,
            str(output_path),
        ]
        return args
