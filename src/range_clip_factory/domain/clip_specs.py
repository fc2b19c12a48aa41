from __future__ import annotations

from collections.abc import Iterable

from .models import ClipSpec
from .timestamps import MAX_PARTS, parse_batch, parse_clock


class ClipSpecBuilder:
    """Holds the current ordered list of parts.

    List position is the output numbering ("Part N") and the processing
    order; edits and removals never reorder it.
    """

    def __init__(self, max_parts: int = MAX_PARTS) -> None:
        self.max_parts = max_parts
        self._clips: list[ClipSpec] = []

    @property
    def clips(self) -> list[ClipSpec]:
        return list(self._clips)

    def __len__(self) -> int:
        return len(self._clips)

    def replace_all(self, ranges: Iterable[tuple[int, int]]) -> list[ClipSpec]:
        fresh = [ClipSpec.create(start, end) for start, end in ranges]
        self._clips = fresh
        return self.clips

    def load_text(self, text: str) -> list[ClipSpec]:
        self._clips = parse_batch(text, max_parts=self.max_parts)
        return self.clips

    def get(self, clip_id: str) -> ClipSpec | None:
        return next((c for c in self._clips if c.clip_id == clip_id), None)

    def edit(self, clip_id: str, start_sec: int, end_sec: int) -> ClipSpec | None:
        clip = self.get(clip_id)
        if clip is None:
            return None
        clip.set_range(start_sec, end_sec)
        return clip

    def edit_text(self, clip_id: str, start_text: str, end_text: str) -> ClipSpec | None:
        return self.edit(clip_id, parse_clock(start_text), parse_clock(end_text))

    def remove(self, clip_id: str) -> None:
        self._clips = [c for c in self._clips if c.clip_id != clip_id]

    def labels(self) -> list[str]:
        return [f"Part {idx}: {clip.display}" for idx, clip in enumerate(self._clips, start=1)]
