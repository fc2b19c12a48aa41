from __future__ import annotations

from collections.abc import Callable

import flet as ft

from range_clip_factory.domain.clip_specs import ClipSpecBuilder
from range_clip_factory.domain.errors import FormatError


class PartsList(ft.Column):
    """One editable row per part: start/end fields with Save and Delete.

    Rows are rebuilt from the builder after every change so the "Part N"
    numbering always matches the processing order.
    """

    def __init__(
        self,
        builder: ClipSpecBuilder,
        on_error: Callable[[str], None] | None = None,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self.builder = builder
        self._on_error = on_error
        self._on_change = on_change
        self._fields: dict[str, tuple[ft.TextField, ft.TextField]] = {}
        super().__init__(spacing=6)

    def refresh(self) -> None:
        self.controls.clear()
        self._fields.clear()
        for idx, clip in enumerate(self.builder.clips, start=1):
            start = ft.TextField(label="Start", value=clip.start_display, width=120, dense=True)
            end = ft.TextField(label="End", value=clip.end_display, width=120, dense=True)
            self._fields[clip.clip_id] = (start, end)
            self.controls.append(
                ft.Row(
                    [
                        ft.Text(f"Part {idx}", width=60),
                        start,
                        end,
                        ft.TextButton("Save", on_click=lambda _, cid=clip.clip_id: self.save_part(cid)),
                        ft.TextButton("Delete", on_click=lambda _, cid=clip.clip_id: self.delete_part(cid)),
                    ],
                    spacing=8,
                )
            )
        self._changed()

    def save_part(self, clip_id: str) -> bool:
        fields = self._fields.get(clip_id)
        if fields is None:
            return False
        start, end = fields
        try:
            self.builder.edit_text(clip_id, start.value or "", end.value or "")
        except FormatError as exc:
            if self._on_error is not None:
                self._on_error(f"{exc}")
            return False
        self.refresh()
        return True

    def delete_part(self, clip_id: str) -> None:
        self.builder.remove(clip_id)
        self.refresh()

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
