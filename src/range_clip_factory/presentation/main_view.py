from __future__ import annotations

import threading
from dataclasses import replace
from pathlib import Path

import flet as ft

from range_clip_factory.domain.clip_specs import ClipSpecBuilder
from range_clip_factory.domain.errors import FormatError, StagingError
from range_clip_factory.domain.models import BatchSnapshot, WatermarkConfig, WatermarkPosition
from range_clip_factory.presentation.parts_list import PartsList
from range_clip_factory.presentation.progress_view import ProgressView
from range_clip_factory.utils.config import Settings


class MainView(ft.Column):
    def __init__(self, page: ft.Page, settings: Settings, build, logger) -> None:
        self._page = page
        self.settings = settings
        self.logger = logger
        self.builder = ClipSpecBuilder(max_parts=settings.pipeline.max_parts)
        self._worker_thread: threading.Thread | None = None

        self.progress_view = ProgressView(dispatch=self._dispatch_ui, on_change=self._page.update)
        self.orchestrator = build(settings, notifier=self.progress_view)
        store = self.orchestrator.store

        self.source_field = ft.TextField(label="Source video (path or URL)")
        self.ranges_field = ft.TextField(
            label="One range per line, e.g. 00:10 - 00:45",
            multiline=True,
            min_lines=5,
            max_lines=10,
            on_change=self._on_ranges_changed,
        )
        self.output_field = ft.TextField(label="Output folder", value=settings.pipeline.default_output_dir)
        self.crop_box = ft.Checkbox(label="Crop to 9:16", value=settings.pipeline.crop_enabled)
        self.watermark_box = ft.Checkbox(label="Watermark", value=False)
        self.watermark_field = ft.TextField(label="Watermark text", value=store.last_watermark_text())
        self.position_dropdown = ft.Dropdown(
            label="Position",
            value=WatermarkPosition.CENTER.value,
            options=[ft.dropdown.Option(p.value) for p in WatermarkPosition],
        )
        self.error_text = ft.Text("", color=ft.Colors.RED_700, size=13)
        self.parts_list = PartsList(self.builder, on_error=self._show_error, on_change=self._page.update)
        self.load_button = ft.OutlinedButton("Load parts", on_click=self._on_load_parts)
        self.start_button = ft.ElevatedButton("Start", on_click=self._on_start)
        self.stop_button = ft.ElevatedButton("Cancel", disabled=True, on_click=self._on_stop)

        super().__init__(
            controls=[
                self.source_field,
                self.ranges_field,
                self.load_button,
                self.output_field,
                ft.Row([self.crop_box, self.watermark_box, self.position_dropdown]),
                self.watermark_field,
                self.error_text,
                self.parts_list,
                ft.Row([self.start_button, self.stop_button]),
                self.progress_view,
            ],
            spacing=12,
        )

    def _on_ranges_changed(self, _: ft.ControlEvent) -> None:
        # Edited text invalidates the loaded parts; Start or Load parts re-parses it.
        if len(self.builder):
            self.builder.replace_all([])
            self.parts_list.refresh()

    def _on_load_parts(self, _: ft.ControlEvent) -> None:
        if self._load_parts():
            self.error_text.value = ""
            self.parts_list.refresh()

    def _load_parts(self) -> bool:
        try:
            self.builder.load_text(self.ranges_field.value or "")
        except FormatError as exc:
            self._show_error(str(exc))
            return False
        return True

    def _show_error(self, message: str) -> None:
        self.error_text.value = message
        self._page.update()

    def _on_start(self, _: ft.ControlEvent) -> None:
        if self.orchestrator.running:
            return
        if not len(self.builder) and not self._load_parts():
            return
        # Snapshot the parts so row edits during a run cannot change the batch.
        clips = [replace(clip) for clip in self.builder.clips]

        source = (self.source_field.value or "").strip()
        if not source:
            self.error_text.value = "Select a source video first."
            self._page.update()
            return

        watermark = WatermarkConfig(
            enabled=bool(self.watermark_box.value),
            text=self.watermark_field.value or "",
            position=WatermarkPosition(self.position_dropdown.value or WatermarkPosition.CENTER.value),
        )
        if watermark.active:
            self.orchestrator.store.save_watermark_text(watermark.text)

        self.error_text.value = ""
        self.progress_view.clear_log()
        self.parts_list.refresh()
        self.start_button.disabled = True
        self.stop_button.disabled = False
        self._page.update()

        output_root = Path(self.output_field.value or self.settings.pipeline.default_output_dir)

        def worker() -> None:
            try:
                snapshot = self.orchestrator.run(
                    source,
                    clips,
                    output_root,
                    watermark=watermark,
                    crop_enabled=bool(self.crop_box.value),
                    on_event=self.progress_view.on_event,
                )
                self._dispatch_ui(self._on_finished, snapshot)
            except StagingError as exc:
                self._dispatch_ui(self._on_error, str(exc))
            except Exception as exc:
                self.logger.exception("ui.batch_failed", error=str(exc))
                self._dispatch_ui(self._on_error, str(exc))

        self._worker_thread = threading.Thread(target=worker, daemon=True)
        self._worker_thread.start()

    def _on_stop(self, _: ft.ControlEvent) -> None:
        self.stop_button.disabled = True
        self.orchestrator.request_cancel()
        self.progress_view.status_text.value = "Cancelling after the current part..."
        self._page.update()

    def _on_finished(self, snapshot: BatchSnapshot) -> None:
        failed = len(snapshot.failed)
        self.progress_view.status_text.value = (
            f"{snapshot.state.value}: {len(snapshot.succeeded)} ok, {failed} failed, {snapshot.total} total"
        )
        self._reset_buttons()

    def _on_error(self, message: str) -> None:
        self.error_text.value = message
        self.progress_view.set("Failed", 0.0)
        self._reset_buttons()

    def _reset_buttons(self) -> None:
        self.start_button.disabled = False
        self.stop_button.disabled = True
        self._page.update()

    def _dispatch_ui(self, callback, *args) -> None:
        try:
            self._page.run_task(self._run_ui_callback, callback, *args)
        except RuntimeError:
            # Page closed or app shutting down.
            return

    async def _run_ui_callback(self, callback, *args) -> None:
        callback(*args)
