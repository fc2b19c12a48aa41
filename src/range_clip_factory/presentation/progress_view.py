from __future__ import annotations

from collections.abc import Callable

import flet as ft

from range_clip_factory.domain.models import BatchEvent, BatchState

_STATE_LABELS = {
    BatchState.IDLE: "Ready",
    BatchState.STAGING: "Preparing source...",
    BatchState.RUNNING: "Running...",
    BatchState.COMPLETED: "Done",
    BatchState.CANCELLED: "Cancelled",
    BatchState.FAILED: "Failed",
}


class ProgressView(ft.Column):
    """Progress bar, "n / total" counter and status line for one batch.

    Doubles as a progress notifier and an event subscriber so it can be
    wired straight into a ProgressReporter. Updates arrive on the worker
    thread; ``dispatch`` moves them onto the UI loop.
    """

    def __init__(
        self,
        dispatch: Callable[..., None] | None = None,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._dispatch = dispatch or (lambda callback, *args: callback(*args))
        self._on_change = on_change
        self.status_text = ft.Text(_STATE_LABELS[BatchState.IDLE], size=14)
        self.count_text = ft.Text("0 / 0", size=13)
        self.percent_text = ft.Text("0%", size=13)
        self.progress = ft.ProgressBar(width=600, value=0)
        self.log_lines: list[str] = []
        self.log_list = ft.Column(spacing=2)
        super().__init__(
            controls=[
                self.status_text,
                self.progress,
                ft.Row([self.count_text, self.percent_text], spacing=16),
                self.log_list,
            ],
            spacing=8,
        )

    def set(self, message: str, value: float) -> None:
        self.status_text.value = message
        self.progress.value = max(0.0, min(1.0, value))

    def clear_log(self) -> None:
        self.log_lines = []
        self.log_list.controls = []

    def show_progress(self, percent: int, current: int, total: int) -> None:
        self._dispatch(self._apply_progress, percent, current, total)

    def hide_progress(self) -> None:
        self._dispatch(self._refresh)

    def on_event(self, event: BatchEvent) -> None:
        self._dispatch(self._apply_event, event)

    def _apply_progress(self, percent: int, current: int, total: int) -> None:
        self.progress.value = max(0.0, min(1.0, percent / 100))
        self.percent_text.value = f"{percent}%"
        self.count_text.value = f"{current} / {total}"
        self._refresh()

    def _apply_event(self, event: BatchEvent) -> None:
        self.status_text.value = _STATE_LABELS.get(event.snapshot.state, event.snapshot.state.value)
        if event.kind in ("clip.failed", "clip.relocation_failed", "batch.failed") and event.message:
            self.log_lines.append(f"Part {event.index}: {event.message}" if event.index else event.message)
            self.log_lines = self.log_lines[-100:]
            self.log_list.controls = [ft.Text(line, size=12, color=ft.Colors.RED_700) for line in self.log_lines]
        self._refresh()

    def _refresh(self) -> None:
        if self._on_change is not None:
            self._on_change()
