from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from range_clip_factory.domain.models import BatchEvent, ProgressSnapshot
from range_clip_factory.domain.protocols import ProgressNotifier

EventCallback = Callable[[BatchEvent], None]

PROGRESS_EVENT = "batch.progress"


class ProgressReporter:
    """Turns orchestrator events into progress numbers for the UI and the OS notification.

    Everything here is best-effort: a failing subscriber or notifier is
    logged and never reaches the orchestrator.
    """

    def __init__(self, notifier: ProgressNotifier | None, logger) -> None:
        self.notifier = notifier
        self.logger = logger
        self.latest = ProgressSnapshot(percent=0.0, current=0, total=0)
        self._subscribers: list[EventCallback] = []

    def subscribe(self, callback: EventCallback) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def handle(self, event: BatchEvent) -> None:
        if event.kind == PROGRESS_EVENT:
            total = max(event.total, 1)
            self.latest = ProgressSnapshot(
                percent=event.index / total * 100,
                current=event.index,
                total=event.total,
            )
            self._notify_show(self.latest)

        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as exc:
                self.logger.warning("progress.subscriber_failed", kind=event.kind, error=str(exc))

    @contextmanager
    def notification(self, total: int) -> Iterator[ProgressSnapshot]:
        self.latest = ProgressSnapshot(percent=0.0, current=0, total=total)
        self._notify_show(self.latest)
        try:
            yield self.latest
        finally:
            self._notify_hide()

    def _notify_show(self, progress: ProgressSnapshot) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.show_progress(int(round(progress.percent)), progress.current, progress.total)
        except Exception as exc:
            self.logger.warning("progress.show_failed", error=str(exc))

    def _notify_hide(self) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.hide_progress()
        except Exception as exc:
            self.logger.warning("progress.hide_failed", error=str(exc))
