from range_clip_factory.application.progress_reporter import PROGRESS_EVENT, ProgressReporter
from range_clip_factory.domain.models import BatchEvent, BatchSnapshot, BatchState


class DummyLogger:
    def __init__(self):
        self.warnings = []

    def warning(self, event, **kwargs):
        self.warnings.append(event)


class RecordingNotifier:
    def __init__(self):
        self.shown = []
        self.hidden = 0

    def show_progress(self, percent, current, total):
        self.shown.append((percent, current, total))

    def hide_progress(self):
        self.hidden += 1


class BrokenNotifier:
    def show_progress(self, percent, current, total):
        raise RuntimeError("no notification channel")

    def hide_progress(self):
        raise RuntimeError("no notification channel")


def _event(kind: str, index: int, total: int = 4) -> BatchEvent:
    snapshot = BatchSnapshot(batch_id="b1", state=BatchState.RUNNING, total=total, cursor=index, cancelled=False, outcomes=())
    return BatchEvent(kind=kind, index=index, total=total, snapshot=snapshot)


def test_progress_events_update_latest_and_notifier():
    notifier = RecordingNotifier()
    reporter = ProgressReporter(notifier, DummyLogger())

    reporter.handle(_event(PROGRESS_EVENT, 1))
    reporter.handle(_event("clip.started", 2))

    assert reporter.latest.percent == 25
    assert (reporter.latest.current, reporter.latest.total) == (1, 4)
    assert notifier.shown == [(25, 1, 4)]


def test_notification_scope_shows_zero_then_hides():
    notifier = RecordingNotifier()
    reporter = ProgressReporter(notifier, DummyLogger())

    with reporter.notification(3):
        assert notifier.shown == [(0, 0, 3)]
    assert notifier.hidden == 1


def test_subscribers_receive_every_event_until_unsubscribed():
    reporter = ProgressReporter(None, DummyLogger())
    seen = []
    unsubscribe = reporter.subscribe(lambda e: seen.append(e.kind))

    reporter.handle(_event("clip.started", 1))
    unsubscribe()
    reporter.handle(_event(PROGRESS_EVENT, 1))

    assert seen == ["clip.started"]


def test_failures_in_subscribers_and_notifier_are_only_logged():
    logger = DummyLogger()
    reporter = ProgressReporter(BrokenNotifier(), logger)
    seen = []

    def broken(event):
        raise ValueError("ui gone")

    reporter.subscribe(broken)
    reporter.subscribe(lambda e: seen.append(e.index))
    with reporter.notification(2):
        reporter.handle(_event(PROGRESS_EVENT, 1, total=2))

    assert seen == [1]
    assert logger.warnings == [
        "progress.show_failed",
        "progress.show_failed",
        "progress.subscriber_failed",
        "progress.hide_failed",
    ]
