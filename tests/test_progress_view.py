from range_clip_factory.domain.models import BatchEvent, BatchSnapshot, BatchState
from range_clip_factory.presentation.progress_view import ProgressView


def _event(kind: str, state: BatchState, index: int = 1, message: str = "") -> BatchEvent:
    snapshot = BatchSnapshot(batch_id="b1", state=state, total=3, cursor=index, cancelled=False, outcomes=())
    return BatchEvent(kind=kind, index=index, total=3, snapshot=snapshot, message=message)


def test_progress_updates_bar_and_counters():
    changes = []
    view = ProgressView(on_change=lambda: changes.append(1))

    view.show_progress(67, 2, 3)

    assert view.progress.value == 0.67
    assert view.percent_text.value == "67%"
    assert view.count_text.value == "2 / 3"
    assert changes == [1]


def test_failure_events_are_logged_with_part_number():
    view = ProgressView()

    view.on_event(_event("clip.started", BatchState.RUNNING))
    view.on_event(_event("clip.failed", BatchState.RUNNING, 2, "ffmpeg failed with return code 1"))
    view.on_event(_event("batch.cancelled", BatchState.CANCELLED, 3))

    assert view.log_lines == ["Part 2: ffmpeg failed with return code 1"]
    assert view.status_text.value == "Cancelled"


def test_updates_go_through_dispatch():
    calls = []
    view = ProgressView(dispatch=lambda callback, *args: calls.append(callback.__name__))

    view.show_progress(10, 1, 10)
    view.hide_progress()

    assert calls == ["_apply_progress", "_refresh"]
    assert view.percent_text.value == "0%"


def test_failure_lines_are_rendered_in_the_view():
    view = ProgressView()

    view.on_event(_event("clip.failed", BatchState.RUNNING, 2, "ffmpeg failed with return code 1"))
    view.on_event(_event("clip.relocation_failed", BatchState.RUNNING, 3, "relocation failed: disk full"))

    assert view.log_list in view.controls
    assert [text.value for text in view.log_list.controls] == [
        "Part 2: ffmpeg failed with return code 1",
        "Part 3: relocation failed: disk full",
    ]

    view.clear_log()
    assert view.log_list.controls == []
