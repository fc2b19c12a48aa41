import pytest

from range_clip_factory.domain.clip_specs import ClipSpecBuilder
from range_clip_factory.domain.errors import FormatError


def _builder() -> ClipSpecBuilder:
    builder = ClipSpecBuilder()
    builder.replace_all([(10, 20), (60, 90), (120, 180)])
    return builder


def test_replace_all_assigns_fresh_ids_in_order():
    builder = _builder()
    first_ids = [c.clip_id for c in builder.clips]

    assert len(set(first_ids)) == 3
    assert [c.start_sec for c in builder.clips] == [10, 60, 120]

    builder.replace_all([(0, 5)])
    assert len(builder) == 1
    assert builder.clips[0].clip_id not in first_ids


def test_load_text_keeps_previous_parts_on_error():
    builder = _builder()
    before = [c.clip_id for c in builder.clips]

    with pytest.raises(FormatError):
        builder.load_text("00:10 - 00:20\nnope")

    assert [c.clip_id for c in builder.clips] == before


def test_edit_updates_range_and_display_in_place():
    builder = _builder()
    target = builder.clips[1]

    edited = builder.edit(target.clip_id, 3600, 3725)

    assert edited is target
    assert (target.start_sec, target.end_sec) == (3600, 3725)
    assert target.display == "01:00:00 - 01:02:05"
    assert builder.clips[1].clip_id == target.clip_id


def test_edit_to_same_range_leaves_display_unchanged():
    builder = _builder()
    clip = builder.clips[0]
    before = (clip.start_display, clip.end_display)

    builder.edit(clip.clip_id, clip.start_sec, clip.end_sec)

    assert (clip.start_display, clip.end_display) == before


def test_edit_rejects_inverted_range():
    builder = _builder()
    clip = builder.clips[0]

    with pytest.raises(FormatError, match="start not before end"):
        builder.edit(clip.clip_id, 30, 30)
    assert (clip.start_sec, clip.end_sec) == (10, 20)


def test_edit_unknown_id_is_a_no_op():
    builder = _builder()
    before = [(c.clip_id, c.start_sec, c.end_sec) for c in builder.clips]

    assert builder.edit("missing", 1, 2) is None
    assert [(c.clip_id, c.start_sec, c.end_sec) for c in builder.clips] == before


def test_edit_text_parses_clock_strings():
    builder = _builder()
    clip = builder.clips[2]

    builder.edit_text(clip.clip_id, "02:00", "1:02:03")

    assert (clip.start_sec, clip.end_sec) == (120, 3723)
    assert clip.end_display == "01:02:03"


def test_remove_keeps_order_and_ignores_unknown_ids():
    builder = _builder()
    ids = [c.clip_id for c in builder.clips]

    builder.remove(ids[1])
    builder.remove("missing")

    assert [c.clip_id for c in builder.clips] == [ids[0], ids[2]]
    assert builder.labels() == ["Part 1: 00:00:10 - 00:00:20", "Part 2: 00:02:00 - 00:03:00"]


def test_edit_rejects_negative_start_with_its_own_reason():
    builder = _builder()
    clip = builder.clips[0]

    with pytest.raises(FormatError, match="negative offset"):
        builder.edit(clip.clip_id, -5, 20)
    assert (clip.start_sec, clip.end_sec) == (10, 20)
