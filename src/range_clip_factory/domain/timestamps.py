from __future__ import annotations

import re
from typing import TYPE_CHECKING

from .errors import FormatError

if TYPE_CHECKING:
    from .models import ClipSpec

MAX_PARTS = 20

_RANGE_SEPARATOR = re.compile(r"\s*-\s*")
_COMPONENT = re.compile(r"[0-9]+")


def parse_clock(token: str) -> int:
    """Convert ``MM:SS`` or ``HH:MM:SS`` into seconds.

    Components are summed positionally and are not range-checked, so
    ``99:99`` is accepted as 6039 seconds.
    """
    parts = token.strip().split(":")
    if len(parts) not in (2, 3) or not all(_COMPONENT.fullmatch(p) for p in parts):
        raise FormatError("bad time syntax")

    values = [int(p) for p in parts]
    if len(values) == 2:
        minutes, seconds = values
        return minutes * 60 + seconds
    hours, minutes, seconds = values
    return hours * 3600 + minutes * 60 + seconds


def parse_range(line: str) -> tuple[int, int]:
    tokens = _RANGE_SEPARATOR.split(line.strip())
    if len(tokens) != 2:
        raise FormatError("bad range syntax")

    start = parse_clock(tokens[0])
    end = parse_clock(tokens[1])
    if start >= end:
        raise FormatError("start not before end")
    return start, end


def format_seconds(total_seconds: int) -> str:
    if total_seconds < 0:
        raise ValueError(f"negative offset: {total_seconds}")
    hours, rest = divmod(int(total_seconds), 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def parse_ranges(text: str, max_parts: int = MAX_PARTS) -> list[tuple[int, int]]:
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        raise FormatError("empty input")
    if len(lines) > max_parts:
        raise FormatError("too many parts")

    ranges: list[tuple[int, int]] = []
    for number, line in enumerate(lines, start=1):
        try:
            ranges.append(parse_range(line))
        except FormatError as exc:
            raise exc.at_line(number) from None
    return ranges


def parse_batch(text: str, max_parts: int = MAX_PARTS) -> list[ClipSpec]:
    """Parse a whole text block into fresh ClipSpecs, all or nothing."""
    from .models import ClipSpec

    return [ClipSpec.create(start, end) for start, end in parse_ranges(text, max_parts=max_parts)]
