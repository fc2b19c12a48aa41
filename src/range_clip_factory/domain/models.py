from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from uuid import uuid4

from .errors import FormatError
from .timestamps import format_seconds


class WatermarkPosition(StrEnum):
    TOP = "top"
    CENTER = "center"
    BOTTOM = "bottom"


class ClipStatus(StrEnum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED_CANCELLED = "skipped_cancelled"
    SKIPPED_ABORTED = "skipped_aborted"


class BatchState(StrEnum):
    IDLE = "idle"
    STAGING = "staging"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


def _new_clip_id() -> str:
    return uuid4().hex[:12]


@dataclass(slots=True)
class ClipSpec:
    clip_id: str
    start_sec: int
    end_sec: int
    start_display: str = ""
    end_display: str = ""

    def __post_init__(self) -> None:
        self.set_range(self.start_sec, self.end_sec)

    @classmethod
    def create(cls, start_sec: int, end_sec: int) -> ClipSpec:
        return cls(clip_id=_new_clip_id(), start_sec=start_sec, end_sec=end_sec)

    def set_range(self, start_sec: int, end_sec: int) -> None:
        if start_sec < 0:
            raise FormatError("negative offset")
        if start_sec >= end_sec:
            raise FormatError("start not before end")
        self.start_sec = int(start_sec)
        self.end_sec = int(end_sec)
        self.start_display = format_seconds(self.start_sec)
        self.end_display = format_seconds(self.end_sec)

    @property
    def duration(self) -> int:
        return self.end_sec - self.start_sec

    @property
    def display(self) -> str:
        return f"{self.start_display} - {self.end_display}"


@dataclass(slots=True)
class WatermarkConfig:
    enabled: bool = False
    text: str = ""
    position: WatermarkPosition = WatermarkPosition.CENTER

    @property
    def active(self) -> bool:
        return self.enabled and bool(self.text)


@dataclass(frozen=True, slots=True)
class ClipOutcome:
    index: int
    clip_id: str
    status: ClipStatus = ClipStatus.PENDING
    reason: str = ""
    return_code: int | None = None
    scratch_path: Path | None = None
    final_path: Path | None = None


@dataclass(frozen=True, slots=True)
class BatchSnapshot:
    batch_id: str
    state: BatchState
    total: int
    cursor: int
    cancelled: bool
    outcomes: tuple[ClipOutcome, ...]
    error: str = ""

    @property
    def completed_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status in (ClipStatus.SUCCESS, ClipStatus.FAILED))

    @property
    def percent(self) -> float:
        if self.total == 0:
            return 0.0
        return self.completed_count / self.total * 100

    @property
    def succeeded(self) -> list[ClipOutcome]:
        return [o for o in self.outcomes if o.status == ClipStatus.SUCCESS]

    @property
    def failed(self) -> list[ClipOutcome]:
        return [o for o in self.outcomes if o.status == ClipStatus.FAILED]

    def to_dict(self) -> dict:
        return {
            "batch_id": self.batch_id,
            "state": self.state.value,
            "total": self.total,
            "completed": self.completed_count,
            "cancelled": self.cancelled,
            "error": self.error,
            "clips": [
                {
                    "index": o.index,
                    "clip_id": o.clip_id,
                    "status": o.status.value,
                    "reason": o.reason,
                    "return_code": o.return_code,
                    "scratch_path": str(o.scratch_path) if o.scratch_path else None,
                    "final_path": str(o.final_path) if o.final_path else None,
                }
                for o in self.outcomes
            ],
        }


@dataclass(slots=True)
class BatchJob:
    batch_id: str
    clips: list[ClipSpec]
    cursor: int = 0
    cancelled: bool = False
    state: BatchState = BatchState.IDLE
    error: str = ""
    outcomes: list[ClipOutcome] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.outcomes:
            self.outcomes = [
                ClipOutcome(index=idx, clip_id=clip.clip_id) for idx, clip in enumerate(self.clips, start=1)
            ]

    @property
    def total(self) -> int:
        return len(self.clips)

    def record(self, position: int, **changes) -> ClipOutcome:
        current = self.outcomes[position]
        updated = ClipOutcome(
            index=current.index,
            clip_id=current.clip_id,
            status=changes.get("status", current.status),
            reason=changes.get("reason", current.reason),
            return_code=changes.get("return_code", current.return_code),
            scratch_path=changes.get("scratch_path", current.scratch_path),
            final_path=changes.get("final_path", current.final_path),
        )
        self.outcomes[position] = updated
        return updated

    def mark_remaining(self, start: int, status: ClipStatus, reason: str) -> None:
        for position in range(start, self.total):
            if self.outcomes[position].status == ClipStatus.PENDING:
                self.record(position, status=status, reason=reason)

    def snapshot(self) -> BatchSnapshot:
        return BatchSnapshot(
            batch_id=self.batch_id,
            state=self.state,
            total=self.total,
            cursor=self.cursor,
            cancelled=self.cancelled,
            outcomes=tuple(self.outcomes),
            error=self.error,
        )


@dataclass(slots=True)
class StagedSource:
    handle: str
    local_path: Path
    staged: bool


@dataclass(frozen=True, slots=True)
class TranscodeResult:
    success: bool
    error: str = ""
    return_code: int | None = None
    output: str = ""


@dataclass(frozen=True, slots=True)
class CopyResult:
    success: bool
    local_path: Path | None = None
    error: str = ""


@dataclass(frozen=True, slots=True)
class MoveResult:
    success: bool
    final_path: Path | None = None
    error: str = ""


@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    percent: float
    current: int
    total: int


@dataclass(frozen=True, slots=True)
class BatchEvent:
    kind: str
    index: int
    total: int
    snapshot: BatchSnapshot
    message: str = ""
