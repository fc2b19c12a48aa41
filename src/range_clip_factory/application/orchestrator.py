from __future__ import annotations

import threading
from contextlib import ExitStack
from pathlib import Path
from uuid import uuid4

from range_clip_factory.application.progress_reporter import PROGRESS_EVENT, EventCallback, ProgressReporter
from range_clip_factory.domain.errors import ClipError, StagingError
from range_clip_factory.domain.models import (
    BatchEvent,
    BatchJob,
    BatchSnapshot,
    BatchState,
    ClipSpec,
    ClipStatus,
    WatermarkConfig,
)
from range_clip_factory.domain.protocols import KeepAlive, Relocator, SourceCopier, Transcoder
from range_clip_factory.infrastructure.render.ffmpeg_builder import FFmpegCommandBuilder
from range_clip_factory.infrastructure.staging.staging_resolver import StagingResolver
from range_clip_factory.infrastructure.storage.artifact_store import ArtifactStore
from range_clip_factory.utils.config import DEFAULT_CONTENT_SCHEMES, PipelineConfig
from range_clip_factory.utils.paths import clip_filename


class JobOrchestrator:
    """Runs one batch of clips, strictly one after another.

    ``idle -> staging -> running -> completed | cancelled | failed``.
    A failed clip does not stop the batch unless ``abort_on_clip_failure``
    is set; cancellation is only observed between clips.
    """

    def __init__(
        self,
        config: PipelineConfig,
        command_builder: FFmpegCommandBuilder,
        transcoder: Transcoder,
        copier: SourceCopier,
        relocator: Relocator,
        store: ArtifactStore,
        keep_alive: KeepAlive,
        reporter: ProgressReporter,
        logger,
        content_schemes: tuple[str, ...] = DEFAULT_CONTENT_SCHEMES,
    ) -> None:
        self.config = config
        self.command_builder = command_builder
        self.transcoder = transcoder
        self.copier = copier
        self.relocator = relocator
        self.store = store
        self.keep_alive = keep_alive
        self.reporter = reporter
        self.logger = logger
        self.content_schemes = content_schemes
        self._cancel_event = threading.Event()
        self._job: BatchJob | None = None
        self._published: BatchSnapshot | None = None

    @property
    def running(self) -> bool:
        return self._job is not None and self._job.state in (BatchState.STAGING, BatchState.RUNNING)

    def snapshot(self) -> BatchSnapshot:
        if self._published is None:
            return BatchSnapshot(batch_id="", state=BatchState.IDLE, total=0, cursor=0, cancelled=False, outcomes=())
        return self._published

    def request_cancel(self) -> None:
        if not self._cancel_event.is_set():
            self._cancel_event.set()
            self.logger.info("batch.cancel_requested", batch_id=self._job.batch_id if self.running else "")

    def reset(self) -> None:
        if self.running:
            raise RuntimeError("cannot discard a batch while it is running")
        self._job = None
        self._published = None
        self._cancel_event.clear()

    def run(
        self,
        source: str | Path,
        clips: list[ClipSpec],
        output_root: Path,
        watermark: WatermarkConfig | None = None,
        crop_enabled: bool | None = None,
        on_event: EventCallback | None = None,
    ) -> BatchSnapshot:
        if self.running:
            raise RuntimeError("a batch is already running")
        if not clips:
            raise ValueError("no clips to process")

        crop = self.config.crop_enabled if crop_enabled is None else crop_enabled
        job = BatchJob(batch_id=uuid4().hex[:12], clips=list(clips))
        self._job = job
        resolver = StagingResolver(self.copier, self.logger, content_schemes=self.content_schemes)
        dest_folder = Path(output_root).expanduser() / self.config.output_subdir
        unsubscribe = self.reporter.subscribe(on_event) if on_event else None

        self.logger.info(
            "batch.created",
            batch_id=job.batch_id,
            source=str(source),
            clips=job.total,
            crop=crop,
            watermark=bool(watermark and watermark.active),
        )
        try:
            self._set_state(job, BatchState.STAGING)
            self._stage(job, resolver, source)
            with ExitStack() as stack:
                stack.enter_context(self.keep_alive.hold())
                stack.enter_context(self.reporter.notification(job.total))
                self._set_state(job, BatchState.RUNNING)
                self._run_clips(job, resolver, source, dest_folder, watermark, crop)
        except Exception as exc:
            if job.state != BatchState.FAILED:
                job.error = str(exc)
                self._set_state(job, BatchState.FAILED)
                self.logger.exception("batch.failed", batch_id=job.batch_id, error=str(exc))
                self._emit("batch.failed", job.cursor, job, str(exc))
            raise
        finally:
            # Only cleared once a batch ends, so a cancel sent before run() still applies to it.
            self._cancel_event.clear()
            resolver.cleanup()
            self.store.prune_batch_dir(job.batch_id)
            if unsubscribe:
                unsubscribe()

        snapshot = self._publish(job)
        self.logger.info(
            "batch.finished",
            batch_id=job.batch_id,
            state=job.state.value,
            succeeded=len(snapshot.succeeded),
            failed=len(snapshot.failed),
        )
        return snapshot

    def _stage(self, job: BatchJob, resolver: StagingResolver, source: str | Path) -> None:
        try:
            local_path = resolver.resolve(source)
        except StagingError as exc:
            job.error = str(exc)
            self._set_state(job, BatchState.FAILED)
            self.logger.warning("batch.staging_failed", batch_id=job.batch_id, error=str(exc))
            self._emit("batch.failed", 0, job, str(exc))
            raise
        self.logger.info("batch.staged", batch_id=job.batch_id, local_path=str(local_path))

    def _run_clips(
        self,
        job: BatchJob,
        resolver: StagingResolver,
        source: str | Path,
        dest_folder: Path,
        watermark: WatermarkConfig | None,
        crop: bool,
    ) -> None:
        for position, clip in enumerate(job.clips):
            job.cursor = position
            if self._cancel_event.is_set():
                self._finish_cancelled(job, position)
                return

            index = position + 1
            self._emit("clip.started", index, job, clip.display)
            try:
                scratch = self._transcode(job, index, clip, resolver.resolve(source), watermark, crop)
                self._relocate(job, position, scratch, dest_folder)
            except ClipError as exc:
                job.record(position, status=ClipStatus.FAILED, reason=str(exc), return_code=exc.return_code)
                self.logger.warning("clip.failed", batch_id=job.batch_id, index=index, error=str(exc))
                self._emit("clip.failed", index, job, str(exc))
            else:
                self._emit("clip.succeeded", index, job, clip.display)

            job.cursor = index
            self._emit(PROGRESS_EVENT, index, job)

            if job.outcomes[position].status == ClipStatus.FAILED and self.config.abort_on_clip_failure:
                job.mark_remaining(index, ClipStatus.SKIPPED_ABORTED, f"aborted after part {index} failed")
                job.error = f"part {index} failed"
                self._set_state(job, BatchState.FAILED)
                self._emit("batch.failed", index, job, job.error)
                return

        if self._cancel_event.is_set():
            self._finish_cancelled(job, job.total)
            return
        self._set_state(job, BatchState.COMPLETED)
        self._emit("batch.completed", job.total, job)

    def _transcode(
        self,
        job: BatchJob,
        index: int,
        clip: ClipSpec,
        local_source: Path,
        watermark: WatermarkConfig | None,
        crop: bool,
    ) -> Path:
        scratch = self.store.scratch_output_path(
            job.batch_id, index, self.command_builder.config.output_extension
        )
        args = self.command_builder.build(local_source, scratch, clip, watermark, crop)
        try:
            result = self.transcoder.run(args)
        except Exception as exc:
            raise ClipError(f"transcoder raised: {exc}") from exc
        if not result.success:
            raise ClipError(result.error or "transcoder reported failure", return_code=result.return_code)
        job.record(index - 1, scratch_path=scratch)
        return scratch

    def _relocate(self, job: BatchJob, position: int, scratch: Path, dest_folder: Path) -> None:
        index = position + 1
        filename = clip_filename(index, self.command_builder.config.output_extension)
        moved = self.relocator.move_to_destination(scratch, filename, dest_folder)
        if moved.success:
            job.record(position, status=ClipStatus.SUCCESS, final_path=moved.final_path)
            return

        reason = f"relocation failed: {moved.error}"
        self.logger.warning("clip.relocation_failed", batch_id=job.batch_id, index=index, error=moved.error)
        self._emit("clip.relocation_failed", index, job, reason)
        if self.config.strict_relocation:
            raise ClipError(reason)
        job.record(position, status=ClipStatus.SUCCESS, reason=reason)

    def _finish_cancelled(self, job: BatchJob, position: int) -> None:
        job.cancelled = True
        job.mark_remaining(position, ClipStatus.SKIPPED_CANCELLED, "cancelled")
        try:
            self.transcoder.cancel()
        except Exception as exc:
            self.logger.warning("batch.cancel_signal_failed", batch_id=job.batch_id, error=str(exc))
        self._set_state(job, BatchState.CANCELLED)
        self._emit("batch.cancelled", position, job)

    def _set_state(self, job: BatchJob, state: BatchState) -> None:
        job.state = state
        self.logger.info("batch.state", batch_id=job.batch_id, state=state.value)
        self._publish(job)

    def _publish(self, job: BatchJob) -> BatchSnapshot:
        self._published = job.snapshot()
        return self._published

    def _emit(self, kind: str, index: int, job: BatchJob, message: str = "") -> None:
        self.reporter.handle(
            BatchEvent(kind=kind, index=index, total=job.total, snapshot=self._publish(job), message=message)
        )
