from __future__ import annotations

from pathlib import Path

import flet as ft
from dotenv import load_dotenv

from range_clip_factory.application.orchestrator import JobOrchestrator
from range_clip_factory.application.progress_reporter import ProgressReporter
from range_clip_factory.domain.protocols import ProgressNotifier
from range_clip_factory.infrastructure.render.ffmpeg_builder import FFmpegCommandBuilder
from range_clip_factory.infrastructure.render.ffmpeg_transcoder import FFmpegTranscoder
from range_clip_factory.infrastructure.staging.staging_resolver import UrlSourceCopier
from range_clip_factory.infrastructure.storage.artifact_store import ArtifactStore
from range_clip_factory.infrastructure.storage.relocator import FolderRelocator
from range_clip_factory.infrastructure.system.keep_alive import CaffeinateKeepAlive
from range_clip_factory.infrastructure.system.notifier import LogProgressNotifier
from range_clip_factory.presentation.main_view import MainView
from range_clip_factory.utils.config import PROJECT_ROOT, Settings, load_settings
from range_clip_factory.utils.logger import configure_logger, get_logger


def load_app_settings(root_dir: Path = PROJECT_ROOT) -> Settings:
    load_dotenv(root_dir / ".env")
    configure_logger()
    return load_settings(root_dir)


def build_orchestrator(settings: Settings, notifier: ProgressNotifier | None = None) -> JobOrchestrator:
    logger = get_logger()
    store = ArtifactStore(settings.scratch_root)

    return JobOrchestrator(
        config=settings.pipeline,
        command_builder=FFmpegCommandBuilder(settings.render),
        transcoder=FFmpegTranscoder(settings.pipeline.ffmpeg_binary, logger),
        copier=UrlSourceCopier(store, timeout_sec=settings.staging.copy_timeout_sec),
        relocator=FolderRelocator(logger),
        store=store,
        keep_alive=CaffeinateKeepAlive(logger, enabled=settings.pipeline.keep_awake),
        reporter=ProgressReporter(notifier or LogProgressNotifier(logger), logger),
        logger=logger,
        content_schemes=settings.staging.content_schemes,
    )


def main() -> None:
    settings = load_app_settings()

    def _run(page: ft.Page) -> None:
        page.title = "Range Clip Factory"
        page.window.width = 820
        page.window.height = 760
        page.padding = 16
        page.scroll = ft.ScrollMode.AUTO
        page.add(MainView(page=page, settings=settings, build=build_orchestrator, logger=get_logger()))

    ft.app(target=_run)


if __name__ == "__main__":
    main()
