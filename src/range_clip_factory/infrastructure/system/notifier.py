from __future__ import annotations


class LogProgressNotifier:
    def __init__(self, logger) -> None:
        self.logger = logger

    def show_progress(self, percent: int, current: int, total: int) -> None:
        self.logger.info("progress.update", percent=percent, text=f"Part {current}/{total}")

    def hide_progress(self) -> None:
        self.logger.info("progress.hidden")
