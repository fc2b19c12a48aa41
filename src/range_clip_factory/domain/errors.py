from __future__ import annotations


class FormatError(ValueError):
    """Invalid range text. Surfaced to the user as-is, never retried."""

    def __init__(self, reason: str, line: int | None = None) -> None:
        self.reason = reason
        self.line = line
        super().__init__(f"line {line}: {reason}" if line is not None else reason)

    def at_line(self, line: int) -> FormatError:
        return FormatError(self.reason, line=line)


class StagingError(RuntimeError):
    pass


class ClipError(RuntimeError):
    def __init__(self, message: str, return_code: int | None = None) -> None:
        self.return_code = return_code
        super().__init__(message)
