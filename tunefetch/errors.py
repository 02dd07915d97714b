# Error taxonomy. Every error raised by the package derives from TunefetchError.

from __future__ import annotations

from typing import Optional


def _tail(text: str, max_chars: int = 4000) -> str:
    if not text:
        return ""
    return text if len(text) <= max_chars else text[-max_chars:]


class TunefetchError(RuntimeError):
    pass


# Input validation (per item, never fatal to a batch)
class InputValidationError(TunefetchError):
    pass


class CsvHeaderError(InputValidationError):
    pass


# Tool availability
class ToolUnavailableError(TunefetchError):
    def __init__(self, tool: str, message: str):
        super().__init__(f"{tool}: {message}")
        self.tool = tool


class ToolNotFoundError(ToolUnavailableError):
    pass


class UnsupportedPlatformError(ToolUnavailableError):
    pass


class ToolDownloadError(ToolUnavailableError):
    pass


class ExtractionError(ToolUnavailableError):
    pass


class VerificationError(ToolUnavailableError):
    pass


class ToolInstallError(ToolUnavailableError):
    """Writing the private copy failed (permissions, disk, path clashes)."""


# External process failures
class SubprocessFailureError(TunefetchError):
    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        if stderr:
            message = f"{message}\n\n--- stderr (tail) ---\n{_tail(stderr)}"
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class ProcessStartError(SubprocessFailureError):
    pass


class SearchError(SubprocessFailureError):
    pass


class VideoDownloadError(SubprocessFailureError):
    pass


class TranscodeError(SubprocessFailureError):
    pass


# Output we could not make sense of; on-disk state is indeterminate
class ParseFailureError(TunefetchError):
    pass


class SearchParseError(ParseFailureError):
    pass


class PathRecoveryError(ParseFailureError):
    pass


# Filesystem
class FileSystemFailureError(TunefetchError):
    pass


class TagTargetNotFoundError(FileSystemFailureError):
    pass


class UnsupportedFormatError(FileSystemFailureError):
    pass


class RenameCollisionError(FileSystemFailureError):
    pass


class OutputDirectoryError(FileSystemFailureError):
    pass


class TaggingError(FileSystemFailureError):
    pass


# Pipeline
class NoSearchResultError(TunefetchError):
    pass


class StageError(TunefetchError):
    """A pipeline stage failed; `stage` names it and `cause` is the original error."""

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(f"[{stage}] {cause}")
        self.stage = stage
        self.cause = cause
