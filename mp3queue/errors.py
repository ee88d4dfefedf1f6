"""
Error types for the download queue.

Recoverable errors (InputError, TransportError, AbortError) are handled
at the call site or at the dispatcher boundary. FatalError marks a broken
contract between the code that builds tasks and the executor and is
never caught by the dispatcher.
"""

from typing import Optional


class DownloaderError(Exception):
    """Base exception for all downloader failures."""
    pass


class InputError(DownloaderError):
    """Raised when a request is missing required data. Never queued."""
    pass


class TransportError(DownloaderError):
    """Raised when a backend call fails to complete or returns an error."""

    def __init__(self, reason: str, status_code: Optional[int] = None):
        self.reason = reason
        self.status_code = status_code
        super().__init__(reason)


class AbortError(DownloaderError):
    """Raised when a task's cancellation handle interrupts its call."""

    def __init__(self, task_id: str = ""):
        self.task_id = task_id
        super().__init__(f"Task aborted: {task_id}" if task_id else "Task aborted")


class FatalError(Exception):
    """Raised when the executor receives a task it has no operation for.

    Not a DownloaderError: callers that handle recoverable failures must
    not catch it.
    """
    pass
