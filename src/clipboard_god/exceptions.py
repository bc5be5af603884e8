"""Exception hierarchy for clipboard-god."""

from typing import Optional


class ClipboardGodError(Exception):
    """Base class for every error raised inside clipboard-god."""

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        super().__init__(message)
        self.original_error = original_error

    def __str__(self):
        base_msg = super().__str__()
        if self.original_error:
            return f"{base_msg} (Caused by: {type(self.original_error).__name__}: {self.original_error})"
        return base_msg


class StorageError(ClipboardGodError):
    """Base class for history storage errors."""
    pass


class StorageInitError(StorageError):
    """The preferred storage backend could not be opened."""
    pass


class StorageWriteError(StorageError):
    """A mutation against the storage backend failed."""
    pass


class PasteError(ClipboardGodError):
    """Base class for write-then-paste errors."""
    pass


class PasteWriteError(PasteError):
    """Writing the item to the OS clipboard failed."""
    pass


class PasteExecutionError(PasteError):
    """Every paste delivery mechanism was exhausted."""
    pass


class BusyError(PasteError):
    """A paste is already in flight."""
    pass


class CaptureError(ClipboardGodError):
    """Base class for interactive capture errors."""
    pass


class CaptureCancelledError(CaptureError):
    """The capture tool exited without producing an image."""
    pass


class CaptureTimeoutError(CaptureError, TimeoutError):
    """An interactive capture did not resolve in time."""
    pass
