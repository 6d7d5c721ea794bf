"""Exception types raised across SessionScribe."""

from __future__ import annotations


class SessionScribeError(Exception):
    pass


class ConfigError(SessionScribeError):
    pass


class DeviceError(SessionScribeError):
    """Microphone missing, busy, or permission denied."""


class RecordingStateError(SessionScribeError):
    pass


class OperationInProgress(SessionScribeError):
    """A second request for an operation that is still running."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"{operation} is already in progress.")
        self.operation = operation


class PersistenceError(SessionScribeError):
    pass
