"""
Exceptions raised by the horizon scanning pipeline.

Every failure ends the current session and returns the scanner to idle.
Nothing here is retried.
"""


class ScannerError(Exception):
    """Base class for scanner failures. The message is shown to the user as-is."""


class SensorUnavailable(ScannerError):
    """No orientation capability on the source. Start is refused."""

    def __init__(self, message: str = "No rotation vector sensor available"):
        super().__init__(message)


class NoDestinationConfigured(ScannerError):
    """No storage destination set. Start (and export) is refused."""

    def __init__(self, message: str = "No folder selected"):
        super().__init__(message)


class ExportIOFailure(ScannerError):
    """The storage sink could not write the exported file."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Could not save {name}: {reason}")
