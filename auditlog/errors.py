"""Error taxonomy for audit log processing."""


class LogFileError(OSError):
    """A live or backup log file could not be opened, copied, truncated, stat'ed or listed."""


class ParseError(ValueError):
    """A single audit log line could not be decoded into a record."""

    def __init__(self, message: str, line: str = ""):
        super().__init__(message)
        self.line = line


class ProcessingError(Exception):
    """One or more lines of a file failed to parse or be handled.

    Every line that did succeed has already been dispatched to the handler.
    """

    def __init__(self, path: str, dispatched: int, failed: int):
        super().__init__(
            f"errors occurred during log processing of {path}: "
            f"{failed} failed, {dispatched} dispatched"
        )
        self.path = path
        self.dispatched = dispatched
        self.failed = failed


class ConfigError(ValueError):
    """Required configuration is missing or invalid."""


class ShutdownTimeout(TimeoutError):
    """The processor's jobs did not finish before the stop deadline."""
