"""
Exceptions raised by the evaluation platform.

All of them are fatal for an evaluation run: the entry point turns them into
SystemExit. Threshold misses and symmetry mismatches are evaluation outcomes,
not errors.
"""


class EvaluationPlatformError(RuntimeError):
    """Base class for evaluation platform failures."""


class ConfigurationError(EvaluationPlatformError, ValueError):
    """Parameters file missing or unusable."""


class UnknownTargetClassError(EvaluationPlatformError):
    """A recognized object label does not match any configured target class."""

    def __init__(self, label):
        super().__init__(f"Can not identify recognized object: {label!r}")
        self.label = label


class EvaluationLogError(EvaluationPlatformError):
    """A log file could not be opened or written."""

    def __init__(self, path, reason=None):
        message = f"Unable to open log file: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.path = path


class ConnectionTimeoutError(EvaluationPlatformError, TimeoutError):
    """No subscriber connected to a topic within the allowed wait."""

    def __init__(self, topic, timeout):
        super().__init__(f"No connection on {topic} after {timeout:.1f}s")
        self.topic = topic
        self.timeout = timeout
