from typing import Optional


class QueryBridgeError(Exception):
    """Base exception for query_bridge."""

class ConfigurationError(QueryBridgeError):
    pass

class BackendUnavailable(QueryBridgeError):
    """Client process failed to spawn, exited non-zero, or the connection check failed."""

class SubmissionError(QueryBridgeError):
    pass

class ExecutionError(QueryBridgeError):
    """The backend reported a definitive failure or cancellation."""

class QueryTimeout(QueryBridgeError, TimeoutError):
    pass

class DecodeError(QueryBridgeError):
    """Tabular text could not be read as a rectangular dataset."""

    def __init__(self, message: str, offset: Optional[int] = None, line: Optional[int] = None):
        super().__init__(message)
        self.offset = offset
        self.line = line
