"""
Exceptions raised by the bridge and the single-result adapter.
"""
from typing import Any, Optional

from .models import Status


class BridgeError(Exception):
    """Base exception for bridge errors."""
    pass


class StatusError(BridgeError):
    """
    Raised when the external client reports a failure through a status record.

    Attributes:
        status: The status record with its error flag set
        exception: Exception payload supplied by the external client
    """

    def __init__(self, status: Status, exception: Optional[Any] = None):
        self.status = status
        self.exception = exception if exception is not None else status.exception
        message = status.error_message or f"{status.category.value} status reported an error"
        super().__init__(message)
        if isinstance(self.exception, BaseException):
            self.__cause__ = self.exception

    @property
    def category(self):
        return self.status.category

    @property
    def retryable(self) -> bool:
        return self.status.retryable


class OperationError(BridgeError):
    """Raised when adapting an operation fails without status context."""
    pass


class BackpressureError(BridgeError):
    """Raised when an event is delivered on the consumer's loop into a full queue."""
    pass
