"""
Pydantic models for the pub/sub stream bridge.

This module defines the status record reported by the external pub/sub
client, the tagged union of listener events, and the result wrapper
returned by the single-result adapter.

The bridge never inspects event payloads. It only looks at the variant tag
(``kind``) and, for status events, at the error flag of the status record.
"""
from typing import Annotated, Any, Generic, List, Literal, Optional, TypeVar, Union
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

T = TypeVar("T")


class BaseDTO(BaseModel):
    """
    Base configuration for all bridge models.

    - Arbitrary payload types are allowed (payloads are carried verbatim).
    - Models are immutable once created.
    """
    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
    )


class ClientException(Exception):
    """
    Exception payload attached to an error status.

    External clients are free to attach their own exception types to a
    status record; this one is used by the in-memory client and whenever the
    bridge needs to describe an error status that carries no exception.
    """

    def __init__(self, error_message: str, status_code: Optional[int] = None):
        super().__init__(error_message)
        self.error_message = error_message
        self.status_code = status_code


# =============================================================================
# Status Records
# =============================================================================


class StatusCategory(str, Enum):
    """Category of a status record reported by the external client."""
    CONNECTED = "connected"
    RECONNECTED = "reconnected"
    DISCONNECTED = "disconnected"
    UNEXPECTED_DISCONNECT = "unexpected_disconnect"
    ACCESS_DENIED = "access_denied"
    TIMEOUT = "timeout"
    NETWORK_ISSUES = "network_issues"
    BAD_REQUEST = "bad_request"
    ACKNOWLEDGMENT = "acknowledgment"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class Status(BaseDTO):
    """
    Outcome of an operation or a connection state change.

    Fields:
        category: What kind of status this is
        operation: Name of the operation this status belongs to, if any
        error: Whether the status reports a failure
        exception: Exception payload supplied by the external client
        status_code: Transport-level status code, if any
        affected_channels: Channels the status applies to
        retryable: Whether the external client considers the failure retryable
    """
    category: StatusCategory = Field(
        default=StatusCategory.UNKNOWN,
        description="What kind of status this is"
    )
    operation: Optional[str] = Field(
        default=None,
        description="Name of the operation this status belongs to"
    )
    error: bool = Field(
        default=False,
        description="Whether the status reports a failure"
    )
    exception: Optional[Any] = Field(
        default=None,
        description="Exception payload supplied by the external client"
    )
    status_code: Optional[int] = Field(
        default=None,
        description="Transport-level status code"
    )
    affected_channels: List[str] = Field(
        default_factory=list,
        description="Channels the status applies to"
    )
    retryable: bool = Field(
        default=False,
        description="Whether the failure is retryable by the external client"
    )

    @property
    def error_message(self) -> Optional[str]:
        """Message of the attached exception, if there is one."""
        if self.exception is None:
            return None
        message = getattr(self.exception, "error_message", None)
        return message if message is not None else str(self.exception)

    @classmethod
    def ok(cls, category: StatusCategory = StatusCategory.ACKNOWLEDGMENT, **kwargs: Any) -> "Status":
        """Build a non-error status."""
        return cls(category=category, error=False, **kwargs)

    @classmethod
    def failure(
        cls,
        error_message: str,
        category: StatusCategory = StatusCategory.UNKNOWN,
        status_code: Optional[int] = None,
        **kwargs: Any,
    ) -> "Status":
        """Build an error status carrying a ClientException."""
        return cls(
            category=category,
            error=True,
            exception=ClientException(error_message, status_code),
            status_code=status_code,
            **kwargs,
        )


# =============================================================================
# Listener Events
# =============================================================================


class EventKind(str, Enum):
    """Variant tag of a listener event."""
    STATUS = "status"
    MESSAGE = "message"
    MESSAGE_ACTION = "message_action"
    OBJECT = "object"
    PRESENCE = "presence"
    SIGNAL = "signal"


class StatusEvent(BaseDTO):
    """A status notification delivered to a listener."""
    kind: Literal[EventKind.STATUS] = EventKind.STATUS
    status: Status


class PayloadEvent(BaseDTO):
    """
    Base for the variants that carry an external payload.

    The payload is whatever the external client handed to the listener.
    """
    payload: Any = None


class MessageEvent(PayloadEvent):
    kind: Literal[EventKind.MESSAGE] = EventKind.MESSAGE


class MessageActionEvent(PayloadEvent):
    kind: Literal[EventKind.MESSAGE_ACTION] = EventKind.MESSAGE_ACTION


class ObjectEvent(PayloadEvent):
    kind: Literal[EventKind.OBJECT] = EventKind.OBJECT


class PresenceEvent(PayloadEvent):
    kind: Literal[EventKind.PRESENCE] = EventKind.PRESENCE


class SignalEvent(PayloadEvent):
    kind: Literal[EventKind.SIGNAL] = EventKind.SIGNAL


Event = Annotated[
    Union[
        StatusEvent,
        MessageEvent,
        MessageActionEvent,
        ObjectEvent,
        PresenceEvent,
        SignalEvent,
    ],
    Field(discriminator="kind"),
]

PAYLOAD_EVENT_TYPES = {
    EventKind.MESSAGE: MessageEvent,
    EventKind.MESSAGE_ACTION: MessageActionEvent,
    EventKind.OBJECT: ObjectEvent,
    EventKind.PRESENCE: PresenceEvent,
    EventKind.SIGNAL: SignalEvent,
}


# =============================================================================
# Registration and Results
# =============================================================================


class ListenerHandle(BaseDTO):
    """Opaque token identifying one listener registration."""
    id: str = Field(default_factory=lambda: str(uuid4()))


class Result(BaseDTO, Generic[T]):
    """
    Outcome of a one-shot operation.

    Exactly one of the following holds: a value is present, or the status
    reports an error.
    """
    value: Optional[T] = None
    status: Status

    @model_validator(mode="after")
    def check_value_or_error(self) -> "Result[T]":
        has_value = self.value is not None
        if has_value == self.status.error:
            raise ValueError(
                "Result must carry either a value with a non-error status "
                "or no value with an error status"
            )
        return self

    @property
    def ok(self) -> bool:
        return not self.status.error

    @property
    def is_error(self) -> bool:
        return self.status.error
