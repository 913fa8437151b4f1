"""
Failure Values
==============

Errors are converted into plain values at the orchestration boundary and
kept in the artifact store, keyed by request key, for the presentation layer
to display.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Any

from ..core.exceptions import (
    GENERIC_FAILURE_MESSAGE,
    StoryflowError,
    ValidationError,
    TransportError,
    ServerRejectedError,
    MalformedResponseError,
    QuotaExceededError,
    RequestInProgressError,
)


class FailureKind(Enum):
    VALIDATION = "validation"
    TRANSPORT = "transport"
    SERVER_REJECTED = "server_rejected"
    MALFORMED_RESPONSE = "malformed_response"
    QUOTA_EXCEEDED = "quota_exceeded"
    IN_PROGRESS = "in_progress"
    UNKNOWN = "unknown"


_KIND_BY_TYPE = (
    (ValidationError, FailureKind.VALIDATION),
    (TransportError, FailureKind.TRANSPORT),
    (ServerRejectedError, FailureKind.SERVER_REJECTED),
    (MalformedResponseError, FailureKind.MALFORMED_RESPONSE),
    (QuotaExceededError, FailureKind.QUOTA_EXCEEDED),
    (RequestInProgressError, FailureKind.IN_PROGRESS),
)


@dataclass(frozen=True)
class GenerationFailure:
    """A failed or rejected operation, ready to be shown to the user."""

    kind: FailureKind
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=datetime.now)

    @property
    def retryable(self) -> bool:
        return self.kind in (
            FailureKind.TRANSPORT,
            FailureKind.SERVER_REJECTED,
            FailureKind.MALFORMED_RESPONSE,
            FailureKind.IN_PROGRESS,
        )

    @classmethod
    def from_exception(cls, error: Exception, generic_message: str = GENERIC_FAILURE_MESSAGE) -> "GenerationFailure":
        """
        Classify an exception.

        Server rejections and local rejections keep their own message; transport
        and malformed-response failures get ``generic_message``.
        """
        kind = FailureKind.UNKNOWN
        for error_type, error_kind in _KIND_BY_TYPE:
            if isinstance(error, error_type):
                kind = error_kind
                break

        if kind in (FailureKind.TRANSPORT, FailureKind.MALFORMED_RESPONSE, FailureKind.UNKNOWN):
            message = generic_message
        elif isinstance(error, StoryflowError):
            message = error.user_message
        else:
            message = str(error)

        details = dict(error.details) if isinstance(error, StoryflowError) else {}
        return cls(kind=kind, message=message, details=details)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
            "occurred_at": self.occurred_at.isoformat(),
        }
