# Data models for the IMAP proxy

from .message import (
    DecodedMessage,
    ExtractedAttachment,
    Label,
    MessageDetail,
    MessageSummary,
)
from .api_models import (
    ErrorResponse,
    HealthResponse,
    ListLabelsResponse,
    ListMessagesResponse,
    OutgoingAttachment,
    ProxyRequest,
    SuccessResponse,
)

__all__ = [
    "DecodedMessage",
    "ExtractedAttachment",
    "Label",
    "MessageDetail",
    "MessageSummary",
    "ErrorResponse",
    "HealthResponse",
    "ListLabelsResponse",
    "ListMessagesResponse",
    "OutgoingAttachment",
    "ProxyRequest",
    "SuccessResponse",
]
