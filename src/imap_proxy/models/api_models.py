"""
API request and response models for FastAPI endpoints.

This module defines the Pydantic models used for API request/response validation.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .message import CamelModel, Label, MessageSummary


class OutgoingAttachment(CamelModel):
    """Attachment supplied by the caller for an outgoing message."""

    filename: str = Field(description="Attachment filename")
    mime_type: str = Field(default="application/octet-stream", description="MIME type")
    content_base64: str = Field(description="Base64 payload")


class ProxyRequest(BaseModel):
    """
    Body of ``POST /api/{action}``.

    Account credentials travel in every request; action parameters sit beside
    them. Unknown keys are ignored.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # IMAP account
    imap_host: Optional[str] = None
    imap_port: Optional[int] = None
    imap_username: Optional[str] = None
    imap_password: Optional[str] = None
    use_ssl: Optional[bool] = Field(None, description="Implicit TLS unless explicitly false")

    # SMTP account
    smtp_host: Optional[str] = None
    smtp_port: Optional[int] = None
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    email: Optional[str] = None
    display_name: Optional[str] = None

    # Action parameters
    max_results: Optional[int] = Field(None, alias="maxResults")
    message_id: Optional[str] = Field(None, alias="messageId")
    to: Optional[str] = None
    subject: Optional[str] = None
    body: Optional[str] = None
    in_reply_to: Optional[str] = Field(None, alias="inReplyTo")
    attachments: List[OutgoingAttachment] = Field(default_factory=list)
    add_label_ids: List[str] = Field(default_factory=list, alias="addLabelIds")

    @field_validator("message_id", mode="before")
    @classmethod
    def _coerce_message_id(cls, value: Any) -> Any:
        # UIDs arrive as JSON numbers or strings
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("to", mode="before")
    @classmethod
    def _join_recipients(cls, value: Any) -> Any:
        if isinstance(value, list):
            return ", ".join(str(v) for v in value)
        return value

    @field_validator("max_results")
    @classmethod
    def _default_non_positive_max_results(cls, value: Optional[int]) -> Optional[int]:
        # Zero or negative falls back to the configured default
        if value is not None and value < 1:
            return None
        return value

    def has_imap_credentials(self) -> bool:
        return bool(self.imap_host and self.imap_username and self.imap_password)


class ErrorResponse(BaseModel):
    """Error payload returned with 4xx/5xx responses."""

    error: str = Field(description="Error message")
    detail: Optional[str] = Field(None, description="Upstream error code or response")


class SuccessResponse(BaseModel):
    """Acknowledgement of a state-changing action."""

    success: bool = True
    id: Optional[str] = Field(None, description="Message-ID of a sent message")


class ListMessagesResponse(BaseModel):
    messages: List[MessageSummary] = Field(default_factory=list)


class ListLabelsResponse(BaseModel):
    labels: List[Label] = Field(default_factory=list)


class HealthResponse(CamelModel):
    """Health check response."""

    status: str = Field(description="Service status", examples=["ok"])
    version: str = Field(description="API version", examples=["1.0.0"])
    uptime_seconds: float = Field(description="Service uptime")
