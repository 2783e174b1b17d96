"""
Decoded message models - the output of the MIME decoder and the mailbox views built on it.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExtractedAttachment(CamelModel):
    """Attachment payload extracted from a MIME part."""

    filename: str = Field(description="Filename from the part headers")
    mime_type: str = Field(description="MIME type (Content-Type without parameters)")
    size_bytes: int = Field(description="Size estimated from the base64 length")
    payload_base64: str = Field(description="Base64 payload")


class DecodedMessage(CamelModel):
    """Display body and attachments decoded from a raw source."""

    body: str = Field(default="", description="HTML body if present, else plain text")
    attachments: List[ExtractedAttachment] = Field(
        default_factory=list, description="Extracted attachments"
    )


class MessageSummary(CamelModel):
    """One row of a folder listing."""

    id: str = Field(description="IMAP UID")
    thread_id: str = Field(description="Message-ID header, or the UID")
    snippet: str = Field(default="", description="Markup-stripped body preview")
    from_: str = Field(default="", alias="from", description="Formatted sender")
    subject: str = Field(default="")
    date: datetime = Field(description="Envelope date")
    label_ids: List[str] = Field(default_factory=list)
    is_unread: bool = Field(default=False)


class MessageDetail(CamelModel):
    """A single message with its decoded body and attachments."""

    id: str = Field(description="IMAP UID")
    thread_id: str = Field(description="Message-ID header, or the UID")
    from_: str = Field(default="", alias="from", description="Formatted sender")
    to: str = Field(default="", description="Formatted recipients")
    subject: str = Field(default="")
    date: datetime = Field(description="Envelope date")
    body: str = Field(default="")
    attachments: List[ExtractedAttachment] = Field(default_factory=list)
    label_ids: List[str] = Field(default_factory=list)
    is_unread: Optional[bool] = Field(default=None)


class Label(CamelModel):
    """An IMAP folder exposed as a label."""

    id: str = Field(description="Full folder path")
    name: str = Field(description="Last path component")
    type: str = Field(default="user")
