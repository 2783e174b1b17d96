"""
Attachment extraction over a MimePart tree.

Classification is a best-effort heuristic: explicit ``attachment``
dispositions, named non-text parts, and named inline parts (inline images) are
all collected.
"""

import base64
import re
from typing import List, Optional

from ..models.message import ExtractedAttachment
from .splitter import MimePart, RawSource, parse_mime
from .transfer_encoding import bytes_to_text, strip_whitespace

DEFAULT_FILENAME = "attachment"
DEFAULT_MIME_TYPE = "application/octet-stream"

_FILENAME_TOKEN = re.compile(r"filename=", re.IGNORECASE)
_FILENAME = re.compile(r'filename="([^"]*)"|filename=([^;\r\n]+)', re.IGNORECASE)
_BODY_TYPES = ("text/plain", "text/html")


def find_filename(headers: str) -> Optional[str]:
    """First ``filename=`` value in the header block, original case preserved."""
    match = _FILENAME.search(headers)
    if not match:
        return None
    value = match.group(1) if match.group(1) is not None else match.group(2)
    return value.strip() or None


def decode_filename(headers: str) -> str:
    """Filename of a part as text, raw 8-bit header bytes decoded like a body."""
    name = find_filename(headers)
    if not name:
        return DEFAULT_FILENAME
    return bytes_to_text(name.encode("latin-1", errors="replace"))


def is_attachment_part(part: MimePart) -> bool:
    """
    Decide whether a leaf part is an attachment.

    Args:
        part: Leaf part

    Returns:
        True for attachment dispositions, for named parts that are not
        text/plain or text/html, and for named inline parts
    """
    disposition = (part.disposition or "").lower()
    if "attachment" in disposition:
        return True

    has_filename = _FILENAME_TOKEN.search(part.headers) is not None
    mime_type = (part.mime_type or "").lower()
    if has_filename and mime_type not in _BODY_TYPES:
        return True

    return has_filename and disposition.split(";", 1)[0].strip() == "inline"


def estimate_size(payload_base64: str) -> int:
    """Declared size from the base64 length: ceil(len * 3 / 4), padding included."""
    return (len(payload_base64) * 3 + 3) // 4


def encode_payload(part: MimePart) -> str:
    """
    Base64 payload of a part.

    Base64 parts keep their original text (whitespace removed); anything else
    holds one character per source byte and is encoded as latin-1 bytes.
    """
    encoding = (part.transfer_encoding or "").lower()
    if encoding == "base64":
        return strip_whitespace(part.content)

    raw = part.content.encode("latin-1", errors="replace")
    return base64.b64encode(raw).decode("ascii")


def extract_attachment(part: MimePart) -> ExtractedAttachment:
    payload = encode_payload(part)
    return ExtractedAttachment(
        filename=decode_filename(part.headers),
        mime_type=part.mime_type or DEFAULT_MIME_TYPE,
        size_bytes=estimate_size(payload),
        payload_base64=payload,
    )


def collect_part_attachments(part: MimePart) -> List[ExtractedAttachment]:
    """
    Collect attachments from a parsed tree, outer-to-inner in source order.

    Args:
        part: Root or nested part

    Returns:
        Extracted attachments
    """
    if not part.is_multipart:
        if is_attachment_part(part):
            return [extract_attachment(part)]
        return []

    attachments: List[ExtractedAttachment] = []
    for child in part.children:
        attachments.extend(collect_part_attachments(child))
    return attachments


def collect_attachments(source: RawSource) -> List[ExtractedAttachment]:
    """
    Extract every attachment from a raw message source.

    Args:
        source: Raw RFC-822 source

    Returns:
        Attachments in the order they appear in the source
    """
    return collect_part_attachments(parse_mime(source))
