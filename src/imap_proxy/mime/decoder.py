"""
Message decoding facade: one parse, body and attachments together.
"""

import structlog

from ..models.message import DecodedMessage
from .attachments import collect_part_attachments
from .body import select_part_body
from .splitter import RawSource, parse_mime

logger = structlog.get_logger(__name__)


def decode_message(source: RawSource) -> DecodedMessage:
    """
    Decode a raw source into its display body and attachments.

    Args:
        source: Raw RFC-822 source as fetched from the mail store

    Returns:
        DecodedMessage with body and attachments
    """
    root = parse_mime(source)
    body = select_part_body(root)
    attachments = collect_part_attachments(root)

    logger.debug(
        "Message decoded",
        multipart=root.is_multipart,
        parts_count=len(root.children),
        body_length=len(body),
        attachments_count=len(attachments),
    )

    return DecodedMessage(body=body, attachments=attachments)
