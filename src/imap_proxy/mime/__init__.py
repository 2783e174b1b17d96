# MIME decoding module

from .attachments import (
    collect_attachments,
    collect_part_attachments,
    extract_attachment,
    is_attachment_part,
)
from .body import BodyCandidates, collect_body_candidates, select_body, select_part_body
from .decoder import decode_message
from .splitter import MimePart, find_boundary, parse_mime, split_header_block, split_multipart
from .transfer_encoding import decode_part, decode_part_bytes

__all__ = [
    "decode_part",
    "decode_part_bytes",
    "MimePart",
    "find_boundary",
    "split_header_block",
    "split_multipart",
    "parse_mime",
    "BodyCandidates",
    "collect_body_candidates",
    "select_body",
    "select_part_body",
    "is_attachment_part",
    "extract_attachment",
    "collect_attachments",
    "collect_part_attachments",
    "decode_message",
]
