"""
Boundary splitting of raw MIME sources into a tree of parts.

Header blocks are treated as opaque text and scanned with regular expressions;
they are never parsed into key/value pairs.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

RawSource = Union[bytes, str]

# Multiparts nested deeper than this are kept as childless leaves
MAX_DEPTH = 32

_BOUNDARY = re.compile(r'boundary="?([^";\r\n]+)"?', re.IGNORECASE)
_BLANK_LINE = re.compile(r"\r?\n\r?\n")
_LEADING_LINE_BREAK = re.compile(r"\A\r?\n")
_DELIMITER_LINE_REST = re.compile(r"\A[ \t]*(?:\r?\n|\Z)")

_CONTENT_TYPE = re.compile(r"^content-type:[ \t]*([^\r\n]*)", re.IGNORECASE | re.MULTILINE)
_TRANSFER_ENCODING = re.compile(
    r"^content-transfer-encoding:\s*(\S+)", re.IGNORECASE | re.MULTILINE
)
_DISPOSITION = re.compile(r"^content-disposition:[ \t]*([^\r\n]*)", re.IGNORECASE | re.MULTILINE)


def to_text(raw: RawSource) -> str:
    """
    Map a raw source to text holding one character per source byte.

    Bytes are read as latin-1, which is lossless, so 8bit and binary parts
    keep their exact bytes. Text sources are first encoded as UTF-8 to land in
    the same representation.
    """
    if isinstance(raw, str):
        raw = raw.encode("utf-8", errors="replace")
    return raw.decode("latin-1")


def find_boundary(headers: str) -> Optional[str]:
    """
    Find the multipart boundary token declared in a header block.

    Args:
        headers: Header text governing the body

    Returns:
        Boundary token, or None for a non-multipart entity
    """
    match = _BOUNDARY.search(headers)
    if not match:
        return None
    boundary = match.group(1).strip()
    return boundary or None


def split_header_block(text: str) -> Optional[Tuple[str, str]]:
    """
    Split an entity at its first blank line.

    Args:
        text: Header block followed by content

    Returns:
        (headers, content), or None when no blank line separates them
    """
    leading = _LEADING_LINE_BREAK.match(text)
    if leading:
        return "", text[leading.end():]

    match = _BLANK_LINE.search(text)
    if not match:
        return None
    return text[: match.start()], text[match.end():]


def header_value(headers: str, pattern: "re.Pattern[str]") -> Optional[str]:
    match = pattern.search(headers)
    if not match:
        return None
    return match.group(1).strip()


@dataclass
class MimePart:
    """A MIME entity: its header block, raw content and, if multipart, its children."""

    headers: str
    content: str
    children: List["MimePart"] = field(default_factory=list)

    @property
    def boundary(self) -> Optional[str]:
        return find_boundary(self.headers)

    @property
    def is_multipart(self) -> bool:
        return self.boundary is not None

    @property
    def content_type(self) -> Optional[str]:
        """Full Content-Type header value, parameters included."""
        return header_value(self.headers, _CONTENT_TYPE)

    @property
    def mime_type(self) -> Optional[str]:
        """Content-Type value up to the first ``;``."""
        content_type = self.content_type
        if not content_type:
            return None
        return content_type.split(";", 1)[0].strip() or None

    @property
    def transfer_encoding(self) -> Optional[str]:
        return header_value(self.headers, _TRANSFER_ENCODING)

    @property
    def disposition(self) -> Optional[str]:
        return header_value(self.headers, _DISPOSITION)


def _delimiter_pattern(boundary: str) -> "re.Pattern[str]":
    # A delimiter starts a line; the line break before it belongs to the delimiter
    return re.compile(
        r"(?:\A|\r?\n)--" + re.escape(boundary) + r"(?=--|[ \t]*(?:\r?\n|\Z))"
    )


def split_multipart(body: str, boundary: str, depth: int = 1) -> List[MimePart]:
    """
    Split a multipart body into its child parts.

    The preamble, whitespace-only segments and the closing delimiter (with any
    epilogue) are discarded; segments without a blank line are skipped.

    Args:
        body: Content following the governing header block
        boundary: Boundary token from the governing header block

    Returns:
        Child parts in source order, nested multiparts already split
    """
    segments = _delimiter_pattern(boundary).split(body)
    parts = []

    # segments[0] is the preamble
    for segment in segments[1:]:
        if segment.startswith("--") or not segment.strip():
            continue

        segment = _DELIMITER_LINE_REST.sub("", segment, count=1)
        split = split_header_block(segment)
        if split is None:
            continue

        headers, content = split
        parts.append(_build_part(headers, content, depth))

    return parts


def _build_part(headers: str, content: str, depth: int) -> MimePart:
    part = MimePart(headers=headers, content=content)
    boundary = part.boundary
    if boundary and depth < MAX_DEPTH:
        part.children = split_multipart(content, boundary, depth + 1)
    return part


def parse_mime(raw: RawSource) -> MimePart:
    """
    Parse a raw message source into a MimePart tree.

    Args:
        raw: Full or truncated RFC-822 source

    Returns:
        Root part; a source with no blank line is a leaf with empty content
    """
    text = to_text(raw)
    split = split_header_block(text)
    if split is None:
        return MimePart(headers=text, content="")

    headers, content = split
    return _build_part(headers, content, 0)
