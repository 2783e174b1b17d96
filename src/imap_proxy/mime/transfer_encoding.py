"""
Content-Transfer-Encoding decoding for individual MIME parts.

All functions here are total: malformed input falls back to the original text
instead of raising.
"""

import base64
import binascii
import re
from typing import Optional

import charset_normalizer

_WHITESPACE = re.compile(r"\s+")
_SOFT_LINE_BREAK = re.compile(r"=\r?\n")
_HEX_ESCAPE = re.compile(r"=([0-9A-Fa-f]{2})")


def strip_whitespace(text: str) -> str:
    """Remove every whitespace character (base64 bodies are line-wrapped)."""
    return _WHITESPACE.sub("", text)


def bytes_to_text(payload: bytes) -> str:
    """
    Turn decoded payload bytes into text.

    Args:
        payload: Raw decoded bytes

    Returns:
        UTF-8 text, else the charset-normalizer best guess, else UTF-8 with
        replacement characters
    """
    try:
        return payload.decode("utf-8")
    except UnicodeDecodeError:
        pass

    detected = charset_normalizer.from_bytes(payload).best()
    if detected:
        return str(detected)

    return payload.decode("utf-8", errors="replace")


def _base64_payload(content: str) -> Optional[bytes]:
    compact = strip_whitespace(content)
    # Tolerate missing trailing padding
    compact += "=" * (-len(compact) % 4)
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError):
        return None


def decode_base64(content: str) -> str:
    """
    Decode base64 content, returning the input unchanged if it is not valid base64.

    Args:
        content: Base64 text, possibly wrapped over several lines

    Returns:
        Decoded text or the original content
    """
    payload = _base64_payload(content)
    if payload is None:
        return content
    return bytes_to_text(payload)


def decode_quoted_printable(content: str) -> str:
    """
    Decode quoted-printable content.

    Soft line breaks are removed first, then each ``=XX`` escape becomes the
    single character with that byte value.

    Args:
        content: Quoted-printable text

    Returns:
        Decoded text, one character per escaped byte
    """
    joined = _SOFT_LINE_BREAK.sub("", content)
    return _HEX_ESCAPE.sub(lambda m: chr(int(m.group(1), 16)), joined)


def decode_part(content: str, encoding: Optional[str]) -> str:
    """
    Decode a part's raw content according to its Content-Transfer-Encoding.

    Args:
        content: Raw part content
        encoding: Header value (``base64``, ``quoted-printable``, ...) or None

    Returns:
        Decoded content; unknown or absent encodings return content unchanged
    """
    if not encoding:
        return content

    encoding = encoding.strip().lower()
    if encoding == "base64":
        return decode_base64(content)
    if encoding == "quoted-printable":
        return decode_quoted_printable(content)
    return content


def decode_part_bytes(content: str, encoding: Optional[str]) -> bytes:
    """
    Decode a part held as one character per source byte into payload bytes.

    Args:
        content: Raw part content as produced by the splitter
        encoding: Content-Transfer-Encoding header value or None

    Returns:
        Decoded bytes; undecodable base64 yields the raw bytes
    """
    raw = content.encode("latin-1", errors="replace")
    encoding = (encoding or "").strip().lower()
    if encoding == "base64":
        payload = _base64_payload(content)
        return raw if payload is None else payload
    if encoding == "quoted-printable":
        return decode_quoted_printable(content).encode("latin-1", errors="replace")
    return raw
