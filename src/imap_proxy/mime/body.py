"""
Display body selection over a MimePart tree.

HTML is preferred over plain text, mirroring how mail clients render. Each
recursion level returns its own BodyCandidates pair which the caller merges,
so no state is shared between levels.
"""

from dataclasses import dataclass, replace

from .splitter import MimePart, RawSource, parse_mime
from .transfer_encoding import bytes_to_text, decode_part_bytes


@dataclass(frozen=True)
class BodyCandidates:
    """First HTML and first plain-text body found at one tree level."""

    html: str = ""
    text: str = ""

    def offer_html(self, value: str) -> "BodyCandidates":
        if self.html or not value:
            return self
        return replace(self, html=value)

    def offer_text(self, value: str) -> "BodyCandidates":
        if self.text or not value:
            return self
        return replace(self, text=value)

    def resolve(self) -> str:
        return self.html or self.text or ""


def decode_leaf(part: MimePart) -> str:
    """Decode a leaf part's content using its own Content-Transfer-Encoding."""
    return bytes_to_text(decode_part_bytes(part.content, part.transfer_encoding))


def collect_body_candidates(part: MimePart) -> BodyCandidates:
    """
    Collect body candidates from the children of a multipart part.

    Args:
        part: Multipart node

    Returns:
        Candidates for this level; nested multiparts contribute their resolved
        body as HTML when it contains ``<``, else as plain text
    """
    candidates = BodyCandidates()

    for child in part.children:
        if child.is_multipart:
            nested = collect_body_candidates(child).resolve()
            if "<" in nested:
                candidates = candidates.offer_html(nested)
            else:
                candidates = candidates.offer_text(nested)
            continue

        content_type = (child.content_type or "").lower()
        if "text/html" in content_type:
            candidates = candidates.offer_html(decode_leaf(child))
        elif "text/plain" in content_type:
            candidates = candidates.offer_text(decode_leaf(child))

    return candidates


def select_part_body(root: MimePart) -> str:
    """Resolve the display body of an already parsed tree."""
    if not root.is_multipart:
        return decode_leaf(root).strip()
    return collect_body_candidates(root).resolve()


def select_body(source: RawSource) -> str:
    """
    Extract the best display body from a raw message source.

    Args:
        source: Raw (possibly truncated) RFC-822 source

    Returns:
        HTML body if present, else plain text, else empty string
    """
    return select_part_body(parse_mime(source))
