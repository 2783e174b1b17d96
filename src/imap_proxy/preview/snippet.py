"""
Snippet generation for folder listings.

Bodies resolved by the MIME decoder may be HTML; they are converted to text
using html2text before being collapsed and truncated.
"""

import html as html_module
import re

import html2text

_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")
_MARKDOWN_MARKER = re.compile(r"^[ \t]*(?:[*#>-]+|\d+\.)[ \t]+", re.MULTILINE)


def html_to_text(html: str) -> str:
    """
    Convert an HTML body to plain text.

    Args:
        html: HTML content

    Returns:
        Plain text representation
    """
    if not html:
        return ""

    h = html2text.HTML2Text()
    h.ignore_links = True
    h.ignore_images = True
    h.ignore_emphasis = True
    h.ignore_tables = True
    h.body_width = 0  # Don't wrap lines
    h.unicode_snob = True

    try:
        return h.handle(html).strip()
    except Exception:
        # html2text chokes on some malformed markup
        return strip_html_tags(html)


def strip_html_tags(html: str) -> str:
    """
    Simple HTML tag stripping (fallback if html2text fails).

    Args:
        html: HTML content

    Returns:
        Text with tags replaced by spaces and entities decoded
    """
    if not html:
        return ""

    html = re.sub(r"<script[^>]*>.*?</script>", " ", html, flags=re.DOTALL | re.IGNORECASE)
    html = re.sub(r"<style[^>]*>.*?</style>", " ", html, flags=re.DOTALL | re.IGNORECASE)
    text = _TAG.sub(" ", html)
    text = html_module.unescape(text)
    return _WHITESPACE.sub(" ", text).strip()


def make_snippet(body: str, max_length: int = 200) -> str:
    """
    Build a one-line preview of a message body.

    Args:
        body: Resolved body (HTML or plain text)
        max_length: Maximum snippet length in characters

    Returns:
        Markup-free, whitespace-collapsed, truncated text
    """
    if not body:
        return ""

    text = body
    if _TAG.search(body):
        # html2text leaves markdown list/heading markers behind
        text = _MARKDOWN_MARKER.sub("", html_to_text(body))
    text = _WHITESPACE.sub(" ", text).strip()
    return text[:max_length]
