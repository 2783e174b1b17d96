# Message preview module

from .snippet import html_to_text, make_snippet, strip_html_tags

__all__ = [
    "make_snippet",
    "html_to_text",
    "strip_html_tags",
]
