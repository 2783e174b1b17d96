"""
Exception hierarchy for failures surfaced to API callers.

Decoding never raises; these cover the mail-store and transport collaborators.
"""

from typing import Optional


class ProxyError(Exception):
    """Base class for errors reported to the caller with a descriptive message."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class MailStoreError(ProxyError):
    """IMAP connection, authentication or command failure."""


class MessageNotFoundError(MailStoreError):
    """Requested UID does not exist in the selected folder."""


class TransportError(ProxyError):
    """SMTP connection, authentication or delivery failure."""
