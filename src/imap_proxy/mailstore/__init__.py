# IMAP mail-store module

from .imap_session import FetchedMessage, Folder, ImapSession, open_session
from .mailbox import (
    get_message,
    list_labels,
    list_messages,
    move_message,
    safe_decode,
    set_read,
)

__all__ = [
    "ImapSession",
    "FetchedMessage",
    "Folder",
    "open_session",
    "list_messages",
    "get_message",
    "set_read",
    "list_labels",
    "move_message",
    "safe_decode",
]
