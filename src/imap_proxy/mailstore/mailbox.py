"""
Mailbox operations behind the proxy actions.

Each function opens its own IMAP session, works on the configured folder and
logs out. Decoding of each message is guarded so one malformed message only
degrades its own body/snippet/attachments.
"""

from datetime import datetime, timezone
from email.header import decode_header, make_header
from typing import Any, Callable, List, Optional, Sequence

import structlog

from ..config import settings
from ..mime import decode_message
from ..mime.splitter import RawSource
from ..models.api_models import ProxyRequest
from ..models.message import DecodedMessage, Label, MessageDetail, MessageSummary
from ..preview import make_snippet
from .imap_session import SEEN, FetchedMessage, ImapSession, open_session

logger = structlog.get_logger(__name__)

SessionFactory = Callable[[ProxyRequest], ImapSession]


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    return str(value)


def decode_header_text(value: Any) -> str:
    """Decode RFC 2047 encoded-words in an envelope field."""
    raw = _text(value)
    if not raw:
        return ""
    try:
        return str(make_header(decode_header(raw)))
    except (LookupError, UnicodeDecodeError, ValueError):
        return raw


def format_address(address: Any) -> str:
    """Format an envelope address as ``Name <mailbox@host>`` or the bare address."""
    mailbox = _text(getattr(address, "mailbox", None))
    host = _text(getattr(address, "host", None))
    email = f"{mailbox}@{host}" if mailbox and host else mailbox
    name = decode_header_text(getattr(address, "name", None))
    if name:
        return f"{name} <{email}>"
    return email


def format_address_list(addresses: Optional[Sequence[Any]]) -> str:
    if not addresses:
        return ""
    return ", ".join(format_address(a) for a in addresses)


def format_first_address(addresses: Optional[Sequence[Any]]) -> str:
    if not addresses:
        return ""
    return format_address(addresses[0])


def to_utc(value: Optional[datetime]) -> datetime:
    """Envelope date in UTC; missing dates become now."""
    if value is None:
        return datetime.now(timezone.utc)
    return value.astimezone(timezone.utc)


def safe_decode(source: RawSource, uid: int) -> DecodedMessage:
    """Decode a message, degrading to an empty result on any parsing anomaly."""
    if not source:
        return DecodedMessage()
    try:
        return decode_message(source)
    except Exception as e:
        logger.warning("Message decoding failed", uid=uid, error=str(e), exc_info=True)
        return DecodedMessage()


def _thread_id(message: FetchedMessage) -> str:
    envelope = message.envelope
    message_id = _text(getattr(envelope, "message_id", None))
    return message_id or str(message.uid)


def build_summary(message: FetchedMessage, snippet_length: int) -> MessageSummary:
    envelope = message.envelope
    decoded = safe_decode(message.source, message.uid)
    return MessageSummary(
        id=str(message.uid),
        thread_id=_thread_id(message),
        snippet=make_snippet(decoded.body, max_length=snippet_length),
        from_=format_first_address(getattr(envelope, "from_", None)),
        subject=decode_header_text(getattr(envelope, "subject", None)),
        date=to_utc(getattr(envelope, "date", None)),
        label_ids=[],
        is_unread=message.is_unread,
    )


def build_detail(message: FetchedMessage) -> MessageDetail:
    envelope = message.envelope
    decoded = safe_decode(message.source, message.uid)

    attachments = decoded.attachments
    if len(attachments) > settings.max_attachments:
        logger.warning(
            "Too many attachments",
            uid=message.uid,
            count=len(attachments),
            limit=settings.max_attachments,
        )
        attachments = attachments[: settings.max_attachments]

    return MessageDetail(
        id=str(message.uid),
        thread_id=_thread_id(message),
        from_=format_first_address(getattr(envelope, "from_", None)),
        to=format_address_list(getattr(envelope, "to", None)),
        subject=decode_header_text(getattr(envelope, "subject", None)),
        date=to_utc(getattr(envelope, "date", None)),
        body=decoded.body,
        attachments=attachments,
        label_ids=[],
        is_unread=message.is_unread,
    )


def list_messages(
    request: ProxyRequest,
    max_results: Optional[int] = None,
    session_factory: Optional[SessionFactory] = None,
) -> List[MessageSummary]:
    """
    List folder messages newest first with body snippets.

    Args:
        request: Proxy request with IMAP credentials
        max_results: Maximum number of summaries returned
        session_factory: Builds the IMAP session

    Returns:
        Message summaries sorted by date, newest first
    """
    limit = max_results or settings.list_default_max_results
    with (session_factory or open_session)(request) as session:
        session.select(settings.imap_folder, readonly=True)
        fetched = session.fetch_all(settings.preview_max_bytes)

    summaries = [build_summary(m, settings.snippet_max_length) for m in fetched]
    summaries.sort(key=lambda s: s.date, reverse=True)

    logger.info("Messages listed", total=len(summaries), returned=min(limit, len(summaries)))
    return summaries[:limit]


def get_message(
    request: ProxyRequest,
    uid: int,
    session_factory: Optional[SessionFactory] = None,
) -> MessageDetail:
    """
    Fetch one message with its decoded body and attachments.

    Raises:
        MessageNotFoundError: If the UID does not exist
    """
    with (session_factory or open_session)(request) as session:
        session.select(settings.imap_folder, readonly=True)
        fetched = session.fetch_one(uid)

    detail = build_detail(fetched)
    logger.info(
        "Message fetched",
        uid=uid,
        source_bytes=len(fetched.source),
        attachments_count=len(detail.attachments),
    )
    return detail


def set_read(
    request: ProxyRequest,
    uid: int,
    read: bool,
    session_factory: Optional[SessionFactory] = None,
) -> None:
    """Add or remove the \\Seen flag."""
    with (session_factory or open_session)(request) as session:
        session.select(settings.imap_folder)
        if read:
            session.add_flags(uid, [SEEN])
        else:
            session.remove_flags(uid, [SEEN])
    logger.info("Read flag updated", uid=uid, read=read)


def list_labels(
    request: ProxyRequest,
    session_factory: Optional[SessionFactory] = None,
) -> List[Label]:
    """List every folder of the account as a label."""
    with (session_factory or open_session)(request) as session:
        folders = session.list_folders()
    return [Label(id=f.path, name=f.name, type="user") for f in folders]


def move_message(
    request: ProxyRequest,
    uid: int,
    destination: str,
    session_factory: Optional[SessionFactory] = None,
) -> None:
    """Move a message out of the configured folder."""
    with (session_factory or open_session)(request) as session:
        session.select(settings.imap_folder)
        session.move(uid, destination)
    logger.info("Message moved", uid=uid, destination=destination)
