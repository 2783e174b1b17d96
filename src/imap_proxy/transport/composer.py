"""
Outbound message composition and delivery through the transporter cache.
"""

import base64
import binascii
from email.message import EmailMessage
from email.utils import formataddr, formatdate, make_msgid, parseaddr
from typing import List, Optional

import structlog

from ..config import settings
from ..errors import TransportError
from ..models.api_models import OutgoingAttachment, ProxyRequest
from .cache import TransporterCache

logger = structlog.get_logger(__name__)


def format_sender(email: str, display_name: Optional[str] = None) -> str:
    if display_name:
        return formataddr((display_name, email))
    return email


def compose_message(
    sender: str,
    to: str,
    subject: str,
    body: str = "",
    in_reply_to: Optional[str] = None,
    attachments: Optional[List[OutgoingAttachment]] = None,
) -> EmailMessage:
    """
    Build a plain-text message ready for delivery.

    Args:
        sender: Formatted From address
        to: Recipient list as a header value
        subject: Subject line
        body: Plain-text body
        in_reply_to: Message-ID being answered (sets In-Reply-To and References)
        attachments: Base64 attachments to add

    Returns:
        Composed EmailMessage

    Raises:
        TransportError: If an attachment payload is not valid base64
    """
    message = EmailMessage()
    message["From"] = sender
    message["To"] = to
    message["Subject"] = subject
    message["Date"] = formatdate(localtime=True)
    message["Message-ID"] = make_msgid(domain=parseaddr(sender)[1].partition("@")[2] or None)
    if in_reply_to:
        message["In-Reply-To"] = in_reply_to
        message["References"] = in_reply_to
    message.set_content(body or "")

    for attachment in attachments or []:
        try:
            payload = base64.b64decode(attachment.content_base64, validate=False)
        except (binascii.Error, ValueError) as e:
            raise TransportError(
                f"Attachment {attachment.filename!r} is not valid base64",
                detail=str(e),
            ) from e
        maintype, _, subtype = attachment.mime_type.partition("/")
        message.add_attachment(
            payload,
            maintype=maintype or "application",
            subtype=subtype or "octet-stream",
            filename=attachment.filename,
        )

    return message


def send_email(cache: TransporterCache, request: ProxyRequest) -> Optional[str]:
    """
    Compose and send the message described by a proxy request.

    SMTP credentials default to the account address and IMAP password; implicit
    TLS is used on port 465.

    Args:
        cache: Transporter cache providing the send handle
        request: Proxy request carrying account and message fields

    Returns:
        Message-ID of the sent message
    """
    port = request.smtp_port or settings.smtp_default_port
    username = request.smtp_username or request.email or request.imap_username
    password = request.smtp_password or request.imap_password
    sender_address = request.email or username

    if not request.smtp_host:
        raise TransportError("SMTP host is not configured")

    message = compose_message(
        sender=format_sender(sender_address, request.display_name),
        to=request.to,
        subject=request.subject,
        body=request.body or "",
        in_reply_to=request.in_reply_to,
        attachments=request.attachments,
    )

    transport = cache.get_or_create(
        request.smtp_host, port, username, password, secure=port == 465
    )
    logger.info(
        "Sending email",
        smtp_host=request.smtp_host,
        attachments_count=len(request.attachments or []),
    )
    return transport.send_message(message)
