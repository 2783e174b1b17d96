"""
IMAP mail-store session built on imapclient.

ImapSession is a context manager: entering connects and logs in, leaving logs
out. Every imapclient or socket failure is re-raised as MailStoreError.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog
from imapclient import IMAPClient
from imapclient.exceptions import IMAPClientError

from ..config import settings
from ..errors import MailStoreError, MessageNotFoundError
from ..models.api_models import ProxyRequest

logger = structlog.get_logger(__name__)

SEEN = b"\\Seen"


@dataclass
class FetchedMessage:
    """Raw fetch result for one UID."""

    uid: int
    envelope: Any
    flags: Tuple[bytes, ...] = ()
    source: bytes = b""

    @property
    def is_unread(self) -> bool:
        return SEEN not in self.flags


@dataclass
class Folder:
    path: str
    name: str
    flags: Tuple[bytes, ...] = field(default_factory=tuple)


def _source_from(data: Dict[bytes, Any]) -> bytes:
    # Partial fetches come back keyed as BODY[]<0>
    for key, value in data.items():
        if key.startswith(b"BODY[]") and value is not None:
            return value
    return b""


class ImapSession:
    """One authenticated IMAP connection with a selected folder."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        ssl: bool = True,
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.ssl = ssl
        self.timeout = timeout
        self.client: Optional[IMAPClient] = None
        self.logger = logger.bind(imap_host=host, imap_user=username)

    def __enter__(self) -> "ImapSession":
        try:
            self.client = IMAPClient(
                self.host, port=self.port, ssl=self.ssl, timeout=self.timeout
            )
            self.client.login(self.username, self.password)
        except (IMAPClientError, OSError) as e:
            self.logger.warning("IMAP login failed", error=str(e))
            if self.client is not None:
                self._shutdown()
            raise MailStoreError(
                f"IMAP connection to {self.host}:{self.port} failed: {e}",
                detail=type(e).__name__,
            ) from e
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.client is None:
            return
        try:
            self.client.logout()
        except (IMAPClientError, OSError) as e:
            self.logger.warning("IMAP logout failed", error=str(e))
            self._shutdown()
        finally:
            self.client = None

    def _shutdown(self) -> None:
        try:
            self.client.shutdown()
        except (IMAPClientError, OSError) as e:
            self.logger.debug("IMAP socket shutdown failed", error=str(e))

    def _require_client(self) -> IMAPClient:
        if self.client is None:
            raise MailStoreError("IMAP session is not open")
        return self.client

    def _call(self, description: str, func, *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (IMAPClientError, OSError) as e:
            raise MailStoreError(f"IMAP {description} failed: {e}", detail=type(e).__name__) from e

    def select(self, folder: str, readonly: bool = False) -> None:
        client = self._require_client()
        self._call("select", client.select_folder, folder, readonly=readonly)

    def fetch_all(self, preview_bytes: int) -> List[FetchedMessage]:
        """
        Fetch envelope, flags and the first ``preview_bytes`` of every message.

        Args:
            preview_bytes: Number of source bytes to fetch per message

        Returns:
            Fetched messages in UID order
        """
        client = self._require_client()
        uids = self._call("search", client.search, ["ALL"])
        if not uids:
            return []

        data = self._call(
            "fetch",
            client.fetch,
            uids,
            ["ENVELOPE", "FLAGS", f"BODY.PEEK[]<0.{preview_bytes}>"],
        )
        return [
            FetchedMessage(
                uid=uid,
                envelope=item.get(b"ENVELOPE"),
                flags=tuple(item.get(b"FLAGS", ())),
                source=_source_from(item),
            )
            for uid, item in sorted(data.items())
        ]

    def fetch_one(self, uid: int) -> FetchedMessage:
        """
        Fetch envelope, flags and full source of one message.

        Raises:
            MessageNotFoundError: If the UID does not exist
        """
        client = self._require_client()
        data = self._call("fetch", client.fetch, [uid], ["ENVELOPE", "FLAGS", "BODY.PEEK[]"])
        item = data.get(uid)
        if not item:
            raise MessageNotFoundError(f"Message {uid} not found")
        return FetchedMessage(
            uid=uid,
            envelope=item.get(b"ENVELOPE"),
            flags=tuple(item.get(b"FLAGS", ())),
            source=_source_from(item),
        )

    def add_flags(self, uid: int, flags: Sequence[bytes]) -> None:
        client = self._require_client()
        self._call("store", client.add_flags, [uid], list(flags))

    def remove_flags(self, uid: int, flags: Sequence[bytes]) -> None:
        client = self._require_client()
        self._call("store", client.remove_flags, [uid], list(flags))

    def move(self, uid: int, destination: str) -> None:
        """Move a message, falling back to COPY + delete where MOVE is unsupported."""
        client = self._require_client()
        if self._call("capability", client.has_capability, "MOVE"):
            self._call("move", client.move, [uid], destination)
            return
        self._call("copy", client.copy, [uid], destination)
        self._call("delete", client.delete_messages, [uid])
        self._call("expunge", client.expunge)

    def list_folders(self) -> List[Folder]:
        client = self._require_client()
        folders = []
        for flags, delimiter, path in self._call("list", client.list_folders):
            separator = delimiter.decode() if isinstance(delimiter, bytes) else delimiter
            name = path.rsplit(separator, 1)[-1] if separator else path
            folders.append(Folder(path=path, name=name, flags=tuple(flags)))
        return folders


def open_session(request: ProxyRequest) -> ImapSession:
    """Build an (unopened) session for the account carried by a proxy request."""
    return ImapSession(
        host=request.imap_host,
        port=request.imap_port or settings.imap_default_port,
        username=request.imap_username,
        password=request.imap_password,
        ssl=request.use_ssl is not False,
        timeout=settings.imap_timeout_seconds,
    )
