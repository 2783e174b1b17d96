"""
Pooled SMTP send session.

A PooledSmtpTransport keeps up to ``max_connections`` authenticated SMTP
connections for one account and recycles each connection after
``max_messages`` deliveries. Connections are opened lazily on first send.
"""

import smtplib
import ssl
import threading
from email.message import EmailMessage
from typing import List, Optional

import structlog

from ..errors import TransportError

logger = structlog.get_logger(__name__)


class _PooledConnection:
    def __init__(self, client: smtplib.SMTP):
        self.client = client
        self.sent = 0

    def quit(self) -> None:
        try:
            self.client.quit()
        except (smtplib.SMTPException, OSError):
            self.client.close()


class PooledSmtpTransport:
    """
    Thread-safe pool of SMTP connections sharing one set of credentials.

    Timeouts:
    - connection_timeout: TCP connect and server banner
    - greeting_timeout: EHLO, STARTTLS and AUTH exchange
    - socket_timeout: every command once the session is established
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        secure: Optional[bool] = None,
        max_connections: int = 5,
        max_messages: int = 100,
        connection_timeout: float = 10.0,
        greeting_timeout: float = 10.0,
        socket_timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.secure = port == 465 if secure is None else secure
        self.max_connections = max_connections
        self.max_messages = max_messages
        self.connection_timeout = connection_timeout
        self.greeting_timeout = greeting_timeout
        self.socket_timeout = socket_timeout

        self._slots = threading.BoundedSemaphore(max_connections)
        self._idle: List[_PooledConnection] = []
        self._lock = threading.Lock()
        self._closed = False

        self.logger = logger.bind(smtp_host=host, smtp_port=port, smtp_user=username)

    @property
    def closed(self) -> bool:
        return self._closed

    def _open(self) -> _PooledConnection:
        context = ssl.create_default_context()
        if self.secure:
            client = smtplib.SMTP_SSL(timeout=self.connection_timeout, context=context)
        else:
            client = smtplib.SMTP(timeout=self.connection_timeout)

        try:
            client.connect(self.host, self.port)
            client.sock.settimeout(self.greeting_timeout)
            client.ehlo()
            if not self.secure and client.has_extn("starttls"):
                client.starttls(context=context)
                client.ehlo()
            if self.username:
                client.login(self.username, self.password)
            client.sock.settimeout(self.socket_timeout)
        except (smtplib.SMTPException, OSError) as e:
            client.close()
            raise TransportError(
                f"SMTP connection to {self.host}:{self.port} failed: {e}",
                detail=type(e).__name__,
            ) from e

        self.logger.debug("SMTP connection opened")
        return _PooledConnection(client)

    def _checkout(self) -> Optional[_PooledConnection]:
        with self._lock:
            if self._idle:
                return self._idle.pop()
        return None

    def _checkin(self, connection: _PooledConnection) -> None:
        with self._lock:
            if not self._closed and connection.sent < self.max_messages:
                self._idle.append(connection)
                return
        connection.quit()

    def send_message(self, message: EmailMessage) -> Optional[str]:
        """
        Deliver a message over a pooled connection.

        A transport closed while the caller still holds it keeps working: the
        send runs on a fresh connection, which is quit on check-in.

        Args:
            message: Fully composed message

        Returns:
            The Message-ID header of the delivered message

        Raises:
            TransportError: If delivery fails
        """
        with self._slots:
            connection = self._checkout()
            reused = connection is not None
            if connection is None:
                connection = self._open()

            try:
                connection.client.send_message(message)
            except smtplib.SMTPServerDisconnected as e:
                connection.client.close()
                if not reused:
                    raise TransportError("SMTP server closed the connection") from e
                # Idle connection went stale; retry once on a fresh one
                connection = self._open()
                self._deliver(connection, message)
            except (smtplib.SMTPException, OSError) as e:
                connection.client.close()
                raise TransportError(
                    f"SMTP delivery failed: {e}",
                    detail=type(e).__name__,
                ) from e

            connection.sent += 1
            self._checkin(connection)

        self.logger.info(
            "Message sent",
            message_id=message.get("Message-ID"),
            recipients=message.get("To"),
        )
        return message.get("Message-ID")

    def _deliver(self, connection: _PooledConnection, message: EmailMessage) -> None:
        try:
            connection.client.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            connection.client.close()
            raise TransportError(f"SMTP delivery failed: {e}", detail=type(e).__name__) from e

    def close(self) -> None:
        """Close every idle connection; in-flight connections close on check-in."""
        with self._lock:
            self._closed = True
            idle, self._idle = self._idle, []

        for connection in idle:
            connection.quit()
        self.logger.debug("SMTP transport closed", connections_closed=len(idle))
