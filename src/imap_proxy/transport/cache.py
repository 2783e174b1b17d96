"""
TTL cache of outbound send-session handles.

Repeated sends with the same (host, port, user) reuse one pooled transport for
up to ``ttl_seconds``. Expired entries are replaced lazily on the next lookup
of the same key; there is no background sweep and no size limit.
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

import structlog

from ..config import settings
from .smtp_pool import PooledSmtpTransport

logger = structlog.get_logger(__name__)

CacheKey = Tuple[str, int, str]
TransportFactory = Callable[..., Any]


def build_transport(
    host: str,
    port: int,
    username: str,
    password: str,
    secure: Optional[bool] = None,
) -> PooledSmtpTransport:
    """Create a pooled transport using the configured pool limits and timeouts."""
    return PooledSmtpTransport(
        host=host,
        port=port,
        username=username,
        password=password,
        secure=secure,
        max_connections=settings.smtp_pool_max_connections,
        max_messages=settings.smtp_pool_max_messages,
        connection_timeout=settings.smtp_connection_timeout_seconds,
        greeting_timeout=settings.smtp_greeting_timeout_seconds,
        socket_timeout=settings.smtp_socket_timeout_seconds,
    )


@dataclass
class TransporterCacheEntry:
    handle: Any
    created_at: float


class TransporterCache:
    """
    Process-local cache of send handles keyed by (host, port, user).

    Lookups of one key are serialized by a per-key lock, so at most one live
    handle exists per key and a superseded handle is always closed before its
    replacement is stored. The cache-wide lock only guards the dictionaries;
    closing and creating handles happen outside it, so a slow SMTP QUIT for one
    key never stalls lookups of another.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        factory: Optional[TransportFactory] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._factory = factory or build_transport
        self._clock = clock
        self._entries: Dict[CacheKey, TransporterCacheEntry] = {}
        self._key_locks: Dict[CacheKey, threading.Lock] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def _key_lock(self, key: CacheKey) -> threading.Lock:
        with self._lock:
            return self._key_locks.setdefault(key, threading.Lock())

    def get_or_create(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        secure: Optional[bool] = None,
    ) -> Any:
        """
        Return the live handle for (host, port, user), creating one if needed.

        Args:
            host: SMTP host
            port: SMTP port
            user: SMTP username
            password: SMTP password (not part of the key)
            secure: Implicit TLS; defaults to port 465

        Returns:
            Send-session handle
        """
        key = (host, port, user)

        with self._key_lock(key):
            now = self._clock()
            with self._lock:
                entry = self._entries.get(key)
                if entry is not None and now - entry.created_at < self.ttl_seconds:
                    return entry.handle
                if entry is not None:
                    del self._entries[key]

            if entry is not None:
                self._close_handle(key, entry.handle)

            handle = self._factory(
                host=host, port=port, username=user, password=password, secure=secure
            )
            with self._lock:
                self._entries[key] = TransporterCacheEntry(handle=handle, created_at=now)

        logger.info(
            "Transporter created",
            smtp_host=host,
            smtp_port=port,
            smtp_user=user,
            replaced_expired=entry is not None,
        )
        return handle

    def shutdown_all(self) -> None:
        """Close and drop every cached handle."""
        with self._lock:
            entries, self._entries = self._entries, {}

        for key, entry in entries.items():
            self._close_handle(key, entry.handle)

        if entries:
            logger.info("Transporter cache shut down", handles_closed=len(entries))

    @staticmethod
    def _close_handle(key: CacheKey, handle: Any) -> None:
        try:
            handle.close()
        except Exception as e:
            logger.warning(
                "Failed to close transporter",
                smtp_host=key[0],
                smtp_port=key[1],
                smtp_user=key[2],
                error=str(e),
            )
