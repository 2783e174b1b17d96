# Outbound mail transport module

from .cache import TransporterCache, TransporterCacheEntry, build_transport
from .composer import compose_message, format_sender, send_email
from .smtp_pool import PooledSmtpTransport

__all__ = [
    "TransporterCache",
    "TransporterCacheEntry",
    "build_transport",
    "PooledSmtpTransport",
    "compose_message",
    "format_sender",
    "send_email",
]
