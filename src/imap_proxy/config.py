"""
Application configuration management.

This module handles configuration from environment variables using Pydantic Settings.
"""

from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application configuration from environment variables.

    All settings can be overridden via environment variables with the same name.
    """

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    api_workers: int = 4
    cors_allow_origins: str = "*"  # Comma-separated

    # Shared secret checked against X-Proxy-Secret; unset disables auth (dev mode)
    proxy_secret: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # IMAP mail store
    imap_default_port: int = 993
    imap_folder: str = "INBOX"
    imap_timeout_seconds: float = 30.0

    # Listing / preview
    list_default_max_results: int = 20
    preview_max_bytes: int = 4096  # Source bytes fetched per message for snippets
    snippet_max_length: int = 200

    # Processing limits
    max_attachments: int = 50

    # SMTP transport
    smtp_default_port: int = 465
    transporter_ttl_seconds: float = 300.0
    smtp_pool_max_connections: int = 5
    smtp_pool_max_messages: int = 100
    smtp_connection_timeout_seconds: float = 10.0
    smtp_greeting_timeout_seconds: float = 10.0
    smtp_socket_timeout_seconds: float = 30.0

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]


# Global settings instance
settings = Settings()
