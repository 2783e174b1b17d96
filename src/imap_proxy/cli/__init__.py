"""
CLI module for MIME decoding.

Provides command-line tools for decoding stored .eml files.
"""

from imap_proxy.cli.decode import main as decode_main

__all__ = ["decode_main"]
