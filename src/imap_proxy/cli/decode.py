"""
Command-line interface for MIME decoding.

Decodes .eml files with the same decoder the proxy uses and prints the
resolved body and attachments as JSON.

Usage:
    # Single file
    python -m imap_proxy.cli.decode message.eml

    # Directory, snippets only, written to a file
    python -m imap_proxy.cli.decode mails/ --snippet --output decoded.jsonl

    # Preview decoding of the first 4 KB, as the folder listing does
    python -m imap_proxy.cli.decode message.eml --max-bytes 4096
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

import structlog

from imap_proxy.config import settings
from imap_proxy.logging_config import setup_logging
from imap_proxy.mime import decode_message
from imap_proxy.preview import make_snippet
from imap_proxy.version import DECODER_VERSION


setup_logging()
logger = structlog.get_logger(__name__)


def process_single_file(
    eml_path: Path,
    max_bytes: Optional[int] = None,
    snippet_only: bool = False,
    include_payloads: bool = True,
) -> dict:
    """
    Decode a single .eml file.

    Args:
        eml_path: Path to .eml file
        max_bytes: Only decode the first N bytes (preview mode)
        snippet_only: Emit a snippet instead of body and attachments
        include_payloads: Keep attachment base64 payloads in the output

    Returns:
        Decoded result as dict
    """
    raw = eml_path.read_bytes()
    if max_bytes:
        raw = raw[:max_bytes]

    decoded = decode_message(raw)
    result = {"file": str(eml_path), "decoder_version": DECODER_VERSION}

    if snippet_only:
        result["snippet"] = make_snippet(decoded.body, max_length=settings.snippet_max_length)
        return result

    attachments = decoded.model_dump(by_alias=True)["attachments"]
    if not include_payloads:
        for attachment in attachments:
            attachment.pop("payloadBase64", None)

    result["body"] = decoded.body
    result["attachments"] = attachments
    return result


def collect_inputs(paths: List[str]) -> List[Path]:
    """Expand files and directories (recursively) into .eml paths."""
    files: List[Path] = []
    for raw_path in paths:
        path = Path(raw_path)
        if path.is_dir():
            files.extend(sorted(path.glob("**/*.eml")))
        elif path.is_file():
            files.append(path)
        else:
            logger.warning("input_not_found", path=str(path))
    return files


def write_output(results: List[dict], output_path: Optional[Path]) -> None:
    """
    Write results as JSON lines to a file or stdout.

    Args:
        results: Decoded results
        output_path: Output file path, or None for stdout
    """
    if not output_path:
        for result in results:
            print(json.dumps(result, ensure_ascii=False))
        return

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        for result in results:
            f.write(json.dumps(result, ensure_ascii=False) + "\n")

    logger.info("output_written", path=str(output_path), count=len(results))


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Decode .eml files into display body and attachments",
    )
    parser.add_argument("inputs", nargs="+", help=".eml files or directories")
    parser.add_argument(
        "--snippet", "-s", action="store_true", help="Print list-view snippets only"
    )
    parser.add_argument(
        "--max-bytes",
        "-n",
        type=int,
        default=None,
        help="Decode only the first N bytes of each file",
    )
    parser.add_argument(
        "--no-payloads",
        action="store_true",
        help="Omit attachment base64 payloads from the output",
    )
    parser.add_argument(
        "--output", "-o", type=str, default=None, help="Output file (default: stdout)"
    )
    args = parser.parse_args(argv)

    files = collect_inputs(args.inputs)
    if not files:
        print("Error: no .eml files found", file=sys.stderr)
        return 1

    results = []
    failures = 0
    for eml_path in files:
        try:
            results.append(
                process_single_file(
                    eml_path,
                    max_bytes=args.max_bytes,
                    snippet_only=args.snippet,
                    include_payloads=not args.no_payloads,
                )
            )
        except OSError as e:
            failures += 1
            logger.error("file_processing_failed", file=str(eml_path), error=str(e))

    write_output(results, Path(args.output) if args.output else None)
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
