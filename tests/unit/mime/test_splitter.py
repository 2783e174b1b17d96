"""
Unit tests for boundary splitting (splitter.py).

Tests cover:
- Boundary token discovery (quoted, bare, folded headers)
- Header/content separation
- Multipart splitting: preamble, closing delimiter, malformed segments
- Nested multiparts and header accessors
"""

import pytest

from imap_proxy.mime.decoder import decode_message
from imap_proxy.mime.splitter import (
    MAX_DEPTH,
    MimePart,
    find_boundary,
    parse_mime,
    split_header_block,
    split_multipart,
)
from tests.fixtures.emails import SAMPLE_EMAILS


class TestFindBoundary:
    """Tests for find_boundary() function."""

    @pytest.mark.unit
    def test_quoted_boundary(self):
        headers = 'Content-Type: multipart/mixed; boundary="abc-123"'
        assert find_boundary(headers) == "abc-123"

    @pytest.mark.unit
    def test_bare_boundary_terminated_by_semicolon(self):
        headers = "Content-Type: multipart/mixed; boundary=abc; charset=utf-8"
        assert find_boundary(headers) == "abc"

    @pytest.mark.unit
    def test_folded_header(self):
        headers = "Content-Type: multipart/alternative;\r\n\tBoundary=\"folded\"\r\nSubject: x"
        assert find_boundary(headers) == "folded"

    @pytest.mark.unit
    def test_absent_boundary(self):
        assert find_boundary("Content-Type: text/plain") is None


class TestSplitHeaderBlock:
    """Tests for split_header_block() function."""

    @pytest.mark.unit
    def test_crlf_separator(self):
        assert split_header_block("A: 1\r\nB: 2\r\n\r\nbody\r\n") == ("A: 1\r\nB: 2", "body\r\n")

    @pytest.mark.unit
    def test_lf_separator(self):
        assert split_header_block("A: 1\n\nbody") == ("A: 1", "body")

    @pytest.mark.unit
    def test_empty_header_block(self):
        assert split_header_block("\r\nbody only") == ("", "body only")

    @pytest.mark.unit
    def test_missing_blank_line(self):
        assert split_header_block("A: 1\r\nB: 2") is None


class TestSplitMultipart:
    """Tests for split_multipart() function."""

    @pytest.mark.unit
    def test_parts_in_source_order(self):
        body = (
            "--XYZ\r\nContent-Type: text/plain\r\n\r\nhello\r\n"
            "--XYZ\r\nContent-Type: text/html\r\n\r\n<b>hi</b>\r\n"
            "--XYZ--"
        )
        parts = split_multipart(body, "XYZ")

        assert [p.content for p in parts] == ["hello", "<b>hi</b>"]
        assert parts[0].headers == "Content-Type: text/plain"
        assert parts[1].content_type == "text/html"

    @pytest.mark.unit
    def test_preamble_and_epilogue_discarded(self):
        body = (
            "preamble text\r\n\r\nwith blank line\r\n"
            "--b\r\nContent-Type: text/plain\r\n\r\nonly part\r\n"
            "--b--\r\nepilogue\r\n\r\nmore"
        )
        parts = split_multipart(body, "b")
        assert len(parts) == 1
        assert parts[0].content == "only part"

    @pytest.mark.unit
    def test_segment_without_blank_line_skipped(self):
        body = (
            "--b\r\nContent-Type: text/plain\r\nno separator here\r\n"
            "--b\r\nContent-Type: text/plain\r\n\r\nkept\r\n"
            "--b--"
        )
        parts = split_multipart(body, "b")
        assert [p.content for p in parts] == ["kept"]

    @pytest.mark.unit
    def test_whitespace_only_segment_skipped(self):
        body = "--b\r\n   \r\n--b\r\nContent-Type: text/plain\r\n\r\nx\r\n--b--"
        parts = split_multipart(body, "b")
        assert [p.content for p in parts] == ["x"]

    @pytest.mark.unit
    def test_part_without_headers(self):
        body = "--b\r\n\r\nimplicit text/plain\r\n--b--"
        parts = split_multipart(body, "b")
        assert len(parts) == 1
        assert parts[0].headers == ""
        assert parts[0].content == "implicit text/plain"

    @pytest.mark.unit
    def test_delimiter_must_start_a_line(self):
        body = (
            "--b\r\nContent-Type: text/plain\r\n\r\nmentions --b inline\r\n"
            "--b--"
        )
        parts = split_multipart(body, "b")
        assert [p.content for p in parts] == ["mentions --b inline"]

    @pytest.mark.unit
    def test_boundary_prefix_of_nested_boundary(self):
        body = (
            "--b\r\nContent-Type: multipart/alternative; boundary=b-inner\r\n\r\n"
            "--b-inner\r\nContent-Type: text/plain\r\n\r\ninner\r\n--b-inner--\r\n"
            "--b--"
        )
        parts = split_multipart(body, "b")
        assert len(parts) == 1
        assert parts[0].is_multipart
        assert [c.content for c in parts[0].children] == ["inner"]

    @pytest.mark.unit
    def test_boundary_with_regex_characters(self):
        body = "--=_Part+1.2\r\nContent-Type: text/plain\r\n\r\nok\r\n--=_Part+1.2--"
        parts = split_multipart(body, "=_Part+1.2")
        assert [p.content for p in parts] == ["ok"]


class TestParseMime:
    """Tests for parse_mime() function."""

    @pytest.mark.unit
    def test_single_part_message(self, sample_eml_bytes):
        root = parse_mime(sample_eml_bytes)
        assert not root.is_multipart
        assert root.children == []
        assert root.content.startswith("Hello, this is a simple test email.")
        assert "Subject: Test Email" in root.headers

    @pytest.mark.unit
    def test_accepts_text_input(self):
        root = parse_mime("Content-Type: text/plain\r\n\r\nhello world")
        assert root.content == "hello world"
        assert root.mime_type == "text/plain"

    @pytest.mark.unit
    def test_missing_blank_line_yields_empty_leaf(self):
        root = parse_mime(SAMPLE_EMAILS["malformed"])
        assert root.content == ""
        assert not root.is_multipart

    @pytest.mark.unit
    def test_nested_tree(self, mixed_attachment_eml):
        root = parse_mime(mixed_attachment_eml)

        assert root.boundary == "outer-123"
        assert len(root.children) == 2

        alternative, pdf = root.children
        assert alternative.boundary == "inner-456"
        assert [c.mime_type for c in alternative.children] == ["text/plain", "text/html"]
        assert pdf.mime_type == "application/pdf"
        assert pdf.transfer_encoding == "base64"
        assert pdf.disposition.startswith("attachment")

    @pytest.mark.unit
    def test_lf_only_source(self):
        root = parse_mime(SAMPLE_EMAILS["lf_multipart"])
        assert [c.content for c in root.children] == ["plain body"]

    @pytest.mark.unit
    def test_invalid_utf8_bytes_do_not_raise(self):
        root = parse_mime(b"Content-Type: text/plain\r\n\r\n\xff\xfe broken")
        assert root.content.endswith("broken")


class TestMimePartAccessors:
    """Tests for MimePart header accessors."""

    @pytest.mark.unit
    def test_header_lookup_is_case_insensitive(self):
        part = MimePart(
            headers="CONTENT-TYPE: Text/HTML; charset=utf-8\r\ncontent-transfer-encoding: BASE64",
            content="",
        )
        assert part.content_type == "Text/HTML; charset=utf-8"
        assert part.mime_type == "Text/HTML"
        assert part.transfer_encoding == "BASE64"

    @pytest.mark.unit
    def test_prefixed_header_names_not_matched(self):
        part = MimePart(headers="X-Original-Content-Type: text/html", content="")
        assert part.content_type is None

    @pytest.mark.unit
    def test_missing_headers(self):
        part = MimePart(headers="", content="x")
        assert part.content_type is None
        assert part.mime_type is None
        assert part.transfer_encoding is None
        assert part.disposition is None


def _nested_source(levels):
    source = "Content-Type: text/plain\r\n\r\ndeep"
    for level in range(levels):
        source = (
            f"Content-Type: multipart/mixed; boundary=n{level}\r\n\r\n"
            f"--n{level}\r\n{source}\r\n--n{level}--"
        )
    return source


class TestNestingDepth:
    """Tests for the nesting depth cap."""

    @pytest.mark.unit
    def test_nesting_within_cap_fully_split(self):
        root = parse_mime(_nested_source(MAX_DEPTH))
        part = root
        for _ in range(MAX_DEPTH):
            assert len(part.children) == 1
            part = part.children[0]
        assert not part.is_multipart
        assert part.content == "deep"

    @pytest.mark.unit
    def test_parts_beyond_cap_kept_as_leaves(self):
        root = parse_mime(_nested_source(MAX_DEPTH + 5))
        part = root
        for _ in range(MAX_DEPTH):
            part = part.children[0]
        assert part.is_multipart
        assert part.children == []

    @pytest.mark.unit
    def test_very_deep_nesting_decodes(self):
        decoded = decode_message(_nested_source(600))
        assert decoded.body == ""
        assert decoded.attachments == []
