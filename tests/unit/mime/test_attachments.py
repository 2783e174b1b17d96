"""
Unit tests for attachment extraction (attachments.py).

Tests cover:
- Classification heuristic (disposition, filename, inline parts)
- Filename and MIME type defaults
- Payload re-encoding and size estimation
- Source order across nested multiparts
"""

import base64

import pytest

from imap_proxy.mime.attachments import (
    DEFAULT_FILENAME,
    DEFAULT_MIME_TYPE,
    collect_attachments,
    encode_payload,
    estimate_size,
    find_filename,
    is_attachment_part,
)
from imap_proxy.mime.splitter import MimePart
from tests.fixtures.emails import SAMPLE_EMAILS


class TestIsAttachmentPart:
    """Tests for is_attachment_part() heuristic."""

    @pytest.mark.unit
    def test_attachment_disposition(self):
        part = MimePart(headers="Content-Type: text/plain\r\nContent-Disposition: attachment", content="x")
        assert is_attachment_part(part)

    @pytest.mark.unit
    def test_named_non_text_part(self):
        part = MimePart(headers='Content-Type: application/zip; name="a.zip"\r\nX: filename="a.zip"', content="")
        assert is_attachment_part(part)

    @pytest.mark.unit
    def test_named_text_part_without_disposition_is_body(self):
        part = MimePart(headers="Content-Type: text/plain\r\nX-Hint: filename=notes.txt", content="x")
        assert not is_attachment_part(part)

    @pytest.mark.unit
    def test_named_inline_text_part(self):
        part = MimePart(
            headers='Content-Type: text/html\r\nContent-Disposition: inline; filename="page.html"',
            content="<p>x</p>",
        )
        assert is_attachment_part(part)

    @pytest.mark.unit
    def test_content_id_only_part_excluded(self):
        part = MimePart(headers="Content-Type: image/gif\r\nContent-ID: <x@y>", content="R0lGODlh")
        assert not is_attachment_part(part)

    @pytest.mark.unit
    def test_plain_body_part(self):
        assert not is_attachment_part(MimePart(headers="Content-Type: text/plain", content="hello"))


class TestFindFilename:
    """Tests for find_filename() function."""

    @pytest.mark.unit
    def test_quoted_filename_keeps_spaces(self):
        assert find_filename('Content-Disposition: attachment; filename="Report Q1.pdf"') == "Report Q1.pdf"

    @pytest.mark.unit
    def test_bare_filename(self):
        assert find_filename("Content-Disposition: attachment; filename=export.csv; size=9") == "export.csv"

    @pytest.mark.unit
    def test_missing_filename(self):
        assert find_filename("Content-Disposition: attachment") is None


class TestPayload:
    """Tests for payload encoding and size estimation."""

    @pytest.mark.unit
    @pytest.mark.parametrize("payload,expected", [("", 0), ("aGVsbG8=", 6), ("JVBERi0xLjQK", 9), ("abc", 3)])
    def test_estimate_size(self, payload, expected):
        assert estimate_size(payload) == expected

    @pytest.mark.unit
    def test_base64_part_keeps_text_without_whitespace(self):
        part = MimePart(headers="Content-Transfer-Encoding: Base64", content="aGVs\r\nbG8=\r\n")
        assert encode_payload(part) == "aGVsbG8="

    @pytest.mark.unit
    def test_non_base64_part_encoded(self):
        part = MimePart(headers="Content-Type: text/csv", content="a,b\r\n1,2")
        assert encode_payload(part) == base64.b64encode(b"a,b\r\n1,2").decode("ascii")

    @pytest.mark.unit
    def test_8bit_part_bytes_preserved(self):
        payload = b"na\xc3\xafve \xe2\x82\xac5\x80\xff"
        source = (
            b"Content-Type: multipart/mixed; boundary=B\r\n\r\n"
            b"--B\r\nContent-Type: application/octet-stream\r\n"
            b"Content-Transfer-Encoding: 8bit\r\n"
            b"Content-Disposition: attachment; filename=data.bin\r\n\r\n"
            + payload
            + b"\r\n--B--"
        )
        attachment = collect_attachments(source)[0]
        assert base64.b64decode(attachment.payload_base64) == payload

    @pytest.mark.unit
    def test_utf8_filename_decoded(self):
        source = (
            "Content-Type: multipart/mixed; boundary=B\r\n\r\n"
            "--B\r\nContent-Disposition: attachment; filename=\"résumé.pdf\"\r\n\r\nx\r\n"
            "--B--"
        ).encode("utf-8")
        assert collect_attachments(source)[0].filename == "résumé.pdf"


class TestCollectAttachments:
    """Tests for collect_attachments() function."""

    @pytest.mark.unit
    def test_single_attachment_example(self):
        source = (
            "Content-Type: multipart/mixed; boundary=B\r\n\r\n"
            "--B\r\nContent-Type: text/plain\r\n\r\nbody\r\n"
            '--B\r\nContent-Type: text/plain\r\nContent-Disposition: attachment; filename="a.txt"\r\n'
            "Content-Transfer-Encoding: base64\r\n\r\naGVsbG8=\r\n"
            "--B--"
        )
        attachments = collect_attachments(source)

        assert len(attachments) == 1
        attachment = attachments[0]
        assert attachment.filename == "a.txt"
        assert attachment.mime_type == "text/plain"
        assert attachment.payload_base64 == "aGVsbG8="
        assert attachment.size_bytes == 6

    @pytest.mark.unit
    def test_nested_pdf(self, mixed_attachment_eml):
        attachments = collect_attachments(mixed_attachment_eml)

        assert len(attachments) == 1
        pdf = attachments[0]
        assert pdf.filename == "Report Q1.pdf"
        assert pdf.mime_type == "application/pdf"
        assert pdf.payload_base64 == "JVBERi0xLjQK"
        assert pdf.size_bytes == 9

    @pytest.mark.unit
    def test_inline_image_collected_content_id_only_skipped(self):
        attachments = collect_attachments(SAMPLE_EMAILS["inline_image"])

        assert [a.filename for a in attachments] == ["logo.png"]
        assert attachments[0].mime_type == "image/png"
        assert attachments[0].payload_base64 == "iVBORw0KGgo="

    @pytest.mark.unit
    def test_non_base64_attachment(self):
        attachments = collect_attachments(SAMPLE_EMAILS["csv_attachment"])

        assert len(attachments) == 1
        csv = attachments[0]
        assert csv.filename == "export.csv"
        assert csv.mime_type == "text/csv"
        assert base64.b64decode(csv.payload_base64) == b"a,b\r\n1,2"

    @pytest.mark.unit
    def test_defaults_for_unnamed_untyped_part(self):
        source = (
            "Content-Type: multipart/mixed; boundary=B\r\n\r\n"
            "--B\r\nContent-Disposition: attachment\r\n\r\nraw\r\n"
            "--B--"
        )
        attachment = collect_attachments(source)[0]
        assert attachment.filename == DEFAULT_FILENAME
        assert attachment.mime_type == DEFAULT_MIME_TYPE

    @pytest.mark.unit
    def test_source_order_across_levels(self):
        source = (
            "Content-Type: multipart/mixed; boundary=o\r\n\r\n"
            "--o\r\nContent-Disposition: attachment; filename=first.bin\r\n\r\n1\r\n"
            "--o\r\nContent-Type: multipart/mixed; boundary=i\r\n\r\n"
            "--i\r\nContent-Disposition: attachment; filename=second.bin\r\n\r\n2\r\n--i--\r\n"
            "--o\r\nContent-Disposition: attachment; filename=third.bin\r\n\r\n3\r\n"
            "--o--"
        )
        names = [a.filename for a in collect_attachments(source)]
        assert names == ["first.bin", "second.bin", "third.bin"]

    @pytest.mark.unit
    def test_body_only_messages(self, sample_eml_bytes, multipart_alternative_eml):
        assert collect_attachments(sample_eml_bytes) == []
        assert collect_attachments(multipart_alternative_eml) == []

    @pytest.mark.unit
    def test_malformed_source(self):
        assert collect_attachments(SAMPLE_EMAILS["malformed"]) == []
