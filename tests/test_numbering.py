"""Tests for document number generation."""

from fieldwork_billing.domain.numbering import (
    format_document_number,
    generate_number,
    parse_document_number,
)
from fieldwork_billing.domain.value_objects import DocumentKind


class TestFormatAndParse:
    def test_format_pads_sequence(self):
        assert format_document_number("EST", 7) == "EST-0007"
        assert format_document_number("INV", 12, padding=6) == "INV-000012"

    def test_parse_valid_number(self):
        parsed = parse_document_number("WO-0042")
        assert parsed is not None
        assert parsed.prefix == "WO"
        assert parsed.sequence == 42

    def test_parse_rejects_other_shapes(self):
        assert parse_document_number("custom") is None
        assert parse_document_number("EST-") is None


class TestGenerateNumber:
    def test_first_number_per_kind(self):
        assert generate_number(DocumentKind.ESTIMATE, []) == "EST-0001"
        assert generate_number(DocumentKind.WORK_ORDER, []) == "WO-0001"
        assert generate_number(DocumentKind.INVOICE, []) == "INV-0001"

    def test_continues_after_highest(self):
        number = generate_number(DocumentKind.INVOICE, ["INV-0001", "INV-0007"])
        assert number == "INV-0008"

    def test_ignores_other_prefixes_for_sequencing(self):
        number = generate_number(DocumentKind.ESTIMATE, ["INV-0009", "legacy-12"])
        assert number == "EST-0001"

    def test_never_returns_taken_number(self):
        taken = ["EST-0001", "EST-0002", "EST-0003"]
        number = generate_number(DocumentKind.ESTIMATE, taken)
        assert number not in taken

    def test_padding(self):
        assert generate_number(DocumentKind.ESTIMATE, [], padding=2) == "EST-01"
