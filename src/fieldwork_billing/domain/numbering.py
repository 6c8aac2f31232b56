"""Human-facing document numbers (EST-0001, WO-0001, INV-0001)."""

import re
from collections.abc import Iterable
from dataclasses import dataclass

from fieldwork_billing.domain.value_objects import DocumentKind

_NUMBER_PATTERN = re.compile(r"^([A-Z]+)-(\d+)$")


@dataclass(frozen=True)
class ParsedNumber:
    prefix: str
    sequence: int


def format_document_number(prefix: str, sequence: int, padding: int = 4) -> str:
    return f"{prefix}-{sequence:0{padding}d}"


def parse_document_number(document_number: str) -> ParsedNumber | None:
    match = _NUMBER_PATTERN.match(document_number)
    if match is None:
        return None
    return ParsedNumber(prefix=match.group(1), sequence=int(match.group(2)))


def generate_number(
    kind: DocumentKind, existing_numbers: Iterable[str], padding: int = 4
) -> str:
    """Return the next number for ``kind`` that is not in ``existing_numbers``.

    The sequence continues from the highest number already issued with the
    kind's prefix, so deleting a document never causes its number to be
    handed out again while a higher one exists. Numbers with a foreign
    prefix or an unparseable shape are ignored for sequencing but still
    count as taken.
    """
    taken = set(existing_numbers)
    prefix = kind.number_prefix
    highest = 0
    for number in taken:
        parsed = parse_document_number(number)
        if parsed is not None and parsed.prefix == prefix:
            highest = max(highest, parsed.sequence)

    sequence = highest + 1
    candidate = format_document_number(prefix, sequence, padding)
    while candidate in taken:
        sequence += 1
        candidate = format_document_number(prefix, sequence, padding)
    return candidate


__all__ = [
    "ParsedNumber",
    "format_document_number",
    "generate_number",
    "parse_document_number",
]
