"""Split recognized text into labeled sections.

Headings in the text drive the split when there are any. Otherwise each
line is bucketed by keyword into a fixed set of topical sections.
"""

import re
from dataclasses import dataclass

from docscan.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_HEADING = "General"

# (heading, keywords) in priority order: the first bucket whose keyword
# appears in a line claims it.
KEYWORD_SECTIONS: list[tuple[str, tuple[str, ...]]] = [
    ("Contact Info", ("email", "phone", "tel", "mobile", "address")),
    ("Dates", ("date", "issued", "due", "deadline")),
    (
        "Payment / Amounts",
        ("total", "subtotal", "tax", "vat", "amount", "price", "balance"),
    ),
    ("Company / Organization", ("company", "ltd", "inc", "co.", "organization")),
    ("Terms / Notes", ("terms", "note", "conditions", "policy")),
]

_WHITESPACE_RE = re.compile(r"\s+")
_MARKDOWN_HEADING_RE = re.compile(r"^#+\s+")
_HEADING_MARKS_RE = re.compile(r"[:#]")
_MAX_UPPERCASE_HEADING = 60


@dataclass(frozen=True)
class Section:
    """A labeled span of document text."""

    heading: str
    content: str


def normalize_lines(text: str) -> list[str]:
    """Split text into trimmed lines with internal whitespace collapsed.

    Empty lines are dropped.
    """
    lines = (_WHITESPACE_RE.sub(" ", line).strip() for line in text.split("\n"))
    return [line for line in lines if line]


def is_heading(line: str) -> bool:
    """Return True if a line looks like a section heading.

    A heading is longer than two characters and either ends with a colon,
    is entirely upper-case and at most 60 characters long, or starts with
    a markdown ``#`` marker.
    """
    t = line.strip()
    if len(t) <= 2:
        return False
    if t.endswith(":"):
        return True
    if t == t.upper() and len(t) <= _MAX_UPPERCASE_HEADING:
        return True
    return bool(_MARKDOWN_HEADING_RE.match(t))


def split_by_headings(lines: list[str]) -> list[Section]:
    """Split lines at heading lines, labelling each run with its heading."""
    sections: list[Section] = []
    heading = DEFAULT_HEADING
    buffer: list[str] = []

    for line in lines:
        if is_heading(line):
            if buffer:
                sections.append(Section(heading, "\n".join(buffer)))
                buffer = []
            heading = _HEADING_MARKS_RE.sub("", line).strip()
            continue
        buffer.append(line)

    if buffer:
        sections.append(Section(heading, "\n".join(buffer)))
    return sections


def bucket_by_keywords(
    lines: list[str],
    table: list[tuple[str, tuple[str, ...]]] = KEYWORD_SECTIONS,
) -> list[Section]:
    """Assign each line to the first keyword bucket it matches.

    Matching is a case-insensitive substring test. Unmatched lines go to
    ``"General"``. Sections come out in table order with ``"General"``
    first, and empty buckets are omitted.
    """
    buckets: dict[str, list[str]] = {DEFAULT_HEADING: []}
    buckets.update((name, []) for name, _ in table)
    for line in lines:
        lower = line.lower()
        heading = next(
            (name for name, keywords in table if any(k in lower for k in keywords)),
            DEFAULT_HEADING,
        )
        buckets[heading].append(line)

    return [
        Section(heading, "\n".join(bucket)) for heading, bucket in buckets.items() if bucket
    ]


def segment_sections(text: str) -> list[Section]:
    """Split raw OCR text into sections.

    Uses heading lines when they produce more than one section, and
    keyword buckets otherwise.

    Args:
        text: Raw recognized text.

    Returns:
        Sections in output order. No line is duplicated, and only
        heading lines are left out of the section contents.
    """
    lines = normalize_lines(text)
    sections = split_by_headings(lines)
    if len(sections) > 1:
        logger.debug("Split text into %d heading sections", len(sections))
        return sections

    sections = bucket_by_keywords(lines)
    logger.debug("No headings found, bucketed text into %d sections", len(sections))
    return sections
