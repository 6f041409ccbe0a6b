"""
Australian-locale value formatting and structured-content parsing.

License: MIT
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Union

DateLike = Union[str, date, datetime]

MARKDOWN_HEADING = re.compile(r"^#{1,6}\s")
BOLD_LINE = re.compile(r"^\*\*[^*]+\*\*$")
NUMBERED_HEADING = re.compile(r"^\d+\.\s+\*\*")
BULLET_ITEM = re.compile(r"^[-•*]\s")
NUMBERED_ITEM = re.compile(r"^\d+\.\s")


def format_abn(abn: Optional[str]) -> str:
    """
    Format an Australian Business Number as ``XX XXX XXX XXX``.

    Anything that is not exactly 11 digits once whitespace is removed is
    returned verbatim.
    """
    if not abn:
        return ""
    digits = re.sub(r"\s", "", abn)
    if len(digits) != 11 or not digits.isdigit():
        return abn
    return f"{digits[0:2]} {digits[2:5]} {digits[5:8]} {digits[8:11]}"


def round_half_up(amount: float, places: int = 0) -> Decimal:
    """Round like ``Math.round``: halves go up, not to even."""
    exponent = Decimal(1).scaleb(-places)
    return Decimal(str(amount)).quantize(exponent, rounding=ROUND_HALF_UP)


def format_currency(amount: float, currency: str = "AUD", decimals: int = 2) -> str:
    """Format an amount for en-AU, e.g. ``$1,234.50`` or ``-$20.00``."""
    value = round_half_up(amount, decimals)
    sign = "-" if value < 0 else ""
    body = f"{abs(value):,.{decimals}f}"
    prefix = "$" if currency == "AUD" else f"{currency} "
    return f"{sign}{prefix}{body}"


def format_whole_currency(amount: float, currency: str = "AUD") -> str:
    """Currency rounded to the nearest whole unit, e.g. ``$1,000``."""
    return format_currency(amount, currency=currency, decimals=0)


def parse_amount(text: Optional[str]) -> Optional[float]:
    """
    Pull a leading number out of a currency string (``"$1,385.50"`` -> 1385.5).

    Mirrors ``parseFloat`` after stripping currency symbols, commas and spaces.
    """
    if not text:
        return None
    stripped = re.sub(r"[$,£€¥\s]", "", str(text))
    match = re.match(r"[-+]?(\d+\.?\d*|\.\d+)", stripped)
    return float(match.group(0)) if match else None


def _as_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _clock(value: datetime) -> str:
    return f"{value:%I:%M} {'am' if value.hour < 12 else 'pm'}"


def format_date(value: DateLike) -> str:
    """``5 March 2024``"""
    d = _as_datetime(value)
    return f"{d.day} {d:%B %Y}"


def format_datetime(value: DateLike) -> str:
    """``5 March 2024, 09:30 am``"""
    d = _as_datetime(value)
    return f"{d.day} {d:%B %Y}, {_clock(d)}"


def format_timestamp(value: DateLike) -> str:
    """Short stamp used in page footers: ``5 Mar 2024, 09:30 am``."""
    d = _as_datetime(value)
    return f"{d.day} {d:%b %Y}, {_clock(d)}"


@dataclass
class ContentSection:
    """One section of parsed document text."""
    kind: str  # heading | text | list
    content: str
    ordered: bool = False
    items: List[str] = field(default_factory=list)


def _is_caps_heading(line: str) -> bool:
    return (
        len(line) < 100
        and line == line.upper()
        and any(ch.isalpha() for ch in line)
        and "." not in line
    )


def parse_structured_content(content: Optional[str]) -> List[ContentSection]:
    """
    Split generated document text into heading, text and list sections.

    Headings are markdown ``#`` lines, whole-line ``**Bold**``, numbered bold
    titles (``1. **Scope**``) and short ALL-CAPS lines. Consecutive bullet or
    numbered lines form one list; other lines are joined into paragraphs,
    with blank lines ending a paragraph.
    """
    sections: List[ContentSection] = []
    if not content:
        return sections

    text_parts: List[str] = []
    list_items: List[str] = []
    list_ordered = True

    def flush_text():
        if text_parts:
            sections.append(ContentSection("text", " ".join(text_parts)))
            text_parts.clear()

    def flush_list():
        nonlocal list_ordered
        if list_items:
            sections.append(ContentSection(
                "list", "\n".join(list_items), ordered=list_ordered, items=list(list_items)
            ))
            list_items.clear()
        list_ordered = True

    for raw_line in content.split("\n"):
        line = raw_line.strip()

        if not line:
            flush_text()
            continue

        if MARKDOWN_HEADING.match(line) or BOLD_LINE.match(line):
            flush_text()
            flush_list()
            heading = re.sub(r"^#{1,6}\s*", "", line).replace("**", "")
            sections.append(ContentSection("heading", heading))
            continue

        if NUMBERED_HEADING.match(line):
            flush_text()
            flush_list()
            heading = re.sub(r"\*\*$", "", re.sub(r"^\d+\.\s+\*\*", "", line))
            sections.append(ContentSection("heading", heading))
            continue

        if BULLET_ITEM.match(line):
            flush_text()
            list_items.append(re.sub(r"^[-•*]\s+", "", line))
            list_ordered = False
            continue

        if NUMBERED_ITEM.match(line):
            flush_text()
            list_items.append(re.sub(r"^\d+\.\s+", "", line))
            continue

        if _is_caps_heading(line) and not text_parts:
            flush_list()
            sections.append(ContentSection("heading", line))
            continue

        flush_list()
        text_parts.append(line)

    flush_text()
    flush_list()
    return sections
