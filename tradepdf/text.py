"""
Text cleaning and line wrapping.

Cleaning is substitution-only and total over every string input: any
string, however malformed, yields some (possibly empty) cleaned output.
Wrapping measures with ReportLab's standard-font metrics and works in
millimetres to match the layout engine.

License: MIT
"""

import re
from typing import List

from reportlab.pdfbase.pdfmetrics import stringWidth

from tradepdf.styles import PageConfig

# \t through \r are left for WHITESPACE to turn into spaces
CONTROL_CHARS = re.compile(r"[\u0000-\u0008\u000E-\u001F\u007F-\u009F]")
WHITESPACE = re.compile(r"\s+")
HEADING_MARKERS = re.compile(r"#{1,6}\s*")

# Applied in order; "â€" alone must come after its longer variants
SUBSTITUTIONS = [
    ("**", ""),
    ("*", ""),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&nbsp;", " "),
    ("&quot;", '"'),
    ("â€\"", "—"),
    ("â€˜", "'"),
    ("â€™", "'"),
    ("â€œ", '"'),
    ("â€", '"'),
]


def clean_text(text) -> str:
    """
    Normalise free text (usually LLM output) for drawing.

    Strips control characters, collapses whitespace, removes markdown
    emphasis and heading markers, decodes common HTML entities and repairs
    UTF-8 punctuation that was decoded as cp1252.
    """
    if not text:
        return ""
    cleaned = CONTROL_CHARS.sub("", str(text))
    cleaned = WHITESPACE.sub(" ", cleaned)
    for old, new in SUBSTITUTIONS[:2]:
        cleaned = cleaned.replace(old, new)
    cleaned = HEADING_MARKERS.sub("", cleaned)
    for old, new in SUBSTITUTIONS[2:]:
        cleaned = cleaned.replace(old, new)
    return cleaned.strip()


def text_width(text: str, font_name: str, font_size: float) -> float:
    """Width of ``text`` in millimetres."""
    return PageConfig.points_to_mm(stringWidth(text, font_name, font_size))


def _split_long_token(token: str, font_name: str, font_size: float, max_width: float) -> List[str]:
    """Break a single over-wide token (URL, email, part number) into width-safe chunks."""
    if text_width(token, font_name, font_size) <= max_width:
        return [token]
    chunks = []
    remaining = token
    while remaining:
        lo, hi = 1, len(remaining)
        fit = 1
        while lo <= hi:
            mid = (lo + hi) // 2
            if text_width(remaining[:mid], font_name, font_size) <= max_width:
                fit = mid
                lo = mid + 1
            else:
                hi = mid - 1
        chunks.append(remaining[:fit])
        remaining = remaining[fit:]
    return chunks


def wrap_text(text: str, font_name: str, font_size: float, max_width: float) -> List[str]:
    """
    Greedy word wrap.

    Args:
        text: Already-cleaned text (single spaces between words)
        font_name: Standard font name used for measuring
        font_size: Font size in points
        max_width: Available width in millimetres

    Returns:
        Lines that each measure at most ``max_width``; empty list for blank text
    """
    words = []
    for word in text.split():
        words.extend(_split_long_token(word, font_name, font_size, max_width))

    lines: List[str] = []
    current = ""
    for word in words:
        candidate = f"{current} {word}" if current else word
        if text_width(candidate, font_name, font_size) <= max_width:
            current = candidate
        else:
            if current:
                lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines
