"""
PDF layout engine.

Handles cursor-driven layout, pagination and rendering of all content
blocks for trades documents (quotes, job packs, SWMS, variations, claims).

Rendering is a single forward pass: callers append blocks in order, each
block checks for space with a conservative height estimate and breaks to a
new page when it does not fit. Page footers need the final page count, so
they are stamped in a second pass over every finished page before the
document is serialized.

License: MIT
"""

import base64
import io
import logging
import time
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

from reportlab.lib.utils import ImageReader

from tradepdf.compliance import get_state_compliance
from tradepdf.cursor import Cursor
from tradepdf.formatting import (
    format_abn, format_date, format_datetime, format_timestamp, format_whole_currency,
)
from tradepdf.models import (
    AiWarningBlock, Block, BusinessIdentity, ChecklistBlock, ComplianceBlock,
    ExportDocument, HeadingBlock, HighlightBlock, IdentifiersBlock, ImageBlock,
    JurisdictionBlock, ListBlock, MetadataBlock, PageBreakBlock, ParagraphBlock,
    PaymentTermsBlock, ProjectDetails, Recipient, SeparatorBlock, SignatureBlock,
    SpacerBlock, TableBlock, TextBlock, TitleBlock, TotalsBlock,
)
from tradepdf.recorder import PageRecorder
from tradepdf.serializer import render_pages, to_data_uri
from tradepdf.styles import RGB, LayoutConfig
from tradepdf.text import clean_text, wrap_text

logger = logging.getLogger(__name__)

BLANK_NAME = "_________________________"
AI_WARNING_TEXT = (
    "This document contains AI-generated content that must be reviewed before use. "
    "You are responsible for ensuring compliance with all applicable Australian laws "
    "and regulations."
)
PREMIUM_FOOTER_NOTE = (
    "Document formatted for Australian construction industry standards. "
    "Professional review required before reliance. No compliance claims made."
)


class DocumentState(str, Enum):
    """Engine lifecycle: EMPTY -> OPEN -> FINALIZED -> SERIALIZED."""
    EMPTY = "empty"
    OPEN = "open"
    FINALIZED = "finalized"
    SERIALIZED = "serialized"


def decode_image_source(source: Union[str, bytes]) -> bytes:
    """Raw image bytes from a data URI, bare base64 text or bytes."""
    if isinstance(source, bytes):
        return source
    payload = source.split(",", 1)[1] if source.startswith("data:") else source
    return base64.b64decode(payload, validate=True)


class PdfDocument:
    """
    Builds one paginated PDF.

    Maintains the cursor, records draw instructions per page and exposes one
    ``add_*`` method per block type. One instance per export; not safe for
    concurrent use.
    """

    def __init__(self, config: Optional[LayoutConfig] = None,
                 title: Optional[str] = None, author: Optional[str] = None):
        """
        Initialize an empty document.

        Args:
            config: Layout configuration (A4 defaults when omitted)
            title: PDF metadata title
            author: PDF metadata author
        """
        self.config = config or LayoutConfig()
        self.title = title
        self.author = author

        self.page_cfg = self.config.page
        self.fonts = self.config.fonts
        self.sizes = self.config.font_sizes
        self.spacing = self.config.spacing
        self.colors = self.config.colors
        self.content_width = self.config.content_width

        # Canvas-like recorder; pages stay addressable for the footer pass
        self.c = PageRecorder()
        self.cursor = Cursor(self.config, on_new_page=self.c.showPage)

        self._footer_applied = False
        self._pdf_bytes: Optional[bytes] = None

    # ------------------------------------------------------------------
    # Page management
    # ------------------------------------------------------------------

    @property
    def y(self) -> float:
        return self.cursor.y

    @property
    def page_count(self) -> int:
        return self.cursor.page_count

    @property
    def state(self) -> DocumentState:
        if self._pdf_bytes is not None:
            return DocumentState.SERIALIZED
        if self._footer_applied:
            return DocumentState.FINALIZED
        if self.c.count_draw_ops():
            return DocumentState.OPEN
        return DocumentState.EMPTY

    def ensure_space(self, required_height: float) -> bool:
        """Start a new page if ``required_height`` mm do not fit; True if it did."""
        return self.cursor.ensure_space(required_height)

    def add_page(self):
        """Force a new page."""
        self.cursor.new_page()

    def advance(self, amount: float):
        """Add vertical spacing."""
        self.cursor.advance(amount)

    def set_y(self, y: float):
        self.cursor.move_to(y)

    @property
    def _left(self) -> float:
        return self.page_cfg.margin_left

    @property
    def _right(self) -> float:
        return self.page_cfg.width - self.page_cfg.margin_right

    def _font(self, bold: bool = False) -> str:
        return self.fonts.bold if bold else self.fonts.regular

    def _set_text_style(self, size: float, color: RGB, bold: bool = False):
        self.c.setFont(self._font(bold), size)
        self.c.setFillColorRGB(*color)

    def _set_stroke(self, color: RGB, width: float):
        self.c.setStrokeColorRGB(*color)
        self.c.setLineWidth(width)

    # ------------------------------------------------------------------
    # Text flow
    # ------------------------------------------------------------------

    def add_text(self, text: str, font_size: Optional[float] = None, bold: bool = False,
                 color: Optional[RGB] = None, align: str = "left",
                 max_width: Optional[float] = None, indent: float = 0.0) -> int:
        """
        Add text with automatic wrapping and page breaks.

        Args:
            text: Raw text; cleaned before layout
            font_size: Points (body size by default)
            bold: Use the bold face
            color: RGB fill color
            align: left, center or right
            max_width: Wrap width in mm (content width by default)
            indent: Left indent in mm, subtracted from the wrap width

        Returns:
            Number of lines drawn (0 when the text cleans to nothing)
        """
        cleaned = clean_text(text)
        if not cleaned:
            return 0

        font_size = font_size or self.sizes.body
        max_width = self.content_width if max_width is None else max_width
        lines = wrap_text(cleaned, self._font(bold), font_size, max_width - indent)
        line_height = self.config.line_height(font_size)

        self._set_text_style(font_size, color or self.colors.text, bold)
        for line in lines:
            self.ensure_space(line_height + 2)
            if align == "center":
                self.c.drawCentredString(self.page_cfg.width / 2, self.y, line)
            elif align == "right":
                self.c.drawRightString(self._right, self.y, line)
            else:
                self.c.drawString(self._left + indent, self.y, line)
            self.advance(line_height)

        return len(lines)

    def add_title(self, text: str, color: Optional[RGB] = None):
        """Add a title (large, bold text)."""
        if self.add_text(text, font_size=self.sizes.title, bold=True, color=color):
            self.advance(self.spacing.paragraph)

    def add_section_heading(self, text: str):
        """Add an uppercase section heading with an underline rule."""
        cleaned = clean_text(text)
        if not cleaned:
            return

        lines = wrap_text(cleaned.upper(), self.fonts.bold, self.sizes.heading1, self.content_width)
        # Room for the heading plus a couple of body lines, so it never sits alone
        self.ensure_space(self.spacing.section + 6 * len(lines) + 14)
        self.advance(self.spacing.section)

        self._set_text_style(self.sizes.heading1, self.colors.text, bold=True)
        for line in lines:
            self.c.drawString(self._left, self.y, line)
            self.advance(6)

        self._set_stroke(self.colors.border, 0.5)
        self.c.line(self._left, self.y, self._right, self.y)
        self.advance(6)

    def add_subheading(self, text: str):
        """Add a subsection heading."""
        if not clean_text(text):
            return
        self.ensure_space(15)
        self.advance(self.spacing.paragraph)
        self.add_text(text, font_size=self.sizes.heading2, bold=True)
        self.advance(2)

    def add_paragraph(self, text: str):
        """Add a paragraph of body text."""
        if self.add_text(text, font_size=self.sizes.body):
            self.advance(self.spacing.paragraph)

    def _add_marked_items(self, items: Sequence[str], text_indent: float, item_gap: float,
                          draw_marker: Callable[[int], None]):
        """
        Render one marker plus wrapped text per item.

        Each item is checked for space as a whole, so an item only spans a
        page boundary when it is taller than a page.
        """
        font_size = self.sizes.body
        line_height = self.config.line_height(font_size)
        drawn = 0

        for index, item in enumerate(items):
            cleaned = clean_text(item)
            if not cleaned:
                continue

            lines = wrap_text(cleaned, self.fonts.regular, font_size, self.content_width - text_indent)
            self.ensure_space(max(10, len(lines) * line_height + item_gap))

            draw_marker(index)

            self._set_text_style(font_size, self.colors.text)
            for line_index, line in enumerate(lines):
                if line_index > 0:
                    self.ensure_space(5)
                self.c.drawString(self._left + text_indent, self.y, line)
                self.advance(line_height)
            self.advance(item_gap)
            drawn += 1

        if drawn:
            self.advance(self.spacing.paragraph)

    def add_bullet_list(self, items: Sequence[str], bullet_color: Optional[RGB] = None):
        """Add a bullet list."""
        def marker(_index: int):
            self._set_text_style(self.sizes.body, bullet_color or self.colors.text)
            self.c.drawString(self._left, self.y, "•")

        self._add_marked_items(items, self.spacing.bullet_indent, self.spacing.bullet_item_gap, marker)

    def add_numbered_list(self, items: Sequence[str]):
        """Add a numbered list; numbers follow item positions."""
        def marker(index: int):
            self._set_text_style(self.sizes.body, self.colors.text, bold=True)
            self.c.drawString(self._left, self.y, f"{index + 1}.")

        self._add_marked_items(items, self.spacing.number_indent, self.spacing.number_item_gap, marker)

    def _draw_tick(self, color: RGB):
        x, y = self._left + 2, self.y - 1.5
        self._set_stroke(color, 0.6)
        self.c.line(x - 1.5, y, x - 0.4, y + 1.2)
        self.c.line(x - 0.4, y + 1.2, x + 1.6, y - 1.6)

    def _draw_cross(self, color: RGB):
        x, y = self._left + 2, self.y - 1.5
        self._set_stroke(color, 0.5)
        self.c.line(x - 1.5, y - 1.5, x + 1.5, y + 1.5)
        self.c.line(x - 1.5, y + 1.5, x + 1.5, y - 1.5)

    def add_inclusions_list(self, items: Sequence[str]):
        """Add inclusions list (drawn green dot, no font glyph dependency)."""
        def marker(_index: int):
            self.c.setFillColorRGB(*self.colors.success)
            self.c.circle(self._left + 2, self.y - 1.5, 1.5, stroke=0, fill=1)

        self._add_marked_items(items, self.spacing.glyph_indent, self.spacing.bullet_item_gap, marker)

    def add_exclusions_list(self, items: Sequence[str]):
        """Add exclusions list (drawn red cross)."""
        self._add_marked_items(
            items, self.spacing.glyph_indent, self.spacing.bullet_item_gap,
            lambda _index: self._draw_cross(self.colors.error),
        )

    def add_checklist(self, items: Sequence[Tuple[str, Optional[bool]]]):
        """
        Add a checklist with a pass/fail glyph per item.

        Args:
            items: (text, passed) pairs; passed None draws an empty box
        """
        def marker(index: int):
            passed = items[index][1]
            if passed is True:
                self._draw_tick(self.colors.success)
            elif passed is False:
                self._draw_cross(self.colors.error)
            else:
                self._set_stroke(self.colors.text_muted, 0.3)
                self.c.rect(self._left + 0.5, self.y - 3, 3, 3, stroke=1, fill=0)

        self._add_marked_items(
            [text for text, _ in items], self.spacing.glyph_indent, self.spacing.bullet_item_gap, marker,
        )

    # ------------------------------------------------------------------
    # Headers
    # ------------------------------------------------------------------

    def add_branded_header(self, subtitle: Optional[str] = None):
        """Add the product-branded banner (used when no business identity exists)."""
        self.c.setFillColorRGB(*self.colors.primary)
        self.c.rect(0, 0, self.page_cfg.width, 35, stroke=0, fill=1)

        self._set_text_style(22, self.colors.white, bold=True)
        self.c.drawString(self._left, 18, self.config.brand_name)

        if subtitle:
            self._set_text_style(10, self.colors.white)
            self.c.drawString(self._left, 26, clean_text(subtitle))

        self.set_y(50)

    def add_business_header(self, issuer: BusinessIdentity):
        """
        Add the business identity banner at the top of the page.

        Shows legal name, trading name (only when it differs), formatted ABN
        and a right-aligned contact block. Every field is optional.
        """
        self.c.setFillColorRGB(*self.colors.bg_subtle)
        self.c.rect(0, 0, self.page_cfg.width, 45, stroke=0, fill=1)
        self._set_stroke(self.colors.border, 0.5)
        self.c.line(0, 45, self.page_cfg.width, 45)

        y_pos = 12.0

        if issuer.legal_name:
            self._set_text_style(16, self.colors.text, bold=True)
            self.c.drawString(self._left, y_pos, issuer.legal_name)
            y_pos += 6

        if issuer.trading_name and issuer.trading_name != issuer.legal_name:
            self._set_text_style(10, self.colors.text_secondary)
            self.c.drawString(self._left, y_pos, f"Trading as: {issuer.trading_name}")
            y_pos += 4

        if issuer.abn:
            self._set_text_style(9, self.colors.text_muted)
            self.c.drawString(self._left, y_pos, f"ABN: {format_abn(issuer.abn)}")
            y_pos += 4

        # Contact block, right-aligned
        right_y = 12.0
        self._set_text_style(9, self.colors.text_secondary)
        for contact in (issuer.phone, issuer.email):
            if contact:
                self.c.drawRightString(self._right, right_y, contact)
                right_y += 4

        address = issuer.address()
        if address:
            self._set_text_style(8, self.colors.text_muted)
            for line in wrap_text(address, self.fonts.regular, 8, self.content_width / 2):
                self.c.drawRightString(self._right, right_y, line)
                right_y += 3.5

        self.set_y(55)

    def _draw_column(self, texts: Iterable[Optional[str]], x: float, y: float, max_width: float,
                     size: float, step: float, bottom: float, bold: bool = False) -> float:
        """Draw wrapped ``texts`` downwards from ``y`` without passing ``bottom``; returns the next y."""
        font = self._font(bold)
        for text in texts:
            for line in wrap_text(clean_text(text), font, size, max_width):
                if y > bottom:
                    return y
                self.c.drawString(x, y, line)
                y += step
        return y

    def add_premium_header(self, document_type: str, document_number: Optional[str] = None,
                           document_date: Optional[str] = None, issuer: Optional[BusinessIdentity] = None,
                           recipient: Optional[Recipient] = None, job_reference: Optional[str] = None,
                           project_name: Optional[str] = None, project_address: Optional[str] = None):
        """
        Add the navy document banner used on issued documents.

        The banner carries the business identity (product branding without a
        legal name) on the left and the document type, reference and date on
        the right. A contact panel with the recipient and a project panel
        follow when there is anything to put in them.

        Args:
            document_type: Label shown in gold, upper-cased
            document_number: ``Ref:`` line
            document_date: Pre-formatted date
            issuer: Business identity; the licence number shows beside the ABN
            recipient: ``TO:`` column of the contact panel
            job_reference: Short job reference for the project panel
            project_name: Project title
            project_address: Site address
        """
        page_width = self.page_cfg.width
        self.c.setFillColorRGB(*self.colors.navy)
        self.c.rect(0, 0, page_width, 50, stroke=0, fill=1)
        self.c.setFillColorRGB(*self.colors.gold)
        self.c.rect(0, 50, page_width, 2, stroke=0, fill=1)

        y_pos = 14.0
        if issuer and issuer.legal_name:
            self._set_text_style(18, self.colors.white, bold=True)
            self.c.drawString(self._left, y_pos, issuer.legal_name.upper())
            y_pos += 6

            if issuer.trading_name and issuer.trading_name != issuer.legal_name:
                self._set_text_style(9, self.colors.text_light)
                self.c.drawString(self._left, y_pos, f"Trading as: {issuer.trading_name}")
                y_pos += 4

            credentials = []
            if issuer.abn:
                credentials.append(f"ABN: {format_abn(issuer.abn)}")
            if issuer.license_number:
                credentials.append(f"License: {issuer.license_number}")
            if credentials:
                self._set_text_style(8, self.colors.text_light)
                self.c.drawString(self._left, y_pos, "  |  ".join(credentials))
        else:
            self._set_text_style(18, self.colors.white, bold=True)
            self.c.drawString(self._left, y_pos, self.config.brand_name)
            self._set_text_style(9, self.colors.text_light)
            self.c.drawString(self._left, y_pos + 6, self.config.brand_tagline)

        right_y = 14.0
        self._set_text_style(12, self.colors.gold, bold=True)
        self.c.drawRightString(self._right, right_y, document_type.upper())
        right_y += 6
        if document_number:
            self._set_text_style(9, self.colors.white)
            self.c.drawRightString(self._right, right_y, f"Ref: {document_number}")
            right_y += 4
        if document_date:
            self._set_text_style(8, self.colors.text_light)
            self.c.drawRightString(self._right, right_y, f"Date: {document_date}")

        self.set_y(60)

        contact = [issuer.phone, issuer.email, issuer.address()] if issuer else []
        has_recipient = bool(recipient and recipient.name)
        if any(contact) or has_recipient:
            top = self.y - 4
            bottom = top + 26
            column_width = self.content_width / 2 - 14
            self.c.setFillColorRGB(*self.colors.bg_subtle)
            self.c.rect(self._left, top, self.content_width, 28, stroke=0, fill=1)
            self._set_stroke(self.colors.border, 0.3)
            self.c.rect(self._left, top, self.content_width, 28, stroke=1, fill=0)

            self._set_text_style(7, self.colors.text_muted, bold=True)
            self.c.drawString(self._left + 4, self.y, "FROM:")
            self._set_text_style(8, self.colors.text)
            self._draw_column(contact, self._left + 4, self.y + 4, column_width, 8, 4, bottom)

            if has_recipient:
                mid_x = self._left + self.content_width / 2 + 10
                self._set_text_style(7, self.colors.text_muted, bold=True)
                self.c.drawString(mid_x, self.y, "TO:")
                self._set_text_style(8, self.colors.text)
                self._draw_column([recipient.name, recipient.address, recipient.email],
                                  mid_x, self.y + 4, column_width, 8, 4, bottom)

            self.advance(32)

        if project_name or project_address or job_reference:
            top = self.y - 4
            half_width = self.content_width / 2 - 8
            self.c.setFillColorRGB(*self.colors.highlight_bg)
            self.c.rect(self._left, top, self.content_width, 18, stroke=0, fill=1)
            self._set_stroke(self.colors.highlight_border, 0.3)
            self.c.rect(self._left, top, self.content_width, 18, stroke=1, fill=0)

            self._set_text_style(7, self.colors.warning, bold=True)
            self.c.drawString(self._left + 4, self.y, "PROJECT DETAILS")

            # One line per field; the panel has a fixed height
            self._set_text_style(8, self.colors.text)
            project_y = self.y + 5
            if project_name:
                self._draw_column([f"Project: {project_name}"], self._left + 4, project_y,
                                  half_width, 8, 4, project_y)
            if project_address:
                self._draw_column([f"Location: {project_address}"], self._left + self.content_width / 2,
                                  project_y, half_width, 8, 4, project_y)
            if job_reference:
                self._draw_column([f"Job Ref: {job_reference}"], self._left + 4, project_y + 4,
                                  half_width, 8, 4, project_y + 4)

            self.advance(22)

    # ------------------------------------------------------------------
    # Structured blocks
    # ------------------------------------------------------------------

    def add_metadata(self, items: Iterable[Tuple[str, Optional[str]]]):
        """Add ``Label: value`` rows; rows without a value are skipped."""
        drawn = 0
        for label, value in items:
            cleaned = clean_text(value)
            if not cleaned:
                continue
            self._set_text_style(self.sizes.small, self.colors.text_muted)
            for line in wrap_text(f"{label}: {cleaned}", self.fonts.regular, self.sizes.small,
                                  self.content_width):
                self.ensure_space(6)
                self.c.drawString(self._left, self.y, line)
                self.advance(5)
            drawn += 1
        if drawn:
            self.advance(self.spacing.paragraph)

    def add_separator(self):
        """Add horizontal line separator."""
        self.ensure_space(5)
        self._set_stroke(self.colors.border, 0.3)
        self.c.line(self._left, self.y, self._right, self.y)
        self.advance(5)

    def add_highlight_box(self, label: str, value: str, bg_color: Optional[RGB] = None):
        """Add a shaded box with a label and a large value."""
        self.ensure_space(25)
        box_height = 20
        self.c.setFillColorRGB(*(bg_color or self.colors.warning_bg))
        self.c.rect(self._left, self.y - 2, self.content_width, box_height, stroke=0, fill=1)

        self._set_text_style(12, self.colors.text, bold=True)
        self.c.drawString(self._left + 4, self.y + 6, clean_text(label))
        self.c.setFont(self.fonts.bold, 14)
        self.c.drawString(self._left + 4, self.y + 14, clean_text(value))

        self.advance(box_height + 8)

    def add_totals_box(self, total: float, subtotal: Optional[float] = None,
                       gst: Optional[float] = None,
                       additional_lines: Sequence[Tuple[str, Union[float, str], bool]] = (),
                       currency: str = "AUD"):
        """
        Add the subtotal / GST / total summary box.

        Amounts are rounded to whole currency units before display.
        """
        box_width = 80
        box_x = self._right - box_width
        box_height = 30
        if subtotal is not None:
            box_height += 8
        if gst is not None:
            box_height += 8
        box_height += 8 * len(additional_lines)

        self.ensure_space(box_height + 10)
        top = self.y

        self.c.setFillColorRGB(*self.colors.navy)
        self.c.rect(box_x, top - 2, box_width, box_height, stroke=0, fill=1)
        self.c.setFillColorRGB(*self.colors.gold)
        self.c.rect(box_x, top - 2, 3, box_height, stroke=0, fill=1)

        label_x = box_x + 8
        value_x = box_x + box_width - 6
        line_y = top + 5

        def money(amount: float) -> str:
            return format_whole_currency(amount, currency)

        for label, value, bold in additional_lines:
            self._set_text_style(8, self.colors.text_light, bold=bold)
            self.c.drawString(label_x, line_y, label)
            self.c.drawRightString(value_x, line_y, money(value) if isinstance(value, (int, float)) else str(value))
            line_y += 8

        self._set_text_style(8, self.colors.text_light)
        if subtotal is not None:
            self.c.drawString(label_x, line_y, "Subtotal (ex GST)")
            self.c.drawRightString(value_x, line_y, money(subtotal))
            line_y += 8
        if gst is not None:
            self.c.drawString(label_x, line_y, "GST (10%)")
            self.c.drawRightString(value_x, line_y, money(gst))
            line_y += 8

        self._set_stroke(self.colors.gold, 0.5)
        self.c.line(label_x, line_y - 2, value_x, line_y - 2)
        line_y += 4

        self._set_text_style(12, self.colors.white, bold=True)
        self.c.drawString(label_x, line_y, "TOTAL")
        self.c.setFillColorRGB(*self.colors.gold)
        self.c.drawRightString(value_x, line_y, money(total))

        line_y += 8
        self._set_text_style(6, self.colors.text_light)
        self.c.drawString(label_x, line_y, "GST inclusive. ABN required for tax invoice.")

        self.advance(box_height + 10)

    def add_table(self, headers: Sequence[str], rows: Sequence[Sequence[str]],
                  col_widths: Optional[Sequence[float]] = None):
        """
        Add a table with a styled header and alternating row shading.

        Each row grows to its tallest wrapped cell and is checked for space
        before drawing, so rows are never split; the header row repeats at
        the top of a continuation page.
        """
        if not headers:
            return
        widths = list(col_widths) if col_widths else [self.content_width / len(headers)] * len(headers)
        pad = self.spacing.table_cell_padding
        line_h = self.spacing.table_line_height
        font_size = self.sizes.small

        def wrap_cells(cells: Sequence[str], bold: bool) -> List[List[str]]:
            padded = list(cells) + [""] * (len(widths) - len(cells))
            return [
                wrap_text(clean_text(cell), self._font(bold), font_size, width - 2 * pad)
                for cell, width in zip(padded, widths)
            ]

        header_cells = wrap_cells(headers, bold=True)
        header_height = max(self.spacing.table_row_height + 2,
                            max(len(c) for c in header_cells) * line_h + 3)

        def draw_header():
            top = self.y
            self.c.setFillColorRGB(*self.colors.primary)
            self.c.rect(self._left, top, self.content_width, header_height, stroke=0, fill=1)
            self._set_stroke(self.colors.primary_dark, 0.5)
            self.c.rect(self._left, top, self.content_width, header_height, stroke=1, fill=0)
            self._set_text_style(font_size, self.colors.white, bold=True)
            self._draw_cells(header_cells, widths, top)
            self.advance(header_height)

        self.ensure_space(header_height + 10)
        draw_header()

        for row_index, row in enumerate(rows):
            cells = wrap_cells(row, bold=False)
            row_height = max(self.spacing.table_row_height, max(len(c) for c in cells) * line_h + 2)

            if self.ensure_space(row_height):
                draw_header()

            top = self.y
            if row_index % 2 == 0:
                self.c.setFillColorRGB(*self.colors.bg_subtle)
                self.c.rect(self._left, top, self.content_width, row_height, stroke=0, fill=1)
            self._set_stroke(self.colors.border, 0.3)
            self.c.rect(self._left, top, self.content_width, row_height, stroke=1, fill=0)

            self._set_text_style(font_size, self.colors.text)
            self._draw_cells(cells, widths, top)
            self.advance(row_height)

        self._set_stroke(self.colors.border_strong, 0.5)
        self.c.line(self._left, self.y, self._left + self.content_width, self.y)
        self.advance(self.spacing.paragraph)

    def _draw_cells(self, cells: List[List[str]], widths: Sequence[float], top: float):
        x = self._left
        pad = self.spacing.table_cell_padding
        for lines, width in zip(cells, widths):
            for line_index, line in enumerate(lines):
                self.c.drawString(x + pad, top + 5 + line_index * self.spacing.table_line_height, line)
            x += width

    def add_signature_block(self, contractor_name: Optional[str] = None, client_name: Optional[str] = None,
                            title: str = "Approval and Signatures",
                            contractor_label: str = "CONTRACTOR", client_label: str = "CLIENT / PRINCIPAL",
                            show_contractor: bool = True, show_client: bool = True):
        """Add side-by-side contractor and client signature columns."""
        self.ensure_space(80)
        self.add_section_heading(title)

        col_width = (self.content_width - 10) / 2
        line_length = col_width - 20
        start_y = self.y

        columns = []
        if show_contractor:
            columns.append((self._left, contractor_label, contractor_name))
        if show_client:
            columns.append((self._left + col_width + 10, client_label, client_name))

        for x, label, name in columns:
            y_pos = start_y
            self._set_text_style(8, self.colors.text_muted, bold=True)
            self.c.drawString(x, y_pos, label)
            y_pos += 8

            self._set_text_style(9, self.colors.text)
            self.c.drawString(x, y_pos, "Name:")
            self.c.drawString(x + 15, y_pos, clean_text(name) or BLANK_NAME)
            y_pos += 12

            self._set_stroke(self.colors.text_muted, 0.3)
            self.c.drawString(x, y_pos, "Signature:")
            self.c.line(x + 22, y_pos, x + line_length, y_pos)
            y_pos += 12

            self.c.drawString(x, y_pos, "Date:")
            self.c.line(x + 15, y_pos, x + line_length, y_pos)

        self.set_y(start_y + 45)

    def add_image(self, source: Union[str, bytes, None], width: float = 80, height: float = 30) -> bool:
        """
        Add a raster image (logo, captured signature).

        Returns:
            False if the image could not be decoded; the document carries on without it
        """
        if not source:
            return False
        try:
            data = decode_image_source(source)
            ImageReader(io.BytesIO(data)).getSize()
        except Exception as e:
            logger.warning(f"Failed to add image to PDF: {e}")
            return False

        self.ensure_space(height)
        self.c.drawImage(data, self._left, self.y, width, height)
        self.advance(height + 8)
        return True

    def add_ai_warning(self):
        """Add the review warning shown on unconfirmed generated content."""
        self.ensure_space(35)
        box_height = 28
        box_y = self.y - 2

        self.c.setFillColorRGB(*self.colors.warning_bg)
        self.c.rect(self._left, box_y, self.content_width, box_height, stroke=0, fill=1)
        self._set_stroke(self.colors.warning_border, 0.5)
        self.c.rect(self._left, box_y, self.content_width, box_height, stroke=1, fill=0)

        self._set_text_style(9, self.colors.warning, bold=True)
        self.c.drawString(self._left + 4, self.y + 4, "AI-GENERATED CONTENT WARNING")

        self._set_text_style(8, self.colors.warning_text)
        warning_y = self.y + 10
        for line in wrap_text(AI_WARNING_TEXT, self.fonts.regular, 8, self.content_width - 8):
            self.c.drawString(self._left + 4, warning_y, line)
            warning_y += 4

        self.set_y(box_y + box_height + 10)

    def add_export_identifiers(self, document_type: str, document_id: str, job_id: str,
                               generated_at: Optional[datetime] = None, revision: int = 1,
                               contractor_name: Optional[str] = None):
        """Add the document / job reference box."""
        self.ensure_space(30)
        top = self.y - 2

        self.c.setFillColorRGB(*self.colors.bg_subtle)
        self.c.rect(self._left, top, self.content_width, 24, stroke=0, fill=1)
        self._set_stroke(self.colors.border, 0.3)
        self.c.rect(self._left, top, self.content_width, 24, stroke=1, fill=0)

        generated = format_datetime(generated_at or datetime.now())

        self._set_text_style(8, self.colors.text_muted)
        self.c.drawString(self._left + 4, self.y + 4, f"Document: {document_type}")
        self.c.drawString(self._left + 4, self.y + 10, f"ID: {document_id}")
        self.c.drawString(self._left + 4, self.y + 16, f"Job Ref: {job_id}")

        right_x = self._right - 4
        self.c.drawRightString(right_x, self.y + 4, f"Generated: {generated}")
        self.c.drawRightString(right_x, self.y + 10, f"Revision: {revision}")
        if contractor_name:
            self.c.drawRightString(right_x, self.y + 16, f"Issued by: {contractor_name}")

        self.advance(30)

    def add_jurisdiction_label(self, jurisdiction: Optional[str] = None):
        """Add the jurisdiction label with a review note (no compliance claims)."""
        self.ensure_space(20)
        label = jurisdiction or "Western Australia"

        self.c.setFillColorRGB(*self.colors.info_bg)
        self.c.rect(self._left, self.y - 2, self.content_width, 16, stroke=0, fill=1)
        self._set_stroke(self.colors.info_border, 0.3)
        self.c.rect(self._left, self.y - 2, self.content_width, 16, stroke=1, fill=0)

        self._set_text_style(8, self.colors.info_text, bold=True)
        self.c.drawString(self._left + 4, self.y + 4, f"Jurisdiction: {label}")
        self._set_text_style(7, self.colors.info_accent)
        self.c.drawString(
            self._left + 4, self.y + 10,
            "This document supports alignment with industry standards; professional review required.",
        )

        self.advance(22)

    def add_compliance_reference(self, state_code: Optional[str] = None):
        """Add the state WHS authority and legislation reference box."""
        info = get_state_compliance(state_code)
        self.ensure_space(35)

        self.c.setFillColorRGB(*self.colors.compliance_bg)
        self.c.rect(self._left, self.y - 2, self.content_width, 28, stroke=0, fill=1)
        self._set_stroke(self.colors.compliance_border, 0.3)
        self.c.rect(self._left, self.y - 2, self.content_width, 28, stroke=1, fill=0)

        self._set_text_style(8, self.colors.compliance_title, bold=True)
        self.c.drawString(self._left + 4, self.y + 3, "AUSTRALIAN COMPLIANCE REFERENCE")

        self._set_text_style(7, self.colors.compliance_text)
        self.c.drawString(self._left + 4, self.y + 9,
                          f"Jurisdiction: {info.state}  |  Authority: {info.authority}")
        self.c.drawString(self._left + 4, self.y + 14, f"Legislation: {info.legislation}")

        self._set_text_style(6, self.colors.success)
        disclaimer = ("This document is formatted for Australian industry standards. "
                      "Professional review and verification required. No compliance claims are made.")
        note_y = self.y + 20
        for line in wrap_text(disclaimer, self.fonts.regular, 6, self.content_width - 8):
            self.c.drawString(self._left + 4, note_y, line)
            note_y += 2.5

        self.advance(34)

    def add_payment_terms(self, bank_name: Optional[str] = None, bsb: Optional[str] = None,
                          account_number: Optional[str] = None, account_name: Optional[str] = None,
                          payment_terms: Optional[str] = None, due_date: Optional[str] = None,
                          payment_reference: Optional[str] = None):
        """Add the Payment Details section: bank transfer panel beside the terms panel."""
        # Heading and both panels move to the next page together
        self.ensure_space(self.spacing.section + 12 + 42)
        self.add_section_heading("Payment Details")

        column_width = (self.content_width - 10) / 2
        text_width_mm = column_width - 8
        top = self.y - 2
        bottom = top + 33
        right_x = self._left + column_width + 10

        self.c.setFillColorRGB(*self.colors.bg_subtle)
        self.c.rect(self._left, top, column_width, 35, stroke=0, fill=1)
        self._set_stroke(self.colors.border, 0.3)
        self.c.rect(self._left, top, column_width, 35, stroke=1, fill=0)

        self._set_text_style(8, self.colors.text_muted, bold=True)
        self.c.drawString(self._left + 4, self.y + 3, "BANK TRANSFER DETAILS")
        self._set_text_style(9, self.colors.text)
        self._draw_column(
            [f"{label}: {value}" for label, value in (
                ("Bank", bank_name), ("BSB", bsb), ("Account", account_number), ("Name", account_name),
            ) if value],
            self._left + 4, self.y + 9, text_width_mm, 9, 5, bottom,
        )

        self.c.setFillColorRGB(*self.colors.highlight_bg)
        self.c.rect(right_x, top, column_width, 35, stroke=0, fill=1)
        self._set_stroke(self.colors.highlight_border, 0.3)
        self.c.rect(right_x, top, column_width, 35, stroke=1, fill=0)

        self._set_text_style(8, self.colors.warning, bold=True)
        self.c.drawString(right_x + 4, self.y + 3, "PAYMENT TERMS")
        line_y = self.y + 9
        if payment_terms:
            self._set_text_style(9, self.colors.text)
            line_y = self._draw_column([f"Terms: {payment_terms}"], right_x + 4, line_y, text_width_mm, 9, 5, bottom)
        if due_date:
            self._set_text_style(9, self.colors.text, bold=True)
            line_y = self._draw_column([f"Due Date: {due_date}"], right_x + 4, line_y, text_width_mm, 9, 5,
                                       bottom, bold=True)
        if payment_reference:
            self._set_text_style(9, self.colors.text)
            self._draw_column([f"Reference: {payment_reference}"], right_x + 4, line_y, text_width_mm, 9, 5,
                              bottom)

        self.advance(42)

    # ------------------------------------------------------------------
    # Footer pass
    # ------------------------------------------------------------------

    def _stamp_pages(self, draw: Callable[[int, int], None]):
        total = self.c.getPageCount()
        for page_number in range(1, total + 1):
            self.c.setPage(page_number)
            draw(page_number, total)
        self._footer_applied = True

    def add_issued_footer(self, issuer_name: str, document_id: Optional[str] = None,
                          generated_at: Optional[datetime] = None):
        """
        Stamp the issuer footer on every page.

        Must run after the last content block: it needs the final page count.
        """
        timestamp = format_timestamp(generated_at or datetime.now())
        footer_text = f"Document: {document_id} | {timestamp}" if document_id else timestamp
        bottom = self.page_cfg.height

        def draw(page_number: int, total: int):
            self._set_stroke(self.colors.border, 0.3)
            self.c.line(self._left, bottom - 18, self._right, bottom - 18)
            self._set_text_style(7, self.colors.text_muted)
            self.c.drawCentredString(self.page_cfg.width / 2, bottom - 13, f"Issued by {issuer_name}")
            self.c.drawCentredString(self.page_cfg.width / 2, bottom - 9,
                                     f"{footer_text} | Page {page_number} of {total}")

        self._stamp_pages(draw)

    def add_standard_footers(self, job_id: Optional[str] = None, generated_at: Optional[datetime] = None):
        """Stamp the product footer on every page (no business identity)."""
        timestamp = format_timestamp(generated_at or datetime.now())
        footer_text = f"Generated by {self.config.brand_name}  |  {timestamp}"
        if job_id:
            footer_text += f"  |  Job {job_id[:8]}"
        bottom = self.page_cfg.height

        def draw(page_number: int, total: int):
            self._set_text_style(self.sizes.tiny, self.colors.text_light)
            self.c.drawCentredString(self.page_cfg.width / 2, bottom - 20, self.config.footer_note)
            self.c.drawCentredString(self.page_cfg.width / 2, bottom - 10,
                                     f"{footer_text}  |  Page {page_number} of {total}")

        self._stamp_pages(draw)

    def add_premium_footer(self, issuer_name: Optional[str] = None, document_id: Optional[str] = None,
                           generated_at: Optional[datetime] = None, include_compliance_note: bool = True):
        """Stamp the shaded footer band that pairs with ``add_premium_header``."""
        timestamp = format_timestamp(generated_at or datetime.now())
        centre_text = f"Doc: {document_id}  |  {timestamp}" if document_id else timestamp
        page_width = self.page_cfg.width
        band_top = self.page_cfg.height - 22

        def draw(page_number: int, total: int):
            self.c.setFillColorRGB(*self.colors.bg_subtle)
            self.c.rect(0, band_top, page_width, 22, stroke=0, fill=1)
            self._set_stroke(self.colors.border, 0.5)
            self.c.line(0, band_top, page_width, band_top)
            self._set_stroke(self.colors.gold, 1)
            self.c.line(0, band_top + 1, page_width, band_top + 1)

            if issuer_name:
                self._set_text_style(7, self.colors.text_muted, bold=True)
                self.c.drawString(self._left, band_top + 8, f"Issued by {issuer_name}")
            self._set_text_style(7, self.colors.text_muted)
            self.c.drawCentredString(page_width / 2, band_top + 8, centre_text)
            self.c.drawRightString(self._right, band_top + 8, f"Page {page_number} of {total}")

            if include_compliance_note:
                self._set_text_style(6, self.colors.text_light)
                self.c.drawCentredString(page_width / 2, band_top + 15, PREMIUM_FOOTER_NOTE)

        self._stamp_pages(draw)

    # ------------------------------------------------------------------
    # Block dispatch and output
    # ------------------------------------------------------------------

    def add_block(self, block: Block):
        """Render a single block based on its type."""
        if isinstance(block, TitleBlock):
            self.add_title(block.text)
        elif isinstance(block, HeadingBlock):
            if block.level == 1:
                self.add_section_heading(block.text)
            else:
                self.add_subheading(block.text)
        elif isinstance(block, ParagraphBlock):
            self.add_paragraph(block.text)
        elif isinstance(block, TextBlock):
            color = self.colors.named().get(block.color) if block.color else None
            self.add_text(block.text, font_size=block.font_size, bold=block.bold, color=color,
                          align=block.align, indent=block.indent)
        elif isinstance(block, ListBlock):
            {
                "bullet": self.add_bullet_list,
                "number": self.add_numbered_list,
                "inclusions": self.add_inclusions_list,
                "exclusions": self.add_exclusions_list,
            }[block.variant](block.items)
        elif isinstance(block, ChecklistBlock):
            self.add_checklist([(item.text, item.passed) for item in block.items])
        elif isinstance(block, TableBlock):
            self.add_table(block.headers, block.rows, block.col_widths)
        elif isinstance(block, TotalsBlock):
            self.add_totals_box(
                block.total, subtotal=block.subtotal, gst=block.gst,
                additional_lines=[(line.label, line.value, line.bold) for line in block.additional_lines],
                currency=block.currency,
            )
        elif isinstance(block, HighlightBlock):
            bg = self.colors.named().get(block.color) if block.color else None
            self.add_highlight_box(block.label, block.value, bg_color=bg)
        elif isinstance(block, SignatureBlock):
            self.add_signature_block(
                contractor_name=block.contractor_name, client_name=block.client_name, title=block.title,
                contractor_label=block.contractor_label, client_label=block.client_label,
                show_contractor=block.show_contractor, show_client=block.show_client,
            )
        elif isinstance(block, MetadataBlock):
            self.add_metadata([(item.label, item.value) for item in block.items])
        elif isinstance(block, SeparatorBlock):
            self.add_separator()
        elif isinstance(block, SpacerBlock):
            self.advance(block.height_mm)
        elif isinstance(block, PageBreakBlock):
            self.add_page()
        elif isinstance(block, ImageBlock):
            self.add_image(block.src, width=block.width_mm, height=block.height_mm)
        elif isinstance(block, AiWarningBlock):
            self.add_ai_warning()
        elif isinstance(block, IdentifiersBlock):
            self.add_export_identifiers(
                block.document_type, block.document_id, block.job_id,
                generated_at=block.generated_at, revision=block.revision,
                contractor_name=block.contractor_name,
            )
        elif isinstance(block, JurisdictionBlock):
            self.add_jurisdiction_label(block.jurisdiction)
        elif isinstance(block, ComplianceBlock):
            self.add_compliance_reference(block.state_code)
        elif isinstance(block, PaymentTermsBlock):
            self.add_payment_terms(
                bank_name=block.bank_name, bsb=block.bsb, account_number=block.account_number,
                account_name=block.account_name, payment_terms=block.payment_terms,
                due_date=block.due_date, payment_reference=block.payment_reference,
            )

    def render(self, blocks: Iterable[Block]) -> "PdfDocument":
        """Content pass: append blocks in order."""
        for block in blocks:
            self.add_block(block)
        return self

    def finalize(self) -> "PdfDocument":
        """Footer pass; applies the standard footer if none was stamped yet."""
        if not self._footer_applied:
            self.add_standard_footers()
        return self

    def to_bytes(self) -> bytes:
        """
        Serialize to PDF bytes.

        Call after the footer pass; the result is cached, so repeated calls
        return identical bytes.
        """
        if self._pdf_bytes is None:
            self._pdf_bytes = render_pages(self.c.pages, self.config, title=self.title, author=self.author)
        return self._pdf_bytes

    def to_data_string(self) -> str:
        """PDF as a base64 data URI string."""
        return to_data_uri(self.to_bytes())


def build_document(document: ExportDocument, config: Optional[LayoutConfig] = None) -> PdfDocument:
    """
    Lay out an export payload: header, blocks, then the footer pass.

    Args:
        document: Validated export payload
        config: Layout override (page size from ``document.meta`` otherwise)

    Returns:
        Finalized engine, ready for ``to_bytes``/``to_data_string``
    """
    config = config or LayoutConfig.for_page_size(document.meta.page_size)
    pdf = PdfDocument(config, title=document.meta.title, author=document.meta.author)

    issuer = document.issuer
    footer = document.footer
    issuer_name = footer.issuer_name or (issuer.legal_name if issuer else None)

    if document.layout == "premium":
        project = document.project or ProjectDetails()
        pdf.add_premium_header(
            document.document_type.replace("_", " "),
            document_number=footer.document_id,
            document_date=format_date(footer.generated_at or datetime.now()),
            issuer=issuer,
            recipient=document.recipient,
            job_reference=project.job_reference,
            project_name=project.name,
            project_address=project.address,
        )
        pdf.render(document.blocks)
        pdf.add_premium_footer(
            issuer_name or config.brand_name, footer.document_id, generated_at=footer.generated_at,
            include_compliance_note=footer.include_compliance_note,
        )
        return pdf

    if issuer and issuer.legal_name:
        pdf.add_business_header(issuer)
    else:
        pdf.add_branded_header(document.header_subtitle)

    pdf.render(document.blocks)

    if issuer_name:
        pdf.add_issued_footer(issuer_name, footer.document_id, generated_at=footer.generated_at)
    else:
        pdf.add_standard_footers(job_id=document.record_id or None, generated_at=footer.generated_at)

    return pdf


def render_document(document: ExportDocument) -> PdfDocument:
    """
    Render an export payload and serialize it.

    Args:
        document: Export payload

    Returns:
        Serialized engine; ``to_bytes()`` returns the cached PDF
    """
    start_time = time.time()
    pdf = build_document(document)
    pdf.to_bytes()
    logger.info(
        f"Rendered {document.document_type} with {len(document.blocks)} blocks "
        f"on {pdf.page_count} page(s) in {time.time() - start_time:.3f}s"
    )
    return pdf
