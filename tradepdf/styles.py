"""
Layout configuration for the PDF engine.

Defines page geometry, font sizes, spacing and the colour palette used by
every renderer. A ``LayoutConfig`` value is handed to each ``PdfDocument``
at construction, so engines with different page sizes can coexist.

All lengths are millimetres measured from the top-left corner of the page;
font sizes are points.

License: MIT
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Tuple

RGB = Tuple[float, float, float]


@dataclass(frozen=True)
class FontConfig:
    """Standard PDF font names (no embedding required)."""
    regular: str = "Helvetica"
    bold: str = "Helvetica-Bold"
    italic: str = "Helvetica-Oblique"


@dataclass(frozen=True)
class FontSizes:
    """Font sizes in points, per semantic role."""
    title: int = 20
    heading1: int = 14
    heading2: int = 12
    body: int = 10
    small: int = 9
    tiny: int = 8


@dataclass(frozen=True)
class Colors:
    """Color palette in RGB tuples (0-1 range for ReportLab)."""

    # Brand
    primary: RGB = (0.961, 0.620, 0.043)  # #F59E0B
    primary_dark: RGB = (0.851, 0.467, 0.024)  # #D97706
    navy: RGB = (0.118, 0.161, 0.231)  # #1E293B
    gold: RGB = (0.792, 0.541, 0.016)  # #CA8A04

    # Text
    text: RGB = (0.059, 0.090, 0.165)  # #0F172A
    text_secondary: RGB = (0.278, 0.333, 0.412)  # #475569
    text_muted: RGB = (0.392, 0.455, 0.545)  # #64748B
    text_light: RGB = (0.580, 0.639, 0.722)  # #94A3B8

    # Status
    success: RGB = (0.086, 0.639, 0.290)  # #16A34A
    error: RGB = (0.863, 0.149, 0.149)  # #DC2626
    warning: RGB = (0.573, 0.251, 0.055)  # #92400E
    warning_text: RGB = (0.471, 0.208, 0.059)  # #78350F
    warning_bg: RGB = (0.996, 0.953, 0.780)  # #FEF3C7
    warning_border: RGB = (0.984, 0.749, 0.141)  # #FBBF24
    highlight_bg: RGB = (0.996, 0.988, 0.910)  # #FEFCE8
    highlight_border: RGB = (0.992, 0.878, 0.278)  # #FDE047

    # Info boxes
    info_bg: RGB = (0.937, 0.965, 1.0)  # #EFF6FF
    info_border: RGB = (0.749, 0.859, 0.996)  # #BFDBFE
    info_text: RGB = (0.118, 0.251, 0.686)  # #1E40AF
    info_accent: RGB = (0.231, 0.510, 0.965)  # #3B82F6
    compliance_bg: RGB = (0.941, 0.992, 0.957)  # #F0FDF4
    compliance_border: RGB = (0.525, 0.937, 0.675)  # #86EFAC
    compliance_title: RGB = (0.086, 0.396, 0.204)  # #166534
    compliance_text: RGB = (0.082, 0.502, 0.239)  # #15803D

    # Lines and surfaces
    border: RGB = (0.886, 0.910, 0.941)  # #E2E8F0
    border_strong: RGB = (0.796, 0.835, 0.882)  # #CBD5E1
    bg_light: RGB = (0.945, 0.961, 0.976)  # #F1F5F9
    bg_subtle: RGB = (0.973, 0.980, 0.988)  # #F8FAFC

    white: RGB = (1.0, 1.0, 1.0)
    black: RGB = (0.0, 0.0, 0.0)

    def named(self) -> Dict[str, RGB]:
        """Palette as a name -> RGB mapping."""
        return {name: getattr(self, name) for name in self.__dataclass_fields__}


@dataclass(frozen=True)
class Spacing:
    """Spacing values in millimetres."""
    # Line height in mm is font_size * factor
    line_height_factor: float = 0.4
    paragraph: float = 6
    section: float = 12

    # Lists
    bullet_indent: float = 8
    number_indent: float = 10
    glyph_indent: float = 10
    bullet_item_gap: float = 2
    number_item_gap: float = 3

    # Tables
    table_row_height: float = 9
    table_cell_padding: float = 3
    table_line_height: float = 4


@dataclass(frozen=True)
class PageConfig:
    """Page size and margins in millimetres."""

    # A4: 210 × 297 mm
    width: float = 210.0
    height: float = 297.0

    margin_top: float = 25.0
    margin_bottom: float = 30.0
    margin_left: float = 20.0
    margin_right: float = 20.0

    @staticmethod
    def mm_to_points(mm: float) -> float:
        """Convert millimeters to points."""
        return mm * 2.83465

    @staticmethod
    def points_to_mm(points: float) -> float:
        """Convert points to millimeters."""
        return points / 2.83465


PAGE_SIZES: Dict[str, Tuple[float, float]] = {
    "A4": (210.0, 297.0),
    "LETTER": (215.9, 279.4),
}


@dataclass(frozen=True)
class LayoutConfig:
    """
    Immutable layout configuration for one engine instance.

    ``content_width`` is derived once from the page width and side margins and
    is the default wrap width of every renderer.
    """
    page: PageConfig = field(default_factory=PageConfig)
    fonts: FontConfig = field(default_factory=FontConfig)
    font_sizes: FontSizes = field(default_factory=FontSizes)
    spacing: Spacing = field(default_factory=Spacing)
    colors: Colors = field(default_factory=Colors)

    # Product branding used when no business identity is supplied
    brand_name: str = "OMNEXORA"
    brand_tagline: str = "Construction Business Management"
    footer_note: str = "OVIS Checked Output - OMNEXORA Checked Intelligence Systems"

    content_width: float = field(init=False)

    def __post_init__(self):
        object.__setattr__(
            self,
            "content_width",
            self.page.width - self.page.margin_left - self.page.margin_right,
        )

    @property
    def content_bottom(self) -> float:
        """Lowest y (mm from top) content may reach."""
        return self.page.height - self.page.margin_bottom

    def line_height(self, font_size: float) -> float:
        """Vertical advance per wrapped line at ``font_size``."""
        return font_size * self.spacing.line_height_factor

    @classmethod
    def for_page_size(cls, page_size: str = "A4", **overrides) -> "LayoutConfig":
        """Build a config for a named page size (A4 or LETTER)."""
        try:
            width, height = PAGE_SIZES[page_size.upper()]
        except KeyError:
            raise ValueError(f"Unsupported page size '{page_size}'") from None
        page = replace(PageConfig(), width=width, height=height)
        return cls(page=page, **overrides)
