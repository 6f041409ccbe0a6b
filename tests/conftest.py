"""
Shared fixtures and helpers for the tradepdf test suite.
"""

import base64
import io
from datetime import datetime
from typing import Iterator, List, Tuple

import pytest
from PIL import Image

from tradepdf.models import BusinessIdentity
from tradepdf.recorder import TEXT_OPS, DrawOp, PageRecorder
from tradepdf.renderer import PdfDocument
from tradepdf.styles import LayoutConfig

LOREM = (
    "Supply and install new hot water system including isolation valves, tempering "
    "valve and compliance certificate. Remove and dispose of the existing unit, make "
    "good to surrounding surfaces and leave the site clean and tidy at completion."
)

JOB_ID = "3f2a9c1e-77aa-4c1b-9b7e-0d0c1f2e3a4b"


# ============================================================
# Helper Functions
# ============================================================

def text_runs(recorder: PageRecorder, page_number: int) -> Iterator[Tuple[str, float, DrawOp]]:
    """Yield (font name, font size, op) for every text op on a page."""
    font = ("Helvetica", 10)
    for op in recorder.pages[page_number - 1]:
        if op.name == "setFont":
            font = op.args
        elif op.name in TEXT_OPS:
            yield font[0], font[1], op


def all_text(recorder: PageRecorder) -> List[str]:
    """Every drawn string in the document, page by page."""
    return [text for n in range(1, recorder.getPageCount() + 1) for text in recorder.page_text(n)]


def pages_containing(recorder: PageRecorder, needle: str) -> List[int]:
    return [
        n for n in range(1, recorder.getPageCount() + 1)
        if any(needle in text for text in recorder.page_text(n))
    ]


def make_png_data_uri(width: int = 40, height: int = 20) -> str:
    image = Image.new("RGB", (width, height), (30, 41, 59))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


# ============================================================
# Fixtures
# ============================================================

@pytest.fixture
def config() -> LayoutConfig:
    return LayoutConfig()


@pytest.fixture
def pdf(config) -> PdfDocument:
    return PdfDocument(config)


@pytest.fixture
def fixed_time() -> datetime:
    return datetime(2024, 3, 5, 9, 30)


@pytest.fixture
def business() -> BusinessIdentity:
    return BusinessIdentity(
        legal_name="Acme Trades",
        trading_name="Acme Plumbing",
        abn="12345678901",
        email="office@acmetrades.com.au",
        phone="08 9000 1234",
        address_line1="12 Industry Road",
        suburb="Osborne Park",
        state="WA",
        postcode="6017",
    )


@pytest.fixture
def png_data_uri() -> str:
    return make_png_data_uri()
