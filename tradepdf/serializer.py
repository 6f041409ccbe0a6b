"""
Replay recorded pages onto a ReportLab canvas.

Converts the engine's millimetre, top-down coordinates to PDF points
measured from the bottom-left corner.

License: MIT
"""

import base64
import io
from typing import Iterable, List, Optional

from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from tradepdf.recorder import DrawOp
from tradepdf.styles import LayoutConfig, PageConfig

DATA_URI_PREFIX = "data:application/pdf;filename=generated.pdf;base64,"

to_pt = PageConfig.mm_to_points


def _replay(c: canvas.Canvas, op: DrawOp, page_height: float):
    """Issue one recorded call against the real canvas."""
    name, args, kwargs = op

    def y_pt(y: float) -> float:
        return to_pt(page_height - y)

    if name in ("setFont", "setFillColorRGB", "setStrokeColorRGB"):
        getattr(c, name)(*args)
    elif name == "setLineWidth":
        c.setLineWidth(to_pt(args[0]))
    elif name in ("drawString", "drawCentredString", "drawRightString"):
        x, y, text = args
        getattr(c, name)(to_pt(x), y_pt(y), text)
    elif name == "line":
        x1, y1, x2, y2 = args
        c.line(to_pt(x1), y_pt(y1), to_pt(x2), y_pt(y2))
    elif name == "rect":
        x, y, width, height = args
        c.rect(to_pt(x), y_pt(y + height), to_pt(width), to_pt(height), **kwargs)
    elif name == "roundRect":
        x, y, width, height, radius = args
        c.roundRect(to_pt(x), y_pt(y + height), to_pt(width), to_pt(height), to_pt(radius), **kwargs)
    elif name == "circle":
        x, y, radius = args
        c.circle(to_pt(x), y_pt(y), to_pt(radius), **kwargs)
    elif name == "drawImage":
        data, x, y, width, height = args
        c.drawImage(
            ImageReader(io.BytesIO(data)),
            to_pt(x),
            y_pt(y + height),
            width=to_pt(width),
            height=to_pt(height),
            preserveAspectRatio=True,
            mask="auto",
        )
    else:
        raise ValueError(f"Unknown draw instruction '{name}'")


def render_pages(pages: Iterable[List[DrawOp]], config: LayoutConfig,
                 title: Optional[str] = None, author: Optional[str] = None) -> bytes:
    """
    Serialize recorded pages to PDF bytes.

    The canvas runs in invariant mode so the same pages always produce the
    same bytes.
    """
    buffer = io.BytesIO()
    page_size = (to_pt(config.page.width), to_pt(config.page.height))
    c = canvas.Canvas(buffer, pagesize=page_size, invariant=1)

    if title:
        c.setTitle(title)
    if author:
        c.setAuthor(author)

    for ops in pages:
        for op in ops:
            _replay(c, op, config.page.height)
        c.showPage()

    c.save()
    return buffer.getvalue()


def to_data_uri(pdf_bytes: bytes) -> str:
    """Base64 data URI suitable for inline preview in a browser."""
    return DATA_URI_PREFIX + base64.b64encode(pdf_bytes).decode("ascii")
