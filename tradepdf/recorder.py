"""
Per-page draw-instruction recording.

``PageRecorder`` exposes the subset of the ReportLab canvas API the engine
draws with, but records each call instead of emitting PDF operators. Pages
stay addressable after they are finished, which is what the footer pass
needs; the serializer later replays every page onto a real canvas.

Coordinates are millimetres from the top-left corner. Text ``y`` is the
baseline; shape ``y`` is the top edge.

License: MIT
"""

from typing import Any, Dict, List, NamedTuple, Tuple


class DrawOp(NamedTuple):
    """One recorded canvas call."""
    name: str
    args: Tuple[Any, ...]
    kwargs: Dict[str, Any]


TEXT_OPS = frozenset({"drawString", "drawRightString", "drawCentredString"})
SHAPE_OPS = frozenset({"line", "rect", "roundRect", "circle", "drawImage"})
DRAW_OPS = TEXT_OPS | SHAPE_OPS


class PageRecorder:
    """Records canvas calls into one instruction list per page."""

    def __init__(self):
        self.pages: List[List[DrawOp]] = [[]]
        self._current = 0
        # Graphics state is re-applied at the start of every page segment,
        # since a real canvas resets it on showPage.
        self._state: Dict[str, DrawOp] = {}

    # ------------------------------------------------------------------
    # Page control
    # ------------------------------------------------------------------

    def showPage(self):
        """Finish the current page and start a new one at the end."""
        self.pages.append([])
        self._current = len(self.pages) - 1
        self._restore_state()

    def setPage(self, page_number: int):
        """Make an existing 1-based page current again."""
        if not 1 <= page_number <= len(self.pages):
            raise IndexError(f"Page {page_number} does not exist (have {len(self.pages)})")
        self._current = page_number - 1
        self._restore_state()

    def getPageNumber(self) -> int:
        return self._current + 1

    def getPageCount(self) -> int:
        return len(self.pages)

    # ------------------------------------------------------------------
    # Graphics state
    # ------------------------------------------------------------------

    def setFont(self, name: str, size: float):
        self._set_state("font", "setFont", name, size)

    def setFillColorRGB(self, r: float, g: float, b: float):
        self._set_state("fill", "setFillColorRGB", r, g, b)

    def setStrokeColorRGB(self, r: float, g: float, b: float):
        self._set_state("stroke", "setStrokeColorRGB", r, g, b)

    def setLineWidth(self, width: float):
        self._set_state("line_width", "setLineWidth", width)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def drawString(self, x: float, y: float, text: str):
        self._record("drawString", x, y, text)

    def drawCentredString(self, x: float, y: float, text: str):
        self._record("drawCentredString", x, y, text)

    def drawRightString(self, x: float, y: float, text: str):
        self._record("drawRightString", x, y, text)

    def line(self, x1: float, y1: float, x2: float, y2: float):
        self._record("line", x1, y1, x2, y2)

    def rect(self, x: float, y: float, width: float, height: float, stroke: int = 1, fill: int = 0):
        self._record("rect", x, y, width, height, stroke=stroke, fill=fill)

    def roundRect(self, x: float, y: float, width: float, height: float, radius: float,
                  stroke: int = 1, fill: int = 0):
        self._record("roundRect", x, y, width, height, radius, stroke=stroke, fill=fill)

    def circle(self, x: float, y: float, radius: float, stroke: int = 1, fill: int = 0):
        self._record("circle", x, y, radius, stroke=stroke, fill=fill)

    def drawImage(self, data: bytes, x: float, y: float, width: float, height: float):
        self._record("drawImage", data, x, y, width, height)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def draw_ops(self, page_number: int) -> List[DrawOp]:
        """Drawing calls (no state changes) on a 1-based page."""
        return [op for op in self.pages[page_number - 1] if op.name in DRAW_OPS]

    def page_text(self, page_number: int) -> List[str]:
        """Every string drawn on a 1-based page, in draw order."""
        return [op.args[2] for op in self.pages[page_number - 1] if op.name in TEXT_OPS]

    def count_draw_ops(self) -> int:
        return sum(len(self.draw_ops(n)) for n in range(1, len(self.pages) + 1))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _record(self, name: str, *args, **kwargs):
        self.pages[self._current].append(DrawOp(name, args, kwargs))

    def _set_state(self, key: str, name: str, *args):
        op = DrawOp(name, args, {})
        self._state[key] = op
        self.pages[self._current].append(op)

    def _restore_state(self):
        self.pages[self._current].extend(self._state.values())
