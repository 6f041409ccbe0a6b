"""
Vertical write position and page accounting for one document.

License: MIT
"""

from typing import Callable, Optional

from tradepdf.styles import LayoutConfig


class Cursor:
    """
    Mutable cursor owned by exactly one engine instance.

    ``y`` is measured in millimetres from the top of the current page and
    stays within ``[margin_top, page_height - margin_bottom]``.
    """

    def __init__(self, config: LayoutConfig, on_new_page: Optional[Callable[[], None]] = None):
        self.top = config.page.margin_top
        self.bottom = config.content_bottom
        self.y = self.top
        self.page = 1
        self.page_count = 1
        self._on_new_page = on_new_page

    def remaining(self) -> float:
        """Space left on the current page."""
        return self.bottom - self.y

    def new_page(self):
        """Start a fresh page and move to its top margin."""
        if self._on_new_page is not None:
            self._on_new_page()
        self.page_count += 1
        self.page = self.page_count
        self.y = self.top

    def ensure_space(self, required_height: float) -> bool:
        """
        Break to a new page if ``required_height`` does not fit.

        Returns:
            True if a page break occurred
        """
        if self.remaining() < required_height:
            self.new_page()
            return True
        return False

    def advance(self, amount: float):
        """Move down by ``amount``; never past the bottom margin."""
        self.y = min(self.y + amount, self.bottom)

    def move_to(self, y: float):
        """Place the cursor at an absolute position on the current page."""
        self.y = min(max(y, self.top), self.bottom)
