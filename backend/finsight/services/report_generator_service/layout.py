"""
Layout — page geometry and the vertical cursor used by the PDF generator.

Pagination is decided from fixed block heights only, never from rendered
output, so a layout can be checked without inspecting the PDF.

Part of the report_generator_service package.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional

# A4 portrait, millimetres
PAGE_WIDTH = 210.0
TOP_MARGIN = 20.0
PAGE_BOTTOM_MARGIN = 270.0
SIDE_MARGIN = 20.0

LOGO_TOP = 10.0
LOGO_MAX_SIZE = 40.0
LOGO_GAP = 10.0

TITLE_HEIGHT = 15.0
PERIOD_LINE_HEIGHT = 20.0
SECTION_TITLE_HEIGHT = 10.0
SUMMARY_BOX_HEIGHT = 24.0
SUMMARY_BLOCK_HEIGHT = 30.0  # box plus spacing below it

CATEGORY_BAR_HEIGHT = 12.0
SECTION_HEADER_HEIGHT = 16.0  # bar plus spacing below it
TABLE_HEADER_HEIGHT = 8.0
ROW_HEIGHT = 8.0
SECTION_GAP = 10.0


@dataclass
class Placement:
    """One block written to the document."""
    page: int
    y: float
    height: float
    kind: str
    label: str = ""

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass
class LayoutCursor:
    """
    Vertical position and page index for one document.

    ``on_new_page`` is called whenever a page break is inserted, so the
    renderer can append the physical page.
    """
    top: float = TOP_MARGIN
    bottom: float = PAGE_BOTTOM_MARGIN
    y: float = TOP_MARGIN
    page: int = 1
    on_new_page: Optional[Callable[[], None]] = None
    placements: List[Placement] = field(default_factory=list)

    def fits(self, height: float) -> bool:
        return self.y + height <= self.bottom

    def new_page(self):
        if self.on_new_page is not None:
            self.on_new_page()
        self.page += 1
        self.y = self.top

    def ensure_room(self, height: float) -> bool:
        """Break to a new page unless ``height`` fits below the cursor. Returns True on a break."""
        # A block taller than a whole page cannot be helped by breaking
        if self.fits(height) or self.y == self.top:
            return False
        self.new_page()
        return True

    def place(self, height: float, kind: str, label: str = "", advance: Optional[float] = None) -> float:
        """Record a block at the cursor, advance past it and return its top y."""
        y = self.y
        self.placements.append(Placement(self.page, y, height, kind, label))
        self.y += height if advance is None else advance
        return y

    @property
    def page_count(self) -> int:
        return self.page


def scale_logo(width: float, height: float, max_size: float = LOGO_MAX_SIZE) -> tuple:
    """Fit an image into a max_size square, keeping its aspect ratio."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image size {width}x{height}")
    if width > height:
        return max_size, height / width * max_size
    return width / height * max_size, max_size
