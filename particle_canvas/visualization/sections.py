"""Scroll-driven section observer for the festival page.

The page is a vertical stack of sections; some are tagged with the shape the
particle field should morph into while they are on screen. Like a browser
IntersectionObserver with a -20% root margin, only the middle band of the
viewport counts, and the callback fires when the dominant tagged section
changes.
"""

import logging
from typing import Callable, NamedTuple

logger = logging.getLogger(__name__)


class PageSection(NamedTuple):
    name: str
    height: float
    shape_index: int | None = None


PAGE_SECTIONS = [
    PageSection("Hero", 900.0, 0),
    PageSection("About", 1100.0, 1),
    PageSection("Performers", 1300.0, 2),
    PageSection("Events", 1500.0, 3),
    PageSection("Tech Team", 1200.0, 4),
    PageSection("FAQ", 1000.0, 5),
    PageSection("Footer", 400.0),
]


class SectionObserver:
    """Tracks scroll position and reports the visible tagged section."""

    def __init__(self, sections=PAGE_SECTIONS, viewport_height: float = 720.0,
                 root_margin: float = 0.2):
        if not 0.0 <= root_margin < 0.5:
            raise ValueError(f"root_margin must be in [0, 0.5), got {root_margin}")
        self.sections = list(sections)
        self.viewport_height = float(viewport_height)
        self.root_margin = root_margin
        self.scroll_y = 0.0
        self.active: PageSection | None = None
        self._callback: Callable[[int], None] | None = None

        self._tops = []
        y = 0.0
        for section in self.sections:
            self._tops.append(y)
            y += section.height
        self.page_height = y

    @property
    def max_scroll(self) -> float:
        return max(0.0, self.page_height - self.viewport_height)

    def connect(self, callback: Callable[[int], None]):
        """Start delivering shape indices to callback; reports the current section at once."""
        self._callback = callback
        self.active = None
        self._evaluate()

    def disconnect(self):
        self._callback = None

    @property
    def connected(self) -> bool:
        return self._callback is not None

    def scroll_to(self, y: float):
        self.scroll_y = min(max(float(y), 0.0), self.max_scroll)
        self._evaluate()

    def scroll_by(self, dy: float):
        self.scroll_to(self.scroll_y + dy)

    def set_viewport_height(self, height: float):
        if height <= 0:
            return
        self.viewport_height = float(height)
        self.scroll_y = min(self.scroll_y, self.max_scroll)
        self._evaluate()

    def band(self) -> tuple[float, float]:
        """Page-space (top, bottom) of the observation band."""
        margin = self.viewport_height * self.root_margin
        return self.scroll_y + margin, self.scroll_y + self.viewport_height - margin

    def visible_section(self) -> PageSection | None:
        """Tagged section with the largest overlap with the band (first wins ties)."""
        band_top, band_bottom = self.band()
        best, best_overlap = None, 0.0
        for section, top in zip(self.sections, self._tops):
            if section.shape_index is None:
                continue
            overlap = min(band_bottom, top + section.height) - max(band_top, top)
            if overlap > best_overlap:
                best, best_overlap = section, overlap
        return best

    def _evaluate(self):
        section = self.visible_section()
        if section is None or section is self.active:
            return
        self.active = section
        if self._callback is None:
            return
        logger.debug("[Sections] %s visible -> shape %d", section.name, section.shape_index)
        self._callback(section.shape_index)
