"""Font discovery and text rendering helpers."""

from __future__ import annotations

import logging
import os
import threading
from typing import List, Optional, Tuple

from fpdf import FPDF  # type: ignore

logger = logging.getLogger(__name__)

_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

FONT_INIT_LOCK = threading.Lock()


def find_font_path(env_var: str, candidates: List[str]) -> Optional[str]:
    override = os.getenv(env_var)
    if override and os.path.exists(override):
        return override

    for path in candidates:
        if os.path.exists(path):
            return path
    return None


class FontManager:
    """Draws text in a Unicode TTF family, or core Helvetica when none is installed.

    ``scale`` shrinks every size passed in; the renderer uses it to squeeze a
    document that overflows one page by a few percent.
    """

    FAMILY = "PackingListFont"
    CORE_FAMILY = "Helvetica"
    BUNDLED_REGULAR = os.path.join(_PROJECT_ROOT, "fonts", "DejaVuSans.ttf")
    BUNDLED_BOLD = os.path.join(_PROJECT_ROOT, "fonts", "DejaVuSans-Bold.ttf")
    SYSTEM_REGULAR_CANDIDATES = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/TTF/DejaVuSans.ttf",
        "/Library/Fonts/DejaVuSans.ttf",
    ]
    SYSTEM_BOLD_CANDIDATES = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/TTF/DejaVuSans-Bold.ttf",
        "/Library/Fonts/DejaVuSans-Bold.ttf",
    ]

    def __init__(self, pdf: FPDF, scale: float = 1.0) -> None:
        self.pdf = pdf
        self.scale = scale
        self.family = self.CORE_FAMILY
        self.use_unicode = False
        self.has_bold = True

        regular_path = find_font_path(
            "PACKING_LIST_FONT_PATH",
            [self.BUNDLED_REGULAR, *self.SYSTEM_REGULAR_CANDIDATES],
        )
        if not regular_path:
            logger.warning("No Unicode TTF font found; falling back to %s (Latin-1 only).", self.CORE_FAMILY)
            return

        bold_path = find_font_path(
            "PACKING_LIST_FONT_BOLD_PATH",
            [self.BUNDLED_BOLD, *self.SYSTEM_BOLD_CANDIDATES],
        )

        # Font registration parses and caches the TTF; serialize it.
        with FONT_INIT_LOCK:
            self.pdf.add_font(self.FAMILY, "", regular_path)
            self.has_bold = False
            if bold_path:
                self.pdf.add_font(self.FAMILY, "B", bold_path)
                self.has_bold = True
        self.family = self.FAMILY
        self.use_unicode = True

    def _prepare(self, text: str) -> str:
        if self.use_unicode:
            return text
        return text.encode("latin-1", "replace").decode("latin-1")

    def _apply(self, size: float, bold: bool) -> None:
        style = "B" if bold and self.has_bold else ""
        self.pdf.set_font(self.family, style, size * self.scale)

    def text_width(self, text: str, size: float, bold: bool = False) -> float:
        self._apply(size, bold)
        return self.pdf.get_string_width(self._prepare(text))

    def draw_text(
        self,
        x: float,
        y: float,
        text: str,
        size: float,
        color: Tuple[int, int, int],
        bold: bool = False,
    ) -> None:
        if not text:
            return
        text = self._prepare(text)
        self.pdf.set_text_color(*color)
        self._apply(size, bold)
        if bold and not self.has_bold:
            self.pdf.text(x, y, text)
            self.pdf.text(x + 0.4, y, text)
        else:
            self.pdf.text(x, y, text)

    def draw_right(self, right: float, y: float, text: str, size: float, color: Tuple[int, int, int], bold: bool = False) -> None:
        self.draw_text(right - self.text_width(text, size, bold), y, text, size, color, bold)

    def draw_centered(self, center: float, y: float, text: str, size: float, color: Tuple[int, int, int], bold: bool = False) -> None:
        self.draw_text(center - self.text_width(text, size, bold) / 2.0, y, text, size, color, bold)

    def fit(self, text: str, max_width: float, size: float, bold: bool = False) -> str:
        """Truncate ``text`` with an ellipsis so it fits ``max_width``."""
        if self.text_width(text, size, bold) <= max_width:
            return text
        ellipsis = "..."
        while text and self.text_width(text + ellipsis, size, bold) > max_width:
            text = text[:-1]
        return text + ellipsis if text else ""
