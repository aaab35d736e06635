"""Number, date and text helpers shared by the deriver and the renderer."""

from __future__ import annotations

import math
from typing import Any, List, Protocol

from dateutil import parser as dateutil_parser


class TextWidthProvider(Protocol):
    def text_width(self, text: str, size: float, bold: bool = False) -> float:
        ...


class PdfPathCanvas(Protocol):
    k: float
    h: float

    def rect(self, x: float, y: float, w: float, h: float, style: str) -> None:
        ...

    def _out(self, value: str) -> None:
        ...


def safe_float(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def round_half_up(value: float, places: int) -> float:
    """Round like JavaScript's ``Math.round(value * 10**places) / 10**places``."""
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def fmt_qty(qty: Any) -> str:
    quantity = safe_float(qty, float("nan"))
    if math.isnan(quantity):
        return str(qty)
    if quantity.is_integer():
        return str(int(quantity))
    return str(quantity)


def fmt_number(value: Any, places: int = 2) -> str:
    """Format with thousands separators and at most ``places`` decimals."""
    number = round_half_up(safe_float(value), places)
    text = f"{number:,.{places}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def fmt_date(raw: str) -> str:
    """Parse a date string and return it formatted as 'Mar 14, 2025'."""
    raw = raw.strip()
    if not raw:
        return raw
    try:
        dt = dateutil_parser.parse(raw)
        return dt.strftime("%b %d, %Y")
    except (ValueError, OverflowError):
        return raw


def split_lines(text: str) -> List[str]:
    if not text:
        return []
    return [line for line in text.split("\n") if line.strip() != ""]


def wrap_text(
    fonts_obj: TextWidthProvider,
    text: str,
    max_width: float,
    font_size: float,
    bold: bool = False,
) -> List[str]:
    def fits(value: str) -> bool:
        return fonts_obj.text_width(value, font_size, bold=bold) <= max_width

    def break_word(word: str) -> List[str]:
        pieces: List[str] = []
        chunk = ""
        for char in word:
            if chunk and not fits(chunk + char):
                pieces.append(chunk)
                chunk = char
            else:
                chunk += char
        if chunk:
            pieces.append(chunk)
        return pieces

    lines: List[str] = []
    for paragraph in split_lines(text):
        current = ""
        for word in paragraph.split():
            candidate = f"{current} {word}" if current else word
            if fits(candidate):
                current = candidate
                continue
            if current:
                lines.append(current)
            if fits(word):
                current = word
            else:
                *head, current = break_word(word)
                lines.extend(head)
        if current:
            lines.append(current)
    return lines


def round_rect(
    pdf: PdfPathCanvas,
    x: float,
    y: float,
    width: float,
    height: float,
    radius: float,
    fill: bool = True,
) -> None:
    radius = max(0.0, min(radius, width / 2.0, height / 2.0))
    if radius == 0:
        pdf.rect(x, y, width, height, "F" if fill else "D")
        return

    k = pdf.k
    hp = pdf.h
    kappa = 0.5522847498307936  # circle approximation constant
    bend = radius * kappa

    def point(px: float, py: float) -> str:
        return "%.2f %.2f" % (px * k, (hp - py) * k)

    def arc(x1: float, y1: float, x2: float, y2: float, x3: float, y3: float) -> None:
        pdf._out("%s %s %s c" % (point(x1, y1), point(x2, y2), point(x3, y3)))

    right = x + width
    bottom = y + height

    pdf._out("%s m" % point(x + radius, y))
    pdf._out("%s l" % point(right - radius, y))
    arc(right - radius + bend, y, right, y + radius - bend, right, y + radius)
    pdf._out("%s l" % point(right, bottom - radius))
    arc(right, bottom - radius + bend, right - radius + bend, bottom, right - radius, bottom)
    pdf._out("%s l" % point(x + radius, bottom))
    arc(x + radius - bend, bottom, x, bottom - radius + bend, x, bottom - radius)
    pdf._out("%s l" % point(x, y + radius))
    arc(x, y + radius - bend, x + radius - bend, y, x + radius, y)

    pdf._out("f" if fill else "S")
