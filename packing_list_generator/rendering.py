"""Packing-list PDF rendering logic."""

from __future__ import annotations

import base64
import binascii
import datetime as dt
import logging
from io import BytesIO
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import unquote_to_bytes

from fpdf import FPDF  # type: ignore

from .fonts import FontManager
from .formatting import fmt_date, fmt_number, fmt_qty, round_rect, wrap_text
from .models import Package, PackageItem, PackingList
from .pagination import (
    DEFAULT_PAGINATION_OPTIONS,
    PaginationOptions,
    address_lines,
    estimate_content_height,
    shipping_fields,
    should_auto_resize,
)
from .pdf_constants import (
    BAR_RADIUS,
    BOX_PAD,
    BOX_RADIUS,
    COL_HS_W,
    COL_HS_X,
    COL_ITEM_W,
    COL_ITEM_X,
    COL_ORIGIN_W,
    COL_ORIGIN_X,
    COL_QTY_CENTER,
    COL_TOTAL_WEIGHT_CENTER,
    COL_UNIT_WEIGHT_CENTER,
    COLOR_ACCENT,
    COLOR_BAR,
    COLOR_BAR_TEXT,
    COLOR_BOX,
    COLOR_LABEL,
    COLOR_NOTICE,
    COLOR_NUM,
    COLOR_OK,
    COLOR_RULE,
    COLOR_SECTION,
    COLOR_TEXT,
    COLOR_TEXT_ALT,
    COLOR_TITLE,
    COLUMN_GAP,
    CONTENT_BOTTOM,
    CONTENT_W,
    FONT_SIZE_NORMAL,
    FONT_SIZE_SECTION,
    FONT_SIZE_SMALL,
    FONT_SIZE_TINY,
    FONT_SIZE_TITLE,
    FONT_SIZE_TITLE_COMPACT,
    FOOTER_GAP,
    FOOTER_LINE_H,
    FOOTER_TEXT,
    LINE_H,
    LOGO_MAX_H,
    LOGO_MAX_W,
    MARGIN_TOP,
    MARGIN_X,
    PACKAGE_GAP,
    PACKAGE_HEADER_H,
    PAGE_W,
    ROW_DESC_H,
    ROW_H,
    SECTION_GAP,
    SECTION_LABEL_H,
    TABLE_HEADER_H,
    TEMPLATE_MINIMAL,
    TITLE_H,
)
from .weights import calculate_volume

logger = logging.getLogger(__name__)

RIGHT_EDGE = MARGIN_X + CONTENT_W


def decode_data_url(value: str) -> Optional[BytesIO]:
    """Image bytes from a ``data:`` URL, or None when ``value`` is not one."""
    if not value.startswith("data:") or "," not in value:
        return None
    header, payload = value.split(",", 1)
    try:
        if header.endswith(";base64"):
            raw = base64.b64decode(payload)
        else:
            raw = unquote_to_bytes(payload)
    except (binascii.Error, ValueError):
        return None
    return BytesIO(raw) if raw else None


class PackingListRenderer:
    def __init__(self, packing_list: PackingList, options: PaginationOptions = DEFAULT_PAGINATION_OPTIONS) -> None:
        self.packing_list = packing_list
        self.pdf = FPDF(unit="pt", format="A4")
        self.pdf.set_auto_page_break(False)
        self.pdf.add_page()

        self.resize = should_auto_resize(estimate_content_height(packing_list), options.max_height, options)
        if self.resize.should_resize:
            logger.debug(
                "Shrinking packing list %s by %.1f%% to fit one page",
                packing_list.packing_list_number,
                self.resize.resize_percent,
            )
        self.fonts = FontManager(self.pdf, scale=self.resize.scale)
        self.y = MARGIN_TOP

    # Cursor management

    def _step(self, amount: float) -> float:
        return amount * self.resize.scale

    def _advance(self, amount: float) -> None:
        self.y += self._step(amount)

    def _row(self, height: float) -> float:
        """Reserve a row of ``height`` and return the text baseline inside it."""
        step = self._step(height)
        baseline = self.y + step * 0.75
        self.y += step
        return baseline

    def _new_page(self) -> None:
        self.pdf.add_page()
        self.y = MARGIN_TOP

    def _ensure_space(self, needed: float) -> bool:
        if self.y + self._step(needed) <= CONTENT_BOTTOM:
            return False
        self._new_page()
        return True

    def _rule(self) -> None:
        self.pdf.set_draw_color(*COLOR_RULE)
        self.pdf.set_line_width(0.5)
        self.pdf.line(MARGIN_X, self.y, RIGHT_EDGE, self.y)

    def _section_label(self, label: str) -> None:
        baseline = self._row(SECTION_LABEL_H)
        self.fonts.draw_text(MARGIN_X, baseline, label, FONT_SIZE_SECTION, COLOR_SECTION, bold=True)

    def _label_value(self, x: float, y: float, label: str, value: str, max_width: float) -> None:
        prefix = f"{label}: "
        self.fonts.draw_text(x, y, prefix, FONT_SIZE_NORMAL, COLOR_LABEL)
        offset = self.fonts.text_width(prefix, FONT_SIZE_NORMAL)
        value = self.fonts.fit(value, max(0.0, max_width - offset), FONT_SIZE_NORMAL, bold=True)
        self.fonts.draw_text(x + offset, y, value, FONT_SIZE_NORMAL, COLOR_TEXT, bold=True)

    # Sections

    def _draw_logo(self, x: Optional[float] = None) -> None:
        logo = self.packing_list.logo
        if not logo:
            return
        image = decode_data_url(logo)
        if image is None:
            logger.warning("Ignoring logo for %s: not a data URL", self.packing_list.packing_list_number)
            return
        width = self._step(LOGO_MAX_W)
        if x is None:
            x = PAGE_W - MARGIN_X - width
        try:
            self.pdf.image(
                image,
                x=x,
                y=MARGIN_TOP,
                w=width,
                h=self._step(LOGO_MAX_H),
                keep_aspect_ratio=True,
            )
        except Exception as exc:
            # Undecodable image data; the document is still useful without it.
            logger.warning("Ignoring logo for %s: %s", self.packing_list.packing_list_number, exc)

    def _draw_header(self) -> None:
        pl = self.packing_list
        self._draw_logo()

        baseline = self._row(TITLE_H)
        self.fonts.draw_text(MARGIN_X, baseline, "PACKING LIST", FONT_SIZE_TITLE, COLOR_TITLE, bold=True)

        width = CONTENT_W / 2
        for label, value in (
            ("Packing List No", pl.packing_list_number),
            ("Date", fmt_date(pl.packing_list_date)),
            ("Invoice No", pl.invoice_number),
            ("Invoice Date", fmt_date(pl.invoice_date)),
        ):
            baseline = self._row(LINE_H)
            self._label_value(MARGIN_X, baseline, label, value, width)
        self._advance(SECTION_GAP)

    def _draw_parties(self) -> None:
        col_w = (CONTENT_W - COLUMN_GAP) / 2
        columns = (
            (MARGIN_X, "Shipper:", address_lines(self.packing_list.shipper)),
            (MARGIN_X + col_w + COLUMN_GAP, "Consignee:", address_lines(self.packing_list.consignee)),
        )
        rows = max(len(lines) for _, _, lines in columns)
        self._ensure_space(SECTION_LABEL_H + rows * LINE_H)

        baseline = self._row(SECTION_LABEL_H)
        for x, title, _ in columns:
            self.fonts.draw_text(x, baseline, title, FONT_SIZE_SECTION, COLOR_SECTION, bold=True)

        for index in range(rows):
            baseline = self._row(LINE_H)
            for x, _, lines in columns:
                if index >= len(lines):
                    continue
                is_name = index == 0
                text = self.fonts.fit(lines[index], col_w, FONT_SIZE_NORMAL, bold=is_name)
                self.fonts.draw_text(x, baseline, text, FONT_SIZE_NORMAL, COLOR_TEXT, bold=is_name)
        self._advance(SECTION_GAP)

    def _draw_minimal_header(self) -> None:
        """Title block with the shipper on the right, then "Ship to" beside the dates."""
        pl = self.packing_list
        side_w = (CONTENT_W - LOGO_MAX_W) / 2 - COLUMN_GAP / 2
        self._draw_logo(MARGIN_X + (CONTENT_W - self._step(LOGO_MAX_W)) / 2)

        top = self.y
        shipper_lines = address_lines(pl.shipper)[1:]
        for index, line in enumerate(shipper_lines):
            baseline = top + self._step(index * LINE_H + LINE_H * 0.75)
            text = self.fonts.fit(line, side_w, FONT_SIZE_NORMAL)
            self.fonts.draw_right(RIGHT_EDGE, baseline, text, FONT_SIZE_NORMAL, COLOR_TEXT)
        shipper_bottom = top + self._step(len(shipper_lines) * LINE_H)

        baseline = self._row(TITLE_H)
        self.fonts.draw_text(MARGIN_X, baseline, "Packing List #", FONT_SIZE_TITLE_COMPACT, COLOR_TITLE, bold=True)
        baseline = self._row(LINE_H)
        number = self.fonts.fit(pl.packing_list_number, side_w, FONT_SIZE_NORMAL)
        self.fonts.draw_text(MARGIN_X, baseline, number, FONT_SIZE_NORMAL, COLOR_TEXT_ALT)
        baseline = self._row(LINE_H)
        name = self.fonts.fit(pl.shipper.name, side_w, FONT_SIZE_SECTION, bold=True)
        self.fonts.draw_text(MARGIN_X, baseline, name, FONT_SIZE_SECTION, COLOR_ACCENT, bold=True)
        self.y = max(self.y, shipper_bottom)
        self._advance(SECTION_GAP)

        consignee = address_lines(pl.consignee)
        dates = [
            ("Packing date", fmt_date(pl.packing_list_date)),
            ("Invoice No", pl.invoice_number),
            ("Invoice Date", fmt_date(pl.invoice_date)),
        ]
        col_w = (CONTENT_W - COLUMN_GAP) / 2
        self._section_label("Ship to:")
        for index in range(max(len(consignee), len(dates))):
            baseline = self._row(LINE_H)
            if index < len(consignee):
                is_name = index == 0
                text = self.fonts.fit(consignee[index], col_w, FONT_SIZE_NORMAL, bold=is_name)
                self.fonts.draw_text(MARGIN_X, baseline, text, FONT_SIZE_NORMAL, COLOR_TEXT, bold=is_name)
            if index < len(dates):
                label, value = dates[index]
                text = self.fonts.fit(f"{label}: {value}", col_w, FONT_SIZE_NORMAL)
                self.fonts.draw_right(RIGHT_EDGE, baseline, text, FONT_SIZE_NORMAL, COLOR_TEXT)
        self._advance(SECTION_GAP)

    def _draw_shipping_info(self) -> None:
        fields = shipping_fields(self.packing_list)
        if not fields:
            return
        rows = (len(fields) + 1) // 2
        self._ensure_space(SECTION_LABEL_H + rows * LINE_H)
        self._section_label("Shipping Information:")

        col_w = (CONTENT_W - COLUMN_GAP) / 2
        for row in range(rows):
            baseline = self._row(LINE_H)
            for column, (label, value) in enumerate(fields[row * 2 : row * 2 + 2]):
                x = MARGIN_X + column * (col_w + COLUMN_GAP)
                self._label_value(x, baseline, label, value, col_w)
        self._advance(SECTION_GAP)

    def _draw_table_header(self) -> None:
        top = self.y
        bar_h = self._step(TABLE_HEADER_H) - 2
        self.pdf.set_fill_color(*COLOR_BAR)
        round_rect(self.pdf, MARGIN_X, top, CONTENT_W, bar_h, BAR_RADIUS, fill=True)
        baseline = top + bar_h * 0.7

        def label(x: float, text: str, centered: bool = False) -> None:
            if centered:
                self.fonts.draw_centered(x, baseline, text, FONT_SIZE_SMALL, COLOR_BAR_TEXT, bold=True)
            else:
                self.fonts.draw_text(x, baseline, text, FONT_SIZE_SMALL, COLOR_BAR_TEXT, bold=True)

        label(MARGIN_X + COL_ITEM_X, "Item")
        label(MARGIN_X + COL_QTY_CENTER, "Qty", centered=True)
        label(MARGIN_X + COL_UNIT_WEIGHT_CENTER, "Unit Weight", centered=True)
        label(MARGIN_X + COL_TOTAL_WEIGHT_CENTER, "Total Weight", centered=True)
        label(MARGIN_X + COL_HS_X, "HS Code")
        label(MARGIN_X + COL_ORIGIN_X, "Origin")
        self._advance(TABLE_HEADER_H)

    def _draw_item_row(self, item: PackageItem, weight_unit: str, name_lines: List[str]) -> None:
        first = self._row(ROW_H)
        for index, line in enumerate(name_lines):
            y = first + self._step(index * LINE_H)
            self.fonts.draw_text(MARGIN_X + COL_ITEM_X, y, line, FONT_SIZE_NORMAL, COLOR_TEXT, bold=True)
        self._advance((len(name_lines) - 1) * LINE_H)

        hs_code = self.fonts.fit(item.hs_code or "-", COL_HS_W, FONT_SIZE_SMALL)
        origin = self.fonts.fit(item.country_of_origin or "-", COL_ORIGIN_W, FONT_SIZE_SMALL)
        self.fonts.draw_centered(MARGIN_X + COL_QTY_CENTER, first, fmt_qty(item.quantity), FONT_SIZE_NORMAL, COLOR_NUM)
        self.fonts.draw_centered(
            MARGIN_X + COL_UNIT_WEIGHT_CENTER,
            first,
            f"{fmt_number(item.unit_weight)} {weight_unit}",
            FONT_SIZE_NORMAL,
            COLOR_NUM,
        )
        self.fonts.draw_centered(
            MARGIN_X + COL_TOTAL_WEIGHT_CENTER,
            first,
            f"{fmt_number(item.total_weight)} {weight_unit}",
            FONT_SIZE_NORMAL,
            COLOR_NUM,
        )
        self.fonts.draw_text(MARGIN_X + COL_HS_X, first, hs_code, FONT_SIZE_SMALL, COLOR_TEXT_ALT)
        self.fonts.draw_text(MARGIN_X + COL_ORIGIN_X, first, origin, FONT_SIZE_SMALL, COLOR_TEXT_ALT)

        if item.description:
            baseline = self._row(ROW_DESC_H)
            description = self.fonts.fit(item.description.replace("\n", " "), COL_ITEM_W, FONT_SIZE_TINY)
            self.fonts.draw_text(MARGIN_X + COL_ITEM_X, baseline, description, FONT_SIZE_TINY, COLOR_TEXT_ALT)
        self._rule()

    def _draw_package(self, package: Package) -> None:
        self._ensure_space(PACKAGE_HEADER_H + 2 * LINE_H + TABLE_HEADER_H + ROW_H)
        unit = package.weight_unit

        baseline = self._row(PACKAGE_HEADER_H)
        title = f"Package {package.package_number} - {package.package_type.upper()}"
        self.fonts.draw_text(MARGIN_X, baseline, title, FONT_SIZE_NORMAL + 1, COLOR_SECTION, bold=True)
        weights = f"Gross: {fmt_number(package.gross_weight)} {unit} | Net: {fmt_number(package.net_weight)} {unit}"
        self.fonts.draw_right(RIGHT_EDGE, baseline, weights, FONT_SIZE_SMALL, COLOR_LABEL)

        dims = package.dimensions
        baseline = self._row(LINE_H)
        dimension_text = (
            f"Dimensions: {fmt_number(dims.length)} x {fmt_number(dims.width)} x "
            f"{fmt_number(dims.height)} {dims.unit}"
        )
        self.fonts.draw_text(MARGIN_X, baseline, dimension_text, FONT_SIZE_SMALL, COLOR_TEXT_ALT)
        volume_text = f"Volume: {fmt_number(calculate_volume(dims), 3)} m3"
        self.fonts.draw_text(MARGIN_X + CONTENT_W / 2, baseline, volume_text, FONT_SIZE_SMALL, COLOR_TEXT_ALT)

        if package.marks:
            baseline = self._row(LINE_H)
            marks = self.fonts.fit(f"Marks: {package.marks}", CONTENT_W, FONT_SIZE_SMALL)
            self.fonts.draw_text(MARGIN_X, baseline, marks, FONT_SIZE_SMALL, COLOR_TEXT_ALT)

        self._draw_table_header()
        for item in package.items:
            name_lines = wrap_text(self.fonts, item.item_name, COL_ITEM_W, FONT_SIZE_NORMAL, bold=True) or [""]
            row_h = ROW_H + (len(name_lines) - 1) * LINE_H + (ROW_DESC_H if item.description else 0)
            if self._ensure_space(row_h):
                self._draw_table_header()
            self._draw_item_row(item, unit, name_lines)

        if package.notes:
            for line in wrap_text(self.fonts, f"Notes: {package.notes}", CONTENT_W, FONT_SIZE_SMALL):
                self._ensure_space(LINE_H)
                baseline = self._row(LINE_H)
                self.fonts.draw_text(MARGIN_X, baseline, line, FONT_SIZE_SMALL, COLOR_TEXT_ALT)
        self._advance(PACKAGE_GAP)

    def _draw_packages(self) -> None:
        self._ensure_space(SECTION_LABEL_H + PACKAGE_HEADER_H + 2 * LINE_H + TABLE_HEADER_H + ROW_H)
        self._section_label("Package Details:")
        for package in self.packing_list.packages:
            self._draw_package(package)

    def _totals_weight_unit(self) -> str:
        units = {pkg.weight_unit for pkg in self.packing_list.packages}
        return units.pop() if len(units) == 1 else "kg"

    def _draw_summary(self) -> None:
        pl = self.packing_list
        totals = pl.totals
        unit = self._totals_weight_unit()
        box_h = 3 * LINE_H + 2 * BOX_PAD
        self._ensure_space(SECTION_LABEL_H + box_h)
        self._section_label("Summary:")

        self.pdf.set_fill_color(*COLOR_BOX)
        round_rect(self.pdf, MARGIN_X, self.y, CONTENT_W, self._step(box_h), BOX_RADIUS, fill=True)
        self._advance(BOX_PAD)

        left: List[Tuple[str, str]] = [
            ("Total Packages", str(totals.total_packages)),
            ("Total Gross Weight", f"{fmt_number(totals.total_gross_weight)} {unit}"),
            ("Total Net Weight", f"{fmt_number(totals.total_net_weight)} {unit}"),
        ]
        right: List[Tuple[str, str]] = []
        if totals.total_volume:
            right.append(("Total Volume", f"{fmt_number(totals.total_volume, 3)} {totals.volume_unit}"))
        if pl.certificate_of_origin:
            right.append(("Certificate of Origin", "Required"))
        if pl.export_license:
            right.append(("Export License", pl.export_license))

        col_w = (CONTENT_W - COLUMN_GAP) / 2 - BOX_PAD
        right_x = MARGIN_X + (CONTENT_W + COLUMN_GAP) / 2
        for index in range(3):
            baseline = self._row(LINE_H)
            label, value = left[index]
            self._label_value(MARGIN_X + BOX_PAD, baseline, label, value, col_w)
            if index < len(right):
                label, value = right[index]
                if label == "Certificate of Origin":
                    prefix = f"{label}: "
                    self.fonts.draw_text(right_x, baseline, prefix, FONT_SIZE_NORMAL, COLOR_LABEL)
                    offset = self.fonts.text_width(prefix, FONT_SIZE_NORMAL)
                    self.fonts.draw_text(right_x + offset, baseline, value, FONT_SIZE_NORMAL, COLOR_OK, bold=True)
                else:
                    self._label_value(right_x, baseline, label, value, col_w)
        self._advance(BOX_PAD + SECTION_GAP)

    def _draw_text_block(self, label: str, text: str, fill: Tuple[int, int, int]) -> None:
        if not text.strip():
            return
        lines = wrap_text(self.fonts, text, CONTENT_W - 2 * BOX_PAD, FONT_SIZE_NORMAL)
        self._ensure_space(SECTION_LABEL_H + LINE_H + 2 * BOX_PAD)
        self._section_label(label)

        remaining = lines
        while remaining:
            available = (CONTENT_BOTTOM - self.y) / self.resize.scale - 2 * BOX_PAD
            if available < LINE_H:
                self._new_page()
                continue
            count = int(available // LINE_H)
            chunk, remaining = remaining[:count], remaining[count:]

            self.pdf.set_fill_color(*fill)
            round_rect(
                self.pdf,
                MARGIN_X,
                self.y,
                CONTENT_W,
                self._step(len(chunk) * LINE_H + 2 * BOX_PAD),
                BOX_RADIUS,
                fill=True,
            )
            self._advance(BOX_PAD)
            for line in chunk:
                baseline = self._row(LINE_H)
                self.fonts.draw_text(MARGIN_X + BOX_PAD, baseline, line, FONT_SIZE_NORMAL, COLOR_TEXT)
            self._advance(BOX_PAD)
            if remaining:
                self._new_page()
        self._advance(SECTION_GAP)

    def _draw_footer(self) -> None:
        self._ensure_space(FOOTER_GAP + 2 * FOOTER_LINE_H)
        self._advance(FOOTER_GAP)
        self._rule()
        center = MARGIN_X + CONTENT_W / 2
        generated = f"Generated on {dt.date.today().strftime('%b %d, %Y')}"
        for line in (FOOTER_TEXT, generated):
            baseline = self._row(FOOTER_LINE_H)
            self.fonts.draw_centered(center, baseline, line, FONT_SIZE_TINY, COLOR_TEXT_ALT)

    def render(self) -> bytes:
        if self.packing_list.pdf_template == TEMPLATE_MINIMAL:
            self._draw_minimal_header()
        else:
            self._draw_header()
            self._draw_parties()
        self._draw_shipping_info()
        self._draw_packages()
        self._draw_summary()
        self._draw_text_block("Special Instructions:", self.packing_list.special_instructions, COLOR_NOTICE)
        self._draw_text_block("Additional Notes:", self.packing_list.notes, COLOR_BOX)
        self._draw_footer()

        pdf_blob = self.pdf.output()
        if isinstance(pdf_blob, (bytes, bytearray)):
            return bytes(pdf_blob)
        if isinstance(pdf_blob, str):
            try:
                return pdf_blob.encode("latin-1")
            except UnicodeEncodeError as exc:
                raise RuntimeError(
                    "PDF serialization failed due to non-Latin-1 content. "
                    "Check Unicode font configuration (PACKING_LIST_FONT_PATH/PACKING_LIST_FONT_BOLD_PATH)."
                ) from exc
        raise RuntimeError(f"Unexpected PDF output type: {type(pdf_blob).__name__}")


def render_packing_list(data: Dict[str, Any]) -> bytes:
    return PackingListRenderer(PackingList.from_dict(data)).render()
