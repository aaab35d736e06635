"""Helpers for estimating packing-list pagination.

Heights mirror the layout in ``rendering`` closely enough to decide two
things up front: whether a document that barely spills onto a second page
should be shrunk to fit instead, and whether a request would exceed the
server's page limit.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Tuple

from .config import AUTO_RESIZE_ENABLED, AUTO_RESIZE_MAX_PERCENT, AUTO_RESIZE_THRESHOLD_PERCENT
from .formatting import split_lines
from .models import Address, Package, PackingList
from .pdf_constants import (
    AVG_CHAR_WIDTH_EM,
    BOX_PAD,
    COL_ITEM_W,
    CONTENT_H,
    CONTENT_W,
    FONT_SIZE_NORMAL,
    FOOTER_GAP,
    FOOTER_LINE_H,
    LINE_H,
    PACKAGE_GAP,
    PACKAGE_HEADER_H,
    ROW_DESC_H,
    ROW_H,
    SECTION_GAP,
    SECTION_LABEL_H,
    TABLE_HEADER_H,
    TEMPLATE_MINIMAL,
    TITLE_H,
)


@dataclass(frozen=True)
class PaginationOptions:
    max_height: float = CONTENT_H
    # Overflow (percent of a page) small enough to shrink rather than spill.
    min_second_page_threshold: float = 5.0
    allow_auto_resize: bool = True
    max_auto_resize_percent: float = 8.0


DEFAULT_PAGINATION_OPTIONS = PaginationOptions(
    min_second_page_threshold=AUTO_RESIZE_THRESHOLD_PERCENT,
    allow_auto_resize=AUTO_RESIZE_ENABLED,
    max_auto_resize_percent=AUTO_RESIZE_MAX_PERCENT,
)


@dataclass(frozen=True)
class ResizeDecision:
    should_resize: bool
    resize_percent: float

    @property
    def scale(self) -> float:
        if not self.should_resize:
            return 1.0
        return 1.0 - self.resize_percent / 100.0


NO_RESIZE = ResizeDecision(should_resize=False, resize_percent=0.0)


def should_auto_resize(estimated_height: float, max_height: float, options: PaginationOptions) -> ResizeDecision:
    if not options.allow_auto_resize or estimated_height <= max_height or max_height <= 0:
        return NO_RESIZE

    overflow_percent = (estimated_height - max_height) / max_height * 100.0
    if overflow_percent <= options.min_second_page_threshold:
        return ResizeDecision(
            should_resize=True,
            resize_percent=min(overflow_percent + 1.0, options.max_auto_resize_percent),
        )
    return NO_RESIZE


def wrapped_line_count(text: str, width: float, font_size: float = FONT_SIZE_NORMAL) -> int:
    chars_per_line = max(1, int(width / (font_size * AVG_CHAR_WIDTH_EM)))
    return sum(max(1, math.ceil(len(line) / chars_per_line)) for line in split_lines(text))


def address_lines(party: Address) -> List[str]:
    """Lines printed for a shipper or consignee block."""
    lines = [party.name, party.address]
    locality = ", ".join(part for part in (party.zip_code, party.city, party.country) if part)
    lines.append(locality)
    if party.phone:
        lines.append(f"Tel: {party.phone}")
    if party.email:
        lines.append(f"Email: {party.email}")
    return lines


def shipping_fields(packing_list: PackingList) -> List[Tuple[str, str]]:
    """Shipping-information ``(label, value)`` pairs that would be printed, in print order."""
    info = packing_list.shipping_info
    if not (info.carrier or info.tracking_number or info.shipping_method):
        return []
    candidates = [
        ("Carrier", info.carrier),
        ("Tracking No", info.tracking_number),
        ("Method", info.shipping_method),
        ("Incoterms", info.incoterms),
        ("Port of Loading", info.port_of_loading),
        ("Port of Discharge", info.port_of_discharge),
        ("Container No", info.container_number),
        ("Seal No", info.seal_number),
    ]
    return [(label, value) for label, value in candidates if value]


def package_height(package: Package) -> float:
    height = PACKAGE_HEADER_H + LINE_H + TABLE_HEADER_H + PACKAGE_GAP
    if package.marks:
        height += LINE_H
    for item in package.items:
        height += ROW_H + (wrapped_line_count(item.item_name, COL_ITEM_W) - 1) * LINE_H
        if item.description:
            height += ROW_DESC_H
    if package.notes:
        height += wrapped_line_count(f"Notes: {package.notes}", CONTENT_W) * LINE_H
    return height


def text_block_height(text: str) -> float:
    if not text.strip():
        return 0.0
    return SECTION_LABEL_H + wrapped_line_count(text, CONTENT_W - 2 * BOX_PAD) * LINE_H + 2 * BOX_PAD + SECTION_GAP


def header_height(packing_list: PackingList) -> float:
    """Height of the title block and the shipper/consignee blocks for the chosen template."""
    consignee_lines = len(address_lines(packing_list.consignee))
    if packing_list.pdf_template == TEMPLATE_MINIMAL:
        shipper_lines = len(address_lines(packing_list.shipper)) - 1
        top = max(TITLE_H + 2 * LINE_H, shipper_lines * LINE_H)
        return top + SECTION_GAP + SECTION_LABEL_H + max(consignee_lines, 3) * LINE_H + SECTION_GAP

    party_lines = max(len(address_lines(packing_list.shipper)), consignee_lines)
    return TITLE_H + 4 * LINE_H + SECTION_GAP + SECTION_LABEL_H + party_lines * LINE_H + SECTION_GAP


def estimate_content_height(packing_list: PackingList) -> float:
    height = header_height(packing_list)

    fields = shipping_fields(packing_list)
    if fields:
        height += SECTION_LABEL_H + math.ceil(len(fields) / 2) * LINE_H + SECTION_GAP

    height += SECTION_LABEL_H + sum(package_height(pkg) for pkg in packing_list.packages)
    height += SECTION_LABEL_H + 3 * LINE_H + 2 * BOX_PAD + SECTION_GAP
    height += text_block_height(packing_list.special_instructions)
    height += text_block_height(packing_list.notes)
    height += FOOTER_GAP + 2 * FOOTER_LINE_H
    return height


def estimate_page_count(packing_list: PackingList, options: PaginationOptions = DEFAULT_PAGINATION_OPTIONS) -> int:
    height = estimate_content_height(packing_list)
    decision = should_auto_resize(height, options.max_height, options)
    return max(1, math.ceil(height * decision.scale / options.max_height))
