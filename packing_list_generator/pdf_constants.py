"""Layout constants for the packing-list PDF (points, top-left origin, A4)."""

from __future__ import annotations

PAGE_W = 595.28
PAGE_H = 841.89

MARGIN_X = 40.0
MARGIN_TOP = 42.0
MARGIN_BOTTOM = 42.0
CONTENT_W = PAGE_W - 2 * MARGIN_X
CONTENT_H = PAGE_H - MARGIN_TOP - MARGIN_BOTTOM
CONTENT_BOTTOM = PAGE_H - MARGIN_BOTTOM
COLUMN_GAP = 24.0

FONT_SIZE_TITLE = 24
FONT_SIZE_TITLE_COMPACT = 20
FONT_SIZE_SECTION = 12
FONT_SIZE_NORMAL = 10
FONT_SIZE_SMALL = 8.5
FONT_SIZE_TINY = 7.5

# Vertical advances
TITLE_H = 30.0
LINE_H = 13.0
SECTION_LABEL_H = 18.0
SECTION_GAP = 14.0
PACKAGE_HEADER_H = 18.0
TABLE_HEADER_H = 18.0
ROW_H = 15.0
ROW_DESC_H = 11.0
PACKAGE_GAP = 12.0
BOX_PAD = 8.0
FOOTER_LINE_H = 11.0
FOOTER_GAP = 10.0

LOGO_MAX_W = 140.0
LOGO_MAX_H = 56.0

BAR_RADIUS = 3.0
BOX_RADIUS = 4.0

# Item table columns, as offsets from MARGIN_X
COL_ITEM_X = 8.0
COL_ITEM_W = 190.0
COL_QTY_CENTER = 232.0
COL_UNIT_WEIGHT_CENTER = 300.0
COL_TOTAL_WEIGHT_CENTER = 372.0
COL_HS_X = 418.0
COL_ORIGIN_X = 468.0
COL_HS_W = 46.0
COL_ORIGIN_W = CONTENT_W - COL_ORIGIN_X

# Rough glyph width (in em) used when estimating wrapped line counts.
AVG_CHAR_WIDTH_EM = 0.5

# Colors (RGB)
COLOR_TITLE = (58, 58, 58)          # #3A3A3A
COLOR_SECTION = (66, 66, 66)        # #424242
COLOR_LABEL = (105, 105, 105)       # #696969
COLOR_TEXT = (80, 80, 80)           # #505050
COLOR_TEXT_ALT = (115, 115, 115)    # #737373
COLOR_NUM = (96, 96, 96)            # #606060
COLOR_BAR = (58, 58, 58)            # #3A3A3A
COLOR_BAR_TEXT = (234, 234, 234)    # #EAEAEA
COLOR_BOX = (246, 246, 246)         # #F6F6F6
COLOR_NOTICE = (254, 249, 221)      # #FEF9DD
COLOR_RULE = (220, 220, 220)        # #DCDCDC
COLOR_OK = (22, 128, 61)            # #16803D
COLOR_ACCENT = (37, 99, 235)        # #2563EB

FOOTER_TEXT = (
    "This packing list is generated automatically and serves as an official "
    "document for customs and shipping purposes."
)

# Values of ``pdfTemplate``; anything other than TEMPLATE_MINIMAL draws the classic layout.
TEMPLATE_CLASSIC = 1
TEMPLATE_MINIMAL = 2
