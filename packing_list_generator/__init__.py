"""Public package API for packing-list generation."""

from __future__ import annotations

from typing import Any, Dict

from .classification import (
    Classification,
    classify_item,
    get_item_classification_summary,
    suggest_package_configuration,
)
from .derive import build_packing_list, derive_draft
from .models import Invoice, PackingList
from .storage import PackingListStore
from .weights import calculate_gross_weight, calculate_packing_list_totals, calculate_volume


def render_packing_list(data: Dict[str, Any]) -> bytes:
    from .rendering import render_packing_list as _render_packing_list

    return _render_packing_list(data)


def run(host: str = "0.0.0.0", port: int = 8080) -> None:
    from .server import run as _run

    _run(host, port)


__all__ = [
    "Classification",
    "Invoice",
    "PackingList",
    "PackingListStore",
    "build_packing_list",
    "calculate_gross_weight",
    "calculate_packing_list_totals",
    "calculate_volume",
    "classify_item",
    "derive_draft",
    "get_item_classification_summary",
    "render_packing_list",
    "run",
    "suggest_package_configuration",
]
