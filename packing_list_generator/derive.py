"""Default packing-list drafts derived from an invoice.

A draft holds a single box with every invoice line in it. The user then
edits it (more packages, real weights, shipping details) before rendering.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .classification import suggest_selected_items
from .models import (
    Address,
    Dimensions,
    Invoice,
    InvoiceItem,
    Package,
    PackageItem,
    PackingList,
    PackingListTotals,
    Party,
    ShippingInfo,
)
from .weights import calculate_gross_weight, calculate_packing_list_totals, calculate_volume

DEFAULT_PACKAGE_NUMBER = "PKG-001"
DEFAULT_PACKAGE_TYPE = "box"
DEFAULT_WEIGHT_UNIT = "kg"
DEFAULT_SHIPPING_METHOD = "standard"
DEFAULT_INCOTERMS = "EXW"
# Weight used for lines without physical details.
DEFAULT_UNIT_WEIGHT = 1.0


def default_dimensions() -> Dimensions:
    return Dimensions(length=50, width=40, height=30, unit="cm")


@dataclass(frozen=True)
class PackagingConfig:
    package_type: str
    dimensions: Dimensions
    weight_ratio: float


DEFAULT_PACKAGING_CONFIGS: Dict[str, PackagingConfig] = {
    "electronics": PackagingConfig("box", Dimensions(40, 30, 25, "cm"), 0.15),
    "clothing": PackagingConfig("bag", Dimensions(60, 40, 20, "cm"), 0.05),
    "machinery": PackagingConfig("crate", Dimensions(120, 80, 100, "cm"), 0.25),
    "food": PackagingConfig("box", Dimensions(50, 40, 30, "cm"), 0.10),
    "default": PackagingConfig("box", Dimensions(50, 40, 30, "cm"), 0.10),
}


class NoItemsSelectedError(ValueError):
    """Raised when a packing list is requested without any invoice lines."""


def _package_item(item: InvoiceItem, fallback_origin: str) -> PackageItem:
    details = item.physical_details
    unit_weight = (details.unit_weight if details else None) or DEFAULT_UNIT_WEIGHT
    return PackageItem(
        item_name=item.name,
        description=item.description or "",
        quantity=item.quantity,
        unit_weight=unit_weight,
        total_weight=item.quantity * unit_weight,
        hs_code=(details.hs_code if details else "") or "",
        country_of_origin=(details.country_of_origin if details else "") or fallback_origin,
    )


def _address(party: Party) -> Address:
    return Address(
        name=party.name,
        address=party.address,
        city=f"{party.zip_code}, {party.city}",
        country=party.country,
        phone=party.phone,
        email=party.email,
    )


def derive_draft(invoice: Invoice, today: Optional[dt.date] = None) -> PackingList:
    today = today or dt.date.today()
    items = [_package_item(item, invoice.sender.country) for item in invoice.items]
    net_weight = sum(item.total_weight for item in items)
    dimensions = default_dimensions()

    package = Package(
        package_number=DEFAULT_PACKAGE_NUMBER,
        package_type=DEFAULT_PACKAGE_TYPE,
        dimensions=dimensions,
        gross_weight=calculate_gross_weight(net_weight, DEFAULT_PACKAGE_TYPE, dimensions),
        net_weight=net_weight,
        weight_unit=DEFAULT_WEIGHT_UNIT,
        items=items,
        marks=invoice.invoice_number,
        notes="",
    )

    return PackingList(
        invoice_number=invoice.invoice_number,
        invoice_date=invoice.invoice_date,
        packing_list_number=f"PL-{invoice.invoice_number}",
        packing_list_date=today.isoformat(),
        logo=invoice.invoice_logo,
        shipper=_address(invoice.sender),
        consignee=_address(invoice.receiver),
        shipping_info=ShippingInfo(
            shipping_method=DEFAULT_SHIPPING_METHOD,
            incoterms=invoice.incoterms or DEFAULT_INCOTERMS,
        ),
        packages=[package],
        # One package, so the totals are the package's own figures.
        totals=PackingListTotals(
            total_packages=1,
            total_gross_weight=package.gross_weight,
            total_net_weight=package.net_weight,
            total_volume=calculate_volume(package.dimensions),
            volume_unit="m3",
        ),
        notes=f"Packing list generated from Invoice #{invoice.invoice_number}",
        pdf_template=1,
    )


def default_package_for(category: str, package_number: str, marks: str = "") -> Package:
    """Empty package shaped after the defaults for a product category."""
    config = DEFAULT_PACKAGING_CONFIGS.get(category, DEFAULT_PACKAGING_CONFIGS["default"])
    dimensions = replace(config.dimensions)
    return Package(
        package_number=package_number,
        package_type=config.package_type,
        dimensions=dimensions,
        gross_weight=calculate_gross_weight(0.0, config.package_type, dimensions),
        net_weight=0.0,
        weight_unit=DEFAULT_WEIGHT_UNIT,
        items=[],
        marks=marks,
    )


def add_package(packing_list: PackingList, category: str = "default") -> Package:
    """Append a package numbered after the existing ones and refresh totals."""
    number = f"PKG-{len(packing_list.packages) + 1:03d}"
    package = default_package_for(category, number, marks=packing_list.invoice_number)
    packing_list.packages.append(package)
    packing_list.totals = calculate_packing_list_totals(packing_list.packages)
    return package


def _normalize_selection(selected_items: Iterable[Any]) -> List[str]:
    return [str(index).strip() for index in selected_items]


def filter_invoice_items(invoice: Invoice, selected_items: Iterable[Any]) -> Invoice:
    """Copy of ``invoice`` restricted to the selected line indices, in selection order."""
    picked: List[InvoiceItem] = []
    for raw in _normalize_selection(selected_items):
        try:
            index = int(raw)
        except ValueError:
            continue
        if 0 <= index < len(invoice.items):
            picked.append(invoice.items[index])
    return replace(invoice, items=picked)


def build_packing_list(
    invoice: Invoice,
    selected_items: Iterable[Any],
    overrides: Optional[Mapping[str, Any]] = None,
    today: Optional[dt.date] = None,
) -> PackingList:
    """Draft from the selected lines with the user's form values laid on top.

    ``overrides`` uses the camelCase wire names and replaces whole top-level
    fields, the same way the form values are spread over the derived draft.
    """
    selection = _normalize_selection(selected_items)
    if not selection:
        raise NoItemsSelectedError("Select at least one invoice item to pack.")

    draft = derive_draft(filter_invoice_items(invoice, selection), today=today)
    return apply_overrides(draft, overrides)


def apply_overrides(packing_list: PackingList, overrides: Optional[Mapping[str, Any]]) -> PackingList:
    """Lay camelCase form values over ``packing_list``, replacing whole top-level fields."""
    if not overrides:
        return packing_list
    merged = packing_list.to_dict()
    merged.update(overrides)
    if not merged.get("pdfTemplate"):
        merged["pdfTemplate"] = 1
    return PackingList.from_dict(merged)


def restore_selection(invoice: Invoice, saved_record: Optional[Mapping[str, Any]]) -> List[str]:
    """Selection stored with a saved packing list, or the physical-item suggestion."""
    if saved_record:
        saved = saved_record.get("_selectedItems")
        if isinstance(saved, list):
            return _normalize_selection(saved)
    return suggest_selected_items(invoice)


def restore_packing_list(invoice: Invoice, saved_record: Mapping[str, Any]) -> PackingList:
    """Saved packing list as it was last edited, without the store's bookkeeping keys.

    A saved list without a logo picks up the invoice's current logo.
    """
    data = {key: value for key, value in saved_record.items() if not key.startswith("_")}
    if not data.get("pdfTemplate"):
        data["pdfTemplate"] = 1
    packing_list = PackingList.from_dict(data)
    if not packing_list.logo:
        packing_list.logo = invoice.invoice_logo
    return packing_list
