"""Invoice and packing-list data model.

Field names are snake_case in Python; ``from_dict``/``to_dict`` speak the
camelCase JSON used by the form front end and the saved-list file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .formatting import safe_float

PACKAGE_TYPES = ("box", "crate", "pallet", "drum", "bag", "bundle", "container", "other")
DIMENSION_UNITS = ("cm", "in", "m", "ft")
WEIGHT_UNITS = ("kg", "lb", "g", "oz")
VOLUME_UNITS = ("m3", "ft3", "cbm")
SHIPPING_METHODS = ("air", "sea", "road", "rail", "express", "standard")
INCOTERMS = ("EXW", "FCA", "CPT", "CIP", "DAP", "DPU", "DDP", "FAS", "FOB", "CFR", "CIF")


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _sequence(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _tri_state(value: Any) -> Optional[bool]:
    if value is None:
        return None
    return bool(value)


@dataclass
class Dimensions:
    length: float
    width: float
    height: float
    unit: str = "cm"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dimensions":
        return cls(
            length=safe_float(data.get("length")),
            width=safe_float(data.get("width")),
            height=safe_float(data.get("height")),
            unit=_text(data.get("unit")) or "cm",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"length": self.length, "width": self.width, "height": self.height, "unit": self.unit}


# Invoice side (input)


@dataclass
class PhysicalDetails:
    unit_weight: Optional[float] = None
    weight_unit: str = "kg"
    dimensions: Optional[Dimensions] = None
    hs_code: str = ""
    country_of_origin: str = ""
    fragile: bool = False
    hazardous: bool = False
    requires_special_handling: bool = False
    handling_notes: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PhysicalDetails":
        unit_weight = data.get("unitWeight")
        dimensions = data.get("dimensions")
        return cls(
            unit_weight=None if unit_weight in (None, "") else safe_float(unit_weight),
            weight_unit=_text(data.get("weightUnit")) or "kg",
            dimensions=Dimensions.from_dict(dimensions) if isinstance(dimensions, dict) else None,
            hs_code=_text(data.get("hsCode")),
            country_of_origin=_text(data.get("countryOfOrigin")),
            fragile=bool(data.get("fragile", False)),
            hazardous=bool(data.get("hazardous", False)),
            requires_special_handling=bool(data.get("requiresSpecialHandling", False)),
            handling_notes=_text(data.get("handlingNotes")),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "weightUnit": self.weight_unit,
            "hsCode": self.hs_code,
            "countryOfOrigin": self.country_of_origin,
            "fragile": self.fragile,
            "hazardous": self.hazardous,
            "requiresSpecialHandling": self.requires_special_handling,
            "handlingNotes": self.handling_notes,
        }
        if self.unit_weight is not None:
            result["unitWeight"] = self.unit_weight
        if self.dimensions is not None:
            result["dimensions"] = self.dimensions.to_dict()
        return result


@dataclass
class InvoiceItem:
    name: str
    quantity: float = 0.0
    unit_price: float = 0.0
    description: str = ""
    is_physical_product: Optional[bool] = None
    physical_details: Optional[PhysicalDetails] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InvoiceItem":
        details = data.get("physicalDetails")
        return cls(
            name=_text(data.get("name")),
            quantity=safe_float(data.get("quantity")),
            unit_price=safe_float(data.get("unitPrice")),
            description=_text(data.get("description")),
            is_physical_product=_tri_state(data.get("isPhysicalProduct")),
            physical_details=PhysicalDetails.from_dict(details) if isinstance(details, dict) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
        }
        if self.is_physical_product is not None:
            result["isPhysicalProduct"] = self.is_physical_product
        if self.physical_details is not None:
            result["physicalDetails"] = self.physical_details.to_dict()
        return result


@dataclass
class Party:
    name: str = ""
    address: str = ""
    zip_code: str = ""
    city: str = ""
    country: str = ""
    email: str = ""
    phone: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Party":
        return cls(
            name=_text(data.get("name")),
            address=_text(data.get("address")),
            zip_code=_text(data.get("zipCode")),
            city=_text(data.get("city")),
            country=_text(data.get("country")),
            email=_text(data.get("email")),
            phone=_text(data.get("phone")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "address": self.address,
            "zipCode": self.zip_code,
            "city": self.city,
            "country": self.country,
            "email": self.email,
            "phone": self.phone,
        }


@dataclass
class Invoice:
    invoice_number: str
    invoice_date: str = ""
    sender: Party = field(default_factory=Party)
    receiver: Party = field(default_factory=Party)
    items: List[InvoiceItem] = field(default_factory=list)
    invoice_logo: str = ""
    incoterms: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Invoice":
        details = _mapping(data.get("details"))
        shipping = _mapping(details.get("shippingDetails"))
        return cls(
            invoice_number=_text(details.get("invoiceNumber")),
            invoice_date=_text(details.get("invoiceDate")),
            sender=Party.from_dict(_mapping(data.get("sender"))),
            receiver=Party.from_dict(_mapping(data.get("receiver"))),
            items=[InvoiceItem.from_dict(item) for item in _sequence(details.get("items")) if isinstance(item, dict)],
            invoice_logo=_text(details.get("invoiceLogo")),
            incoterms=_text(shipping.get("incoterms")),
        )

    def to_dict(self) -> Dict[str, Any]:
        details: Dict[str, Any] = {
            "invoiceNumber": self.invoice_number,
            "invoiceDate": self.invoice_date,
            "invoiceLogo": self.invoice_logo,
            "items": [item.to_dict() for item in self.items],
        }
        if self.incoterms:
            details["shippingDetails"] = {"incoterms": self.incoterms}
        return {
            "sender": self.sender.to_dict(),
            "receiver": self.receiver.to_dict(),
            "details": details,
        }


# Packing-list side (output)


@dataclass
class PackageItem:
    item_name: str
    quantity: float
    unit_weight: float
    total_weight: float
    description: str = ""
    hs_code: str = ""
    country_of_origin: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PackageItem":
        return cls(
            item_name=_text(data.get("itemName")),
            quantity=safe_float(data.get("quantity")),
            unit_weight=safe_float(data.get("unitWeight")),
            total_weight=safe_float(data.get("totalWeight")),
            description=_text(data.get("description")),
            hs_code=_text(data.get("hsCode")),
            country_of_origin=_text(data.get("countryOfOrigin")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "itemName": self.item_name,
            "description": self.description,
            "quantity": self.quantity,
            "unitWeight": self.unit_weight,
            "totalWeight": self.total_weight,
            "hsCode": self.hs_code,
            "countryOfOrigin": self.country_of_origin,
        }


@dataclass
class Package:
    package_number: str
    dimensions: Dimensions
    gross_weight: float
    net_weight: float
    package_type: str = "box"
    weight_unit: str = "kg"
    items: List[PackageItem] = field(default_factory=list)
    marks: str = ""
    notes: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Package":
        return cls(
            package_number=_text(data.get("packageNumber")),
            dimensions=Dimensions.from_dict(_mapping(data.get("dimensions"))),
            gross_weight=safe_float(data.get("grossWeight")),
            net_weight=safe_float(data.get("netWeight")),
            package_type=_text(data.get("packageType")) or "box",
            weight_unit=_text(data.get("weightUnit")) or "kg",
            items=[PackageItem.from_dict(item) for item in _sequence(data.get("items")) if isinstance(item, dict)],
            marks=_text(data.get("marks")),
            notes=_text(data.get("notes")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "packageNumber": self.package_number,
            "packageType": self.package_type,
            "dimensions": self.dimensions.to_dict(),
            "grossWeight": self.gross_weight,
            "netWeight": self.net_weight,
            "weightUnit": self.weight_unit,
            "items": [item.to_dict() for item in self.items],
            "marks": self.marks,
            "notes": self.notes,
        }


@dataclass
class Address:
    name: str = ""
    address: str = ""
    city: str = ""
    country: str = ""
    zip_code: str = ""
    phone: str = ""
    email: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Address":
        return cls(
            name=_text(data.get("name")),
            address=_text(data.get("address")),
            city=_text(data.get("city")),
            country=_text(data.get("country")),
            zip_code=_text(data.get("zipCode")),
            phone=_text(data.get("phone")),
            email=_text(data.get("email")),
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "name": self.name,
            "address": self.address,
            "city": self.city,
            "country": self.country,
            "phone": self.phone,
            "email": self.email,
        }
        if self.zip_code:
            result["zipCode"] = self.zip_code
        return result


@dataclass
class ShippingInfo:
    carrier: str = ""
    tracking_number: str = ""
    shipping_method: str = ""
    incoterms: str = ""
    port_of_loading: str = ""
    port_of_discharge: str = ""
    container_number: str = ""
    seal_number: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ShippingInfo":
        return cls(
            carrier=_text(data.get("carrier")),
            tracking_number=_text(data.get("trackingNumber")),
            shipping_method=_text(data.get("shippingMethod")),
            incoterms=_text(data.get("incoterms")),
            port_of_loading=_text(data.get("portOfLoading")),
            port_of_discharge=_text(data.get("portOfDischarge")),
            container_number=_text(data.get("containerNumber")),
            seal_number=_text(data.get("sealNumber")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "carrier": self.carrier,
            "trackingNumber": self.tracking_number,
            "shippingMethod": self.shipping_method,
            "incoterms": self.incoterms,
            "portOfLoading": self.port_of_loading,
            "portOfDischarge": self.port_of_discharge,
            "containerNumber": self.container_number,
            "sealNumber": self.seal_number,
        }


@dataclass
class PackingListTotals:
    total_packages: int = 0
    total_gross_weight: float = 0.0
    total_net_weight: float = 0.0
    total_volume: float = 0.0
    volume_unit: str = "m3"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PackingListTotals":
        return cls(
            total_packages=int(safe_float(data.get("totalPackages"))),
            total_gross_weight=safe_float(data.get("totalGrossWeight")),
            total_net_weight=safe_float(data.get("totalNetWeight")),
            total_volume=safe_float(data.get("totalVolume")),
            volume_unit=_text(data.get("volumeUnit")) or "m3",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalPackages": self.total_packages,
            "totalGrossWeight": self.total_gross_weight,
            "totalNetWeight": self.total_net_weight,
            "totalVolume": self.total_volume,
            "volumeUnit": self.volume_unit,
        }


@dataclass
class PackingList:
    packing_list_number: str
    packing_list_date: str = ""
    invoice_number: str = ""
    invoice_date: str = ""
    shipper: Address = field(default_factory=Address)
    consignee: Address = field(default_factory=Address)
    shipping_info: ShippingInfo = field(default_factory=ShippingInfo)
    packages: List[Package] = field(default_factory=list)
    totals: PackingListTotals = field(default_factory=PackingListTotals)
    special_instructions: str = ""
    certificate_of_origin: bool = False
    export_license: str = ""
    notes: str = ""
    pdf_template: int = 1
    logo: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PackingList":
        return cls(
            packing_list_number=_text(data.get("packingListNumber")),
            packing_list_date=_text(data.get("packingListDate")),
            invoice_number=_text(data.get("invoiceNumber")),
            invoice_date=_text(data.get("invoiceDate")),
            shipper=Address.from_dict(_mapping(data.get("shipper"))),
            consignee=Address.from_dict(_mapping(data.get("consignee"))),
            shipping_info=ShippingInfo.from_dict(_mapping(data.get("shippingInfo"))),
            packages=[Package.from_dict(pkg) for pkg in _sequence(data.get("packages")) if isinstance(pkg, dict)],
            totals=PackingListTotals.from_dict(_mapping(data.get("totals"))),
            special_instructions=_text(data.get("specialInstructions")),
            certificate_of_origin=bool(data.get("certificateOfOrigin", False)),
            export_license=_text(data.get("exportLicense")),
            notes=_text(data.get("notes")),
            pdf_template=int(safe_float(data.get("pdfTemplate"), 1.0)) or 1,
            logo=_text(data.get("logo")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "invoiceNumber": self.invoice_number,
            "invoiceDate": self.invoice_date,
            "packingListNumber": self.packing_list_number,
            "packingListDate": self.packing_list_date,
            "logo": self.logo,
            "shipper": self.shipper.to_dict(),
            "consignee": self.consignee.to_dict(),
            "shippingInfo": self.shipping_info.to_dict(),
            "packages": [pkg.to_dict() for pkg in self.packages],
            "totals": self.totals.to_dict(),
            "specialInstructions": self.special_instructions,
            "certificateOfOrigin": self.certificate_of_origin,
            "exportLicense": self.export_license,
            "notes": self.notes,
            "pdfTemplate": self.pdf_template,
        }
