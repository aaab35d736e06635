"""Physical-good vs. service classification of invoice line items.

Matching is plain substring containment over ``name + description``, so
"boxing" matches "box". That is accepted behaviour of the keyword tables;
callers that need certainty set ``isPhysicalProduct`` on the item.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Tuple

from .formatting import round_half_up
from .models import Invoice, InvoiceItem

KEYWORD_TABLE_VERSION = "1"

SERVICE_KEYWORDS = (
    "service", "consultation", "consulting", "support", "maintenance",
    "training", "education", "development", "design", "analysis",
    "audit", "review", "assessment", "installation", "setup",
    "configuration", "implementation", "management", "administration",
    "monitoring", "hosting", "subscription", "license", "software",
    "digital", "online", "virtual", "remote", "cloud",
    "serviço", "consultoria", "suporte", "manutenção", "treinamento",
    "desenvolvimento", "análise", "auditoria", "instalação",
    "configuração", "administração", "monitoramento", "licença",
)

PRODUCT_KEYWORDS = (
    "box", "piece", "unit", "item", "product", "goods", "material",
    "equipment", "device", "machine", "tool", "component", "part",
    "hardware", "accessory", "cable", "adapter", "battery",
    "caixa", "peça", "unidade", "produto", "mercadoria",
    "equipamento", "dispositivo", "máquina", "ferramenta", "componente",
    "parte", "acessório", "cabo", "adaptador", "bateria",
)

# Checked before the keyword tables.
DIGITAL_TERMS = ("digital", "virtual", "online", "software", "license", "subscription")

# (category, trigger words, kg per unit); first match wins.
WEIGHT_CATEGORIES = (
    ("electronics", ("electronic", "computer", "phone", "tablet"), 0.5),
    ("books", ("book", "document", "paper"), 0.3),
    ("textiles", ("clothing", "textile", "fabric"), 0.2),
    ("machinery", ("machinery", "equipment", "tool"), 5.0),
)
GENERAL_CATEGORY = "general"
GENERAL_UNIT_WEIGHT = 1.0
MAX_PACKAGE_WEIGHT_KG = 20.0


class Classification(str, Enum):
    PHYSICAL = "physical"
    SERVICE = "service"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ClassifiedItem:
    index: int
    item: InvoiceItem
    classification: Classification

    def to_dict(self) -> Dict[str, Any]:
        result = self.item.to_dict()
        result["index"] = self.index
        result["classification"] = self.classification.value
        return result


def _search_text(item: InvoiceItem) -> str:
    return f"{item.name} {item.description or ''}".lower()


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def classify_item(item: InvoiceItem) -> Classification:
    if item.is_physical_product is True:
        return Classification.PHYSICAL
    if item.is_physical_product is False:
        return Classification.SERVICE

    text = _search_text(item)
    if _contains_any(text, DIGITAL_TERMS):
        return Classification.SERVICE

    has_service = _contains_any(text, SERVICE_KEYWORDS)
    has_product = _contains_any(text, PRODUCT_KEYWORDS)
    if has_service and not has_product:
        return Classification.SERVICE
    if has_product and not has_service:
        return Classification.PHYSICAL

    # Cheap or fractional (hours, licences) lines lean towards services.
    if item.unit_price < 1:
        return Classification.SERVICE
    if not float(item.quantity).is_integer():
        return Classification.SERVICE

    return Classification.UNKNOWN


def classify_items(invoice: Invoice) -> List[ClassifiedItem]:
    return [
        ClassifiedItem(index=index, item=item, classification=classify_item(item))
        for index, item in enumerate(invoice.items)
    ]


def _items_with(invoice: Invoice, classification: Classification) -> List[ClassifiedItem]:
    return [entry for entry in classify_items(invoice) if entry.classification is classification]


def get_physical_items(invoice: Invoice) -> List[ClassifiedItem]:
    return _items_with(invoice, Classification.PHYSICAL)


def get_service_items(invoice: Invoice) -> List[ClassifiedItem]:
    return _items_with(invoice, Classification.SERVICE)


def get_unknown_items(invoice: Invoice) -> List[ClassifiedItem]:
    return _items_with(invoice, Classification.UNKNOWN)


def has_physical_items(invoice: Invoice) -> bool:
    return bool(get_physical_items(invoice))


def suggest_selected_items(invoice: Invoice) -> List[str]:
    """Indices (as strings) of the lines pre-selected for packing."""
    return [str(entry.index) for entry in get_physical_items(invoice)]


@dataclass(frozen=True)
class ClassificationSummary:
    physical: List[ClassifiedItem]
    services: List[ClassifiedItem]
    unknown: List[ClassifiedItem]
    total: int

    @property
    def has_physical_items(self) -> bool:
        return len(self.physical) > 0

    @property
    def has_only_services(self) -> bool:
        return len(self.services) == self.total

    @property
    def is_mixed(self) -> bool:
        return len(self.physical) > 0 and len(self.services) > 0

    def to_dict(self) -> Dict[str, Any]:
        def bucket(entries: List[ClassifiedItem]) -> Dict[str, Any]:
            return {"count": len(entries), "items": [entry.to_dict() for entry in entries]}

        return {
            "physical": bucket(self.physical),
            "services": bucket(self.services),
            "unknown": bucket(self.unknown),
            "total": self.total,
            "hasPhysicalItems": self.has_physical_items,
            "hasOnlyServices": self.has_only_services,
            "isMixed": self.is_mixed,
        }


def get_item_classification_summary(invoice: Invoice) -> ClassificationSummary:
    entries = classify_items(invoice)
    return ClassificationSummary(
        physical=[e for e in entries if e.classification is Classification.PHYSICAL],
        services=[e for e in entries if e.classification is Classification.SERVICE],
        unknown=[e for e in entries if e.classification is Classification.UNKNOWN],
        total=len(invoice.items),
    )


@dataclass(frozen=True)
class PackageSuggestion:
    suggested_packages: int
    estimated_weight: float
    item_categories: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "suggestedPackages": self.suggested_packages,
            "estimatedWeight": self.estimated_weight,
            "itemCategories": list(self.item_categories),
        }


def _weight_category(item: InvoiceItem) -> Tuple[str, float]:
    text = _search_text(item)
    for category, triggers, unit_weight in WEIGHT_CATEGORIES:
        if _contains_any(text, triggers):
            return category, unit_weight
    return GENERAL_CATEGORY, GENERAL_UNIT_WEIGHT


def suggest_package_configuration(physical_items: Iterable[InvoiceItem]) -> PackageSuggestion:
    """Rough package count and weight for items already judged physical."""
    items = list(physical_items)
    if not items:
        return PackageSuggestion(suggested_packages=0, estimated_weight=0, item_categories=[])

    estimated_weight = 0.0
    categories: List[str] = []
    for item in items:
        category, unit_weight = _weight_category(item)
        if category not in categories:
            categories.append(category)
        estimated_weight += item.quantity * unit_weight

    return PackageSuggestion(
        suggested_packages=max(1, math.ceil(estimated_weight / MAX_PACKAGE_WEIGHT_KG)),
        estimated_weight=round_half_up(estimated_weight, 2),
        item_categories=categories,
    )
