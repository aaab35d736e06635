"""Volume and packaging-weight estimates for packing lists.

Gross weight uses a dimension- and type-sensitive model: the tare of the
package (looked up by type and size bucket of its largest side) plus a share
of the net weight for protective materials.
"""

from __future__ import annotations

from typing import Dict, Iterable

from .formatting import round_half_up
from .models import Dimensions, Package, PackingListTotals

# Conversion of a unit's cube to cubic metres.
CUBIC_METRE_FACTORS = {
    "cm": 1e-6,
    "in": 0.000016387,
    "ft": 0.028317,
    "m": 1.0,
}

# Conversion of a length to centimetres.
CENTIMETRE_FACTORS = {
    "cm": 1.0,
    "m": 100.0,
    "in": 2.54,
    "ft": 30.48,
}

SMALL_PACKAGE_MAX_CM = 30
MEDIUM_PACKAGE_MAX_CM = 100

# Empty package weight in kg by type and size.
PACKAGING_WEIGHTS: Dict[str, Dict[str, float]] = {
    "box": {"small": 0.5, "medium": 1.5, "large": 3.0},
    "crate": {"small": 5.0, "medium": 15.0, "large": 30.0},
    "pallet": {"small": 15.0, "medium": 25.0, "large": 35.0},
    "drum": {"small": 8.0, "medium": 15.0, "large": 25.0},
    "bag": {"small": 0.1, "medium": 0.3, "large": 0.5},
    "bundle": {"small": 1.0, "medium": 2.5, "large": 5.0},
    # 20', 40' and 40' HC shipping containers.
    "container": {"small": 2200.0, "medium": 3800.0, "large": 4800.0},
    "other": {"small": 1.0, "medium": 3.0, "large": 6.0},
}

# Protective material (wrap, fill, cardboard) as a share of net weight.
MATERIAL_RATIOS = {
    "box": 0.05,
    "crate": 0.03,
    "pallet": 0.02,
    "drum": 0.02,
    "bag": 0.01,
    "bundle": 0.02,
    "container": 0.01,
    "other": 0.04,
}
DEFAULT_MATERIAL_RATIO = 0.04


def calculate_volume(dimensions: Dimensions) -> float:
    """Volume in cubic metres, rounded to 3 decimals."""
    volume = dimensions.length * dimensions.width * dimensions.height
    volume *= CUBIC_METRE_FACTORS.get(dimensions.unit, 1.0)
    return round_half_up(volume, 3)


def size_bucket(dimensions: Dimensions) -> str:
    longest = max(dimensions.length, dimensions.width, dimensions.height)
    longest *= CENTIMETRE_FACTORS.get(dimensions.unit, 1.0)
    if longest < SMALL_PACKAGE_MAX_CM:
        return "small"
    if longest < MEDIUM_PACKAGE_MAX_CM:
        return "medium"
    return "large"


def calculate_packaging_weight(package_type: str, dimensions: Dimensions) -> float:
    weights = PACKAGING_WEIGHTS.get(package_type, PACKAGING_WEIGHTS["other"])
    return weights[size_bucket(dimensions)]


def calculate_gross_weight(
    net_weight: float,
    package_type: str,
    dimensions: Dimensions,
    include_packing_materials: bool = True,
) -> float:
    packaging_weight = calculate_packaging_weight(package_type, dimensions)
    materials_weight = 0.0
    if include_packing_materials:
        materials_weight = net_weight * MATERIAL_RATIOS.get(package_type, DEFAULT_MATERIAL_RATIO)
    return round_half_up(net_weight + packaging_weight + materials_weight, 2)


def calculate_packing_list_totals(packages: Iterable[Package]) -> PackingListTotals:
    packages = list(packages)
    gross = sum(pkg.gross_weight for pkg in packages)
    net = sum(pkg.net_weight for pkg in packages)
    volume = sum(calculate_volume(pkg.dimensions) for pkg in packages)
    return PackingListTotals(
        total_packages=len(packages),
        total_gross_weight=round_half_up(gross, 2),
        total_net_weight=round_half_up(net, 2),
        total_volume=round_half_up(volume, 3),
        volume_unit="m3",
    )
