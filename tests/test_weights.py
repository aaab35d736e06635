import unittest

from packing_list_generator.models import Dimensions, Package
from packing_list_generator.weights import (
    calculate_gross_weight,
    calculate_packaging_weight,
    calculate_packing_list_totals,
    calculate_volume,
    size_bucket,
)


class VolumeTests(unittest.TestCase):
    def test_centimetres_to_cubic_metres(self) -> None:
        self.assertEqual(calculate_volume(Dimensions(100, 50, 30, "cm")), 0.15)

    def test_default_box_volume(self) -> None:
        self.assertEqual(calculate_volume(Dimensions(50, 40, 30, "cm")), 0.06)

    def test_other_units(self) -> None:
        self.assertEqual(calculate_volume(Dimensions(2, 1, 1, "m")), 2.0)
        self.assertEqual(calculate_volume(Dimensions(1, 1, 1, "ft")), 0.028)
        self.assertEqual(calculate_volume(Dimensions(10, 10, 10, "in")), 0.016)

    def test_unknown_unit_passes_through(self) -> None:
        self.assertEqual(calculate_volume(Dimensions(1, 2, 3, "furlong")), 6.0)


class PackagingWeightTests(unittest.TestCase):
    def test_size_bucket_uses_largest_side_in_centimetres(self) -> None:
        self.assertEqual(size_bucket(Dimensions(29, 10, 10, "cm")), "small")
        self.assertEqual(size_bucket(Dimensions(30, 10, 10, "cm")), "medium")
        self.assertEqual(size_bucket(Dimensions(1, 0.5, 0.5, "m")), "large")
        self.assertEqual(size_bucket(Dimensions(12, 6, 6, "in")), "medium")

    def test_lookup_by_type(self) -> None:
        dims = Dimensions(50, 40, 30, "cm")

        self.assertEqual(calculate_packaging_weight("box", dims), 1.5)
        self.assertEqual(calculate_packaging_weight("crate", dims), 15.0)

    def test_unknown_type_uses_other(self) -> None:
        dims = Dimensions(50, 40, 30, "cm")

        self.assertEqual(calculate_packaging_weight("sack", dims), calculate_packaging_weight("other", dims))

    def test_gross_weight_of_default_box(self) -> None:
        self.assertEqual(calculate_gross_weight(6, "box", Dimensions(50, 40, 30, "cm")), 7.8)

    def test_gross_weight_without_packing_materials(self) -> None:
        gross = calculate_gross_weight(6, "box", Dimensions(50, 40, 30, "cm"), include_packing_materials=False)

        self.assertEqual(gross, 7.5)

    def test_gross_weight_is_never_below_net(self) -> None:
        for package_type in ("box", "crate", "pallet", "bag", "other", "unknown"):
            self.assertGreaterEqual(calculate_gross_weight(12.5, package_type, Dimensions(10, 10, 10)), 12.5)


class TotalsTests(unittest.TestCase):
    def test_sums_packages(self) -> None:
        packages = [
            Package("PKG-001", Dimensions(50, 40, 30), gross_weight=7.8, net_weight=6),
            Package("PKG-002", Dimensions(100, 50, 30), gross_weight=12.35, net_weight=10.001),
        ]

        totals = calculate_packing_list_totals(packages)

        self.assertEqual(totals.total_packages, 2)
        self.assertEqual(totals.total_gross_weight, 20.15)
        self.assertEqual(totals.total_net_weight, 16.0)
        self.assertEqual(totals.total_volume, 0.21)
        self.assertEqual(totals.volume_unit, "m3")

    def test_no_packages(self) -> None:
        totals = calculate_packing_list_totals([])

        self.assertEqual(totals.total_packages, 0)
        self.assertEqual(totals.total_gross_weight, 0)
        self.assertEqual(totals.total_volume, 0)


if __name__ == "__main__":
    unittest.main()
