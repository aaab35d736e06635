import unittest

from packing_list_generator.classification import (
    Classification,
    classify_item,
    get_item_classification_summary,
    get_physical_items,
    get_service_items,
    get_unknown_items,
    has_physical_items,
    suggest_package_configuration,
    suggest_selected_items,
)
from packing_list_generator.models import Invoice, InvoiceItem


def _invoice(*items: InvoiceItem) -> Invoice:
    return Invoice(invoice_number="1001", items=list(items))


class ClassifyItemTests(unittest.TestCase):
    def test_software_license_is_a_service(self) -> None:
        item = InvoiceItem(name="Cloud Software License", quantity=1, unit_price=499)

        self.assertEqual(classify_item(item), Classification.SERVICE)

    def test_steel_box_is_physical(self) -> None:
        item = InvoiceItem(name="Steel Box", quantity=2, unit_price=50)

        self.assertEqual(classify_item(item), Classification.PHYSICAL)

    def test_explicit_flag_wins_over_keywords(self) -> None:
        physical = InvoiceItem(name="Consulting hours", quantity=1, unit_price=100, is_physical_product=True)
        service = InvoiceItem(name="Steel Box", quantity=1, unit_price=100, is_physical_product=False)

        self.assertEqual(classify_item(physical), Classification.PHYSICAL)
        self.assertEqual(classify_item(service), Classification.SERVICE)

    def test_digital_terms_are_checked_before_product_keywords(self) -> None:
        item = InvoiceItem(name="Digital adapter", quantity=1, unit_price=30)

        self.assertEqual(classify_item(item), Classification.SERVICE)

    def test_description_is_searched(self) -> None:
        item = InvoiceItem(name="Lot 7", description="Assorted hardware", quantity=1, unit_price=30)

        self.assertEqual(classify_item(item), Classification.PHYSICAL)

    def test_portuguese_keywords(self) -> None:
        self.assertEqual(
            classify_item(InvoiceItem(name="Consultoria mensal", quantity=1, unit_price=900)),
            Classification.SERVICE,
        )
        self.assertEqual(
            classify_item(InvoiceItem(name="Ferramenta elétrica", quantity=1, unit_price=90)),
            Classification.PHYSICAL,
        )

    def test_cheap_or_fractional_lines_lean_to_service(self) -> None:
        self.assertEqual(
            classify_item(InvoiceItem(name="Widget", quantity=1, unit_price=0.5)),
            Classification.SERVICE,
        )
        self.assertEqual(
            classify_item(InvoiceItem(name="Widget", quantity=2.5, unit_price=10)),
            Classification.SERVICE,
        )

    def test_unmatched_item_is_unknown(self) -> None:
        item = InvoiceItem(name="Widget", quantity=3, unit_price=10)

        self.assertEqual(classify_item(item), Classification.UNKNOWN)

    def test_substring_matching_is_loose(self) -> None:
        # "boxing" contains "box".
        item = InvoiceItem(name="Boxing gloves", quantity=1, unit_price=40)

        self.assertEqual(classify_item(item), Classification.PHYSICAL)


class InvoiceClassificationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.invoice = _invoice(
            InvoiceItem(name="Steel Box", quantity=2, unit_price=50),
            InvoiceItem(name="Installation service", quantity=1, unit_price=200),
            InvoiceItem(name="Widget", quantity=3, unit_price=10),
        )

    def test_batch_queries_keep_original_indices(self) -> None:
        self.assertEqual([e.index for e in get_physical_items(self.invoice)], [0])
        self.assertEqual([e.index for e in get_service_items(self.invoice)], [1])
        self.assertEqual([e.index for e in get_unknown_items(self.invoice)], [2])
        self.assertTrue(has_physical_items(self.invoice))

    def test_summary_flags(self) -> None:
        summary = get_item_classification_summary(self.invoice)

        self.assertEqual(summary.total, 3)
        self.assertTrue(summary.is_mixed)
        self.assertFalse(summary.has_only_services)
        payload = summary.to_dict()
        self.assertEqual(payload["physical"]["count"], 1)
        self.assertEqual(payload["physical"]["items"][0]["index"], 0)
        self.assertEqual(payload["physical"]["items"][0]["classification"], "physical")
        self.assertTrue(payload["hasPhysicalItems"])

    def test_services_only_invoice(self) -> None:
        summary = get_item_classification_summary(
            _invoice(InvoiceItem(name="Annual support", quantity=1, unit_price=100))
        )

        self.assertTrue(summary.has_only_services)
        self.assertFalse(summary.has_physical_items)
        self.assertFalse(summary.is_mixed)

    def test_suggested_selection_is_physical_indices_as_strings(self) -> None:
        self.assertEqual(suggest_selected_items(self.invoice), ["0"])


class PackageSuggestionTests(unittest.TestCase):
    def test_empty_input(self) -> None:
        suggestion = suggest_package_configuration([])

        self.assertEqual(
            suggestion.to_dict(),
            {"suggestedPackages": 0, "estimatedWeight": 0, "itemCategories": []},
        )

    def test_weights_by_category(self) -> None:
        suggestion = suggest_package_configuration(
            [
                InvoiceItem(name="Tablet", quantity=4, unit_price=300),
                InvoiceItem(name="Paper ream", quantity=10, unit_price=5),
                InvoiceItem(name="Steel Box", quantity=2, unit_price=50),
            ]
        )

        self.assertEqual(suggestion.item_categories, ["electronics", "books", "general"])
        self.assertEqual(suggestion.estimated_weight, 7.0)
        self.assertEqual(suggestion.suggested_packages, 1)

    def test_heavy_items_need_more_packages(self) -> None:
        suggestion = suggest_package_configuration([InvoiceItem(name="Power tool", quantity=9, unit_price=80)])

        self.assertEqual(suggestion.item_categories, ["machinery"])
        self.assertEqual(suggestion.estimated_weight, 45.0)
        self.assertEqual(suggestion.suggested_packages, 3)


if __name__ == "__main__":
    unittest.main()
