import unittest

from packing_list_generator.models import Address, Invoice, InvoiceItem, PackingList


class InvoiceParsingTests(unittest.TestCase):
    def test_reads_nested_details(self) -> None:
        invoice = Invoice.from_dict(
            {
                "sender": {"name": "Acme", "zipCode": "1000", "city": "Lisbon"},
                "receiver": {"name": "Globex"},
                "details": {
                    "invoiceNumber": 42,
                    "invoiceDate": "2026-03-01",
                    "items": [{"name": "Widget", "quantity": "3", "unitPrice": "9.5"}, "junk"],
                    "shippingDetails": {"incoterms": "CIF"},
                },
            }
        )

        self.assertEqual(invoice.invoice_number, "42")
        self.assertEqual(invoice.sender.zip_code, "1000")
        self.assertEqual(invoice.incoterms, "CIF")
        self.assertEqual(len(invoice.items), 1)
        self.assertEqual(invoice.items[0].quantity, 3.0)
        self.assertEqual(invoice.items[0].unit_price, 9.5)

    def test_missing_sections_default_to_empty(self) -> None:
        invoice = Invoice.from_dict({})

        self.assertEqual(invoice.invoice_number, "")
        self.assertEqual(invoice.items, [])
        self.assertEqual(invoice.receiver.name, "")

    def test_physical_flag_is_tri_state(self) -> None:
        unset = InvoiceItem.from_dict({"name": "A"})
        physical = InvoiceItem.from_dict({"name": "B", "isPhysicalProduct": True})
        service = InvoiceItem.from_dict({"name": "C", "isPhysicalProduct": False})

        self.assertIsNone(unset.is_physical_product)
        self.assertIs(physical.is_physical_product, True)
        self.assertIs(service.is_physical_product, False)
        self.assertNotIn("isPhysicalProduct", unset.to_dict())

    def test_physical_details(self) -> None:
        item = InvoiceItem.from_dict(
            {
                "name": "Drill",
                "physicalDetails": {
                    "unitWeight": "1.8",
                    "weightUnit": "lb",
                    "dimensions": {"length": 30, "width": 10, "height": 8, "unit": "cm"},
                    "fragile": True,
                },
            }
        )

        details = item.physical_details
        assert details is not None
        self.assertEqual(details.unit_weight, 1.8)
        self.assertEqual(details.weight_unit, "lb")
        self.assertTrue(details.fragile)
        assert details.dimensions is not None
        self.assertEqual(details.dimensions.length, 30)

    def test_blank_unit_weight_is_unset(self) -> None:
        item = InvoiceItem.from_dict({"name": "Drill", "physicalDetails": {"unitWeight": ""}})

        assert item.physical_details is not None
        self.assertIsNone(item.physical_details.unit_weight)


class PackingListSerializationTests(unittest.TestCase):
    def test_camel_case_wire_names(self) -> None:
        data = {
            "packingListNumber": "PL-1",
            "invoiceNumber": "1",
            "shippingInfo": {"carrier": "DHL", "trackingNumber": "T1", "portOfLoading": "Lisbon"},
            "packages": [
                {
                    "packageNumber": "PKG-001",
                    "packageType": "crate",
                    "dimensions": {"length": 1, "width": 1, "height": 1, "unit": "m"},
                    "grossWeight": 40,
                    "netWeight": 10,
                    "items": [{"itemName": "Drill", "quantity": 2, "unitWeight": 5, "totalWeight": 10}],
                }
            ],
            "certificateOfOrigin": True,
        }

        packing_list = PackingList.from_dict(data)

        self.assertEqual(packing_list.shipping_info.port_of_loading, "Lisbon")
        self.assertEqual(packing_list.packages[0].package_type, "crate")
        self.assertEqual(packing_list.packages[0].items[0].item_name, "Drill")
        self.assertTrue(packing_list.certificate_of_origin)
        self.assertEqual(packing_list.pdf_template, 1)

        serialized = packing_list.to_dict()
        self.assertEqual(serialized["shippingInfo"]["trackingNumber"], "T1")
        self.assertEqual(serialized["packages"][0]["items"][0]["totalWeight"], 10)
        self.assertEqual(PackingList.from_dict(serialized), packing_list)

    def test_address_zip_code_is_optional_on_the_wire(self) -> None:
        self.assertNotIn("zipCode", Address(name="Acme").to_dict())
        self.assertEqual(Address(name="Acme", zip_code="1000").to_dict()["zipCode"], "1000")


if __name__ == "__main__":
    unittest.main()
