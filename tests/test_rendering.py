import base64
import unittest
from importlib import util as importlib_util
from unittest.mock import patch

FPDF_AVAILABLE = importlib_util.find_spec("fpdf") is not None
if FPDF_AVAILABLE:
    from packing_list_generator.rendering import PackingListRenderer, decode_data_url, render_packing_list
    from packing_list_generator.models import PackingList
    from packing_list_generator.pagination import PaginationOptions, estimate_content_height


def packing_list_payload(item_count: int = 2) -> dict:
    return {
        "packingListNumber": "PL-1001",
        "packingListDate": "2026-03-14",
        "invoiceNumber": "1001",
        "invoiceDate": "2026-03-01",
        "shipper": {"name": "Acme Exports", "address": "1 Dock Road", "city": "1000-001, Lisbon", "country": "Portugal"},
        "consignee": {"name": "Globex", "address": "500 Harbor Blvd", "city": "90731, San Pedro", "country": "USA"},
        "shippingInfo": {"carrier": "Maersk", "shippingMethod": "sea", "incoterms": "FOB"},
        "packages": [
            {
                "packageNumber": "PKG-001",
                "packageType": "box",
                "dimensions": {"length": 50, "width": 40, "height": 30, "unit": "cm"},
                "grossWeight": 7.8,
                "netWeight": 6,
                "items": [
                    {
                        "itemName": f"Widget {n}",
                        "description": "Zinc-plated",
                        "quantity": 3,
                        "unitWeight": 2,
                        "totalWeight": 6,
                        "hsCode": "8479.89",
                        "countryOfOrigin": "Germany",
                    }
                    for n in range(item_count)
                ],
                "marks": "1001",
            }
        ],
        "totals": {"totalPackages": 1, "totalGrossWeight": 7.8, "totalNetWeight": 6, "totalVolume": 0.06},
        "specialInstructions": "Keep dry.",
        "certificateOfOrigin": True,
        "notes": "Packing list generated from Invoice #1001",
    }


@unittest.skipUnless(FPDF_AVAILABLE, "fpdf is not installed")
class RenderingTests(unittest.TestCase):
    def test_render_packing_list_returns_pdf_bytes(self) -> None:
        pdf = render_packing_list(packing_list_payload())

        self.assertIsInstance(pdf, bytes)
        self.assertTrue(pdf.startswith(b"%PDF"))
        self.assertGreater(len(pdf), 100)

    def test_long_item_tables_flow_onto_more_pages(self) -> None:
        renderer = PackingListRenderer(PackingList.from_dict(packing_list_payload(item_count=120)))

        pdf = renderer.render()

        self.assertTrue(pdf.startswith(b"%PDF"))
        self.assertGreater(renderer.pdf.page_no(), 1)

    def test_small_overflow_is_shrunk_onto_one_page(self) -> None:
        packing_list = PackingList.from_dict(packing_list_payload(item_count=1))
        options = PaginationOptions(max_height=estimate_content_height(packing_list) / 1.02)

        renderer = PackingListRenderer(packing_list, options)

        self.assertTrue(renderer.resize.should_resize)
        self.assertAlmostEqual(renderer.fonts.scale, 0.97, places=3)
        self.assertTrue(renderer.render().startswith(b"%PDF"))

    def test_empty_packing_list_renders(self) -> None:
        pdf = render_packing_list({})

        self.assertTrue(pdf.startswith(b"%PDF"))

    def test_broken_logo_is_skipped(self) -> None:
        payload = packing_list_payload()
        payload["logo"] = "data:image/png;base64," + base64.b64encode(b"not an image").decode("ascii")

        pdf = render_packing_list(payload)

        self.assertTrue(pdf.startswith(b"%PDF"))

    def test_second_template_draws_the_minimal_header(self) -> None:
        payload = packing_list_payload()
        payload["pdfTemplate"] = 2
        renderer = PackingListRenderer(PackingList.from_dict(payload))

        with patch.object(PackingListRenderer, "_draw_header") as classic_header:
            pdf = renderer.render()

        self.assertTrue(pdf.startswith(b"%PDF"))
        classic_header.assert_not_called()
        self.assertEqual(renderer.pdf.page_no(), 1)

    def test_unknown_template_draws_the_classic_layout(self) -> None:
        payload = packing_list_payload()
        payload["pdfTemplate"] = 7
        renderer = PackingListRenderer(PackingList.from_dict(payload))

        with patch.object(PackingListRenderer, "_draw_minimal_header") as minimal_header:
            pdf = renderer.render()

        self.assertTrue(pdf.startswith(b"%PDF"))
        minimal_header.assert_not_called()

    def test_decode_data_url(self) -> None:
        image = decode_data_url("data:image/png;base64," + base64.b64encode(b"abc").decode("ascii"))

        assert image is not None
        self.assertEqual(image.read(), b"abc")
        self.assertIsNone(decode_data_url("https://example.com/logo.png"))
        self.assertIsNone(decode_data_url("data:image/png;base64,%%%"))


if __name__ == "__main__":
    unittest.main()
