import json
import os
import tempfile
import unittest
from importlib import util as importlib_util

HTTPX_AVAILABLE = importlib_util.find_spec("httpx") is not None
if HTTPX_AVAILABLE:
    import httpx

    from packing_list_generator.client import (
        PackingListClientError,
        download_packing_list_pdf,
        generate_and_download_packing_list,
        generate_packing_list_pdf,
        packing_list_filename,
    )


@unittest.skipUnless(HTTPX_AVAILABLE, "httpx is not installed")
class ClientTests(unittest.TestCase):
    def setUp(self) -> None:
        self.requests = []
        self._tmp = tempfile.TemporaryDirectory()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _client(self, status: int, content: bytes, content_type: str = "application/pdf") -> "httpx.Client":
        def handler(request: "httpx.Request") -> "httpx.Response":
            self.requests.append(request)
            return httpx.Response(status, content=content, headers={"Content-Type": content_type})

        return httpx.Client(transport=httpx.MockTransport(handler))

    def test_posts_json_and_returns_pdf(self) -> None:
        with self._client(200, b"%PDF-1.4 test") as client:
            pdf = generate_packing_list_pdf({"packingListNumber": "PL-1"}, base_url="http://render.test/", client=client)

        self.assertEqual(pdf, b"%PDF-1.4 test")
        request = self.requests[0]
        self.assertEqual(request.method, "POST")
        self.assertEqual(str(request.url), "http://render.test/api/packing-list/generate")
        self.assertEqual(json.loads(request.content), {"packingListNumber": "PL-1"})

    def test_server_error_message_is_surfaced(self) -> None:
        body = json.dumps({"error": "Failed to generate packing list PDF"}).encode("utf-8")
        with self._client(500, body, "application/json") as client:
            with self.assertRaises(PackingListClientError) as ctx:
                generate_packing_list_pdf({}, base_url="http://render.test", client=client)

        self.assertEqual(
            str(ctx.exception),
            "Failed to generate packing list: Failed to generate packing list PDF",
        )

    def test_non_json_error_uses_reason_phrase(self) -> None:
        with self._client(502, b"upstream down", "text/plain") as client:
            with self.assertRaises(PackingListClientError) as ctx:
                generate_packing_list_pdf({}, base_url="http://render.test", client=client)

        self.assertEqual(str(ctx.exception), "Failed to generate packing list: Bad Gateway")

    def test_transport_errors_are_wrapped(self) -> None:
        def handler(request: "httpx.Request") -> "httpx.Response":
            raise httpx.ConnectError("connection refused", request=request)

        with httpx.Client(transport=httpx.MockTransport(handler)) as client:
            with self.assertRaises(PackingListClientError):
                generate_packing_list_pdf({}, base_url="http://render.test", client=client)

    def test_filename(self) -> None:
        self.assertEqual(packing_list_filename({"packingListNumber": "PL-1001"}), "packing-list-PL-1001.pdf")
        self.assertEqual(packing_list_filename({}), "packing-list-document.pdf")

    def test_download_writes_file(self) -> None:
        path = download_packing_list_pdf(b"%PDF", "packing-list-PL-1.pdf", os.path.join(self._tmp.name, "out"))

        with open(path, "rb") as handle:
            self.assertEqual(handle.read(), b"%PDF")

    def test_generate_and_download(self) -> None:
        with self._client(200, b"%PDF-1.4 test") as client:
            path = generate_and_download_packing_list(
                {"packingListNumber": "PL-7"},
                self._tmp.name,
                base_url="http://render.test",
                client=client,
            )

        self.assertEqual(os.path.basename(path), "packing-list-PL-7.pdf")
        self.assertTrue(os.path.exists(path))


if __name__ == "__main__":
    unittest.main()
