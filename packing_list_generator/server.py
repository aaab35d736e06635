"""HTTP server entrypoints for packing-list drafting, storage and rendering."""

from __future__ import annotations

import atexit
import errno
import json
import logging
import multiprocessing as mp
import re
import sys
import threading
import traceback
from concurrent.futures import ProcessPoolExecutor, TimeoutError as FutureTimeoutError
from concurrent.futures.process import BrokenProcessPool
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlsplit

from dateutil import parser as dateutil_parser

from .classification import (
    get_item_classification_summary,
    get_physical_items,
    suggest_package_configuration,
)
from .config import (
    LISTEN_BACKLOG,
    MAX_BODY_BYTES as MAX_BODY_BYTES_CONFIG,
    MAX_CONCURRENT_RENDERS,
    MAX_INFLIGHT_RENDERS,
    MAX_PAGES as MAX_PAGES_CONFIG,
    RENDER_QUEUE_TIMEOUT_MS,
    RENDER_TIMEOUT_MS,
    STORAGE_PATH,
)
from .derive import (
    NoItemsSelectedError,
    apply_overrides,
    build_packing_list,
    derive_draft,
    restore_packing_list,
    restore_selection,
)
from .models import Invoice, PackingList
from .pagination import estimate_page_count
from .storage import PackingListStore, StaleWriteError, StorageError

logger = logging.getLogger(__name__)

RENDER_INFLIGHT_SEMAPHORE = threading.BoundedSemaphore(MAX_INFLIGHT_RENDERS)
RENDER_EXECUTOR_LOCK = threading.Lock()
RENDER_EXECUTOR: Optional[ProcessPoolExecutor] = None
STORE_LOCK = threading.Lock()
STORE: Optional[PackingListStore] = None
ValidationError = Tuple[int, Dict[str, Any]]
Response = Tuple[int, Dict[str, Any]]

RENDER_ERROR_MESSAGE = "Failed to generate packing list PDF"
RENDER_PATHS = ("/api/packing-list/generate", "/generate")
DRAFT_PATH = "/api/packing-list/draft"
SAVED_LISTS_PATH = "/api/packing-lists"
HEALTH_PATHS = ("/", "/health", "/healthz", "/ready")

DISCONNECT_ERRNOS = {
    errno.EPIPE,
    errno.ECONNRESET,
    errno.ETIMEDOUT,
}
if hasattr(errno, "WSAECONNRESET"):
    DISCONNECT_ERRNOS.add(errno.WSAECONNRESET)  # pragma: no cover


class DependencyError(RuntimeError):
    """Raised when a required runtime dependency is missing."""


def is_client_disconnect(exc: BaseException) -> bool:
    if isinstance(exc, (BrokenPipeError, ConnectionResetError, TimeoutError)):
        return True
    return isinstance(exc, OSError) and exc.errno in DISCONNECT_ERRNOS


def load_render_packing_list():
    try:
        from .rendering import render_packing_list
    except ModuleNotFoundError as exc:
        if exc.name == "fpdf":
            raise DependencyError(
                "Missing dependency 'fpdf'. Install project dependencies with "
                "'pip install -e .'."
            ) from exc
        raise
    return render_packing_list


def create_render_executor() -> ProcessPoolExecutor:
    return ProcessPoolExecutor(
        max_workers=MAX_CONCURRENT_RENDERS,
        mp_context=mp.get_context("spawn"),
    )


def get_render_executor() -> ProcessPoolExecutor:
    global RENDER_EXECUTOR
    with RENDER_EXECUTOR_LOCK:
        if RENDER_EXECUTOR is None:
            RENDER_EXECUTOR = create_render_executor()
        return RENDER_EXECUTOR


def restart_render_executor(previous: ProcessPoolExecutor) -> ProcessPoolExecutor:
    global RENDER_EXECUTOR
    with RENDER_EXECUTOR_LOCK:
        if RENDER_EXECUTOR is previous:
            try:
                previous.shutdown(wait=False, cancel_futures=True)
            except Exception:
                logger.debug("Ignoring error while shutting down broken render pool", exc_info=True)
            RENDER_EXECUTOR = create_render_executor()
        if RENDER_EXECUTOR is None:
            RENDER_EXECUTOR = create_render_executor()
        return RENDER_EXECUTOR


def submit_render_job(payload: Dict[str, Any]):
    render_packing_list = load_render_packing_list()
    executor = get_render_executor()
    try:
        return executor.submit(render_packing_list, payload)
    except BrokenProcessPool:
        logger.warning("Render pool is broken; restarting it")
        return restart_render_executor(executor).submit(render_packing_list, payload)


def shutdown_render_executor() -> None:
    global RENDER_EXECUTOR
    with RENDER_EXECUTOR_LOCK:
        executor = RENDER_EXECUTOR
        RENDER_EXECUTOR = None
    if executor is not None:
        try:
            executor.shutdown(wait=False, cancel_futures=True)
        except Exception:
            logger.debug("Ignoring error while shutting down render pool", exc_info=True)


atexit.register(shutdown_render_executor)


def get_store() -> PackingListStore:
    global STORE
    with STORE_LOCK:
        if STORE is None:
            STORE = PackingListStore(STORAGE_PATH)
        return STORE


def parse_json_object(body: bytes) -> Tuple[Optional[Dict[str, Any]], Optional[ValidationError]]:
    try:
        payload = json.loads(body.decode("utf-8"))
    except UnicodeDecodeError:
        return None, (
            400,
            {"error": "invalid_encoding", "detail": "Body must be UTF-8 encoded JSON."},
        )
    except json.JSONDecodeError as exc:
        return None, (
            400,
            {
                "error": "invalid_json",
                "detail": f"{exc.msg} (line {exc.lineno}, column {exc.colno})",
            },
        )

    if not isinstance(payload, dict):
        return None, (
            400,
            {"error": "invalid_payload", "detail": "JSON root must be an object."},
        )
    return payload, None


def validate_packing_list_payload(
    body: bytes,
    max_pages: int,
) -> Tuple[Optional[Dict[str, Any]], Optional[ValidationError]]:
    payload, error = parse_json_object(body)
    if error is not None:
        return None, error
    assert payload is not None

    packages = payload.get("packages", [])
    if packages is None:
        packages = []
    if not isinstance(packages, list):
        return None, (
            400,
            {"error": "invalid_payload", "detail": "'packages' must be an array."},
        )
    for index, package in enumerate(packages):
        if not isinstance(package, dict):
            return None, (
                400,
                {"error": "invalid_payload", "detail": f"'packages[{index}]' must be an object."},
            )
        if not isinstance(package.get("items", []) or [], list):
            return None, (
                400,
                {"error": "invalid_payload", "detail": f"'packages[{index}].items' must be an array."},
            )

    estimated_pages = estimate_page_count(PackingList.from_dict(payload))
    if estimated_pages > max_pages:
        return None, (
            413,
            {
                "error": "packing_list_too_large",
                "detail": f"Packing list would render {estimated_pages} pages; maximum is {max_pages}.",
            },
        )

    return payload, None


def content_disposition(packing_list_number: Any) -> str:
    number = re.sub(r'[\\/"\r\n]+', "-", str(packing_list_number or "").strip()) or "document"
    return f'inline; filename="packing-list-{number}.pdf"'


def _selection(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [str(index) for index in value]


def build_draft_response(request: Dict[str, Any], store: Optional[PackingListStore]) -> Response:
    """Draft plus the classification data the packing-list dialog shows.

    Without ``selectedItems`` a list already saved for the invoice is reopened
    as it was saved; otherwise every line is drafted. ``overrides`` are laid on
    top in either case.
    """
    raw_invoice = request.get("invoice")
    if not isinstance(raw_invoice, dict):
        return 400, {"error": "invalid_payload", "detail": "'invoice' must be an object."}
    overrides = request.get("overrides")
    if overrides is not None and not isinstance(overrides, dict):
        return 400, {"error": "invalid_payload", "detail": "'overrides' must be an object."}
    raw_selection = request.get("selectedItems")
    if raw_selection is not None and not isinstance(raw_selection, list):
        return 400, {"error": "invalid_payload", "detail": "'selectedItems' must be an array."}

    invoice = Invoice.from_dict(raw_invoice)
    if raw_selection is None:
        saved = None
        if store is not None:
            try:
                saved = store.find(invoice_number=invoice.invoice_number)
            except StorageError as exc:
                logger.error("Cannot restore saved packing list: %s", exc)
                return 500, {"error": "storage_error", "detail": str(exc)}
        selection = restore_selection(invoice, saved)
        if saved is not None:
            packing_list = restore_packing_list(invoice, saved)
        else:
            packing_list = derive_draft(invoice)
        packing_list = apply_overrides(packing_list, overrides)
    else:
        selection = [str(index) for index in raw_selection]
        try:
            packing_list = build_packing_list(invoice, selection, overrides)
        except NoItemsSelectedError as exc:
            return 400, {"error": "no_items_selected", "detail": str(exc)}

    physical = [entry.item for entry in get_physical_items(invoice)]
    return 200, {
        "packingList": packing_list.to_dict(),
        "selectedItems": selection,
        "classification": get_item_classification_summary(invoice).to_dict(),
        "suggestion": suggest_package_configuration(physical).to_dict(),
    }


def list_saved_packing_lists(store: PackingListStore) -> Response:
    try:
        return 200, {"packingLists": store.load_all()}
    except StorageError as exc:
        logger.error("Cannot list saved packing lists: %s", exc)
        return 500, {"error": "storage_error", "detail": str(exc)}


def save_packing_list_request(store: PackingListStore, request: Dict[str, Any]) -> Response:
    raw_packing_list = request.get("packingList")
    if not isinstance(raw_packing_list, dict):
        return 400, {"error": "invalid_payload", "detail": "'packingList' must be an object."}
    selection = _selection(request.get("selectedItems", []))
    if selection is None:
        return 400, {"error": "invalid_payload", "detail": "'selectedItems' must be an array."}

    saved_at = None
    raw_saved_at = request.get("savedAt")
    if raw_saved_at:
        try:
            saved_at = dateutil_parser.isoparse(str(raw_saved_at))
        except (ValueError, OverflowError):
            return 400, {"error": "invalid_payload", "detail": "'savedAt' must be an ISO 8601 timestamp."}

    packing_list = PackingList.from_dict(raw_packing_list)
    if not packing_list.packing_list_number and not packing_list.invoice_number:
        return 400, {
            "error": "invalid_payload",
            "detail": "'packingListNumber' or 'invoiceNumber' is required to save.",
        }

    try:
        result = store.save(packing_list, selection, saved_at=saved_at)
    except StaleWriteError as exc:
        return 409, {"error": "stale_write", "detail": str(exc), "storedAt": exc.stored_at}
    except StorageError as exc:
        logger.error("Cannot save packing list %s: %s", packing_list.packing_list_number, exc)
        return 500, {"error": "storage_error", "detail": str(exc)}

    return (201 if result.created else 200), {"status": result.status, "record": result.record}


class PackingListHandler(BaseHTTPRequestHandler):
    MAX_BODY_BYTES = MAX_BODY_BYTES_CONFIG
    MAX_PAGES = MAX_PAGES_CONFIG

    def _route(self) -> str:
        path = urlsplit(self.path).path
        if len(path) > 1:
            path = path.rstrip("/")
        return path

    def _write_response(
        self,
        status: int,
        content_type: str,
        body: bytes,
        headers: Optional[Dict[str, str]] = None,
    ) -> bool:
        try:
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            for name, value in (headers or {}).items():
                self.send_header(name, value)
            self.end_headers()
            self.wfile.write(body)
            return True
        except Exception as exc:
            if is_client_disconnect(exc):
                return False
            raise

    def _send_json(self, status: int, payload: Any) -> bool:
        body = json.dumps(payload).encode("utf-8")
        return self._write_response(status, "application/json", body)

    def _read_body(self) -> Optional[bytes]:
        header = self.headers.get("Content-Length")
        if header is None:
            self._send_json(
                411,
                {
                    "error": "missing_content_length",
                    "detail": "Content-Length header is required.",
                },
            )
            return None

        try:
            content_length = int(header)
        except ValueError:
            self._send_json(
                400,
                {
                    "error": "invalid_content_length",
                    "detail": "Content-Length must be an integer.",
                },
            )
            return None

        if content_length <= 0:
            self._send_json(400, {"error": "empty_body", "detail": "Request body cannot be empty."})
            return None

        if content_length > self.MAX_BODY_BYTES:
            self._send_json(
                413,
                {
                    "error": "payload_too_large",
                    "detail": f"Body exceeds {self.MAX_BODY_BYTES} bytes.",
                },
            )
            return None

        try:
            return self.rfile.read(content_length)
        except Exception as exc:
            if is_client_disconnect(exc):
                return None
            raise

    def _read_json(self) -> Optional[Dict[str, Any]]:
        body = self._read_body()
        if body is None:
            return None
        payload, error = parse_json_object(body)
        if error is not None:
            status, payload_body = error
            self._send_json(status, payload_body)
            return None
        return payload

    def _render(self) -> None:
        body = self._read_body()
        if body is None:
            return

        payload, validation_error = validate_packing_list_payload(body, self.MAX_PAGES)
        if validation_error is not None:
            status, payload_body = validation_error
            self._send_json(status, payload_body)
            return
        assert payload is not None

        acquired = RENDER_INFLIGHT_SEMAPHORE.acquire(timeout=RENDER_QUEUE_TIMEOUT_MS / 1000.0)
        if not acquired:
            retry_after_seconds = max(1, (RENDER_QUEUE_TIMEOUT_MS + 999) // 1000)
            self._send_json(
                503,
                {
                    "error": "server_busy",
                    "detail": "Render queue is full; retry shortly.",
                    "retry_after_ms": RENDER_QUEUE_TIMEOUT_MS,
                    "retry_after_seconds": retry_after_seconds,
                    "max_concurrent_renders": MAX_CONCURRENT_RENDERS,
                    "max_inflight_renders": MAX_INFLIGHT_RENDERS,
                },
            )
            return

        future = None
        try:
            future = submit_render_job(payload)
            pdf_bytes = future.result(timeout=RENDER_TIMEOUT_MS / 1000.0)
        except FutureTimeoutError:
            if future is not None:
                future.cancel()
            logger.error("Render of %s exceeded %d ms", payload.get("packingListNumber"), RENDER_TIMEOUT_MS)
            self._send_json(
                500,
                {
                    "error": RENDER_ERROR_MESSAGE,
                    "detail": f"Render exceeded timeout of {RENDER_TIMEOUT_MS} ms.",
                },
            )
            return
        except BrokenProcessPool:
            restart_render_executor(get_render_executor())
            self._send_json(
                500,
                {
                    "error": RENDER_ERROR_MESSAGE,
                    "detail": "Render worker pool restarted; retry shortly.",
                },
            )
            return
        except Exception as exc:
            traceback.print_exc(file=sys.stderr)
            self._send_json(500, {"error": RENDER_ERROR_MESSAGE, "detail": str(exc)})
            return
        finally:
            RENDER_INFLIGHT_SEMAPHORE.release()

        self._write_response(
            200,
            "application/pdf",
            pdf_bytes,
            headers={"Content-Disposition": content_disposition(payload.get("packingListNumber"))},
        )

    def do_POST(self) -> None:
        route = self._route()
        if route in RENDER_PATHS:
            self._render()
            return

        if route == DRAFT_PATH:
            request = self._read_json()
            if request is not None:
                self._send_json(*build_draft_response(request, get_store()))
            return

        if route == SAVED_LISTS_PATH:
            request = self._read_json()
            if request is not None:
                self._send_json(*save_packing_list_request(get_store(), request))
            return

        self._send_json(404, {"error": "not_found", "detail": "Unsupported endpoint."})

    def do_GET(self) -> None:
        route = self._route()
        if route in HEALTH_PATHS:
            self._send_json(200, {"status": "ok"})
            return
        if route == SAVED_LISTS_PATH:
            self._send_json(*list_saved_packing_lists(get_store()))
            return
        self._send_json(404, {"error": "not_found", "detail": "Unsupported endpoint."})

    def handle_one_request(self) -> None:
        try:
            super().handle_one_request()
        except Exception as exc:
            if is_client_disconnect(exc):
                return
            raise

    def log_message(self, format: str, *args: Any) -> None:
        return


class PackingListHTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    allow_reuse_address = True
    request_queue_size = LISTEN_BACKLOG


def run(host: str = "0.0.0.0", port: int = 8080) -> None:
    load_render_packing_list()
    get_render_executor()
    store = get_store()
    server = PackingListHTTPServer((host, port), PackingListHandler)
    logger.info("Saved packing lists stored at %s", store.path)
    print(f"Packing list API server listening on http://{host}:{port}")
    server.serve_forever()
