"""Client for the packing-list render endpoint."""

from __future__ import annotations

import logging
import os
import re
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

GENERATE_PATH = "/api/packing-list/generate"
DEFAULT_BASE_URL = os.getenv("PACKING_LIST_API_URL", "http://localhost:8080")
DEFAULT_TIMEOUT = 30.0


class PackingListClientError(RuntimeError):
    """Raised when the server does not return a PDF."""


def _failure_reason(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.reason_phrase or f"HTTP {response.status_code}"


def generate_packing_list_pdf(
    data: Dict[str, Any],
    base_url: str = DEFAULT_BASE_URL,
    client: Optional[httpx.Client] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> bytes:
    """POST a serialized packing list and return the rendered PDF bytes."""
    url = base_url.rstrip("/") + GENERATE_PATH
    try:
        if client is None:
            response = httpx.post(url, json=data, timeout=timeout)
        else:
            response = client.post(url, json=data, timeout=timeout)
    except httpx.HTTPError as exc:
        logger.error("Error generating packing list PDF: %s", exc)
        raise PackingListClientError(f"Failed to generate packing list: {exc}") from exc

    if not response.is_success:
        reason = _failure_reason(response)
        logger.error("Error generating packing list PDF: %s (HTTP %d)", reason, response.status_code)
        raise PackingListClientError(f"Failed to generate packing list: {reason}")
    return response.content


def packing_list_filename(data: Dict[str, Any]) -> str:
    number = re.sub(r'[\\/"\r\n]+', "-", str(data.get("packingListNumber") or "").strip()) or "document"
    return f"packing-list-{number}.pdf"


def download_packing_list_pdf(pdf: bytes, filename: str, directory: str = ".") -> str:
    """Write ``pdf`` to ``directory/filename`` and return the path."""
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, filename)
    with open(path, "wb") as handle:
        handle.write(pdf)
    logger.info("Saved packing list PDF to %s", path)
    return path


def generate_and_download_packing_list(
    data: Dict[str, Any],
    directory: str = ".",
    base_url: str = DEFAULT_BASE_URL,
    client: Optional[httpx.Client] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> str:
    pdf = generate_packing_list_pdf(data, base_url=base_url, client=client, timeout=timeout)
    return download_packing_list_pdf(pdf, packing_list_filename(data), directory)
