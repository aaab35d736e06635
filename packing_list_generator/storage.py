"""Saved packing lists kept in a JSON file.

The file holds a JSON array of serialized packing lists, each carrying two
bookkeeping keys: ``_selectedItems`` (invoice line indices that were packed)
and ``_savedAt`` (ISO timestamp of the save). A record is matched for update
by packing-list number or invoice number. Saves are last-write-wins by
``_savedAt``: a save older than the stored record is refused.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from dateutil import parser as dateutil_parser

from .models import PackingList

logger = logging.getLogger(__name__)

SELECTED_ITEMS_KEY = "_selectedItems"
SAVED_AT_KEY = "_savedAt"


class StorageError(RuntimeError):
    """Raised when the saved-list file cannot be read or written."""


class StaleWriteError(StorageError):
    """Raised when a save is older than the record it would replace."""

    def __init__(self, stored_at: str, attempted_at: str) -> None:
        super().__init__(
            f"Saved packing list was updated at {stored_at}; refusing older write from {attempted_at}."
        )
        self.stored_at = stored_at
        self.attempted_at = attempted_at


@dataclass(frozen=True)
class SaveResult:
    status: str  # "created" or "updated"
    record: Dict[str, Any]

    @property
    def created(self) -> bool:
        return self.status == "created"


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _parse_timestamp(raw: Any) -> Optional[dt.datetime]:
    if not raw:
        return None
    try:
        parsed = dateutil_parser.isoparse(str(raw))
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


def _matches(record: Dict[str, Any], packing_list_number: str, invoice_number: str) -> bool:
    if packing_list_number and record.get("packingListNumber") == packing_list_number:
        return True
    return bool(invoice_number) and record.get("invoiceNumber") == invoice_number


class PackingListStore:
    def __init__(self, path: str) -> None:
        self.path = path
        self._lock = threading.Lock()

    def _read(self) -> List[Dict[str, Any]]:
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except FileNotFoundError:
            return []
        except json.JSONDecodeError as exc:
            raise StorageError(f"Saved packing lists at {self.path} are not valid JSON: {exc.msg}") from exc
        except OSError as exc:
            raise StorageError(f"Cannot read saved packing lists at {self.path}: {exc}") from exc

        if not isinstance(data, list):
            raise StorageError(f"Saved packing lists at {self.path} must be a JSON array.")
        for position, record in enumerate(data):
            if not isinstance(record, dict):
                raise StorageError(f"Saved packing list #{position} at {self.path} is not a JSON object.")
        return data

    def _write(self, records: List[Dict[str, Any]]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".packing-lists-", suffix=".json", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(records, handle, ensure_ascii=False, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as exc:
            raise StorageError(f"Cannot write saved packing lists to {self.path}: {exc}") from exc

    def load_all(self) -> List[Dict[str, Any]]:
        with self._lock:
            return self._read()

    def find(
        self,
        invoice_number: Optional[str] = None,
        packing_list_number: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        for record in self.load_all():
            if _matches(record, packing_list_number or "", invoice_number or ""):
                return record
        return None

    def save(
        self,
        packing_list: PackingList,
        selected_items: Iterable[Any],
        saved_at: Optional[dt.datetime] = None,
    ) -> SaveResult:
        saved_at = saved_at or _utcnow()
        if saved_at.tzinfo is None:
            saved_at = saved_at.replace(tzinfo=dt.timezone.utc)

        record = packing_list.to_dict()
        record[SELECTED_ITEMS_KEY] = [str(index) for index in selected_items]
        record[SAVED_AT_KEY] = saved_at.isoformat()

        with self._lock:
            records = self._read()
            for position, existing in enumerate(records):
                if not _matches(existing, packing_list.packing_list_number, packing_list.invoice_number):
                    continue
                stored_at = _parse_timestamp(existing.get(SAVED_AT_KEY))
                if stored_at is not None and saved_at < stored_at:
                    raise StaleWriteError(existing[SAVED_AT_KEY], record[SAVED_AT_KEY])
                records[position] = record
                self._write(records)
                logger.info("Updated saved packing list %s", packing_list.packing_list_number)
                return SaveResult(status="updated", record=record)

            records.append(record)
            self._write(records)
        logger.info("Saved new packing list %s", packing_list.packing_list_number)
        return SaveResult(status="created", record=record)

    def delete(self, packing_list_number: str) -> bool:
        with self._lock:
            records = self._read()
            kept = [r for r in records if r.get("packingListNumber") != packing_list_number]
            if len(kept) == len(records):
                return False
            self._write(kept)
        logger.info("Deleted saved packing list %s", packing_list_number)
        return True
