"""Runtime configuration loaded from environment variables."""

from __future__ import annotations

import os


def env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


def env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


def env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    return default


DEFAULT_MAX_CONCURRENT_RENDERS = max(2, min(16, os.cpu_count() or 2))
MAX_CONCURRENT_RENDERS = env_int(
    "PACKING_LIST_MAX_CONCURRENT_RENDERS",
    DEFAULT_MAX_CONCURRENT_RENDERS,
    minimum=1,
)
MAX_INFLIGHT_RENDERS = env_int(
    "PACKING_LIST_MAX_INFLIGHT_RENDERS",
    max(32, MAX_CONCURRENT_RENDERS * 4),
    minimum=1,
)
RENDER_QUEUE_TIMEOUT_MS = env_int("PACKING_LIST_RENDER_QUEUE_TIMEOUT_MS", 30000, minimum=0)
RENDER_TIMEOUT_MS = env_int("PACKING_LIST_RENDER_TIMEOUT_MS", 30000, minimum=1000)

MAX_BODY_BYTES = env_int("PACKING_LIST_MAX_BODY_BYTES", 32 * 1024 * 1024, minimum=1024)
MAX_PAGES = env_int("PACKING_LIST_MAX_PAGES", 500, minimum=1)
LISTEN_BACKLOG = env_int("PACKING_LIST_LISTEN_BACKLOG", 128, minimum=1)

STORAGE_PATH = os.getenv(
    "PACKING_LIST_STORAGE_PATH",
    os.path.join(os.path.expanduser("~"), ".packing-list-generator", "savedPackingLists.json"),
)

AUTO_RESIZE_ENABLED = env_bool("PACKING_LIST_AUTO_RESIZE", True)
AUTO_RESIZE_THRESHOLD_PERCENT = env_float("PACKING_LIST_AUTO_RESIZE_THRESHOLD", 5.0)
AUTO_RESIZE_MAX_PERCENT = env_float("PACKING_LIST_AUTO_RESIZE_MAX", 8.0)

LOG_LEVEL = os.getenv("PACKING_LIST_LOG_LEVEL", "INFO").upper()
