"""
Runtime settings for the resource collector.

Every value has a sensible default and can be overridden from the
environment (or a local `.env` file).
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


# ----------------------------
# World Bank data source
# ----------------------------

WORLDBANK_BASE_URL = os.getenv("WORLDBANK_BASE_URL", "https://api.worldbank.org/v2").rstrip("/")

# Used when a run does not ask for a specific year.
DEFAULT_DATE_RANGE = os.getenv("WORLDBANK_DATE_RANGE", "2020:2024")

WORLDBANK_PER_PAGE = _int_env("WORLDBANK_PER_PAGE", 50)

REQUEST_TIMEOUT = _int_env("REQUEST_TIMEOUT", 30)

MAX_RESPONSE_BYTES = _int_env("MAX_RESPONSE_BYTES", 512 * 1024)

SOURCE_LABEL = "World Bank API"

DEFAULT_HEADERS = {
    "User-Agent": "ResourceCollector/1.0",
    "Accept": "application/json",
}

# ----------------------------
# Collection engine
# ----------------------------

HISTORY_CAPACITY = _int_env("HISTORY_CAPACITY", 50)

STATUS_LIMIT = _int_env("STATUS_LIMIT", 10)

# 1 keeps the scan strictly sequential.
COLLECTOR_MAX_WORKERS = _int_env("COLLECTOR_MAX_WORKERS", 1)

# ----------------------------
# Export / publish
# ----------------------------

JSONLD_CONTEXT = "https://schema.org/"

JSONLD_BASE_ID = os.getenv("JSONLD_BASE_ID", "https://resources.gftd.ai/content/resource").rstrip("/")

JSONLD_DATASET_NAME = os.getenv("JSONLD_DATASET_NAME", "GFTD Global Resource Collection")

PUBLISH_TARGET_URL = os.getenv("PUBLISH_TARGET_URL", "https://actors.gftd.ai/w5n8p3q6/api/mcp")

PUBLISH_TOOL_NAME = "global.list_resources"

PUBLISH_MAX_RESPONSE_BYTES = _int_env("PUBLISH_MAX_RESPONSE_BYTES", 1024 * 1024)

# ----------------------------
# Service
# ----------------------------

SERVICE_NAME = "resource-collector"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
