"""
Outbound views of the latest collection run.

- JSON-LD export: schema.org `Dataset` wrapping one `Observation` per value.
- Publish relay: tells the downstream aggregation service to refresh by
  calling one of its tools over JSON-RPC.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, List, Optional

import requests

from config import (
    JSONLD_BASE_ID,
    JSONLD_CONTEXT,
    JSONLD_DATASET_NAME,
    PUBLISH_MAX_RESPONSE_BYTES,
    PUBLISH_TARGET_URL,
    PUBLISH_TOOL_NAME,
    REQUEST_TIMEOUT,
)
from errors import EmptyStateError, RemoteCallError
from ingest import read_capped
from models import CollectedValue, Run
from store import RunHistory

logger = logging.getLogger(__name__)


def _latest_or_raise(history: RunHistory) -> Run:
    run = history.latest()
    if run is None:
        raise EmptyStateError("no collection runs available; call collector.run first")
    return run


# ----------------------------
# JSON-LD
# ----------------------------

def observation(v: CollectedValue) -> Dict[str, Any]:
    return {
        "@context": JSONLD_CONTEXT,
        "@type": "Observation",
        "@id": f"{JSONLD_BASE_ID}/{v.resource_id}/{v.region.lower()}/{v.year}",
        "name": f"{v.resource_id} - {v.region_name} ({v.year})",
        "description": f"Collected value for {v.resource_id} in {v.region_name}, year {v.year}",
        "spatialCoverage": v.region_name,
        "temporalCoverage": v.year,
        "value": v.value,
        "unitCode": v.unit,
        "isBasedOn": v.source,
        "dateCreated": v.fetched_at,
    }


def export_jsonld(history: RunHistory, resource_id: Optional[str] = None) -> Dict[str, Any]:
    """Project the latest run as a JSON-LD dataset, optionally for one resource."""
    latest = _latest_or_raise(history)

    graph: List[Dict[str, Any]] = [
        observation(v)
        for v in latest.values
        if not resource_id or v.resource_id == resource_id
    ]

    return {
        "@context": JSONLD_CONTEXT,
        "@type": "Dataset",
        "@id": f"{JSONLD_BASE_ID}/collection",
        "name": JSONLD_DATASET_NAME,
        "dateCreated": latest.finished_at,
        "@graph": graph,
        "count": len(graph),
    }


# ----------------------------
# JSON-RPC client
# ----------------------------

class JsonRpcClient:
    """Minimal JSON-RPC 2.0 client for a remote tools endpoint over HTTP POST."""

    def __init__(
        self,
        *,
        timeout: float = REQUEST_TIMEOUT,
        max_bytes: int = PUBLISH_MAX_RESPONSE_BYTES,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json", "Accept": "application/json"})

    def call_tool(self, url: str, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload = {
            "jsonrpc": "2.0",
            "id": f"collector-{time.time_ns()}",
            "method": "tools/call",
            "params": {"name": name, "arguments": arguments or {}},
        }
        logger.info("Invoking remote tool '%s' at %s", name, url)

        try:
            r = self.session.post(url, json=payload, timeout=self.timeout, stream=True)
        except requests.RequestException as e:
            raise RemoteCallError(str(e)) from e

        try:
            if not 200 <= r.status_code <= 299:
                raise RemoteCallError(f"http {r.status_code}")
            body = read_capped(r, self.max_bytes)
        except requests.RequestException as e:
            raise RemoteCallError(str(e)) from e
        finally:
            r.close()

        try:
            data = json.loads(body)
        except (ValueError, RecursionError) as e:
            raise RemoteCallError(f"json: {e}") from e
        if not isinstance(data, dict):
            raise RemoteCallError("unexpected JSON-RPC response")

        error = data.get("error")
        if isinstance(error, dict):
            raise RemoteCallError(f"mcp error: {error.get('message')}", remote_code=error.get("code"))

        result = data.get("result")
        if not isinstance(result, dict):
            return data
        return result


# ----------------------------
# Publish relay
# ----------------------------

class Publisher:
    """Signals the downstream aggregation service that fresh data is available."""

    def __init__(
        self,
        rpc: Optional[JsonRpcClient] = None,
        *,
        default_target: str = PUBLISH_TARGET_URL,
        tool_name: str = PUBLISH_TOOL_NAME,
    ) -> None:
        self.rpc = rpc or JsonRpcClient()
        self.default_target = default_target
        self.tool_name = tool_name

    def publish(self, history: RunHistory, target_url: Optional[str] = None) -> Dict[str, Any]:
        latest = _latest_or_raise(history)
        if not latest.values:
            logger.info("publish skipped: run %s has no values", latest.id)
            return {"status": "skipped", "reason": "no values to publish"}

        target = target_url or self.default_target
        try:
            response = self.rpc.call_tool(target, self.tool_name, {})
        except RemoteCallError as e:
            # downstream trouble is reported in the payload, not raised
            logger.warning("publish to %s failed: %s", target, e)
            return {"status": "error", "detail": str(e)}

        logger.info("published run %s (%d values) to %s", latest.id, latest.values_collected, target)
        return {
            "status": "published",
            "values_count": latest.values_collected,
            "target_url": target,
            "target_response": response,
        }
