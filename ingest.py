# ingest.py
"""
Collection layer for the resource collector.

Design goals:
- NEVER abort a run because one (resource, region) fetch fails: record it & continue.
- One attempt per fetch, bounded by a timeout and a response size cap.
- Normalize World Bank points into CollectedValue records.
- Deterministic order: resources in catalog order, regions in list order.

Current source:
- World Bank Indicators API v2 (JSON)
"""

from __future__ import annotations

import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import requests

from catalog import CATALOG, REGIONS, resolve_targets
from config import (
    COLLECTOR_MAX_WORKERS,
    DEFAULT_DATE_RANGE,
    DEFAULT_HEADERS,
    MAX_RESPONSE_BYTES,
    REQUEST_TIMEOUT,
    SOURCE_LABEL,
    WORLDBANK_BASE_URL,
    WORLDBANK_PER_PAGE,
)
from errors import FetchError, ParseError, ProtocolError, TransportError
from models import CollectedValue, DataPoint, Region, ResourceDefinition, Run, nowz
from store import RunHistory

logger = logging.getLogger(__name__)


# ----------------------------
# HTTP helper
# ----------------------------

def read_capped(response: requests.Response, limit: int) -> bytes:
    """Read at most `limit` bytes of a streamed response body."""
    buf = bytearray()
    for chunk in response.iter_content(chunk_size=16 * 1024):
        if not chunk:
            continue
        buf.extend(chunk[: limit - len(buf)])
        if len(buf) >= limit:
            break
    return bytes(buf)


def _to_year(raw: Any) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        try:
            return int(raw.strip())
        except ValueError:
            return None
    return None


def parse_points(body: bytes) -> List[DataPoint]:
    """
    Parse a World Bank response body into points, newest year first.

    The API answers with a two element array `[metadata, entries]`.
    Entries without a value, or whose date is not a plain year
    (e.g. "2021Q3"), are skipped.
    """
    try:
        raw = json.loads(body)
    except (ValueError, RecursionError) as e:
        raise ParseError(f"json: {e}") from e

    if not isinstance(raw, list):
        # error payloads come back as [{"message": [...]}] or a bare object
        raise ParseError("unexpected response envelope")
    if len(raw) < 2:
        raise ParseError("no data")

    entries = raw[1]
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ParseError("parse entries: not a list")

    points: List[DataPoint] = []
    for e in entries:
        if not isinstance(e, dict):
            raise ParseError("parse entries: entry is not an object")
        value = e.get("value")
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ParseError(f"parse entries: non-numeric value {value!r}")
        year = _to_year(e.get("date"))
        if not year:
            continue
        points.append(DataPoint(year=year, value=float(value)))

    points.sort(key=lambda p: p.year, reverse=True)
    return points


# ----------------------------
# World Bank client
# ----------------------------

class WorldBankClient:
    """Fetches one indicator series for one country from the World Bank API."""

    def __init__(
        self,
        base_url: str = WORLDBANK_BASE_URL,
        *,
        timeout: float = REQUEST_TIMEOUT,
        max_bytes: int = MAX_RESPONSE_BYTES,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.session = session or requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)

    @staticmethod
    def date_range(year: Optional[int] = None) -> str:
        if year:
            return f"{year}:{year}"
        return DEFAULT_DATE_RANGE

    def fetch(self, indicator: str, region_code: str, year: Optional[int] = None) -> List[DataPoint]:
        url = f"{self.base_url}/country/{region_code.lower()}/indicator/{indicator}"
        params = {
            "date": self.date_range(year),
            "format": "json",
            "per_page": WORLDBANK_PER_PAGE,
        }

        try:
            r = self.session.get(url, params=params, timeout=self.timeout, stream=True)
        except requests.RequestException as e:
            raise TransportError(f"http: {e}") from e

        try:
            if not 200 <= r.status_code <= 299:
                raise ProtocolError(r.status_code)
            body = read_capped(r, self.max_bytes)
        except requests.RequestException as e:
            raise TransportError(f"http: {e}") from e
        finally:
            r.close()

        return parse_points(body)


# ----------------------------
# Collector (master run)
# ----------------------------

class Collector:
    """
    Runs the resources x regions scan and records the result.

    Each call owns its run until the single `history.append` at the end,
    so concurrent calls only meet at the history lock.
    """

    def __init__(
        self,
        client: WorldBankClient,
        history: RunHistory,
        *,
        catalog: Sequence[ResourceDefinition] = CATALOG,
        regions: Sequence[Region] = REGIONS,
        max_workers: int = COLLECTOR_MAX_WORKERS,
    ) -> None:
        self.client = client
        self.history = history
        self.catalog = tuple(catalog)
        self.regions = tuple(regions)
        self.max_workers = max(1, max_workers)

    def _fetch_pair(
        self, res: ResourceDefinition, reg: Region, year: Optional[int]
    ) -> Tuple[Optional[List[DataPoint]], Optional[str]]:
        t0 = time.time()
        try:
            points = self.client.fetch(res.indicator, reg.code, year)
        except FetchError as e:
            logger.warning("fetch %s/%s failed: %s", res.id, reg.code, e)
            return None, f"{res.id}/{reg.code}: {e}"
        logger.debug(
            "fetch %s/%s ok: %d points in %d ms",
            res.id, reg.code, len(points), int((time.time() - t0) * 1000),
        )
        return points, None

    def _scan_regions(self, res: ResourceDefinition, year: Optional[int], pool: Optional[ThreadPoolExecutor]):
        if pool is None:
            return [self._fetch_pair(res, reg, year) for reg in self.regions]
        # map() yields in submission order, i.e. region list order
        return list(pool.map(lambda reg: self._fetch_pair(res, reg, year), self.regions))

    def run(self, resource_ids: Optional[Iterable[str]] = None, year: Optional[int] = None) -> Run:
        t0 = time.time()
        run_id = f"run-{time.time_ns()}"
        # every value of a run carries the run's start time as fetched_at
        started_at = nowz()

        targets = resolve_targets(resource_ids, self.catalog)
        logger.info(
            "collection %s started: %d resources x %d regions (year=%s)",
            run_id, len(targets), len(self.regions), year or DEFAULT_DATE_RANGE,
        )

        values: List[CollectedValue] = []
        errors: List[str] = []

        pool = ThreadPoolExecutor(max_workers=self.max_workers) if self.max_workers > 1 else None
        try:
            for res in targets:
                outcomes = self._scan_regions(res, year, pool)
                for reg, (points, err) in zip(self.regions, outcomes):
                    if err is not None:
                        errors.append(err)
                        continue
                    for p in points or []:
                        values.append(CollectedValue(
                            resource_id=res.id,
                            region=reg.code,
                            region_name=reg.name,
                            year=p.year,
                            value=p.value,
                            unit=res.unit,
                            source=SOURCE_LABEL,
                            fetched_at=started_at,
                        ))
        finally:
            if pool is not None:
                pool.shutdown(wait=True)

        run = Run(
            id=run_id,
            started_at=started_at,
            finished_at=nowz(),
            resources_requested=len(targets),
            errors=tuple(errors),
            values=tuple(values),
        )
        self.history.append(run)

        logger.info(
            "collection %s %s: %d values, %d errors in %d ms",
            run.id, run.status.value, run.values_collected, len(run.errors),
            int((time.time() - t0) * 1000),
        )
        return run
