"""Test doubles shared by the test modules."""

from typing import Callable, List, Optional, Tuple

from errors import FetchError, TransportError
from models import CollectedValue, DataPoint, Region, ResourceDefinition, Run

R1 = ResourceDefinition("r1", "Resource One", "energy", "tonnes", "first", "https://example.test/", "IND.ONE")
R2 = ResourceDefinition("r2", "Resource Two", "mineral", "kg", "second", "https://example.test/", "IND.TWO")
R3 = ResourceDefinition("r3", "Resource Three", "food", "bushels", "third", "https://example.test/", "IND.THREE")

REGION_A = Region("AAA", "Region A")
REGION_B = Region("BBB", "Region B")


class FakeClient:
    """Stands in for WorldBankClient; records every call."""

    def __init__(self, respond: Callable[[str, str, Optional[int]], List[DataPoint]]):
        self.respond = respond
        self.calls: List[Tuple[str, str, Optional[int]]] = []

    def fetch(self, indicator: str, region_code: str, year: Optional[int] = None) -> List[DataPoint]:
        self.calls.append((indicator, region_code, year))
        return self.respond(indicator, region_code, year)


def one_point(indicator, region_code, year):
    return [DataPoint(year=year or 2022, value=1.5)]


def always_fail(indicator, region_code, year):
    raise TransportError("http: connection refused")


def fail_for(indicator_to_fail: str, error: FetchError = None):
    def respond(indicator, region_code, year):
        if indicator == indicator_to_fail:
            raise error or TransportError("http: timeout")
        return [DataPoint(year=2022, value=2.0)]
    return respond


def make_run(run_id: str = "run-1", values=(), errors=(), finished_at: str = "2024-01-01T00:00:05Z") -> Run:
    return Run(
        id=run_id,
        started_at="2024-01-01T00:00:00Z",
        finished_at=finished_at,
        resources_requested=1,
        errors=tuple(errors),
        values=tuple(values),
    )


def make_value(resource_id: str = "copper", region: str = "CHL", region_name: str = "Chile", year: int = 2022,
               value: float = 5.6) -> CollectedValue:
    return CollectedValue(
        resource_id=resource_id,
        region=region,
        region_name=region_name,
        year=year,
        value=value,
        unit="million tonnes",
        source="World Bank API",
        fetched_at="2024-01-01T00:00:00Z",
    )
