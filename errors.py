"""Exception taxonomy shared by the collector, exporters and tool layer."""

from __future__ import annotations

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
TOOL_ERROR = -32000


class CollectorError(RuntimeError):
    """Base class for every failure the service reports to callers."""

    code = TOOL_ERROR


# ----------------------------
# Data source fetch failures (recovered per resource/region pair)
# ----------------------------

class FetchError(CollectorError):
    """A single indicator fetch failed."""


class TransportError(FetchError):
    """Connection-level failure (DNS, refused, timeout)."""


class ProtocolError(FetchError):
    """The data source answered with a non-success HTTP status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"http {status_code}")
        self.status_code = status_code


class ParseError(FetchError):
    """The response body did not have the expected `[metadata, entries]` shape."""


# ----------------------------
# Tool-level failures
# ----------------------------

class ValidationError(CollectorError):
    """Tool arguments were missing or of the wrong type."""


class UnknownCapabilityError(ValidationError):
    def __init__(self, name: str) -> None:
        super().__init__(f"unknown tool: {name}")
        self.name = name


class EmptyStateError(CollectorError):
    """The operation needs at least one completed collection run."""


class RemoteCallError(CollectorError):
    """A JSON-RPC call to a downstream service failed."""

    def __init__(self, message: str, *, remote_code: int | None = None) -> None:
        super().__init__(message)
        self.remote_code = remote_code
