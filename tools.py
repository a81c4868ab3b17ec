"""
Tool dispatch for the JSON-RPC boundary.

Each capability declares a pydantic input model. Arguments are validated
once here (strict types, no silent coercion) before reaching the collector,
history or exporters; the advertised `inputSchema` is generated from the
same model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated, Any, Callable, Dict, List, Optional, Type

import pydantic
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from config import STATUS_LIMIT
from errors import EmptyStateError, UnknownCapabilityError, ValidationError
from export import Publisher, export_jsonld
from ingest import Collector
from store import RunHistory

logger = logging.getLogger(__name__)


# ----------------------------
# Input models
# ----------------------------

class ToolInput(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore")


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


# "" and "   " count as not given
OptionalText = Annotated[Optional[str], BeforeValidator(_blank_to_none)]


class RunInput(ToolInput):
    resource_ids: Optional[List[str]] = Field(
        None, description="Optional filter: only collect these resource IDs"
    )
    year: Optional[int] = Field(None, ge=1, description="Target year (default: latest available)")

    @field_validator("resource_ids")
    @classmethod
    def clean_ids(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return None
        ids = [s.strip() for s in v if s.strip()]
        # an empty filter means "everything"
        return ids or None


class EmptyInput(ToolInput):
    pass


class GetCollectedInput(ToolInput):
    resource_id: OptionalText = None
    run_id: OptionalText = None


class ExportInput(ToolInput):
    resource_id: OptionalText = None


class PublishInput(ToolInput):
    target_mcp_url: OptionalText = Field(
        None, description="MCP endpoint to publish to (default: global-mcp-component)"
    )


# ----------------------------
# Registry
# ----------------------------

@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_model: Type[ToolInput]
    handler: str

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_model.model_json_schema(),
        }


_TOOLS: Dict[str, ToolSpec] = {}


def tool(name: str, desc: str, input_model: Type[ToolInput]) -> Callable:
    def deco(fn: Callable) -> Callable:
        _TOOLS[name] = ToolSpec(name=name, description=desc, input_model=input_model, handler=fn.__name__)
        return fn
    return deco


def _format_validation(name: str, exc: pydantic.ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "arguments"
        parts.append(f"{loc}: {err.get('msg')}")
    return f"invalid arguments for {name}: " + "; ".join(parts)


class ToolDispatcher:
    def __init__(self, collector: Collector, history: RunHistory, publisher: Publisher) -> None:
        self.collector = collector
        self.history = history
        self.publisher = publisher

    def list_tools(self) -> List[Dict[str, Any]]:
        return [spec.describe() for spec in _TOOLS.values()]

    def call(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        spec = _TOOLS.get(name)
        if spec is None:
            raise UnknownCapabilityError(name)
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ValidationError(f"invalid arguments for {name}: expected an object")

        try:
            inp = spec.input_model.model_validate(arguments)
        except pydantic.ValidationError as e:
            raise ValidationError(_format_validation(name, e)) from e

        logger.info("tool call %s", name)
        return getattr(self, spec.handler)(inp)

    # ------------------------------------------------------------------
    # Tools

    @tool(
        "collector.run",
        "Trigger a resource collection run. Fetches data from World Bank API for all cataloged resources and regions.",
        RunInput,
    )
    def _run(self, inp: RunInput) -> Dict[str, Any]:
        run = self.collector.run(resource_ids=inp.resource_ids, year=inp.year)
        return {"run": run.to_dict()}

    @tool("collector.status", "Get the status of recent collection runs.", EmptyInput)
    def _status(self, inp: EmptyInput) -> Dict[str, Any]:
        summaries = [r.summary() for r in self.history.recent(STATUS_LIMIT)]
        return {"runs": summaries, "count": len(summaries)}

    @tool("collector.list_catalog", "List all resource definitions in the collection catalog.", EmptyInput)
    def _list_catalog(self, inp: EmptyInput) -> Dict[str, Any]:
        resources = [r.to_dict() for r in self.collector.catalog]
        return {"resources": resources, "count": len(resources)}

    @tool(
        "collector.get_collected",
        "Get collected values from the latest run, optionally filtered by resource_id.",
        GetCollectedInput,
    )
    def _get_collected(self, inp: GetCollectedInput) -> Dict[str, Any]:
        run = self.history.find(inp.run_id) if inp.run_id else self.history.latest()
        if run is None:
            raise EmptyStateError("no collection runs found")
        values = [v.to_dict() for v in run.values if not inp.resource_id or v.resource_id == inp.resource_id]
        return {"run_id": run.id, "values": values, "count": len(values)}

    @tool(
        "collector.export_jsonld",
        "Export collected data as JSON-LD for publishing to the resources repository.",
        ExportInput,
    )
    def _export_jsonld(self, inp: ExportInput) -> Dict[str, Any]:
        return export_jsonld(self.history, inp.resource_id)

    @tool(
        "collector.publish",
        "Publish collected resources to the global MCP component by calling its tools/call endpoint.",
        PublishInput,
    )
    def _publish(self, inp: PublishInput) -> Dict[str, Any]:
        return self.publisher.publish(self.history, inp.target_mcp_url)
