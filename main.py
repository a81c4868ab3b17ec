import json
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from config import LOG_LEVEL, SERVICE_NAME
from errors import INVALID_REQUEST, METHOD_NOT_FOUND, PARSE_ERROR, TOOL_ERROR, CollectorError
from export import Publisher
from ingest import Collector, WorldBankClient
from store import RunHistory
from tools import ToolDispatcher

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def build_dispatcher() -> ToolDispatcher:
    history = RunHistory()
    collector = Collector(WorldBankClient(), history)
    return ToolDispatcher(collector, history, Publisher())


def _rpc_error(req_id: Any, code: int, message: str, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"jsonrpc": "2.0", "id": req_id, "error": {"code": code, "message": message}},
    )


def _rpc_result(req_id: Any, result: Any) -> JSONResponse:
    return JSONResponse(content={"jsonrpc": "2.0", "id": req_id, "result": result})


def create_app(dispatcher: Optional[ToolDispatcher] = None) -> FastAPI:
    dispatcher = dispatcher or build_dispatcher()

    app = FastAPI(title="Resource Collector API")
    app.state.dispatcher = dispatcher

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def root():
        return {"service": SERVICE_NAME, "mcp": "/api/mcp", "health": "/health"}

    @app.get("/health")
    @app.get("/healthz")
    @app.get("/readyz")
    def health():
        return {"status": "ok", "service": SERVICE_NAME}

    @app.post("/scheduler/trigger")
    def scheduler_trigger():
        # runs synchronously in FastAPI's worker threadpool
        run = dispatcher.collector.run()
        return {"status": "triggered", "run_id": run.id, "collected": run.values_collected}

    @app.post("/api/mcp")
    async def mcp(request: Request):
        body = await request.body()
        try:
            req = json.loads(body)
        except (ValueError, RecursionError):
            return _rpc_error(None, PARSE_ERROR, "parse error", status_code=400)

        if not isinstance(req, dict):
            return _rpc_error(None, INVALID_REQUEST, "invalid request", status_code=400)
        req_id = req.get("id")
        params = req.get("params")
        if params is None:
            params = {}
        if req.get("jsonrpc") != "2.0" or not isinstance(params, dict):
            return _rpc_error(req_id, INVALID_REQUEST, "invalid request", status_code=400)

        method = req.get("method")
        if method == "tools/list":
            return _rpc_result(req_id, {"tools": dispatcher.list_tools()})
        if method != "tools/call":
            return _rpc_error(req_id, METHOD_NOT_FOUND, "method not found", status_code=400)

        name = params.get("name")
        arguments = params.get("arguments")
        try:
            result = await run_in_threadpool(dispatcher.call, name if isinstance(name, str) else "", arguments)
        except CollectorError as e:
            logger.info("tool %s failed: %s", name, e)
            return _rpc_error(req_id, e.code, str(e))
        except Exception as e:
            logger.exception("tool %s crashed", name)
            return _rpc_error(req_id, TOOL_ERROR, str(e))
        return _rpc_result(req_id, result)

    return app


app = create_app()
