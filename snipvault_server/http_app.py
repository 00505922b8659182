# snipvault_server/http_app.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional
from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from snipvault.config import Settings
from snipvault.di import Container, build_container
from snipvault.errors import AccessDenied, ContentTooLarge, RateLimited, StorageIOError
from snipvault.logging import configure_logging, redact_str

from snipvault_server.registry import (
    RequestGate, build_tool_registry, list_tools_payload, dispatch_tool_call,
)

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2025-03-26"  # aligns with current spec draft dates
SERVER_VERSION = "0.1.0"

# JSON-RPC error codes; -32000..-32099 are reserved for server-defined errors
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
ACCESS_DENIED = -32001
CONTENT_TOO_LARGE = -32002
RATE_LIMITED = -32003

# ---------- Security: Origin validation & Bearer token ----------

def _origin_allowed(settings: Settings, req: Request) -> bool:
    origin = req.headers.get("origin")
    if not origin:
        return settings.MCP_HTTP_ALLOW_NO_ORIGIN
    allowed = {o.strip().lower() for o in settings.MCP_HTTP_ALLOWED_ORIGINS.split(",") if o.strip()}
    return origin.lower() in allowed

def _require_auth(settings: Settings, req: Request):
    auth = req.headers.get("authorization", "")
    if not auth.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing Bearer token")
    token = auth.split(" ", 1)[1]
    if token != settings.MCP_HTTP_BEARER_TOKEN:
        raise HTTPException(status_code=401, detail="Invalid Bearer token")


def _jsonrpc_error(id_: Any, code: int, message: str, data: Any | None = None) -> JSONResponse:
    body: Dict[str, Any] = {"jsonrpc": "2.0", "id": id_, "error": {"code": code, "message": message}}
    if data is not None:
        body["error"]["data"] = data
    return JSONResponse(body)

def _jsonrpc_result(id_: Any, result: Any) -> JSONResponse:
    return JSONResponse({"jsonrpc": "2.0", "id": id_, "result": result})


def _caller_identity(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def create_http_app(container: Optional[Container] = None) -> FastAPI:
    container = container or build_container()
    settings = container.settings
    registry = build_tool_registry(container)
    gate = RequestGate(container)
    data_root = container.guard.root

    app = FastAPI(title="SnipVault MCP HTTP Server", version=SERVER_VERSION)

    @app.middleware("http")
    async def origin_validation_mw(request: Request, call_next):
        # MCP spec requires Origin validation to prevent DNS rebinding
        # If provided and not allowed → 403
        if not _origin_allowed(settings, request):
            return JSONResponse({"error": {"code": 403, "message": "Forbidden origin"}}, status_code=403)
        return await call_next(request)

    # ---------- MCP JSON-RPC endpoint (Streamable HTTP) ----------

    @app.post(settings.MCP_HTTP_PATH)
    async def mcp_endpoint(request: Request):
        _require_auth(settings, request)

        try:
            payload = await request.json()
        except ValueError:
            return _jsonrpc_error(None, PARSE_ERROR, "Parse error")
        if not isinstance(payload, dict):
            return _jsonrpc_error(None, INVALID_REQUEST, "Invalid Request")

        id_ = payload.get("id")
        method = payload.get("method")
        params = payload.get("params") or {}
        if not isinstance(params, dict):
            return _jsonrpc_error(id_, INVALID_PARAMS, "Invalid params")

        if method == "initialize":
            return _jsonrpc_result(id_, {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {"listChanged": True}},
                "serverInfo": {"name": "snipvault-http", "version": SERVER_VERSION},
            })

        if method == "tools/list":
            return _jsonrpc_result(id_, list_tools_payload(registry))

        if method == "tools/call":
            name = params.get("name")
            args = params.get("arguments", {})
            try:
                result = await run_in_threadpool(
                    dispatch_tool_call, registry, name, args,
                    gate=gate, caller=_caller_identity(request), data_root=data_root,
                )
            except KeyError as ke:
                return _jsonrpc_error(id_, METHOD_NOT_FOUND, str(ke.args[0]) if ke.args else str(ke))
            except ValidationError as ve:
                return _jsonrpc_error(id_, INVALID_PARAMS, "Invalid params",
                                      json.loads(ve.json(include_url=False)))
            except RateLimited as e:
                return _jsonrpc_error(id_, RATE_LIMITED, str(e))
            except AccessDenied as e:
                return _jsonrpc_error(id_, ACCESS_DENIED, str(e))
            except ContentTooLarge as e:
                return _jsonrpc_error(id_, CONTENT_TOO_LARGE, str(e))
            except StorageIOError as e:
                return _jsonrpc_error(id_, INTERNAL_ERROR, "Storage error", redact_str(str(e), data_root))
            except Exception as e:
                logger.exception("tool %s failed", name)
                return _jsonrpc_error(id_, INTERNAL_ERROR, "Internal error", redact_str(str(e), data_root))

            content_block = (
                {"type": "json", "json": result}
                if result is None or isinstance(result, (dict, list, bool))
                else {"type": "text", "text": str(result)}
            )
            return _jsonrpc_result(id_, {"content": [content_block], "isError": False})

        return _jsonrpc_error(id_, METHOD_NOT_FOUND, f"Method not found: {method}")

    return app


def main():
    import uvicorn

    settings = Settings()
    configure_logging(settings.LOG_LEVEL)
    if not settings.MCP_HTTP_ENABLED:
        logger.warning("HTTP transport disabled (MCP_HTTP_ENABLED=false); not starting")
        return
    uvicorn.run(
        "snipvault_server.http_app:create_http_app",
        factory=True,
        host=settings.MCP_HTTP_HOST,
        port=settings.MCP_HTTP_PORT,
        reload=False,
    )


if __name__ == "__main__":
    main()
