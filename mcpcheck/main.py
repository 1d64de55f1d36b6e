import logging
import os
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from . import __version__
from .schemas import MCPCheckResponse, ToolActiveUpdate
from .service import ToolService
from .tools import AggregatedResult, InputFormatError

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

service = ToolService()


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncGenerator[None, None]:
    await service.load_tools()
    logger.info("Tool registry loaded: %s", service.registry.summary())
    try:
        yield
    finally:
        await service.close()


app = FastAPI(title="mcpcheck", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def _servers_from_body(body: Any) -> Dict[str, Any]:
    servers = body.get("mcpServers") if isinstance(body, dict) else None
    if not isinstance(servers, dict):
        raise InputFormatError("Invalid MCP servers configuration")
    return servers


def _check_response(result: AggregatedResult | None) -> MCPCheckResponse:
    if result is None:
        return MCPCheckResponse()
    return MCPCheckResponse(**result.as_check_response())


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.post("/api/mcp-check", response_model=MCPCheckResponse)
async def mcp_check(request: Request) -> MCPCheckResponse:
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid MCP servers configuration")

    try:
        result = await service.manager.check_all(_servers_from_body(body))
    except InputFormatError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception:
        logger.exception("Error checking MCP servers")
        raise HTTPException(status_code=500, detail="Failed to check MCP servers")
    return _check_response(result)


@app.get("/api/servers", response_model=MCPCheckResponse)
async def list_servers() -> MCPCheckResponse:
    return _check_response(service.last_result)


@app.post("/api/mcp-config/reload", response_model=MCPCheckResponse)
async def reload_config() -> MCPCheckResponse:
    try:
        result = await service.reload()
    except Exception:
        logger.exception("Error reloading MCP server config")
        raise HTTPException(status_code=500, detail="Failed to reload MCP servers")
    return _check_response(result)


@app.get("/api/tools")
async def list_tools(format: str = "summary") -> List[dict]:
    if format == "responses":
        return service.registry.list_for_responses()
    if format != "summary":
        raise HTTPException(status_code=400, detail="Unknown tool list format")
    return service.registry.summary()


@app.post("/api/tools/{name}/active")
async def set_tool_active(name: str, payload: ToolActiveUpdate) -> JSONResponse:
    try:
        service.registry.set_active(name, payload.active)
    except KeyError:
        raise HTTPException(status_code=404, detail="Tool not found")
    return JSONResponse({"name": name, "active": payload.active})


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


# Convenience for local dev server: uvicorn mcpcheck.main:app --reload
def run() -> None:
    uvicorn.run(
        "mcpcheck.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=_env_flag("RELOAD"),
    )


if __name__ == "__main__":
    run()
