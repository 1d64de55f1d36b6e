from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ServerConfig(BaseModel):
    """Raw shape of one entry under `mcpServers`."""

    command: Optional[str] = Field(None, description="Executable for a stdio server")
    args: Optional[List[str]] = Field(None, description="Arguments passed to the command")
    url: Optional[str] = Field(None, description="Endpoint of an SSE server")
    env: Optional[Dict[str, str]] = Field(None, description="Environment overlay for the command")
    type: Optional[str] = Field(None, description='Transport hint; "sse" selects the event-stream transport')
    cwd: Optional[str] = Field(None, description="Working directory for the command")


class MCPCheckResponse(BaseModel):
    serverStatus: Dict[str, bool] = Field(default_factory=dict)
    serverErrors: Dict[str, str] = Field(default_factory=dict)
    serverTools: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


class ToolActiveUpdate(BaseModel):
    active: bool
