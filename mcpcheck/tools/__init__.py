"""MCP server connections, tool discovery and aggregation.

Public surface is re-exported here so callers can use
`from mcpcheck.tools import ConnectionManager, ToolRegistry`, etc.
"""

from .clients import CONNECTORS, MCPConnection, connect
from .config import (
    ServerKind,
    ServerSpec,
    SSEServerSpec,
    StdioServerSpec,
    load_mcp_config,
    parse_server_spec,
    servers_from_config,
)
from .discovery import probe
from .errors import (
    InputFormatError,
    InvalidSpecError,
    MCPCheckError,
    ProbeError,
    ServerConnectionError,
    TeardownError,
)
from .events import ConfigEvents
from .manager import AggregatedResult, ConnectionManager, ServerOutcome
from .registry import ToolDescriptor, ToolRegistry, aggregate_tools

__all__ = [
    "CONNECTORS",
    "AggregatedResult",
    "ConfigEvents",
    "ConnectionManager",
    "InputFormatError",
    "InvalidSpecError",
    "MCPCheckError",
    "MCPConnection",
    "ProbeError",
    "SSEServerSpec",
    "ServerConnectionError",
    "ServerKind",
    "ServerOutcome",
    "ServerSpec",
    "StdioServerSpec",
    "TeardownError",
    "ToolDescriptor",
    "ToolRegistry",
    "aggregate_tools",
    "connect",
    "load_mcp_config",
    "parse_server_spec",
    "probe",
    "servers_from_config",
]
