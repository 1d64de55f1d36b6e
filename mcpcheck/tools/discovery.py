import logging
from typing import Any, Dict

from .clients import MCPConnection
from .errors import ProbeError, error_to_string
from .registry import ToolDescriptor

logger = logging.getLogger(__name__)


def _descriptor_from_tool(tool: Any) -> ToolDescriptor:
    name = getattr(tool, "name", None)
    if not isinstance(name, str) or not name:
        raise ProbeError(f"MCP tool missing name: {tool!r}")

    description = getattr(tool, "description", "") or ""
    # `input_schema` on current mcp releases, `inputSchema` on 1.x.
    input_schema = getattr(tool, "input_schema", None) or getattr(tool, "inputSchema", None)
    parameters = input_schema or {"type": "object", "additionalProperties": True}
    return ToolDescriptor(name=name, schema={"description": description, "parameters": parameters})


async def probe(connection: MCPConnection) -> Dict[str, ToolDescriptor]:
    """List the tools a connected server declares. One round trip, no retry."""
    try:
        tools = await connection.list_tools()
    except Exception as exc:
        raise ProbeError(error_to_string(exc)) from exc

    if not isinstance(tools, (list, tuple)):
        raise ProbeError(f"Malformed tool list: {type(tools).__name__}")

    discovered: Dict[str, ToolDescriptor] = {}
    for tool in tools:
        descriptor = _descriptor_from_tool(tool)
        if descriptor.name in discovered:
            raise ProbeError(f"Duplicate tool name: {descriptor.name}")
        discovered[descriptor.name] = descriptor

    logger.debug("Discovered %d tool(s) on %s: %s", len(discovered), connection.server_name, list(discovered))
    return discovered
