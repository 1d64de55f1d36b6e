import logging
from typing import Optional

from fastmcp import Client
from fastmcp.client.transports import SSETransport

from ..config import ServerKind, SSEServerSpec
from ..errors import ServerConnectionError, error_to_string
from .base import MCPConnection
from .info import client_info

logger = logging.getLogger(__name__)


async def connect_sse(
    spec: SSEServerSpec,
    *,
    timeout: Optional[float] = None,
    client_name: str = "mcpcheck",
) -> MCPConnection:
    """Open the event stream and complete the MCP handshake over it."""
    logger.debug("Creating SSE MCP client for %s with URL: %s", spec.name, spec.url)

    try:
        transport = SSETransport(url=spec.url)
        client = Client(transport, name=f"{client_name}-sse", client_info=client_info(client_name))
    except Exception as exc:
        raise ServerConnectionError(f'Failed to connect to SSE endpoint "{spec.url}": {error_to_string(exc)}') from exc

    connection = MCPConnection(spec.name, ServerKind.SSE, client)
    try:
        await connection.open(timeout)
    except Exception as exc:
        raise ServerConnectionError(f'Failed to connect to SSE endpoint "{spec.url}": {error_to_string(exc)}') from exc
    return connection
