import logging
import os
from typing import Dict, Optional

from fastmcp import Client
from fastmcp.client.transports import StdioTransport

from ..config import ServerKind, StdioServerSpec
from ..errors import ServerConnectionError, error_to_string
from .base import MCPConnection
from .info import client_info

logger = logging.getLogger(__name__)


def _merged_env(overlay: Dict[str, str]) -> Dict[str, str]:
    env = dict(os.environ)
    env.update(overlay)
    return env


async def connect_stdio(
    spec: StdioServerSpec,
    *,
    timeout: Optional[float] = None,
    client_name: str = "mcpcheck",
) -> MCPConnection:
    """Spawn the server process and complete the MCP handshake over its stdio."""
    logger.debug("Creating stdio MCP client for '%s' with command: '%s' %s", spec.name, spec.command, " ".join(spec.args))

    try:
        # keep_alive=False: leaving the client session terminates the subprocess.
        transport = StdioTransport(
            command=spec.command,
            args=list(spec.args),
            env=_merged_env(dict(spec.env)),
            cwd=spec.cwd,
            keep_alive=False,
        )
        client = Client(transport, name=f"{client_name}-stdio", client_info=client_info(client_name))
    except Exception as exc:
        raise ServerConnectionError(f'Failed to start command "{spec.command}": {error_to_string(exc)}') from exc

    connection = MCPConnection(spec.name, ServerKind.STDIO, client)
    try:
        await connection.open(timeout)
    except Exception as exc:
        raise ServerConnectionError(f'Failed to start command "{spec.command}": {error_to_string(exc)}') from exc
    return connection
