from typing import Awaitable, Callable, Dict, Mapping, Optional

from ..config import ServerKind, ServerSpec
from ..errors import ServerConnectionError
from .base import MCPConnection
from .sse import connect_sse
from .stdio import connect_stdio

# connector(spec, *, timeout, client_name) -> open MCPConnection
Connector = Callable[..., Awaitable[MCPConnection]]

CONNECTORS: Dict[ServerKind, Connector] = {
    ServerKind.STDIO: connect_stdio,
    ServerKind.SSE: connect_sse,
}


async def connect(
    spec: ServerSpec,
    *,
    timeout: Optional[float] = None,
    client_name: str = "mcpcheck",
    connectors: Optional[Mapping[ServerKind, Connector]] = None,
) -> MCPConnection:
    connector = (CONNECTORS if connectors is None else connectors).get(spec.kind)
    if connector is None:
        raise ServerConnectionError(f"No transport available for {spec.kind.value} server \"{spec.name}\"")
    return await connector(spec, timeout=timeout, client_name=client_name)


__all__ = [
    "CONNECTORS",
    "Connector",
    "MCPConnection",
    "connect",
    "connect_sse",
    "connect_stdio",
]
