import asyncio
import logging
from contextlib import AsyncExitStack
from typing import Any, List, Optional

from ..config import ServerKind
from ..errors import TeardownError, error_to_string

logger = logging.getLogger(__name__)


class MCPConnection:
    """One live session to one MCP server.

    Wraps a FastMCP `Client` (or anything with the same async context manager,
    `list_tools` and `close` surface). The client owns the real resources: the
    spawned process and its pipes for stdio, the open event stream for SSE.
    The connection is closed at most once; further `close()` calls are no-ops.
    """

    def __init__(self, server_name: str, kind: ServerKind, client: Any) -> None:
        self.server_name = server_name
        self.kind = kind
        self.client = client
        self._stack = AsyncExitStack()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def open(self, timeout: Optional[float] = None) -> None:
        """Enter the client session; returns once the MCP handshake has completed."""
        try:
            async with asyncio.timeout(timeout):
                await self._stack.enter_async_context(self.client)
        except BaseException:
            # Covers cancellation too: a half-open session must not outlive its task.
            try:
                await self.close()
            except TeardownError:
                logger.debug("Error closing %s after failed open", self.server_name, exc_info=True)
            raise

    async def list_tools(self) -> List[Any]:
        if self._closed:
            raise RuntimeError(f"Connection to {self.server_name} is closed")
        return await self.client.list_tools()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._stack.aclose()
        except Exception as exc:
            await self._close_client()
            raise TeardownError(self.server_name, error_to_string(exc)) from exc
        await self._close_client()

    async def _close_client(self) -> None:
        try:
            await self.client.close()
        except Exception as exc:
            raise TeardownError(self.server_name, error_to_string(exc)) from exc

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<MCPConnection {self.server_name} ({self.kind.value}, {state})>"
