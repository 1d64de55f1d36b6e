import asyncio
import logging
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Optional

from .common.config import load_app_config
from .tools import (
    AggregatedResult,
    ConfigEvents,
    ConnectionManager,
    ToolRegistry,
    load_mcp_config,
    servers_from_config,
)

logger = logging.getLogger(__name__)


class ToolService:
    """Keeps sessions to the configured servers open and exposes their tools.

    The registry is rebuilt whenever the config listeners are notified. The
    previous sessions are closed only once the new ones are open; if the
    config cannot be read, the previous sessions and registry are kept.
    """

    def __init__(
        self,
        manager: Optional[ConnectionManager] = None,
        config_path: str | Path | None = None,
    ) -> None:
        self.manager = manager or ConnectionManager.from_config(load_app_config())
        self.registry = ToolRegistry()
        self.events = ConfigEvents()
        self.last_result: Optional[AggregatedResult] = None
        self.config_path = config_path
        self._session: Optional[AsyncExitStack] = None
        self._lock = asyncio.Lock()
        self.events.add_listener(self.load_tools)

    async def load_tools(self) -> AggregatedResult:
        async with self._lock:
            # The current sessions stay up until the new ones are open.
            servers = servers_from_config(load_mcp_config(self.config_path))

            stack = AsyncExitStack()
            result = await stack.enter_async_context(self.manager.open_all(servers))

            await self._close_session()
            self._session = stack
            self.registry = ToolRegistry.from_outcomes(result.outcomes)
            self.last_result = result
            logger.info("Tool registry loaded: %d tool(s) from %d server(s)", len(self.registry), len(result.outcomes))
            return result

    async def reload(self) -> Optional[AggregatedResult]:
        await self.events.notify_change()
        return self.last_result

    async def close(self) -> None:
        async with self._lock:
            await self._close_session()

    async def _close_session(self) -> None:
        if self._session is None:
            return
        session, self._session = self._session, None
        await session.aclose()
