import asyncio
import logging
from contextlib import asynccontextmanager, nullcontext
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Tuple

from .clients import Connector, MCPConnection, connect
from .config import ServerKind, ServerSpec, parse_server_spec
from .discovery import probe
from .errors import InputFormatError, InvalidSpecError, ProbeError, ServerConnectionError, TeardownError, error_to_string
from .registry import ToolDescriptor, aggregate_tools

logger = logging.getLogger(__name__)


@dataclass
class ServerOutcome:
    server_name: str
    reachable: bool
    error: Optional[str] = None
    tools: Dict[str, ToolDescriptor] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.reachable and (self.tools or not self.error):
            raise ValueError("An unreachable server has an error and no tools")

    @classmethod
    def unreachable(cls, server_name: str, error: str) -> "ServerOutcome":
        return cls(server_name=server_name, reachable=False, error=error or "Failed to create client")


@dataclass
class AggregatedResult:
    outcomes: Dict[str, ServerOutcome]
    tools: Dict[str, ToolDescriptor]
    # Filled in once every retained connection has been closed.
    teardown_errors: Dict[str, str] = field(default_factory=dict)

    def as_check_response(self) -> Dict[str, Any]:
        return {
            "serverStatus": {name: outcome.reachable for name, outcome in self.outcomes.items()},
            "serverErrors": {name: outcome.error for name, outcome in self.outcomes.items() if outcome.error},
            "serverTools": {
                name: {tool_name: descriptor.schema for tool_name, descriptor in outcome.tools.items()}
                for name, outcome in self.outcomes.items()
                if outcome.reachable and not outcome.error
            },
        }


class ConnectionManager:
    """Connects to a batch of MCP servers concurrently and collects their tools.

    Every server is handled by its own task. Whatever goes wrong for one server
    (bad config, failed spawn, refused connection, broken tool listing) ends up
    in that server's ServerOutcome and never affects the others. The only error
    `check_all` raises is InputFormatError, for input that is not a mapping of
    server names to configs.
    """

    def __init__(
        self,
        *,
        connectors: Optional[Mapping[ServerKind, Connector]] = None,
        connect_timeout: Optional[float] = None,
        max_concurrency: Optional[int] = None,
        client_name: str = "mcpcheck",
    ) -> None:
        if max_concurrency is not None and max_concurrency <= 0:
            raise ValueError("max_concurrency must be positive")
        self.connectors = connectors
        self.connect_timeout = connect_timeout
        self.max_concurrency = max_concurrency
        self.client_name = client_name

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "ConnectionManager":
        return cls(
            connect_timeout=config.get("connect_timeout"),
            max_concurrency=config.get("max_concurrency"),
            client_name=config.get("client_name") or "mcpcheck",
        )

    async def check_all(self, configs: Any) -> AggregatedResult:
        """Run one check cycle; all connections are closed before this returns."""
        async with self.open_all(configs) as result:
            pass
        return result

    @asynccontextmanager
    async def open_all(self, configs: Any) -> AsyncIterator[AggregatedResult]:
        """Like `check_all`, but keeps healthy connections open until the block exits."""
        specs, invalid = self._validate(configs)
        connections: List[MCPConnection] = []
        lock = asyncio.Lock()
        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        teardown_errors: Dict[str, str] = {}

        try:
            checked = await asyncio.gather(
                *(self._check_server(spec, connections, lock, semaphore) for spec in specs.values())
            )
            by_name = {outcome.server_name: outcome for outcome in checked}
            outcomes = {name: by_name.get(name) or invalid[name] for name in configs}
            result = AggregatedResult(outcomes=outcomes, tools=aggregate_tools(outcomes), teardown_errors=teardown_errors)
            logger.info(
                "MCP check complete: %d/%d server(s) reachable, %d tool(s)",
                sum(1 for outcome in outcomes.values() if outcome.reachable),
                len(outcomes),
                len(result.tools),
            )
            yield result
        finally:
            teardown_errors.update(await self.close_all(connections))

    def _validate(self, configs: Any) -> Tuple[Dict[str, ServerSpec], Dict[str, ServerOutcome]]:
        if not isinstance(configs, Mapping):
            raise InputFormatError("Invalid MCP servers configuration")

        specs: Dict[str, ServerSpec] = {}
        invalid: Dict[str, ServerOutcome] = {}
        for name, raw in configs.items():
            if not isinstance(name, str) or not name:
                raise InputFormatError(f"Invalid MCP server name: {name!r}")
            try:
                specs[name] = parse_server_spec(name, raw)
            except InvalidSpecError as exc:
                logger.error("Rejected MCP server %s: %s", name, exc)
                invalid[name] = ServerOutcome.unreachable(name, f"invalid configuration: {exc}")
        return specs, invalid

    async def _check_server(
        self,
        spec: ServerSpec,
        connections: List[MCPConnection],
        lock: asyncio.Lock,
        semaphore: Optional[asyncio.Semaphore],
    ) -> ServerOutcome:
        async with semaphore if semaphore is not None else nullcontext():
            return await self._connect_and_probe(spec, connections, lock)

    async def _connect_and_probe(
        self,
        spec: ServerSpec,
        connections: List[MCPConnection],
        lock: asyncio.Lock,
    ) -> ServerOutcome:
        try:
            connection = await connect(
                spec,
                timeout=self.connect_timeout,
                client_name=self.client_name,
                connectors=self.connectors,
            )
        except ServerConnectionError as exc:
            logger.error("Failed to check MCP server %s: %s", spec.name, exc)
            return ServerOutcome.unreachable(spec.name, error_to_string(exc))
        except Exception as exc:
            logger.exception("Unexpected error connecting to MCP server %s", spec.name)
            return ServerOutcome.unreachable(spec.name, error_to_string(exc))

        handed_off = False
        try:
            tools = await probe(connection)
            async with lock:
                connections.append(connection)
                handed_off = True
        except ProbeError as exc:
            logger.error("Failed to get tools from server %s: %s", spec.name, exc)
            return ServerOutcome(spec.name, reachable=True, error=f"Connected but failed to get tools: {exc}")
        except Exception as exc:
            logger.exception("Unexpected error probing MCP server %s", spec.name)
            return ServerOutcome(
                spec.name,
                reachable=True,
                error=f"Connected but failed to get tools: {error_to_string(exc)}",
            )
        finally:
            if not handed_off:
                await self._close_quietly(connection)

        return ServerOutcome(spec.name, reachable=True, tools=tools)

    async def close_all(self, connections: List[MCPConnection]) -> Dict[str, str]:
        """Close every connection; returns server name -> error for the ones that failed."""
        results = await asyncio.gather(*(self._close_quietly(connection) for connection in connections))
        return {
            connection.server_name: error
            for connection, error in zip(connections, results)
            if error is not None
        }

    async def _close_quietly(self, connection: MCPConnection) -> Optional[str]:
        try:
            await connection.close()
        except TeardownError as exc:
            logger.error("Error closing MCP client %s: %s", connection.server_name, exc)
            return error_to_string(exc)
        return None
