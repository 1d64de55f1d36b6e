import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Mapping

if TYPE_CHECKING:
    from .manager import ServerOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolDescriptor:
    """A tool as declared by its server. `schema` is passed through untouched."""

    name: str
    schema: Dict[str, Any] = field(default_factory=dict)

    @property
    def description(self) -> str:
        return str(self.schema.get("description") or "")


def aggregate_tools(outcomes: Mapping[str, "ServerOutcome"]) -> Dict[str, ToolDescriptor]:
    """Flatten per-server tool sets into one namespace.

    Servers are merged in the mapping's iteration order; on a name clash the
    later server's descriptor replaces the earlier one.
    """
    flat: Dict[str, ToolDescriptor] = {}
    owners: Dict[str, str] = {}
    for server_name, outcome in outcomes.items():
        if not outcome.reachable:
            continue
        for tool_name, descriptor in outcome.tools.items():
            if tool_name in flat:
                logger.debug("Tool %s from %s shadows the one from %s", tool_name, server_name, owners[tool_name])
            flat[tool_name] = descriptor
            owners[tool_name] = server_name
    return flat


@dataclass
class RegisteredTool:
    descriptor: ToolDescriptor
    source: str

    @property
    def name(self) -> str:
        return self.descriptor.name

    def as_response_tool(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "name": self.name,
            "description": self.descriptor.description,
            "parameters": self.descriptor.schema.get("parameters") or {"type": "object", "additionalProperties": True},
        }


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: Dict[str, RegisteredTool] = {}
        self._active: Dict[str, bool] = {}

    @classmethod
    def from_outcomes(cls, outcomes: Mapping[str, "ServerOutcome"]) -> "ToolRegistry":
        registry = cls()
        for server_name, outcome in outcomes.items():
            if not outcome.reachable:
                continue
            for descriptor in outcome.tools.values():
                registry.register(descriptor, source=f"mcp:{server_name}")
        return registry

    def register(self, descriptor: ToolDescriptor, source: str) -> None:
        self._tools[descriptor.name] = RegisteredTool(descriptor=descriptor, source=source)
        self._active[descriptor.name] = True
        logger.debug("Registered tool %s (source=%s)", descriptor.name, source)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def get(self, name: str) -> RegisteredTool:
        return self._tools[name]

    def list_for_responses(self) -> List[Dict[str, Any]]:
        return [
            tool.as_response_tool()
            for name, tool in self._tools.items()
            if self._active.get(name, True)
        ]

    def summary(self) -> List[Dict[str, str | bool]]:
        return [
            {
                "name": tool.name,
                "description": tool.descriptor.description,
                "source": tool.source,
                "active": self._active.get(tool.name, True),
            }
            for tool in self._tools.values()
        ]

    def set_active(self, name: str, active: bool) -> None:
        if name not in self._tools:
            raise KeyError(f"Tool '{name}' is not registered")
        self._active[name] = bool(active)
