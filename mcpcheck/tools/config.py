import enum
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from ..common.config import project_path
from ..schemas import ServerConfig
from .errors import InvalidSpecError


class ServerKind(str, enum.Enum):
    STDIO = "stdio"
    SSE = "sse"


@dataclass(frozen=True)
class StdioServerSpec:
    name: str
    command: str
    args: Tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    cwd: Optional[str] = None

    @property
    def kind(self) -> ServerKind:
        return ServerKind.STDIO


@dataclass(frozen=True)
class SSEServerSpec:
    name: str
    url: str

    @property
    def kind(self) -> ServerKind:
        return ServerKind.SSE


ServerSpec = Union[StdioServerSpec, SSEServerSpec]


def _is_sse(config: ServerConfig) -> bool:
    return config.type == "sse" or (not config.command and bool(config.url))


def parse_server_spec(name: str, raw: Any) -> ServerSpec:
    """Validate one raw server config into a tagged spec.

    Raises InvalidSpecError for anything that cannot be connected to:
    a non-object entry, wrongly typed fields, an SSE server without a URL
    or a stdio server without a command.
    """
    if not isinstance(raw, Mapping):
        raise InvalidSpecError(f'Invalid configuration for server "{name}"')

    try:
        config = ServerConfig.model_validate(dict(raw))
    except ValidationError as exc:
        fields = ", ".join(".".join(str(part) for part in err["loc"]) for err in exc.errors())
        raise InvalidSpecError(f'Invalid configuration for server "{name}": bad field(s) {fields}') from exc

    if _is_sse(config):
        if not config.url or not config.url.strip():
            raise InvalidSpecError(f'Missing URL for SSE server "{name}"')
        return SSEServerSpec(name=name, url=config.url.strip())

    if not config.command or not config.command.strip():
        raise InvalidSpecError(f'Missing command for stdio server "{name}"')

    return StdioServerSpec(
        name=name,
        command=config.command,
        args=tuple(config.args or ()),
        env=MappingProxyType(dict(config.env or {})),
        cwd=config.cwd or None,
    )


def load_mcp_config(path: str | Path | None = None) -> Dict[str, Any]:
    """Load the `mcpServers` table from the TOML file named by MCP_CONFIG_FILE."""
    config_path = project_path(path or os.getenv("MCP_CONFIG_FILE", "config/mcp.toml"))
    if not config_path.exists():
        return {}
    data: Dict[str, Any] = tomllib.loads(config_path.read_text())
    servers = data.get("mcpServers") or {}
    if not isinstance(servers, dict):
        raise TypeError("mcpServers must be a table of server configs")
    return servers


def servers_from_config(servers: Dict[str, Any]) -> Dict[str, Any]:
    """Resolve relative `cwd` entries in a config file against the project root."""
    resolved: Dict[str, Any] = {}
    for name, server_def in servers.items():
        if not isinstance(server_def, dict):
            resolved[name] = server_def
            continue

        server_def = dict(server_def)
        cwd = server_def.get("cwd")
        if isinstance(cwd, str) and cwd:
            cwd_path = Path(cwd)
            if not cwd_path.is_absolute():
                server_def["cwd"] = str(project_path(cwd_path))
        resolved[name] = server_def

    return resolved
