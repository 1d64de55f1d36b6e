"""Small stdio MCP server for trying out /api/mcp-check locally.

Run directly (`python examples/time_server.py`) or point a server config at it:
    {"command": "python", "args": ["examples/time_server.py"]}
"""
import os
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastmcp import FastMCP

mcp = FastMCP(os.getenv("TIME_SERVER_NAME", "mcpcheck-time"))


@mcp.tool()
def current_time(timezone_name: str | None = None) -> str:
    """Return the current time in ISO-8601 format for an IANA timezone. Defaults to UTC."""
    try:
        tz = ZoneInfo(timezone_name) if timezone_name else timezone.utc
    except ZoneInfoNotFoundError:
        return f"Unknown timezone '{timezone_name}'."
    return datetime.now(tz).isoformat()


@mcp.tool()
def echo(text: str) -> str:
    """Return the given text unchanged."""
    return text


if __name__ == "__main__":
    mcp.run()
