"""Connectivity and tool discovery for configured MCP servers."""

__version__ = "0.1.0"
