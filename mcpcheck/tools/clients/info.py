from mcp.types import Implementation

from ... import __version__


def client_info(client_name: str) -> Implementation:
    return Implementation(name=client_name, version=__version__)
