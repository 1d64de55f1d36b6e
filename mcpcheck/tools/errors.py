class MCPCheckError(Exception):
    """Base class for errors raised while checking MCP servers."""


class InvalidSpecError(MCPCheckError, ValueError):
    """A server config is missing a required field or has the wrong shape."""


class ServerConnectionError(MCPCheckError):
    """The transport could not establish a session with the server."""


class ProbeError(MCPCheckError):
    """The session is up but the tool listing failed or was malformed."""


class TeardownError(MCPCheckError):
    """Closing a connection failed. Only ever logged."""

    def __init__(self, server_name: str, message: str) -> None:
        super().__init__(message)
        self.server_name = server_name


class InputFormatError(MCPCheckError, ValueError):
    """The request as a whole could not be read as a server mapping."""


def error_to_string(error: BaseException) -> str:
    message = str(error)
    return message or type(error).__name__
