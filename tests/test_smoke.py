import asyncio

from httpx import ASGITransport, AsyncClient

from fakes import FakeClient, FakeTransport, make_tool
from mcpcheck import main
from mcpcheck.main import app
from mcpcheck.tools import ConnectionManager


def _run(coro):
    return asyncio.run(coro)


def _make_client() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


def _post(path: str, **kwargs):
    async def main_():
        async with _make_client() as client:
            return await client.post(path, **kwargs)

    return _run(main_())


def _get(path: str):
    async def main_():
        async with _make_client() as client:
            return await client.get(path)

    return _run(main_())


def _use_transport(monkeypatch, transport: FakeTransport) -> None:
    monkeypatch.setattr(main.service, "manager", ConnectionManager(connectors=transport.connectors()))


def test_health_endpoint() -> None:
    resp = _get("/health")
    assert resp.status_code == 200
    assert resp.json().get("status") == "ok"


def test_mcp_check_endpoint(monkeypatch) -> None:
    transport = FakeTransport(
        {
            "git": FakeClient([make_tool("log", description="Show the commit log")]),
            "remote": FakeClient(enter_error=ConnectionRefusedError("connection refused")),
        }
    )
    _use_transport(monkeypatch, transport)

    resp = _post(
        "/api/mcp-check",
        json={
            "mcpServers": {
                "git": {"command": "mcp-server-git"},
                "remote": {"type": "sse", "url": "http://localhost:8000/sse"},
            }
        },
    )

    assert resp.status_code == 200
    assert resp.json() == {
        "serverStatus": {"git": True, "remote": False},
        "serverErrors": {"remote": "connection refused"},
        "serverTools": {
            "git": {
                "log": {
                    "description": "Show the commit log",
                    "parameters": {"type": "object", "properties": {}},
                }
            }
        },
    }
    assert transport.clients["git"].close_count == 1


def test_mcp_check_reports_invalid_entries(monkeypatch) -> None:
    _use_transport(monkeypatch, FakeTransport({}))

    resp = _post("/api/mcp-check", json={"mcpServers": {"remote": {"type": "sse"}}})

    assert resp.status_code == 200
    data = resp.json()
    assert data["serverStatus"] == {"remote": False}
    assert data["serverErrors"]["remote"].startswith("invalid configuration")
    assert data["serverTools"] == {}


def test_mcp_check_rejects_malformed_body(monkeypatch) -> None:
    transport = FakeTransport({})
    _use_transport(monkeypatch, transport)

    for kwargs in (
        {"json": {"mcpServers": "git"}},
        {"json": {"servers": {}}},
        {"json": ["git"]},
        {"content": b"{not json", "headers": {"content-type": "application/json"}},
    ):
        resp = _post("/api/mcp-check", **kwargs)
        assert resp.status_code == 400
        assert resp.json() == {"detail": "Invalid MCP servers configuration"}

    assert transport.calls == []


def test_mcp_check_unexpected_failure(monkeypatch) -> None:
    async def explode(_configs):
        raise RuntimeError("event loop on fire")

    monkeypatch.setattr(main.service.manager, "check_all", explode)

    resp = _post("/api/mcp-check", json={"mcpServers": {}})

    assert resp.status_code == 500
    assert resp.json() == {"detail": "Failed to check MCP servers"}


def test_tool_toggle_unknown_tool() -> None:
    resp = _post("/api/tools/missing/active", json={"active": False})
    assert resp.status_code == 404


def test_reload_rebuilds_registry(monkeypatch, tmp_path) -> None:
    config_path = tmp_path / "mcp.toml"
    config_path.write_text('[mcpServers.git]\ncommand = "mcp-server-git"\n\n[mcpServers.remote]\nurl = "http://localhost:1/sse"\n')
    transport = FakeTransport(
        {
            "git": FakeClient([make_tool("log"), make_tool("diff")]),
            "remote": FakeClient(enter_error=ConnectionRefusedError("connection refused")),
        }
    )
    _use_transport(monkeypatch, transport)
    monkeypatch.setattr(main.service, "config_path", config_path)
    monkeypatch.setattr(main.service, "registry", main.service.registry)
    monkeypatch.setattr(main.service, "last_result", None)

    async def scenario():
        async with _make_client() as client:
            reloaded = await client.post("/api/mcp-config/reload")
            servers = await client.get("/api/servers")
            tools = await client.get("/api/tools")
            toggled = await client.post("/api/tools/diff/active", json={"active": False})
            open_before_close = transport.clients["git"].close_count
        await main.service.close()
        return reloaded, servers, tools, toggled, open_before_close

    reloaded, servers, tools, toggled, open_before_close = _run(scenario())

    assert reloaded.status_code == 200
    assert reloaded.json()["serverStatus"] == {"git": True, "remote": False}
    assert servers.json() == reloaded.json()
    assert [tool["name"] for tool in tools.json()] == ["log", "diff"]
    assert {tool["source"] for tool in tools.json()} == {"mcp:git"}
    assert toggled.json() == {"name": "diff", "active": False}
    assert open_before_close == 0
    assert transport.clients["git"].close_count == 1


def test_failed_reload_keeps_previous_sessions(monkeypatch, tmp_path) -> None:
    config_path = tmp_path / "mcp.toml"
    config_path.write_text('[mcpServers.git]\ncommand = "mcp-server-git"\n')
    transport = FakeTransport({"git": FakeClient([make_tool("log")])})
    _use_transport(monkeypatch, transport)
    monkeypatch.setattr(main.service, "config_path", config_path)
    monkeypatch.setattr(main.service, "registry", main.service.registry)
    monkeypatch.setattr(main.service, "last_result", None)

    async def scenario():
        async with _make_client() as client:
            first = await client.post("/api/mcp-config/reload")
            config_path.write_text('mcpServers = "broken"\n')
            failed = await client.post("/api/mcp-config/reload")
            servers = await client.get("/api/servers")
            tools = await client.get("/api/tools")
            closed_after_failure = transport.clients["git"].close_count
        await main.service.close()
        return first, failed, servers, tools, closed_after_failure

    first, failed, servers, tools, closed_after_failure = _run(scenario())

    assert first.status_code == 200
    assert failed.status_code == 500
    assert servers.json()["serverStatus"] == {"git": True}
    assert [tool["name"] for tool in tools.json()] == ["log"]
    assert closed_after_failure == 0
    assert transport.clients["git"].close_count == 1


def test_tools_in_responses_format(monkeypatch, tmp_path) -> None:
    config_path = tmp_path / "mcp.toml"
    config_path.write_text('[mcpServers.git]\ncommand = "mcp-server-git"\n')
    _use_transport(monkeypatch, FakeTransport({"git": FakeClient([make_tool("log", description="Show log")])}))
    monkeypatch.setattr(main.service, "config_path", config_path)
    monkeypatch.setattr(main.service, "registry", main.service.registry)
    monkeypatch.setattr(main.service, "last_result", None)

    async def scenario():
        async with _make_client() as client:
            await client.post("/api/mcp-config/reload")
            formatted = await client.get("/api/tools", params={"format": "responses"})
            unknown = await client.get("/api/tools", params={"format": "xml"})
        await main.service.close()
        return formatted, unknown

    formatted, unknown = _run(scenario())

    assert formatted.json() == [
        {
            "type": "function",
            "name": "log",
            "description": "Show log",
            "parameters": {"type": "object", "properties": {}},
        }
    ]
    assert unknown.status_code == 400


def test_reload_flag_parsing(monkeypatch) -> None:
    for value, expected in [("1", True), ("true", True), (" Yes ", True), ("0", False), ("false", False), ("", False)]:
        monkeypatch.setenv("RELOAD", value)
        assert main._env_flag("RELOAD") is expected
    monkeypatch.delenv("RELOAD")
    assert main._env_flag("RELOAD") is False


def test_run_passes_reload_flag(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(main.uvicorn, "run", lambda *args, **kwargs: calls.append(kwargs))
    monkeypatch.setenv("RELOAD", "0")

    main.run()

    assert calls[0]["reload"] is False
