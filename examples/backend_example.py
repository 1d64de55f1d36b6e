"""Check servers using the ConnectionManager directly (no HTTP).
Run with: uv run python examples/backend_example.py
"""
import asyncio
import sys

from mcpcheck.tools import ConnectionManager


async def main() -> None:
    manager = ConnectionManager(connect_timeout=30)
    result = await manager.check_all(
        {
            "time": {"command": sys.executable, "args": ["examples/time_server.py"]},
            "remote": {"type": "sse", "url": "http://localhost:8000/sse"},
            "broken": {"type": "sse"},
        }
    )

    for name, outcome in result.outcomes.items():
        status = "up" if outcome.reachable else "down"
        print(f"{name}: {status} tools={list(outcome.tools)} error={outcome.error}")
    print("\nAggregated tools:", list(result.tools))


if __name__ == "__main__":
    asyncio.run(main())
