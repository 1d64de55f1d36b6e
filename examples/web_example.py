"""Simple script/notebook-style example to call the check API directly."""
import argparse
import asyncio
import json
import sys

import httpx

DEFAULT_BASE_URL = "http://localhost:8000"


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Call the mcpcheck HTTP API.")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help=f"API base URL (default: {DEFAULT_BASE_URL})")
    return parser.parse_args()


async def main(base_url: str) -> None:
    async with httpx.AsyncClient(base_url=base_url, timeout=60.0) as client:
        payload = {
            "mcpServers": {
                "time": {"command": sys.executable, "args": ["examples/time_server.py"]},
                "remote": {"type": "sse", "url": "http://localhost:9000/sse"},
            }
        }
        r = await client.post("/api/mcp-check", json=payload)
        r.raise_for_status()
        print("Check result:", json.dumps(r.json(), indent=2))

        # Tools of the servers configured in config/mcp.toml
        tools = await client.get("/api/tools")
        tools.raise_for_status()
        print("\nRegistry:", json.dumps(tools.json(), indent=2))


if __name__ == "__main__":
    args = parse_args()
    asyncio.run(main(args.base_url))
