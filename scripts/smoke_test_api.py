#!/usr/bin/env python3
"""Smoke test a running API server.

Checks chat health, then asks a sample question.

Run with: uv run python scripts/smoke_test_api.py [--base-url http://localhost:3001]
"""

import argparse
import asyncio
import json

import httpx


async def smoke_test(base_url: str, question: str) -> int:
    """Hit the health and chat endpoints and print what comes back."""
    async with httpx.AsyncClient(base_url=base_url, timeout=60.0) as client:
        try:
            health = await client.get("/api/chat/health")
        except httpx.HTTPError as e:
            print(f"✗ Health request error: {e}")
            return 1

        print(f"Health Status: {health.status_code}")
        print(json.dumps(health.json(), indent=2))

        chat = await client.post("/api/chat", json={"message": question})
        print(f"Chat Status: {chat.status_code}")
        print(json.dumps(chat.json(), indent=2))

    return 0 if health.is_success and chat.is_success else 1


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--base-url", default="http://localhost:3001")
    parser.add_argument("--question", default="What are the company holidays?")
    args = parser.parse_args()

    print("Testing API endpoints...")
    raise SystemExit(asyncio.run(smoke_test(args.base_url, args.question)))


if __name__ == "__main__":
    main()
