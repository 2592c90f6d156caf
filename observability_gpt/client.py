"""Companion client for the agent server.

Obtains an agent access token with the subscriber key and exercises every
endpoint with a fixed set of demonstration prompts.

Usage:
  observability-gpt-client --base-url http://localhost:3000
"""
import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Optional

import httpx

from .billing import build_payments, get_agent_access_token
from .config import Settings

logger = logging.getLogger(__name__)

TEXT_PROMPTS = [
    ("Write a haiku about artificial intelligence", 5),
    ("Explain quantum computing in one sentence", 8),
    ("What's the meaning of life in 10 words or less?", 12),
]
SONG_PROMPTS = [
    ("A melancholy ballad about debugging at 3am", 3),
    ("Jazz fusion for coffee shop philosophers", 7),
]
IMAGE_PROMPTS = [
    ("A wizard teaching calculus to manifolds", 2),
    ("Time itself having an existential crisis", 4),
]
VIDEO_PROMPTS = [
    ("Gravity deciding to take a day off", 6),
    ("Colors arguing about who's most important", 9),
]
COMBINED_PROMPTS = [
    ("A music video about ontologies for a teenager", 3),
]


class ClientError(Exception):
    pass


class AgentClient:
    def __init__(self, settings: Settings, payments=None, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._payments = payments
        self._client = http_client or httpx.AsyncClient(base_url=settings.agent_url, timeout=60.0)
        self.access_token: Optional[str] = None
        logger.info(f"AgentClient initialized for {self._client.base_url}")

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    async def initialize(self) -> str:
        if self._payments is None:
            self._payments = build_payments(self.settings.subscriber_nvm_api_key, self.settings.nvm_environment)
        self.access_token = await get_agent_access_token(
            self._payments, self.settings.plan_id, self.settings.agent_id
        )
        logger.info("Access token obtained for agent operations")
        return self.access_token

    async def _make_request(self, endpoint: str, prompt: str, credit_amount: int) -> Any:
        if not self.access_token:
            raise ClientError("Client not initialized. Call initialize() first.")

        r = await self._client.post(
            endpoint,
            json={"prompt": prompt, "credit_amount": credit_amount},
            headers={"Authorization": f"Bearer {self.access_token}"},
        )
        if r.is_error:
            raise ClientError(f"Request failed: {r.status_code} {r.reason_phrase} {r.text}")
        return r.json()["result"]

    async def call_gpt(self, prompt: str, credit_amount: int) -> str:
        return await self._make_request("/gpt", prompt, credit_amount)

    async def simulate_song_generation(self, prompt: str, credit_amount: int) -> dict:
        return await self._make_request("/song", prompt, credit_amount)

    async def simulate_image_generation(self, prompt: str, credit_amount: int) -> dict:
        return await self._make_request("/image", prompt, credit_amount)

    async def simulate_video_generation(self, prompt: str, credit_amount: int) -> dict:
        return await self._make_request("/video", prompt, credit_amount)

    async def simulate_combined_generation(self, prompt: str, credit_amount: int) -> dict:
        return await self._make_request("/combined", prompt, credit_amount)

    async def run_test_prompts(self):
        print("\n=== Running Test Prompts ===\n")
        for prompt, credit_amount in TEXT_PROMPTS:
            try:
                result = await self.call_gpt(prompt, credit_amount)
                print(f"GPT Result: {result}")
                print("---")
            except (ClientError, httpx.HTTPError) as e:
                print(f"Failed to process prompt: {e}")

        print("\n=== Testing Simulated Song Generation ===\n")
        for prompt, credit_amount in SONG_PROMPTS:
            try:
                song = await self.simulate_song_generation(prompt, credit_amount)
                print(f"Song generated: {song['music']['title']}")
                print(f"Audio URL: {song['music']['audioUrl']}")
                print(f"Duration: {song['music']['duration']}s")
                print("---")
            except (ClientError, httpx.HTTPError) as e:
                print(f"Failed to generate song: {e}")

        print("\n=== Testing Simulated Image Generation ===\n")
        for prompt, credit_amount in IMAGE_PROMPTS:
            try:
                image = await self.simulate_image_generation(prompt, credit_amount)
                print(f"Image generated: {image['width']}x{image['height']}")
                print(f"Image URL: {image['url']}")
                print(f"Pixels: {image['pixels']}")
                print("---")
            except (ClientError, httpx.HTTPError) as e:
                print(f"Failed to generate image: {e}")

        print("\n=== Testing Simulated Video Generation ===\n")
        for prompt, credit_amount in VIDEO_PROMPTS:
            try:
                video = await self.simulate_video_generation(prompt, credit_amount)
                print(f"Video generated: {video['duration']}s ({video['aspectRatio']})")
                print(f"Video URL: {video['url']}")
                print(f"Mode: {video['mode']}, Version: {video['version']}")
                print("---")
            except (ClientError, httpx.HTTPError) as e:
                print(f"Failed to generate video: {e}")

        print("\n=== Testing Combined Prompts ===\n")
        for prompt, credit_amount in COMBINED_PROMPTS:
            try:
                combined = await self.simulate_combined_generation(prompt, credit_amount)
                print(f"Combined result: {json.dumps(combined)}")
                print("---")
            except (ClientError, httpx.HTTPError) as e:
                print(f"Failed to generate combined generation: {e}")


async def run_client(settings: Settings):
    async with AgentClient(settings) as client:
        await client.initialize()
        await client.run_test_prompts()
    print("\n=== Client completed successfully ===")


def parse_args():
    p = argparse.ArgumentParser(description="Exercise the observability GPT agent endpoints")
    p.add_argument("--base-url", default=None, help="agent server URL (default: AGENT_URL)")
    return p.parse_args()


def main():
    args = parse_args()
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level.upper())
    if args.base_url:
        settings.agent_url = args.base_url

    try:
        asyncio.run(run_client(settings))
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
