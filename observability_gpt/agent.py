"""Standalone GPT agent: runs the metered GPT operation directly, without the HTTP server."""
import asyncio
import logging
import sys
from typing import Optional

from .billing import build_payments, get_agent_access_token
from .config import ConfigError, Settings
from .operations import AgentOperations, LLMFactory
from .utils import generate_deterministic_agent_id

logger = logging.getLogger(__name__)

STANDALONE_CREDIT_AMOUNT = 10

TEST_PROMPTS = [
    "Write a haiku about artificial intelligence",
    "Explain quantum computing in one sentence",
    "What's the meaning of life in 10 words or less?",
]


class StandaloneGPTAgent:
    def __init__(
        self,
        settings: Settings,
        payments=None,
        subscriber_payments=None,
        llm_factory: Optional[LLMFactory] = None,
    ):
        settings.require_openai_key()
        self.settings = settings
        self.agent_id = generate_deterministic_agent_id(settings)
        payments = payments or build_payments(settings.builder_nvm_api_key, settings.nvm_environment)
        self.subscriber_payments = subscriber_payments or build_payments(
            settings.subscriber_nvm_api_key, settings.nvm_environment
        )
        self.operations = AgentOperations(settings, payments, llm_factory)
        logger.info(f"Agent ID: {self.agent_id}")

    async def run_test_prompts(self):
        access_token = await get_agent_access_token(self.subscriber_payments, self.settings.plan_id, self.agent_id)

        results = []
        for prompt in TEST_PROMPTS:
            try:
                results.append(await self.operations.call_gpt(prompt, STANDALONE_CREDIT_AMOUNT, access_token))
            except Exception as e:
                print(f"Failed to process prompt: {e}")
        return results


def main():
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level.upper())
    try:
        agent = StandaloneGPTAgent(settings)
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)

    for response in asyncio.run(agent.run_test_prompts()):
        print(response)
        print("---")
    print("\n=== Agent completed successfully ===")


if __name__ == "__main__":
    main()
