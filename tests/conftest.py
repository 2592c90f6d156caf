from types import SimpleNamespace
from unittest.mock import create_autospec

import pytest

from payments_py import StartAgentRequest
from payments_py.api import observability_api
from payments_py.api.agents_api import AgentsAPI
from payments_py.api.observability_api import ObservabilityAPI
from payments_py.api.requests_api import AgentRequestsAPI

from observability_gpt.config import Settings
from observability_gpt.operations import AgentOperations
from observability_gpt.server import create_app

HELICONE_GATEWAY_URL = "https://helicone.test/jawn/v1/gateway/oai/v1"


class FakePayments:
    """Payments client whose API objects are autospecced from the SDK classes.

    Calling a method the installed SDK does not define, or with arguments its
    signature rejects, fails the test.
    """

    def __init__(self):
        self.started = []
        self.redeemed = []
        self.logged = []
        self.fail_start = False
        self.fail_redeem = False

        self.requests = create_autospec(AgentRequestsAPI, instance=True)
        self.requests.start_processing_request.side_effect = self._start
        self.requests.redeem_credits_from_request.side_effect = self._redeem

        self.agents = create_autospec(AgentsAPI, instance=True)
        self.agents.get_agent_access_token.return_value = {"accessToken": "subscriber-token"}

        self.observability = create_autospec(ObservabilityAPI, instance=True)
        self.observability.with_openai.side_effect = self._with_openai
        self.observability.with_manual_logging.side_effect = self._with_manual_logging
        self.observability.calculate_image_usage.side_effect = observability_api.calculate_image_usage
        self.observability.calculate_song_usage.side_effect = observability_api.calculate_song_usage
        self.observability.calculate_video_usage.side_effect = observability_api.calculate_video_usage

    def _start(self, agent_id, access_token, url_requested, http_method_requested, batch=False):
        if self.fail_start:
            raise RuntimeError("billing backend unavailable")
        self.started.append({"agent_id": agent_id, "token": access_token, "url": url_requested, "method": http_method_requested})
        return StartAgentRequest(
            agentRequestId=f"req-{len(self.started)}",
            agentName="Observability GPT",
            agentId=agent_id,
            balance={
                "planId": "did:nv:plan-456",
                "planName": "Demo plan",
                "planType": "credits",
                "holderAddress": "0xsubscriber",
                "balance": 100,
                "creditsContract": "0xcredits",
                "isSubscriber": True,
                "pricePerCredit": 0.001,
            },
            urlMatching=url_requested,
            verbMatching=http_method_requested,
            batch=batch,
        )

    def _redeem(self, agent_request_id, request_access_token, credits_to_burn):
        if self.fail_redeem:
            raise RuntimeError("redemption rejected")
        self.redeemed.append((agent_request_id, request_access_token, credits_to_burn))
        return {"success": True, "txHash": "0xfeed"}

    def _with_openai(self, api_key, start_agent_request, custom_properties):
        return observability_api.with_openai(
            api_key,
            "helicone-key",
            HELICONE_GATEWAY_URL,
            "0xbuilder",
            "sandbox",
            start_agent_request,
            custom_properties,
        )

    async def _with_manual_logging(
        self,
        agent_name,
        payload_config,
        operation,
        result_extractor,
        usage_calculator,
        response_id_prefix,
        start_agent_request,
        custom_properties,
    ):
        internal = await operation()
        usage = usage_calculator(internal)
        result = result_extractor(internal)
        self.logged.append(
            {
                "agent_name": agent_name,
                "model": payload_config.model,
                "input": payload_config.input_data,
                "usage": usage,
                "prefix": response_id_prefix,
                "agent_request_id": start_agent_request.agent_request_id,
                "properties": custom_properties,
            }
        )
        return result


class FakeCompletions:
    def __init__(self, llm):
        self._llm = llm

    async def create(self, **kwargs):
        self._llm.calls.append(kwargs)
        if self._llm.error:
            raise self._llm.error
        if self._llm.content is None:
            return SimpleNamespace(choices=[])
        message = SimpleNamespace(content=self._llm.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeLLM:
    def __init__(self, content="A fake completion", error=None):
        self.content = content
        self.error = error
        self.calls = []
        self.options = []
        self.chat = SimpleNamespace(completions=FakeCompletions(self))

    def factory(self, options):
        self.options.append(options)
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


@pytest.fixture
def settings():
    return Settings(
        openai_api_key="sk-test",
        builder_nvm_api_key="nvm-builder",
        subscriber_nvm_api_key="nvm-subscriber",
        agent_id="did:nv:agent-123",
        plan_id="did:nv:plan-456",
        agent_host="http://agent.test",
    )


@pytest.fixture
def payments():
    return FakePayments()


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def operations(settings, payments, llm):
    return AgentOperations(settings, payments, llm_factory=llm.factory)


@pytest.fixture
def app(settings, operations):
    return create_app(settings, operations=operations)
