import pytest

from observability_gpt.billing import get_agent_access_token, redeem_credits_from_request, start_agent_request


@pytest.mark.asyncio
async def test_start_returns_sdk_agent_request(payments):
    agent_request = await start_agent_request(payments, "did:nv:a", "tok", "http://agent.test/gpt")
    assert agent_request.agent_request_id == "req-1"
    assert agent_request.verb_matching == "POST"
    payments.requests.start_processing_request.assert_called_once_with("did:nv:a", "tok", "http://agent.test/gpt", "POST")


@pytest.mark.asyncio
async def test_redeem_merges_result_with_credit_count(payments):
    result = await redeem_credits_from_request(payments, "req-1", "tok", 7)
    assert result == {"success": True, "txHash": "0xfeed", "creditsRedeemed": 7}
    assert payments.redeemed == [("req-1", "tok", 7)]


@pytest.mark.asyncio
async def test_redeem_failure_is_reported_not_raised(payments):
    payments.fail_redeem = True
    result = await redeem_credits_from_request(payments, "req-1", "tok", 7)
    assert result["creditsRedeemed"] == 0
    assert "redemption rejected" in result["error"]


@pytest.mark.asyncio
async def test_start_failure_propagates(payments):
    payments.fail_start = True
    with pytest.raises(RuntimeError, match="billing backend unavailable"):
        await start_agent_request(payments, "did:nv:a", "tok", "http://agent.test/gpt")


@pytest.mark.asyncio
async def test_access_token_requires_token_in_response(payments):
    assert await get_agent_access_token(payments, "plan", "agent") == "subscriber-token"
    payments.agents.get_agent_access_token.assert_called_once_with("plan", "agent")

    payments.agents.get_agent_access_token.return_value = {}
    with pytest.raises(RuntimeError):
        await get_agent_access_token(payments, "plan", "agent")
