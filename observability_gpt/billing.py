"""Thin async helpers around the Nevermined ``payments-py`` SDK.

The SDK client is blocking, so every call is pushed onto a worker thread.
"""
import asyncio
import logging
from typing import Any, Dict

from payments_py import Payments, PaymentOptions, StartAgentRequest

logger = logging.getLogger(__name__)


def build_payments(api_key: str, environment: str) -> Payments:
    return Payments.get_instance(PaymentOptions(nvm_api_key=api_key, environment=environment))


async def get_agent_access_token(payments: Payments, plan_id: str, agent_id: str) -> str:
    creds = await asyncio.to_thread(payments.agents.get_agent_access_token, plan_id, agent_id)
    token = creds.get("accessToken")
    if not token:
        raise RuntimeError(f"No access token returned for plan={plan_id} agent={agent_id}")
    return token


async def start_agent_request(
    payments: Payments, agent_id: str, access_token: str, url: str, method: str = "POST"
) -> StartAgentRequest:
    try:
        agent_request = await asyncio.to_thread(
            payments.requests.start_processing_request, agent_id, access_token, url, method
        )
    except Exception:
        logger.exception(f"Failed to start agent request: agent={agent_id} url={url}")
        raise
    logger.info(f"Agent request started: id={agent_request.agent_request_id} url={url}")
    return agent_request


async def redeem_credits_from_request(
    payments: Payments, agent_request_id: str, access_token: str, credits: int = 1
) -> Dict[str, Any]:
    logger.info(f"Redeeming {credits} credits for request {agent_request_id}")
    try:
        redemption = await asyncio.to_thread(
            payments.requests.redeem_credits_from_request, agent_request_id, access_token, credits
        )
    except Exception as e:
        logger.error(f"Failed to redeem credits for request {agent_request_id}: {e}")
        return {"creditsRedeemed": 0, "error": str(e)}

    result = {**redemption, "creditsRedeemed": credits}
    logger.info(f"Credit redemption result: {result}")
    return result
