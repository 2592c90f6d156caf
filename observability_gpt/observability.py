"""Custom properties and SDK observability hooks for metered operations.

Helicone logging is done by ``payments.observability``: model calls go
through its OpenAI gateway configuration, simulated calls through its manual
logger. Both attach the agent request handle so every log record is linked
to the billing request it belongs to.
"""
import logging
import time
from dataclasses import asdict
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from payments_py import StartAgentRequest
from payments_py.api.observability_api import HeliconePayloadConfig, UsageDetails

from .config import Settings
from .utils import generate_deterministic_agent_id, generate_session_id

logger = logging.getLogger(__name__)

PropertyValue = Union[str, int, float]


def build_custom_properties(
    settings: Settings,
    operation: str,
    credit_amount: float,
    batch_id: Optional[str] = None,
) -> Dict[str, PropertyValue]:
    return {
        "agentid": generate_deterministic_agent_id(settings),
        "sessionid": generate_session_id(),
        "planid": settings.plan_id,
        "plan_type": settings.plan_type,
        "credit_amount": credit_amount,
        "credit_usd_rate": settings.credit_usd_rate,
        "credit_price_usd": settings.credit_usd_rate * credit_amount,
        "operation": operation,
        "batch_id": batch_id or "",
        "is_batch_request": 1 if batch_id else 0,
    }


def openai_client_options(
    payments, api_key: str, agent_request: StartAgentRequest, properties: Dict[str, PropertyValue]
) -> Dict[str, Any]:
    """Keyword arguments for ``openai.AsyncOpenAI`` routed through the SDK's Helicone gateway."""
    return asdict(payments.observability.with_openai(api_key, agent_request, properties))


async def with_logging(
    payments,
    agent_name: str,
    model: str,
    input_data: Dict[str, Any],
    action: Callable[[], Awaitable[Any]],
    extract_result: Callable[[Any], Any],
    calculate_usage: Callable[[Any], UsageDetails],
    response_id_prefix: str,
    agent_request: StartAgentRequest,
    properties: Dict[str, PropertyValue],
) -> Any:
    """Run ``action`` under the SDK manual logger. Errors from the action propagate."""

    def usage(internal):
        details = calculate_usage(internal)
        logger.info(f"{agent_name} [{response_id_prefix}] usage={details.total_tokens} tokens")
        return details

    start = time.time()
    try:
        result = await payments.observability.with_manual_logging(
            agent_name,
            HeliconePayloadConfig(model=model, input_data=input_data),
            action,
            extract_result,
            usage,
            response_id_prefix,
            agent_request,
            properties,
        )
    except Exception:
        logger.exception(f"{agent_name} call failed: model={model} session={properties.get('sessionid')}")
        raise

    logger.info(
        f"{agent_name} model={model} request={agent_request.agent_request_id} "
        f"operation={properties.get('operation')} batch={properties.get('batch_id') or '-'} "
        f"elapsed={time.time() - start:.3f}s"
    )
    return result
