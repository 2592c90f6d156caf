import secrets
import uuid
from typing import Optional

from .config import Settings

BEARER_PREFIX = "Bearer "


def generate_deterministic_agent_id(settings: Settings) -> str:
    return settings.agent_id


def generate_session_id() -> str:
    return secrets.token_hex(16)


def generate_batch_id() -> str:
    return str(uuid.uuid4())


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer <token>`` header, else None."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None
