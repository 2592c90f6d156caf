import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_PLAN_DID = "did:nv:0000000000000000000000000000000000000000"


class ConfigError(Exception):
    pass


@dataclass
class Settings:
    openai_api_key: str = ""
    builder_nvm_api_key: str = ""
    subscriber_nvm_api_key: str = ""
    nvm_environment: str = "sandbox"

    agent_id: str = ""
    plan_id: str = DEFAULT_PLAN_DID
    plan_type: str = "credit_based"

    agent_url: str = "http://localhost:3000"
    agent_host: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 3000

    openai_model: str = "gpt-3.5-turbo"
    credit_usd_rate: float = 0.001

    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        load_dotenv(dotenv_path=dotenv_path)

        builder_key = os.getenv("BUILDER_NVM_API_KEY") or os.getenv("NVM_API_KEY", "")
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            builder_nvm_api_key=builder_key,
            subscriber_nvm_api_key=os.getenv("SUBSCRIBER_NVM_API_KEY", ""),
            nvm_environment=os.getenv("NVM_ENVIRONMENT", "sandbox"),
            agent_id=os.getenv("NVM_AGENT_DID", ""),
            plan_id=os.getenv("NVM_PLAN_DID") or DEFAULT_PLAN_DID,
            plan_type=os.getenv("NVM_PLAN_TYPE") or "credit_based",
            agent_url=os.getenv("AGENT_URL", "http://localhost:3000"),
            agent_host=os.getenv("AGENT_HOST") or None,
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-3.5-turbo"),
            credit_usd_rate=float(os.getenv("CREDIT_USD_RATE", "0.001")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    @property
    def endpoint_base(self) -> str:
        """Base URL recorded on agent requests for the endpoint being billed."""
        if self.agent_host:
            return self.agent_host.rstrip("/")
        return f"http://localhost:{self.port}"

    def require_openai_key(self) -> None:
        if not self.openai_api_key:
            raise ConfigError("OPENAI_API_KEY environment variable is required")
