from .config import ConfigError, Settings
from .operations import AgentOperations
from .server import create_app

__all__ = ["AgentOperations", "ConfigError", "Settings", "create_app"]
