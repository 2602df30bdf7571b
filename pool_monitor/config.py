import os
import logging
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_RPC_URL = "https://rpc.mainnet.near.org"
DEFAULT_REPEAT_TIME = 60
DEFAULT_RPC_TIMEOUT = 10
DEFAULT_METRICS_PORT = 9444


@dataclass(frozen=True)
class Settings:
    pool_id: str
    rpc_url: str = DEFAULT_RPC_URL
    repeat_time: int = DEFAULT_REPEAT_TIME
    rpc_timeout: int = DEFAULT_RPC_TIMEOUT
    metrics_port: int = DEFAULT_METRICS_PORT
    slack_webhook_url: Optional[str] = None


def _positive_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def load_settings() -> Settings:
    """Read the service settings from the environment (and a .env file if present).

    Returns:
        Settings: The resolved settings

    Raises:
        ValueError: If POOL_ID is missing or a numeric setting is invalid
    """
    load_dotenv()

    pool_id = os.getenv("POOL_ID")
    if not pool_id:
        raise ValueError("POOL_ID not provided")

    settings = Settings(
        pool_id=pool_id,
        rpc_url=os.getenv("NEAR_RPC_URL", DEFAULT_RPC_URL),
        repeat_time=_positive_int("REPEAT_TIME", DEFAULT_REPEAT_TIME),
        rpc_timeout=_positive_int("RPC_TIMEOUT", DEFAULT_RPC_TIMEOUT),
        metrics_port=_positive_int("METRICS_PORT", DEFAULT_METRICS_PORT),
        slack_webhook_url=os.getenv("SLACK_WEBHOOK_URL") or None,
    )
    logger.info(f"Loaded settings for pool {settings.pool_id} using {settings.rpc_url}")
    return settings
