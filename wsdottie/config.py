#!/usr/bin/env python3
"""
Configuration utilities for the WSDOT/WSF client.

Settings come from environment variables, optionally loaded from ``.env``
or ``.env.{dev,prod}`` files selected by the ENVIRONMENT variable.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from loguru import logger

DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "wsdottie-python"
ENV_FILES = {"": ".env", "dev": ".env.dev", "prod": ".env.prod"}


def env_file_for(environment: Optional[str] = None) -> Path:
    """Dotenv file for an environment name; unknown names fall back to ``.env``."""
    name = ENV_FILES.get(environment or "")
    if name is None:
        logger.warning(f"Unknown environment '{environment}', falling back to .env")
        name = ENV_FILES[""]
    return Path(name)


def load_environment_config(environment: Optional[str] = None) -> Optional[Path]:
    """
    Load the dotenv file of an environment from the working directory.

    Values from ``.env.dev`` and ``.env.prod`` override variables already set;
    values from ``.env`` do not.

    Args:
        environment: 'dev', 'prod', or None to use the ENVIRONMENT variable

    Returns:
        Path of the loaded file, or None when it does not exist
    """
    if environment is None:
        environment = os.getenv("ENVIRONMENT", "")

    env_file = env_file_for(environment)
    if not env_file.is_file():
        if env_file.name != ENV_FILES[""]:
            logger.warning(f"Environment config file not found: {env_file}")
        return None

    load_dotenv(env_file, override=env_file.name != ENV_FILES[""])
    logger.info(f"Loaded environment config: {env_file}")
    return env_file


def get_access_token() -> Optional[str]:
    """
    Get the WSDOT/WSF access code from environment variables.

    Returns:
        Access code string or None if not set
    """
    return os.getenv("WSDOT_ACCESS_TOKEN") or None


def get_timeout() -> float:
    """Request timeout in seconds (WSDOTTIE_TIMEOUT, default 30)."""
    raw = os.getenv("WSDOTTIE_TIMEOUT")
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        timeout = float(raw)
    except ValueError:
        raise ValueError(f"WSDOTTIE_TIMEOUT must be a number of seconds, got {raw!r}")
    if timeout <= 0:
        raise ValueError(f"WSDOTTIE_TIMEOUT must be positive, got {raw!r}")
    return timeout


def get_user_agent() -> str:
    return os.getenv("WSDOTTIE_USER_AGENT", DEFAULT_USER_AGENT)


@dataclass(frozen=True)
class ClientSettings:
    """Resolved settings for ``WsdotHTTPClient``."""

    access_token: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_env(cls, environment: Optional[str] = None) -> "ClientSettings":
        load_environment_config(environment)
        settings = cls(
            access_token=get_access_token(),
            timeout=get_timeout(),
            user_agent=get_user_agent(),
        )
        if not settings.access_token:
            logger.warning("WSDOT_ACCESS_TOKEN is not set; requests will be sent without an access code")
        return settings
