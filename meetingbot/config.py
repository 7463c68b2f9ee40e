"""
Runtime configuration.

All settings come from environment variables.  :meth:`Config.from_env` is
called once when the entrypoint module is imported and the resulting object
is handed to every handler, so tests can build their own ``Config`` instead
of patching the environment.

Secrets are not validated at startup.  Each handler declares the settings it
needs and :meth:`Config.require` raises a :class:`ConfigurationError` at
request time when one of them is empty.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_VEXA_API_URL = "https://gateway.dev.vexa.ai"
DEFAULT_BOT_NAME = "EllenaTranscriber"
DEFAULT_GENAI_MODEL = "gemini-1.5-flash"
DEFAULT_EMBEDDING_MODEL = "models/embedding-001"

# Maps config attributes holding secrets to the variables they are read from.
SECRET_ENV_VARS: Dict[str, str] = {
    "vexa_api_key": "VEXA_API_KEY",
    "supabase_url": "SUPABASE_URL",
    "supabase_service_role_key": "SUPABASE_SERVICE_ROLE_KEY",
    "gemini_api_key": "GEMINI_API_KEY",
}


@dataclass(frozen=True)
class Config:
    vexa_api_key: Optional[str] = None
    supabase_url: Optional[str] = None
    supabase_service_role_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    vexa_api_url: str = DEFAULT_VEXA_API_URL
    vexa_timeout: float = 30.0
    bot_name: str = DEFAULT_BOT_NAME
    genai_model: str = DEFAULT_GENAI_MODEL
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    meetings_table: str = "meetings"
    log_level: int = logging.INFO

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "Config":
        """Build a configuration from ``environ`` (defaults to ``os.environ``)."""
        env = os.environ if environ is None else environ
        return cls(
            vexa_api_key=env.get("VEXA_API_KEY") or None,
            supabase_url=env.get("SUPABASE_URL") or None,
            supabase_service_role_key=env.get("SUPABASE_SERVICE_ROLE_KEY") or None,
            gemini_api_key=env.get("GEMINI_API_KEY") or None,
            vexa_api_url=env.get("VEXA_API_URL", DEFAULT_VEXA_API_URL).rstrip("/"),
            vexa_timeout=_parse_timeout(env.get("VEXA_TIMEOUT")),
            bot_name=env.get("BOT_NAME", DEFAULT_BOT_NAME),
            genai_model=env.get("GENAI_MODEL", DEFAULT_GENAI_MODEL),
            embedding_model=env.get("GENAI_EMBEDDING_MODEL", DEFAULT_EMBEDDING_MODEL),
            meetings_table=env.get("MEETINGS_TABLE", "meetings"),
            log_level=_parse_log_level(env.get("LOG_LEVEL")),
        )

    def require(self, *names: str) -> None:
        """Raise :class:`ConfigurationError` if any of ``names`` is unset.

        Args:
            names: Attribute names of secret settings, e.g. ``"vexa_api_key"``.
        """
        missing = [SECRET_ENV_VARS.get(name, name) for name in names if not getattr(self, name)]
        if missing:
            raise ConfigurationError(
                "Missing environment variables: " + ", ".join(missing),
                details={"missing": missing},
            )

    def log_status(self) -> None:
        """Log whether each secret was loaded, never the value itself."""
        for attr, env_name in SECRET_ENV_VARS.items():
            logger.info("%s: %s", env_name, "Loaded" if getattr(self, attr) else "Missing")


def _parse_timeout(value: Optional[str], default: float = 30.0) -> float:
    if not value:
        return default
    try:
        timeout = float(value)
    except ValueError:
        logger.warning("Ignoring invalid VEXA_TIMEOUT %r; using %s", value, default)
        return default
    if timeout <= 0:
        logger.warning("Ignoring non-positive VEXA_TIMEOUT %r; using %s", value, default)
        return default
    return timeout


def _parse_log_level(value: Optional[str]) -> int:
    if not value:
        return logging.INFO
    level = logging.getLevelName(value.strip().upper())
    if not isinstance(level, int):
        logger.warning("Ignoring unknown LOG_LEVEL %r; using INFO", value)
        return logging.INFO
    return level
