"""Runtime configuration for the store assistant relay.

All settings are read once from the environment at process start and passed
explicitly into each component.
"""

from __future__ import annotations

import logging
import os

from pydantic import BaseModel, ConfigDict

_DEFAULT_INFERENCE_URL = "https://api.groq.com/openai/v1/chat/completions"
_DEFAULT_INFERENCE_MODEL = "moonshotai/kimi-k2-instruct"
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    access_token: str = ""
    verify_token: str = ""
    phone_number_id: str = ""
    inference_api_key: str = ""
    inference_model: str = _DEFAULT_INFERENCE_MODEL
    inference_url: str = _DEFAULT_INFERENCE_URL
    refine_answers: bool = True
    supabase_url: str | None = None
    supabase_key: str | None = None
    audit_log_path: str | None = None
    log_level: str = "INFO"
    port: int = 3000

    @property
    def store_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from environment variables.

        Supabase credentials are optional; their absence disables the
        store-backed answers instead of failing startup.
        """
        return cls(
            access_token=os.environ.get("WHATSAPP_ACCESS_TOKEN", ""),
            verify_token=os.environ.get("VERIFY_TOKEN", ""),
            phone_number_id=os.environ.get("PHONE_NUMBER_ID", ""),
            inference_api_key=os.environ.get("GROQ_API_KEY", ""),
            inference_model=os.environ.get("GROQ_MODEL", _DEFAULT_INFERENCE_MODEL),
            inference_url=os.environ.get("GROQ_API_URL", _DEFAULT_INFERENCE_URL),
            refine_answers=_env_flag("REFINE_ANSWERS", True),
            supabase_url=os.environ.get("SUPABASE_URL") or None,
            supabase_key=os.environ.get("SUPABASE_SERVICE_ROLE_KEY") or None,
            audit_log_path=os.environ.get("AUDIT_LOG_PATH") or None,
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            port=int(os.environ.get("PORT", "3000")),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=_LOG_FORMAT)
