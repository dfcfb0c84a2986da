from __future__ import annotations

import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    # Where local OAuth artifacts live (do not commit these)
    gmail_client_secret_path: str = os.getenv("GMAIL_CLIENT_SECRET_PATH", "secrets/gmail_oauth_client.json")
    gmail_token_path: str = os.getenv("GMAIL_TOKEN_PATH", "secrets/gmail_token.json")

    # Access token + expiry cache (the two-key store read by the resolver)
    token_cache_path: str = os.getenv("TOKEN_CACHE_PATH", "secrets/token_cache.json")

    token_expiry_buffer_seconds: int = int(os.getenv("TOKEN_EXPIRY_BUFFER_SECONDS", "300"))
    assumed_token_lifetime_seconds: int = int(os.getenv("ASSUMED_TOKEN_LIFETIME_SECONDS", "3600"))
    prefer_provider_expiry: bool = _env_bool("PREFER_PROVIDER_EXPIRY", True)

    max_emails: int = int(os.getenv("MAX_EMAILS", "10"))
    gmail_mailbox: str = os.getenv("GMAIL_MAILBOX", "me")

    run_api_key: str | None = os.getenv("RUN_API_KEY")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()


SCOPES = [
    "openid",
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/gmail.labels",
]


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
