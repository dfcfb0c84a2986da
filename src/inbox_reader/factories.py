from __future__ import annotations

from datetime import timedelta
from typing import Optional

from inbox_reader.auth.identity import GoogleIdentityProvider
from inbox_reader.auth.resolver import CredentialResolver
from inbox_reader.auth.service import AuthService
from inbox_reader.auth.token_cache import TokenCache
from inbox_reader.config import SCOPES, Settings, settings as default_settings
from inbox_reader.gmail.fetch import SubjectFetcher
from inbox_reader.storage import JsonFileStore


def build_auth_service(cfg: Optional[Settings] = None) -> AuthService:
    cfg = cfg or default_settings

    identity = GoogleIdentityProvider(
        client_secret_path=cfg.gmail_client_secret_path,
        token_path=cfg.gmail_token_path,
        scopes=SCOPES,
    )
    cache = TokenCache(JsonFileStore(cfg.token_cache_path))
    lifetime = timedelta(seconds=cfg.assumed_token_lifetime_seconds)
    resolver = CredentialResolver(
        cache,
        identity,
        scopes=SCOPES,
        expiry_buffer=timedelta(seconds=cfg.token_expiry_buffer_seconds),
        token_lifetime=lifetime,
        prefer_provider_expiry=cfg.prefer_provider_expiry,
    )
    return AuthService(
        identity,
        cache,
        resolver,
        token_lifetime=lifetime,
        prefer_provider_expiry=cfg.prefer_provider_expiry,
    )


def build_fetcher(auth: AuthService, cfg: Optional[Settings] = None) -> SubjectFetcher:
    cfg = cfg or default_settings
    return SubjectFetcher(auth.resolver, mailbox=cfg.gmail_mailbox)
