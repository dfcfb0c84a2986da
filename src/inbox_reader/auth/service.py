from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from inbox_reader.auth.identity import IdentityProvider, Session
from inbox_reader.auth.resolver import DEFAULT_TOKEN_LIFETIME, CredentialResolver, utcnow
from inbox_reader.auth.token_cache import TokenCache
from inbox_reader.schemas import Credential

logger = logging.getLogger(__name__)


class AuthService:
    """Sign-in, sign-out and credential lookup over injected collaborators."""

    def __init__(
        self,
        identity: IdentityProvider,
        cache: TokenCache,
        resolver: CredentialResolver,
        *,
        token_lifetime: timedelta = DEFAULT_TOKEN_LIFETIME,
        prefer_provider_expiry: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.identity = identity
        self.cache = cache
        self.resolver = resolver
        self._token_lifetime = token_lifetime
        self._prefer_provider_expiry = prefer_provider_expiry
        self._clock = clock

    def sign_in(self) -> Optional[Session]:
        current = self.identity.current_session()
        if current is not None:
            logger.info("User already signed in")
            return current

        # errors from the consent flow go to the caller
        session = self.identity.interactive_sign_in()
        if session is None:
            logger.info("Sign-in was cancelled or failed")
            return None

        try:
            token = session.access_token()
            if token:
                reported = session.expiry() if self._prefer_provider_expiry else None
                expires_at = reported or self._clock() + self._token_lifetime
                self.cache.store(token, expires_at)
                logger.info("Stored authentication token")
        except Exception:
            # the user is signed in even if caching the token failed
            logger.exception("Error storing authentication token")

        return session

    def sign_out(self) -> None:
        self.cache.clear()
        self.identity.sign_out()

    def credentials(self) -> Optional[Credential]:
        return self.resolver.resolve()
