from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

from inbox_reader.auth.identity import IdentityProvider
from inbox_reader.auth.token_cache import TokenCache
from inbox_reader.schemas import Credential

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_BUFFER = timedelta(minutes=5)
DEFAULT_TOKEN_LIFETIME = timedelta(hours=1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CredentialResolver:
    """
    Decides between the cached token, a silent re-authentication, or no
    credential at all.

    Resolution order:
      1. cached token whose expiry is beyond now + expiry_buffer
      2. provider's current session, else a silent session
      3. fresh access token from that session, cached with its expiry

    Provider failures are logged and returned as None; nothing propagates.
    """

    def __init__(
        self,
        cache: TokenCache,
        identity: IdentityProvider,
        *,
        scopes: Iterable[str] = (),
        expiry_buffer: timedelta = DEFAULT_EXPIRY_BUFFER,
        token_lifetime: timedelta = DEFAULT_TOKEN_LIFETIME,
        prefer_provider_expiry: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._cache = cache
        self._identity = identity
        self._scopes = frozenset(scopes)
        self._expiry_buffer = expiry_buffer
        self._token_lifetime = token_lifetime
        self._prefer_provider_expiry = prefer_provider_expiry
        self._clock = clock

    def _credential(self, token: str, expires_at: datetime) -> Credential:
        return Credential(access_token=token, expires_at=expires_at, scopes=self._scopes)

    def _stale(self, expires_at: Optional[datetime], now: datetime) -> bool:
        return expires_at is not None and expires_at <= now + self._expiry_buffer

    def resolve(self) -> Optional[Credential]:
        now = self._clock()

        cached = self._cache.read()
        if cached is not None and not self._stale(cached.expires_at, now):
            return self._credential(cached.token, cached.expires_at)

        try:
            session = self._identity.current_session() or self._identity.try_silent_session()
            if session is None:
                logger.info("No active session; interactive sign-in required")
                return None

            token = session.access_token()
            actual = session.expiry()
            if token and self._stale(actual, now):
                # google-auth still calls a token valid a few minutes before expiry
                logger.info("Provider token expires within the buffer; forcing refresh")
                session.refresh()
                token = session.access_token()
                actual = session.expiry()
                if self._stale(actual, now):
                    logger.warning("Refreshed token still expires within the buffer")
                    return None

            if not token:
                logger.info("Session returned no access token")
                return None

            reported = actual if self._prefer_provider_expiry else None
            expires_at = reported if reported is not None else now + self._token_lifetime
            self._cache.store(token, expires_at)
        except Exception:
            logger.exception("Error getting valid credentials")
            return None

        return self._credential(token, expires_at)

    def invalidate(self) -> None:
        """
        Forget a token the server rejected: clear the cache and force the
        provider's live session to fetch a new one before it is reused.
        """
        try:
            self._cache.clear()
        except OSError as e:
            logger.warning("Could not clear token cache: %s", e)

        session = self._identity.current_session()
        if session is None:
            return
        try:
            session.refresh()
        except Exception as e:
            logger.warning("Could not refresh rejected session, dropping it: %s", e)
            self._identity.forget_session()
