from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from inbox_reader.schemas import StoredToken
from inbox_reader.storage import KeyValueStore

logger = logging.getLogger(__name__)

TOKEN_KEY = "google_access_token"
TOKEN_EXPIRY_KEY = "google_token_expiry"


def _as_utc(dt: datetime) -> datetime:
    # naive timestamps were written as UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class TokenCache:
    """
    Persists one access token and its absolute expiry in a KeyValueStore.

    Writes go token first, then expiry; a token without an expiry is a miss.
    """

    def __init__(self, store: KeyValueStore):
        self._store = store

    def store(self, token: str, expires_at: datetime) -> None:
        self._store.set(TOKEN_KEY, token)
        self._store.set(TOKEN_EXPIRY_KEY, _as_utc(expires_at).isoformat())

    def read(self) -> Optional[StoredToken]:
        try:
            token = self._store.get(TOKEN_KEY)
            raw_expiry = self._store.get(TOKEN_EXPIRY_KEY)
        except Exception as e:
            logger.warning("Token cache read failed: %s", e)
            return None

        if not token or not raw_expiry:
            return None

        try:
            expires_at = datetime.fromisoformat(raw_expiry)
        except ValueError:
            logger.debug("Discarding cached token with malformed expiry %r", raw_expiry)
            return None

        return StoredToken(token=token, expires_at=_as_utc(expires_at))

    def clear(self) -> None:
        self._store.remove(TOKEN_KEY)
        self._store.remove(TOKEN_EXPIRY_KEY)
