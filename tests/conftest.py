from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from inbox_reader.auth.resolver import CredentialResolver
from inbox_reader.auth.token_cache import TokenCache
from inbox_reader.errors import AuthorizationRevoked
from inbox_reader.gmail.service import MessageDetail
from inbox_reader.storage import MemoryStore

NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeSession:
    def __init__(
        self,
        token: Optional[str] = "fresh-token",
        email: str = "user@example.com",
        expiry=None,
        error=None,
        refreshed=None,
        refresh_error=None,
    ):
        self.token = token
        self._email = email
        self._expiry = expiry
        self.error = error
        self.refreshed = refreshed
        self.refresh_error = refresh_error
        self.token_calls = 0
        self.refresh_calls = 0

    def access_token(self) -> Optional[str]:
        self.token_calls += 1
        if self.error is not None:
            raise self.error
        return self.token

    def email(self) -> str:
        return self._email

    def expiry(self):
        return self._expiry

    def refresh(self) -> None:
        self.refresh_calls += 1
        if self.refresh_error is not None:
            raise self.refresh_error
        if self.refreshed is not None:
            self.token, self._expiry = self.refreshed


class FakeIdentity:
    def __init__(self, current=None, silent=None, interactive=None, silent_error=None):
        self.current = current
        self.silent = silent
        self.interactive = interactive
        self.silent_error = silent_error
        self.calls: List[str] = []

    def current_session(self):
        self.calls.append("current")
        return self.current

    def try_silent_session(self):
        self.calls.append("silent")
        if self.silent_error is not None:
            raise self.silent_error
        return self.silent

    def interactive_sign_in(self):
        self.calls.append("interactive")
        if isinstance(self.interactive, Exception):
            raise self.interactive
        self.current = self.interactive
        return self.interactive

    def forget_session(self):
        self.calls.append("forget")
        self.current = None

    def sign_out(self):
        self.calls.append("sign_out")
        self.current = None


class FakeMail:
    def __init__(self, ids: List[str], headers: Dict[str, Dict[str, str]], fail_on: Optional[str] = None, error=None):
        self.ids = ids
        self.headers = headers
        self.fail_on = fail_on
        self.error = error or AuthorizationRevoked(401)
        self.listed_with: List[int] = []
        self.fetched: List[str] = []
        self.closed = False

    def list_message_ids(self, mailbox: str, max_results: int) -> List[str]:
        self.listed_with.append(max_results)
        if self.fail_on == "list":
            raise self.error
        return list(self.ids)

    def get_message(self, mailbox: str, message_id: str) -> MessageDetail:
        self.fetched.append(message_id)
        if self.fail_on == message_id:
            raise self.error
        return MessageDetail(message_id=message_id, headers=self.headers.get(message_id, {}))

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def cache(store):
    return TokenCache(store)


@pytest.fixture
def make_resolver(cache, clock):
    def _make(identity, **kwargs):
        return CredentialResolver(cache, identity, scopes=["scope-a"], clock=clock, **kwargs)

    return _make


class FailingSetStore(MemoryStore):
    def set(self, key: str, value: str) -> None:
        raise OSError("disk full")

    def remove(self, key: str) -> None:
        raise OSError("disk full")
