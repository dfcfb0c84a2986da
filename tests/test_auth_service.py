from datetime import timedelta

import pytest

from inbox_reader.auth.service import AuthService

from conftest import NOW, FakeIdentity, FakeSession


@pytest.fixture
def make_service(cache, clock, make_resolver):
    def _make(identity):
        return AuthService(identity, cache, make_resolver(identity), clock=clock)

    return _make


def test_sign_in_returns_current_session_without_prompt(make_service):
    session = FakeSession()
    identity = FakeIdentity(current=session)

    assert make_service(identity).sign_in() is session
    assert "interactive" not in identity.calls


def test_sign_in_stores_token(cache, make_service):
    identity = FakeIdentity(interactive=FakeSession(token="new"))

    session = make_service(identity).sign_in()

    assert session.email() == "user@example.com"
    stored = cache.read()
    assert stored.token == "new"
    assert stored.expires_at == NOW + timedelta(hours=1)


def test_sign_in_cancelled_returns_none(cache, make_service):
    assert make_service(FakeIdentity(interactive=None)).sign_in() is None
    assert cache.read() is None


def test_sign_in_token_failure_still_returns_session(cache, make_service):
    session = FakeSession(error=RuntimeError("no token"))

    assert make_service(FakeIdentity(interactive=session)).sign_in() is session
    assert cache.read() is None


def test_sign_in_flow_errors_propagate(make_service):
    with pytest.raises(FileNotFoundError):
        make_service(FakeIdentity(interactive=FileNotFoundError("client secret"))).sign_in()


def test_sign_out_clears_cache_and_provider(cache, make_service):
    cache.store("tok", NOW + timedelta(hours=1))
    identity = FakeIdentity(current=FakeSession())

    service = make_service(identity)
    service.sign_out()

    assert cache.read() is None
    assert identity.calls[-1] == "sign_out"
    assert service.credentials() is None


def test_credentials_delegates_to_resolver(cache, make_service):
    cache.store("tok", NOW + timedelta(hours=1))
    assert make_service(FakeIdentity()).credentials().access_token == "tok"


def test_sign_in_ignores_provider_expiry_when_disabled(cache, clock, make_resolver):
    identity = FakeIdentity(interactive=FakeSession(token="new", expiry=NOW + timedelta(minutes=10)))
    service = AuthService(identity, cache, make_resolver(identity), prefer_provider_expiry=False, clock=clock)

    service.sign_in()

    assert cache.read().expires_at == NOW + timedelta(hours=1)


def test_sign_in_uses_provider_expiry_by_default(cache, make_service):
    identity = FakeIdentity(interactive=FakeSession(token="new", expiry=NOW + timedelta(minutes=10)))

    make_service(identity).sign_in()

    assert cache.read().expires_at == NOW + timedelta(minutes=10)
