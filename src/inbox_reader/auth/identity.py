from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Optional, Protocol, Sequence

import httpx
from google.auth import jwt
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

logger = logging.getLogger(__name__)

USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"


class Session(Protocol):
    def access_token(self) -> Optional[str]: ...

    def email(self) -> str: ...

    def expiry(self) -> Optional[datetime]: ...

    def refresh(self) -> None: ...


class IdentityProvider(Protocol):
    def current_session(self) -> Optional[Session]: ...

    def try_silent_session(self) -> Optional[Session]: ...

    def interactive_sign_in(self) -> Optional[Session]: ...

    def forget_session(self) -> None: ...

    def sign_out(self) -> None: ...


class GoogleSession:
    """A signed-in Google account backed by google-auth user credentials."""

    def __init__(self, creds: Credentials, on_refresh=None):
        self._creds = creds
        self._on_refresh = on_refresh
        self._email: Optional[str] = None

    @property
    def credentials(self) -> Credentials:
        return self._creds

    def access_token(self) -> Optional[str]:
        if not self._creds.valid and self._creds.refresh_token:
            self.refresh()
        return self._creds.token

    def refresh(self) -> None:
        """Fetch a new access token now; raises RefreshError without a refresh token."""
        self._creds.refresh(Request())
        if self._on_refresh is not None:
            self._on_refresh(self._creds)

    def expiry(self) -> Optional[datetime]:
        # google-auth keeps expiry as naive UTC
        exp = self._creds.expiry
        if exp is None:
            return None
        return exp.replace(tzinfo=timezone.utc) if exp.tzinfo is None else exp

    def email(self) -> str:
        if self._email is None:
            self._email = self._email_from_id_token() or self._email_from_userinfo() or ""
        return self._email

    def _email_from_id_token(self) -> Optional[str]:
        id_token = getattr(self._creds, "id_token", None)
        if not id_token:
            return None
        try:
            # received straight from Google's token endpoint over TLS
            claims = jwt.decode(id_token, verify=False)
        except ValueError as e:
            logger.debug("Could not decode id_token: %s", e)
            return None
        return claims.get("email")

    def _email_from_userinfo(self) -> Optional[str]:
        token = self._creds.token
        if not token:
            return None
        try:
            with httpx.Client(timeout=httpx.Timeout(10.0)) as client:
                r = client.get(USERINFO_URL, headers={"Authorization": f"Bearer {token}"})
                r.raise_for_status()
                data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Userinfo lookup failed: %s", e)
            return None
        return data.get("email")


class GoogleIdentityProvider:
    """
    Google sign-in for an installed app.

    The authorized-user file at `token_path` is the provider's own session
    store (refresh token included); it is what makes silent sign-in possible.
    """

    def __init__(self, client_secret_path: str, token_path: str, scopes: Sequence[str]):
        self.client_secret_path = client_secret_path
        self.token_path = token_path
        self.scopes = list(scopes)
        self._session: Optional[GoogleSession] = None

    def _persist(self, creds: Credentials) -> None:
        directory = os.path.dirname(os.path.abspath(self.token_path))
        os.makedirs(directory, exist_ok=True)
        with open(self.token_path, "w", encoding="utf-8") as f:
            f.write(creds.to_json())

    def current_session(self) -> Optional[GoogleSession]:
        return self._session

    def try_silent_session(self) -> Optional[GoogleSession]:
        if not os.path.exists(self.token_path):
            logger.info("No saved Google session at %s", self.token_path)
            return None

        creds = Credentials.from_authorized_user_file(self.token_path, self.scopes)

        # refresh if needed
        if not creds.valid:
            if not creds.refresh_token:
                logger.info("Saved Google session has no refresh token")
                return None
            creds.refresh(Request())
            # write back refreshed token
            self._persist(creds)

        self._session = GoogleSession(creds, on_refresh=self._persist)
        return self._session

    def interactive_sign_in(self) -> Optional[GoogleSession]:
        if not os.path.exists(self.client_secret_path):
            raise FileNotFoundError(
                f"Missing: {self.client_secret_path}\n"
                "Download OAuth Desktop client JSON from Google Cloud Console."
            )

        flow = InstalledAppFlow.from_client_secrets_file(self.client_secret_path, self.scopes)
        creds = flow.run_local_server(port=0)
        if creds is None:
            return None

        self._persist(creds)
        self._session = GoogleSession(creds, on_refresh=self._persist)
        return self._session

    def forget_session(self) -> None:
        """Drop the in-memory session; the saved authorized-user file stays."""
        self._session = None

    def sign_out(self) -> None:
        self._session = None
        if os.path.exists(self.token_path):
            os.remove(self.token_path)
