from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Protocol

import httplib2
from google.auth import exceptions as google_auth_exceptions
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from inbox_reader.errors import AuthorizationRevoked, TransientFetchFailure
from inbox_reader.schemas import Credential

logger = logging.getLogger(__name__)

AUTH_ERROR_STATUSES = (401, 403)


@dataclass
class MessageDetail:
    message_id: str
    headers: Dict[str, str] = field(default_factory=dict)


class MailProvider(Protocol):
    def list_message_ids(self, mailbox: str, max_results: int) -> List[str]: ...

    def get_message(self, mailbox: str, message_id: str) -> MessageDetail: ...

    def close(self) -> None: ...


def build_gmail_service(credential: Credential):
    """Builds a Gmail API service that sends `credential` as its bearer token."""
    creds = Credentials(token=credential.access_token, scopes=sorted(credential.scopes) or None)
    return build("gmail", "v1", credentials=creds, cache_discovery=False)


@contextlib.contextmanager
def _gmail_errors() -> Iterator[None]:
    """Translate SDK/transport errors into AuthorizationRevoked / TransientFetchFailure."""
    try:
        yield
    except HttpError as e:
        status = int(getattr(e.resp, "status", 0) or 0)
        if status in AUTH_ERROR_STATUSES:
            raise AuthorizationRevoked(status, str(e)) from e
        raise TransientFetchFailure(f"Gmail API error {status}: {e}") from e
    except google_auth_exceptions.RefreshError as e:
        # a bare access token cannot be refreshed; the server answered 401
        raise AuthorizationRevoked(401, str(e)) from e
    except (google_auth_exceptions.TransportError, httplib2.HttpLib2Error, OSError) as e:
        raise TransientFetchFailure(f"Gmail transport error: {e}") from e
    except (KeyError, TypeError, ValueError) as e:
        raise TransientFetchFailure(f"Unexpected Gmail response: {e}") from e


def _headers_to_dict(headers: List[Dict[str, str]]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for h in headers:
        name = h.get("name")
        if name is None or name in out:
            continue
        out[name] = h.get("value", "")
    return out


class GmailMailProvider:
    def __init__(self, service):
        self._service = service

    @classmethod
    def for_credential(cls, credential: Credential) -> "GmailMailProvider":
        return cls(build_gmail_service(credential))

    def list_message_ids(self, mailbox: str, max_results: int) -> List[str]:
        """Message ids in API order, following nextPageToken until max_results."""
        ids: List[str] = []
        page_token: Optional[str] = None

        with _gmail_errors():
            while len(ids) < max_results:
                kwargs = {"userId": mailbox, "maxResults": max_results - len(ids)}
                if page_token:
                    kwargs["pageToken"] = page_token
                resp = self._service.users().messages().list(**kwargs).execute()

                messages = resp.get("messages", []) or []
                ids.extend(m["id"] for m in messages)

                page_token = resp.get("nextPageToken")
                if not messages or not page_token:
                    break

        return ids[:max_results]

    def get_message(self, mailbox: str, message_id: str) -> MessageDetail:
        """Fast: METADATA only, Subject header only (no body)."""
        with _gmail_errors():
            full = (
                self._service.users()
                .messages()
                .get(
                    userId=mailbox,
                    id=message_id,
                    format="metadata",
                    metadataHeaders=["Subject"],
                )
                .execute()
            )

            payload = full.get("payload", {}) or {}
            headers = payload.get("headers", []) or []

        return MessageDetail(message_id=full.get("id", message_id), headers=_headers_to_dict(headers))

    def close(self) -> None:
        try:
            self._service.close()
        except (AttributeError, OSError) as e:
            logger.debug("Gmail service close failed: %s", e)
