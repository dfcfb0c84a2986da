from __future__ import annotations

import logging
from typing import Callable, List

from inbox_reader.auth.resolver import CredentialResolver
from inbox_reader.errors import AuthorizationRevoked, TransientFetchFailure, Unauthenticated
from inbox_reader.gmail.service import GmailMailProvider, MailProvider
from inbox_reader.schemas import Credential, FetchOutcome, FetchResult

logger = logging.getLogger(__name__)

SUBJECT_HEADER = "Subject"

MailProviderFactory = Callable[[Credential], MailProvider]


class SubjectFetcher:
    """
    Lists recent messages and collects their Subject headers.

    A 401/403 from Gmail clears the token cache and forces the live session
    to refresh, so the rejected token is never handed out again.
    """

    def __init__(
        self,
        resolver: CredentialResolver,
        mail_factory: MailProviderFactory = GmailMailProvider.for_credential,
        mailbox: str = "me",
    ):
        self._resolver = resolver
        self._mail_factory = mail_factory
        self._mailbox = mailbox

    def fetch_recent(self, max_count: int = 10) -> FetchResult:
        if max_count < 0:
            raise ValueError(f"max_count must be >= 0, got {max_count}")
        if max_count == 0:
            return FetchResult(outcome=FetchOutcome.OK)

        credential = self._resolver.resolve()
        if credential is None:
            logger.info("No valid credentials found")
            return FetchResult(outcome=FetchOutcome.UNAUTHENTICATED)

        mail = self._mail_factory(credential)
        try:
            ids = mail.list_message_ids(self._mailbox, max_count)[:max_count]
            logger.info("Found %d messages", len(ids))

            subjects: List[str] = []
            for msg_id in ids:
                detail = mail.get_message(self._mailbox, msg_id)
                subject = detail.headers.get(SUBJECT_HEADER)
                if subject is None:
                    continue
                subjects.append(subject)
        except AuthorizationRevoked as e:
            self._resolver.invalidate()
            logger.warning("Cleared stored tokens due to auth error (HTTP %s)", e.status)
            return FetchResult(outcome=FetchOutcome.AUTHORIZATION_REVOKED)
        except TransientFetchFailure as e:
            logger.error("Error getting emails: %s", e)
            return FetchResult(outcome=FetchOutcome.TRANSIENT_FAILURE)
        finally:
            mail.close()

        logger.info("Fetched %d email subjects", len(subjects))
        return FetchResult(outcome=FetchOutcome.OK, subjects=subjects)

    def fetch_recent_subjects(self, max_count: int = 10) -> List[str]:
        """
        Subjects of the newest `max_count` messages, in Gmail's order.

        Raises Unauthenticated when no credential can be resolved. Auth and
        transport failures come back as an empty list.
        """
        result = self.fetch_recent(max_count)
        if result.outcome is FetchOutcome.UNAUTHENTICATED:
            raise Unauthenticated("Not authenticated")
        return result.subjects
