from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Credential(BaseModel):
    model_config = ConfigDict(frozen=True)

    access_token: str = Field(..., description="Opaque bearer token")
    expires_at: datetime = Field(..., description="Absolute expiry instant (UTC)")
    scopes: frozenset[str] = Field(default_factory=frozenset)


class StoredToken(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    expires_at: datetime


class FetchOutcome(str, Enum):
    OK = "ok"
    UNAUTHENTICATED = "unauthenticated"
    AUTHORIZATION_REVOKED = "authorization_revoked"
    TRANSIENT_FAILURE = "transient_failure"


class FetchResult(BaseModel):
    outcome: FetchOutcome
    subjects: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.outcome is FetchOutcome.OK
