from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Header, HTTPException, Query

from inbox_reader.auth.service import AuthService
from inbox_reader.config import settings
from inbox_reader.factories import build_auth_service, build_fetcher
from inbox_reader.gmail.fetch import SubjectFetcher
from inbox_reader.schemas import FetchOutcome


def create_app(
    auth: AuthService,
    fetcher: SubjectFetcher,
    *,
    api_key: Optional[str] = None,
    default_max: int = 10,
) -> FastAPI:
    app = FastAPI()

    def _check_key(x_api_key: str | None) -> None:
        # Simple protection so strangers can't hit your endpoint
        if api_key and x_api_key != api_key:
            raise HTTPException(status_code=401, detail="Unauthorized")

    def _fetch(max_count: int):
        result = fetcher.fetch_recent(max_count)
        if result.outcome is FetchOutcome.UNAUTHENTICATED:
            raise HTTPException(status_code=401, detail="Not authenticated")
        return result

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.get("/emails")
    def list_emails(
        max: int = Query(default=default_max, ge=0, le=500),
        x_api_key: str | None = Header(default=None),
    ):
        _check_key(x_api_key)
        result = _fetch(max)
        return {
            "ok": result.ok,
            "outcome": result.outcome.value,
            "subjects": result.subjects,
            "count": len(result.subjects),
        }

    @app.get("/emails/{index}")
    def email_detail(
        index: int,
        max: int = Query(default=default_max, ge=0, le=500),
        x_api_key: str | None = Header(default=None),
    ):
        _check_key(x_api_key)
        result = _fetch(max)
        if index < 0 or index >= len(result.subjects):
            raise HTTPException(status_code=404, detail="No such email")
        return {"index": index, "subject": result.subjects[index]}

    @app.post("/signout")
    def sign_out(x_api_key: str | None = Header(default=None)):
        _check_key(x_api_key)
        auth.sign_out()
        return {"ok": True}

    return app


def build_app() -> FastAPI:
    auth = build_auth_service()
    return create_app(
        auth,
        build_fetcher(auth),
        api_key=settings.run_api_key,
        default_max=settings.max_emails,
    )


# uvicorn inbox_reader.app:app
app = build_app()
