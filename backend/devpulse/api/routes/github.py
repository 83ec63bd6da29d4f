"""github.py — Hosting data for the dashboard, served in the active mode.

Every endpoint goes through ``RequestInterceptor.dispatch``; the response
shape and error codes are the same whether the data came from GitHub or
from a synthetic dataset.

Called by: Frontend dashboard, productivity and team pages
Depends on: deps.py (Context, CurrentIdentity), core/interception.py
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Query

from devpulse.api.deps import Context, CurrentIdentity
from devpulse.core.interception import Operation
from devpulse.core.protocols import TimeWindow
from devpulse.models.schemas import Commit, Issue, PullRequest, Repository

router = APIRouter(prefix="/api/v1/github", tags=["github"])


def build_window(since: datetime | None, until: datetime | None) -> TimeWindow | None:
    # Query strings without an offset are read as UTC.
    if since is None and until is None:
        return None
    return TimeWindow(since=since, until=until).as_utc()


@router.get("/repositories", response_model=list[Repository])
async def list_repositories(context: Context, identity: CurrentIdentity) -> list[Repository]:
    """Repositories visible to the current identity."""
    return await context.interceptor.dispatch(Operation.GET_REPOSITORIES, {"identity": identity})


@router.get("/repositories/{owner}/{repo}/commits", response_model=list[Commit])
async def list_commits(
    owner: str,
    repo: str,
    context: Context,
    since: datetime | None = Query(default=None),
    until: datetime | None = Query(default=None),
) -> list[Commit]:
    return await context.interceptor.dispatch(
        Operation.GET_COMMITS,
        {"repo": f"{owner}/{repo}", "window": build_window(since, until)},
    )


@router.get("/repositories/{owner}/{repo}/pulls", response_model=list[PullRequest])
async def list_pull_requests(
    owner: str,
    repo: str,
    context: Context,
    since: datetime | None = Query(default=None),
    until: datetime | None = Query(default=None),
) -> list[PullRequest]:
    """Pull requests opened in the window, each with its reviews."""
    return await context.interceptor.dispatch(
        Operation.GET_PULL_REQUESTS,
        {"repo": f"{owner}/{repo}", "window": build_window(since, until)},
    )


@router.get("/repositories/{owner}/{repo}/issues", response_model=list[Issue])
async def list_issues(
    owner: str,
    repo: str,
    context: Context,
    since: datetime | None = Query(default=None),
    until: datetime | None = Query(default=None),
) -> list[Issue]:
    """Issues (pull requests excluded) opened in the window."""
    return await context.interceptor.dispatch(
        Operation.GET_ISSUES,
        {"repo": f"{owner}/{repo}", "window": build_window(since, until)},
    )
