"""analytics.py — Burnout-risk scores for one repository's contributors.

Pulls commits and pull requests through the interceptor (so fault
simulation applies here too) and scores every login that authored,
opened or reviewed something in the window.

Called by: Frontend burnout page
Depends on: deps.py (Context), core/interception.py, analytics/burnout.py
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import structlog
from fastapi import APIRouter, Query

from devpulse.analytics.burnout import score_identities
from devpulse.api.deps import Context
from devpulse.api.routes.github import build_window
from devpulse.core.interception import Operation
from devpulse.core.protocols import TimeWindow
from devpulse.models.schemas import BurnoutScore

router = APIRouter(prefix="/api/v1/analytics", tags=["analytics"])
logger = structlog.get_logger()

_DEFAULT_LOOKBACK = timedelta(days=90)


@router.get("/burnout", response_model=list[BurnoutScore])
async def get_burnout_scores(
    context: Context,
    repo: str = Query(..., description="Repository in owner/name form"),
    since: datetime | None = Query(default=None),
    until: datetime | None = Query(default=None),
) -> list[BurnoutScore]:
    """Burnout scores for every contributor to ``repo``, highest risk first.

    Defaults to the last 90 days when no window is given.

    Raises:
        ValidationError: 422 if ``repo`` is not ``owner/name``.
        UpstreamError: Any hosting failure, real or simulated.
    """
    window = build_window(since, until)
    if window is None:
        now = datetime.now(UTC)
        window = TimeWindow(since=now - _DEFAULT_LOOKBACK, until=now)

    args = {"repo": repo, "window": window}
    commits = await context.interceptor.dispatch(Operation.GET_COMMITS, args)
    pulls = await context.interceptor.dispatch(Operation.GET_PULL_REQUESTS, args)

    logins: set[str] = {c.author.login for c in commits if c.author is not None}
    logins.update(p.user.login for p in pulls)
    logins.update(r.user.login for p in pulls for r in p.reviews)

    scores = score_identities(sorted(logins), commits, pulls, window)
    logger.info("burnout_scored", repo=repo, contributors=len(scores))
    return scores
