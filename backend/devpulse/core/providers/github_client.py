"""github_client.py — Live GitHub REST v3 hosting client.

Implements the HostingClient protocol over httpx. List endpoints are
followed through the ``Link: rel="next"`` header, capped at
GITHUB_MAX_PAGES pages of 100 items.

Error mapping (same classes the fault injector raises):
    transport failure / timeout         → NetworkError
    401                                 → AuthenticationError
    403 or 429 with rate limit exhausted → RateLimitExceeded
    404                                 → NotFound
    5xx                                 → ServerError
    anything else >= 400                → UpstreamError

Called by: interception.py (via registry) when the mode is LIVE
Depends on: httpx, protocols.py, errors.py
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from devpulse.config import Settings
from devpulse.core.errors import (
    AuthenticationError,
    NetworkError,
    NotFound,
    RateLimitExceeded,
    ServerError,
    UpstreamError,
)
from devpulse.core.protocols import RequestIdentity, TimeWindow
from devpulse.core.registry import register_provider
from devpulse.models.schemas import Commit, Issue, PullRequest, Repository, Review

logger = logging.getLogger(__name__)

_PER_PAGE = 100
_REVIEW_STATES = {"APPROVED", "CHANGES_REQUESTED", "COMMENTED"}


def _iso(window: TimeWindow | None, side: str) -> str | None:
    moment = getattr(window, side, None) if window else None
    return moment.isoformat() if moment else None


def raise_for_status(response: httpx.Response) -> None:
    """Translate an error response into the DevPulse upstream taxonomy."""
    status = response.status_code
    if status < 400:
        return

    message = response.reason_phrase
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        message = body["message"]

    if status == 401:
        raise AuthenticationError(f"GitHub rejected the credentials: {message}")
    if status in (403, 429):
        remaining = response.headers.get("x-ratelimit-remaining")
        if status == 429 or remaining == "0":
            raise RateLimitExceeded(
                f"GitHub rate limit exceeded: {message}",
                retry_after=_retry_after(response),
            )
    if status == 404:
        raise NotFound(f"GitHub resource not found: {message}")
    if status >= 500:
        raise ServerError(f"GitHub returned {status}: {message}")
    raise UpstreamError(f"GitHub returned {status}: {message}")


def _retry_after(response: httpx.Response) -> int | None:
    header = response.headers.get("retry-after")
    if header and header.isdigit():
        return int(header)
    reset = response.headers.get("x-ratelimit-reset")
    if reset and reset.isdigit():
        return max(0, int(reset) - int(time.time()))
    return None


class GitHubHostingClient:
    """Hosting client backed by the real GitHub API.

    Args:
        settings: Supplies the API URL, fallback token, timeout and page cap.
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token = settings.github_token
        self._max_pages = settings.github_max_pages
        self._client = httpx.AsyncClient(
            base_url=settings.github_api_url.rstrip("/"),
            timeout=settings.github_timeout_seconds,
            headers={
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "devpulse",
            },
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    # ─── Transport ────────────────────────────────────────────────────────────

    async def _get(
        self, url: str, params: dict[str, Any] | None, token: str | None
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            response = await self._client.get(url, params=params, headers=headers)
        except httpx.TransportError as exc:
            logger.warning("GitHub request to %s failed: %s", url, exc)
            raise NetworkError(f"Could not reach GitHub: {exc}") from exc
        raise_for_status(response)
        return response

    async def _paginate(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        token: str | None = None,
    ) -> list[dict[str, Any]]:
        query = {k: v for k, v in (params or {}).items() if v is not None}
        query["per_page"] = _PER_PAGE
        token = token or self._token

        items: list[dict[str, Any]] = []
        url: str | None = path
        pages = 0
        while url and pages < self._max_pages:
            response = await self._get(url, query if pages == 0 else None, token)
            items.extend(response.json())
            pages += 1
            url = response.links.get("next", {}).get("url")
        if url:
            logger.info("Stopped paginating %s after %d pages", path, pages)
        return items

    # ─── HostingClient ────────────────────────────────────────────────────────

    async def get_repositories(self, identity: RequestIdentity) -> list[Repository]:
        raw = await self._paginate(
            "/user/repos", {"sort": "updated"}, token=identity.access_token
        )
        return [Repository.model_validate(item) for item in raw]

    async def get_commits(self, repo: str, window: TimeWindow | None = None) -> list[Commit]:
        raw = await self._paginate(
            f"/repos/{repo}/commits",
            {"since": _iso(window, "since"), "until": _iso(window, "until")},
        )
        return [Commit.model_validate(item) for item in raw]

    async def get_pull_requests(
        self, repo: str, window: TimeWindow | None = None
    ) -> list[PullRequest]:
        raw = await self._paginate(
            f"/repos/{repo}/pulls", {"state": "all", "sort": "created", "direction": "desc"}
        )
        pulls = []
        for item in raw:
            pr = PullRequest.model_validate(item)
            if window is not None and not window.contains(pr.created_at):
                continue
            pr.reviews = await self._reviews(repo, pr.number)
            pulls.append(pr)
        return pulls

    async def _reviews(self, repo: str, number: int) -> list[Review]:
        raw = await self._paginate(f"/repos/{repo}/pulls/{number}/reviews")
        # Pending and dismissed reviews have no place in the response model.
        return [
            Review.model_validate(item)
            for item in raw
            if item.get("state") in _REVIEW_STATES and item.get("submitted_at")
        ]

    async def get_issues(self, repo: str, window: TimeWindow | None = None) -> list[Issue]:
        # `since` filters on updated_at, so it only narrows the fetch; the
        # created_at window is applied below.
        raw = await self._paginate(
            f"/repos/{repo}/issues", {"state": "all", "since": _iso(window, "since")}
        )
        issues = []
        for item in raw:
            if "pull_request" in item:
                continue
            issue = Issue.model_validate(item)
            if window is None or window.contains(issue.created_at):
                issues.append(issue)
        return issues


register_provider("hosting", "LIVE", lambda settings, dataset: GitHubHostingClient(settings))
