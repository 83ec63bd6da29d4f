"""synthetic_client.py — Hosting client that serves slices of a Dataset.

Returns the same pydantic models and raises the same errors as the live
GitHub client. Lists come back newest first, as GitHub orders them.

Called by: interception.py (via registry) when the mode is MOCK or DEMO
Depends on: protocols.py, errors.py
"""

from __future__ import annotations

from devpulse.config import Settings
from devpulse.core.errors import NotFound
from devpulse.core.protocols import RequestIdentity, TimeWindow
from devpulse.core.registry import register_provider
from devpulse.models.schemas import Commit, Dataset, Issue, PullRequest, Repository


class SyntheticHostingClient:
    """Read-only view over one dataset. Returned entities must not be mutated."""

    def __init__(self, dataset: Dataset) -> None:
        self._dataset = dataset
        self._repos = {repo.full_name: repo for repo in dataset.repositories}

    def _require_repo(self, repo: str) -> None:
        if repo not in self._repos:
            raise NotFound(f"Repository '{repo}' not found.")

    async def get_repositories(self, identity: RequestIdentity) -> list[Repository]:
        members = self._dataset.members_by_repo
        return [
            repo
            for repo in self._dataset.repositories
            if identity.id in members.get(repo.full_name, ())
        ]

    async def get_commits(self, repo: str, window: TimeWindow | None = None) -> list[Commit]:
        self._require_repo(repo)
        window = window or TimeWindow()
        commits = [
            c
            for c in self._dataset.commits_by_repo.get(repo, [])
            if window.contains(c.commit.author.date)
        ]
        return sorted(commits, key=lambda c: c.commit.author.date, reverse=True)

    async def get_pull_requests(
        self, repo: str, window: TimeWindow | None = None
    ) -> list[PullRequest]:
        self._require_repo(repo)
        window = window or TimeWindow()
        pulls = [
            p
            for p in self._dataset.pull_requests_by_repo.get(repo, [])
            if window.contains(p.created_at)
        ]
        return sorted(pulls, key=lambda p: p.created_at, reverse=True)

    async def get_issues(self, repo: str, window: TimeWindow | None = None) -> list[Issue]:
        self._require_repo(repo)
        window = window or TimeWindow()
        issues = [
            i for i in self._dataset.issues_by_repo.get(repo, []) if window.contains(i.created_at)
        ]
        return sorted(issues, key=lambda i: i.created_at, reverse=True)


def _build(settings: Settings, dataset: Dataset | None) -> SyntheticHostingClient:
    if dataset is None:
        raise ValueError("SyntheticHostingClient requires a dataset")
    return SyntheticHostingClient(dataset)


register_provider("hosting", "MOCK", _build)
register_provider("hosting", "DEMO", _build)
