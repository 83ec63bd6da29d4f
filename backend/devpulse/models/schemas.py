"""Pydantic v2 schemas for hosting entities, datasets, sessions and API bodies.

Entity models follow the GitHub REST v3 field names. Both the live client and
the synthetic client return these exact types, which is what keeps LIVE and
MOCK/DEMO responses indistinguishable by shape.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from devpulse.core.errors import ValidationError

# ─── Hosting Entities ──────────────────────────────────────────────────────────


class _Entity(BaseModel):
    # GitHub payloads carry many more fields than we model.
    model_config = ConfigDict(extra="ignore")


class UserRef(_Entity):
    id: int
    login: str
    avatar_url: str = ""


class Repository(_Entity):
    id: int
    name: str
    full_name: str
    owner: UserRef
    private: bool = False
    html_url: str
    description: str | None = None
    default_branch: str = "main"
    created_at: datetime
    updated_at: datetime
    pushed_at: datetime | None = None
    language: str | None = None
    topics: list[str] = Field(default_factory=list)


class CommitSignature(_Entity):
    name: str
    email: str
    date: datetime


class CommitBody(_Entity):
    author: CommitSignature
    committer: CommitSignature
    message: str


class Commit(_Entity):
    sha: str
    commit: CommitBody
    author: UserRef | None = None
    committer: UserRef | None = None
    html_url: str


class Review(_Entity):
    id: int
    user: UserRef
    state: Literal["APPROVED", "CHANGES_REQUESTED", "COMMENTED"]
    submitted_at: datetime


class PullRequest(_Entity):
    id: int
    number: int
    title: str
    user: UserRef
    state: Literal["open", "closed"]
    created_at: datetime
    updated_at: datetime
    closed_at: datetime | None = None
    merged_at: datetime | None = None
    html_url: str
    draft: bool = False
    requested_reviewers: list[UserRef] = Field(default_factory=list)
    reviews: list[Review] = Field(default_factory=list)


class Label(_Entity):
    id: int
    name: str
    color: str = "ededed"


class Issue(_Entity):
    id: int
    number: int
    title: str
    user: UserRef
    state: Literal["open", "closed"]
    created_at: datetime
    updated_at: datetime
    closed_at: datetime | None = None
    html_url: str
    labels: list[Label] = Field(default_factory=list)


# ─── Synthetic Identities ──────────────────────────────────────────────────────


class SyntheticIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    handle: str
    display_name: str
    email: str
    role: str  # developer | team-lead | manager | contributor
    work_pattern: Literal["regular", "irregular", "overworked"]
    activity_level: Literal["low", "medium", "high"]
    avatar_ref: str

    def to_user_ref(self) -> UserRef:
        return UserRef(id=self.id, login=self.handle, avatar_url=self.avatar_ref)


class IdentityListing(SyntheticIdentity):
    current: bool = False


# ─── Datasets ──────────────────────────────────────────────────────────────────

_DATASET_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,63}$")


def validate_dataset_name(name: str) -> str:
    """Dataset names double as URL path segments and storage keys."""
    if not _DATASET_NAME.match(name or ""):
        raise ValidationError(
            f"Invalid dataset name '{name}'. Use 1-64 letters, digits, '.', '_' or '-'."
        )
    return name


class GenerationParameters(BaseModel):
    """Inputs to the synthetic data generator.

    Bounds are checked by the generator itself so a non-positive value is
    reported as a domain ``ValidationError`` before any output exists.
    """

    model_config = ConfigDict(frozen=True)

    repository_count: int = 5
    users_per_repository: int = 3
    time_range_days: int = 90
    activity_level: str = "medium"
    burnout_patterns_enabled: bool = True
    collaboration_patterns_enabled: bool = True
    seed: int | None = None


class Dataset(BaseModel):
    name: str
    generation_parameters: GenerationParameters
    generation_id: str
    generated_at: datetime
    identities: list[SyntheticIdentity]
    # repository full_name -> identity ids
    members_by_repo: dict[str, list[int]]
    repositories: list[Repository]
    commits_by_repo: dict[str, list[Commit]]
    pull_requests_by_repo: dict[str, list[PullRequest]]
    issues_by_repo: dict[str, list[Issue]]


class DatasetSummary(BaseModel):
    name: str
    generation_id: str
    generated_at: datetime
    generation_parameters: GenerationParameters
    repositories: int
    identities: int
    commits: int
    pull_requests: int
    issues: int

    @classmethod
    def from_dataset(cls, dataset: Dataset) -> DatasetSummary:
        return cls(
            name=dataset.name,
            generation_id=dataset.generation_id,
            generated_at=dataset.generated_at,
            generation_parameters=dataset.generation_parameters,
            repositories=len(dataset.repositories),
            identities=len(dataset.identities),
            commits=sum(len(v) for v in dataset.commits_by_repo.values()),
            pull_requests=sum(len(v) for v in dataset.pull_requests_by_repo.values()),
            issues=sum(len(v) for v in dataset.issues_by_repo.values()),
        )


# ─── Sessions ──────────────────────────────────────────────────────────────────


class SessionUser(BaseModel):
    id: str
    name: str
    email: str
    image: str
    username: str
    role: Literal["ADMINISTRATOR", "TEAM_LEAD", "DEVELOPER"]


class Session(BaseModel):
    """Same shape the OAuth session provider hands to the rest of the app."""

    user: SessionUser
    expires: datetime
    access_token: str
    provider: str = "github"


# ─── API Bodies ────────────────────────────────────────────────────────────────


class HealthResponse(BaseModel):
    status: str = "healthy"
    storage: str = "connected"
    mode: str
    version: str = "0.1.0"


class ErrorSimulationBody(BaseModel):
    enabled: bool = False
    rate: float = Field(default=0.1, ge=0.0, le=1.0)
    kinds: list[str] = Field(default_factory=list)
    min_delay_ms: int = Field(default=0, ge=0, le=30_000)
    max_delay_ms: int = Field(default=0, ge=0, le=30_000)


class AppModeUpdate(BaseModel):
    mode: Literal["LIVE", "MOCK", "DEMO"]
    dataset_id: str | None = None
    error_simulation: ErrorSimulationBody | None = None
    enabled_features: list[str] | None = None


class AppModeRead(BaseModel):
    mode: str
    dataset_id: str | None
    error_simulation: ErrorSimulationBody
    enabled_features: list[str]
    updated_at: datetime | None = None


class DatasetUpsert(BaseModel):
    # Upper bounds keep request latency bounded; the generator has no timeout.
    repository_count: int = Field(default=5, gt=0, le=50)
    users_per_repository: int = Field(default=3, gt=0, le=50)
    time_range_days: int = Field(default=90, gt=0, le=365)
    activity_level: Literal["low", "medium", "high"] = "medium"
    burnout_patterns_enabled: bool = True
    collaboration_patterns_enabled: bool = True
    seed: int | None = None

    def to_parameters(self) -> GenerationParameters:
        return GenerationParameters(**self.model_dump())


class IdentitySelect(BaseModel):
    identity_id: int


class BurnoutScore(BaseModel):
    login: str
    score: float
    late_night_ratio: float
    weekend_ratio: float
    work_hour_stddev: float
    median_review_latency_hours: float | None
    late_night_trend: float
