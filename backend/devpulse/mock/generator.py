"""generator.py — Pattern-bearing synthetic GitHub data.

Builds a complete, self-consistent entity graph (repositories, commits,
pull requests with reviews, issues) from ``GenerationParameters``. Activity
is produced day by day for every repository × member pair, so hour-of-day,
weekend and review-latency distributions can be shaped per identity:

    baseline      → weekday office hours, quiet weekends
    burnout       → late-night and weekend share rising across the second
                    half of the window, slower reviews, wider hour spread
    bottleneck    → one reviewer absorbs most reviews in the repository
    healthy       → reviews spread evenly over the other members

Two RNGs are used. The pattern RNG (and Faker) follow ``params.seed`` so a
seeded dataset has reproducible shape. Entity ids and shas come from an RNG
keyed on the per-run ``generation_id``, so two generations never share
entity identifiers even with the same seed.

Called by: datasets.py (get_or_create, reset), scripts and tests
Depends on: identities.py, Faker
"""

from __future__ import annotations

import logging
import math
import random
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time, timedelta

from faker import Faker

from devpulse.core.errors import ValidationError
from devpulse.mock.identities import GENERATED_ID_START, get_catalog
from devpulse.models.schemas import (
    Commit,
    CommitBody,
    CommitSignature,
    Dataset,
    GenerationParameters,
    Issue,
    Label,
    PullRequest,
    Repository,
    Review,
    SyntheticIdentity,
    UserRef,
)

logger = logging.getLogger(__name__)

# ─── Rates ────────────────────────────────────────────────────────────────────
# Mean events per member per weekday, by dataset activity level.

ACTIVITY_LEVELS = ("low", "medium", "high")

_COMMITS_PER_DAY = {"low": 0.4, "medium": 1.2, "high": 2.5}
_PULLS_PER_DAY = {"low": 0.1, "medium": 0.25, "high": 0.5}
_ISSUES_PER_DAY = {"low": 0.08, "medium": 0.2, "high": 0.35}

# Scales the dataset rate by the identity's own activity level.
_IDENTITY_MULTIPLIER = {"low": 0.6, "medium": 1.0, "high": 1.4}

_BASELINE_WEEKEND_FACTOR = 0.1
_LATE_NIGHT_HOURS = (21, 22, 23, 0, 1, 2)
_BOTTLENECK_SHARE = 0.8
_BURNOUT_SHARE = 0.25

# ─── Content Vocabulary ───────────────────────────────────────────────────────

_REPO_PREFIXES = ("project", "app", "service", "api", "lib", "tool", "framework", "sdk")
_REPO_SUFFIXES = ("core", "ui", "server", "client", "web", "mobile", "data", "utils", "common")
_LANGUAGES = ("JavaScript", "TypeScript", "Python", "Java", "Go", "Ruby", "PHP", "C#", "Rust", None)
_TOPICS = (
    "api", "rest", "graphql", "database", "postgresql", "frontend", "backend",
    "fullstack", "web", "mobile", "cloud", "aws", "docker", "kubernetes",
    "devops", "ci-cd", "testing", "automation", "machine-learning", "security",
    "performance", "accessibility",
)
_COMMIT_TYPES = ("feat", "fix", "docs", "style", "refactor", "test", "chore")
_COMMIT_SCOPES = ("core", "ui", "api", "auth", "data", "config", "build", "deps")
_PR_PREFIXES = (
    "Add", "Fix", "Update", "Improve", "Refactor", "Implement",
    "Remove", "Optimize", "Simplify", "Enhance",
)
_ISSUE_PREFIXES = ("Bug:", "Feature:", "Enhancement:", "Documentation:", "Performance:")
_LABELS = (
    ("bug", "d73a4a"),
    ("enhancement", "a2eeef"),
    ("documentation", "0075ca"),
    ("help wanted", "008672"),
    ("good first issue", "7057ff"),
    ("question", "d876e3"),
    ("duplicate", "cfd3d7"),
    ("performance", "fbca04"),
    ("security", "b60205"),
    ("dependencies", "5319e7"),
)


# ─── Validation ───────────────────────────────────────────────────────────────


def validate_parameters(params: GenerationParameters) -> None:
    """Reject unusable parameters before any output is produced."""
    problems = []
    if params.repository_count <= 0:
        problems.append("repository_count must be a positive integer")
    if params.users_per_repository <= 0:
        problems.append("users_per_repository must be a positive integer")
    if params.time_range_days <= 0:
        problems.append("time_range_days must be a positive integer")
    if params.activity_level not in ACTIVITY_LEVELS:
        problems.append(f"activity_level must be one of {list(ACTIVITY_LEVELS)}")
    if problems:
        raise ValidationError("Invalid generation parameters: " + "; ".join(problems), problems)


def validate_dataset(dataset: Dataset) -> None:
    """Check referential integrity and time bounds of a whole dataset.

    Every commit, pull request, review and issue must reference a repository
    and an identity of the same dataset, every activity timestamp must lie in
    ``[generated_at - time_range_days, generated_at]``, and a merged pull
    request must merge after it was created.

    Raises:
        ValidationError: With one entry per problem found.
    """
    problems: list[str] = []
    days = dataset.generation_parameters.time_range_days
    if days <= 0:
        raise ValidationError(
            "Invalid dataset: time_range_days must be positive",
            ["generation_parameters.time_range_days must be positive"],
        )
    until = dataset.generated_at
    if until.tzinfo is None:
        raise ValidationError(
            "Invalid dataset: generated_at must carry a timezone",
            ["generated_at must be timezone-aware"],
        )
    since = until - timedelta(days=days)

    identity_ids = {i.id for i in dataset.identities}
    if len(identity_ids) != len(dataset.identities):
        problems.append("identities contain duplicate ids")

    repo_names = [r.full_name for r in dataset.repositories]
    known_repos = set(repo_names)
    if len(known_repos) != len(repo_names):
        problems.append("repositories contain duplicate full names")

    for repo_name, member_ids in dataset.members_by_repo.items():
        if repo_name not in known_repos:
            problems.append(f"members_by_repo references unknown repository {repo_name}")
        for member_id in member_ids:
            if member_id not in identity_ids:
                problems.append(f"{repo_name}: member {member_id} is not a dataset identity")

    def check_user(where: str, user: UserRef | None) -> None:
        if user is None:
            problems.append(f"{where}: missing user reference")
        elif user.id not in identity_ids:
            problems.append(f"{where}: unknown identity {user.id}")

    def check_time(where: str, moment: datetime | None) -> None:
        if moment is None:
            return
        if moment.tzinfo is None:
            problems.append(f"{where}: timestamp {moment.isoformat()} has no timezone")
        elif not since <= moment <= until:
            problems.append(f"{where}: timestamp {moment.isoformat()} outside dataset window")

    for repo_name, commits in dataset.commits_by_repo.items():
        if repo_name not in known_repos:
            problems.append(f"commits reference unknown repository {repo_name}")
        for commit in commits:
            where = f"{repo_name} commit {commit.sha[:7]}"
            check_user(where, commit.author)
            check_time(where, commit.commit.author.date)

    for repo_name, pulls in dataset.pull_requests_by_repo.items():
        if repo_name not in known_repos:
            problems.append(f"pull requests reference unknown repository {repo_name}")
        for pr in pulls:
            where = f"{repo_name} PR #{pr.number}"
            check_user(where, pr.user)
            for moment in (pr.created_at, pr.updated_at, pr.closed_at, pr.merged_at):
                check_time(where, moment)
            if pr.merged_at is not None and pr.merged_at <= pr.created_at:
                problems.append(f"{where}: merged_at is not after created_at")
            for reviewer in pr.requested_reviewers:
                check_user(f"{where} requested reviewer", reviewer)
            for review in pr.reviews:
                check_user(f"{where} review {review.id}", review.user)
                check_time(f"{where} review {review.id}", review.submitted_at)

    for repo_name, issues in dataset.issues_by_repo.items():
        if repo_name not in known_repos:
            problems.append(f"issues reference unknown repository {repo_name}")
        for issue in issues:
            where = f"{repo_name} issue #{issue.number}"
            check_user(where, issue.user)
            for moment in (issue.created_at, issue.updated_at, issue.closed_at):
                check_time(where, moment)

    if problems:
        raise ValidationError(
            f"Dataset '{dataset.name}' failed integrity checks ({len(problems)} problems)",
            problems,
        )


# ─── Generator ────────────────────────────────────────────────────────────────


@dataclass
class _RepoPlan:
    """Mutable scratch state for one repository while its activity is built."""

    name: str
    full_name: str
    members: list[SyntheticIdentity]
    bottleneck: SyntheticIdentity | None
    commits: list[Commit] = field(default_factory=list)
    # (created_at, kind, payload). PRs and issues share one number sequence,
    # so they are numbered together once all are generated.
    numbered: list[tuple[datetime, str, dict]] = field(default_factory=list)


class SyntheticDataGenerator:
    """Builds ``Dataset`` objects from ``GenerationParameters``.

    Args:
        catalog: Identities to draw members from. Defaults to the static catalog.

    Generation is CPU-bound and synchronous; async callers run it in a
    worker thread (see ``DatasetStore``).
    """

    def __init__(self, catalog: Iterable[SyntheticIdentity] | None = None) -> None:
        self._catalog = list(catalog) if catalog is not None else get_catalog()

    def generate(
        self,
        params: GenerationParameters,
        name: str = "default",
        now: datetime | None = None,
    ) -> Dataset:
        """Generate a complete dataset.

        Args:
            params: Generation parameters. Validated before anything is built.
            name: Dataset name stored on the result.
            now: End of the activity window. Defaults to the current time.

        Raises:
            ValidationError: Non-positive counts or an unknown activity level.
        """
        validate_parameters(params)

        now = (now or datetime.now(UTC)).replace(microsecond=0)
        window_start = now - timedelta(days=params.time_range_days)
        generation_id = uuid.uuid4().hex

        run = _GenerationRun(
            params=params,
            catalog=self._catalog,
            now=now,
            window_start=window_start,
            generation_id=generation_id,
        )
        dataset = run.build(name)

        validate_dataset(dataset)
        logger.info(
            "Generated dataset %s (%d repos, %d identities, generation=%s)",
            name,
            len(dataset.repositories),
            len(dataset.identities),
            generation_id,
        )
        return dataset


class _GenerationRun:
    """All state for a single ``generate()`` call."""

    def __init__(
        self,
        params: GenerationParameters,
        catalog: list[SyntheticIdentity],
        now: datetime,
        window_start: datetime,
        generation_id: str,
    ) -> None:
        self.params = params
        self.now = now
        self.window_start = window_start
        self.generation_id = generation_id
        self.total_seconds = (now - window_start).total_seconds()

        self.rng = random.Random(params.seed)
        self.faker = Faker()
        self.faker.seed_instance(self.rng.getrandbits(32))

        # Ids and shas are keyed on the run, never on the seed.
        self.id_rng = random.Random(generation_id)
        self._next_id = self.id_rng.randrange(1 << 32, 1 << 52)

        self.pool = list(catalog)
        self.burnout_ids: set[int] = set()
        self.irregular_ids: set[int] = set()

    # ─── Identifiers ──────────────────────────────────────────────────────────

    def new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def new_sha(self) -> str:
        return f"{self.id_rng.getrandbits(160):040x}"

    # ─── Build ────────────────────────────────────────────────────────────────

    def build(self, name: str) -> Dataset:
        params = self.params
        self._extend_pool(params.users_per_repository)

        plans = []
        taken_names: set[str] = set()
        for index in range(params.repository_count):
            members = self.rng.sample(self.pool, params.users_per_repository)
            bottleneck = None
            if params.collaboration_patterns_enabled and index % 2 == 0 and len(members) > 2:
                bottleneck = self.rng.choice(members)
            repo_name = self._repository_name(taken_names)
            owner = members[0]
            plans.append(
                _RepoPlan(
                    name=repo_name,
                    full_name=f"{owner.handle}/{repo_name}",
                    members=members,
                    bottleneck=bottleneck,
                )
            )

        assigned = {m.id: m for plan in plans for m in plan.members}
        identities = sorted(assigned.values(), key=lambda i: i.id)
        if params.burnout_patterns_enabled:
            self.burnout_ids = self._pick_burnout_subset(identities)
            self.irregular_ids = {
                i.id for i in identities
                if i.work_pattern == "irregular" and i.id not in self.burnout_ids
            }

        repositories = []
        commits_by_repo: dict[str, list[Commit]] = {}
        pulls_by_repo: dict[str, list[PullRequest]] = {}
        issues_by_repo: dict[str, list[Issue]] = {}
        for plan in plans:
            for member in plan.members:
                self._simulate_member(plan, member)
            plan.commits.sort(key=lambda c: c.commit.author.date)
            pulls, issues = self._number_items(plan)
            commits_by_repo[plan.full_name] = plan.commits
            pulls_by_repo[plan.full_name] = pulls
            issues_by_repo[plan.full_name] = issues
            repositories.append(self._repository(plan, pulls, issues))

        return Dataset(
            name=name,
            generation_parameters=params,
            generation_id=self.generation_id,
            generated_at=self.now,
            identities=identities,
            members_by_repo={p.full_name: [m.id for m in p.members] for p in plans},
            repositories=repositories,
            commits_by_repo=commits_by_repo,
            pull_requests_by_repo=pulls_by_repo,
            issues_by_repo=issues_by_repo,
        )

    def _extend_pool(self, needed: int) -> None:
        next_id = GENERATED_ID_START
        handles = {identity.handle for identity in self.pool}
        while len(self.pool) < needed:
            first, last = self.faker.first_name(), self.faker.last_name()
            handle = f"{first}-{last}".lower().replace(" ", "-")
            if handle in handles:
                handle = f"{handle}-{next_id}"
            handles.add(handle)
            self.pool.append(
                SyntheticIdentity(
                    id=next_id,
                    handle=handle,
                    display_name=f"{first} {last}",
                    email=f"{first}.{last}@example.com".lower().replace(" ", ""),
                    role="developer",
                    work_pattern=self.rng.choices(
                        ("regular", "irregular", "overworked"), weights=(6, 2.5, 1.5)
                    )[0],
                    activity_level=self.rng.choice(ACTIVITY_LEVELS),
                    avatar_ref=f"https://avatars.githubusercontent.com/u/{next_id}",
                )
            )
            next_id += 1

    def _pick_burnout_subset(self, identities: list[SyntheticIdentity]) -> set[int]:
        overworked = {i.id for i in identities if i.work_pattern == "overworked"}
        if overworked:
            return overworked
        size = max(1, round(len(identities) * _BURNOUT_SHARE))
        return {i.id for i in self.rng.sample(identities, size)}

    # ─── Per-member Activity ──────────────────────────────────────────────────

    def _simulate_member(self, plan: _RepoPlan, member: SyntheticIdentity) -> None:
        level = self.params.activity_level
        scale = _IDENTITY_MULTIPLIER[member.activity_level]
        burnout = member.id in self.burnout_ids

        day = self.window_start.date()
        while day <= self.now.date():
            intensity = self._intensity(day) if burnout else 0.0
            weekend_factor = self._weekend_factor(day, burnout, intensity)

            for _ in range(self._poisson(_COMMITS_PER_DAY[level] * scale * weekend_factor)):
                moment = self._timestamp(day, member, intensity)
                if moment is not None:
                    plan.commits.append(self._commit(plan, member, moment))

            for _ in range(self._poisson(_PULLS_PER_DAY[level] * scale * weekend_factor)):
                moment = self._timestamp(day, member, intensity)
                if moment is not None:
                    plan.numbered.append((moment, "pull", self._pull_payload(plan, member, moment)))

            for _ in range(self._poisson(_ISSUES_PER_DAY[level] * scale * weekend_factor)):
                moment = self._timestamp(day, member, intensity)
                if moment is not None:
                    plan.numbered.append((moment, "issue", self._issue_payload(member, moment)))

            day += timedelta(days=1)

    def _intensity(self, day: date) -> float:
        """0 through the first half of the window, rising linearly to 1 at the end."""
        midday = datetime.combine(day, time(12), tzinfo=UTC)
        progress = (midday - self.window_start).total_seconds() / self.total_seconds
        return min(1.0, max(0.0, (progress - 0.5) * 2))

    def _weekend_factor(self, day: date, burnout: bool, intensity: float) -> float:
        if day.weekday() < 5:
            return 1.0
        if burnout:
            return 0.3 + 0.7 * intensity
        return _BASELINE_WEEKEND_FACTOR

    def _hour(self, member: SyntheticIdentity, intensity: float) -> int:
        if member.id in self.burnout_ids:
            if self.rng.random() < 0.25 + 0.55 * intensity:
                return self.rng.choice(_LATE_NIGHT_HOURS)
            return min(23, max(6, round(self.rng.gauss(13, 4))))
        if member.id in self.irregular_ids:
            return min(23, max(7, round(self.rng.gauss(14, 3.5))))
        return min(18, max(8, round(self.rng.gauss(13, 2.2))))

    def _timestamp(
        self, day: date, member: SyntheticIdentity, intensity: float
    ) -> datetime | None:
        """A moment on ``day`` shaped by the member's pattern, or None if outside the window."""
        moment = datetime.combine(
            day,
            time(self._hour(member, intensity), self.rng.randrange(60), self.rng.randrange(60)),
            tzinfo=UTC,
        )
        if moment < self.window_start or moment > self.now:
            return None
        return moment

    def _poisson(self, mean: float) -> int:
        if mean <= 0:
            return 0
        threshold = math.exp(-mean)
        count, product = 0, self.rng.random()
        while product > threshold:
            count += 1
            product *= self.rng.random()
        return count

    # ─── Entities ─────────────────────────────────────────────────────────────

    def _commit(self, plan: _RepoPlan, member: SyntheticIdentity, moment: datetime) -> Commit:
        sha = self.new_sha()
        signature = CommitSignature(name=member.display_name, email=member.email, date=moment)
        ref = member.to_user_ref()
        return Commit(
            sha=sha,
            commit=CommitBody(author=signature, committer=signature, message=self._commit_message()),
            author=ref,
            committer=ref,
            html_url=f"https://github.com/{plan.full_name}/commit/{sha}",
        )

    def _pull_payload(self, plan: _RepoPlan, author: SyntheticIdentity, created: datetime) -> dict:
        reviewers = self._pick_reviewers(plan, author)
        reviews: list[Review] = []
        for position, reviewer in enumerate(reviewers):
            submitted = created + timedelta(hours=self._review_latency(reviewer, created))
            if submitted > self.now:
                continue
            if position == 0:
                state = self.rng.choices(
                    ("APPROVED", "CHANGES_REQUESTED", "COMMENTED"), weights=(75, 15, 10)
                )[0]
            else:
                state = "COMMENTED"
            reviews.append(
                Review(id=self.new_id(), user=reviewer.to_user_ref(), state=state, submitted_at=submitted)
            )
        reviews.sort(key=lambda r: r.submitted_at)

        merged_at = closed_at = None
        approved = any(r.state == "APPROVED" for r in reviews)
        if reviews:
            last_review = reviews[-1].submitted_at
            finished = last_review + timedelta(seconds=self.rng.randint(60, 8 * 3600))
            if finished <= self.now:
                if approved and self.rng.random() < 0.85:
                    merged_at = closed_at = finished
                elif self.rng.random() < 0.15:
                    closed_at = finished

        pending = [] if reviews else [r.to_user_ref() for r in reviewers]
        updated = max([created, *(r.submitted_at for r in reviews), closed_at or created])
        return {
            "id": self.new_id(),
            "title": self._pull_title(),
            "user": author.to_user_ref(),
            "state": "closed" if closed_at else "open",
            "created_at": created,
            "updated_at": updated,
            "closed_at": closed_at,
            "merged_at": merged_at,
            "draft": closed_at is None and self.rng.random() < 0.1,
            "requested_reviewers": pending,
            "reviews": reviews,
        }

    def _pick_reviewers(
        self, plan: _RepoPlan, author: SyntheticIdentity
    ) -> list[SyntheticIdentity]:
        others = [m for m in plan.members if m.id != author.id]
        if not others:
            return []
        if (
            plan.bottleneck is not None
            and plan.bottleneck.id != author.id
            and self.rng.random() < _BOTTLENECK_SHARE
        ):
            first = plan.bottleneck
        else:
            first = self.rng.choice(others)
        chosen = [first]
        rest = [m for m in others if m.id != first.id]
        if rest and self.rng.random() < 0.3:
            chosen.append(self.rng.choice(rest))
        return chosen

    def _review_latency(self, reviewer: SyntheticIdentity, created: datetime) -> float:
        """Hours between PR creation and this reviewer's review."""
        hours = 0.5 + self.rng.expovariate(1 / 6)
        if reviewer.id in self.burnout_ids:
            hours *= 1.5 + 2 * self._intensity(created.date())
        return hours

    def _issue_payload(self, author: SyntheticIdentity, created: datetime) -> dict:
        closed_at = None
        if self.rng.random() < 0.6:
            candidate = created + timedelta(hours=0.25 + self.rng.expovariate(1 / 72))
            if candidate <= self.now:
                closed_at = candidate
        labels = self.rng.sample(_LABELS, self.rng.randint(0, 3))
        return {
            "id": self.new_id(),
            "title": self._issue_title(),
            "user": author.to_user_ref(),
            "state": "closed" if closed_at else "open",
            "created_at": created,
            "updated_at": closed_at or created,
            "closed_at": closed_at,
            "labels": labels,
        }

    def _number_items(self, plan: _RepoPlan) -> tuple[list[PullRequest], list[Issue]]:
        pulls: list[PullRequest] = []
        issues: list[Issue] = []
        label_ids: dict[str, int] = {}
        plan.numbered.sort(key=lambda item: item[0])
        for number, (_, kind, payload) in enumerate(plan.numbered, start=1):
            if kind == "pull":
                pulls.append(
                    PullRequest(
                        number=number,
                        html_url=f"https://github.com/{plan.full_name}/pull/{number}",
                        **payload,
                    )
                )
                continue
            labels = [
                Label(id=label_ids.setdefault(name, self.new_id()), name=name, color=color)
                for name, color in payload.pop("labels")
            ]
            issues.append(
                Issue(
                    number=number,
                    html_url=f"https://github.com/{plan.full_name}/issues/{number}",
                    labels=labels,
                    **payload,
                )
            )
        return pulls, issues

    def _repository(
        self, plan: _RepoPlan, pulls: list[PullRequest], issues: list[Issue]
    ) -> Repository:
        created = self.window_start - timedelta(days=self.rng.randint(30, 700))
        pushed = plan.commits[-1].commit.author.date if plan.commits else None
        activity = [created]
        if pushed:
            activity.append(pushed)
        activity.extend(p.updated_at for p in pulls)
        activity.extend(i.updated_at for i in issues)
        owner = plan.members[0]
        return Repository(
            id=self.new_id(),
            name=plan.name,
            full_name=plan.full_name,
            owner=owner.to_user_ref(),
            private=self.rng.random() < 0.3,
            html_url=f"https://github.com/{plan.full_name}",
            description=self.faker.sentence(nb_words=8),
            default_branch=self.rng.choice(("main", "main", "master")),
            created_at=created,
            updated_at=max(activity),
            pushed_at=pushed,
            language=self.rng.choice(_LANGUAGES),
            topics=self.rng.sample(_TOPICS, self.rng.randint(0, 5)),
        )

    # ─── Text ─────────────────────────────────────────────────────────────────

    def _repository_name(self, taken: set[str]) -> str:
        for _ in range(20):
            noun = self.faker.word().lower()
            if self.rng.random() < 0.7:
                candidate = f"{self.rng.choice(_REPO_PREFIXES)}-{noun}"
            else:
                candidate = f"{noun}-{self.rng.choice(_REPO_SUFFIXES)}"
            if candidate not in taken:
                break
        else:
            candidate = f"{candidate}-{len(taken) + 1}"
        taken.add(candidate)
        return candidate

    def _sentence(self, words: int) -> str:
        return self.faker.sentence(nb_words=words).rstrip(".")

    def _commit_message(self) -> str:
        if self.rng.random() < 0.7:
            scope = f"({self.rng.choice(_COMMIT_SCOPES)})" if self.rng.random() < 0.6 else ""
            return f"{self.rng.choice(_COMMIT_TYPES)}{scope}: {self._sentence(6).lower()}"
        return self._sentence(6)

    def _pull_title(self) -> str:
        if self.rng.random() < 0.8:
            words = " ".join(self.faker.words(nb=self.rng.randint(2, 6)))
            return f"{self.rng.choice(_PR_PREFIXES)} {words}"
        return self._sentence(6)

    def _issue_title(self) -> str:
        if self.rng.random() < 0.6:
            words = " ".join(self.faker.words(nb=self.rng.randint(3, 8)))
            return f"{self.rng.choice(_ISSUE_PREFIXES)} {words}"
        if self.rng.random() < 0.3:
            return self._sentence(7) + "?"
        return self._sentence(7)
