"""Tests for the synthetic data generator (mock/generator.py).

Validates that generated datasets:
  - Are referentially complete and stay inside the activity window
  - Never share entity ids across generations, even with the same seed
  - Carry a visible burnout signal when burnout patterns are enabled
  - Route most reviews through one bottleneck reviewer in every other repository

Run with: cd backend && pytest tests/unit/test_generator.py -v
"""

from __future__ import annotations

from collections import Counter
from datetime import UTC, datetime, timedelta
from statistics import mean

import pytest

from devpulse.analytics.burnout import score_dataset
from devpulse.core.errors import ValidationError
from devpulse.mock.generator import SyntheticDataGenerator, validate_dataset
from devpulse.models.schemas import GenerationParameters

NOW = datetime(2025, 3, 14, 18, 30, tzinfo=UTC)


@pytest.fixture
def generator() -> SyntheticDataGenerator:
    return SyntheticDataGenerator()


def _all_commits(dataset):
    return [c for commits in dataset.commits_by_repo.values() for c in commits]


def _all_pulls(dataset):
    return [p for pulls in dataset.pull_requests_by_repo.values() for p in pulls]


def _all_issues(dataset):
    return [i for issues in dataset.issues_by_repo.values() for i in issues]


# ─── Scenario ─────────────────────────────────────────────────────────────────


class TestMediumScenario:
    """3 repositories × 2 users × 30 days at medium activity."""

    @pytest.fixture
    def dataset(self, generator):
        params = GenerationParameters(
            repository_count=3,
            users_per_repository=2,
            time_range_days=30,
            activity_level="medium",
            seed=42,
        )
        return generator.generate(params, name="scenario", now=NOW)

    def test_shape(self, dataset):
        assert dataset.name == "scenario"
        assert len(dataset.repositories) == 3
        assert all(len(members) == 2 for members in dataset.members_by_repo.values())
        assert set(dataset.commits_by_repo) == {r.full_name for r in dataset.repositories}
        assert len(_all_commits(dataset)) > 0

    def test_every_reference_resolves(self, dataset):
        identity_ids = {i.id for i in dataset.identities}
        repo_names = {r.full_name for r in dataset.repositories}

        assert set(dataset.members_by_repo) == repo_names
        for commit in _all_commits(dataset):
            assert commit.author.id in identity_ids
        for pull in _all_pulls(dataset):
            assert pull.user.id in identity_ids
            for review in pull.reviews:
                assert review.user.id in identity_ids
                assert review.user.id != pull.user.id
        for issue in _all_issues(dataset):
            assert issue.user.id in identity_ids

    def test_timestamps_inside_window(self, dataset):
        since = NOW - timedelta(days=30)
        moments = [c.commit.author.date for c in _all_commits(dataset)]
        moments += [p.created_at for p in _all_pulls(dataset)]
        moments += [r.submitted_at for p in _all_pulls(dataset) for r in p.reviews]
        moments += [i.created_at for i in _all_issues(dataset)]

        assert moments
        assert all(since <= m <= NOW for m in moments)

    def test_merged_after_created(self, dataset):
        for pull in _all_pulls(dataset):
            if pull.merged_at is not None:
                assert pull.merged_at > pull.created_at
                assert pull.state == "closed"

    def test_numbers_shared_between_pulls_and_issues(self, dataset):
        for repo in dataset.repositories:
            numbers = [p.number for p in dataset.pull_requests_by_repo[repo.full_name]]
            numbers += [i.number for i in dataset.issues_by_repo[repo.full_name]]
            assert sorted(numbers) == list(range(1, len(numbers) + 1))

    def test_passes_dataset_validation(self, dataset):
        validate_dataset(dataset)


# ─── Identifiers & Seeds ──────────────────────────────────────────────────────


def test_regeneration_never_reuses_entity_ids(generator, small_params):
    """Two runs with the same seed share shape but no ids or shas."""
    first = generator.generate(small_params, now=NOW)
    second = generator.generate(small_params, now=NOW)

    assert first.generation_id != second.generation_id
    assert not {c.sha for c in _all_commits(first)} & {c.sha for c in _all_commits(second)}
    assert not {p.id for p in _all_pulls(first)} & {p.id for p in _all_pulls(second)}
    assert not {r.id for r in first.repositories} & {r.id for r in second.repositories}


def test_same_seed_reproduces_activity_pattern(generator, small_params):
    first = generator.generate(small_params, now=NOW)
    second = generator.generate(small_params, now=NOW)

    assert [r.full_name for r in first.repositories] == [r.full_name for r in second.repositories]
    assert [c.commit.author.date for c in _all_commits(first)] == [
        c.commit.author.date for c in _all_commits(second)
    ]


def test_more_users_than_catalog_adds_generated_identities(generator):
    params = GenerationParameters(
        repository_count=1, users_per_repository=14, time_range_days=7, seed=3
    )
    dataset = generator.generate(params, now=NOW)

    assert len(dataset.identities) == 14
    handles = [i.handle for i in dataset.identities]
    assert len(set(handles)) == len(handles)


# ─── Patterns ─────────────────────────────────────────────────────────────────


def test_burnout_patterns_raise_scores(generator):
    """Burnout-enabled datasets score materially higher than disabled ones."""
    base = dict(
        repository_count=3,
        users_per_repository=4,
        time_range_days=60,
        activity_level="medium",
        collaboration_patterns_enabled=True,
        seed=2024,
    )
    enabled = generator.generate(
        GenerationParameters(**base, burnout_patterns_enabled=True), now=NOW
    )
    disabled = generator.generate(
        GenerationParameters(**base, burnout_patterns_enabled=False), now=NOW
    )

    enabled_scores = score_dataset(enabled)
    disabled_scores = score_dataset(disabled)

    assert max(enabled_scores.values()) >= max(disabled_scores.values()) + 20
    assert mean(enabled_scores.values()) > mean(disabled_scores.values())


def test_disabled_patterns_keep_office_hours(generator):
    params = GenerationParameters(
        repository_count=2,
        users_per_repository=3,
        time_range_days=30,
        burnout_patterns_enabled=False,
        collaboration_patterns_enabled=False,
        seed=11,
    )
    dataset = generator.generate(params, now=NOW)

    hours = [c.commit.author.date.hour for c in _all_commits(dataset)]
    assert hours
    assert all(8 <= hour <= 18 for hour in hours)


def _top_reviewer_shares(dataset) -> list[float]:
    """Per repository, the busiest identity's share of single-review pull requests."""
    shares = []
    for pulls in dataset.pull_requests_by_repo.values():
        reviewers = Counter(p.reviews[0].user.id for p in pulls if len(p.reviews) == 1)
        total = sum(reviewers.values())
        assert total >= 30
        shares.append(max(reviewers.values()) / total)
    return shares


def test_collaboration_patterns_concentrate_reviews(generator):
    """Every other repository funnels most reviews through one bottleneck reviewer."""
    base = dict(
        repository_count=4,
        users_per_repository=5,
        time_range_days=90,
        activity_level="high",
        burnout_patterns_enabled=False,
        seed=77,
    )
    enabled = generator.generate(
        GenerationParameters(**base, collaboration_patterns_enabled=True), now=NOW
    )
    disabled = generator.generate(
        GenerationParameters(**base, collaboration_patterns_enabled=False), now=NOW
    )

    enabled_shares = _top_reviewer_shares(enabled)
    assert sum(share >= 0.5 for share in enabled_shares) == 2
    assert sum(share < 0.4 for share in enabled_shares) == 2

    assert all(share < 0.4 for share in _top_reviewer_shares(disabled))


# ─── Validation ───────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("repository_count", 0),
        ("users_per_repository", -1),
        ("time_range_days", 0),
        ("activity_level", "extreme"),
    ],
)
def test_invalid_parameters_rejected(generator, field, value):
    params = GenerationParameters(**{field: value})

    with pytest.raises(ValidationError) as exc_info:
        generator.generate(params, now=NOW)

    assert any(field in problem for problem in exc_info.value.problems)


def test_validate_dataset_reports_broken_references(generator, small_params):
    dataset = generator.generate(small_params, now=NOW)
    broken = dataset.model_copy(
        update={"members_by_repo": {**dataset.members_by_repo, "ghost/repo": [999999]}}
    )

    with pytest.raises(ValidationError) as exc_info:
        validate_dataset(broken)

    problems = " ".join(exc_info.value.problems)
    assert "ghost/repo" in problems
    assert "999999" in problems


def test_validate_dataset_reports_out_of_window_activity(generator, small_params):
    dataset = generator.generate(small_params, now=NOW)
    repo = dataset.repositories[0].full_name
    commits = dataset.commits_by_repo[repo]
    assert commits
    early = commits[0].model_copy(
        update={
            "commit": commits[0].commit.model_copy(
                update={
                    "author": commits[0].commit.author.model_copy(
                        update={"date": NOW - timedelta(days=400)}
                    )
                }
            )
        }
    )
    broken = dataset.model_copy(
        update={"commits_by_repo": {**dataset.commits_by_repo, repo: [early, *commits[1:]]}}
    )

    with pytest.raises(ValidationError, match="failed integrity checks"):
        validate_dataset(broken)
