"""burnout.py — Burnout-risk heuristic over hosting activity.

Scores one developer from 0 (no signals) to 100 (every signal saturated)
using five factors extracted from their commits, pull requests and reviews:

    factor                 weight   saturates at
    late-night share        0.35    50% of activity between 21:00 and 06:00
    weekend share           0.25    40% of activity on Saturday/Sunday
    review latency          0.20    48h median time to review
    work-hour spread        0.10    6h standard deviation
    late-night trend        0.10    +50 points late share, second half vs first

Hours are read in UTC, the timezone activity timestamps are stored in.

Called by: api/routes/analytics.py, tests
Depends on: Nothing beyond the entity models
"""

from __future__ import annotations

import statistics
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from devpulse.core.protocols import TimeWindow
from devpulse.models.schemas import BurnoutScore, Commit, Dataset, PullRequest

WEIGHTS = {
    "late_night": 0.35,
    "weekend": 0.25,
    "review_latency": 0.20,
    "variance": 0.10,
    "trend": 0.10,
}

_LATE_NIGHT_START = 21
_LATE_NIGHT_END = 6


@dataclass(frozen=True)
class BurnoutSignals:
    login: str
    activity_count: int
    late_night_ratio: float
    weekend_ratio: float
    work_hour_stddev: float
    median_review_latency_hours: float | None
    late_night_trend: float


def _is_late(moment: datetime) -> bool:
    return moment.hour >= _LATE_NIGHT_START or moment.hour < _LATE_NIGHT_END


def _late_ratio(moments: list[datetime]) -> float:
    if not moments:
        return 0.0
    return sum(_is_late(m) for m in moments) / len(moments)


def _weekend_ratio(moments: list[datetime]) -> float:
    if not moments:
        return 0.0
    return sum(m.weekday() >= 5 for m in moments) / len(moments)


def extract_signals(
    login: str,
    commits: Iterable[Commit],
    pull_requests: Iterable[PullRequest],
    window: TimeWindow,
) -> BurnoutSignals:
    """Collect the raw signals for ``login`` inside ``window``.

    Activity is commits authored plus pull requests opened. Review latency
    is measured on reviews ``login`` submitted on other people's PRs.
    """
    pulls = list(pull_requests)
    moments = [
        c.commit.author.date
        for c in commits
        if c.author is not None
        and c.author.login == login
        and window.contains(c.commit.author.date)
    ]
    moments.extend(
        p.created_at for p in pulls if p.user.login == login and window.contains(p.created_at)
    )
    moments.sort()

    latencies = [
        (review.submitted_at - pr.created_at).total_seconds() / 3600
        for pr in pulls
        for review in pr.reviews
        if review.user.login == login and window.contains(review.submitted_at)
    ]

    # Circular-ish hours: 00:00-05:59 counts as late evening, not early morning.
    shifted_hours = [m.hour + 24 if m.hour < _LATE_NIGHT_END else m.hour for m in moments]

    trend = 0.0
    if moments and window.since is not None and window.until is not None:
        midpoint = window.since + (window.until - window.since) / 2
        first = [m for m in moments if m < midpoint]
        second = [m for m in moments if m >= midpoint]
        if first and second:
            trend = _late_ratio(second) - _late_ratio(first)

    return BurnoutSignals(
        login=login,
        activity_count=len(moments),
        late_night_ratio=_late_ratio(moments),
        weekend_ratio=_weekend_ratio(moments),
        work_hour_stddev=statistics.pstdev(shifted_hours) if len(shifted_hours) > 1 else 0.0,
        median_review_latency_hours=statistics.median(latencies) if latencies else None,
        late_night_trend=trend,
    )


def score_burnout(signals: BurnoutSignals) -> float:
    """Weighted 0-100 risk score."""
    if signals.activity_count == 0 and signals.median_review_latency_hours is None:
        return 0.0

    factors = {
        "late_night": min(1.0, signals.late_night_ratio / 0.5),
        "weekend": min(1.0, signals.weekend_ratio / 0.4),
        "review_latency": min(1.0, (signals.median_review_latency_hours or 0.0) / 48),
        "variance": min(1.0, signals.work_hour_stddev / 6),
        "trend": min(1.0, max(0.0, signals.late_night_trend / 0.5)),
    }
    score = sum(WEIGHTS[name] * value for name, value in factors.items()) * 100
    return round(score, 1)


def dataset_window(dataset: Dataset) -> TimeWindow:
    days = dataset.generation_parameters.time_range_days
    return TimeWindow(since=dataset.generated_at - timedelta(days=days), until=dataset.generated_at)


def score_identities(
    logins: Iterable[str],
    commits: list[Commit],
    pull_requests: list[PullRequest],
    window: TimeWindow,
) -> list[BurnoutScore]:
    """Score every login over the same activity, highest risk first."""
    scores = []
    for login in logins:
        signals = extract_signals(login, commits, pull_requests, window)
        scores.append(
            BurnoutScore(
                login=login,
                score=score_burnout(signals),
                late_night_ratio=round(signals.late_night_ratio, 3),
                weekend_ratio=round(signals.weekend_ratio, 3),
                work_hour_stddev=round(signals.work_hour_stddev, 2),
                median_review_latency_hours=(
                    round(signals.median_review_latency_hours, 2)
                    if signals.median_review_latency_hours is not None
                    else None
                ),
                late_night_trend=round(signals.late_night_trend, 3),
            )
        )
    return sorted(scores, key=lambda s: s.score, reverse=True)


def score_dataset(dataset: Dataset) -> dict[str, float]:
    """Burnout score per identity handle across every repository in the dataset."""
    commits = [c for repo_commits in dataset.commits_by_repo.values() for c in repo_commits]
    pulls = [p for repo_pulls in dataset.pull_requests_by_repo.values() for p in repo_pulls]
    window = dataset_window(dataset)
    return {
        identity.handle: score_burnout(extract_signals(identity.handle, commits, pulls, window))
        for identity in dataset.identities
    }
