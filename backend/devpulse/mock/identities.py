"""identities.py — Static catalog of synthetic GitHub users.

Ten personas covering every work pattern the burnout heuristic looks for.
Ids are stable so frontend tests and stored datasets can reference them.

Called by: generator.py, identity_simulation.py
Depends on: Nothing
"""

from __future__ import annotations

from devpulse.models.schemas import SyntheticIdentity

_AVATAR_BASE = "https://avatars.githubusercontent.com/u"


def _identity(
    id: int,
    handle: str,
    display_name: str,
    role: str,
    work_pattern: str,
    activity_level: str,
) -> SyntheticIdentity:
    first, _, last = display_name.partition(" ")
    return SyntheticIdentity(
        id=id,
        handle=handle,
        display_name=display_name,
        email=f"{first.lower()}.{last.lower()}@example.com",
        role=role,
        work_pattern=work_pattern,
        activity_level=activity_level,
        avatar_ref=f"{_AVATAR_BASE}/{id}",
    )


# ─── Catalog ──────────────────────────────────────────────────────────────────
# WHY: "underutilized" personas are modelled as regular hours with low
# activity; the generator has no separate pattern for them.

IDENTITY_CATALOG: tuple[SyntheticIdentity, ...] = (
    _identity(1001, "regular-dev", "Alex Johnson", "developer", "regular", "medium"),
    _identity(1002, "overworked-lead", "Sam Taylor", "team-lead", "overworked", "high"),
    _identity(1003, "night-coder", "Jamie Rivera", "developer", "irregular", "high"),
    _identity(1004, "balanced-dev", "Morgan Chen", "developer", "regular", "medium"),
    _identity(1005, "weekend-warrior", "Casey Kim", "contributor", "irregular", "medium"),
    _identity(1006, "early-bird", "Robin Patel", "developer", "regular", "high"),
    _identity(1007, "manager-user", "Jordan Smith", "manager", "regular", "low"),
    _identity(1008, "burnout-risk", "Taylor Rodriguez", "developer", "overworked", "high"),
    _identity(1009, "underutilized-dev", "Riley Garcia", "developer", "regular", "low"),
    _identity(1010, "new-hire", "Quinn Wilson", "developer", "regular", "medium"),
)

# Generated identities (when a dataset needs more users than the catalog has)
# start here so they can never collide with catalog ids.
GENERATED_ID_START = 2001


def get_catalog() -> list[SyntheticIdentity]:
    return list(IDENTITY_CATALOG)
