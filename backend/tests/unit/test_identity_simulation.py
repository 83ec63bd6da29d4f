"""Tests for identity simulation (mock/identity_simulation.py, mock/identities.py).

Run with: cd backend && pytest tests/unit/test_identity_simulation.py -v
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from devpulse.core.providers.memory_storage import MemoryIdentityPointerStore
from devpulse.mock.identities import IDENTITY_CATALOG, get_catalog
from devpulse.mock.identity_simulation import IdentitySimulation, session_role


@pytest.fixture
def pointers() -> MemoryIdentityPointerStore:
    return MemoryIdentityPointerStore(ttl_seconds=3600)


@pytest.fixture
def simulation(pointers) -> IdentitySimulation:
    return IdentitySimulation("session-1", pointers)


def _by_id(identity_id: int):
    return next(i for i in IDENTITY_CATALOG if i.id == identity_id)


# ─── Catalog ──────────────────────────────────────────────────────────────────


def test_catalog_ids_and_handles_unique():
    catalog = get_catalog()

    assert len(catalog) == 10
    assert len({i.id for i in catalog}) == len(catalog)
    assert len({i.handle for i in catalog}) == len(catalog)


# ─── Selection ────────────────────────────────────────────────────────────────


@pytest.mark.anyio
async def test_current_defaults_to_first_identity(simulation):
    assert await simulation.current() == get_catalog()[0]


@pytest.mark.anyio
async def test_set_current_persists_selection(simulation, pointers):
    selected = await simulation.set_current(1008)

    assert selected.handle == "burnout-risk"
    assert (await simulation.current()).id == 1008
    # A fresh simulation over the same store and key sees the same selection.
    assert (await IdentitySimulation("session-1", pointers).current()).id == 1008


@pytest.mark.anyio
async def test_unknown_identity_is_ignored(simulation):
    await simulation.set_current(1003)

    assert await simulation.set_current(424242) is None
    assert (await simulation.current()).id == 1003


@pytest.mark.anyio
async def test_selection_is_scoped_to_session(pointers):
    alice = IdentitySimulation("alice", pointers)
    bob = IdentitySimulation("bob", pointers)

    await alice.set_current(1005)

    assert (await alice.current()).id == 1005
    assert (await bob.current()).id == get_catalog()[0].id


@pytest.mark.anyio
async def test_list_marks_exactly_one_current(simulation):
    await simulation.set_current(1004)

    listing = await simulation.list_identities()

    assert [i.id for i in listing if i.current] == [1004]
    assert len(listing) == len(get_catalog())


@pytest.mark.anyio
async def test_clear_falls_back_to_default(simulation):
    await simulation.set_current(1004)
    await simulation.clear()

    assert (await simulation.current()).id == get_catalog()[0].id


@pytest.mark.anyio
async def test_expired_pointer_falls_back_to_default():
    simulation = IdentitySimulation("short", MemoryIdentityPointerStore(ttl_seconds=0))

    await simulation.set_current(1006)

    assert (await simulation.current()).id == get_catalog()[0].id


# ─── Sessions ─────────────────────────────────────────────────────────────────


@pytest.mark.anyio
async def test_create_session_has_real_shape(pointers):
    simulation = IdentitySimulation("session-2", pointers, session_ttl=timedelta(hours=2))
    await simulation.set_current(1002)

    before = datetime.now(UTC)
    session = await simulation.create_session()

    assert session.user.id == "1002"
    assert session.user.username == "overworked-lead"
    assert session.user.role == "TEAM_LEAD"
    assert session.access_token.startswith("mock_")
    assert session.provider == "github"
    assert before + timedelta(hours=2) <= session.expires <= datetime.now(UTC) + timedelta(hours=2)


@pytest.mark.anyio
async def test_sessions_get_fresh_tokens(simulation):
    first = await simulation.create_session()
    second = await simulation.create_session()

    assert first.access_token != second.access_token


@pytest.mark.parametrize(
    ("identity_id", "role"),
    [(1001, "DEVELOPER"), (1002, "TEAM_LEAD"), (1005, "DEVELOPER"), (1007, "ADMINISTRATOR")],
)
def test_session_role_mapping(identity_id, role):
    assert session_role(_by_id(identity_id)) == role
