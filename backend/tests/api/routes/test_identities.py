"""Tests for identity selection and mock sign-in routes."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from devpulse.api.deps import SESSION_COOKIE, SESSION_HEADER
from devpulse.mock.identities import get_catalog


@pytest.fixture
async def mock_mode(context):
    await context.modes.switch_mode("MOCK")
    return context


@pytest.mark.anyio
async def test_list_identities_marks_default(client: AsyncClient):
    response = await client.get("/api/v1/identities")

    assert response.status_code == 200
    listing = response.json()
    assert len(listing) == len(get_catalog())
    assert [i["id"] for i in listing if i["current"]] == [get_catalog()[0].id]


@pytest.mark.anyio
async def test_select_identity_rejected_in_live(client: AsyncClient):
    response = await client.put("/api/v1/identities/current", json={"identity_id": 1002})

    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "MODE_CONFLICT"


@pytest.mark.anyio
async def test_select_identity_scoped_by_session_header(client: AsyncClient, mock_mode):
    headers = {SESSION_HEADER: "browser-a"}

    response = await client.put(
        "/api/v1/identities/current", json={"identity_id": 1002}, headers=headers
    )

    assert response.status_code == 200
    assert response.json()["handle"] == "overworked-lead"
    assert SESSION_COOKIE not in response.cookies

    mine = (await client.get("/api/v1/identities", headers=headers)).json()
    theirs = (await client.get("/api/v1/identities", headers={SESSION_HEADER: "browser-b"})).json()
    assert [i["id"] for i in mine if i["current"]] == [1002]
    assert [i["id"] for i in theirs if i["current"]] == [get_catalog()[0].id]


@pytest.mark.anyio
async def test_anonymous_selection_sets_session_cookie(client: AsyncClient, mock_mode):
    response = await client.put("/api/v1/identities/current", json={"identity_id": 1004})

    assert response.status_code == 200
    assert response.cookies.get(SESSION_COOKIE)


@pytest.mark.anyio
async def test_unknown_identity_keeps_previous(client: AsyncClient, mock_mode):
    headers = {SESSION_HEADER: "browser-a"}
    await client.put("/api/v1/identities/current", json={"identity_id": 1003}, headers=headers)

    response = await client.put(
        "/api/v1/identities/current", json={"identity_id": 99999}, headers=headers
    )

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "VALIDATION_ERROR"
    listing = (await client.get("/api/v1/identities", headers=headers)).json()
    assert [i["id"] for i in listing if i["current"]] == [1003]


@pytest.mark.anyio
async def test_mock_session_for_current_identity(client: AsyncClient, mock_mode):
    headers = {SESSION_HEADER: "browser-a"}
    await client.put("/api/v1/identities/current", json={"identity_id": 1007}, headers=headers)

    response = await client.post("/api/v1/auth/mock", headers=headers)

    assert response.status_code == 200
    session = response.json()
    assert session["user"]["id"] == "1007"
    assert session["user"]["role"] == "ADMINISTRATOR"
    assert session["access_token"].startswith("mock_")
    assert session["provider"] == "github"
    assert session["expires"]


@pytest.mark.anyio
async def test_mock_session_rejected_in_live(client: AsyncClient):
    response = await client.post("/api/v1/auth/mock")

    assert response.status_code == 409
