"""Tests for admin routes: app mode, datasets and the call log."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from devpulse.core.errors import StorageError

# ─── App Mode ─────────────────────────────────────────────────────────────────


@pytest.mark.anyio
async def test_get_app_mode_defaults(client: AsyncClient):
    response = await client.get("/api/v1/admin/app-mode")

    assert response.status_code == 200
    data = response.json()
    assert data["mode"] == "LIVE"
    assert data["dataset_id"] is None
    assert data["updated_at"] is None


@pytest.mark.anyio
async def test_put_app_mode_round_trip(client: AsyncClient):
    body = {
        "mode": "MOCK",
        "dataset_id": "team-a",
        "error_simulation": {
            "enabled": True,
            "rate": 0.25,
            "kinds": ["NOT_FOUND"],
            "min_delay_ms": 100,
            "max_delay_ms": 400,
        },
        "enabled_features": ["burnout", "dashboard"],
    }

    response = await client.put("/api/v1/admin/app-mode", json=body)

    assert response.status_code == 200
    assert response.headers["X-DevPulse-Mode"] == "MOCK"
    data = response.json()
    assert data["mode"] == "MOCK"
    assert data["dataset_id"] == "team-a"
    assert data["error_simulation"] == body["error_simulation"]
    assert data["enabled_features"] == ["burnout", "dashboard"]
    assert data["updated_at"] is not None

    again = await client.get("/api/v1/admin/app-mode")
    assert again.json() == data


@pytest.mark.anyio
async def test_put_app_mode_without_features_uses_configured_set(client: AsyncClient, settings):
    response = await client.put("/api/v1/admin/app-mode", json={"mode": "DEMO"})

    assert response.status_code == 200
    assert response.json()["dataset_id"] == "default"
    assert set(response.json()["enabled_features"]) == settings.enabled_features_set


@pytest.mark.anyio
async def test_put_app_mode_unknown_fault_kind(client: AsyncClient):
    response = await client.put(
        "/api/v1/admin/app-mode",
        json={"mode": "MOCK", "error_simulation": {"enabled": True, "kinds": ["TIMEOUT"]}},
    )

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "VALIDATION_ERROR"
    assert (await client.get("/api/v1/admin/app-mode")).json()["mode"] == "LIVE"


@pytest.mark.anyio
@pytest.mark.parametrize("dataset_id", ["team a", "../escape", "x" * 65])
async def test_put_app_mode_malformed_dataset_id_keeps_previous(client: AsyncClient, dataset_id):
    response = await client.put(
        "/api/v1/admin/app-mode", json={"mode": "MOCK", "dataset_id": dataset_id}
    )

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "VALIDATION_ERROR"
    current = (await client.get("/api/v1/admin/app-mode")).json()
    assert current["mode"] == "LIVE"
    assert current["dataset_id"] is None


@pytest.mark.anyio
async def test_put_app_mode_inverted_delay_range(client: AsyncClient):
    response = await client.put(
        "/api/v1/admin/app-mode",
        json={
            "mode": "MOCK",
            "error_simulation": {"enabled": True, "min_delay_ms": 900, "max_delay_ms": 10},
        },
    )

    assert response.status_code == 422
    assert (await client.get("/api/v1/admin/app-mode")).json()["mode"] == "LIVE"


@pytest.mark.anyio
async def test_put_app_mode_unknown_mode(client: AsyncClient):
    response = await client.put("/api/v1/admin/app-mode", json={"mode": "STAGING"})

    assert response.status_code == 422


@pytest.mark.anyio
async def test_put_app_mode_storage_failure_keeps_previous(client: AsyncClient, context):
    context.storage.modes.save = AsyncMock(side_effect=StorageError("db down"))

    response = await client.put("/api/v1/admin/app-mode", json={"mode": "MOCK"})

    assert response.status_code == 503
    assert response.json()["detail"]["code"] == "STORAGE_UNAVAILABLE"
    assert (await client.get("/api/v1/admin/app-mode")).json()["mode"] == "LIVE"


# ─── Datasets ─────────────────────────────────────────────────────────────────


@pytest.mark.anyio
async def test_dataset_lifecycle(client: AsyncClient):
    assert (await client.get("/api/v1/admin/datasets")).json() == []

    created = await client.put(
        "/api/v1/admin/datasets/team-a",
        json={"repository_count": 2, "users_per_repository": 2, "time_range_days": 7},
    )
    assert created.status_code == 200
    summary = created.json()
    assert summary["name"] == "team-a"
    assert summary["repositories"] == 2
    assert summary["generation_parameters"]["time_range_days"] == 7

    fetched = await client.get("/api/v1/admin/datasets/team-a")
    assert fetched.json()["generation_id"] == summary["generation_id"]

    reset = await client.put("/api/v1/admin/datasets/team-a")
    assert reset.json()["generation_id"] != summary["generation_id"]

    assert (await client.get("/api/v1/admin/datasets")).json() == ["team-a"]

    deleted = await client.delete("/api/v1/admin/datasets/team-a")
    assert deleted.status_code == 204
    assert (await client.get("/api/v1/admin/datasets/team-a")).status_code == 404


@pytest.mark.anyio
async def test_dataset_params_are_bounded(client: AsyncClient):
    response = await client.put("/api/v1/admin/datasets/huge", json={"repository_count": 500})

    assert response.status_code == 422
    assert (await client.get("/api/v1/admin/datasets")).json() == []


@pytest.mark.anyio
async def test_missing_dataset_is_404(client: AsyncClient):
    response = await client.get("/api/v1/admin/datasets/nope")

    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "DATASET_NOT_FOUND"
    assert (await client.delete("/api/v1/admin/datasets/nope")).status_code == 404
    assert (await client.get("/api/v1/admin/datasets/nope/export")).status_code == 404


@pytest.mark.anyio
async def test_delete_malformed_dataset_name_is_422(client: AsyncClient):
    response = await client.delete("/api/v1/admin/datasets/team%20a")

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "VALIDATION_ERROR"


@pytest.mark.anyio
async def test_export_then_import(client: AsyncClient):
    await client.put("/api/v1/admin/datasets/team-a", json={"repository_count": 1})

    exported = await client.get("/api/v1/admin/datasets/team-a/export")
    assert exported.status_code == 200
    assert exported.headers["content-type"].startswith("application/json")
    assert 'filename="team-a.json"' in exported.headers["content-disposition"]

    imported = await client.post("/api/v1/admin/datasets/copy/import", content=exported.content)

    assert imported.status_code == 200
    assert imported.json()["name"] == "copy"
    assert imported.json()["generation_id"] == json.loads(exported.content)["generation_id"]
    assert (await client.get("/api/v1/admin/datasets")).json() == ["team-a", "copy"]


@pytest.mark.anyio
async def test_invalid_import_lists_problems(client: AsyncClient):
    response = await client.post("/api/v1/admin/datasets/bad/import", content=b'{"name": "bad"}')

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["code"] == "VALIDATION_ERROR"
    assert detail["problems"]
    assert (await client.get("/api/v1/admin/datasets")).json() == []


# ─── Call Log ─────────────────────────────────────────────────────────────────


@pytest.mark.anyio
async def test_call_log_records_dispatches(client: AsyncClient, context):
    await context.modes.switch_mode("MOCK")
    await client.get("/api/v1/github/repositories")
    await client.get("/api/v1/github/repositories/nobody/nothing/commits")

    response = await client.get("/api/v1/admin/calls", params={"limit": 10})

    records = response.json()
    assert [r["operation"] for r in records] == ["get_commits", "get_repositories"]
    assert records[0]["outcome"] == "error"
    assert records[0]["error_code"] == "NOT_FOUND"
    assert records[1]["outcome"] == "ok"
    assert records[1]["dataset_id"] == "default"

    assert (await client.delete("/api/v1/admin/calls")).status_code == 204
    assert (await client.get("/api/v1/admin/calls")).json() == []
