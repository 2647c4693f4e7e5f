"""Tests for the HTTP routes."""

from __future__ import annotations

import io
import json
import zipfile
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import create_app
from app.state.registry import DeviceRegistry

from tests.fakes import PERMANENT, FakeController


@pytest.fixture
def fast_settings() -> Settings:
    return Settings(
        retry_initial_delay_s=0,
        retry_delay_s=0,
        settle_delay_s=0,
        log_level="WARNING",
    )


@pytest.fixture
def fleet() -> dict[str, FakeController]:
    return {
        "1": FakeController("Croquetia1", programs={"a": b"A", "b": b"B"}, controls={"a": b"ctl"}),
        "2": FakeController("Croquetia5", programs={"z": b"Z"}),
        "3": FakeController(None),
    }


@pytest.fixture
def client(fleet, fast_settings) -> Generator[TestClient, None, None]:
    registry = DeviceRegistry()
    for device_id, controller in fleet.items():
        registry.upsert(device_id, f"10.0.0.{device_id}", controller)
    with TestClient(create_app(registry, settings=fast_settings)) as c:
        yield c


def drain(client: TestClient) -> None:
    """Wait for fire-and-forget device calls spawned by the last request."""
    client.portal.call(client.app.state.notifier.drain)


class TestHealthAndDiscover:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["ok"] is True
        assert response.json()["devices"] == 3

    def test_discover(self, client: TestClient) -> None:
        response = client.get("/discover")
        assert response.status_code == 200
        devices = {d["id"]: d for d in response.json()}
        assert devices["1"]["name"] == "Croquetia1"
        assert devices["1"]["address"] == "10.0.0.1"
        assert "lastSeen" in devices["2"]

    def test_reload(self, client: TestClient, fleet) -> None:
        response = client.post("/reload")
        assert response.status_code == 200
        assert all(("reload",) in c.calls for c in fleet.values())


class TestCommandRoutes:
    def test_post_command(self, client: TestClient, fleet) -> None:
        response = client.post("/command", json={"ids": [2, "ghost"], "command": {"programName": "X"}})

        assert response.status_code == 200
        drain(client)
        assert fleet["2"].commands[0]["setVars"]["myStartingPixel"] == 94

    def test_post_command_missing_fields(self, client: TestClient) -> None:
        response = client.post("/command", json={"ids": ["1"]})
        assert response.status_code == 400

    def test_get_command(self, client: TestClient, fleet) -> None:
        command = json.dumps({"brightness": 0.2})
        response = client.get("/command", params={"ids": "1,3", "command": command})

        assert response.status_code == 200
        drain(client)
        assert fleet["1"].commands == [{"brightness": 0.2}]
        assert fleet["3"].commands == [{"brightness": 0.2}]

    def test_get_command_bad_json(self, client: TestClient) -> None:
        response = client.get("/command", params={"ids": "1", "command": "{nope"})
        assert response.status_code == 400
        assert "unable to parse json" in response.json()["detail"]

    def test_get_command_missing_params(self, client: TestClient) -> None:
        assert client.get("/command", params={"ids": "1"}).status_code == 400


class TestProgramRoutes:
    def test_clone_programs(self, client: TestClient, fleet) -> None:
        response = client.post("/clonePrograms", json={"from": "1", "to": ["2", "99"]})

        assert response.status_code == 200
        assert response.json()["skipped"] == ["99"]
        assert fleet["2"].programs == {"a": b"A", "b": b"B"}

    def test_clone_missing_fields(self, client: TestClient) -> None:
        response = client.post("/clonePrograms", json={"from": "1"})
        assert response.status_code == 400

    def test_clone_unknown_source(self, client: TestClient) -> None:
        response = client.post("/clonePrograms", json={"from": "42", "to": ["2"]})
        assert response.status_code == 400
        assert response.json()["detail"] == "unable to find source"

    def test_clone_device_failure(self, client: TestClient, fleet) -> None:
        fleet["2"].failures[("put", "b")] = PERMANENT

        response = client.post("/clonePrograms", json={"from": "1", "to": ["2"]})

        assert response.status_code == 500
        assert "a" in fleet["2"].programs

    def test_dump(self, client: TestClient) -> None:
        response = client.get("/controllers/1/dump")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/zip"
        assert 'filename="Croquetia1.zip"' in response.headers["content-disposition"]
        with zipfile.ZipFile(io.BytesIO(response.content)) as zf:
            assert zf.namelist() == ["a", "a.c", "b"]

    def test_dump_unnamed_device(self, client: TestClient) -> None:
        response = client.get("/controllers/3/dump")
        assert 'filename="Pixelblaze_3.zip"' in response.headers["content-disposition"]

    def test_dump_non_ascii_device_name(self, client: TestClient) -> None:
        controller = FakeController('Croquétia "☀"', programs={"p": b"P"})
        client.app.state.registry.upsert("4", "10.0.0.4", controller)

        response = client.get("/controllers/4/dump")

        assert response.status_code == 200
        disposition = response.headers["content-disposition"]
        assert "filename*=UTF-8''Croqu%C3%A9tia%20%22%E2%98%80%22.zip" in disposition
        assert 'filename="Croqu?tia _?_.zip"' in disposition
        with zipfile.ZipFile(io.BytesIO(response.content)) as zf:
            assert zf.namelist() == ["p"]

    def test_dump_unknown_source(self, client: TestClient) -> None:
        assert client.get("/controllers/404/dump").status_code == 400

    def test_dump_device_failure(self, client: TestClient, fleet) -> None:
        fleet["1"].failures[("get", "b")] = PERMANENT
        assert client.get("/controllers/1/dump").status_code == 500
