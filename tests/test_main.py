from __future__ import annotations

import asyncio
import dataclasses
from datetime import date

import pytest
from fastapi.testclient import TestClient

import sitewatch_agent.main as main
from sitewatch_agent.models import CheckResult


@pytest.fixture
def client() -> TestClient:
    return TestClient(main.app)


@pytest.fixture
def batch_calls(monkeypatch: pytest.MonkeyPatch) -> list:
    calls: list = []

    async def fake_run_batch(websites, *, settings):
        calls.append(list(websites))
        return [
            CheckResult(
                id=w.id,
                url=w.url,
                status="up",
                ssl_valid=w.url.startswith("https://"),
                ssl_expires=date(2027, 1, 1) if w.url.startswith("https://") else None,
                ssl_days_remaining=74 if w.url.startswith("https://") else None,
                response_time=42,
                screenshot_path=f"/screenshots/{w.id}_1.png",
            )
            for w in websites
        ]

    monkeypatch.setattr(main, "run_batch", fake_run_batch)
    return calls


def test_healthz(client: TestClient) -> None:
    assert client.get("/healthz").json() == {"ok": True}


def test_batch_returns_results_in_order(client: TestClient, batch_calls: list) -> None:
    payload = {
        "websites": [
            {"id": 2, "url": "https://example.com", "created_at": "2025-01-01T00:00:00Z"},
            {"id": 1, "url": "http://example.org"},
        ]
    }

    res = client.post("/screenshot", json=payload)

    assert res.status_code == 200
    body = res.json()
    assert [(r["id"], r["url"]) for r in body] == [(2, "https://example.com"), (1, "http://example.org")]
    assert body[0]["ssl_expires"] == "2027-01-01"
    assert body[0]["ssl_days_remaining"] == 74
    # Absent optional fields are left out entirely.
    assert "ssl_expires" not in body[1]
    assert "error_message" not in body[1]


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"websites": None},
        {"websites": "https://example.com"},
        {"websites": []},
        {"websites": [{"id": 1}]},
        {"websites": [{"id": 1, "url": "example.com"}]},
        {"websites": [{"id": 1, "url": "ftp://example.com"}]},
        {"websites": [{"id": 1, "url": "https://a.example"}, {"id": 1, "url": "https://b.example"}]},
    ],
)
def test_malformed_batch_is_rejected_without_probing(client: TestClient, batch_calls: list, payload) -> None:
    res = client.post("/screenshot", json=payload)

    assert res.status_code == 400
    assert res.json()["error"] == "No websites provided"
    assert batch_calls == []


def test_non_json_body_is_rejected(client: TestClient, batch_calls: list) -> None:
    res = client.post("/screenshot", content=b"not json", headers={"content-type": "application/json"})

    assert res.status_code == 400
    assert batch_calls == []


def test_unexpected_failure_is_generic_server_error(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def exploding_run_batch(websites, *, settings):
        raise RuntimeError("secret internal detail")

    monkeypatch.setattr(main, "run_batch", exploding_run_batch)

    res = client.post("/screenshot", json={"websites": [{"id": 1, "url": "https://example.com"}]})

    assert res.status_code == 500
    assert res.json() == {"error": "Internal server error"}
    assert "secret" not in res.text


def test_busy_agent_turns_batch_away(
    client: TestClient, batch_calls: list, monkeypatch: pytest.MonkeyPatch
) -> None:
    # Every slot already taken by another run.
    monkeypatch.setattr(main, "_batch_semaphore", asyncio.Semaphore(0))
    monkeypatch.setattr(main, "settings", dataclasses.replace(main.settings, batch_acquire_timeout_s=0.05))

    res = client.post("/screenshot", json={"websites": [{"id": 1, "url": "https://example.com"}]})

    assert res.status_code == 503
    assert res.headers["retry-after"] == "5"
    assert batch_calls == []


def test_slot_is_released_after_a_run(client: TestClient, batch_calls: list, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(main, "_batch_semaphore", asyncio.Semaphore(1))
    monkeypatch.setattr(main, "settings", dataclasses.replace(main.settings, batch_acquire_timeout_s=0.05))
    payload = {"websites": [{"id": 1, "url": "https://example.com"}]}

    assert client.post("/screenshot", json=payload).status_code == 200
    assert client.post("/screenshot", json=payload).status_code == 200
    assert len(batch_calls) == 2


def test_batch_echoes_urls_verbatim(client: TestClient, batch_calls: list) -> None:
    res = client.post("/screenshot", json={"websites": [{"id": 1, "url": "https://example.com "}]})

    assert res.status_code == 200
    assert res.json()[0]["url"] == "https://example.com "
