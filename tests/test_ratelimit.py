"""Tests for the sliding-window rate limiter."""

import pytest

from catalyst.core.errors import RateLimited
from catalyst.core.ratelimit import SlidingWindowLimiter
from tests.conftest import register


class Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_allows_up_to_limit_then_rejects():
    clock = Clock()
    limiter = SlidingWindowLimiter(3, 60, "slow down", clock=clock)
    for _ in range(3):
        limiter.hit("1.2.3.4")
    with pytest.raises(RateLimited) as exc:
        limiter.hit("1.2.3.4")
    assert exc.value.retry_after == 60
    assert exc.value.message == "slow down"


def test_window_slides():
    clock = Clock()
    limiter = SlidingWindowLimiter(2, 60, "slow down", clock=clock)
    limiter.hit("ip")
    clock.now += 30
    limiter.hit("ip")
    clock.now += 31
    limiter.hit("ip")  # the first hit has left the window
    with pytest.raises(RateLimited) as exc:
        limiter.hit("ip")
    assert exc.value.retry_after == 29


def test_keys_are_independent():
    limiter = SlidingWindowLimiter(1, 60, "slow down", clock=Clock())
    limiter.hit("a")
    limiter.hit("b")
    with pytest.raises(RateLimited):
        limiter.hit("a")


def test_auth_routes_limited_to_five_attempts(client):
    for _ in range(5):
        assert client.post("/api/login", json={"username": "x", "password": "y"}).status_code == 401

    response = client.post("/api/login", json={"username": "x", "password": "y"})
    assert response.status_code == 429
    assert response.json()["retryAfter"] > 0
    assert "Retry-After" in response.headers

    # Registration shares the auth quota and is refused before touching the database
    assert register(client).status_code == 429


def test_chat_route_limited_per_minute(alice):
    cid = alice.post("/api/conversations", json={"title": "Hello"}).json()["id"]
    for i in range(10):
        response = alice.post(f"/api/conversations/{cid}/messages", json={"content": f"m{i}"})
        assert response.status_code == 200

    response = alice.post(f"/api/conversations/{cid}/messages", json={"content": "one more"})
    assert response.status_code == 429
    assert len(alice.get(f"/api/conversations/{cid}/messages").json()) == 20


def test_idle_clients_are_forgotten():
    clock = Clock()
    limiter = SlidingWindowLimiter(2, 60, "slow down", clock=clock)
    for key in ("a", "b", "c"):
        limiter.hit(key)
    assert limiter.tracked_keys() == 3

    clock.now += 61
    limiter.hit("d")
    assert limiter.tracked_keys() == 1


def test_forwarded_for_header_does_not_reset_auth_quota(client):
    for i in range(5):
        response = client.post(
            "/api/login",
            json={"username": "x", "password": "y"},
            headers={"X-Forwarded-For": f"10.0.0.{i}"},
        )
        assert response.status_code == 401

    response = client.post(
        "/api/login",
        json={"username": "x", "password": "y"},
        headers={"X-Forwarded-For": "10.0.0.99"},
    )
    assert response.status_code == 429


def test_status_and_unknown_api_routes_share_general_quota(client, monkeypatch):
    monkeypatch.setattr(client.app.state.rate_limits, "general", SlidingWindowLimiter(2, 60, "slow down"))
    assert client.get("/api/status").status_code == 200
    assert client.get("/api/does-not-exist").status_code == 404

    assert client.get("/api/status").status_code == 429
    response = client.get("/api/does-not-exist")
    assert response.status_code == 429
    assert response.json()["error"] == "slow down"
    assert "Retry-After" in response.headers
