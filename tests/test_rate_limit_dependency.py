"""Tests for the HTTP wiring of the rate limiter on the owner search route."""

from __future__ import annotations

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request

from petclinic.core import rate_limit as rate_limit_module
from petclinic.core.errors import RateLimitExceededError
from petclinic.core.rate_limit import enforce_rate_limit, resolve_caller_key
from petclinic.main import app


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def limited(monkeypatch: pytest.MonkeyPatch) -> None:
    """Three requests per one-minute window, frozen clock."""
    monkeypatch.setattr(rate_limit_module.settings.rate_limit, "enabled", True)
    monkeypatch.setattr(rate_limit_module.settings.rate_limit, "include_headers", True)
    monkeypatch.setattr(rate_limit_module.settings.rate_limit, "max_requests", 3)
    monkeypatch.setattr(rate_limit_module.settings.rate_limit, "window_size_minutes", 1)
    monkeypatch.setattr(rate_limit_module, "_now", lambda: 1000.0)


class TestResolveCallerKey:
    def test_forwarded_for_wins_over_real_ip(self) -> None:
        headers = {"X-Forwarded-For": "198.51.100.4, 10.0.0.2", "X-Real-IP": "192.0.2.9"}
        assert resolve_caller_key(headers, "127.0.0.1") == "198.51.100.4"

    def test_first_forwarded_for_entry_is_trimmed(self) -> None:
        headers = {"X-Forwarded-For": "  198.51.100.4  ,10.0.0.2"}
        assert resolve_caller_key(headers, "127.0.0.1") == "198.51.100.4"

    def test_real_ip_used_without_forwarded_for(self) -> None:
        assert resolve_caller_key({"X-Real-IP": "192.0.2.9"}, "127.0.0.1") == "192.0.2.9"

    def test_empty_forwarded_for_falls_through(self) -> None:
        headers = {"X-Forwarded-For": "", "X-Real-IP": "192.0.2.9"}
        assert resolve_caller_key(headers, "127.0.0.1") == "192.0.2.9"

    def test_connection_address_as_last_resort(self) -> None:
        assert resolve_caller_key({}, "127.0.0.1") == "127.0.0.1"
        assert resolve_caller_key({"X-Real-IP": ""}, "127.0.0.1") == "127.0.0.1"

    def test_unknown_without_any_address(self) -> None:
        assert resolve_caller_key({}, None) == "unknown"


class TestOwnerSearchRateLimit:
    def test_fourth_request_in_window_is_rejected(self, client: TestClient, limited: None) -> None:
        for _ in range(3):
            assert client.get("/owners/find").status_code == 200

        blocked = client.get("/owners/find")

        assert blocked.status_code == 429
        assert blocked.json() == {
            "error": "Rate limit exceeded. Try again later.",
            "maxRequests": 3,
            "windowSizeMinutes": 1,
        }
        assert blocked.headers["Retry-After"] == "60"
        assert blocked.headers["X-RateLimit-Limit"] == "3"

    def test_allows_again_after_window(
        self, client: TestClient, limited: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        for _ in range(4):
            client.get("/owners/find")

        monkeypatch.setattr(rate_limit_module, "_now", lambda: 1060.0)

        assert client.get("/owners/find").status_code == 200

    def test_clients_are_limited_independently(self, client: TestClient, limited: None) -> None:
        first = {"X-Forwarded-For": "198.51.100.4"}
        second = {"X-Forwarded-For": "198.51.100.5"}

        for _ in range(3):
            assert client.get("/owners/find", headers=first).status_code == 200
        assert client.get("/owners/find", headers=first).status_code == 429

        assert client.get("/owners/find", headers=second).status_code == 200

    def test_real_ip_header_identifies_client(self, client: TestClient, limited: None) -> None:
        for _ in range(3):
            client.get("/owners/find", headers={"X-Real-IP": "192.0.2.9"})

        assert client.get("/owners/find", headers={"X-Real-IP": "192.0.2.9"}).status_code == 429
        assert client.get("/owners/find").status_code == 200

    def test_other_routes_are_not_limited(self, client: TestClient, limited: None) -> None:
        for _ in range(10):
            assert client.get("/pets").status_code == 200

    def test_headers_omitted_when_disabled_in_settings(
        self, client: TestClient, limited: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(rate_limit_module.settings.rate_limit, "include_headers", False)
        for _ in range(3):
            client.get("/owners/find")

        blocked = client.get("/owners/find")

        assert blocked.status_code == 429
        assert "Retry-After" not in blocked.headers

    def test_disabled_rate_limit_allows_everything(
        self, client: TestClient, limited: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(rate_limit_module.settings.rate_limit, "enabled", False)

        for _ in range(20):
            assert client.get("/owners/find").status_code == 200


    def test_configured_route_is_the_one_limited(
        self, client: TestClient, limited: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(rate_limit_module.settings.rate_limit, "protected_route", "/pets")
        monkeypatch.setattr(rate_limit_module.settings.rate_limit, "max_requests", 1)

        statuses = [client.get("/pets").status_code for _ in range(3)]

        assert statuses == [200, 429, 429]
        assert all(client.get("/owners/find").status_code == 200 for _ in range(3))


def _request(path: str, forwarded_for: str) -> Request:
    return Request(
        {
            "type": "http",
            "method": "GET",
            "scheme": "http",
            "server": ("testserver", 80),
            "path": path,
            "root_path": "",
            "query_string": b"",
            "headers": [(b"x-forwarded-for", forwarded_for.encode())],
            "client": ("127.0.0.1", 50000),
        }
    )


class TestConcurrentEnforcement:
    def test_racing_requests_share_one_window(self, limited: None) -> None:
        rate_limit_module.get_rate_limiter()
        threads = 30
        barrier = threading.Barrier(threads)

        def call(i: int) -> tuple[str, bool]:
            path = "/owners/find" if i % 3 else "/pets"
            request = _request(path, "198.51.100.4")
            barrier.wait()
            try:
                asyncio.run(enforce_rate_limit(request))
            except RateLimitExceededError:
                return path, False
            return path, True

        with ThreadPoolExecutor(max_workers=threads) as pool:
            results = list(pool.map(call, range(threads)))

        owner_search = [allowed for path, allowed in results if path == "/owners/find"]
        pet_list = [allowed for path, allowed in results if path == "/pets"]
        assert owner_search.count(True) == 3
        assert len(owner_search) == 20
        assert all(pet_list)


class TestPurgeLoop:
    @pytest.mark.asyncio
    async def test_expired_counters_are_swept(self, limited: None, monkeypatch: pytest.MonkeyPatch) -> None:
        limiter = rate_limit_module.get_rate_limiter()
        limiter.should_allow("198.51.100.4", "/owners/find", 1000.0)
        assert len(limiter) == 1

        monkeypatch.setattr(rate_limit_module, "_now", lambda: 5000.0)
        task = asyncio.create_task(rate_limit_module.purge_expired_counters_forever(0.01))
        try:
            for _ in range(100):
                if len(limiter) == 0:
                    break
                await asyncio.sleep(0.01)
        finally:
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        assert len(limiter) == 0

    @pytest.mark.asyncio
    async def test_live_counters_survive_a_sweep(self, limited: None) -> None:
        limiter = rate_limit_module.get_rate_limiter()
        limiter.should_allow("198.51.100.4", "/owners/find", 1000.0)

        task = asyncio.create_task(rate_limit_module.purge_expired_counters_forever(0.01))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert len(limiter) == 1
