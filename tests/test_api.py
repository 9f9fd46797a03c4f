from __future__ import annotations


def test_health_reports_agent_and_active_calls(client):
    response = client.get("/health")
    assert response.status_code == 200
    payload = response.json()

    assert payload["status"] == "ok"
    assert payload["agent"] == "Jade (Petrona Realty)"
    assert payload["activeCalls"] == 0
    assert payload["uptime"] >= 0


def test_service_status_counts_properties(client):
    response = client.get("/")
    assert response.status_code == 200
    payload = response.json()

    assert payload["status"] == "Voice receptionist running"
    assert payload["properties"] >= 1
    assert payload["activeCalls"] == 0
    assert payload["timestamp"]


def test_service_status_is_rate_limited_per_client(app, client):
    import api.dependencies as deps
    from api.rate_limit import SlidingWindowRateLimiter

    limiter = SlidingWindowRateLimiter(limit=2)
    app.dependency_overrides[deps.get_status_limiter] = lambda: limiter

    statuses = [client.get("/").status_code for _ in range(3)]

    assert statuses == [200, 200, 429]
    assert client.get("/").json() == {"detail": "Too many requests"}
    assert client.get("/health").status_code == 200
