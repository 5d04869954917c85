from pitchgenie.api import health


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_health_unhealthy_without_ai_key(client):
    resp = client.get("/api/health")
    assert resp.status_code == 503
    body = resp.json()
    assert body["status"] == "unhealthy"
    assert set(body["checks"]) == {"database", "ai_service", "stripe", "storage"}
    assert body["checks"]["database"]["status"] == "healthy"
    assert body["checks"]["ai_service"]["status"] == "unhealthy"
    assert body["checks"]["stripe"]["status"] == "disabled"
    assert "response_time_ms" in body["checks"]["database"]


def test_health_ok_when_all_checks_pass(client, monkeypatch):
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-or-test")
    monkeypatch.setattr(health, "_probe_ai", lambda api_key: 200)
    monkeypatch.setattr(health, "check_storage", lambda: {"status": "healthy", "message": "Storage operational"})

    resp = client.get("/api/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["checks"]["ai_service"]["message"] == "AI service operational"


def test_health_degraded_provider_is_503(client, monkeypatch):
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-or-test")
    monkeypatch.setattr(health, "_probe_ai", lambda api_key: 502)
    monkeypatch.setattr(health, "check_storage", lambda: {"status": "healthy", "message": "Storage operational"})

    resp = client.get("/api/health")
    assert resp.status_code == 503
    assert resp.json()["checks"]["ai_service"]["status"] == "degraded"


def test_failing_probe_is_reported_not_raised(client, monkeypatch):
    def boom(api_key):
        raise RuntimeError("connection refused")

    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-or-test")
    monkeypatch.setattr(health, "_probe_ai", boom)

    resp = client.get("/api/health")
    assert resp.status_code == 503
    assert resp.json()["checks"]["ai_service"] == {
        "status": "unhealthy",
        "message": "Check failed",
        "response_time_ms": resp.json()["checks"]["ai_service"]["response_time_ms"],
    }
