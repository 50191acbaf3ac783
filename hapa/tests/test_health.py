def test_health_echoes_request_id(client):
    r = client.get("/api/health", headers={"X-Request-Id": "req-123"})
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "database": "ok", "request_id": "req-123"}
    assert r.headers["X-Request-Id"] == "req-123"
    assert "X-RateLimit-Limit" not in r.headers


def test_request_id_generated(client):
    r = client.get("/api/health")
    rid = r.headers["X-Request-Id"]
    assert rid
    assert r.json()["request_id"] == rid


def test_api_routes_carry_rate_limit_headers(client, admin_headers):
    r = client.get("/api/admin/categories", headers=admin_headers)
    assert r.headers["X-RateLimit-Limit"] == "100"
    assert r.headers["X-RateLimit-Remaining"] == "99"


def test_unknown_api_route(client):
    assert client.get("/api/nope").status_code == 404
