async def test_single_health_route(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"

    assert (await client.get("/api/healthz")).status_code == 404


async def test_readiness_reports_database_not_initialized(client):
    response = await client.get("/ready")
    assert response.status_code == 503
    assert response.json()["database_ready"] is False
