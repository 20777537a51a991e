async def test_health(async_client):
    resp = await async_client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


async def test_prometheus_endpoint(async_client):
    resp = await async_client.get("/metrics/prometheus")
    assert resp.status_code == 200
    assert "carcheck_info" in resp.text
