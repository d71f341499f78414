def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_api_index_lists_modules(client):
    endpoints = client.get("/api").json()["available_endpoints"]
    assert set(endpoints) == {"authentication", "products", "categories", "sales", "dashboard"}
