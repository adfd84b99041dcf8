from fastapi.testclient import TestClient

from orderdesk.main import app


def test_health_endpoint():
    """Test health endpoint"""
    client = TestClient(app)
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
