"""
Health check endpoint tests
"""
import pytest


@pytest.mark.asyncio
@pytest.mark.unit
async def test_root_endpoint(client):
    """Test root health check endpoint"""
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
@pytest.mark.unit
async def test_health_endpoint(client):
    """Test detailed health check endpoint"""
    response = await client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "ESAS Screening API"
    assert data["version"] == "1.0.0"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_unknown_route_uses_error_shape(client):
    response = await client.get("/api/v1/does-not-exist")
    assert response.status_code == 404
    assert "error" in response.json()
