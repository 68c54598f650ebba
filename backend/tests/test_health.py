def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_api_v1_forms(client):
    response = client.get("/api/v1/forms/")
    assert response.status_code == 200


def test_api_v1_leads(client):
    response = client.get("/api/v1/leads/")
    assert response.status_code == 200


def test_api_v1_sessions(client):
    """Sessions router is mounted - unknown session returns 404."""
    response = client.get("/api/v1/sessions/00000000-0000-0000-0000-000000000000")
    assert response.status_code == 404


def test_api_v1_webhooks(client):
    """Webhook router is mounted - verification without token is refused."""
    response = client.get("/api/v1/webhooks/facebook")
    assert response.status_code == 403
