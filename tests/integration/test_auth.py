"""
Integration tests for authentication and the ambient HTTP surface.

Tests cover:
- Rejecting requests without a valid bearer token
- Unauthenticated health and metrics endpoints
- API docs only served outside production
- Correlation IDs and security headers on every response
"""

import pytest
from datetime import timedelta
from fastapi.testclient import TestClient

from api.src.main import create_app


pytestmark = pytest.mark.integration

TASKS = "/api/task"


class TestBearerAuth:
    """Token checks on the API routes."""

    def test_missing_token(self, client):
        response = client.get(TASKS)

        assert response.status_code == 401
        assert response.json() == {"message": "Missing authentication token"}
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_non_bearer_scheme(self, client):
        response = client.get(TASKS, headers={"Authorization": "Basic dXNlcjpwYXNz"})

        assert response.status_code == 401

    def test_expired_token(self, client, token_factory):
        token = token_factory(expires_delta=timedelta(minutes=-5))

        response = client.get(TASKS, headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json() == {"message": "Invalid authentication token"}

    def test_wrong_audience(self, client, token_factory):
        token = token_factory(audience="api://another-service")

        response = client.delete(TASKS, params={"Id": 1}, headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_valid_token(self, client, auth_headers):
        assert client.get(TASKS, headers=auth_headers).status_code == 200

    def test_rejected_request_writes_nothing(self, client, auth_headers):
        client.post(TASKS, json={"id": 0, "title": "sneaky"})

        assert client.get(TASKS, headers=auth_headers).json() == []


class TestOpenEndpoints:
    """Endpoints exempt from authentication."""

    def test_health(self, client, settings):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["service"] == settings.app_name

    def test_metrics(self, client, auth_headers):
        client.get(TASKS, headers=auth_headers)

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text

    def test_docs_hidden_in_production(self, client):
        assert client.get("/openapi.json").status_code == 401

    def test_docs_served_in_development(self, settings):
        app = create_app(settings.model_copy(update={"environment": "development"}))

        with TestClient(app) as client:
            response = client.get("/openapi.json")

        assert response.status_code == 200
        assert "/api/task" in response.json()["paths"]


class TestResponseHeaders:
    """Headers added by middleware."""

    def test_correlation_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"

    def test_correlation_id_is_generated(self, client):
        assert client.get("/health").headers["X-Correlation-ID"]

    def test_security_headers(self, client):
        response = client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert "Strict-Transport-Security" not in response.headers

    def test_unauthorized_response_still_has_correlation_id(self, client):
        response = client.get(TASKS, headers={"X-Correlation-ID": "denied-1"})

        assert response.status_code == 401
        assert response.headers["X-Correlation-ID"] == "denied-1"
