"""
Unit tests for FastAPI application endpoints.
"""
import asyncio
import os
from unittest.mock import patch

import pytest

from app import startup_event
from src.utils.errors import ValidationError


class TestRootEndpoint:
    """Test suite for the root endpoint."""

    def test_root_returns_service_info(self, bare_client):
        """Test that the root endpoint describes the service."""
        response = bare_client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Compliance Deadline API"
        assert data["docs"] == "/docs"
        assert data["health"] == "/api/v1/health"

    def test_root_response_headers(self, bare_client):
        response = bare_client.get("/")

        assert "application/json" in response.headers.get("content-type", "")

    def test_root_method_not_allowed(self, bare_client):
        """Test that POST method is not allowed on the root endpoint."""
        response = bare_client.post("/")

        assert response.status_code == 405


class TestApplicationHealth:
    """Test suite for application health and metadata."""

    def test_openapi_schema_lists_deadline_routes(self, bare_client):
        """Test that OpenAPI schema is accessible and complete."""
        response = bare_client.get("/openapi.json")

        assert response.status_code == 200
        paths = response.json()["paths"]
        assert "/api/v1/organizations/{organization_id}/deadlines/generate-from-template" in paths
        assert "/api/v1/organizations/{organization_id}/deadlines" in paths
        assert "/api/v1/organizations/{organization_id}/recurrence-groups/{group_id}/stop" in paths

    def test_docs_accessible(self, bare_client):
        """Test that API documentation is accessible."""
        response = bare_client.get("/docs")

        assert response.status_code == 200
        assert "text/html" in response.headers.get("content-type", "")


class TestErrorHandling:
    """Test suite for error handling."""

    def test_invalid_route_404(self, bare_client):
        response = bare_client.get("/invalid-route")

        assert response.status_code == 404

    def test_generate_requires_post(self, bare_client):
        response = bare_client.get("/api/v1/organizations/org-1/deadlines/generate-from-template")

        assert response.status_code in (404, 405)


class TestStartupValidation:
    """Test that recurrence settings are checked when the app starts."""

    def test_valid_settings_start(self):
        with patch.dict(os.environ, {"RECURRENCE_LOOKAHEAD_CAP": "5", "RECURRENCE_GROUPING": "per_target"}):
            asyncio.run(startup_event())

    def test_invalid_grouping_fails_startup(self):
        with patch.dict(os.environ, {"RECURRENCE_GROUPING": "per_planet"}):
            with pytest.raises(ValueError):
                asyncio.run(startup_event())

    def test_non_positive_cap_fails_startup(self):
        with patch.dict(os.environ, {"RECURRENCE_LOOKAHEAD_CAP": "0"}):
            with pytest.raises(ValidationError):
                asyncio.run(startup_event())
