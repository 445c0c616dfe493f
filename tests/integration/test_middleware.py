"""
Integration tests for request tracking middleware.
"""

import pytest
from fastapi.testclient import TestClient

from storage_navigator.main import app


class TestRequestTrackingMiddleware:
    """Tests for RequestTrackingMiddleware."""

    def test_generates_request_id(self):
        """Middleware should generate request ID if not provided."""
        client = TestClient(app)
        response = client.get("/live")

        assert "X-Request-ID" in response.headers
        assert len(response.headers["X-Request-ID"]) > 0

    def test_preserves_provided_request_id(self):
        """Middleware should preserve provided X-Request-ID."""
        client = TestClient(app)
        custom_id = "custom-req-id-123"

        response = client.get("/live", headers={"X-Request-ID": custom_id})

        assert response.headers["X-Request-ID"] == custom_id

    def test_different_requests_get_different_ids(self):
        """Each request should get unique request ID."""
        client = TestClient(app)

        id1 = client.get("/live").headers["X-Request-ID"]
        id2 = client.get("/live").headers["X-Request-ID"]

        assert id1 != id2

    def test_error_responses_carry_request_id(self):
        """Request ID is attached to error responses too."""
        client = TestClient(app)
        response = client.get("/does-not-exist")

        assert response.status_code == 404
        assert "X-Request-ID" in response.headers


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
