"""Tests for CORS and security headers middleware."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from elections_api.api.middleware import SecurityHeadersMiddleware, setup_cors
from elections_api.core.config import Settings


def _create_test_app() -> FastAPI:
    """Create a minimal FastAPI app for middleware testing."""
    app = FastAPI()

    @app.get("/test")
    async def test_route() -> dict:
        return {"ok": True}

    return app


def _settings(**overrides: str) -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret_key="test-secret-key-not-for-production",
        _env_file=None,  # type: ignore[call-arg]
        **overrides,
    )


class TestSecurityHeadersMiddleware:
    """Tests for SecurityHeadersMiddleware."""

    @pytest.fixture
    def client(self) -> TestClient:
        app = _create_test_app()
        app.add_middleware(SecurityHeadersMiddleware)
        return TestClient(app)

    def test_all_security_headers_present(self, client: TestClient) -> None:
        response = client.get("/test")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Referrer-Policy"] == "no-referrer"
        assert "max-age=31536000" in response.headers["Strict-Transport-Security"]

    def test_headers_on_error_responses(self, client: TestClient) -> None:
        response = client.get("/missing")
        assert response.status_code == 404
        assert response.headers["X-Frame-Options"] == "DENY"


class TestCors:
    """Tests for setup_cors."""

    def test_configured_origin_allowed(self) -> None:
        app = _create_test_app()
        setup_cors(app, _settings(cors_origins="https://admin.example.com"))
        client = TestClient(app)

        response = client.get("/test", headers={"Origin": "https://admin.example.com"})

        assert response.headers["access-control-allow-origin"] == "https://admin.example.com"

    def test_unlisted_origin_gets_no_cors_headers(self) -> None:
        app = _create_test_app()
        setup_cors(app, _settings(cors_origins="https://admin.example.com"))
        client = TestClient(app)

        response = client.get("/test", headers={"Origin": "https://evil.example.com"})

        assert "access-control-allow-origin" not in response.headers

    def test_origin_regex(self) -> None:
        app = _create_test_app()
        setup_cors(app, _settings(cors_origin_regex=r"https://.*\.pages\.dev"))
        client = TestClient(app)

        response = client.get("/test", headers={"Origin": "https://pr-12.pages.dev"})

        assert response.headers["access-control-allow-origin"] == "https://pr-12.pages.dev"
