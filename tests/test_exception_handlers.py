"""Tests for global exception handlers.

Validates that every error type is rendered with the right HTTP status and
the shared ``{"error": {...}}`` envelope, without leaking internals.
"""

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from throttle.adapters.rate_limit.base import RateLimitPolicy
from throttle.core.errors import EmptyIdentifierError, InvalidPolicyError, ValidationAppError
from throttle.core.exception_handlers import setup_exception_handlers
from throttle.core.rate_limit import install_rate_limiter, rate_limit


@pytest.fixture
def app_with_handlers() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers, raise_server_exceptions=False)


class TestAppErrorHandler:
    def test_validation_error_returns_400_with_details(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation")
        async def endpoint():
            raise ValidationAppError(
                code="test_validation",
                message="Test validation error",
                details={"field": "identifier"},
            )

        response = client.get("/test-validation")

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "test_validation"
        assert error["message"] == "Test validation error"
        assert error["details"] == {"field": "identifier"}
        assert "request_id" in error

    def test_invalid_policy_returns_500_without_details(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-policy")
        async def endpoint():
            RateLimitPolicy(max_requests=0, window_seconds=60, name="broken")

        response = client.get("/test-policy")

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "invalid_policy"
        assert "details" not in error

    def test_unidentifiable_client_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        install_rate_limiter(app_with_handlers)

        @app_with_handlers.get("/throttled", dependencies=[Depends(rate_limit("api"))])
        async def endpoint():
            return {}

        # TestClient always reports a peer; drop it to simulate an unknown client.
        anonymous = TestClient(_without_client(app_with_handlers), raise_server_exceptions=False)

        response = anonymous.get("/throttled")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "empty_identifier"

    def test_error_types_are_subclasses(self):
        assert issubclass(InvalidPolicyError, ValidationAppError)
        assert issubclass(EmptyIdentifierError, ValidationAppError)


class TestGeneralExceptionHandler:
    def test_unexpected_error_returns_generic_500(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/boom")
        async def endpoint():
            raise RuntimeError("database password is hunter2")

        response = client.get("/boom")

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "internal_server_error"
        assert "hunter2" not in response.text


def _without_client(app: FastAPI):
    """Wrap an ASGI app so the request scope carries no peer address."""

    async def asgi(scope, receive, send):
        if scope["type"] == "http":
            scope = dict(scope, client=None)
        await app(scope, receive, send)

    return asgi
