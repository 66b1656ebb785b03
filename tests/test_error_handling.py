"""
Tests for error responses, sanitization and the health endpoints
"""
import asyncio
import json

from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.requests import Request

from replivity.exceptions import ErrorResponse
from replivity.middleware.error_handler import (
    ErrorSanitizer,
    database_error_handler,
    generic_exception_handler,
)


def make_request(path="/v1/test", method="GET"):
    return Request({
        "type": "http",
        "method": method,
        "path": path,
        "headers": [],
        "query_string": b"",
    })


def run_handler(handler, exc):
    response = asyncio.run(handler(make_request(), exc))
    return response.status_code, json.loads(response.body)


class TestErrorSanitizer:
    """Scrubbing of error text"""

    def test_connection_string(self):
        """Database URLs and their credentials are removed"""
        message = ErrorSanitizer.sanitize_message("could not connect to postgresql://app:pw@db:5432/replivity")
        assert message == "could not connect to [REDACTED_CONNECTION]"

    def test_file_path(self):
        """Absolute paths are removed"""
        message = ErrorSanitizer.sanitize_message("File /usr/lib/python3/site.py failed")
        assert message == "File [REDACTED_PATH] failed"

    def test_sql_statement(self):
        """SQL statements are removed"""
        message = ErrorSanitizer.sanitize_message("error in SELECT * FROM users WHERE id = 1")
        assert message == "error in SQL statement [REDACTED]"

    def test_email(self):
        """Email addresses are removed"""
        message = ErrorSanitizer.sanitize_message("duplicate key for bob@example.com")
        assert message == "duplicate key for [REDACTED_EMAIL]"

    def test_truncation_and_empty(self):
        """Long messages are cut and empty ones get a generic text"""
        assert ErrorSanitizer.sanitize_message("x" * 600) == "x" * 500 + "... [truncated]"
        assert ErrorSanitizer.sanitize_message("") == "An error occurred"

    def test_sanitize_details(self):
        """Sensitive keys are dropped and nested values scrubbed"""
        details = ErrorSanitizer.sanitize_details({
            "password": "hunter2",
            "Token": "abc",
            "path": "/etc/replivity/app.env",
            "nested": {"api_key": "k", "count": 1},
            "items": ["/var/log/app.log", 3],
        })

        assert details == {
            "path": "[REDACTED_PATH]",
            "nested": {"count": 1},
            "items": ["[REDACTED_PATH]", 3],
        }


class TestErrorResponse:
    """ErrorResponse payloads"""

    def test_optional_fields_omitted(self):
        """request_id and details only appear when set"""
        assert ErrorResponse.create("Nope", "NOT_FOUND", 404) == {
            "code": "NOT_FOUND",
            "message": "Nope",
            "status_code": 404,
        }

    def test_all_fields(self):
        """Explicit request id and details are included"""
        payload = ErrorResponse.create("Bad", "BAD_REQUEST", 400, request_id="req-1", details={"field": "x"})
        assert payload["request_id"] == "req-1"
        assert payload["details"] == {"field": "x"}


class TestExceptionHandlers:
    """Handlers that never leak internals"""

    def test_integrity_error(self):
        """Constraint violations are reported without SQL"""
        exc = IntegrityError("INSERT INTO users (email) VALUES (?)", {}, Exception("UNIQUE constraint failed"))
        status_code, body = run_handler(database_error_handler, exc)

        assert status_code == 500
        assert body["code"] == "DATABASE_CONSTRAINT_ERROR"
        assert body["details"] == {"error_type": "IntegrityError"}
        assert "INSERT" not in json.dumps(body)

    def test_operational_error(self):
        """Connection problems get their own code"""
        exc = OperationalError("SELECT 1", {}, Exception("connection refused"))
        _, body = run_handler(database_error_handler, exc)
        assert body["code"] == "DATABASE_CONNECTION_ERROR"

    def test_unhandled_exception(self):
        """Outside dev only the exception type is reported"""
        status_code, body = run_handler(generic_exception_handler, RuntimeError("secret internals"))

        assert status_code == 500
        assert body["code"] == "INTERNAL_ERROR"
        assert body["details"] == {"error_type": "RuntimeError"}
        assert "secret internals" not in json.dumps(body)


class TestErrorResponsesOverHTTP:
    """Error format as seen by clients"""

    def test_service_error_includes_request_id(self, client):
        """Service errors carry code, status and the caller's request id"""
        response = client.get("/v1/blog/posts/9999", headers={"X-Request-ID": "req-abc"})

        assert response.status_code == 404
        assert response.headers["X-Request-ID"] == "req-abc"
        body = response.json()
        assert body["code"] == "NOT_FOUND"
        assert body["status_code"] == 404
        assert body["message"] == "Post not found"
        assert body["request_id"] == "req-abc"

    def test_generated_request_id(self, client):
        """A request id is generated when none is sent"""
        response = client.get("/")
        assert response.headers["X-Request-ID"]

    def test_unknown_route(self, client):
        """Routing errors use the same format"""
        response = client.get("/v1/does-not-exist")
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_method_not_allowed(self, client):
        """405 is mapped to its code"""
        response = client.delete("/health")
        assert response.status_code == 405
        assert response.json()["code"] == "METHOD_NOT_ALLOWED"

    def test_unauthorized(self, client):
        """Missing credentials are a 401 with a bearer challenge"""
        response = client.get("/v1/usage")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["message"] == "Authentication token is missing. Please log in again."


class TestHealth:
    """Root and health endpoints"""

    def test_root(self, client):
        """The root reports the service is running"""
        assert client.get("/").json() == {"message": "Replivity API", "status": "running"}

    def test_healthy(self, client):
        """The database is reachable in tests"""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "replivity", "database": "ok"}

    def test_unhealthy(self, client, monkeypatch):
        """A failed database ping turns into 503"""
        monkeypatch.setattr("replivity.api_server.check_connection", lambda: False)

        response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
