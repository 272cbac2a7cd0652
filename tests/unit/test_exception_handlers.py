"""Unit tests for API exception sanitization and error payloads."""

from __future__ import annotations

import pytest
from fastapi import FastAPI, HTTPException
from httpx import ASGITransport, AsyncClient

from guidebook.ai.errors import ProviderConfigurationError
from guidebook.core.exceptions import _sanitize_validation_errors, global_exception_handler, http_exception_handler, provider_configuration_exception_handler
from guidebook.core.middleware import RequestLoggingMiddleware


def test_sanitize_validation_errors_removes_input_and_serializes_exception_ctx() -> None:
  errors = [{"type": "value_error", "loc": ("body", "title"), "msg": "Value error, must not be blank", "input": "   ", "ctx": {"error": ValueError("must not be blank"), "input": "   "}}]
  sanitized = _sanitize_validation_errors(errors)
  assert "input" not in sanitized[0]
  assert sanitized[0]["ctx"]["error"] == "ValueError: must not be blank"
  assert "input" not in sanitized[0]["ctx"]


def _app() -> FastAPI:
  app = FastAPI()
  app.add_exception_handler(Exception, global_exception_handler)
  app.add_exception_handler(HTTPException, http_exception_handler)
  app.add_exception_handler(ProviderConfigurationError, provider_configuration_exception_handler)
  app.add_middleware(RequestLoggingMiddleware)

  @app.get("/boom")
  async def boom() -> None:
    raise RuntimeError("secret database password")

  @app.get("/server-error")
  async def server_error() -> None:
    raise HTTPException(status_code=502, detail="upstream token abc")

  @app.get("/not-found")
  async def not_found() -> None:
    raise HTTPException(status_code=404, detail="Project with ID x not found")

  @app.get("/unconfigured")
  async def unconfigured() -> None:
    raise ProviderConfigurationError("no keys")

  return app


@pytest.mark.anyio
async def test_error_payloads_hide_server_details_and_carry_request_id() -> None:
  transport = ASGITransport(app=_app(), raise_app_exceptions=False)
  async with AsyncClient(transport=transport, base_url="http://test") as client:
    boom = await client.get("/boom", headers={"X-Request-ID": "req-123"})
    server_error = await client.get("/server-error")
    not_found = await client.get("/not-found")
    unconfigured = await client.get("/unconfigured")

  assert boom.status_code == 500
  assert boom.json() == {"detail": "Internal Server Error", "requestId": "req-123"}
  assert server_error.json()["detail"] == "Internal Server Error"
  assert not_found.json()["detail"] == "Project with ID x not found"
  assert not_found.headers["x-request-id"] == not_found.json()["requestId"]
  assert unconfigured.status_code == 503
  assert unconfigured.json()["detail"] == "Text generation is not configured."
