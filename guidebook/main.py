from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from guidebook.ai.errors import ProviderConfigurationError
from guidebook.api.routes import books, content, documents, translations
from guidebook.config import get_settings
from guidebook.core.exceptions import global_exception_handler, http_exception_handler, provider_configuration_exception_handler, request_validation_exception_handler
from guidebook.core.lifespan import lifespan
from guidebook.core.middleware import RequestLoggingMiddleware

settings = get_settings()

app = FastAPI(title="Guidebook Engine", lifespan=lifespan)

app.add_middleware(CORSMiddleware, allow_origins=list(settings.allowed_origins), allow_credentials=True, allow_methods=["GET", "POST", "OPTIONS"], allow_headers=["content-type", "authorization", "x-request-id"], expose_headers=["content-length", "x-request-id"])

# Add exception handlers
app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(ProviderConfigurationError, provider_configuration_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

# Add middleware
app.add_middleware(RequestLoggingMiddleware)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok", "version": "0.1.0"}


app.include_router(content.router, prefix="/content", tags=["content"])
app.include_router(books.router, prefix="/books", tags=["books"])
app.include_router(documents.router, prefix="/documents", tags=["documents"])
app.include_router(translations.router, prefix="/translations", tags=["translations"])
