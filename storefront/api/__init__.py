# storefront/api/__init__.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from storefront.domain.errors import StorefrontError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def error_body(message: str) -> dict:
    return {"ok": False, "error": message}


def register_error_handlers(app: FastAPI) -> None:
    """Kazdy blad konczy sie jako {"ok": false, "error": ...}, nic nie wylatuje dalej."""

    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        msg = first.get("msg", "Invalid input")
        return JSONResponse(status_code=422, content=error_body(f"{loc}: {msg}" if loc else msg))

    @app.exception_handler(RedisError)
    async def redis_error_handler(request: Request, exc: RedisError):
        logger.error(f"Cart storage error on {request.url.path}: {exc}")
        return JSONResponse(status_code=503, content=error_body("Cart storage unavailable"))
