import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pixelbridge import __version__
from pixelbridge.config import Settings
from pixelbridge.errors import BridgeError
from pixelbridge.middleware import RateLimitMiddleware
from pixelbridge.routes import drawing_router, images_router, system_router
from pixelbridge.service import ConversionService
from pixelbridge.store import GitHubStore

logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "Invalid request: " + "; ".join(parts) if parts else "Invalid request"


def create_app(settings: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: configuration; read from the environment when omitted
        transport: optional httpx transport for the outbound client (tests
            pass an httpx.MockTransport here)
    """
    if settings is None:
        settings = Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        client = httpx.AsyncClient(timeout=settings.http_timeout, transport=transport)
        store = GitHubStore(settings, client)
        app.state.settings = settings
        app.state.service = ConversionService(settings, store, client)

        logger.info("Pixel Bridge %s starting", __version__)
        logger.info("Repo: %s (branch %s)", settings.github_repo or "not configured", settings.github_branch)
        logger.info("Canvas: %dx%d", settings.canvas_size, settings.canvas_size)
        if not settings.is_configured:
            logger.warning("Missing %s; store endpoints will report a configuration error", ", ".join(settings.missing()))

        yield

        # Shutdown
        await client.aclose()

    app = FastAPI(title="Pixel Bridge", version=__version__, lifespan=lifespan)

    # Rate limiting middleware
    app.add_middleware(RateLimitMiddleware, enabled=settings.rate_limit_enabled)

    # CORS middleware (must be last to apply first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(BridgeError)
    async def bridge_error_handler(request: Request, exc: BridgeError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _validation_message(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": f"Internal server error: {exc}"})

    # Register routers
    app.include_router(system_router)
    app.include_router(drawing_router)
    app.include_router(images_router)

    return app


app = create_app()


def main():
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
