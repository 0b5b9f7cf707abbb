"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.handlers import handle_fetch, handle_source
from core.config import Config
from core.headers import HeaderBuilder
from core.policy import PolicyResolver
from core.protocols import RequestLogger
from credentials import load_credentials
from services.upstream import FetchExecutor, build_client

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def create_app(
    config: Config,
    logger: RequestLogger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The policy is built here, once, and shared read-only by every request.
    ``transport`` replaces the network layer of the upstream client.
    """
    resolver = PolicyResolver.from_config(config, load_credentials(config), HeaderBuilder())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = build_client(config.upstream, transport)
        app.state.resolver = resolver
        app.state.executor = FetchExecutor(client, logger, config.upstream)
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(title="Makro Signal Relay", version="0.1.0", lifespan=lifespan)

    @app.middleware("http")
    async def cors_and_methods(request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)
        if request.method != "GET":
            return JSONResponse(
                {"error": "Method not allowed", "method": request.method},
                status_code=405,
                headers={**CORS_HEADERS, "Allow": "GET, OPTIONS"},
            )
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    @app.get("/api/fetch")
    async def relay_url(request: Request):
        return await handle_fetch(request, config, logger)

    @app.get("/api/source")
    async def relay_source(request: Request):
        return await handle_source(request, config, logger)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app
