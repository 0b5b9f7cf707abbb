"""FastAPI route handlers."""

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from core.config import Config
from core.exceptions import BothFailedError, UpstreamError
from core.protocols import RequestLogger
from core.request_types import Rejected, RejectionKind, SourceEntry

FALLBACK_HEADER = "X-Relay-Fallback"
SOURCE_HEADER = "X-Relay-Source"

_REJECTION_STATUS = {
    RejectionKind.BAD_ENCODING: 400,
    RejectionKind.NOT_ALLOWLISTED: 403,
    RejectionKind.UNKNOWN_SOURCE: 400,
}


def rejection_response(rejected: Rejected) -> JSONResponse:
    """Render a policy rejection as a structured error body."""
    status = _REJECTION_STATUS[rejected.kind]
    if rejected.kind is RejectionKind.BAD_ENCODING:
        body = {"error": "Invalid url encoding"}
    elif rejected.kind is RejectionKind.NOT_ALLOWLISTED:
        body = {"error": "URL not in whitelist", "url": rejected.url}
    else:
        body = {"error": "Invalid source", "valid": list(rejected.valid)}
    return JSONResponse(body, status_code=status)


def upstream_error_response(
    error: UpstreamError | BothFailedError,
    source: str | None = None,
) -> JSONResponse:
    """Render an executor failure as a 502."""
    if isinstance(error, BothFailedError):
        body = {
            "error": "Primary and fallback both failed",
            "details": {
                "primary": error.primary.message,
                "fallback": error.fallback.message,
            },
        }
    else:
        body = {"error": "Upstream fetch failed", "detail": error.message}
        if error.status_code is not None:
            body["status"] = error.status_code
    if source is not None:
        body["source"] = source
    return JSONResponse(body, status_code=502)


async def handle_fetch(
    request: Request,
    config: Config,
    logger: RequestLogger,
) -> Response:
    """Relay an allowlisted literal URL (``?url=``)."""
    raw_url = request.query_params.get("url")
    if not raw_url:
        return JSONResponse({"error": "Missing url parameter"}, status_code=400)

    resolved = request.app.state.resolver.resolve_url(raw_url)
    if isinstance(resolved, Rejected):
        return rejection_response(resolved)

    executor = request.app.state.executor
    try:
        outcome = await executor.execute(SourceEntry(name="url", primary=resolved))
    except UpstreamError as e:
        return upstream_error_response(e)

    logger.log_relay("url", resolved.url, outcome.status_code)
    cache = config.cache
    return Response(
        content=outcome.body,
        status_code=outcome.status_code,
        headers={
            # media_type would append a charset to text/* types
            "Content-Type": outcome.content_type,
            "Cache-Control": (
                f"s-maxage={cache.literal_s_maxage}, "
                f"stale-while-revalidate={cache.literal_stale_while_revalidate}"
            ),
        },
    )


async def handle_source(
    request: Request,
    config: Config,
    logger: RequestLogger,
) -> Response:
    """Relay a named source (``?source=``), falling back when configured."""
    name = request.query_params.get("source")
    resolved = request.app.state.resolver.resolve_source(name)
    if isinstance(resolved, Rejected):
        return rejection_response(resolved)

    executor = request.app.state.executor
    try:
        outcome = await executor.execute(resolved)
    except (UpstreamError, BothFailedError) as e:
        return upstream_error_response(e, source=resolved.name)

    used = resolved.fallback if outcome.used_fallback else resolved.primary
    logger.log_relay(resolved.name, used.url, 200, used_fallback=outcome.used_fallback)

    max_age = config.cache.source_max_age
    headers = {
        "Content-Type": outcome.content_type,
        "Cache-Control": f"public, s-maxage={max_age}, max-age={max_age}",
        SOURCE_HEADER: resolved.name,
    }
    if outcome.used_fallback:
        headers[FALLBACK_HEADER] = "true"
    return Response(content=outcome.body, status_code=200, headers=headers)
