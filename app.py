"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.handlers import error_response, handle_forward
from auth import UpstreamSession
from core.config import Config
from core.exceptions import RequestTooLarge
from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.router import RouteDecider
from services.upstream import Forwarder

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Permitted-Cross-Domain-Policies": "none",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
}


def create_app(
    config: Config,
    logger: RequestLogger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        limits = httpx.Limits(
            max_connections=config.upstream.max_connections,
            max_keepalive_connections=config.upstream.max_keepalive_connections,
        )
        upstream_client = httpx.AsyncClient(
            base_url=config.upstream.base_url,
            timeout=config.upstream.timeout,
            limits=limits,
            follow_redirects=True,
            transport=transport,
        )
        header_builder = HeaderBuilder(config.gateway.token_header)
        session = UpstreamSession(upstream_client, config.login, logger)
        app.state.route_decider = RouteDecider(config.gateway.prefix, config.gateway.upload_path)
        app.state.forwarder = Forwarder(upstream_client, session, header_builder, logger)
        try:
            yield
        finally:
            await upstream_client.aclose()

    app = FastAPI(title="Admin Gateway", version="0.1.0", lifespan=lifespan)

    @app.middleware("http")
    async def limit_body_size(request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > config.limits.max_body_size:
            return error_response(
                RequestTooLarge(
                    "Request body too large",
                    error=f"limit is {config.limits.max_body_size} bytes",
                )
            )
        return await call_next(request)

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for key, value in SECURITY_HEADERS.items():
            response.headers.setdefault(key, value)
        return response

    # Added last so it wraps the other middleware and answers preflights first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors.allow_origins,
        allow_methods=config.cors.allow_methods,
        allow_headers=config.cors.allow_headers,
        max_age=config.cors.max_age,
    )

    prefix = config.gateway.prefix.rstrip("/")

    async def proxy_gateway(request: Request):
        return await handle_forward(request, config, logger)

    # methods=None matches every verb; the router answers unsupported ones
    app.add_route(prefix, proxy_gateway, methods=None, include_in_schema=False)
    app.add_route(prefix + "/{path:path}", proxy_gateway, methods=None, include_in_schema=False)

    return app
