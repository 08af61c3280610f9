"""FastAPI route handlers."""

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from core.config import Config
from core.exceptions import (
    GatewayError,
    MethodNotAllowed,
    MultipartParseError,
    RequestTooLarge,
    UpstreamError,
)
from core.protocols import RequestLogger
from core.request_types import ForwardRequest, ForwardResult, UploadedFile
from core.router import RouteDecider, RouteDecision
from ui.log_utils import write_incoming_log


def error_response(exc: GatewayError) -> JSONResponse:
    """Render a gateway error as ``{message, error}``."""
    if isinstance(exc, MethodNotAllowed):
        return JSONResponse({"message": exc.message}, status_code=exc.status_code)
    return JSONResponse(
        {"message": exc.message, "error": exc.error},
        status_code=exc.status_code,
    )


def _raw_path(request: Request) -> str:
    raw = request.scope.get("raw_path")
    if not raw:
        return request.url.path
    return raw.split(b"?", 1)[0].decode("latin-1")


async def _read_body(request: Request, config: Config) -> bytes:
    raw_body = await request.body()
    if len(raw_body) > config.limits.max_body_size:
        raise RequestTooLarge("Request body too large", error=f"limit is {config.limits.max_body_size} bytes")
    return raw_body


async def decompose_multipart(
    request: Request,
    config: Config,
) -> tuple[dict[str, str], dict[str, UploadedFile]]:
    """Split a multipart body into a field map and a buffered file map.

    Later parts overwrite earlier ones with the same name.
    """
    try:
        form = await request.form()
    except (MultiPartException, StarletteHTTPException) as e:
        detail = getattr(e, "message", None) or getattr(e, "detail", None) or str(e)
        raise MultipartParseError("Malformed multipart request", error=detail) from e

    fields: dict[str, str] = {}
    files: dict[str, UploadedFile] = {}
    total = 0
    try:
        for name, value in form.multi_items():
            if isinstance(value, UploadFile):
                content = await value.read()
                total += len(content)
                if len(content) > config.limits.max_file_size:
                    raise RequestTooLarge(
                        "Uploaded file too large",
                        error=f"{value.filename}: limit is {config.limits.max_file_size} bytes",
                    )
                files[name] = UploadedFile(
                    filename=value.filename or "",
                    content_type=value.content_type or "application/octet-stream",
                    content=content,
                )
            else:
                total += len(value.encode())
                fields[name] = value
            # Chunked bodies carry no Content-Length for the middleware to check
            if total > config.limits.max_body_size:
                raise RequestTooLarge(
                    "Request body too large",
                    error=f"limit is {config.limits.max_body_size} bytes",
                )
    finally:
        await form.close()
    return fields, files


async def build_forward_request(
    request: Request,
    decision: RouteDecision,
    config: Config,
) -> ForwardRequest:
    """Translate the inbound request for the Forwarder."""
    headers = dict(request.headers)
    query = list(request.query_params.multi_items())

    if decision.is_upload:
        fields, files = await decompose_multipart(request, config)
        write_incoming_log(request.method, request.url.path, headers, fields, files=files)
        return ForwardRequest(
            method=decision.method,
            endpoint=decision.endpoint,
            headers=headers,
            query=query,
            fields=fields,
            files=files,
        )

    body = await _read_body(request, config) if decision.has_body else None
    write_incoming_log(request.method, request.url.path, headers, body)
    return ForwardRequest(
        method=decision.method,
        endpoint=decision.endpoint,
        headers=headers,
        query=query,
        body=body,
    )


def _to_response(result: ForwardResult) -> Response:
    return Response(
        content=result.content,
        status_code=result.status_code,
        headers=result.headers,
    )


async def handle_forward(
    request: Request,
    config: Config,
    logger: RequestLogger,
) -> Response:
    """Relay any request under the gateway prefix to the upstream."""
    decider: RouteDecider = request.app.state.route_decider
    forwarder = request.app.state.forwarder

    try:
        decision = decider.decide(
            request.method,
            _raw_path(request),
            request.headers.get("content-type"),
        )
        forward_request = await build_forward_request(request, decision, config)
        result = await forwarder.forward(forward_request)
    except GatewayError as e:
        # Upstream failures are reported by the Forwarder and session
        if not isinstance(e, (MethodNotAllowed, UpstreamError)):
            logger.log_error(request.url.path, e.status_code, e.message)
        return error_response(e)

    return _to_response(result)
