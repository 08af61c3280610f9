"""Forwarding of gateway requests to the upstream service."""

import os

import httpx

from auth import UpstreamSession
from core.exceptions import UpstreamConnectionError, UpstreamError, UpstreamTimeoutError
from core.expiry import ExpirySignal, build_envelope, classify, is_expired, upload_failure_result
from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.request_types import ForwardRequest, ForwardResult, UpstreamEnvelope
from ui.log_utils import write_cli_log


class Forwarder:
    """Send requests upstream with the session credential, refreshing it once on expiry."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        session: UpstreamSession,
        header_builder: HeaderBuilder,
        logger: RequestLogger,
    ) -> None:
        self._client = client
        self._session = session
        self._headers = header_builder
        self._logger = logger

    async def forward(self, request: ForwardRequest) -> ForwardResult:
        """Forward a request, with at most one refresh-and-retry cycle."""
        token = self._session.token
        response = await self.send(request, token)
        envelope = build_envelope(response)
        signal = classify(envelope)

        if not is_expired(signal):
            return self._finish(request, response, envelope, signal)

        write_cli_log(
            "EXPIRED",
            "Upstream session expired, refreshing",
            method=request.method,
            endpoint=request.endpoint,
            signal=signal.value,
        )
        # A failed login propagates and replaces the original failure
        token = await self._session.refresh(token)
        response = await self.send(request, token)
        envelope = build_envelope(response)
        return self._finish(request, response, envelope, classify(envelope), retried=True)

    async def send(self, request: ForwardRequest, token: str | None) -> httpx.Response:
        """Issue one upstream call; multipart bodies are re-encoded on every call."""
        headers = self._headers.build_upstream_headers(
            request.headers, token, multipart=request.is_multipart
        )
        kwargs: dict = {"headers": headers, "params": request.query}
        if request.is_multipart:
            # Fields go in as filename-less parts so the body stays multipart
            # even when no file was uploaded.
            parts: list[tuple[str, tuple]] = [
                (name, (None, value)) for name, value in (request.fields or {}).items()
            ]
            parts.extend(
                (name, (upload.filename, upload.content, upload.content_type))
                for name, upload in (request.files or {}).items()
            )
            if parts:
                kwargs["files"] = parts
            else:
                # httpx sends no body at all for an empty file list
                boundary = os.urandom(16).hex()
                headers["Content-Type"] = f"multipart/form-data; boundary={boundary}"
                kwargs["content"] = f"--{boundary}--\r\n".encode()
        elif request.method != "GET" and request.body:
            kwargs["content"] = request.body

        try:
            return await self._client.request(request.method, self.upstream_url(request.endpoint), **kwargs)
        except httpx.TimeoutException as e:
            self._logger.log_error(request.endpoint, 504, "Upstream timeout")
            raise UpstreamTimeoutError(f"Upstream timeout: {e}") from e
        except httpx.RequestError as e:
            self._logger.log_error(request.endpoint, 502, str(e))
            raise UpstreamConnectionError(f"Upstream connection error: {e}") from e

    def upstream_url(self, endpoint: str) -> httpx.URL:
        """Append the endpoint to the base path verbatim.

        A relative reference would let httpx read a leading ``//`` as a host.
        """
        base = self._client.base_url
        raw_path = base.raw_path.split(b"?", 1)[0].rstrip(b"/") + endpoint.encode("latin-1")
        return base.copy_with(raw_path=raw_path or b"/")

    def _finish(
        self,
        request: ForwardRequest,
        response: httpx.Response,
        envelope: UpstreamEnvelope,
        signal: ExpirySignal,
        *,
        retried: bool = False,
    ) -> ForwardResult:
        """Turn a final response into a result, or raise for a transport failure."""
        if not response.is_success:
            self._logger.log_error(request.endpoint, response.status_code, response.text)
            raise UpstreamError(
                f"Request failed with status code {response.status_code}",
                status_code=response.status_code,
                payload=envelope.payload if envelope.payload is not None else response.text,
            )

        self._logger.log_forward(request.method, request.endpoint, response.status_code, retried=retried)
        if signal is ExpirySignal.UPLOAD_PARSE_FAILURE:
            write_cli_log("UPLOAD", "Upstream failed to parse multipart body", endpoint=request.endpoint)
            return upload_failure_result()

        return ForwardResult(
            status_code=response.status_code,
            headers=self._headers.build_response_headers(response.headers),
            content=response.content,
        )
