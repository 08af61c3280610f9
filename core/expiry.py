"""Session expiry detection for upstream responses."""

import json
from enum import Enum
from typing import Any

import httpx

from core.request_types import ForwardResult, UpstreamEnvelope

SESSION_EXPIRED_CODE = 401
UPLOAD_PARSE_FAILURE_CODE = 20001

UPLOAD_FAILURE_PAYLOAD = {
    "code": 400,
    "message": "File upload failed, check the file size or try again later.",
    "error": "Multipart request parsing failed",
}


class ExpirySignal(str, Enum):
    NONE = "none"
    TRANSPORT_401 = "transport-401"
    APPLICATION_401 = "application-code-401"
    UPLOAD_PARSE_FAILURE = "application-code-upload-parse-failure"


def decode_payload(response: httpx.Response) -> Any:
    """Decode a JSON body, returning None for empty or non-JSON content."""
    if not response.content:
        return None
    try:
        return json.loads(response.content)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


def build_envelope(response: httpx.Response) -> UpstreamEnvelope:
    """Wrap an upstream response with its application status code."""
    payload = decode_payload(response)
    code = payload.get("code") if isinstance(payload, dict) else None
    # bool is an int subclass; a JSON `true` is not a status code
    if not isinstance(code, int) or isinstance(code, bool):
        code = None
    return UpstreamEnvelope(
        status_code=response.status_code,
        application_code=code,
        payload=payload,
    )


def classify(envelope: UpstreamEnvelope) -> ExpirySignal:
    """Classify an envelope; transport status wins over the body code."""
    if envelope.status_code == 401:
        return ExpirySignal.TRANSPORT_401
    if not 200 <= envelope.status_code < 300:
        return ExpirySignal.NONE
    if envelope.application_code == SESSION_EXPIRED_CODE:
        return ExpirySignal.APPLICATION_401
    if envelope.application_code == UPLOAD_PARSE_FAILURE_CODE:
        return ExpirySignal.UPLOAD_PARSE_FAILURE
    return ExpirySignal.NONE


def is_expired(signal: ExpirySignal) -> bool:
    return signal in (ExpirySignal.TRANSPORT_401, ExpirySignal.APPLICATION_401)


def upload_failure_result() -> ForwardResult:
    """Fixed client-facing result for an upstream multipart parse failure."""
    return ForwardResult(
        status_code=200,
        headers={"content-type": "application/json"},
        content=json.dumps(UPLOAD_FAILURE_PAYLOAD).encode(),
    )
