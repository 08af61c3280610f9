"""Shared request data types."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class UploadedFile:
    """A file part buffered from an inbound multipart body."""

    filename: str
    content_type: str
    content: bytes


@dataclass(frozen=True)
class ForwardRequest:
    """An inbound request translated for the upstream.

    Either ``body`` is used, or the ``fields``/``files`` pair when the
    request came in on the upload route as multipart.
    """

    method: str
    endpoint: str
    headers: dict[str, str]
    query: list[tuple[str, str]] = field(default_factory=list)
    body: bytes | None = None
    fields: dict[str, str] | None = None
    files: dict[str, UploadedFile] | None = None

    def __post_init__(self) -> None:
        if self.body is not None and self.is_multipart:
            raise ValueError("ForwardRequest carries both a body and form parts")

    @property
    def is_multipart(self) -> bool:
        return self.fields is not None or self.files is not None


@dataclass(frozen=True)
class ForwardResult:
    """Upstream response relayed back to the caller."""

    status_code: int
    headers: dict[str, str]
    content: bytes


@dataclass(frozen=True)
class UpstreamEnvelope:
    """Tagged view of an upstream response used for expiry classification."""

    status_code: int
    application_code: int | None
    payload: Any
