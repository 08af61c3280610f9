"""Request routing logic - maps inbound gateway paths to upstream endpoints."""

from dataclasses import dataclass

from core.exceptions import MethodNotAllowed

SUPPORTED_METHODS = frozenset({"GET", "POST", "PUT", "DELETE"})
MULTIPART_FORM = "multipart/form-data"


@dataclass(frozen=True)
class RouteDecision:
    """Routing decision for a request."""

    method: str
    endpoint: str
    is_upload: bool = False

    @property
    def has_body(self) -> bool:
        return self.method != "GET"


class RouteDecider:
    """Strip the forwarding prefix and classify method and upload route."""

    def __init__(self, prefix: str = "/admin", upload_path: str = "/formatPaperFile/upload"):
        self.prefix = prefix.rstrip("/")
        self.upload_path = upload_path

    def decide(self, method: str, raw_path: str, content_type: str | None = None) -> RouteDecision:
        """Return the upstream endpoint and how the body should be relayed."""
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise MethodNotAllowed("Unsupported HTTP method", error=method)

        endpoint = self.strip_prefix(raw_path)
        is_upload = self.upload_path in endpoint and self._is_multipart(content_type)
        return RouteDecision(method=method, endpoint=endpoint, is_upload=is_upload)

    def strip_prefix(self, raw_path: str) -> str:
        """Remove the leading prefix; the remainder is left encoded as received."""
        if raw_path == self.prefix:
            return ""
        if self.prefix and raw_path.startswith(self.prefix + "/"):
            return raw_path[len(self.prefix):]
        return raw_path

    @staticmethod
    def _is_multipart(content_type: str | None) -> bool:
        if not content_type:
            return False
        return content_type.split(";", 1)[0].strip().lower() == MULTIPART_FORM
