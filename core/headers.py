"""Header construction for upstream requests and relayed responses."""

from typing import Any

# Computed by the HTTP client or server for each hop; never copied across.
HOP_BY_HOP_HEADERS = frozenset(
    {
        "host",
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "trailers",
        "transfer-encoding",
        "upgrade",
        "content-length",
    }
)


class HeaderBuilder:
    """Build upstream request headers and relayed response headers."""

    def __init__(self, token_header: str = "x-access-token") -> None:
        self.token_header = token_header

    def build_upstream_headers(
        self,
        headers: dict[str, Any],
        token: str | None,
        *,
        multipart: bool = False,
    ) -> dict[str, str]:
        """Copy inbound headers and attach the managed credential."""
        token_key = self.token_header.lower()
        upstream: dict[str, str] = {}
        for key, value in headers.items():
            key_lower = key.lower()
            if key_lower in HOP_BY_HOP_HEADERS or key_lower == token_key:
                continue
            # httpx generates the multipart boundary
            if multipart and key_lower == "content-type":
                continue
            upstream[key] = str(value)
        upstream[self.token_header] = token or ""
        return upstream

    def build_response_headers(self, headers: Any) -> dict[str, str]:
        """Pass through upstream response headers the server can relay as-is."""
        relayed: dict[str, str] = {}
        for key, value in headers.items():
            key_lower = key.lower()
            # httpx has already decoded the body
            if key_lower in HOP_BY_HOP_HEADERS or key_lower == "content-encoding":
                continue
            relayed[key] = value
        return relayed
