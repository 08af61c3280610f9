import httpx

from core.headers import HeaderBuilder


def test_inbound_headers_pass_through_with_credential():
    headers = HeaderBuilder().build_upstream_headers(
        {"Accept": "application/json", "x-lang": "zh", "Authorization": "Bearer caller"},
        "token-1",
    )

    assert headers == {
        "Accept": "application/json",
        "x-lang": "zh",
        "Authorization": "Bearer caller",
        "x-access-token": "token-1",
    }


def test_managed_credential_overrides_inbound_token():
    headers = HeaderBuilder().build_upstream_headers({"X-Access-Token": "forged"}, "token-1")

    assert headers == {"x-access-token": "token-1"}


def test_absent_credential_is_sent_empty():
    assert HeaderBuilder().build_upstream_headers({}, None) == {"x-access-token": ""}


def test_transport_headers_are_dropped():
    headers = HeaderBuilder().build_upstream_headers(
        {"host": "gateway", "content-length": "12", "connection": "keep-alive", "transfer-encoding": "chunked"},
        "",
    )

    assert headers == {"x-access-token": ""}


def test_multipart_drops_inbound_content_type():
    inbound = {"content-type": "multipart/form-data; boundary=abc"}

    assert "content-type" not in HeaderBuilder().build_upstream_headers(inbound, "", multipart=True)
    assert HeaderBuilder().build_upstream_headers(inbound, "")["content-type"] == inbound["content-type"]


def test_custom_token_header():
    headers = HeaderBuilder("x-session").build_upstream_headers({}, "abc")

    assert headers == {"x-session": "abc"}


def test_response_headers_drop_encoding_and_length():
    upstream = httpx.Headers(
        {
            "content-type": "application/json",
            "content-length": "10",
            "content-encoding": "gzip",
            "x-request-id": "r1",
        }
    )

    assert HeaderBuilder().build_response_headers(upstream) == {
        "content-type": "application/json",
        "x-request-id": "r1",
    }
