import json

import httpx
import pytest

from core.exceptions import LoginError


async def test_login_posts_configured_identity(session, upstream, logger):
    token = await session.login()

    login = upstream.logins[0]
    assert login.method == "POST"
    assert str(login.url) == "http://upstream.test/user/login"
    assert json.loads(login.content) == {"telephone": "15500000000", "password": "secret-pass"}
    assert token == "token-1"
    assert session.token == "token-1"
    assert logger.refreshes == [(True, "")]


async def test_login_overwrites_previous_token(session):
    await session.login()
    await session.login()

    assert session.token == "token-2"


async def test_login_without_token_keeps_previous_credential(session, upstream, logger):
    await session.login()
    upstream.login_responses.append(httpx.Response(200, json={"code": 0, "data": {}}))

    with pytest.raises(LoginError):
        await session.login()

    assert session.token == "token-1"
    assert logger.refreshes[-1][0] is False


async def test_login_http_error_carries_status(session, upstream):
    upstream.login_responses.append(httpx.Response(403, json={"message": "bad password"}))

    with pytest.raises(LoginError) as exc_info:
        await session.login()

    assert exc_info.value.status_code == 403
    assert exc_info.value.payload == {"message": "bad password"}
    assert session.token is None


async def test_login_connection_error(session, upstream):
    upstream.login_responses.append(httpx.ConnectError("refused"))

    with pytest.raises(LoginError) as exc_info:
        await session.login()

    assert exc_info.value.status_code == 500


async def test_refresh_reuses_token_refreshed_by_another_caller(session, upstream):
    await session.login()

    token = await session.refresh(None)

    assert token == "token-1"
    assert upstream.login_calls == 1


async def test_refresh_logs_in_when_token_is_stale(session, upstream):
    await session.login()

    token = await session.refresh("token-1")

    assert token == "token-2"
    assert upstream.login_calls == 2
