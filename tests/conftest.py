"""Shared fixtures: a scripted upstream, a recording logger and test config."""

from typing import Any

import httpx
import pytest

import ui.log_utils as log_utils
from auth import UpstreamSession
from core.config import Config, GatewaySettings, LoginSettings, UpstreamSettings
from core.headers import HeaderBuilder
from services.upstream import Forwarder

BASE_URL = "http://upstream.test"


class RecordingLogger:
    """RequestLogger that keeps every call for assertions."""

    def __init__(self) -> None:
        self.forwards: list[tuple[str, str, int, bool]] = []
        self.refreshes: list[tuple[bool, str]] = []
        self.errors: list[tuple[str, int, str]] = []

    def log_forward(self, method: str, endpoint: str, status: int, *, retried: bool = False) -> None:
        self.forwards.append((method, endpoint, status, retried))

    def log_refresh(self, success: bool, detail: str = "") -> None:
        self.refreshes.append((success, detail))

    def log_error(self, endpoint: str, status: int, message: str) -> None:
        self.errors.append((endpoint, status, message))


class FakeUpstream:
    """Scripted upstream behind ``httpx.MockTransport``.

    Queued responses are returned in order for non-login calls; once the
    queue is empty every call gets ``{"code": 0}``. Logins issue
    ``token-1``, ``token-2``, ... unless a login response is queued.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: list[Any] = []
        self.login_responses: list[Any] = []
        self.login_calls = 0

    def queue(self, *responses: Any) -> None:
        self.responses.extend(responses)

    @property
    def forwarded(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path != "/user/login"]

    @property
    def logins(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/user/login"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/user/login":
            self.login_calls += 1
            if self.login_responses:
                return self._resolve(self.login_responses.pop(0), request)
            return httpx.Response(200, json={"code": 0, "data": {"token": f"token-{self.login_calls}"}})
        if self.responses:
            return self._resolve(self.responses.pop(0), request)
        return httpx.Response(200, json={"code": 0})

    @staticmethod
    def _resolve(item: Any, request: httpx.Request) -> httpx.Response:
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(request)
        return item

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path, monkeypatch):
    """Keep file logs out of the working directory."""
    monkeypatch.setattr(log_utils, "LOG_ROOT", tmp_path / "logs")
    monkeypatch.setattr(log_utils, "CLI_LOG_FILE", tmp_path / "logs" / "gateway.log")
    return tmp_path / "logs"


@pytest.fixture
def config() -> Config:
    return Config(
        upstream=UpstreamSettings(base_url=BASE_URL),
        login=LoginSettings(telephone="15500000000", password="secret-pass"),
        gateway=GatewaySettings(),
    )


@pytest.fixture
def logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
async def upstream_client(upstream):
    async with httpx.AsyncClient(base_url=BASE_URL, transport=upstream.transport) as client:
        yield client


@pytest.fixture
def session(upstream_client, config, logger) -> UpstreamSession:
    return UpstreamSession(upstream_client, config.login, logger)


@pytest.fixture
def forwarder(upstream_client, session, logger) -> Forwarder:
    return Forwarder(upstream_client, session, HeaderBuilder(), logger)
