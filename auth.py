"""Upstream session credential - login and serialized refresh."""

import asyncio

import httpx

from core.config import LoginSettings
from core.exceptions import LoginError
from core.expiry import decode_payload
from core.protocols import RequestLogger
from ui.log_utils import write_cli_log


class UpstreamSession:
    """Holds the single upstream credential shared by every forwarded call.

    The token lives in memory only. Refreshes are serialized so that callers
    observing expiry at the same time trigger one login between them.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        login: LoginSettings,
        logger: RequestLogger,
    ) -> None:
        self._client = client
        self._login = login
        self._logger = logger
        self._token: str | None = None
        self._lock = asyncio.Lock()

    @property
    def token(self) -> str | None:
        return self._token

    async def login(self) -> str:
        """Log in with the configured identity and store the returned token."""
        write_cli_log("LOGIN", "Attempting upstream login", path=self._login.path)
        try:
            response = await self._client.post(
                self._login.path,
                json={
                    "telephone": self._login.telephone,
                    "password": self._login.password,
                },
            )
        except httpx.RequestError as e:
            self._logger.log_refresh(False, str(e))
            raise LoginError(f"Login request failed: {e}") from e

        payload = decode_payload(response)
        if not response.is_success:
            self._logger.log_refresh(False, f"status {response.status_code}")
            raise LoginError(
                f"Login failed with status code {response.status_code}",
                status_code=response.status_code,
                payload=payload,
            )

        token = _extract_token(payload)
        if not token:
            self._logger.log_refresh(False, "no token in login response")
            raise LoginError("Login response did not contain a token", payload=payload)

        self._token = token
        self._logger.log_refresh(True)
        write_cli_log("LOGIN", "Upstream login succeeded")
        return token

    async def refresh(self, stale_token: str | None) -> str:
        """Replace ``stale_token``, reusing a refresh another caller completed."""
        async with self._lock:
            if self._token is not None and self._token != stale_token:
                return self._token
            return await self.login()


def _extract_token(payload: object) -> str | None:
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if not isinstance(data, dict):
        return None
    token = data.get("token")
    return token if isinstance(token, str) and token else None
