"""HTTP client for the game-data API with bounded retry."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import httpx

from ...config import get_settings
from .state import PlayerState

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AuthenticationError(Exception):
    """The server rejected the bearer token. Never retried."""


class PersistenceError(Exception):
    """A load/save failed on every attempt."""

    def __init__(self, operation: str, attempts: int, last_error: BaseException):
        super().__init__(f"{operation} failed after {attempts} attempt(s): {last_error}")
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error


class GameDataClient:
    """Loads and saves the authenticated player's game state.

    Every call is retried up to max_attempts times with a fixed delay,
    except authentication failures (HTTP 401), which drop the token and
    raise AuthenticationError at once. A response that does not parse as
    game data counts as a failed attempt.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        settings = get_settings()
        self.base_url = base_url or settings.game_api_url
        self.token = token
        self.max_attempts = max_attempts if max_attempts is not None else settings.client_max_attempts
        self.retry_delay = (
            retry_delay if retry_delay is not None else settings.client_retry_delay_ms / 1000
        )
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    @property
    def authenticated(self) -> bool:
        return self.token is not None

    async def load(self) -> PlayerState:
        async def attempt() -> PlayerState:
            return PlayerState.from_wire(await self._request("GET", "/user/game-data"))

        return await self._with_retry("load", attempt)

    async def save(self, player: PlayerState) -> PlayerState:
        async def attempt() -> PlayerState:
            body = await self._request("POST", "/user/save-game", json=player.to_wire())
            if not isinstance(body, dict) or "data" not in body:
                raise ValueError("Malformed save-game response")
            return PlayerState.from_wire(body["data"])

        return await self._with_retry("save", attempt)

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if self.token is None:
            raise AuthenticationError("Not authenticated")

        response = await self._client.request(
            method,
            path,
            json=json,
            headers={"Authorization": f"Bearer {self.token}"},
        )
        if response.status_code == 401:
            # Expired or revoked session; the caller has to log in again
            self.token = None
            raise AuthenticationError(_error_message(response) or "Authentication failed")
        response.raise_for_status()
        return response.json()

    async def _with_retry(self, operation: str, fn: Callable[[], Awaitable[T]]) -> T:
        last_error: Optional[BaseException] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await fn()
            except AuthenticationError:
                logger.warning(f"Game data {operation} rejected: authentication required")
                raise
            except (httpx.HTTPError, ValueError) as e:
                last_error = e
                logger.warning(
                    f"Game data {operation} failed (attempt {attempt}/{self.max_attempts}): {e}"
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.retry_delay)

        logger.error(f"Game data {operation} gave up after {self.max_attempts} attempt(s)")
        raise PersistenceError(operation, self.max_attempts, last_error)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GameDataClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def _error_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("detail") or body.get("message")
    return None
