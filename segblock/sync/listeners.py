"""Delivery targets for rule-update messages."""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT_URL = "http://127.0.0.1:8765/rules"


class DeliveryError(Exception):
    """A listener could not accept a message."""


class CallbackListener:
    """Delivers messages to an in-process callable (sync or async)."""

    def __init__(
        self,
        callback: Callable[[dict[str, Any]], Union[None, Awaitable[None]]],
        name: Optional[str] = None,
    ) -> None:
        self.callback = callback
        self.name = name or getattr(callback, "__name__", "callback")

    async def deliver(self, message: dict[str, Any]) -> None:
        result = self.callback(message)
        if inspect.isawaitable(result):
            await result


@dataclass
class SyncEndpointConfig:
    """Configuration for the local enforcement endpoint."""
    url: str = DEFAULT_ENDPOINT_URL
    timeout: float = 5.0
    enabled: bool = True


class HttpListener:
    """POSTs messages as JSON to the enforcement component's local endpoint."""

    def __init__(
        self,
        config: SyncEndpointConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self.name = config.url
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def deliver(self, message: dict[str, Any]) -> None:
        client = await self._get_client()
        try:
            resp = await client.post(self.config.url, json=message)
        except httpx.TimeoutException as e:
            raise DeliveryError(f"Timed out posting to {self.config.url}") from e
        except httpx.HTTPError as e:
            raise DeliveryError(f"Cannot reach {self.config.url}: {e}") from e

        if not resp.is_success:
            raise DeliveryError(f"{self.config.url} returned {resp.status_code} - {resp.text}")
        logger.debug(f"Rule update accepted by {self.config.url}")
