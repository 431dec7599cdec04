from __future__ import annotations

import logging
from collections.abc import AsyncGenerator

import httpx

from app.core.config import settings
from app.core.errors import DeliveryError

logger = logging.getLogger(__name__)


class PushClient:
    """
    Sends one data message to one device through an FCM-compatible HTTP endpoint.

    No retries: a failed send surfaces as DeliveryError and the caller decides
    what it means for its own result.
    """

    def __init__(self, client: httpx.AsyncClient, endpoint: str, server_key: str):
        self.client = client
        self.endpoint = endpoint
        self.server_key = server_key

    async def send(self, address: str, payload: dict[str, str]) -> str:
        try:
            resp = await self.client.post(
                self.endpoint,
                json={"to": address, "data": payload, "priority": "high"},
                headers={"Authorization": f"key={self.server_key}"},
            )
        except httpx.HTTPError as exc:
            raise DeliveryError(f"transport error: {exc}") from exc

        if resp.status_code >= 400:
            raise DeliveryError(f"push gateway returned HTTP {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as exc:
            raise DeliveryError("push gateway returned a non-JSON body") from exc

        results = body.get("results") or []
        if not results:
            raise DeliveryError("push gateway response missing results")
        first = results[0]
        if first.get("error"):
            raise DeliveryError(str(first["error"]))
        message_id = first.get("message_id")
        if not message_id:
            raise DeliveryError("push gateway response missing message_id")
        return str(message_id)


async def get_push_client() -> AsyncGenerator[PushClient, None]:
    # One client per request so a fan-out shares its connection pool.
    timeout = httpx.Timeout(settings.push_timeout_seconds)
    async with httpx.AsyncClient(timeout=timeout) as client:
        yield PushClient(client, settings.push_endpoint, settings.push_server_key)
