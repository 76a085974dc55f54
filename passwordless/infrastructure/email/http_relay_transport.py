from __future__ import annotations

from typing import Dict, Optional

import httpx

from passwordless.domain.context import Context
from passwordless.domain.errors import DeliveryFailed
from passwordless.domain.ports.transport import TransportPort
from passwordless.infrastructure.email.composer import Composer


class HttpRelayTransport(TransportPort):
    """
    Hands the rendered sign-in mail to an HTTP mail relay as JSON:
    {"to", "subject", "text", "html"}.
    """

    def __init__(
        self,
        base_url: str,
        composer: Composer,
        *,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 5.0,
        send_path: str = "/send",
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._send_path = send_path if send_path.startswith("/") else f"/{send_path}"
        self._composer = composer
        self._api_key = api_key
        self._owns_client: bool = client is None
        self._client: httpx.AsyncClient = client or httpx.AsyncClient(timeout=timeout)

    async def send(self, ctx: Context, token: str, uid: str, recipient: str) -> None:
        email = self._composer(ctx, token, uid, recipient)

        headers: Dict[str, str] = {}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        url = f"{self._base_url}{self._send_path}"
        payload = {
            "to": email.to,
            "subject": email.subject,
            "text": email.body("text/plain"),
            "html": email.body("text/html"),
        }

        try:
            resp = await self._client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise DeliveryFailed(f"mail relay HTTP error: {e}") from e
        if not (200 <= resp.status_code < 300):
            text = resp.text[:200]
            raise DeliveryFailed(f"mail relay responded {resp.status_code}: {text}")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
