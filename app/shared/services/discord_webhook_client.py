# app/shared/services/discord_webhook_client.py
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from app.config.settings import settings
from app.core.exceptions import NotificationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WebhookFile:
    """File uploaded alongside a webhook message"""
    filename: str
    content: bytes
    content_type: str = "image/jpeg"


class DiscordWebhookClient:
    """
    Client for the bill channel webhook: one message per sale.

    Every failure (missing URL, transport error, non-2xx status) is raised as
    ``NotificationError`` so callers can treat it as a soft warning.
    """

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        username: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        url = webhook_url if webhook_url is not None else settings.discord_webhook_url
        self.webhook_url = url.rstrip("/") if url else None
        self.username = username or settings.shop_name
        self.timeout = timeout if timeout is not None else settings.discord_timeout_seconds
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.webhook_url)

    # ==================== OPERATIONS ====================

    async def create_message(
        self,
        embed: Dict[str, Any],
        files: Optional[List[WebhookFile]] = None
    ) -> str:
        """POST a new message and return its id (requires ``wait=true``)."""
        payload = {"username": self.username, "embeds": [embed]}

        if files:
            response = await self._request(
                "POST",
                self._require_url(),
                params={"wait": "true"},
                data={"payload_json": json.dumps(payload)},
                files=self._multipart(files)
            )
        else:
            response = await self._request(
                "POST",
                self._require_url(),
                params={"wait": "true"},
                json=payload
            )

        message_id = self._json(response).get("id")
        if not message_id:
            raise NotificationError("Discord response did not include a message id")

        logger.info(f"✅ Discord message {message_id} created")
        return str(message_id)

    async def get_message(self, message_id: str) -> Dict[str, Any]:
        response = await self._request("GET", self._message_url(message_id))
        return self._json(response)

    async def edit_message(
        self,
        message_id: str,
        embed: Dict[str, Any],
        files: Optional[List[WebhookFile]] = None
    ) -> Dict[str, Any]:
        """PATCH the message; new files replace the previous attachments."""
        payload = {"embeds": [embed]}
        if files:
            response = await self._request(
                "PATCH",
                self._message_url(message_id),
                data={"payload_json": json.dumps(payload)},
                files=self._multipart(files)
            )
        else:
            response = await self._request("PATCH", self._message_url(message_id), json=payload)
        logger.info(f"✅ Discord message {message_id} edited")
        return self._json(response) if response.content else {}

    async def delete_message(self, message_id: str) -> None:
        await self._request("DELETE", self._message_url(message_id))
        logger.info(f"🗑️ Discord message {message_id} deleted")

    async def get_embed_images(self, message_id: str) -> Dict[str, Optional[str]]:
        """URLs of the image and thumbnail currently shown on the message's first embed."""
        message = await self.get_message(message_id)
        embeds = message.get("embeds") or []
        if not embeds:
            return {"image": None, "thumbnail": None}
        embed = embeds[0]
        return {
            "image": (embed.get("image") or {}).get("url"),
            "thumbnail": (embed.get("thumbnail") or {}).get("url"),
        }

    # ==================== HELPERS ====================

    def _require_url(self) -> str:
        if not self.webhook_url:
            raise NotificationError("Discord webhook URL not configured")
        return self.webhook_url

    def _message_url(self, message_id: str) -> str:
        if not message_id:
            raise NotificationError("Discord message id is missing")
        return f"{self._require_url()}/messages/{message_id}"

    @staticmethod
    def _multipart(files: List[WebhookFile]):
        return [
            (f"files[{index}]", (f.filename, f.content, f.content_type))
            for index, f in enumerate(files)
        ]

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            return response.json()
        except ValueError as e:
            raise NotificationError(f"Invalid JSON from Discord: {e}", response.status_code) from e

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                return response
        except httpx.HTTPStatusError as e:
            logger.error(
                f"❌ Discord webhook {method} failed: {e.response.status_code} {e.response.text}"
            )
            raise NotificationError(
                f"Discord webhook failed: {e.response.status_code}",
                e.response.status_code
            ) from e
        except httpx.RequestError as e:
            logger.error(f"❌ Discord webhook {method} unreachable: {e}")
            raise NotificationError(f"Discord webhook unreachable: {e}") from e


def get_notification_gateway() -> DiscordWebhookClient:
    """FastAPI dependency; overridden in tests"""
    return DiscordWebhookClient()
