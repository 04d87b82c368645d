import httpx
import logging
from typing import Optional

from diamondapi.config import Settings
from diamondapi.core.exceptions import ExternalSyncError
from diamondapi.schemas.player import PlayerVerificationResult

logger = logging.getLogger(__name__)


class PlayerIdVerifier:
    """Looks up a player's in-game name through the moogold id-validation endpoint."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = settings.PLAYER_VERIFY_URL
        self.timeout = settings.PLAYER_VERIFY_TIMEOUT_SECONDS
        self._transport = transport

    def _build_payload(self, player_account_id: str, server_id: str) -> dict:
        return {
            "attribute_amount": "Weekly Pass",
            "text-5f6f144f8ffee": player_account_id,
            "text-1601115253775": server_id,
            "quantity": "1",
            "add-to-cart": "15145",
            "product_id": "15145",
            "variation_id": "4690783",
        }

    @staticmethod
    def parse_display_name(message: str) -> Optional[str]:
        """Extract the name from a message like "Original Server Name: Foo\\nRegion: ID"."""
        for line in message.split("\n"):
            key, sep, value = line.partition(":")
            if sep and "name" in key.strip().lower():
                return value.strip()
        return None

    async def verify(self, player_account_id: str, server_id: str) -> PlayerVerificationResult:
        """Never raises; failures come back as an error result."""
        headers = {
            "Referer": "https://moogold.com/product/mobile-legends/",
            "Origin": "https://moogold.com",
            "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.url,
                    data=self._build_payload(player_account_id, server_id),
                    headers=headers,
                )
        except httpx.HTTPError as e:
            error = ExternalSyncError(f"Player verification request failed: {e}")
            logger.warning(str(error))
            return PlayerVerificationResult(error=str(error))

        if response.status_code != 200:
            return PlayerVerificationResult(error=f"HTTP Error: {response.status_code}")

        try:
            body = response.json()
        except ValueError:
            return PlayerVerificationResult(error="Invalid JSON response")

        message = body.get("message") if isinstance(body, dict) else None
        if message:
            display_name = self.parse_display_name(str(message))
            if display_name:
                return PlayerVerificationResult(display_name=display_name)

        return PlayerVerificationResult(error="Player not found")
