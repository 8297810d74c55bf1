"""
MEMBERS web API client.

Fetches the full message list of a chat room. The API has no cursor,
so every call returns the whole current snapshot.
"""

import logging
from typing import Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from .errors import MembersAPIError
from .models import Message

logger = logging.getLogger(__name__)

_MESSAGE_LIST = TypeAdapter(list[Message])


class MembersClient:
    """Thin async wrapper around the MEMBERS room messages endpoint."""

    BASE_URL = "https://api.mem-bers.jp/web-api"

    def __init__(
        self,
        token: Optional[str],
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize MEMBERS client.

        Args:
            token: Bearer token for the web API
            base_url: Override for the API root
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self._token = token
        self._base_url = (base_url or self.BASE_URL).rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def get_room_messages(self, room_id: int | str, force: int = 1) -> list[Message]:
        """
        Fetch every message currently in a room.

        Args:
            room_id: MEMBERS room identifier
            force: 1 bypasses the server-side cache

        Raises:
            MembersAPIError: Missing token, transport failure, non-2xx status,
                or an unparseable body
        """
        if not self._token:
            raise MembersAPIError("MEMBERS API token is not configured (set MEMBERS_TOKEN)")

        client = await self._get_client()
        try:
            response = await client.get(
                f"/rooms/{room_id}/messages",
                params={"force": force},
                headers={"Authorization": f"Bearer {self._token}"},
            )
        except httpx.HTTPError as e:
            raise MembersAPIError(f"MEMBERS API request failed: {e}") from e

        if response.status_code >= 400:
            raise MembersAPIError(
                f"MEMBERS API error {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
            messages = _MESSAGE_LIST.validate_python(payload or [])
        except (ValueError, ValidationError) as e:
            raise MembersAPIError(f"MEMBERS API returned an invalid body: {e}") from e

        logger.debug(f"Room {room_id}: fetched {len(messages)} messages")
        return messages

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
