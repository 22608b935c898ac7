import asyncio
import base64
import json
import logging
import time
from urllib.parse import quote

import aiohttp
import requests

from ebay_importer.config import settings
from ebay_importer.errors import EbayApiError, FetchError

logger = logging.getLogger(__name__)

BROWSE_PATH = "/buy/browse/v1"
TOKEN_PATH = "/identity/v1/oauth2/token"
# refresh the app token this many seconds before eBay expires it
TOKEN_EXPIRY_MARGIN = 60
# how much of an unparseable body ends up in the error message
BODY_PREVIEW_CHARS = 500

# eBay serves a stripped page to unknown agents; the full one embeds the item ids
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
)


class EbayClient:
    def __init__(self, client_id=None, client_secret=None, base_url=None, scope=None):
        # Use provided params or fall back to settings
        self.client_id = client_id or settings.EBAY_CLIENT_ID
        self.client_secret = client_secret or settings.EBAY_CLIENT_SECRET
        self.base_url = (base_url or settings.EBAY_BASE_API_URL).rstrip("/")
        self.scope = scope or settings.EBAY_OAUTH_SCOPE
        self.marketplace_id = settings.EBAY_MARKETPLACE_ID

        self._token: str | None = None
        self._token_expires_at: float = 0

    def request_app_token(self) -> dict:
        """Blocking client-credentials grant. Returns eBay's token payload."""
        auth = base64.b64encode(f"{self.client_id}:{self.client_secret}".encode()).decode()
        try:
            response = requests.post(
                f"{self.base_url}{TOKEN_PATH}",
                headers={
                    "Content-Type": "application/x-www-form-urlencoded",
                    "Authorization": f"Basic {auth}",
                },
                data={"grant_type": "client_credentials", "scope": self.scope},
                timeout=30,
            )
        except requests.RequestException as e:
            logger.error(f"eBay OAuth request failed: {e}")
            raise EbayApiError(f"eBay OAuth failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"eBay OAuth Error (status {response.status_code}): {response.text}")
            raise EbayApiError(f"eBay OAuth failed: {response.status_code} {response.text}", status=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise EbayApiError(f"eBay OAuth returned invalid JSON: {response.text[:BODY_PREVIEW_CHARS]}") from e
        if not isinstance(data, dict) or not data.get("access_token"):
            raise EbayApiError(f"eBay OAuth returned no token: {response.text[:BODY_PREVIEW_CHARS]}")
        return data

    async def get_app_token(self) -> str:
        """
        Application token from the client-credentials grant, cached until
        shortly before it expires. The grant itself runs in a worker thread
        so the event loop keeps serving other requests meanwhile.
        """
        now = time.time()
        if self._token and self._token_expires_at - TOKEN_EXPIRY_MARGIN > now:
            return self._token

        data = await asyncio.to_thread(self.request_app_token)
        self._token = data["access_token"]
        self._token_expires_at = now + int(data.get("expires_in", 0))
        return self._token

    async def get(self, endpoint: str, label: str, params: dict | None = None) -> dict:
        """
        GET a Browse API endpoint. Any non-200 or non-JSON answer raises
        EbayApiError with the status and the raw body, which callers mine
        for hints.
        """
        headers = {
            "Authorization": f"Bearer {await self.get_app_token()}",
            "X-EBAY-C-MARKETPLACE-ID": self.marketplace_id,
        }
        url = f"{self.base_url}{endpoint}"
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(url, headers=headers, params=params) as resp:
                    text = await resp.text()
                    status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError) as e:
            raise EbayApiError(f"eBay {label} failed: {e!r}") from e

        if status != 200:
            logger.error(f"eBay API Error (status {status}) on {label}: {text}")
            raise EbayApiError(f"eBay {label} failed: {status} {text}", status=status)
        try:
            data = json.loads(text)
        except ValueError as e:
            logger.error(f"eBay {label} returned a non-JSON body: {text[:BODY_PREVIEW_CHARS]}")
            raise EbayApiError(f"eBay {label} returned invalid JSON: {text[:BODY_PREVIEW_CHARS]}", status=status) from e
        if not isinstance(data, dict):
            raise EbayApiError(f"eBay {label} returned unexpected body: {text[:BODY_PREVIEW_CHARS]}", status=status)
        return data

    async def get_item_by_legacy_id(self, legacy_id: str) -> dict:
        return await self.get(
            f"{BROWSE_PATH}/item/get_item_by_legacy_id",
            "get_item_by_legacy_id",
            params={"legacy_item_id": legacy_id},
        )

    async def get_item(self, item_id: str) -> dict:
        # item ids look like v1|123|0 and must be escaped as one path segment
        return await self.get(f"{BROWSE_PATH}/item/{quote(item_id, safe='')}", "item")

    async def get_item_group(self, item_group_id: str) -> dict:
        return await self.get(f"{BROWSE_PATH}/item_group/{quote(item_group_id, safe='')}", "item_group")

    async def get_items_by_item_group(self, item_group_id: str) -> dict:
        return await self.get(
            f"{BROWSE_PATH}/item/get_items_by_item_group",
            "get_items_by_item_group",
            params={"item_group_id": item_group_id},
        )

    async def fetch_listing_html(self, url: str) -> str:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(url, headers={"User-Agent": BROWSER_USER_AGENT}, allow_redirects=True) as resp:
                    text = await resp.text(errors="replace")
                    if not resp.ok:
                        raise FetchError(f"eBay HTML fetch failed: {resp.status} {text}", status=resp.status)
                    return text
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchError(f"eBay HTML fetch failed: {e!r}") from e
