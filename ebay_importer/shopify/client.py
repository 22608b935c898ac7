import asyncio
import json
import logging

import aiohttp

from ebay_importer.config import settings
from ebay_importer.errors import ShopifyApiError

logger = logging.getLogger(__name__)


class ShopifyClient:
    def __init__(self, shop=None, access_token=None, api_version=None):
        # Use provided params or fall back to settings
        self.shop = shop or settings.SHOPIFY_SHOP
        self.access_token = access_token or settings.SHOPIFY_ADMIN_ACCESS_TOKEN
        self.api_version = api_version or settings.SHOPIFY_API_VERSION

        self.graphql_url = f"https://{self.shop}/admin/api/{self.api_version}/graphql.json"

    def admin_product_url(self, product_gid: str) -> str:
        # gid://shopify/Product/123 -> https://<shop>/admin/products/123
        return f"https://{self.shop}/admin/products/{product_gid.split('/')[-1]}"

    async def graphql(self, query: str, variables: dict | None = None) -> dict:
        """
        Run an Admin GraphQL operation and return its ``data``. HTTP failures
        and top-level ``errors`` raise ShopifyApiError; userErrors are left to
        the caller since every mutation names them differently.
        """
        headers = {
            "X-Shopify-Access-Token": self.access_token,
            "Content-Type": "application/json",
        }
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.graphql_url, headers=headers, json={"query": query, "variables": variables or {}}) as resp:
                    text = await resp.text()
                    status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError) as e:
            raise ShopifyApiError(f"Shopify GraphQL failed: {e!r}") from e

        if status >= 400:
            logger.error(f"Shopify GraphQL Error {status}: {text}")
            raise ShopifyApiError(f"Shopify GraphQL failed: {status} {text}", status=status)
        try:
            body = json.loads(text)
        except ValueError as e:
            logger.error(f"Shopify GraphQL returned a non-JSON body: {text[:500]}")
            raise ShopifyApiError(f"Shopify GraphQL returned invalid JSON: {text[:500]}", status=status) from e
        if not isinstance(body, dict):
            raise ShopifyApiError(f"Shopify GraphQL returned unexpected body: {text[:500]}", status=status)

        if body.get("errors"):
            logger.error(f"Shopify GraphQL top-level errors: {body['errors']}")
            raise ShopifyApiError(json.dumps(body["errors"]))
        return body.get("data") or {}
