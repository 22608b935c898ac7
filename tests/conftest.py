"""
Shared test fixtures: fake eBay and Shopify clients plus Browse API payload
builders. No test touches the network.
"""

import copy
import itertools
import os
import re

# Settings are read at import time; give them something before any app import
os.environ.setdefault("EBAY_CLIENT_ID", "test-client-id")
os.environ.setdefault("EBAY_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("SHOPIFY_SHOP", "test-shop.myshopify.com")
os.environ.setdefault("SHOPIFY_ADMIN_ACCESS_TOKEN", "shpat_test")

import pytest

from ebay_importer.errors import EbayApiError, FetchError
from ebay_importer.services.import_history import ImportHistory


# ===================
# PAYLOAD BUILDERS
# ===================

def make_item(
    legacy_id="262742221410",
    title="Vintage Brass Compass",
    price="24.99",
    currency="USD",
    aspects=None,
    images=None,
    **extra,
) -> dict:
    """Browse API item as returned by get_item / get_item_by_legacy_id."""
    if images is None:
        images = [f"https://i.ebayimg.com/{legacy_id}/1.jpg", f"https://i.ebayimg.com/{legacy_id}/2.jpg"]
    item = {
        "itemId": f"v1|{legacy_id}|0",
        "legacyItemId": legacy_id,
        "title": title,
        "description": f"<p>{title}</p>",
        "categoryPath": "Collectibles/Tools/Compasses",
        "localizedAspects": [{"name": n, "value": v} for n, v in (aspects or {"Brand": "Acme"}).items()],
    }
    if price is not None:
        item["price"] = {"value": price, "currency": currency}
    if images:
        item["image"] = {"imageUrl": images[0]}
        item["additionalImages"] = [{"imageUrl": u} for u in images[1:]]
    item.update(extra)
    return item


def make_group(members: list[dict], items_field="items", **extra) -> dict:
    group = {items_field: members}
    group.update(extra)
    return group


def make_members(values: list[dict], base_id=300000000000, **kwargs) -> list[dict]:
    """One item per aspect dict, with unique legacy ids and images."""
    return [
        make_item(legacy_id=str(base_id + i), aspects=aspects, **kwargs)
        for i, aspects in enumerate(values)
    ]


# ===================
# FAKE EBAY CLIENT
# ===================

class FakeEbayClient:
    """
    Browse API stand-in. Each table maps an id to a payload or an exception;
    unknown ids answer 404.
    """

    def __init__(self, legacy=None, items=None, groups=None, items_by_group=None, html=None):
        self.legacy = legacy or {}
        self.items = items or {}
        self.groups = groups or {}
        self.items_by_group = items_by_group or {}
        self.html = html
        self.calls: list[tuple[str, str]] = []

    async def _lookup(self, label: str, table: dict, key: str) -> dict:
        self.calls.append((label, key))
        value = table.get(key)
        if value is None:
            raise EbayApiError(f"eBay {label} failed: 404 {{\"errors\":[{{\"errorId\":11001}}]}}", status=404)
        if isinstance(value, Exception):
            raise value
        return copy.deepcopy(value)

    async def get_item_by_legacy_id(self, legacy_id):
        return await self._lookup("get_item_by_legacy_id", self.legacy, legacy_id)

    async def get_item(self, item_id):
        return await self._lookup("item", self.items, item_id)

    async def get_item_group(self, item_group_id):
        return await self._lookup("item_group", self.groups, item_group_id)

    async def get_items_by_item_group(self, item_group_id):
        return await self._lookup("get_items_by_item_group", self.items_by_group, item_group_id)

    async def fetch_listing_html(self, url):
        self.calls.append(("html", url))
        if isinstance(self.html, Exception):
            raise self.html
        if self.html is None:
            raise FetchError("eBay HTML fetch failed: 404 Not Found", status=404)
        return self.html


# ===================
# FAKE SHOPIFY CLIENT
# ===================

class FakeShopifyClient:
    """
    Admin GraphQL stand-in that answers the four import mutations and keeps
    every call in ``calls``. Mutations listed in ``fail_on`` return userErrors.
    """

    shop = "test-shop.myshopify.com"

    def __init__(self, fail_on=None):
        self.fail_on = set(fail_on or ())
        self.calls: list[tuple[str, dict]] = []
        self._ids = itertools.count(1001)

    def admin_product_url(self, product_gid):
        return f"https://{self.shop}/admin/products/{product_gid.split('/')[-1]}"

    def calls_to(self, mutation):
        return [variables for name, variables in self.calls if name == mutation]

    async def graphql(self, query, variables=None):
        name = re.search(r"mutation (\w+)", query).group(1)
        self.calls.append((name, copy.deepcopy(variables)))

        if name in self.fail_on:
            errors = [{"field": ["input"], "message": f"{name} rejected"}]
            error_key = "mediaUserErrors" if name == "productCreateMedia" else "userErrors"
            return {name: {error_key: errors}}

        return {name: getattr(self, f"_{name}")(variables)}

    def _productCreate(self, variables):
        title = variables["input"]["title"]
        handle = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
        return {
            "product": {"id": f"gid://shopify/Product/{next(self._ids)}", "handle": handle, "title": title},
            "userErrors": [],
        }

    def _productCreateMedia(self, variables):
        media = [
            {"id": f"gid://shopify/MediaImage/{next(self._ids)}", "alt": m["alt"], "status": "UPLOADED"}
            for m in variables["media"]
        ]
        return {"media": media, "mediaUserErrors": []}

    def _productVariantsBulkCreate(self, variables):
        variants = []
        for v in variables["variants"]:
            variants.append({
                "id": f"gid://shopify/ProductVariant/{next(self._ids)}",
                "title": " / ".join(o["name"] for o in v["optionValues"]),
                "sku": (v.get("inventoryItem") or {}).get("sku"),
                "selectedOptions": [{"name": o["optionName"], "value": o["name"]} for o in v["optionValues"]],
            })
        return {"productVariants": variants, "userErrors": []}

    def _productVariantAppendMedia(self, variables):
        return {"productVariants": [{"id": vm["variantId"]} for vm in variables["variantMedia"]], "userErrors": []}


# ===================
# FIXTURES
# ===================

@pytest.fixture
def sample_item() -> dict:
    return make_item()


@pytest.fixture
def shopify_client() -> FakeShopifyClient:
    return FakeShopifyClient()


@pytest.fixture
def history() -> ImportHistory:
    return ImportHistory(limit=50)


@pytest.fixture
def api_client(history, shopify_client):
    """
    FastAPI test client wired to fakes. Tests configure the eBay side through
    ``api_client.ebay``.
    """
    from fastapi.testclient import TestClient
    from ebay_importer.api.deps import get_ebay_client, get_import_history, get_shopify_client
    from ebay_importer.main import app

    ebay = FakeEbayClient()
    app.dependency_overrides[get_ebay_client] = lambda: ebay
    app.dependency_overrides[get_shopify_client] = lambda: shopify_client
    app.dependency_overrides[get_import_history] = lambda: history

    client = TestClient(app)
    client.ebay = ebay
    client.shopify = shopify_client
    yield client

    app.dependency_overrides.clear()
