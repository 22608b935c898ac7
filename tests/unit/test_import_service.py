"""
Unit tests for the per-URL import orchestration.

Run: pytest tests/unit/test_import_service.py -v
"""

import asyncio

from ebay_importer.models import PlatformProductPayload, VariantAsset
from ebay_importer.services.import_service import (
    build_variant_media,
    import_listing,
    import_urls,
    ordered_media_sources,
)
from tests.conftest import FakeEbayClient, FakeShopifyClient, make_group, make_item, make_members

URL = "https://site/itm/262742221410"
GROUP_URL = "https://www.ebay.com/itm/356227859677"


def run_import(url, ebay, shopify):
    return asyncio.run(import_listing(url, ebay, shopify))


class TestImportListing:

    def test_single_item_is_created(self, sample_item, shopify_client):
        ebay = FakeEbayClient(legacy={"262742221410": sample_item})

        result = run_import(URL, ebay, shopify_client)

        assert result.status == "created"
        assert result.error is None
        assert result.legacy_item_id == "262742221410"
        assert result.product_id.startswith("gid://shopify/Product/")
        assert result.handle == "vintage-brass-compass"
        assert result.title == "Vintage Brass Compass"
        assert result.variants == 1
        assert result.shopify_url == f"https://test-shop.myshopify.com/admin/products/{result.product_id.split('/')[-1]}"

    def test_calls_mutations_in_order(self, sample_item, shopify_client):
        ebay = FakeEbayClient(legacy={"262742221410": sample_item})

        run_import(URL, ebay, shopify_client)

        assert [name for name, _ in shopify_client.calls] == [
            "productCreate",
            "productCreateMedia",
            "productVariantsBulkCreate",
            "productVariantAppendMedia",
        ]

    def test_media_inputs(self, sample_item, shopify_client):
        ebay = FakeEbayClient(legacy={"262742221410": sample_item})

        run_import(URL, ebay, shopify_client)

        media = shopify_client.calls_to("productCreateMedia")[0]["media"]
        assert media == [
            {"originalSource": "https://i.ebayimg.com/262742221410/1.jpg", "alt": "Vintage Brass Compass (Image 1)", "mediaContentType": "IMAGE"},
            {"originalSource": "https://i.ebayimg.com/262742221410/2.jpg", "alt": "Vintage Brass Compass (Image 2)", "mediaContentType": "IMAGE"},
        ]

    def test_variants_get_their_media(self, shopify_client):
        members = make_members([{"Color": "Red"}, {"Color": "Blue"}])
        ebay = FakeEbayClient(groups={"356227859677": make_group(members, title="Compass")})

        result = run_import(GROUP_URL, ebay, shopify_client)

        assert result.status == "created"
        assert result.variants == 2
        variant_media = shopify_client.calls_to("productVariantAppendMedia")[0]["variantMedia"]
        assert len(variant_media) == 2
        # each variant gets both of its own images, none of the other's
        assert all(len(vm["mediaIds"]) == 2 for vm in variant_media)
        assert set(variant_media[0]["mediaIds"]).isdisjoint(variant_media[1]["mediaIds"])

    def test_no_identifier_fails_fast(self, shopify_client):
        ebay = FakeEbayClient()

        result = run_import("https://www.ebay.com/sch/i.html?_nkw=compass", ebay, shopify_client)

        assert result.status == "failed"
        assert result.error == "Cannot parse numeric id from URL"
        assert ebay.calls == []
        assert shopify_client.calls == []

    def test_resolution_failure_records_attempts(self, shopify_client):
        ebay = FakeEbayClient()

        result = run_import(URL, ebay, shopify_client)

        assert result.status == "failed"
        assert result.legacy_item_id == "262742221410"
        assert result.error.startswith(f"Unable to fetch eBay data for {URL} after multiple attempts:")
        assert "legacy(262742221410)" in result.error
        assert shopify_client.calls == []

    def test_empty_group_fails(self, shopify_client):
        ebay = FakeEbayClient(groups={"356227859677": make_group([], title="Empty")})

        result = run_import(GROUP_URL, ebay, shopify_client)

        assert result.status == "failed"
        assert result.error == "eBay group payload missing items"

    def test_product_create_error_fails_url(self, sample_item):
        shopify = FakeShopifyClient(fail_on={"productCreate"})
        ebay = FakeEbayClient(legacy={"262742221410": sample_item})

        result = run_import(URL, ebay, shopify)

        assert result.status == "failed"
        assert result.product_id is None
        assert result.error.startswith("productCreate errors: ")

    def test_partial_failure_is_not_success(self, sample_item):
        """Product exists in Shopify but variants failed: still recorded as failed."""
        shopify = FakeShopifyClient(fail_on={"productVariantsBulkCreate"})
        ebay = FakeEbayClient(legacy={"262742221410": sample_item})

        result = run_import(URL, ebay, shopify)

        assert result.status == "failed"
        assert result.product_id is not None
        assert "productVariantsBulkCreate errors" in result.error

    def test_dropped_variants_are_a_warning(self, shopify_client):
        members = make_members([{"Size": f"S{i}"} for i in range(45)])
        members += make_members([{"Size": f"M{i}"} for i in range(60)], base_id=400000000000)
        ebay = FakeEbayClient(groups={"356227859677": make_group(members, title="Big")})

        result = run_import(GROUP_URL, ebay, shopify_client)

        assert result.status == "created"
        assert result.variants == 100
        assert result.error == "Skipped 5 variants due to Shopify 100 variant limit"

    def test_media_upload_is_capped(self, shopify_client):
        images = [f"https://img/{i}.jpg" for i in range(120)]
        ebay = FakeEbayClient(legacy={"262742221410": make_item(images=images)})

        run_import(URL, ebay, shopify_client)

        media = shopify_client.calls_to("productCreateMedia")[0]["media"]
        assert len(media) == 100

    def test_item_without_images_skips_media(self, shopify_client):
        ebay = FakeEbayClient(legacy={"262742221410": make_item(images=[])})

        result = run_import(URL, ebay, shopify_client)

        assert result.status == "created"
        assert shopify_client.calls_to("productCreateMedia") == []
        assert shopify_client.calls_to("productVariantAppendMedia") == []


class TestImportUrls:

    def test_one_failure_does_not_stop_the_batch(self, sample_item, shopify_client, history):
        ebay = FakeEbayClient(legacy={"262742221410": sample_item})
        urls = ["https://site/no-id-here", URL]

        results = asyncio.run(import_urls(urls, ebay, shopify_client, history))

        assert [r.status for r in results] == ["failed", "created"]
        assert [r.source_url for r in history.items()] == [URL, "https://site/no-id-here"]

    def test_reimport_creates_a_second_product(self, sample_item, shopify_client, history):
        """No dedup against the existing catalog: same URL twice, two products."""
        ebay = FakeEbayClient(legacy={"262742221410": sample_item})

        results = asyncio.run(import_urls([URL, URL], ebay, shopify_client, history))

        assert all(r.status == "created" for r in results)
        assert results[0].product_id != results[1].product_id


class TestHelpers:

    def test_ordered_media_sources(self):
        payload = PlatformProductPayload(
            product_input={"title": "T"},
            variant_assets=[
                VariantAsset(key="a", image_urls=["https://img/2.jpg", "https://img/9.jpg"]),
                VariantAsset(key="b", image_urls=[]),
                VariantAsset(key="c", image_urls=["https://img/1.jpg"]),
            ],
        )

        result = ordered_media_sources(payload, ["https://img/1.jpg", "https://img/3.jpg"], limit=100)

        assert result == ["https://img/2.jpg", "https://img/1.jpg", "https://img/3.jpg"]

    def test_ordered_media_sources_limit(self):
        payload = PlatformProductPayload(product_input={"title": "T"})

        assert ordered_media_sources(payload, ["a", "b", "c"], limit=2) == ["a", "b"]

    def test_build_variant_media_matches_on_key(self):
        payload = PlatformProductPayload(
            product_input={"title": "T"},
            variant_assets=[VariantAsset(key="color=red|sku=r-1", image_urls=["https://img/r.jpg", "https://img/missing.jpg"])],
        )
        created = [
            {"id": "gid://shopify/ProductVariant/1", "sku": "R-1", "selectedOptions": [{"name": "Color", "value": "Red"}]},
            {"id": "gid://shopify/ProductVariant/2", "sku": "B-1", "selectedOptions": [{"name": "Color", "value": "Blue"}]},
        ]

        result = build_variant_media(created, payload, {"https://img/r.jpg": "gid://shopify/MediaImage/7"})

        assert result == [{"variantId": "gid://shopify/ProductVariant/1", "mediaIds": ["gid://shopify/MediaImage/7"]}]
