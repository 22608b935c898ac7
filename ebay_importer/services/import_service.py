import logging

from ebay_importer.config import settings
from ebay_importer.ebay.identifiers import parse_numeric_tail
from ebay_importer.errors import ImporterError, NoIdentifierError
from ebay_importer.models import ImportResult, PlatformProductPayload
from ebay_importer.normalizer.pipeline import build_platform_payload
from ebay_importer.services.import_history import ImportHistory, import_history
from ebay_importer.services.listing_resolver import resolve_listing
from ebay_importer.services.normalizer_service import MAX_SHOPIFY_VARIANTS, build_variant_key
from ebay_importer.shopify.create_product import (
    product_create,
    product_create_media,
    product_variant_append_media,
    product_variants_bulk_create,
)

logger = logging.getLogger(__name__)


def ordered_media_sources(payload: PlatformProductPayload, product_images: list[str], limit: int) -> list[str]:
    """Each variant's lead image first, then the remaining product images."""
    urls = [asset.image_urls[0] for asset in payload.variant_assets if asset.image_urls]
    urls.extend(product_images)
    return list(dict.fromkeys(u for u in urls if u))[:limit]


def build_variant_media(created_variants: list[dict], payload: PlatformProductPayload, media_id_by_url: dict[str, str]) -> list[dict]:
    """
    Match variants Shopify created back to our payload through their
    VariantKey, and collect the media ids of their images.
    """
    images_by_key = {asset.key: asset.image_urls for asset in payload.variant_assets}
    variant_media = []

    for variant in created_variants:
        option_values = [
            {"optionName": opt.get("name"), "name": opt.get("value")}
            for opt in variant.get("selectedOptions") or []
        ]
        key = build_variant_key(option_values, variant.get("sku"))

        media_ids = []
        for url in images_by_key.get(key, []):
            media_id = media_id_by_url.get(url)
            if media_id and media_id not in media_ids:
                media_ids.append(media_id)

        if media_ids:
            variant_media.append({"variantId": variant["id"], "mediaIds": media_ids})
    return variant_media


async def import_listing(source_url: str, ebay_client, shopify_client) -> ImportResult:
    """
    Import one eBay listing as a new Shopify product. Never raises: any
    failure ends up in the returned result with status ``failed``.
    """
    result = ImportResult(source_url=source_url, status="failed")

    try:
        numeric_id = parse_numeric_tail(source_url)
        if not numeric_id:
            raise NoIdentifierError(source_url)
        result.legacy_item_id = numeric_id

        resolved = await resolve_listing(source_url, numeric_id, ebay_client)
        product, payload = build_platform_payload(resolved)

        created = await product_create(shopify_client, payload.product_input)
        result.product_id = created["id"]
        result.handle = created.get("handle")
        result.title = created.get("title")

        sources = ordered_media_sources(payload, product.image_urls, settings.MEDIA_UPLOAD_LIMIT)
        media_inputs = [
            {
                "originalSource": src,
                "alt": f"{payload.product_input['title']} (Image {idx})",
                "mediaContentType": "IMAGE",
            }
            for idx, src in enumerate(sources, start=1)
        ]
        created_media = await product_create_media(shopify_client, created["id"], media_inputs)

        media_id_by_url = {}
        for media_input, media in zip(media_inputs, created_media):
            if media and media.get("id"):
                media_id_by_url[media_input["originalSource"]] = media["id"]

        created_variants = await product_variants_bulk_create(shopify_client, created["id"], payload.variant_inputs)
        result.variants = len(created_variants)
        result.shopify_url = shopify_client.admin_product_url(created["id"])

        variant_media = build_variant_media(created_variants, payload, media_id_by_url)
        await product_variant_append_media(shopify_client, created["id"], variant_media)

        if payload.meta.dropped_variants:
            warning = f"Skipped {payload.meta.dropped_variants} variants due to Shopify {MAX_SHOPIFY_VARIANTS} variant limit"
            result.error = f"{result.error}\n{warning}" if result.error else warning

        result.status = "created"
        logger.info(f"✔ Imported {source_url} -> {result.product_id} ({result.variants} variants)")
    except ImporterError as e:
        result.error = e.message
        result.status = "failed"
        logger.error(f"Failed to import {source_url}: [{e.code}] {e.message}")
    except Exception as e:
        logger.exception(f"Unexpected error importing {source_url}")
        result.error = str(e)
        result.status = "failed"

    return result


async def import_urls(urls: list[str], ebay_client, shopify_client, history: ImportHistory | None = None) -> list[ImportResult]:
    """
    Import URLs strictly one after another. Every result, success or
    failure, is pushed to the history as soon as its URL is done.
    """
    if history is None:
        history = import_history

    logger.info(f"▶ Importing {len(urls)} eBay listing(s) into Shopify...")
    results = []
    for source_url in urls:
        result = await import_listing(source_url, ebay_client, shopify_client)
        results.append(result)
        history.record(result)

    created = sum(1 for r in results if r.status == "created")
    logger.info(f"✔ Import done → {created} created, {len(results) - created} failed")
    return results
