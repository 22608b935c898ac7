import json
import logging

from ebay_importer.errors import ShopifyApiError

logger = logging.getLogger(__name__)

PRODUCT_CREATE = """
mutation productCreate($input: ProductInput!) {
  productCreate(input: $input) {
    product {
      id
      handle
      title
    }
    userErrors { field message }
  }
}
"""

PRODUCT_CREATE_MEDIA = """
mutation productCreateMedia($productId: ID!, $media: [CreateMediaInput!]!) {
  productCreateMedia(productId: $productId, media: $media) {
    media { id alt status }
    mediaUserErrors { field message }
  }
}
"""

PRODUCT_VARIANTS_BULK_CREATE = """
mutation productVariantsBulkCreate($productId: ID!, $variants: [ProductVariantsBulkInput!]!) {
  productVariantsBulkCreate(productId: $productId, variants: $variants, strategy: REMOVE_STANDALONE_VARIANT) {
    productVariants { id title sku selectedOptions { name value } }
    userErrors { field message }
  }
}
"""

PRODUCT_VARIANT_APPEND_MEDIA = """
mutation productVariantAppendMedia($productId: ID!, $variantMedia: [ProductVariantAppendMediaInput!]!) {
  productVariantAppendMedia(productId: $productId, variantMedia: $variantMedia) {
    productVariants { id }
    userErrors { field message }
  }
}
"""


def _raise_user_errors(mutation: str, errors: list | None):
    if errors:
        logger.error(f"❌ {mutation} user errors: {errors}")
        raise ShopifyApiError(f"{mutation} errors: {json.dumps(errors)}")


async def product_create(shopify_client, product_input: dict) -> dict:
    data = await shopify_client.graphql(PRODUCT_CREATE, {"input": product_input})
    result = data.get("productCreate") or {}
    _raise_user_errors("productCreate", result.get("userErrors"))

    product = result.get("product")
    if not product:
        raise ShopifyApiError(f"productCreate returned no product: {json.dumps(data)}")
    logger.info(f"✔ Created Shopify product {product['id']} ({product.get('handle')})")
    return product


async def product_create_media(shopify_client, product_id: str, media: list[dict]) -> list[dict]:
    """
    Attach remote images to the product. Shopify downloads them itself, so
    ``originalSource`` is the eBay image URL. Created media come back in
    input order.
    """
    if not media:
        return []
    data = await shopify_client.graphql(PRODUCT_CREATE_MEDIA, {"productId": product_id, "media": media})
    result = data.get("productCreateMedia") or {}
    _raise_user_errors("productCreateMedia", result.get("mediaUserErrors"))
    return result.get("media") or []


async def product_variants_bulk_create(shopify_client, product_id: str, variants: list[dict]) -> list[dict]:
    if not variants:
        return []
    data = await shopify_client.graphql(PRODUCT_VARIANTS_BULK_CREATE, {"productId": product_id, "variants": variants})
    result = data.get("productVariantsBulkCreate") or {}
    _raise_user_errors("productVariantsBulkCreate", result.get("userErrors"))
    return result.get("productVariants") or []


async def product_variant_append_media(shopify_client, product_id: str, variant_media: list[dict]) -> list[dict]:
    if not variant_media:
        return []
    data = await shopify_client.graphql(PRODUCT_VARIANT_APPEND_MEDIA, {"productId": product_id, "variantMedia": variant_media})
    result = data.get("productVariantAppendMedia") or {}
    _raise_user_errors("productVariantAppendMedia", result.get("userErrors"))
    return result.get("productVariants") or []
