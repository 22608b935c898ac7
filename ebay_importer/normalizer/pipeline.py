from ebay_importer.ebay.models import ResolvedListing
from ebay_importer.models import CanonicalProduct, PlatformProductPayload
from ebay_importer.services.normalizer_service import (
    normalize_item_group,
    normalize_single_item,
    to_platform_payload,
)


def normalize_listing(resolved: ResolvedListing) -> CanonicalProduct:
    if resolved.is_group:
        return normalize_item_group(resolved.payload)
    return normalize_single_item(resolved.payload)


def build_platform_payload(resolved: ResolvedListing) -> tuple[CanonicalProduct, PlatformProductPayload]:
    product = normalize_listing(resolved)
    return product, to_platform_payload(product)
