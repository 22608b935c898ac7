import logging
import time

from ebay_importer.errors import MissingItemsError
from ebay_importer.models import (
    CanonicalProduct,
    CanonicalVariant,
    PayloadMeta,
    PlatformProductPayload,
    VariantAsset,
)

logger = logging.getLogger(__name__)

DEFAULT_OPTION_NAME = "Title"
DEFAULT_OPTION_VALUE = "Default Title"
DEFAULT_CURRENCY = "USD"
DEFAULT_PRICE = "0.00"
DEFAULT_GROUP_TITLE = "Imported from eBay"

MAX_SHOPIFY_VARIANTS = 100
MAX_OPTIONS = 3
MAX_OPTION_NAME_LENGTH = 30
MAX_OPTION_VALUES = 50

# Aspects that describe the listing but are never what a buyer picks between
NON_OPTION_ASPECTS = {
    "brand",
    "model",
    "type",
    "unit type",
    "unit quantity",
    "features",
    "style",
    "connectivity",
    "contract",
    "lock status",
    "operating system",
}

GROUP_ITEM_FIELDS = ("items", "itemSummaries", "itemSummariesV2")


# ----------------------------
# eBay payload helpers
# ----------------------------

def _item_aspects(item: dict) -> list[dict]:
    localized = item.get("localizedAspects")
    additional = item.get("additionalAspects")
    return [
        aspect
        for aspect in [
            *(localized if isinstance(localized, list) else []),
            *(additional if isinstance(additional, list) else []),
        ]
        if isinstance(aspect, dict)
    ]


def get_aspect(item: dict, name: str) -> str | None:
    aspects = item.get("localizedAspects") or item.get("additionalAspects")
    if not isinstance(aspects, list):
        return None
    for aspect in aspects:
        if isinstance(aspect, dict) and (aspect.get("name") or "").strip().lower() == name.lower():
            return norm_aspect_value(aspect.get("value"))
    return None


def norm_aspect_value(value) -> str | None:
    """Multi-valued aspects collapse to 'a / b'; blanks become None."""
    if value is None:
        return None
    if isinstance(value, list):
        joined = " / ".join(str(v).strip() for v in value if str(v).strip())
        return joined or None
    return str(value).strip() or None


def category_tags(item: dict) -> list[str]:
    path = item.get("categoryPath")
    if not path:
        return []
    return [part.strip() for part in str(path).split("/") if part.strip()]


def item_image_urls(item: dict) -> list[str]:
    urls = [(item.get("image") or {}).get("imageUrl")]
    urls.extend((img or {}).get("imageUrl") for img in item.get("additionalImages") or [])
    return [u for u in urls if u]


def collect_group_items(group: dict) -> list[dict]:
    for key in GROUP_ITEM_FIELDS:
        items = group.get(key)
        if isinstance(items, list):
            members = [item for item in items if isinstance(item, dict)]
            if members:
                return members
    return []


def _price_of(item: dict) -> tuple[str | None, str | None]:
    price = item.get("price") or {}
    value = price.get("value")
    return (str(value) if value is not None else None), price.get("currency")


def _dedupe(values) -> list:
    return list(dict.fromkeys(v for v in values if v))


# ----------------------------
# eBay -> canonical product
# ----------------------------

def normalize_single_item(item: dict) -> CanonicalProduct:
    vendor = get_aspect(item, "Brand")
    tags = category_tags(item)
    if vendor:
        tags.append(vendor)

    image_urls = _dedupe(item_image_urls(item))
    price, currency = _price_of(item)

    sku = (
        item.get("mpn")
        or item.get("epid")
        or item.get("legacyItemId")
        or item.get("itemId")
        or f"EBAY-{int(time.time() * 1000)}"
    )

    return CanonicalProduct(
        title=item.get("title") or "",
        description=item.get("description") or item.get("shortDescription") or "",
        vendor=vendor,
        tags=tags,
        image_urls=image_urls,
        variants=[
            CanonicalVariant(
                sku=sku,
                price=price or DEFAULT_PRICE,
                currency_code=currency or DEFAULT_CURRENCY,
                options={},
                image_url=image_urls[0] if image_urls else None,
                image_urls=image_urls,
            )
        ],
        options_order=[],
    )


def infer_option_axes(items: list[dict]) -> list[str]:
    """
    Pick up to three aspects that actually vary across the group members.

    Aspects are matched case-insensitively and keep the spelling they were
    first seen with. Candidates must have more than one distinct value, a
    short name, a bounded value count, and must not be descriptive-only.
    Ranked by number of distinct values, then by first appearance.
    """
    seen: dict[str, dict] = {}

    for item in items:
        for aspect in _item_aspects(item):
            name = (aspect.get("name") or "").strip()
            value = norm_aspect_value(aspect.get("value"))
            if not name or not value:
                continue
            meta = seen.setdefault(name.lower(), {"name": name, "values": {}, "order": len(seen)})
            meta["values"][value] = None

    candidates = [
        meta for meta in seen.values()
        if len(meta["values"]) > 1
        and len(meta["name"]) <= MAX_OPTION_NAME_LENGTH
        and len(meta["values"]) <= MAX_OPTION_VALUES
        and meta["name"].lower() not in NON_OPTION_ASPECTS
    ]
    candidates.sort(key=lambda m: (-len(m["values"]), m["order"]))
    return [meta["name"] for meta in candidates[:MAX_OPTIONS]]


def _variant_options(item: dict, option_names: list[str]) -> dict[str, str]:
    options = {}
    aspects = _item_aspects(item)
    for name in option_names:
        match = next(
            (a for a in aspects if (a.get("name") or "").strip().lower() == name.lower()),
            None,
        )
        value = norm_aspect_value(match.get("value")) if match else None
        if value:
            options[name] = value
    return options


def normalize_item_group(group: dict) -> CanonicalProduct:
    items = collect_group_items(group)
    if not items:
        raise MissingItemsError(group.get("itemGroupId") or (group.get("itemGroup") or {}).get("itemGroupId"))

    first = items[0]
    title = group.get("title") or first.get("title") or DEFAULT_GROUP_TITLE
    description = (
        group.get("description")
        or first.get("description")
        or ((group.get("commonDescriptions") or [{}])[0] or {}).get("description")
        or ""
    )
    vendor = get_aspect(first, "Brand")

    tags = category_tags(first)
    if vendor:
        tags.append(vendor)

    option_names = infer_option_axes(items)
    first_price, first_currency = _price_of(first)

    product_images: dict[str, None] = {}
    variants = []
    for item in items:
        price, currency = _price_of(item)
        images = item_image_urls(item)
        for url in images:
            product_images[url] = None

        variants.append(CanonicalVariant(
            sku=item.get("mpn") or item.get("epid") or item.get("legacyItemId") or item.get("itemId"),
            price=price or first_price or DEFAULT_PRICE,
            currency_code=currency or first_currency or DEFAULT_CURRENCY,
            options=_variant_options(item, option_names),
            image_url=images[0] if images else None,
            image_urls=images,
        ))

    return CanonicalProduct(
        title=title,
        description=description,
        vendor=vendor,
        tags=tags,
        image_urls=list(product_images),
        variants=variants,
        options_order=option_names,
    )


# ----------------------------
# canonical product -> Shopify inputs
# ----------------------------

def fallback_option_value(option_name: str) -> str:
    return DEFAULT_OPTION_VALUE if option_name == DEFAULT_OPTION_NAME else "Default"


def _key_part(value: str | None) -> str:
    return (value or "").strip().lower()


def build_variant_key(option_values: list[dict], sku: str | None = None) -> str:
    """
    Identity of a variant across the payload we send and the variants Shopify
    returns: ``color=red|size=m|sku=abc-1``.
    """
    parts = [
        f"{_key_part(opt.get('optionName') or DEFAULT_OPTION_NAME)}={_key_part(opt.get('name'))}"
        for opt in option_values
    ]
    if sku:
        parts.append(f"sku={_key_part(sku)}")
    return "|".join(parts)


def build_product_options(product: CanonicalProduct) -> list[dict]:
    options = []
    for position, name in enumerate(product.options_order, start=1):
        values = _dedupe(v.options.get(name) for v in product.variants) or [fallback_option_value(name)]
        options.append({
            "name": name,
            "position": position,
            "values": [{"name": value} for value in values],
        })

    if not options:
        options = [{
            "name": DEFAULT_OPTION_NAME,
            "position": 1,
            "values": [{"name": DEFAULT_OPTION_VALUE}],
        }]
    return options


def to_platform_payload(product: CanonicalProduct) -> PlatformProductPayload:
    product_options = build_product_options(product)
    has_axes = bool(product.options_order)

    seen_keys = set()
    duplicates = 0
    built = []

    for variant in product.variants:
        if has_axes:
            option_values = [
                {"optionName": opt["name"], "name": variant.options.get(opt["name"]) or fallback_option_value(opt["name"])}
                for opt in product_options
            ]
        else:
            option_values = [{"optionName": DEFAULT_OPTION_NAME, "name": DEFAULT_OPTION_VALUE}]

        key = build_variant_key(option_values, variant.sku)
        if key in seen_keys:
            duplicates += 1
            continue
        seen_keys.add(key)

        image_urls = _dedupe([*variant.image_urls, variant.image_url])

        variant_input = {
            "price": variant.price,
            "inventoryPolicy": "DENY",
            "inventoryItem": {"sku": variant.sku},
            "optionValues": option_values,
        }
        # Shopify only accepts one media per variant at creation time
        if image_urls:
            variant_input["mediaSrc"] = [image_urls[0]]

        built.append((key, image_urls, variant_input))

    kept = built[:MAX_SHOPIFY_VARIANTS]
    dropped = len(built) - len(kept)

    if duplicates:
        logger.warning(f"Dropped {duplicates} duplicate variant(s) for '{product.title}'")
    if dropped:
        logger.warning(f"'{product.title}' has {len(built)} variants; {dropped} over the Shopify limit were dropped")

    product_input = {
        "title": product.title,
        "descriptionHtml": product.description or "",
        "tags": _dedupe(t.strip() for t in product.tags),
        "status": "ACTIVE",
        "productOptions": product_options,
    }
    if product.vendor:
        product_input["vendor"] = product.vendor

    return PlatformProductPayload(
        product_input=product_input,
        variant_inputs=[variant_input for _key, _images, variant_input in kept],
        variant_assets=[VariantAsset(key=key, image_urls=images) for key, images, _input in kept],
        meta=PayloadMeta(dropped_variants=dropped, duplicate_variants=duplicates),
    )
