import logging
import re
from urllib.parse import urlparse

from ebay_importer.ebay.models import ListingIdentifiers

logger = logging.getLogger(__name__)

_NUMERIC_TAIL_RE = re.compile(r"(\d{9,})$")
_ITM_SEGMENT_RE = re.compile(r"/itm/(\d{9,})")
_GROUP_ID_IN_ERROR_RE = re.compile(r"item_group_id=(\d{6,})")


def _quoted_field_patterns(field: str) -> list[re.Pattern]:
    return [
        re.compile(rf'"{field}"\s*:\s*"([^"]+)"', re.IGNORECASE),
        re.compile(rf"'{field}'\s*:\s*'([^']+)'", re.IGNORECASE),
    ]


_HTML_FIELD_PATTERNS = {
    "item_id": _quoted_field_patterns("itemId"),
    "item_group_id": _quoted_field_patterns("itemGroupId"),
    "legacy_item_id": _quoted_field_patterns("legacyItemId"),
}


def parse_numeric_tail(url: str) -> str | None:
    """
    Legacy listing id from an eBay URL: the run of 9+ digits ending the path,
    else the digits of an ``/itm/<id>`` segment.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if not parsed.scheme or not parsed.netloc:
        return None

    path = parsed.path or ""
    m = _NUMERIC_TAIL_RE.search(path)
    if m:
        return m.group(1)
    m = _ITM_SEGMENT_RE.search(path)
    if m:
        return m.group(1)
    return None


def parse_group_id_from_error_text(text: str) -> str | None:
    """eBay answers 11006 for variation listings and names the group in the body."""
    m = _GROUP_ID_IN_ERROR_RE.search(text or "")
    return m.group(1) if m else None


def scan_listing_identifiers(html: str) -> ListingIdentifiers | None:
    found = {}
    for field, patterns in _HTML_FIELD_PATTERNS.items():
        for pattern in patterns:
            m = pattern.search(html)
            if m:
                found[field] = m.group(1)
                break

    identifiers = ListingIdentifiers(**found)
    if identifiers.is_empty():
        return None
    return identifiers


async def extract_listing_identifiers(url: str, client) -> ListingIdentifiers | None:
    """
    Scrape the listing page for embedded ids. Raises FetchError when the page
    cannot be downloaded; returns None when nothing is embedded.
    """
    html = await client.fetch_listing_html(url)
    identifiers = scan_listing_identifiers(html)
    if identifiers:
        logger.info(f"Scraped identifiers from {url}: {identifiers.model_dump(exclude_none=True)}")
    return identifiers
