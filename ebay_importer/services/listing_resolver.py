"""
Recover an authoritative eBay payload from a listing URL.

A listing URL only carries a numeric id, and eBay does not say up front
whether it is a legacy item id, an item group id, or something the Browse API
only knows under a ``v1|<id>|0`` item id. The resolver walks a fixed chain of
lookups, each tried at most once per id, and keeps a note for every attempt so
a failed import can show exactly what was tried.

Order of attempts:

1. legacy id lookup with the numeric tail
2. group lookup with a group id hinted in the legacy error body
3. group lookup with the numeric tail
4. HTML scrape, then legacy / group lookups with newly found ids
5. direct item lookups with scraped and synthesized item ids

When a single item turns out to belong to a variation group, the group payload
replaces it.
"""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from ebay_importer.ebay.identifiers import extract_listing_identifiers, parse_group_id_from_error_text
from ebay_importer.ebay.models import ListingIdentifiers, ResolvedListing
from ebay_importer.errors import ResolutionExhaustedError, UpstreamError
from ebay_importer.services.normalizer_service import GROUP_ITEM_FIELDS

logger = logging.getLogger(__name__)

LEGACY = "legacy"
GROUP = "group"
ITEM = "item"

Attempt = tuple[str, Callable[[str], Awaitable[dict]]]


@dataclass
class ResolverContext:
    """Mutable state for resolving one URL. Never shared between URLs."""
    source_url: str
    numeric_id: str
    resolved: Optional[dict] = None
    is_group: bool = False
    notes: list[str] = field(default_factory=list)
    attempted: dict[str, set[str]] = field(default_factory=lambda: {LEGACY: set(), GROUP: set(), ITEM: set()})
    last_error: Optional[str] = None
    scraped: Optional[ListingIdentifiers] = None
    scrape_done: bool = False

    def note(self, label: str, candidate: str, outcome: str):
        self.notes.append(f"{label}({candidate}): {outcome}")

    def claim(self, category: str, candidate: str) -> bool:
        """Mark candidate as tried; False when it already was."""
        seen = self.attempted[category]
        if candidate in seen:
            return False
        seen.add(candidate)
        return True


async def run_attempts(
    ctx: ResolverContext,
    category: str,
    candidate: Optional[str],
    attempts: list[Attempt],
    is_group: bool,
) -> bool:
    """
    Run each (label, call) against candidate until one succeeds.

    Skips empty candidates, candidates already tried in this category, and
    everything once the context holds a payload.
    """
    if not candidate or ctx.resolved is not None:
        return False
    if not ctx.claim(category, candidate):
        return False

    for label, call in attempts:
        try:
            data = await call(candidate)
        except UpstreamError as e:
            ctx.last_error = e.message
            ctx.note(label, candidate, e.message)
            continue
        ctx.resolved = data
        ctx.is_group = is_group
        ctx.note(label, candidate, "success")
        return True
    return False


def normalize_group_response(data: dict) -> dict:
    """
    Both group endpoints name their item array differently; expose it as
    ``items`` and lift title/description from the first member when missing.
    """
    if not data:
        return data
    items = []
    for key in GROUP_ITEM_FIELDS:
        if isinstance(data.get(key), list):
            items = [item for item in data[key] if isinstance(item, dict)]
            break
    first = items[0] if items else {}
    return {
        **data,
        "items": items,
        "title": data.get("title") or first.get("title"),
        "description": data.get("description") or first.get("description"),
    }


class ListingResolver:
    def __init__(self, ebay_client):
        self.client = ebay_client

    def _legacy_attempts(self) -> list[Attempt]:
        return [("legacy", self.client.get_item_by_legacy_id)]

    def _group_attempts(self) -> list[Attempt]:
        async def item_group(group_id: str) -> dict:
            return normalize_group_response(await self.client.get_item_group(group_id))

        async def items_by_group(group_id: str) -> dict:
            return normalize_group_response(await self.client.get_items_by_item_group(group_id))

        return [("item_group", item_group), ("get_items_by_item_group", items_by_group)]

    def _item_attempts(self) -> list[Attempt]:
        return [("item", self.client.get_item)]

    async def try_legacy(self, ctx: ResolverContext, legacy_id: Optional[str]) -> bool:
        return await run_attempts(ctx, LEGACY, legacy_id, self._legacy_attempts(), is_group=False)

    async def try_group(self, ctx: ResolverContext, group_id: Optional[str]) -> bool:
        return await run_attempts(ctx, GROUP, group_id, self._group_attempts(), is_group=True)

    async def try_item(self, ctx: ResolverContext, item_id: Optional[str]) -> bool:
        return await run_attempts(ctx, ITEM, item_id, self._item_attempts(), is_group=False)

    async def ensure_scraped(self, ctx: ResolverContext) -> Optional[ListingIdentifiers]:
        """Scrape the listing page at most once per URL."""
        if ctx.scrape_done:
            return ctx.scraped
        ctx.scrape_done = True
        try:
            ctx.scraped = await extract_listing_identifiers(ctx.source_url, self.client)
            if ctx.scraped is None:
                ctx.notes.append("scrape: no identifiers found in HTML")
        except UpstreamError as e:
            ctx.notes.append(f"scrape: {e.message}")
            ctx.scraped = None
        return ctx.scraped

    def item_id_candidates(self, ctx: ResolverContext) -> list[str]:
        scraped = ctx.scraped
        candidates = [
            scraped.item_id if scraped else None,
            f"v1|{scraped.legacy_item_id}|0" if scraped and scraped.legacy_item_id else None,
            f"v1|{ctx.numeric_id}|0",
            ctx.numeric_id,
        ]
        return list(dict.fromkeys(c for c in candidates if c))

    async def recover(self, ctx: ResolverContext):
        hinted_group = parse_group_id_from_error_text(ctx.last_error or "")
        await self.try_group(ctx, hinted_group)
        await self.try_group(ctx, ctx.numeric_id)

        if ctx.resolved is None:
            scraped = await self.ensure_scraped(ctx)
            if scraped and scraped.legacy_item_id and scraped.legacy_item_id != ctx.numeric_id:
                await self.try_legacy(ctx, scraped.legacy_item_id)
            if scraped and scraped.item_group_id and scraped.item_group_id != ctx.numeric_id:
                await self.try_group(ctx, scraped.item_group_id)

        if ctx.resolved is None:
            for candidate in self.item_id_candidates(ctx):
                if await self.try_item(ctx, candidate):
                    break

    async def prefer_group(self, ctx: ResolverContext):
        """Swap a single variation member for its whole group when eBay returns it."""
        item = ctx.resolved
        group_id = item.get("itemGroupId")
        if ctx.is_group or not (item.get("itemGroupType") and group_id):
            return

        ctx.resolved = None
        if not await self.try_group(ctx, group_id):
            logger.warning(f"Item {item.get('itemId')} belongs to group {group_id} but the group could not be fetched; keeping the single item")
            ctx.resolved = item
            ctx.is_group = False

    async def resolve(self, source_url: str, numeric_id: str) -> ResolvedListing:
        ctx = ResolverContext(source_url=source_url, numeric_id=numeric_id)

        if not await self.try_legacy(ctx, numeric_id):
            await self.recover(ctx)

        if ctx.resolved is None:
            raise ResolutionExhaustedError(source_url, ctx.notes)

        await self.prefer_group(ctx)

        logger.info(f"Resolved {source_url} as {'group' if ctx.is_group else 'single item'} after {len(ctx.notes)} attempt(s)")
        return ResolvedListing(payload=ctx.resolved, is_group=ctx.is_group, notes=ctx.notes)


async def resolve_listing(source_url: str, numeric_id: str, ebay_client) -> ResolvedListing:
    return await ListingResolver(ebay_client).resolve(source_url, numeric_id)
