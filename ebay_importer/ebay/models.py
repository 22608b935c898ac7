from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class ListingIdentifiers(BaseModel):
    model_config = ConfigDict(frozen=True)

    item_id: Optional[str] = None
    item_group_id: Optional[str] = None
    legacy_item_id: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.item_id or self.item_group_id or self.legacy_item_id)


class ResolvedListing(BaseModel):
    """Raw Browse API payload for a single item or a normalized item group."""
    payload: dict
    is_group: bool = False
    notes: List[str] = Field(default_factory=list)
