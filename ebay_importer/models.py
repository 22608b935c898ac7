from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CanonicalVariant(BaseModel):
    sku: Optional[str] = None
    price: str = "0.00"
    currency_code: str = "USD"
    options: Dict[str, str] = Field(default_factory=dict)
    image_url: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)


class CanonicalProduct(BaseModel):
    """Marketplace-neutral product: one entry per purchasable member."""
    title: str
    description: str = ""
    vendor: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    image_urls: List[str] = Field(default_factory=list)
    variants: List[CanonicalVariant] = Field(default_factory=list)
    options_order: List[str] = Field(default_factory=list)


class VariantAsset(BaseModel):
    key: str
    image_urls: List[str] = Field(default_factory=list)


class PayloadMeta(BaseModel):
    dropped_variants: int = 0
    duplicate_variants: int = 0


class PlatformProductPayload(BaseModel):
    # product_input / variant_inputs are Shopify GraphQL inputs, camelCase keys
    product_input: dict
    variant_inputs: List[dict] = Field(default_factory=list)
    variant_assets: List[VariantAsset] = Field(default_factory=list)
    meta: PayloadMeta = Field(default_factory=PayloadMeta)


class ImportResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    source_url: str
    legacy_item_id: Optional[str] = None
    product_id: Optional[str] = None
    handle: Optional[str] = None
    title: Optional[str] = None
    variants: Optional[int] = None
    status: Literal["created", "updated", "failed"] = "failed"
    error: Optional[str] = None
    shopify_url: Optional[str] = None

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
