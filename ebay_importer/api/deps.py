from functools import lru_cache

from ebay_importer.ebay.client import EbayClient
from ebay_importer.services.import_history import ImportHistory, import_history
from ebay_importer.shopify.client import ShopifyClient


@lru_cache(maxsize=1)
def get_ebay_client() -> EbayClient:
    # one instance so the app token cache survives between requests
    return EbayClient()


@lru_cache(maxsize=1)
def get_shopify_client() -> ShopifyClient:
    return ShopifyClient()


def get_import_history() -> ImportHistory:
    return import_history
