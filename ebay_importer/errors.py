"""
Exception types raised while importing an eBay listing into Shopify.

Every failure carries a stable ``code`` so API responses and the import
history can be filtered without parsing messages.
"""

from typing import Any, Optional


class ImporterError(Exception):
    """Base class for all importer failures."""

    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NoIdentifierError(ImporterError):
    """The listing URL has no parseable numeric id."""

    def __init__(self, url: str):
        super().__init__(
            code="NO_IDENTIFIER",
            message="Cannot parse numeric id from URL",
            details={"url": url},
        )


class ResolutionExhaustedError(ImporterError):
    """Every lookup strategy failed; the message holds the attempt log."""

    def __init__(self, url: str, notes: list[str]):
        self.notes = list(notes)
        super().__init__(
            code="RESOLUTION_EXHAUSTED",
            message=f"Unable to fetch eBay data for {url} after multiple attempts:\n" + "\n".join(self.notes),
            details={"url": url, "attempts": len(self.notes)},
        )


class MissingItemsError(ImporterError):
    """A resolved item group came back without member listings."""

    def __init__(self, group_id: Optional[str] = None):
        super().__init__(
            code="MISSING_ITEMS",
            message="eBay group payload missing items",
            details={"item_group_id": group_id} if group_id else None,
        )


class UpstreamError(ImporterError):
    """A remote API answered with a non-success response."""

    def __init__(self, message: str, status: Optional[int] = None, code: str = "UPSTREAM_ERROR"):
        self.status = status
        super().__init__(code=code, message=message, details={"status": status} if status else None)


class EbayApiError(UpstreamError):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message, status=status, code="EBAY_API_ERROR")


class FetchError(UpstreamError):
    """The listing page itself could not be downloaded."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message, status=status, code="FETCH_ERROR")


class ShopifyApiError(UpstreamError):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message, status=status, code="SHOPIFY_API_ERROR")
