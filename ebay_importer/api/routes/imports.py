import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ebay_importer.api.deps import get_ebay_client, get_import_history, get_shopify_client
from ebay_importer.services.import_service import import_urls

logger = logging.getLogger(__name__)

router = APIRouter()


def urls_from_body(body) -> list[str]:
    """Accept either ``{"urls": [...]}`` or a single ``{"url": "..."}``."""
    if not isinstance(body, dict):
        return []
    if isinstance(body.get("urls"), list):
        urls = body["urls"]
    elif body.get("url"):
        urls = [body["url"]]
    else:
        urls = []
    return [u.strip() for u in urls if isinstance(u, str) and u.strip()]


@router.post("")
async def import_listings(
    request: Request,
    ebay_client=Depends(get_ebay_client),
    shopify_client=Depends(get_shopify_client),
    history=Depends(get_import_history),
):
    """
    Import eBay listings into Shopify, one URL after another.

    - 200 with one result per URL, failed URLs included
    - 400 when the body names no URL
    - 500 when the batch itself cannot run
    """
    try:
        body = await request.json()
        urls = urls_from_body(body)
        if not urls:
            return JSONResponse({"error": "Missing url/urls"}, status_code=400)

        results = await import_urls(urls, ebay_client, shopify_client, history)
        return JSONResponse({"results": [r.to_response() for r in results]}, status_code=200)
    except Exception as e:
        logger.exception("Import batch failed")
        return JSONResponse({"error": str(e)}, status_code=500)
