import asyncio, sys, os, json

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(ROOT)

from ebay_importer.ebay.client import EbayClient
from ebay_importer.services.import_service import import_urls
from ebay_importer.shopify.client import ShopifyClient


def read_urls(args: list[str]) -> list[str]:
    """URLs from the command line; '@file' reads one URL per line."""
    urls = []
    for arg in args:
        if arg.startswith("@"):
            with open(arg[1:], "r", encoding="utf-8") as f:
                urls.extend(line.strip() for line in f if line.strip())
        else:
            urls.append(arg)
    return urls


async def main():
    urls = read_urls(sys.argv[1:])
    if not urls:
        print("usage: python scripts/import_urls.py <url> [<url> ...] | @urls.txt")
        sys.exit(2)

    results = await import_urls(urls, EbayClient(), ShopifyClient())
    for r in results:
        print(json.dumps(r.to_response(), ensure_ascii=False))

    if any(r.status == "failed" for r in results):
        sys.exit(1)

if __name__ == "__main__":
    asyncio.run(main())
