import logging
from fastapi import FastAPI
from ebay_importer.api.router import api_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

app = FastAPI(title="eBay → Shopify Listing Importer")

app.include_router(api_router)

@app.get("/")
def root():
    return {"status": "running", "message": "eBay → Shopify Listing Importer"}

@app.get("/health")
def health_check():
    return {"status": "healthy"}
