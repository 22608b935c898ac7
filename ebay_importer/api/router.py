from fastapi import APIRouter
from ebay_importer.api.routes import history, imports

api_router = APIRouter(prefix="/api")

api_router.include_router(imports.router, prefix="/import", tags=["Import"])
api_router.include_router(history.router, prefix="/history", tags=["History"])
