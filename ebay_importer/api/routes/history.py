from fastapi import APIRouter, Depends

from ebay_importer.api.deps import get_import_history

router = APIRouter()


@router.get("")
def list_history(history=Depends(get_import_history)):
    return {"items": [r.to_response() for r in history.items()]}
