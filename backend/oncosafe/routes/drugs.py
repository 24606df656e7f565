"""Drug reference and interaction API routes."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from oncosafe.dependencies import get_storage
from oncosafe.storage import StorageService

router = APIRouter(tags=["drugs"])

DEFAULT_SEARCH_LIMIT = 50
MAX_SEARCH_LIMIT = 200


class InteractionCheckRequest(BaseModel):
    rxcuis: list[str] = Field(min_length=1)


@router.get("/drugs/search")
async def search_drugs(
    q: str = Query(..., min_length=1),
    limit: int = Query(DEFAULT_SEARCH_LIMIT, ge=1),
    store: StorageService = Depends(get_storage),
) -> dict:
    """Search drugs by name, generic name or brand name."""
    limit = min(limit, MAX_SEARCH_LIMIT)
    items = await store.search_drugs(q, limit=limit)
    return {"items": items, "total": len(items)}


@router.get("/drugs/{rxcui}")
async def get_drug(rxcui: str, store: StorageService = Depends(get_storage)) -> dict:
    drug = await store.get_drug_by_rxcui(rxcui)
    if drug is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Drug not found",
        )
    return drug


@router.get("/drugs/{rxcui}/interactions")
async def get_drug_interactions(rxcui: str, store: StorageService = Depends(get_storage)) -> dict:
    items = await store.get_drug_interactions(rxcui)
    return {"rxcui": rxcui, "interactions": items}


@router.post("/interactions/check")
async def check_interactions(
    body: InteractionCheckRequest,
    store: StorageService = Depends(get_storage),
) -> dict:
    """Pairwise interactions among a medication list."""
    items = await store.check_multiple_interactions(body.rxcuis)
    return {"rxcuis": body.rxcuis, "interactions": items}
