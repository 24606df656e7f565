"""Patient API routes, scoped to the owning user."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Response, status

from oncosafe.dependencies import get_storage
from oncosafe.storage import StorageService

router = APIRouter(prefix="/users/{user_id}/patients", tags=["patients"])


@router.get("")
async def list_patients(user_id: str, store: StorageService = Depends(get_storage)) -> dict:
    """List a user's patients, most recently updated first."""
    items = await store.list_patients_by_user(user_id)
    return {"items": items, "total": len(items)}


@router.put("")
async def upsert_patient(
    user_id: str,
    patient: dict[str, Any] = Body(...),
    store: StorageService = Depends(get_storage),
) -> dict:
    """Create or update a patient document.

    A missing or malformed ``id`` is replaced with a generated UUID; the
    returned record carries the id actually stored.
    """
    return await store.upsert_patient(user_id, patient)


@router.delete("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_patient(
    user_id: str,
    patient_id: str,
    store: StorageService = Depends(get_storage),
) -> Response:
    """Delete a patient.

    Raises:
        HTTPException: 404 if the user has no such patient.
    """
    if not await store.delete_patient(user_id, patient_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Patient not found",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
