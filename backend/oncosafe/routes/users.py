"""User management API routes."""

from fastapi import APIRouter, Depends, HTTPException, status

from oncosafe.dependencies import get_storage
from oncosafe.schemas.user import UserCreate, UserDeleteResponse, UserResponse, UserUpdate
from oncosafe.storage import StorageService

router = APIRouter(prefix="/users", tags=["users"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")


@router.post("", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
async def create_user(
    body: UserCreate,
    store: StorageService = Depends(get_storage),
) -> dict:
    """Register a user.

    Raises:
        HTTPException: 409 if the email is already registered.
    """
    if await store.get_user_by_email(body.email) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )
    return await store.create_user(body.model_dump(mode="json", exclude_none=True))


@router.get("", response_model=list[UserResponse])
async def list_users(store: StorageService = Depends(get_storage)) -> list[dict]:
    return await store.get_all_users()


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, store: StorageService = Depends(get_storage)) -> dict:
    user = await store.get_user_by_id(user_id)
    if user is None:
        raise _not_found()
    return user


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    body: UserUpdate,
    store: StorageService = Depends(get_storage),
) -> dict:
    user = await store.update_user(user_id, body.model_dump(mode="json", exclude_unset=True))
    if user is None:
        raise _not_found()
    return user


@router.delete("/{user_id}", response_model=UserDeleteResponse)
async def delete_user(
    user_id: str,
    hard: bool = False,
    actor_id: str | None = None,
    store: StorageService = Depends(get_storage),
) -> dict:
    """Deactivate a user, or purge it entirely with ``?hard=true``.

    A soft-deleted user keeps its email reserved; a hard-deleted one frees
    it for a new registration.

    Raises:
        HTTPException: 404 if the user does not exist, 502 if the backend
            could not deactivate it.
    """
    if hard:
        result = await store.hard_delete_user(user_id, actor_id=actor_id)
    else:
        result = await store.soft_delete_user(user_id, actor_id=actor_id)

    if not result.success:
        if result.error == "not found":
            raise _not_found()
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.error)

    return {"success": True, "hard": hard, "user": result.user, "error": None}
