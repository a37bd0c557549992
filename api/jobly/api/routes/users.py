from fastapi import APIRouter, Depends, HTTPException, status

from jobly.core.config import Settings, get_settings
from jobly.core.security import ensure_admin, ensure_self_or_admin
from jobly.core.tokens import create_token
from jobly.schemas.common import DeletedOut
from jobly.schemas.users import (
    AppliedOut,
    UserCreatedOut,
    UserDetailEnvelope,
    UserDetailOut,
    UserEnvelope,
    UserListEnvelope,
    UserNewRequest,
    UserOut,
    UserUpdateRequest,
)
from jobly.services.repository import (
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    get_repository,
)
from jobly.services.sql import SqlFragmentError

router = APIRouter()


@router.post("", response_model=UserCreatedOut, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserNewRequest,
    _admin=Depends(ensure_admin),
    settings: Settings = Depends(get_settings),
    repository=Depends(get_repository),
) -> UserCreatedOut:
    try:
        row = await repository.register_user(**payload.model_dump())
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    token = create_token(username=row["username"], is_admin=row["is_admin"], settings=settings)
    return UserCreatedOut(user=UserOut(**row), token=token)


@router.get("", response_model=UserListEnvelope)
async def list_users(_admin=Depends(ensure_admin), repository=Depends(get_repository)) -> UserListEnvelope:
    try:
        rows = await repository.list_users()
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return UserListEnvelope(users=[UserOut(**row) for row in rows])


@router.get("/{username}", response_model=UserDetailEnvelope)
async def get_user(
    username: str,
    _credential=Depends(ensure_self_or_admin),
    repository=Depends(get_repository),
) -> UserDetailEnvelope:
    try:
        row = await repository.get_user(username)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return UserDetailEnvelope(user=UserDetailOut(**row))


@router.patch("/{username}", response_model=UserEnvelope)
async def patch_user(
    username: str,
    payload: UserUpdateRequest,
    _credential=Depends(ensure_self_or_admin),
    repository=Depends(get_repository),
) -> UserEnvelope:
    try:
        row = await repository.update_user(username, payload.model_dump(exclude_unset=True, by_alias=True))
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SqlFragmentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return UserEnvelope(user=UserOut(**row))


@router.delete("/{username}", response_model=DeletedOut)
async def delete_user(
    username: str,
    _credential=Depends(ensure_self_or_admin),
    repository=Depends(get_repository),
) -> DeletedOut:
    try:
        await repository.remove_user(username)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return DeletedOut(deleted=username)


@router.post("/{username}/jobs/{job_id}", response_model=AppliedOut)
async def apply_to_job(
    username: str,
    job_id: int,
    _credential=Depends(ensure_self_or_admin),
    repository=Depends(get_repository),
) -> AppliedOut:
    try:
        await repository.apply_to_job(username=username, job_id=job_id)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return AppliedOut(applied=job_id)
