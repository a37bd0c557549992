from fastapi import APIRouter, Depends, HTTPException, status

from jobly.core.auth import UnauthorizedError
from jobly.core.config import Settings, get_settings
from jobly.core.tokens import create_token
from jobly.schemas.auth import TokenOut, TokenRequest
from jobly.schemas.users import UserRegisterRequest
from jobly.services.repository import RepositoryConflictError, RepositoryUnavailableError, get_repository

router = APIRouter()


@router.post("/token", response_model=TokenOut)
async def issue_token(
    payload: TokenRequest,
    settings: Settings = Depends(get_settings),
    repository=Depends(get_repository),
) -> TokenOut:
    try:
        user = await repository.authenticate(username=payload.username, password=payload.password)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except UnauthorizedError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return TokenOut(token=create_token(username=user["username"], is_admin=user["is_admin"], settings=settings))


@router.post("/register", response_model=TokenOut, status_code=status.HTTP_201_CREATED)
async def register(
    payload: UserRegisterRequest,
    settings: Settings = Depends(get_settings),
    repository=Depends(get_repository),
) -> TokenOut:
    try:
        user = await repository.register_user(**payload.model_dump(), is_admin=False)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return TokenOut(token=create_token(username=user["username"], is_admin=user["is_admin"], settings=settings))
