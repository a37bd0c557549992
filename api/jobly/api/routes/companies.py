from fastapi import APIRouter, Depends, HTTPException, Query, status

from jobly.core.security import ensure_admin
from jobly.schemas.common import DeletedOut
from jobly.schemas.companies import (
    CompanyDetailEnvelope,
    CompanyDetailOut,
    CompanyEnvelope,
    CompanyListEnvelope,
    CompanyNewRequest,
    CompanyOut,
    CompanyUpdateRequest,
)
from jobly.services.repository import (
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    get_repository,
)
from jobly.services.sql import CompanyFilter, SqlFragmentError

router = APIRouter()


@router.post("", response_model=CompanyEnvelope, status_code=status.HTTP_201_CREATED)
async def create_company(
    payload: CompanyNewRequest,
    _admin=Depends(ensure_admin),
    repository=Depends(get_repository),
) -> CompanyEnvelope:
    try:
        row = await repository.create_company(**payload.model_dump())
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return CompanyEnvelope(company=CompanyOut(**row))


@router.get("", response_model=CompanyListEnvelope)
async def list_companies(
    name_like: str | None = Query(default=None, alias="nameLike", min_length=1),
    min_employees: int | None = Query(default=None, alias="minEmployees", ge=0),
    max_employees: int | None = Query(default=None, alias="maxEmployees", ge=0),
    repository=Depends(get_repository),
) -> CompanyListEnvelope:
    filters = CompanyFilter(name_like=name_like, min_employees=min_employees, max_employees=max_employees)
    try:
        rows = await repository.list_companies(filters)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except SqlFragmentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return CompanyListEnvelope(companies=[CompanyOut(**row) for row in rows])


@router.get("/{handle}", response_model=CompanyDetailEnvelope)
async def get_company(handle: str, repository=Depends(get_repository)) -> CompanyDetailEnvelope:
    try:
        row = await repository.get_company(handle)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return CompanyDetailEnvelope(company=CompanyDetailOut(**row))


@router.patch("/{handle}", response_model=CompanyEnvelope)
async def patch_company(
    handle: str,
    payload: CompanyUpdateRequest,
    _admin=Depends(ensure_admin),
    repository=Depends(get_repository),
) -> CompanyEnvelope:
    try:
        row = await repository.update_company(handle, payload.model_dump(exclude_unset=True, by_alias=True))
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SqlFragmentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return CompanyEnvelope(company=CompanyOut(**row))


@router.delete("/{handle}", response_model=DeletedOut)
async def delete_company(
    handle: str,
    _admin=Depends(ensure_admin),
    repository=Depends(get_repository),
) -> DeletedOut:
    try:
        await repository.remove_company(handle)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return DeletedOut(deleted=handle)
