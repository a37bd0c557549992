from fastapi import APIRouter, Depends, HTTPException, Query, status

from jobly.core.security import ensure_admin
from jobly.schemas.common import DeletedOut
from jobly.schemas.jobs import JobEnvelope, JobListEnvelope, JobNewRequest, JobOut, JobUpdateRequest
from jobly.services.repository import (
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
    get_repository,
)
from jobly.services.sql import JobFilter, SqlFragmentError

router = APIRouter()


@router.post("", response_model=JobEnvelope, status_code=status.HTTP_201_CREATED)
async def create_job(
    payload: JobNewRequest,
    _admin=Depends(ensure_admin),
    repository=Depends(get_repository),
) -> JobEnvelope:
    try:
        row = await repository.create_job(**payload.model_dump())
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return JobEnvelope(job=JobOut(**row))


@router.get("", response_model=JobListEnvelope)
async def list_jobs(
    title: str | None = Query(default=None, min_length=1),
    min_salary: int | None = Query(default=None, alias="minSalary", ge=0),
    has_equity: bool | None = Query(default=None, alias="hasEquity"),
    repository=Depends(get_repository),
) -> JobListEnvelope:
    filters = JobFilter(title=title, min_salary=min_salary, has_equity=has_equity)
    try:
        rows = await repository.list_jobs(filters)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except SqlFragmentError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return JobListEnvelope(jobs=[JobOut(**row) for row in rows])


@router.get("/{job_id}", response_model=JobEnvelope)
async def get_job(job_id: int, repository=Depends(get_repository)) -> JobEnvelope:
    try:
        row = await repository.get_job(job_id)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return JobEnvelope(job=JobOut(**row))


@router.patch("/{job_id}", response_model=JobEnvelope)
async def patch_job(
    job_id: int,
    payload: JobUpdateRequest,
    _admin=Depends(ensure_admin),
    repository=Depends(get_repository),
) -> JobEnvelope:
    try:
        row = await repository.update_job(job_id, payload.model_dump(exclude_unset=True, by_alias=True))
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except (SqlFragmentError, RepositoryValidationError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return JobEnvelope(job=JobOut(**row))


@router.delete("/{job_id}", response_model=DeletedOut)
async def delete_job(
    job_id: int,
    _admin=Depends(ensure_admin),
    repository=Depends(get_repository),
) -> DeletedOut:
    try:
        await repository.remove_job(job_id)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return DeletedOut(deleted=str(job_id))
