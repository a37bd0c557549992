from pydantic import BaseModel, Field, field_validator

from jobly.schemas.common import CamelModel, CamelRequest

EQUITY_PATTERN = r"^(0(\.\d+)?|1(\.0+)?)$"


class JobOut(CamelModel):
    id: int
    title: str
    salary: int | None = None
    equity: str | None = None
    company_handle: str


class JobNewRequest(CamelRequest):
    title: str = Field(min_length=1)
    salary: int | None = Field(default=None, ge=0)
    equity: str | None = Field(default=None, pattern=EQUITY_PATTERN)
    company_handle: str = Field(min_length=1, max_length=25)


class JobUpdateRequest(CamelRequest):
    """Company handle is fixed at creation; it is not accepted here."""

    title: str | None = Field(default=None, min_length=1)
    salary: int | None = Field(default=None, ge=0)
    equity: str | None = Field(default=None, pattern=EQUITY_PATTERN)

    @field_validator("title")
    @classmethod
    def _title_not_null(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("title cannot be null")
        return value


class JobEnvelope(BaseModel):
    job: JobOut


class JobListEnvelope(BaseModel):
    jobs: list[JobOut]
