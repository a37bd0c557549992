from pydantic import BaseModel, Field, field_validator

from jobly.schemas.common import CamelModel, CamelRequest


class CompanyJobOut(CamelModel):
    id: int
    title: str
    salary: int | None = None
    equity: str | None = None


class CompanyOut(CamelModel):
    handle: str
    name: str
    description: str | None = None
    num_employees: int | None = None
    logo_url: str | None = None


class CompanyDetailOut(CompanyOut):
    jobs: list[CompanyJobOut] = Field(default_factory=list)


class CompanyNewRequest(CamelRequest):
    handle: str = Field(min_length=1, max_length=25)
    name: str = Field(min_length=1)
    description: str | None = None
    num_employees: int | None = Field(default=None, ge=0)
    logo_url: str | None = None


class CompanyUpdateRequest(CamelRequest):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    num_employees: int | None = Field(default=None, ge=0)
    logo_url: str | None = None

    @field_validator("name")
    @classmethod
    def _name_not_null(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("name cannot be null")
        return value


class CompanyEnvelope(BaseModel):
    company: CompanyOut


class CompanyDetailEnvelope(BaseModel):
    company: CompanyDetailOut


class CompanyListEnvelope(BaseModel):
    companies: list[CompanyOut]
