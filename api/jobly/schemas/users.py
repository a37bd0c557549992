from pydantic import BaseModel, Field, field_validator

from jobly.schemas.common import CamelModel, CamelRequest

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserOut(CamelModel):
    username: str
    first_name: str
    last_name: str
    email: str
    is_admin: bool = False


class UserDetailOut(UserOut):
    jobs: list[int] = Field(default_factory=list)


class UserRegisterRequest(CamelRequest):
    username: str = Field(min_length=1, max_length=30)
    password: str = Field(min_length=5, max_length=20)
    first_name: str = Field(min_length=1, max_length=30)
    last_name: str = Field(min_length=1, max_length=30)
    email: str = Field(min_length=6, max_length=60, pattern=EMAIL_PATTERN)


class UserNewRequest(UserRegisterRequest):
    is_admin: bool = False


class UserUpdateRequest(CamelRequest):
    password: str | None = Field(default=None, min_length=5, max_length=20)
    first_name: str | None = Field(default=None, min_length=1, max_length=30)
    last_name: str | None = Field(default=None, min_length=1, max_length=30)
    email: str | None = Field(default=None, min_length=6, max_length=60, pattern=EMAIL_PATTERN)

    @field_validator("password", "first_name", "last_name", "email")
    @classmethod
    def _not_null(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("field cannot be null")
        return value


class UserEnvelope(BaseModel):
    user: UserOut


class UserDetailEnvelope(BaseModel):
    user: UserDetailOut


class UserListEnvelope(BaseModel):
    users: list[UserOut]


class UserCreatedOut(BaseModel):
    user: UserOut
    token: str


class AppliedOut(BaseModel):
    applied: int
