# taskmanager/schemas.py
from datetime import datetime
from typing import Annotated, Generic, Literal, Optional, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator

from . import models  # import the Enum so the task schemas can accept it

T = TypeVar("T")

SortField = Literal["id", "title", "status", "priority", "due_date", "created_at"]
SortDir = Literal["asc", "desc"]

# matches the 32-bit INTEGER column
PRIORITY_MIN = -2**31
PRIORITY_MAX = 2**31 - 1


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    priority: int = Field(default=0, ge=PRIORITY_MIN, le=PRIORITY_MAX)
    due_date: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("title must not be blank")
        return value


class TaskUpdate(BaseModel):
    # Only keys present in the request are applied (model_dump(exclude_unset=True))
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    status: Optional[models.TaskStatus] = None
    priority: Optional[int] = Field(default=None, ge=PRIORITY_MIN, le=PRIORITY_MAX)
    due_date: Optional[datetime] = None

    @field_validator("title", "status", "priority")
    @classmethod
    def _not_null(cls, value, info):
        # description and due_date may be cleared with null; these may not
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        if info.field_name == "title" and not value.strip():
            raise ValueError("title must not be blank")
        return value


class TaskOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    status: models.TaskStatus
    priority: int
    due_date: Optional[datetime] = None
    user_id: int
    created_at: datetime
    updated_at: datetime

    # Accept attributes from SQLAlchemy models and render Enum as its .value
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class PaginatedResponse(BaseModel, Generic[T]):
    data: list[T]
    total: int                                   # items matching the filter
    page: int
    page_size: int = Field(alias="pageSize")
    total_pages: int = Field(alias="totalPages")  # ceil(total / page_size)

    model_config = ConfigDict(populate_by_name=True)


def _name_not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("name must not be blank")
    return value


NameStr = Annotated[str, Field(min_length=1, max_length=100), AfterValidator(_name_not_blank)]


class UserCreate(BaseModel):
    email: EmailStr
    name: NameStr
    password: str = Field(min_length=6)  # triggers 400 if too short


class UserUpdate(BaseModel):
    name: NameStr


class UserOut(BaseModel):
    id: int
    email: str
    name: str
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
