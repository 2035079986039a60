from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

DATE_FORMAT = "%m/%d/%Y %H:%M:%S"


def format_date(value: datetime) -> str:
    return value.strftime(DATE_FORMAT)


class CamelModel(BaseModel):
    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class MessageOut(BaseModel):
    message: str
    status: Literal["success", "info", "warning", "error"] = "success"


class SignupIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=16)


class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class LoginOut(CamelModel):
    message: str
    token: str
    user_id: str
    email: str


class TodoCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    completed: bool = False
    category_id: Optional[int] = None


class TodoUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    completed: Optional[bool] = None
    category_id: Optional[int] = None


class TodoOut(CamelModel):
    id: str
    title: str
    completed: bool
    category_id: int
    user_id: Optional[str] = None
    created_at: str
    updated_at: str

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _format_timestamp(cls, value):
        if isinstance(value, datetime):
            return format_date(value)
        return value


class TodoDeleted(BaseModel):
    message: str
    id: str


class CategoryOut(CamelModel):
    id: int
    name: str
    todos: Optional[List[TodoOut]] = None


class PostOut(CamelModel):
    id: str
    title: str
    content: Optional[str] = None
    published: bool


class UserProfile(CamelModel):
    id: str
    email: str
    todos: List[TodoOut] = []
    posts: List[PostOut] = []


class CountOut(BaseModel):
    todos: int
    posts: int


class UserSummary(CamelModel):
    id: str
    email: str
    count: CountOut = Field(alias="_count")
