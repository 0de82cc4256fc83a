from datetime import datetime
from typing import Annotated, Any, Optional

from fastapi import Path
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

# Largest value an INTEGER primary key can hold
MAX_ID = 2**63 - 1

IdPath = Annotated[int, Path(ge=1, le=MAX_ID)]


class UserCreate(BaseModel):
    name: str
    email: EmailStr
    password: str = Field(min_length=6)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name cannot be empty")
        return value


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class PasswordUpdate(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)


class User(BaseModel):
    id: int
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class ContactBase(BaseModel):
    name: str
    email: str
    phone: str

    @field_validator("name", "email", "phone")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Field cannot be empty")
        return value


class ContactCreate(ContactBase):
    pass


class ContactUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    is_favorite: Optional[bool] = None

    @field_validator("name", "email", "phone")
    @classmethod
    def not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            raise ValueError("Field cannot be null")
        value = value.strip()
        if not value:
            raise ValueError("Field cannot be empty")
        return value

    @field_validator("is_favorite")
    @classmethod
    def favorite_not_null(cls, value: Optional[bool]) -> bool:
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class TagSummary(BaseModel):
    id: int
    name: str
    color: str

    model_config = ConfigDict(from_attributes=True)


class Contact(BaseModel):
    id: int
    name: str
    email: str
    phone: str
    is_favorite: bool
    created_by: int
    tags: list[TagSummary] = []

    model_config = ConfigDict(from_attributes=True)


class TagCreate(BaseModel):
    name: str
    color: Optional[str] = None


class TagUpdate(BaseModel):
    name: Optional[str] = None
    color: Optional[str] = None

    @model_validator(mode="after")
    def at_least_one_field(self):
        if self.name is None and self.color is None:
            raise ValueError("At least one field is required for update")
        return self


class Tag(BaseModel):
    id: int
    name: str
    color: str
    created_by: int
    usage_count: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TagLink(BaseModel):
    contact_id: int = Field(ge=1, le=MAX_ID)


class TagBulkLink(BaseModel):
    contact_ids: list[int] = Field(min_length=1)


def envelope(data: Any = None, message: Optional[str] = None, count: Optional[int] = None, **extra) -> dict:
    """Build a success response body, leaving out the keys that were not given."""
    body: dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if count is not None:
        body["count"] = count
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body
