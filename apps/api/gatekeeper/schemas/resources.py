"""
Schemas for the user and client routes.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from gatekeeper.models.enums import Role


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: EmailStr
    name: str | None
    role: Role
    company_id: str | None
    is_active: bool
    created_at: datetime


class UserUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)


class ClientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: EmailStr | None = None
    company_id: str | None
    created_at: datetime


class ClientCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr | None = None
    company_id: str | None = Field(
        None,
        description="Target company; defaults to the caller's own",
    )


class ClientUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
