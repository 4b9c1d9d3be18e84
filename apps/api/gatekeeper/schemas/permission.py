"""
Permission table schemas.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gatekeeper.models.enums import Action, ResourceType, Role


class GrantBase(BaseModel):
    """An (action, resource type, role) triple."""
    action: Action
    resource_type: ResourceType
    role: Role

    @field_validator("action", mode="before")
    @classmethod
    def parse_action(cls, v):
        # Accept legacy verbs (LIST, SEND) and lowercase input
        if isinstance(v, str):
            return Action.parse(v)
        return v

    @field_validator("role")
    @classmethod
    def reject_super_admin(cls, v: Role) -> Role:
        if v is Role.SUPER_ADMIN:
            raise ValueError("SUPER_ADMIN is always allowed and cannot hold grants")
        return v


class GrantCreate(GrantBase):
    pass


class GrantDelete(GrantBase):
    pass


class GrantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    action: Action
    resource_type: ResourceType
    role: Role
    created_at: datetime


class RoleGrant(BaseModel):
    """Grant on a role, with the role taken from the path."""
    action: Action
    resource_type: ResourceType

    @field_validator("action", mode="before")
    @classmethod
    def parse_action(cls, v):
        if isinstance(v, str):
            return Action.parse(v)
        return v


class RoleGrantsResponse(BaseModel):
    role: Role
    grants: list[RoleGrant] = Field(default_factory=list)


class PermissionCheckRequest(BaseModel):
    """
    Dry-run decision request.

    Evaluates the calling principal unless ``user_id`` names another user.
    """
    action: str = Field(..., min_length=1, max_length=16)
    resource_type: ResourceType
    resource_id: str | None = Field(None, max_length=64)
    tenant_id: str | None = Field(None, max_length=64)
    allow_self: bool = False
    user_id: str | None = Field(None, max_length=64)

    @field_validator("action")
    @classmethod
    def validate_action(cls, v: str) -> str:
        Action.parse(v)
        return v


class PermissionCheckResponse(BaseModel):
    principal_id: str
    allowed: bool
    outcome: str
    reason: str | None = None
    via: str | None = None
    status_code: int
