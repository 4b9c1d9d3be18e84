"""
Permission table model.

One row per (action, resource type, role) triple. The set of roles sharing
an (action, resource type) pair is the grant for that pair.
"""

from sqlalchemy import Enum as SQLEnum, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, IdMixin, TimestampMixin
from .enums import Action, ResourceType, Role


class PermissionGrant(Base, IdMixin, TimestampMixin):
    """
    A single role granted an action on a resource type.

    Examples:
        PermissionGrant(action=Action.READ, resource_type=ResourceType.PROJECT, role=Role.EMPLOYEE)
    """

    __tablename__ = "permission_grants"
    __table_args__ = (
        UniqueConstraint("action", "resource_type", "role", name="uq_permission_grant"),
        # SUPER_ADMIN is always fast-pathed; a row for it would be meaningless
        CheckConstraint("role <> 'SUPER_ADMIN'", name="ck_permission_grant_not_super_admin"),
    )

    action: Mapped[Action] = mapped_column(
        SQLEnum(Action, native_enum=False, length=16),
        nullable=False,
    )
    resource_type: Mapped[ResourceType] = mapped_column(
        SQLEnum(ResourceType, native_enum=False, length=32),
        nullable=False,
        index=True,
    )
    role: Mapped[Role] = mapped_column(
        SQLEnum(Role, native_enum=False, length=32),
        nullable=False,
    )

    @property
    def key(self) -> tuple[Action, ResourceType, Role]:
        return (self.action, self.resource_type, self.role)

    def __repr__(self) -> str:
        return f"<PermissionGrant {self.action.value}:{self.resource_type.value} -> {self.role.value}>"
