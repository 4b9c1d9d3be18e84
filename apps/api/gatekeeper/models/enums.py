"""
Enumerations shared by models, schemas and the authorization engine.
"""

from enum import Enum


class Role(str, Enum):
    """
    Principal roles.

    Only SUPER_ADMIN > COMPANY_ADMIN > everything else is ordered. The
    remaining roles are peers; what they may do comes from the permission
    table.
    """
    SUPER_ADMIN = "SUPER_ADMIN"
    COMPANY_ADMIN = "COMPANY_ADMIN"
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"
    MEMBER = "MEMBER"
    USER = "USER"


class ResourceType(str, Enum):
    """Kinds of resource an operation can target."""
    USER = "USER"
    COMPANY = "COMPANY"
    CLIENT = "CLIENT"
    PROJECT = "PROJECT"
    TASK = "TASK"
    PAYMENT = "PAYMENT"
    INVOICE = "INVOICE"
    PRODUCT = "PRODUCT"
    LEAD = "LEAD"
    OPPORTUNITY = "OPPORTUNITY"
    # Legacy bucket for call sites that predate a concrete type. It has no
    # tenant resolver, so instance-level checks on it always fail closed.
    OTHER = "OTHER"

    @property
    def is_legacy(self) -> bool:
        return self is ResourceType.OTHER


# Verbs seen at call sites that are not first-class actions
ACTION_ALIASES = {
    "LIST": "READ",
    "SEND": "UPDATE",
}


class Action(str, Enum):
    """Operations the engine authorizes."""
    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, verb: "str | Action") -> "Action":
        """
        Normalise a verb into an Action.

        Accepts any case and the legacy aliases LIST (read) and SEND
        (update). Raises ValueError for anything else.
        """
        if isinstance(verb, Action):
            return verb
        name = verb.strip().upper()
        name = ACTION_ALIASES.get(name, name)
        try:
            return cls(name)
        except ValueError:
            raise ValueError(f"Unknown action: {verb!r}") from None

    @staticmethod
    def is_alias(verb: str) -> bool:
        return verb.strip().upper() in ACTION_ALIASES


class AuditOutcome(str, Enum):
    """Outcome stored on an audit record."""
    DENIED = "DENIED"
    SUCCESS = "SUCCESS"
