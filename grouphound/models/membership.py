# Membership data model.
#
# Object types, resolved identities and the GroupMember edge emitted by the
# resolution engine.

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict


class ObjectType(str, Enum):
    """Classification tag for a directory principal."""

    USER = "user"
    COMPUTER = "computer"
    GROUP = "group"
    DOMAIN = "domain"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ResolvedEntry:
    """
    Identity of the object whose memberships are being expanded.

    Attributes:
        object_type: Classification of the object (user, computer, group, ...)
        display_name: BloodHound display name (e.g. "DOMAIN ADMINS@CORP.LOCAL")
    """

    object_type: str
    display_name: str

    @property
    def is_group(self) -> bool:
        return self.object_type == ObjectType.GROUP.value


@dataclass(frozen=True)
class MappedPrincipal:
    """Cached identity of a member principal."""

    principal_name: str
    object_type: str


@dataclass(frozen=True)
class GroupMember:
    """
    Membership edge: account_name (of object_type) is a member of group_name.

    Attributes:
        account_name: Display name of the member
        group_name: Display name of the group
        object_type: Object type of the member
    """

    account_name: str
    group_name: str
    object_type: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON/CSV export."""
        return asdict(self)
