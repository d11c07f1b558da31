# Directory access contract.
#
# Everything the resolution engine knows about the directory goes through
# Directory.search(). The LDAP implementation lives in directory/ldap.py;
# tests substitute in-memory directories implementing the same method.

from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional, Sequence

from ..models.entry import DirectoryEntry

# Filter matching any object, used for base-scoped reads of a known DN
ANY_OBJECT_FILTER = "(objectclass=*)"


class SearchScope(str, Enum):
    """Search scope, mirroring the LDAP baseObject/singleLevel/wholeSubtree values."""

    BASE = "baseObject"
    ONE_LEVEL = "singleLevel"
    SUBTREE = "wholeSubtree"


class DirectoryError(Exception):
    """A directory query failed (protocol or server error)."""

    pass


class DirectoryConnectionError(DirectoryError):
    """Failed to connect or bind to a domain controller."""

    pass


class Directory(ABC):
    """Abstract base class for directory backends."""

    @abstractmethod
    def search(
        self,
        ldap_filter: str,
        scope: SearchScope,
        attributes: Sequence[str],
        domain: str,
        base_dn: Optional[str] = None,
    ) -> List[DirectoryEntry]:
        """
        Run a search against a domain.

        Args:
            ldap_filter: LDAP filter string
            scope: Search scope
            attributes: Attributes to return
            domain: DNS name of the domain to query
            base_dn: Search base (defaults to the domain naming context)

        Returns:
            Matching entries (empty if the base object does not exist)

        Raises:
            DirectoryError: On connection or protocol failure
        """
