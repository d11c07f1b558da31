# Directory access for GroupHound.
#
# The Directory contract plus its impacket LDAP implementation, domain and
# forest topology lookups, and SID resolution.

from .base import (
    ANY_OBJECT_FILTER,
    Directory,
    DirectoryConnectionError,
    DirectoryError,
    SearchScope,
)
from .domains import DomainControllerInfo, DomainInfo, DomainLocator, ForestDomain, ForestInfo
from .ldap import LdapDirectory, get_ldap_connection
from .sids import SidResolver

__all__ = [
    "ANY_OBJECT_FILTER",
    "Directory",
    "DirectoryConnectionError",
    "DirectoryError",
    "DomainControllerInfo",
    "DomainInfo",
    "DomainLocator",
    "ForestDomain",
    "ForestInfo",
    "LdapDirectory",
    "SearchScope",
    "SidResolver",
    "get_ldap_connection",
]
