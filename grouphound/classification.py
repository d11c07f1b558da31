# Object classification for membership edges.
#
# Turns a raw directory entry into an object type and the BloodHound display
# name used as the node identifier in graph output:
#   users/groups -> SAMACCOUNTNAME@DOMAIN.FQDN
#   computers    -> HOST.DOMAIN.FQDN
#   domains      -> DOMAIN.FQDN

from typing import Optional

from .models.entry import DirectoryEntry
from .models.membership import ObjectType, ResolvedEntry
from .utils.dn import convert_dn_to_domain, split_dn

# sAMAccountType values
# Reference: https://learn.microsoft.com/en-us/windows/win32/adschema/a-samaccounttype
GROUP_ACCOUNT_TYPES = {
    268435456,  # SAM_GROUP_OBJECT
    268435457,  # SAM_NON_SECURITY_GROUP_OBJECT
    536870912,  # SAM_ALIAS_OBJECT
    536870913,  # SAM_NON_SECURITY_ALIAS_OBJECT
}
USER_ACCOUNT_TYPE = 805306368
COMPUTER_ACCOUNT_TYPE = 805306369
TRUST_ACCOUNT_TYPE = 805306370

# Attributes needed to classify a principal
IDENTITY_ATTRIBUTES = ["samaccountname", "distinguishedname", "samaccounttype", "dnshostname"]


def object_type_for_account_type(account_type: int) -> str:
    """Map a sAMAccountType value to an object type tag."""
    if account_type in GROUP_ACCOUNT_TYPES:
        return ObjectType.GROUP.value
    if account_type in (USER_ACCOUNT_TYPE, TRUST_ACCOUNT_TYPE):
        return ObjectType.USER.value
    if account_type == COMPUTER_ACCOUNT_TYPE:
        return ObjectType.COMPUTER.value
    return ObjectType.UNKNOWN.value


def is_domain_head(dn: str) -> bool:
    """True if every RDN of the DN is a DC= component (e.g. DC=corp,DC=local)."""
    parts = split_dn(dn)
    return bool(parts) and all(part.upper().startswith("DC=") for part in parts)


def classify(entry: DirectoryEntry) -> Optional[ResolvedEntry]:
    """
    Classify a directory entry.

    Args:
        entry: Entry returned with at least IDENTITY_ATTRIBUTES

    Returns:
        ResolvedEntry, or None if the entry is not a security principal
    """
    dn = entry.get("distinguishedname") or entry.distinguished_name
    domain = convert_dn_to_domain(dn)
    if not domain:
        return None

    sam_name = entry.get("samaccountname")
    raw_type = entry.get("samaccounttype")

    if sam_name is None or raw_type is None:
        if is_domain_head(dn):
            return ResolvedEntry(object_type=ObjectType.DOMAIN.value, display_name=domain)
        return None

    try:
        account_type = int(raw_type)
    except (TypeError, ValueError):
        return None

    object_type = object_type_for_account_type(account_type)

    if object_type == ObjectType.COMPUTER.value:
        host_name = entry.get("dnshostname")
        if host_name:
            display_name = str(host_name).upper()
        else:
            display_name = f"{str(sam_name).rstrip('$')}.{domain}".upper()
    else:
        display_name = f"{sam_name}@{domain}".upper()

    return ResolvedEntry(object_type=object_type, display_name=display_name)
