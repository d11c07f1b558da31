# Distinguished name helpers.
#
# Pure string functions for the DN shapes GroupHound deals with: domain
# heads (DC=corp,DC=local), member DNs and foreign security principals
# (CN=S-1-5-21-...,CN=ForeignSecurityPrincipals,DC=corp,DC=local).

import re
from typing import List, Optional

FOREIGN_SECURITY_PRINCIPALS = "CN=FOREIGNSECURITYPRINCIPALS"

# Split on commas not escaped with a backslash
_RDN_SPLIT = re.compile(r"(?<!\\),")


def split_dn(dn: str) -> List[str]:
    """Split a DN into its RDN components (escaped commas are preserved)."""
    return [part.strip() for part in _RDN_SPLIT.split(dn) if part.strip()]


def rdn_value(dn: str) -> Optional[str]:
    """
    Return the value of the leaf RDN.

    Example: "CN=S-1-5-21-1-2-3-1104,CN=ForeignSecurityPrincipals,DC=corp,DC=local"
    -> "S-1-5-21-1-2-3-1104"
    """
    parts = split_dn(dn)
    if not parts or "=" not in parts[0]:
        return None
    return parts[0].split("=", 1)[1].replace("\\,", ",")


def convert_dn_to_domain(dn: str) -> str:
    """
    Convert a DN to the DNS name of the domain that holds it.

    Example: "CN=Bob,OU=Users,DC=corp,DC=local" -> "CORP.LOCAL"

    Returns:
        Upper-case domain FQDN, or an empty string if the DN has no DC components
    """
    labels = []
    for part in split_dn(dn):
        if "=" not in part:
            continue
        key, value = part.split("=", 1)
        if key.strip().upper() == "DC":
            labels.append(value.strip())
    return ".".join(labels).upper()


def domain_to_dn(domain: str) -> str:
    """
    Convert a domain FQDN to its naming context DN.

    Example: "corp.local" -> "DC=corp,DC=local"
    """
    return ",".join(f"DC={part}" for part in domain.split(".") if part)


def is_foreign_security_principal(dn: str) -> bool:
    """Check whether a DN lives in the ForeignSecurityPrincipals container."""
    return FOREIGN_SECURITY_PRINCIPALS in dn.upper()
