# Raw directory entry.
#
# DirectoryEntry wraps a single LDAP search result: its distinguished name and
# a case-insensitive view of the returned attributes. Values are kept as
# strings, except for binary attributes (objectSid and friends) which stay
# as bytes.

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

# Attributes returned as raw bytes by the directory
BINARY_ATTRIBUTES = {"objectsid", "objectguid", "securityidentifier", "sidhistory"}


@dataclass
class DirectoryEntry:
    """
    A single object returned by a directory search.

    Attribute names keep the casing the server returned (ranged attribute
    names such as "member;range=0-1499" must be read back verbatim), while
    lookups through get()/get_all() are case-insensitive.
    """

    distinguished_name: str
    attributes: Dict[str, List[Any]] = field(default_factory=dict)

    @property
    def attribute_names(self) -> List[str]:
        return list(self.attributes.keys())

    def _find(self, name: str) -> Optional[List[Any]]:
        if name in self.attributes:
            return self.attributes[name]
        lowered = name.lower()
        for key, values in self.attributes.items():
            if key.lower() == lowered:
                return values
        return None

    def get(self, name: str) -> Optional[Any]:
        """Return the first value of an attribute, or None if absent/empty."""
        values = self._find(name)
        if not values:
            return None
        return values[0]

    def get_all(self, name: str) -> List[Any]:
        """Return every value of a multi-valued attribute (empty if absent)."""
        values = self._find(name)
        return list(values) if values else []

    @classmethod
    def from_pairs(cls, dn: str, pairs: Iterable[Tuple[str, List[Any]]]) -> "DirectoryEntry":
        """Build an entry from (attribute_name, values) pairs."""
        attributes: Dict[str, List[Any]] = {}
        for name, values in pairs:
            attributes.setdefault(name, []).extend(values)
        return cls(distinguished_name=dn, attributes=attributes)

    @classmethod
    def from_impacket(cls, result) -> "DirectoryEntry":
        """
        Convert an impacket ldapasn1 SearchResultEntry.

        Args:
            result: impacket.ldap.ldapasn1.SearchResultEntry

        Returns:
            DirectoryEntry with decoded attribute values
        """
        dn = str(result["objectName"])
        pairs = []
        for attr in result["attributes"]:
            attr_name = str(attr["type"])
            base_name = attr_name.split(";", 1)[0].lower()
            if base_name in BINARY_ATTRIBUTES:
                values = [bytes(val) for val in attr["vals"]]
            else:
                values = [str(val) for val in attr["vals"]]
            pairs.append((attr_name, values))
        return cls.from_pairs(dn, pairs)
