# Ranged attribute retrieval.
#
# When a multi-valued attribute holds more values than the server returns in
# one response, AD hands it out in windows named "<attr>;range=<lo>-<hi>",
# the last window being "<attr>;range=<lo>-*". This module walks the windows
# with base-scoped reads of the object itself.

from typing import Dict, List, Optional

from ..directory.base import ANY_OBJECT_FILTER, Directory, DirectoryConnectionError, DirectoryError, SearchScope
from ..models.entry import DirectoryEntry
from ..utils.dn import convert_dn_to_domain
from ..utils.logging import debug, warn

# Window width (AD MaxValRange default)
RANGE_WINDOW = 1500


def _returned_range_attribute(entry: DirectoryEntry, attribute: str) -> Optional[str]:
    """Find the attribute name the server used for the window, e.g. "member;range=0-1499"."""
    prefix = f"{attribute.lower()};range="
    for name in entry.attribute_names:
        if name.lower().startswith(prefix):
            return name
    return None


def read_ranged_attribute(
    directory: Directory,
    dn: str,
    attribute: str = "member",
    domain: Optional[str] = None,
    window: int = RANGE_WINDOW,
) -> List[str]:
    """
    Read every value of a ranged multi-valued attribute.

    Args:
        directory: Directory backend
        dn: Distinguished name of the object holding the attribute
        attribute: Attribute to read (default: member)
        domain: Domain to query (defaults to the DN's own domain)
        window: Window width

    Returns:
        All values, in first-seen order, without duplicates. Empty if the
        object has no values.

    Raises:
        DirectoryConnectionError: If the object's domain cannot be reached
    """
    domain = domain or convert_dn_to_domain(dn)
    values: Dict[str, None] = {}
    bottom = 0

    while True:
        top = bottom + window - 1
        ranged_name = f"{attribute};range={bottom}-{top}"

        try:
            results = directory.search(ANY_OBJECT_FILTER, SearchScope.BASE, [ranged_name], domain, dn)
        except DirectoryConnectionError:
            raise
        except DirectoryError as e:
            warn(f"Ranged read of {attribute} on {dn} stopped at {bottom}: {e}")
            break

        # No attributes at all: no (more) values
        if not results or not results[0].attribute_names:
            break

        entry = results[0]
        returned = _returned_range_attribute(entry, attribute)
        if returned is None:
            # Server answered with the plain attribute; that is the whole set
            for value in entry.get_all(attribute):
                values.setdefault(value, None)
            break

        for value in entry.get_all(returned):
            values.setdefault(value, None)

        if returned.endswith("-*"):
            break

        bottom += window

    debug(f"Ranged read of {attribute} on {dn}: {len(values)} values")
    return list(values)
