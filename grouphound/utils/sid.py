# SID helpers for GroupHound
#
# String checks and the binary encoding needed to search the directory by
# objectSid.

import re
import struct
from typing import Optional

from .logging import debug

_SID_PATTERN = re.compile(r"^S-1-\d+(-\d+)+$")

# Prefix shared by every domain SID (NT authority, non-unique sub-authority)
DOMAIN_SID_PREFIX = "S-1-5-21-"


def is_sid(value: str) -> bool:
    """Check if a string looks like a Windows SID."""
    if not value:
        return False
    return bool(_SID_PATTERN.match(value.strip()))


def is_domain_sid(value: str) -> bool:
    """Check if a SID belongs to a domain (S-1-5-21-...) rather than a built-in authority."""
    return bool(value) and value.upper().startswith(DOMAIN_SID_PREFIX) and is_sid(value)


def get_domain_sid_prefix(sid: str) -> Optional[str]:
    """
    Extract domain SID prefix from a full SID.

    Domain SIDs have the format: S-1-5-21-{domain1}-{domain2}-{domain3}-{RID}
    The domain prefix is S-1-5-21-{domain1}-{domain2}-{domain3} (without RID).

    Args:
        sid: Full SID string (e.g., "S-1-5-21-123-456-789-1001")

    Returns:
        Domain prefix (e.g., "S-1-5-21-123-456-789") or None if not a domain SID
    """
    if not sid or not sid.startswith(DOMAIN_SID_PREFIX):
        return None

    parts = sid.split("-")
    # S-1-5-21-{d1}-{d2}-{d3}-{RID} = 8 parts minimum
    if len(parts) < 8:
        return None

    return "-".join(parts[:-1])


def sid_to_binary(sid_string: str) -> Optional[bytes]:
    """
    Convert a SID string (S-1-5-21-...) to binary format for LDAP queries.

    Returns:
        Binary representation of the SID, None if invalid
    """
    try:
        if not sid_string.startswith("S-"):
            return None

        parts = sid_string[2:].split("-")
        if len(parts) < 3:
            return None

        revision = int(parts[0])
        authority = int(parts[1])
        subauthorities = [int(x) for x in parts[2:]]

        # Revision (1) + SubAuthorityCount (1) + Authority (6, big-endian) + SubAuthorities (4 each, little-endian)
        binary_sid = struct.pack("B", revision)
        binary_sid += struct.pack("B", len(subauthorities))
        binary_sid += struct.pack(">Q", authority)[2:]
        for subauth in subauthorities:
            binary_sid += struct.pack("<I", subauth)

        return binary_sid

    except (ValueError, struct.error) as e:
        debug(f"Error converting SID {sid_string} to binary: {e}")
        return None


def binary_to_sid(binary_sid: bytes) -> Optional[str]:
    """
    Convert a binary SID (from the objectSid attribute) to string format.

    Returns:
        String representation like "S-1-5-21-...", None if invalid
    """
    try:
        if not binary_sid or len(binary_sid) < 8:
            return None

        revision = binary_sid[0]
        subauth_count = binary_sid[1]
        authority = struct.unpack(">Q", b"\x00\x00" + binary_sid[2:8])[0]

        sid_parts = [f"S-{revision}-{authority}"]
        offset = 8
        for _ in range(subauth_count):
            if offset + 4 > len(binary_sid):
                debug("Binary SID too short for claimed sub-authority count")
                return None
            sid_parts.append(str(struct.unpack("<I", binary_sid[offset : offset + 4])[0]))
            offset += 4

        return "-".join(sid_parts)

    except (ValueError, struct.error) as e:
        debug(f"Error converting binary SID to string: {e}")
        return None


def sid_search_filter(sid: str) -> Optional[str]:
    """
    Build an (objectSid=...) filter with the SID hex-escaped, as impacket expects.

    Returns:
        LDAP filter string, or None if the SID cannot be encoded
    """
    binary_sid = sid_to_binary(sid)
    if not binary_sid:
        return None
    escaped = "".join(f"\\{b:02x}" for b in binary_sid)
    return f"(objectSid={escaped})"
