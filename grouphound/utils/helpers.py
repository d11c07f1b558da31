# Host string and credential parsing shared by the CLI, DNS and auth code.

from typing import Optional, Tuple


def is_ipv4(host: str) -> bool:
    """True for a dotted-quad address with every octet in 0-255."""
    octets = host.strip().split(".")
    if len(octets) != 4:
        return False
    try:
        return all(0 <= int(octet) <= 255 for octet in octets)
    except ValueError:
        return False


def parse_ntlm_hashes(hashes: Optional[str]) -> Tuple[str, str]:
    """
    Split an NTLM hash string into (lmhash, nthash).

    Accepts "LM:NT" or a bare NT hash; None or "" gives two empty strings.
    """
    if not hashes:
        return "", ""
    lmhash, sep, nthash = hashes.partition(":")
    if not sep:
        return "", hashes
    return lmhash, nthash
