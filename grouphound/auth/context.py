# Authentication context dataclass.
#
# Bundles the credentials and connection settings GroupHound needs to bind to
# domain controllers, so directory code receives one object instead of a long
# parameter list.
#
# Usage:
#     auth = AuthContext(
#         username="admin",
#         password="secret",
#         domain="corp.local",
#         dc_ip="192.168.1.1",
#     )
#     directory = LdapDirectory(auth)

from dataclasses import dataclass, field
from typing import Dict, Optional

from ..utils.helpers import parse_ntlm_hashes


@dataclass
class AuthContext:
    """
    Credentials and connection settings for directory access.

    Attributes:
        username: Username used to bind
        password: Password (mutually exclusive with hashes for auth)
        domain: Domain of the account, also the default domain to enumerate
        hashes: NTLM hashes in LMHASH:NTHASH format (alternative to password)
        aes_key: AES key for Kerberos (128-bit or 256-bit hex string)
        kerberos: Use Kerberos authentication instead of NTLM
        dc_ip: Domain controller IP for the primary domain
        dc_overrides: Per-domain DC addresses (upper-case FQDN -> IP)
        dns_tcp: Force DNS queries over TCP (for SOCKS proxies)
        nameserver: DNS nameserver used for DC discovery
        timeout: DC discovery timeout in seconds
    """

    username: str = ""
    password: Optional[str] = None
    domain: str = ""
    hashes: Optional[str] = None
    aes_key: Optional[str] = None
    kerberos: bool = False
    dc_ip: Optional[str] = None
    dc_overrides: Dict[str, str] = field(default_factory=dict)
    dns_tcp: bool = False
    nameserver: Optional[str] = None
    timeout: int = 10

    @property
    def has_credentials(self) -> bool:
        """Check if valid credentials are configured."""
        return bool(self.username and (self.password or self.hashes or self.aes_key or self.kerberos))

    @property
    def uses_kerberos(self) -> bool:
        # An AES key implies Kerberos authentication
        return self.kerberos or bool(self.aes_key)

    def dc_for(self, domain: str) -> Optional[str]:
        """
        Return the configured DC address for a domain, if any.

        The primary dc_ip only applies to the account's own domain; other
        domains use dc_overrides or fall back to DNS discovery.
        """
        key = domain.upper()
        if key in self.dc_overrides:
            return self.dc_overrides[key]
        if self.dc_ip and key == self.domain.upper():
            return self.dc_ip
        return None

    def ntlm_hashes(self):
        """Return (lmhash, nthash) parsed from the hashes string."""
        return parse_ntlm_hashes(self.hashes)

    def __repr__(self) -> str:
        """Safe repr that doesn't expose credentials."""
        return (
            f"AuthContext(username={self.username!r}, domain={self.domain!r}, "
            f"kerberos={self.kerberos}, dc_ip={self.dc_ip!r}, "
            f"has_password={self.password is not None}, "
            f"has_hashes={self.hashes is not None}, "
            f"has_aes_key={self.aes_key is not None})"
        )
