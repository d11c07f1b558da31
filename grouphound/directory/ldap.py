# LDAP directory backend for GroupHound
#
# Connection setup and search over impacket's LDAP client. Connections are
# cached per thread and per domain, so workers never share a socket and
# nothing is held across a producer's suspension points.

import contextlib
import threading
from typing import Dict, List, Optional, Sequence

from impacket.ldap import ldap as ldap_impacket
from impacket.ldap import ldapasn1 as ldapasn1_impacket

from ..auth.context import AuthContext
from ..models.entry import DirectoryEntry
from ..utils.dn import domain_to_dn
from ..utils.dns import get_working_dc
from ..utils.logging import debug
from .base import Directory, DirectoryConnectionError, DirectoryError, SearchScope

# Page size for subtree searches
PAGE_SIZE = 1000


def get_ldap_connection(domain: str, auth: AuthContext) -> ldap_impacket.LDAPConnection:
    """
    Establish an LDAP connection to a domain controller of `domain`.

    Tries LDAPS (port 636) first, then falls back to LDAP (port 389). This
    handles DCs that require channel binding or LDAP signing
    (strongerAuthRequired error).

    If no DC address is configured for the domain, one is discovered via
    DNS SRV records.

    Args:
        domain: Domain to connect to (FQDN format, e.g., "corp.local")
        auth: Credentials and DC settings

    Returns:
        Bound LDAPConnection object

    Raises:
        DirectoryConnectionError: If connection fails
    """
    dc_ip = get_working_dc(
        domain=domain,
        dc_ip=auth.dc_for(domain),
        nameserver=auth.nameserver,
        use_tcp=auth.dns_tcp,
        timeout=auth.timeout,
    )
    if not dc_ip:
        raise DirectoryConnectionError(
            f"Could not discover DC for domain {domain}. "
            "Specify --dc-ip explicitly or check DNS configuration."
        )

    base_dn = domain_to_dn(domain)
    lmhash, nthash = auth.ntlm_hashes()
    # The account domain, not the queried one, is the realm/NTLM domain
    login_domain = auth.domain or domain

    connection_attempts = [
        ("ldaps", 636, True),
        ("ldap", 389, False),
    ]

    last_error = None
    for protocol, port, use_ssl in connection_attempts:
        try:
            # Kerberos needs the SPN ldap/<domain>, so connect by name and route via dstIp
            if auth.uses_kerberos:
                ldap_url = f"{protocol}://{domain}"
            else:
                ldap_url = f"{protocol}://{dc_ip}:{port}"
            debug(f"LDAP: Attempting {protocol.upper()} connection to {ldap_url}")

            ldap_conn = ldap_impacket.LDAPConnection(ldap_url, baseDN=base_dn, dstIp=dc_ip)

            if auth.uses_kerberos:
                ldap_conn.kerberosLogin(
                    user=auth.username,
                    password=auth.password or "",
                    domain=login_domain,
                    lmhash=lmhash,
                    nthash=nthash,
                    aesKey=auth.aes_key or "",
                    kdcHost=auth.dc_for(login_domain),
                )
            else:
                ldap_conn.login(
                    user=auth.username,
                    password=auth.password or "",
                    domain=login_domain,
                    lmhash=lmhash,
                    nthash=nthash,
                )

            debug(f"LDAP: Connected to {domain} via {protocol.upper()}")
            return ldap_conn

        except Exception as e:
            error_str = str(e)
            debug(f"LDAP: {protocol.upper()} connection failed: {error_str}")
            last_error = e

            if use_ssl and ("certificate" in error_str.lower() or "ssl" in error_str.lower()):
                debug("LDAP: SSL/certificate issue, trying plain LDAP...")
                continue

            if "strongerAuthRequired" in error_str:
                debug("LDAP: DC requires signing/encryption but LDAPS also failed")
                break

    raise DirectoryConnectionError(f"LDAP connection to {domain} failed: {last_error}") from last_error


class LdapDirectory(Directory):
    """
    Directory backend over impacket LDAP.

    Thread-safe: each thread gets its own connection per domain
    (threading.local), created on first use.
    """

    def __init__(self, auth: AuthContext):
        self.auth = auth
        self._local = threading.local()
        self._lock = threading.Lock()
        self._connections: List[ldap_impacket.LDAPConnection] = []

    def _connections_for_thread(self) -> Dict[str, ldap_impacket.LDAPConnection]:
        conns = getattr(self._local, "conns", None)
        if conns is None:
            conns = {}
            self._local.conns = conns
        return conns

    def _get_conn(self, domain: str) -> ldap_impacket.LDAPConnection:
        key = domain.upper()
        conns = self._connections_for_thread()
        conn = conns.get(key)
        if conn is not None:
            return conn

        conn = get_ldap_connection(domain, self.auth)
        conns[key] = conn
        with self._lock:
            self._connections.append(conn)
        debug(f"LDAP: New connection to {key} for thread {threading.current_thread().name}")
        return conn

    def _drop_conn(self, domain: str):
        conn = self._connections_for_thread().pop(domain.upper(), None)
        if conn is not None:
            with contextlib.suppress(Exception):
                conn.close()

    def search(
        self,
        ldap_filter: str,
        scope: SearchScope,
        attributes: Sequence[str],
        domain: str,
        base_dn: Optional[str] = None,
    ) -> List[DirectoryEntry]:
        if not domain:
            raise DirectoryError(f"No domain given for search under {base_dn!r}")

        conn = self._get_conn(domain)
        search_base = domain_to_dn(domain) if base_dn is None else base_dn
        controls = None
        if scope == SearchScope.SUBTREE:
            controls = [ldap_impacket.SimplePagedResultsControl(size=PAGE_SIZE)]

        debug(f"LDAP: search {ldap_filter} scope={scope.value} base={search_base!r} attrs={list(attributes)}")
        try:
            results = conn.search(
                searchBase=search_base,
                scope=ldapasn1_impacket.Scope(scope.value),
                searchFilter=ldap_filter,
                attributes=list(attributes),
                searchControls=controls,
            )
        except ldap_impacket.LDAPSearchError as e:
            if "noSuchObject" in str(e):
                debug(f"LDAP: {search_base} does not exist")
                return []
            raise DirectoryError(f"LDAP search under {search_base} failed: {e}") from e
        except Exception as e:
            # Socket-level failure: forget this connection so the next call reconnects
            self._drop_conn(domain)
            raise DirectoryError(f"LDAP search under {search_base} failed: {e}") from e

        return [
            DirectoryEntry.from_impacket(result)
            for result in results
            if isinstance(result, ldapasn1_impacket.SearchResultEntry)
        ]

    def close(self):
        """Close all connections (every thread's)."""
        with self._lock:
            for conn in self._connections:
                with contextlib.suppress(Exception):
                    conn.close()
            self._connections.clear()
        self._local.conns = None
