# DNS utilities for GroupHound
#
# Domain controller discovery via SRV records, used when no DC address is
# configured for a domain (including trusted domains reached while resolving
# foreign principals).

import socket
from typing import List, Optional

import dns.resolver

from .helpers import is_ipv4
from .logging import debug, warn

# Default timeout for DNS operations (seconds)
DEFAULT_DNS_TIMEOUT = 5

# Default timeout for DC reachability checks (seconds)
DEFAULT_LDAP_TIMEOUT = 10


def _make_resolver(nameserver: Optional[str], timeout: int) -> dns.resolver.Resolver:
    resolver = dns.resolver.Resolver(configure=nameserver is None)
    if nameserver:
        resolver.nameservers = [nameserver]
    resolver.timeout = timeout
    resolver.lifetime = timeout
    return resolver


def discover_domain_controllers(
    domain: str,
    nameserver: Optional[str] = None,
    use_tcp: bool = False,
    timeout: int = DEFAULT_DNS_TIMEOUT,
) -> List[str]:
    """
    Discover domain controllers via DNS SRV records.

    Queries _ldap._tcp.dc._msdcs.<domain> SRV record to find all DCs.
    Falls back to A record lookup if SRV fails.

    Args:
        domain: Domain name (e.g., "corp.local")
        nameserver: Optional DNS server to use (defaults to system DNS)
        use_tcp: Force DNS queries over TCP (required for SOCKS proxies)
        timeout: DNS query timeout in seconds

    Returns:
        List of DC hostnames/IPs (may be empty if discovery fails)
    """
    dcs = []

    try:
        resolver = _make_resolver(nameserver, timeout)
        srv_name = f"_ldap._tcp.dc._msdcs.{domain}"
        debug(f"DNS: Querying SRV record {srv_name}")

        answers = resolver.resolve(srv_name, "SRV", tcp=use_tcp)
        for rdata in answers:
            dc_host = str(rdata.target).rstrip(".")
            if dc_host:
                dcs.append(dc_host)
                debug(f"DNS: Found DC via SRV: {dc_host} (priority={rdata.priority}, weight={rdata.weight})")

        if dcs:
            debug(f"DNS: Discovered {len(dcs)} DCs via SRV records")
            return dcs

    except Exception as e:
        debug(f"DNS: SRV lookup failed: {e}")

    # Fallback: the domain name itself resolves to its DCs in AD-integrated DNS
    ip = resolve_hostname(domain, nameserver=nameserver, use_tcp=use_tcp, timeout=timeout)
    if ip:
        debug(f"DNS: Resolved domain {domain} to {ip}")
        dcs.append(ip)

    return dcs


def resolve_hostname(
    hostname: str,
    nameserver: Optional[str] = None,
    use_tcp: bool = False,
    timeout: int = DEFAULT_DNS_TIMEOUT,
) -> Optional[str]:
    """
    Resolve a hostname to an IP address.

    Returns:
        IP address string, or None if resolution fails
    """
    if is_ipv4(hostname):
        return hostname

    try:
        if nameserver:
            answers = _make_resolver(nameserver, timeout).resolve(hostname, "A", tcp=use_tcp)
            if answers:
                return str(answers[0])
        else:
            return socket.gethostbyname(hostname)
    except Exception as e:
        debug(f"DNS: Could not resolve {hostname}: {e}")

    return None


def get_working_dc(
    domain: str,
    dc_ip: Optional[str] = None,
    nameserver: Optional[str] = None,
    use_tcp: bool = False,
    timeout: int = DEFAULT_LDAP_TIMEOUT,
) -> Optional[str]:
    """
    Get a working DC IP for LDAP connections.

    If dc_ip is provided, returns it directly (user override).
    Otherwise, discovers DCs and tests connectivity.

    Returns:
        DC IP address, or None if no working DC found
    """
    if dc_ip:
        return dc_ip

    dcs = discover_domain_controllers(domain, nameserver=nameserver, use_tcp=use_tcp)
    if not dcs:
        warn(f"Could not discover any DCs for domain {domain}")
        return None

    for dc in dcs:
        dc_resolved = resolve_hostname(dc, nameserver=nameserver, use_tcp=use_tcp, timeout=timeout)
        if not dc_resolved:
            debug(f"DNS: Could not resolve DC hostname {dc}")
            continue

        if _test_port(dc_resolved, 636, timeout=min(timeout, 3)):
            debug(f"DNS: DC {dc_resolved} is reachable on LDAPS (636)")
            return dc_resolved
        elif _test_port(dc_resolved, 389, timeout=min(timeout, 3)):
            debug(f"DNS: DC {dc_resolved} is reachable on LDAP (389)")
            return dc_resolved
        else:
            debug(f"DNS: DC {dc_resolved} not reachable on LDAP ports")

    # Let the LDAP connection produce the real error
    first_dc = resolve_hostname(dcs[0], nameserver=nameserver, use_tcp=use_tcp)
    if first_dc:
        warn(f"No DC responded on LDAP ports, trying {first_dc} anyway")
    return first_dc


def _test_port(host: str, port: int, timeout: int = 3) -> bool:
    """Test if a TCP port is reachable."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False
