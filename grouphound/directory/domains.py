# Domain and forest topology for GroupHound
#
# Resolves a domain name to its SID and forest, and lists the domains and
# domain controllers of a forest. Everything is read from the configuration
# partition, which every DC of the forest replicates, so one connection to
# the requested domain is enough.

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..utils.dn import convert_dn_to_domain, domain_to_dn
from ..utils.logging import debug, warn
from ..utils.sid import binary_to_sid
from .base import ANY_OBJECT_FILTER, Directory, DirectoryError, SearchScope

# crossRef objects describing domain naming contexts (systemFlags FLAG_CR_NTDS_DOMAIN)
DOMAIN_CROSSREF_FILTER = "(&(objectClass=crossRef)(systemFlags:1.2.840.113556.1.4.803:=2))"

# nTDS server objects, one per domain controller in the forest
SERVER_FILTER = "(objectClass=server)"


@dataclass(frozen=True)
class DomainControllerInfo:
    """A domain controller: short name and DNS host name."""

    name: str
    host_name: str


@dataclass
class ForestDomain:
    """A domain of a forest and its domain controllers."""

    name: str
    controllers: List[DomainControllerInfo] = field(default_factory=list)


@dataclass
class ForestInfo:
    """
    A forest and its member domains.

    Attributes:
        name: Forest root domain (upper-case FQDN)
        domains: Member domains with their controllers
    """

    name: str
    domains: List[ForestDomain] = field(default_factory=list)


@dataclass
class DomainInfo:
    """
    A resolved domain.

    Attributes:
        name: Domain FQDN (upper-case)
        distinguished_name: Naming context (DC=corp,DC=local)
        sid: Domain SID (S-1-5-21-x-y-z), None if unreadable
        forest: Owning forest
    """

    name: str
    distinguished_name: str
    sid: Optional[str]
    forest: ForestInfo


class DomainLocator:
    """
    Resolves domain names to DomainInfo objects.

    Results (including failures) are memoized per domain and forests per
    forest name, so sibling domains share one ForestInfo.
    """

    def __init__(self, directory: Directory):
        self.directory = directory
        self._lock = threading.Lock()
        self._domains: Dict[str, Optional[DomainInfo]] = {}
        self._forests: Dict[str, ForestInfo] = {}

    def resolve_domain(self, name: str) -> Optional[DomainInfo]:
        """
        Resolve a domain name.

        Args:
            name: Domain FQDN

        Returns:
            DomainInfo, or None if the domain cannot be reached or read
        """
        if not name:
            return None

        key = name.upper()
        with self._lock:
            if key in self._domains:
                return self._domains[key]

        try:
            domain = self._load_domain(key)
        except DirectoryError as e:
            warn(f"Could not resolve domain {key}: {e}")
            domain = None

        with self._lock:
            self._domains[key] = domain
        return domain

    def _load_domain(self, name: str) -> Optional[DomainInfo]:
        domain_dn = domain_to_dn(name)

        heads = self.directory.search("(objectClass=domain)", SearchScope.BASE, ["objectSid"], name, domain_dn)
        if not heads:
            debug(f"Domain head {domain_dn} not found")
            return None
        raw_sid = heads[0].get("objectSid")
        sid = binary_to_sid(raw_sid) if isinstance(raw_sid, bytes) else raw_sid

        root_dse = self.directory.search(
            ANY_OBJECT_FILTER,
            SearchScope.BASE,
            ["rootDomainNamingContext", "configurationNamingContext"],
            name,
            "",
        )
        if not root_dse:
            debug(f"rootDSE of {name} returned nothing")
            return None

        root_nc = root_dse[0].get("rootDomainNamingContext")
        config_nc = root_dse[0].get("configurationNamingContext")
        if not root_nc or not config_nc:
            debug(f"rootDSE of {name} lacks naming contexts")
            return None

        forest = self._get_forest(convert_dn_to_domain(root_nc), name, config_nc)
        debug(f"Resolved domain {name} (SID {sid}) in forest {forest.name}")
        return DomainInfo(name=name, distinguished_name=domain_dn, sid=sid, forest=forest)

    def _get_forest(self, forest_name: str, via_domain: str, config_nc: str) -> ForestInfo:
        with self._lock:
            forest = self._forests.get(forest_name)
        if forest is not None:
            return forest

        forest = self._load_forest(forest_name, via_domain, config_nc)
        with self._lock:
            # Another worker may have loaded it meanwhile; keep the first one
            return self._forests.setdefault(forest_name, forest)

    def _load_forest(self, forest_name: str, via_domain: str, config_nc: str) -> ForestInfo:
        domains: Dict[str, ForestDomain] = {}

        crossrefs = self.directory.search(
            DOMAIN_CROSSREF_FILTER,
            SearchScope.ONE_LEVEL,
            ["dnsRoot", "nCName"],
            via_domain,
            f"CN=Partitions,{config_nc}",
        )
        for ref in crossrefs:
            dns_root = ref.get("dnsRoot")
            nc_name = ref.get("nCName")
            domain_name = (dns_root or convert_dn_to_domain(nc_name or "")).upper()
            if domain_name:
                domains.setdefault(domain_name, ForestDomain(name=domain_name))

        servers = self.directory.search(
            SERVER_FILTER,
            SearchScope.SUBTREE,
            ["name", "dNSHostName", "serverReference"],
            via_domain,
            f"CN=Sites,{config_nc}",
        )
        for server in servers:
            reference = server.get("serverReference")
            if not reference:
                # Server object without a computer account (demoted DC leftovers)
                continue
            domain_name = convert_dn_to_domain(reference)
            short_name = server.get("name") or ""
            host_name = server.get("dNSHostName") or f"{short_name}.{domain_name}"
            domains.setdefault(domain_name, ForestDomain(name=domain_name)).controllers.append(
                DomainControllerInfo(name=short_name.upper(), host_name=host_name.upper())
            )

        forest = ForestInfo(name=forest_name, domains=sorted(domains.values(), key=lambda d: d.name))
        dc_count = sum(len(d.controllers) for d in forest.domains)
        debug(f"Forest {forest_name}: {len(forest.domains)} domains, {dc_count} domain controllers")
        return forest
