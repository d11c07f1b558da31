# SID resolution for GroupHound
#
# Maps SIDs to the domain that owns them and to BloodHound display names.
# Used for primary groups (domain SID + RID) and for foreign security
# principals whose SID belongs to a trusted domain.

import threading
from typing import Dict, Optional, Sequence

from ..classification import IDENTITY_ATTRIBUTES, classify
from ..models.membership import MappedPrincipal
from ..utils.dn import domain_to_dn
from ..utils.logging import debug, info
from ..utils.sid import binary_to_sid, get_domain_sid_prefix, sid_search_filter
from .base import Directory, DirectoryError, SearchScope


class SidResolver:
    """
    Resolves SIDs through the directory.

    Keeps two per-process maps guarded by one lock:
    - domain SID prefix -> domain FQDN (own domain + trusts)
    - SID -> MappedPrincipal for SIDs already looked up
    """

    def __init__(self, directory: Directory):
        self.directory = directory
        self._lock = threading.RLock()
        self._domain_sids: Dict[str, str] = {}
        self._loaded_domains = set()
        self._principals: Dict[str, MappedPrincipal] = {}

    # ------------------------------------------------------------------
    # Domain SID prefixes
    # ------------------------------------------------------------------

    def register_domain(self, domain_sid: str, domain: str) -> None:
        """Record that `domain_sid` is the SID of `domain`."""
        with self._lock:
            self._domain_sids[domain_sid.upper()] = domain.upper()

    def load_domain_sids(self, domain: str) -> Dict[str, str]:
        """
        Learn the SID of `domain` and of every domain it trusts.

        Reads objectSid from the domain head and securityIdentifier/trustPartner
        from trustedDomain objects under CN=System. Each domain is read once.

        Returns:
            Copy of the full prefix -> domain map
        """
        key = domain.upper()
        with self._lock:
            if key in self._loaded_domains:
                return dict(self._domain_sids)
            self._loaded_domains.add(key)

        base_dn = domain_to_dn(domain)

        try:
            heads = self.directory.search("(objectClass=domain)", SearchScope.BASE, ["objectSid"], domain, base_dn)
            for head in heads:
                sid = _sid_value(head.get("objectSid"))
                if sid:
                    self.register_domain(sid, domain)
                    debug(f"Own domain SID: {sid} -> {key}")
        except DirectoryError as e:
            debug(f"Error querying domain SID of {key}: {e}")

        try:
            trusts = self.directory.search(
                "(objectClass=trustedDomain)",
                SearchScope.ONE_LEVEL,
                ["securityIdentifier", "trustPartner"],
                domain,
                f"CN=System,{base_dn}",
            )
            for trust in trusts:
                sid = _sid_value(trust.get("securityIdentifier"))
                partner = trust.get("trustPartner")
                if sid and partner:
                    self.register_domain(sid, partner)
                    debug(f"Trust SID: {sid} -> {partner.upper()}")
        except DirectoryError as e:
            debug(f"Error querying trusts of {key}: {e}")

        with self._lock:
            info(f"Known domain SID prefixes: {len(self._domain_sids)}")
            return dict(self._domain_sids)

    def sid_to_domain_name(self, sid: str) -> Optional[str]:
        """
        Return the FQDN of the domain owning a domain SID.

        Returns:
            Upper-case domain FQDN, or None if the prefix is unknown
        """
        prefix = get_domain_sid_prefix(sid)
        if not prefix:
            return None
        with self._lock:
            domain = self._domain_sids.get(prefix.upper())
            if domain is None and sid.upper() in self._domain_sids:
                # A bare domain SID
                domain = self._domain_sids[sid.upper()]
        if domain is None:
            debug(f"No known domain for SID {sid}")
        return domain

    # ------------------------------------------------------------------
    # SID -> display name
    # ------------------------------------------------------------------

    def _lookup(self, sid: str, domain: str, attributes: Sequence[str]) -> Optional[MappedPrincipal]:
        with self._lock:
            cached = self._principals.get(sid.upper())
        if cached is not None:
            return cached

        ldap_filter = sid_search_filter(sid)
        if not ldap_filter:
            return None

        try:
            entries = self.directory.search(ldap_filter, SearchScope.SUBTREE, list(attributes), domain)
        except DirectoryError as e:
            debug(f"SID lookup for {sid} in {domain} failed: {e}")
            return None

        if not entries:
            debug(f"SID {sid} not found in {domain}")
            return None

        resolved = classify(entries[0])
        if resolved is None:
            return None

        principal = MappedPrincipal(principal_name=resolved.display_name, object_type=resolved.object_type)
        with self._lock:
            self._principals[sid.upper()] = principal
        return principal

    def sid_to_display(
        self,
        sid: str,
        domain: str,
        attributes: Sequence[str] = IDENTITY_ATTRIBUTES,
        expected_type: Optional[str] = None,
    ) -> Optional[str]:
        """
        Resolve a SID to a display name within a domain.

        Args:
            sid: SID to resolve
            domain: Domain to search
            attributes: Attributes to request
            expected_type: If set, objects of another type do not match

        Returns:
            Display name, or None if not found or of the wrong type
        """
        if not domain:
            return None
        principal = self._lookup(sid, domain, attributes)
        if principal is None:
            return None
        if expected_type and principal.object_type != expected_type:
            debug(f"SID {sid} is a {principal.object_type}, expected {expected_type}")
            return None
        return principal.principal_name

    def unknown_sid_to_display(
        self,
        sid: str,
        domain: Optional[str],
        attributes: Sequence[str] = IDENTITY_ATTRIBUTES,
    ) -> Optional[MappedPrincipal]:
        """
        Resolve a SID of unknown object type to a principal.

        Args:
            sid: SID to resolve
            domain: Domain owning the SID (None if unknown)
            attributes: Attributes to request

        Returns:
            MappedPrincipal, or None if the SID cannot be resolved
        """
        if not domain:
            return None
        return self._lookup(sid, domain, attributes)


def _sid_value(raw) -> Optional[str]:
    if isinstance(raw, bytes):
        return binary_to_sid(raw)
    return raw or None
