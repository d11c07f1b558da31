# Principal resolution for member DNs.
#
# Cache first, then one base-scoped read of the member's own entry. Foreign
# security principals are resolved by SID against the domain that owns them.

from typing import Optional

from ..classification import IDENTITY_ATTRIBUTES, classify
from ..directory.base import ANY_OBJECT_FILTER, DirectoryError, SearchScope
from ..models.membership import MappedPrincipal
from ..utils.dn import convert_dn_to_domain, is_foreign_security_principal, rdn_value
from ..utils.logging import debug
from ..utils.sid import is_domain_sid
from .context import ResolutionContext


class PrincipalResolver:
    """
    Resolves member DNs to principals through the shared cache.

    Safe to share between threads: the only state it touches is the
    context's cache and resolvers, which are thread-safe.
    """

    def __init__(self, context: ResolutionContext):
        self.context = context

    def resolve(self, dn: str, domain_sid: Optional[str] = None) -> Optional[MappedPrincipal]:
        """
        Resolve a member DN.

        Args:
            dn: Distinguished name of the member
            domain_sid: SID of the domain being enumerated

        Returns:
            MappedPrincipal, or None if the member is unresolvable
        """
        principal, found = self.context.cache.lookup(dn)
        if found:
            return principal

        if is_foreign_security_principal(dn):
            return self._resolve_foreign(dn, domain_sid)

        try:
            return self._resolve_from_directory(dn)
        except DirectoryError as e:
            debug(f"Could not resolve member {dn}: {e}")
            return None

    def _resolve_foreign(self, dn: str, domain_sid: Optional[str]) -> Optional[MappedPrincipal]:
        sid = rdn_value(dn) or ""

        # SIDs of the local domain are resolved through their own account objects
        if domain_sid and sid.upper().startswith(f"{domain_sid.upper()}-"):
            debug(f"Skipping local SID under ForeignSecurityPrincipals: {sid}")
            return None

        if is_domain_sid(sid):
            sid_resolver = self.context.sid_resolver
            owner = sid_resolver.sid_to_domain_name(sid)
            if not domain_sid and owner and owner == convert_dn_to_domain(dn):
                debug(f"Skipping local SID under ForeignSecurityPrincipals: {sid}")
                return None
            principal = sid_resolver.unknown_sid_to_display(sid, owner, IDENTITY_ATTRIBUTES)
            if principal is None:
                debug(f"Foreign principal {sid} could not be resolved")
            return principal

        # Well-known SIDs (S-1-5-11, S-1-5-4, ...)
        debug(f"Unresolvable foreign principal: {dn}")
        return None

    def _resolve_from_directory(self, dn: str) -> Optional[MappedPrincipal]:
        entries = self.context.directory.search(
            ANY_OBJECT_FILTER,
            SearchScope.BASE,
            IDENTITY_ATTRIBUTES,
            convert_dn_to_domain(dn),
            dn,
        )
        if not entries:
            debug(f"Member {dn} not found")
            return None

        resolved = classify(entries[0])
        if resolved is None:
            debug(f"Member {dn} could not be classified")
            return None

        self.context.cache.store(dn, resolved.object_type, resolved.display_name)
        return MappedPrincipal(principal_name=resolved.display_name, object_type=resolved.object_type)
