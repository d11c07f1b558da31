# Membership edge producers.
#
# resolve_memberships() expands one directory object into GroupMember edges:
# one per resolvable member, plus the object's own primary group. It is a
# generator: each edge is produced on demand, directory round-trips happen
# between yields, and a consumer can stop at any point by closing it.
#
# enumerate_enterprise_dcs() emits the forest-wide ENTERPRISE DOMAIN
# CONTROLLERS memberships once per forest.

from typing import Iterator, Optional

from ..classification import IDENTITY_ATTRIBUTES
from ..models.entry import DirectoryEntry
from ..models.membership import GroupMember, ObjectType, ResolvedEntry
from ..utils.dn import convert_dn_to_domain
from ..utils.logging import debug
from .context import ResolutionContext
from .ranged import read_ranged_attribute
from .resolver import PrincipalResolver

ENTERPRISE_DCS_GROUP = "ENTERPRISE DOMAIN CONTROLLERS"


def primary_group_sid(domain_sid: str, primary_group_id) -> str:
    """Build the SID of a primary group from the domain SID and the RID."""
    return f"{domain_sid}-{primary_group_id}"


def resolve_memberships(
    context: ResolutionContext,
    entry: DirectoryEntry,
    resolved_entry: ResolvedEntry,
    domain_sid: Optional[str],
) -> Iterator[GroupMember]:
    """
    Produce the membership edges of one directory object.

    Args:
        context: Shared resolution context
        entry: The object, read with at least member and primarygroupid
        resolved_entry: Identity of the object
        domain_sid: SID of the object's domain (for the primary group)

    Yields:
        GroupMember edges; direct members first, then the primary group
    """
    group_name = resolved_entry.display_name
    entry_domain = convert_dn_to_domain(entry.distinguished_name)

    # Store groups first so self-nesting and mutual nesting hit the cache
    if resolved_entry.is_group:
        context.cache.store(entry.distinguished_name, ObjectType.GROUP.value, group_name)

    members = entry.get_all("member")
    if not members:
        members = read_ranged_attribute(context.directory, entry.distinguished_name, "member", entry_domain)

    resolver = PrincipalResolver(context)
    for member_dn in members:
        principal = resolver.resolve(member_dn, domain_sid)
        if principal is None:
            continue
        yield GroupMember(
            account_name=principal.principal_name,
            group_name=group_name,
            object_type=principal.object_type,
        )

    primary_group_id = entry.get("primarygroupid")
    if primary_group_id is None:
        return
    if not domain_sid:
        debug(f"No domain SID for {entry.distinguished_name}, skipping primary group {primary_group_id}")
        return

    pg_sid = primary_group_sid(domain_sid, primary_group_id)
    primary_group_name = context.sid_resolver.sid_to_display(
        pg_sid, entry_domain, IDENTITY_ATTRIBUTES, ObjectType.GROUP.value
    )
    if primary_group_name is None:
        debug(f"Primary group {pg_sid} of {entry.distinguished_name} not resolved")
        return

    yield GroupMember(
        account_name=resolved_entry.display_name,
        group_name=primary_group_name,
        object_type=resolved_entry.object_type,
    )


def enumerate_enterprise_dcs(context: ResolutionContext, domain_name: str) -> Iterator[GroupMember]:
    """
    Produce one edge per domain controller of the forest owning `domain_name`.

    The forest is claimed before the first edge, so across the whole run
    (and across concurrent calls for sibling domains) each forest's edges
    are produced once.

    Args:
        context: Shared resolution context
        domain_name: Any domain of the forest

    Yields:
        (controller host name) -member of-> ENTERPRISE DOMAIN CONTROLLERS@<FOREST>
    """
    domain = context.domain_locator.resolve_domain(domain_name)
    if domain is None:
        return

    forest = domain.forest
    if not context.finished_forests.try_claim(forest.name):
        debug(f"Enterprise DCs of forest {forest.name} already emitted")
        return

    group_name = f"{ENTERPRISE_DCS_GROUP}@{forest.name}"
    for subdomain in forest.domains:
        for controller in subdomain.controllers:
            yield GroupMember(
                account_name=controller.host_name,
                group_name=group_name,
                object_type=ObjectType.COMPUTER.value,
            )
