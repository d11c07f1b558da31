# Membership resolution engine.
#
# Producers expanding one object (or one forest) into GroupMember edges, the
# shared resolution context, and the parallel collector built on them.

from .collector import (
    CollectionResult,
    CollectorConfig,
    MembershipCollector,
    MembershipJob,
    ObjectResult,
    aggregate_results,
)
from .context import ResolutionContext
from .memberships import enumerate_enterprise_dcs, resolve_memberships
from .ranged import RANGE_WINDOW, read_ranged_attribute
from .resolver import PrincipalResolver

__all__ = [
    "CollectionResult",
    "CollectorConfig",
    "MembershipCollector",
    "MembershipJob",
    "ObjectResult",
    "PrincipalResolver",
    "RANGE_WINDOW",
    "ResolutionContext",
    "aggregate_results",
    "enumerate_enterprise_dcs",
    "read_ranged_attribute",
    "resolve_memberships",
]
