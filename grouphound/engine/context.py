# Resolution context.
#
# Bundles the directory backend and the process-wide shared state (principal
# cache, finished forests) so the producers receive them explicitly instead
# of reaching for module globals. One context is built per run and shared by
# every worker thread.

from dataclasses import dataclass, field

from ..directory.base import Directory
from ..directory.domains import DomainLocator
from ..directory.sids import SidResolver
from ..utils.principal_cache import FinishedForests, PrincipalCache


@dataclass
class ResolutionContext:
    """
    Everything the membership producers need.

    Attributes:
        directory: Backend used for all searches
        sid_resolver: SID -> domain/display name lookups
        domain_locator: Domain and forest topology lookups
        cache: DN -> principal cache shared by all workers
        finished_forests: Forests whose enterprise DCs were already emitted
    """

    directory: Directory
    sid_resolver: SidResolver
    domain_locator: DomainLocator
    cache: PrincipalCache = field(default_factory=PrincipalCache)
    finished_forests: FinishedForests = field(default_factory=FinishedForests)

    @classmethod
    def for_directory(cls, directory: Directory) -> "ResolutionContext":
        """Build a context with fresh resolvers and empty shared state."""
        return cls(
            directory=directory,
            sid_resolver=SidResolver(directory),
            domain_locator=DomainLocator(directory),
        )
