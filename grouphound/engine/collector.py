# Parallel membership collection for one domain.
#
# Expands many directory objects concurrently with a ThreadPoolExecutor.
# Uses threading (not asyncio) because impacket LDAP calls are blocking I/O.
#
# Thread-safety considerations:
# - PrincipalCache and FinishedForests are lock-protected
# - LdapDirectory hands each thread its own connections
# - Rich console handles thread-safe output
# - Two workers resolving the same member DN is a benign race (same value written)

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..classification import IDENTITY_ATTRIBUTES, classify
from ..directory.base import SearchScope
from ..models.entry import DirectoryEntry
from ..models.membership import GroupMember, ResolvedEntry
from ..utils.console import expansion_progress, print_collection_complete
from ..utils.logging import debug, info, warn
from .context import ResolutionContext
from .memberships import enumerate_enterprise_dcs, resolve_memberships

# Groups, users and computers
DEFAULT_OBJECT_FILTER = (
    "(|(samaccounttype=268435456)(samaccounttype=268435457)"
    "(samaccounttype=536870912)(samaccounttype=536870913)"
    "(samaccounttype=805306368)(samaccounttype=805306369))"
)

# Attributes read for every object to expand
OBJECT_ATTRIBUTES = IDENTITY_ATTRIBUTES + ["member", "primarygroupid"]


@dataclass
class CollectorConfig:
    """Configuration for parallel collection."""

    workers: int = 10
    """Number of concurrent worker threads."""

    show_progress: bool = True
    """Show progress bar during processing."""

    enterprise_dcs: bool = True
    """Emit ENTERPRISE DOMAIN CONTROLLERS memberships for the domain's forest."""


@dataclass
class MembershipJob:
    """One object to expand."""

    entry: DirectoryEntry
    resolved_entry: ResolvedEntry
    domain_sid: Optional[str] = None


@dataclass
class ObjectResult:
    """Result from expanding a single object."""

    dn: str
    """Distinguished name of the object."""

    success: bool
    """Whether the producer ran to completion."""

    edges: List[GroupMember] = field(default_factory=list)
    """Edges produced (partial if the producer failed)."""

    error: Optional[str] = None
    """Error message if processing failed."""

    elapsed_ms: float = 0.0
    """Processing time in milliseconds."""


@dataclass
class CollectionResult:
    """Everything collected for one domain."""

    domain: str
    objects: List[ObjectResult] = field(default_factory=list)
    enterprise_dc_edges: List[GroupMember] = field(default_factory=list)


@contextmanager
def _no_progress():
    def update(item: str, success: bool = True, error_msg: Optional[str] = None):
        pass

    yield update


class MembershipCollector:
    """
    Expands directory objects into membership edges in parallel.

    Usage:
        collector = MembershipCollector(context, CollectorConfig(workers=20))
        result = collector.collect_domain("corp.local")
    """

    def __init__(self, context: ResolutionContext, config: Optional[CollectorConfig] = None):
        self.context = context
        self.config = config or CollectorConfig()

    def build_jobs(
        self,
        domain: str,
        domain_sid: Optional[str],
        ldap_filter: str = DEFAULT_OBJECT_FILTER,
    ) -> List[MembershipJob]:
        """
        Search a domain for objects to expand and classify them.

        Raises:
            DirectoryError: If the search itself fails
        """
        entries = self.context.directory.search(ldap_filter, SearchScope.SUBTREE, OBJECT_ATTRIBUTES, domain)
        jobs = []
        for entry in entries:
            resolved = classify(entry)
            if resolved is None:
                debug(f"Skipping unclassifiable object {entry.distinguished_name}")
                continue
            jobs.append(MembershipJob(entry=entry, resolved_entry=resolved, domain_sid=domain_sid))
        info(f"{domain}: {len(jobs)} objects to expand")
        return jobs

    def _process_single(self, job: MembershipJob) -> ObjectResult:
        """Drain one producer, keeping partial edges if it fails."""
        start_time = time.perf_counter()
        dn = job.entry.distinguished_name
        result = ObjectResult(dn=dn, success=False)

        try:
            for edge in resolve_memberships(self.context, job.entry, job.resolved_entry, job.domain_sid):
                result.edges.append(edge)
            result.success = True
        except Exception as e:
            result.error = str(e)
            warn(f"{dn}: Expansion failed: {e}")

        result.elapsed_ms = (time.perf_counter() - start_time) * 1000
        return result

    def run(self, jobs: List[MembershipJob]) -> List[ObjectResult]:
        """
        Expand jobs in parallel.

        Returns:
            List of ObjectResult objects in completion order
        """
        if not jobs:
            return []

        results: List[ObjectResult] = []
        start_time = time.perf_counter()
        progress = expansion_progress(len(jobs), "Expanding") if self.config.show_progress else _no_progress()

        with progress as update:
            if self.config.workers <= 1:
                for job in jobs:
                    result = self._process_single(job)
                    results.append(result)
                    update(result.dn, result.success, result.error)
            else:
                with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
                    futures = {executor.submit(self._process_single, job): job for job in jobs}
                    for future in as_completed(futures):
                        job = futures[future]
                        try:
                            result = future.result()
                        except Exception as e:
                            # _process_single catches everything; keep the run alive regardless
                            result = ObjectResult(
                                dn=job.entry.distinguished_name,
                                success=False,
                                error=f"Unexpected error: {e}",
                            )
                        results.append(result)
                        update(result.dn, result.success, result.error)

        succeeded = sum(1 for r in results if r.success)
        total_time = time.perf_counter() - start_time
        print_collection_complete(succeeded, len(results) - succeeded, total_time, total_time / len(jobs) * 1000)
        return results

    def collect_domain(self, domain: str, ldap_filter: str = DEFAULT_OBJECT_FILTER) -> CollectionResult:
        """
        Expand every matching object of a domain, plus its forest's enterprise DCs.

        Raises:
            DirectoryError: If the domain cannot be searched at all
        """
        collection = CollectionResult(domain=domain.upper())

        # Own domain SID and trust SIDs, for primary groups and foreign principals
        self.context.sid_resolver.load_domain_sids(domain)
        domain_info = self.context.domain_locator.resolve_domain(domain)
        domain_sid = domain_info.sid if domain_info else None
        if not domain_sid:
            warn(f"Domain SID of {domain} unknown, primary group edges will be skipped")

        jobs = self.build_jobs(domain, domain_sid, ldap_filter)
        collection.objects = self.run(jobs)

        if self.config.enterprise_dcs:
            collection.enterprise_dc_edges = list(enumerate_enterprise_dcs(self.context, domain))
            info(f"Enterprise domain controller edges: {len(collection.enterprise_dc_edges)}")

        return collection


def aggregate_results(collection: CollectionResult) -> Tuple[List[GroupMember], Dict[str, str]]:
    """
    Merge a collection into one edge list.

    Returns:
        (edges, failed) where failed maps DN -> error for objects that failed
    """
    edges: List[GroupMember] = []
    failed: Dict[str, str] = {}
    for result in collection.objects:
        edges.extend(result.edges)
        if not result.success:
            failed[result.dn] = result.error or "Unknown error"
    edges.extend(collection.enterprise_dc_edges)
    return edges, failed
