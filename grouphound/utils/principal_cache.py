"""
Process-wide principal cache and forest bookkeeping for GroupHound.

Two pieces of shared state live here:
1. PrincipalCache: distinguished name -> (object type, display name)
2. FinishedForests: forests whose enterprise domain controllers were emitted

Thread-safety:
- Both are guarded by an RLock; every lookup/store is a single atomic step
- Entries are never evicted during a run; a lost race between two workers
  resolving the same DN just costs one extra directory query
"""

import threading
from typing import Dict, Optional, Set, Tuple

from ..models.membership import MappedPrincipal
from ..utils.logging import debug, info


class PrincipalCache:
    """
    Maps distinguished names to resolved principals.

    Writes are idempotent upserts (the same DN always resolves to the same
    identity), so last-write-wins is safe under concurrent workers.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._entries: Dict[str, MappedPrincipal] = {}

        # Statistics for reporting (also protected by _lock)
        self.stats = {
            "hits": 0,
            "misses": 0,
            "stores": 0,
        }

    @staticmethod
    def _key(dn: str) -> str:
        # DNs compare case-insensitively in AD
        return dn.upper()

    def lookup(self, dn: str) -> Tuple[Optional[MappedPrincipal], bool]:
        """
        Look up a distinguished name.

        Args:
            dn: Distinguished name of the principal

        Returns:
            (principal, True) on a hit, (None, False) on a miss
        """
        with self._lock:
            principal = self._entries.get(self._key(dn))
            if principal is None:
                self.stats["misses"] += 1
                return None, False
            self.stats["hits"] += 1
        debug(f"Principal cache hit: {dn}")
        return principal, True

    def store(self, dn: str, object_type: str, display_name: str) -> None:
        """
        Store (or overwrite) the identity of a distinguished name.

        Args:
            dn: Distinguished name of the principal
            object_type: Object type tag (user, computer, group, ...)
            display_name: BloodHound display name
        """
        principal = MappedPrincipal(principal_name=display_name, object_type=object_type)
        with self._lock:
            self._entries[self._key(dn)] = principal
            self.stats["stores"] += 1

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, dn: str) -> bool:
        with self._lock:
            return self._key(dn) in self._entries

    def print_stats(self):
        """Print cache performance statistics."""
        with self._lock:
            hits = self.stats["hits"]
            misses = self.stats["misses"]
            size = len(self._entries)

        total = hits + misses
        if total == 0:
            info("Principal cache: No requests made")
            return

        info("Principal Cache Statistics:")
        info(f"  Hits: {hits} ({hits / total * 100:.1f}%)")
        info(f"  Misses: {misses}")
        info(f"  Cached principals: {size}")


class FinishedForests:
    """
    Set of forest names whose enterprise domain controllers were emitted.

    The check and the insert happen under one lock so two workers handling
    sibling domains of the same forest cannot both claim it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._forests: Set[str] = set()

    def try_claim(self, forest_name: str) -> bool:
        """
        Atomically check if a forest is done and mark it if not.

        Args:
            forest_name: Forest root domain name

        Returns:
            True if this caller claimed the forest (proceed with enumeration),
            False if it was already claimed
        """
        key = forest_name.upper()
        with self._lock:
            if key in self._forests:
                return False
            self._forests.add(key)
            return True

    def __contains__(self, forest_name: str) -> bool:
        with self._lock:
            return forest_name.upper() in self._forests

    def __len__(self) -> int:
        with self._lock:
            return len(self._forests)
