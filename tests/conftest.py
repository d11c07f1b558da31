"""
Pytest configuration and shared fixtures for GroupHound tests.

FakeDirectory is an in-memory Directory: objects keyed by DN, ranged
"member" reads served in windows like AD does, objectSid lookups served
from a SID index, and canned answers for any other (filter, base) pair.
"""

import threading
from typing import Dict, List, Optional, Sequence

import pytest

from grouphound.directory.base import ANY_OBJECT_FILTER, Directory, DirectoryError, SearchScope
from grouphound.engine.context import ResolutionContext
from grouphound.models.entry import DirectoryEntry
from grouphound.utils.sid import sid_search_filter

DOMAIN_SID = "S-1-5-21-111-222-333"


def make_entry(dn: str, **attributes) -> DirectoryEntry:
    """Build a DirectoryEntry; list values stay lists, scalars are wrapped."""
    attrs = {}
    for name, value in attributes.items():
        if value is None:
            continue
        attrs[name] = list(value) if isinstance(value, (list, tuple)) else [value]
    return DirectoryEntry(distinguished_name=dn, attributes=attrs)


def user_entry(dn: str, sam: str, **extra) -> DirectoryEntry:
    return make_entry(dn, samaccountname=sam, distinguishedname=dn, samaccounttype="805306368", **extra)


def group_entry(dn: str, sam: str, **extra) -> DirectoryEntry:
    return make_entry(dn, samaccountname=sam, distinguishedname=dn, samaccounttype="268435456", **extra)


def computer_entry(dn: str, sam: str, host: Optional[str] = None, **extra) -> DirectoryEntry:
    return make_entry(
        dn, samaccountname=sam, distinguishedname=dn, samaccounttype="805306369", dnshostname=host, **extra
    )


class FakeDirectory(Directory):
    """In-memory directory recording every search."""

    def __init__(self, window: int = 1500):
        self.window = window
        self.objects: Dict[str, DirectoryEntry] = {}
        self.members: Dict[str, List[str]] = {}
        self.sids: Dict[str, DirectoryEntry] = {}
        self.canned: Dict[tuple, List[DirectoryEntry]] = {}
        self.failing: Dict[str, Exception] = {}
        self.calls: List[tuple] = []
        self._lock = threading.Lock()

    # -- setup helpers ------------------------------------------------

    def add(self, entry: DirectoryEntry) -> DirectoryEntry:
        self.objects[entry.distinguished_name.upper()] = entry
        return entry

    def add_sid(self, sid: str, entry: DirectoryEntry) -> DirectoryEntry:
        self.sids[sid_search_filter(sid)] = entry
        return entry

    def set_members(self, dn: str, members: List[str]):
        self.members[dn.upper()] = members

    def answer(self, ldap_filter: str, base_dn: str, entries: List[DirectoryEntry]):
        self.canned[(ldap_filter, base_dn.upper())] = entries

    def fail_on(self, dn: str, exc: Optional[Exception] = None):
        self.failing[dn.upper()] = exc or DirectoryError(f"simulated failure for {dn}")

    def calls_for(self, base_dn: str) -> List[tuple]:
        return [c for c in self.calls if (c[4] or "").upper() == base_dn.upper()]

    # -- Directory ----------------------------------------------------

    def search(
        self,
        ldap_filter: str,
        scope: SearchScope,
        attributes: Sequence[str],
        domain: str,
        base_dn: Optional[str] = None,
    ) -> List[DirectoryEntry]:
        with self._lock:
            self.calls.append((ldap_filter, scope, list(attributes), domain, base_dn))

        key = (base_dn or "").upper()
        if key in self.failing:
            raise self.failing[key]

        if (ldap_filter, key) in self.canned:
            return list(self.canned[(ldap_filter, key)])

        if ldap_filter in self.sids:
            return [self.sids[ldap_filter]]

        if scope == SearchScope.BASE and ldap_filter == ANY_OBJECT_FILTER:
            if len(attributes) == 1 and ";range=" in attributes[0]:
                return self._ranged(key, attributes[0])
            entry = self.objects.get(key)
            return [entry] if entry else []

        return []

    def _ranged(self, key: str, requested: str) -> List[DirectoryEntry]:
        attribute, bounds = requested.split(";range=")
        low = int(bounds.split("-")[0])
        values = self.members.get(key, [])
        if not values or low >= len(values):
            return [DirectoryEntry(distinguished_name=key)]
        high = low + self.window - 1
        chunk = values[low : high + 1]
        if high + 1 >= len(values):
            name = f"{attribute};range={low}-*"
        else:
            name = f"{attribute};range={low}-{high}"
        return [DirectoryEntry(distinguished_name=key, attributes={name: chunk})]


@pytest.fixture
def fake_directory():
    return FakeDirectory()


@pytest.fixture
def context(fake_directory):
    ctx = ResolutionContext.for_directory(fake_directory)
    ctx.sid_resolver.register_domain(DOMAIN_SID, "CORP.LOCAL")
    return ctx


CONFIG_NC = "CN=Configuration,DC=corp,DC=local"


def build_corp_forest(directory: FakeDirectory) -> FakeDirectory:
    """
    Populate a two-domain forest rooted at CORP.LOCAL:
    CORP.LOCAL (DC01, DC02) and CHILD.CORP.LOCAL (DC03).
    """
    from grouphound.directory.domains import DOMAIN_CROSSREF_FILTER, SERVER_FILTER
    from grouphound.utils.sid import sid_to_binary

    for name, sid in (("corp.local", DOMAIN_SID), ("child.corp.local", "S-1-5-21-777-888-999")):
        dn = ",".join(f"DC={part}" for part in name.split("."))
        directory.answer("(objectClass=domain)", dn, [make_entry(dn, objectSid=sid_to_binary(sid))])

    directory.answer(
        ANY_OBJECT_FILTER,
        "",
        [make_entry("", rootDomainNamingContext="DC=corp,DC=local", configurationNamingContext=CONFIG_NC)],
    )
    directory.answer(
        DOMAIN_CROSSREF_FILTER,
        f"CN=Partitions,{CONFIG_NC}",
        [
            make_entry(f"CN=CORP,CN=Partitions,{CONFIG_NC}", dnsRoot="corp.local", nCName="DC=corp,DC=local"),
            make_entry(
                f"CN=CHILD,CN=Partitions,{CONFIG_NC}", dnsRoot="child.corp.local", nCName="DC=child,DC=corp,DC=local"
            ),
        ],
    )
    site = f"CN=Servers,CN=Default-First-Site-Name,CN=Sites,{CONFIG_NC}"
    directory.answer(
        SERVER_FILTER,
        f"CN=Sites,{CONFIG_NC}",
        [
            make_entry(
                f"CN=DC01,{site}",
                name="DC01",
                dNSHostName="dc01.corp.local",
                serverReference="CN=DC01,OU=Domain Controllers,DC=corp,DC=local",
            ),
            make_entry(
                f"CN=DC02,{site}",
                name="DC02",
                serverReference="CN=DC02,OU=Domain Controllers,DC=corp,DC=local",
            ),
            make_entry(
                f"CN=DC03,{site}",
                name="DC03",
                dNSHostName="dc03.child.corp.local",
                serverReference="CN=DC03,OU=Domain Controllers,DC=child,DC=corp,DC=local",
            ),
            # Leftover of a demoted DC
            make_entry(f"CN=OLD01,{site}", name="OLD01"),
        ],
    )
    return directory


@pytest.fixture
def corp_forest(fake_directory):
    return build_corp_forest(fake_directory)
