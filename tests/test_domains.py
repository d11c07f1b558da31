"""
Tests for domain and forest topology lookups.
"""

from conftest import DOMAIN_SID, FakeDirectory, build_corp_forest
from grouphound.directory.base import DirectoryConnectionError, SearchScope
from grouphound.directory.domains import DomainControllerInfo, DomainLocator


class TestResolveDomain:
    """Tests for DomainLocator.resolve_domain"""

    def test_resolves_root_domain(self, corp_forest):
        domain = DomainLocator(corp_forest).resolve_domain("corp.local")

        assert domain.name == "CORP.LOCAL"
        assert domain.distinguished_name == "DC=CORP,DC=LOCAL"
        assert domain.sid == DOMAIN_SID
        assert domain.forest.name == "CORP.LOCAL"

    def test_child_domain_belongs_to_root_forest(self, corp_forest):
        domain = DomainLocator(corp_forest).resolve_domain("child.corp.local")

        assert domain.sid == "S-1-5-21-777-888-999"
        assert domain.forest.name == "CORP.LOCAL"

    def test_sibling_domains_share_forest_object(self, corp_forest):
        locator = DomainLocator(corp_forest)

        root = locator.resolve_domain("corp.local")
        child = locator.resolve_domain("child.corp.local")

        assert root.forest is child.forest

    def test_forest_domains_and_controllers(self, corp_forest):
        forest = DomainLocator(corp_forest).resolve_domain("corp.local").forest

        assert [d.name for d in forest.domains] == ["CHILD.CORP.LOCAL", "CORP.LOCAL"]
        child, root = forest.domains
        assert child.controllers == [DomainControllerInfo("DC03", "DC03.CHILD.CORP.LOCAL")]
        assert root.controllers == [
            DomainControllerInfo("DC01", "DC01.CORP.LOCAL"),
            DomainControllerInfo("DC02", "DC02.CORP.LOCAL"),
        ]

    def test_forest_read_once(self, corp_forest):
        """Partitions and sites are read once per forest"""
        locator = DomainLocator(corp_forest)
        locator.resolve_domain("corp.local")
        locator.resolve_domain("child.corp.local")

        site_calls = [c for c in corp_forest.calls if c[4] and c[4].startswith("CN=Sites")]
        assert len(site_calls) == 1
        assert site_calls[0][1] == SearchScope.SUBTREE

    def test_domain_memoized(self, corp_forest):
        locator = DomainLocator(corp_forest)
        first = locator.resolve_domain("corp.local")
        calls = len(corp_forest.calls)

        second = locator.resolve_domain("CORP.LOCAL")

        assert first is second
        assert len(corp_forest.calls) == calls

    def test_unknown_domain(self):
        """No domain head: unresolvable"""
        assert DomainLocator(FakeDirectory()).resolve_domain("nowhere.local") is None

    def test_empty_name(self):
        assert DomainLocator(FakeDirectory()).resolve_domain("") is None

    def test_unreachable_domain_memoized(self):
        """A connection failure is remembered, not retried"""
        directory = FakeDirectory()
        directory.fail_on("DC=gone,DC=local", DirectoryConnectionError("no DC"))
        locator = DomainLocator(directory)

        assert locator.resolve_domain("gone.local") is None
        assert locator.resolve_domain("gone.local") is None
        assert len(directory.calls) == 1

    def test_missing_root_dse(self):
        directory = build_corp_forest(FakeDirectory())
        directory.answer("(objectclass=*)", "", [])

        assert DomainLocator(directory).resolve_domain("corp.local") is None
