"""
Tests for object classification and display names.
"""

import pytest

from conftest import computer_entry, group_entry, make_entry, user_entry
from grouphound.classification import (
    GROUP_ACCOUNT_TYPES,
    classify,
    is_domain_head,
    object_type_for_account_type,
)
from grouphound.models.membership import ObjectType


class TestObjectTypeForAccountType:
    """Tests for the sAMAccountType mapping"""

    @pytest.mark.parametrize("account_type", sorted(GROUP_ACCOUNT_TYPES))
    def test_group_types(self, account_type):
        assert object_type_for_account_type(account_type) == "group"

    def test_user(self):
        assert object_type_for_account_type(805306368) == "user"

    def test_trust_account_is_user(self):
        assert object_type_for_account_type(805306370) == "user"

    def test_computer(self):
        assert object_type_for_account_type(805306369) == "computer"

    def test_unknown(self):
        assert object_type_for_account_type(12345) == "unknown"


class TestClassify:
    """Tests for classify()"""

    def test_user(self):
        resolved = classify(user_entry("CN=Alice,OU=Users,DC=corp,DC=local", "alice"))

        assert resolved.object_type == ObjectType.USER.value
        assert resolved.display_name == "ALICE@CORP.LOCAL"
        assert resolved.is_group is False

    def test_group(self):
        resolved = classify(group_entry("CN=Domain Admins,CN=Users,DC=corp,DC=local", "Domain Admins"))

        assert resolved.object_type == "group"
        assert resolved.display_name == "DOMAIN ADMINS@CORP.LOCAL"
        assert resolved.is_group is True

    def test_computer_uses_dns_host_name(self):
        entry = computer_entry("CN=WS01,OU=Workstations,DC=corp,DC=local", "WS01$", host="ws01.corp.local")
        resolved = classify(entry)

        assert resolved.object_type == "computer"
        assert resolved.display_name == "WS01.CORP.LOCAL"

    def test_computer_without_dns_host_name(self):
        """Should derive HOST.DOMAIN from the account name"""
        resolved = classify(computer_entry("CN=WS02,OU=Workstations,DC=corp,DC=local", "WS02$"))

        assert resolved.display_name == "WS02.CORP.LOCAL"

    def test_domain_head(self):
        resolved = classify(make_entry("DC=corp,DC=local", distinguishedname="DC=corp,DC=local"))

        assert resolved.object_type == "domain"
        assert resolved.display_name == "CORP.LOCAL"

    def test_non_principal(self):
        """Containers and OUs are not principals"""
        entry = make_entry("OU=Users,DC=corp,DC=local", distinguishedname="OU=Users,DC=corp,DC=local")

        assert classify(entry) is None

    def test_garbage_account_type(self):
        entry = make_entry("CN=X,DC=corp,DC=local", samaccountname="x", samaccounttype="abc")

        assert classify(entry) is None

    def test_no_domain(self):
        entry = make_entry("CN=X,CN=Configuration", samaccountname="x", samaccounttype="805306368")

        assert classify(entry) is None

    def test_attribute_names_are_case_insensitive(self):
        entry = make_entry(
            "CN=Bob,DC=corp,DC=local",
            sAMAccountName="bob",
            sAMAccountType="805306368",
            distinguishedName="CN=Bob,DC=corp,DC=local",
        )

        assert classify(entry).display_name == "BOB@CORP.LOCAL"


class TestIsDomainHead:
    def test_domain_head(self):
        assert is_domain_head("DC=child,DC=corp,DC=local") is True

    def test_object_dn(self):
        assert is_domain_head("CN=Bob,DC=corp,DC=local") is False

    def test_empty(self):
        assert is_domain_head("") is False
