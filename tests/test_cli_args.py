"""
Test CLI argument parsing and the main() flow.
"""

import contextlib
import sys
from io import StringIO
from unittest.mock import MagicMock, patch

import pytest

from grouphound import cli
from grouphound.directory.base import DirectoryError
from grouphound.engine.collector import CollectionResult, ObjectResult
from grouphound.models.membership import GroupMember


def _help_output():
    old_argv = sys.argv
    old_stdout = sys.stdout
    try:
        sys.argv = ["grouphound", "--help"]
        sys.stdout = StringIO()

        with patch("grouphound.config.load_config", return_value={}), contextlib.suppress(SystemExit):
            cli.main()

        return sys.stdout.getvalue()
    finally:
        sys.argv = old_argv
        sys.stdout = old_stdout


def test_help_output_includes_collection_flags():
    """Test that help output includes collection flags."""
    output = _help_output()

    assert "--threads" in output, "Missing --threads flag"
    assert "--ldap-filter" in output, "Missing --ldap-filter flag"
    assert "--no-enterprise-dcs" in output, "Missing --no-enterprise-dcs flag"


def test_help_output_includes_target_flags():
    """Test that help output includes DC targeting flags."""
    output = _help_output()

    assert "--dc-ip" in output, "Missing --dc-ip flag"
    assert "--dc-override" in output, "Missing --dc-override flag"
    assert "--collect-domain" in output, "Missing --collect-domain flag"


class TestAuthFromArgs:
    def test_builds_context(self):
        args = MagicMock(
            username="admin",
            password="secret",
            domain="corp.local",
            hashes=None,
            aes_key=None,
            kerberos=False,
            dc_ip="10.0.0.1",
            dc_overrides={"PARTNER.LOCAL": "10.1.0.1"},
            dns_tcp=True,
            nameserver="10.0.0.53",
            timeout=5,
        )

        auth = cli._auth_from_args(args)

        assert auth.username == "admin"
        assert auth.dc_for("partner.local") == "10.1.0.1"
        assert auth.dns_tcp is True
        assert auth.timeout == 5


class TestMain:
    """main() with the directory and collector mocked out"""

    ARGV = ["grouphound", "-u", "admin", "-p", "secret", "-d", "corp.local", "--no-summary"]

    def _run(self, argv, collection=None, side_effect=None):
        collector = MagicMock()
        if side_effect is not None:
            collector.collect_domain.side_effect = side_effect
        else:
            collector.collect_domain.return_value = collection
        with patch.object(sys, "argv", argv), patch("grouphound.config.load_config", return_value={}), patch(
            "grouphound.cli.LdapDirectory"
        ) as directory_cls, patch("grouphound.cli.MembershipCollector", return_value=collector):
            cli.main()
        return directory_cls.return_value, collector

    def test_writes_outputs(self, tmp_path):
        edge = GroupMember("ALICE@CORP.LOCAL", "OPS@CORP.LOCAL", "user")
        collection = CollectionResult(
            domain="CORP.LOCAL",
            objects=[ObjectResult(dn="CN=Ops,DC=corp,DC=local", success=True, edges=[edge])],
        )
        json_path = tmp_path / "edges.json"
        csv_path = tmp_path / "edges.csv"

        directory, collector = self._run(
            self.ARGV + ["--json", str(json_path), "--csv", str(csv_path)], collection=collection
        )

        assert json_path.exists()
        assert "OPS@CORP.LOCAL" in csv_path.read_text(encoding="utf-8")
        directory.close.assert_called_once()
        assert collector.collect_domain.call_args[0][0] == "corp.local"

    def test_collect_domain_flag(self):
        collection = CollectionResult(domain="PARTNER.LOCAL")

        _, collector = self._run(self.ARGV + ["--collect-domain", "partner.local"], collection=collection)

        assert collector.collect_domain.call_args[0][0] == "partner.local"

    def test_collection_failure_exits(self):
        with pytest.raises(SystemExit) as exc:
            self._run(self.ARGV, side_effect=DirectoryError("no DC"))
        assert exc.value.code == 1
