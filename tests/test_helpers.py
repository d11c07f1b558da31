"""
Tests for small shared helpers.
"""

from grouphound.utils.helpers import is_ipv4, parse_ntlm_hashes


class TestIsIpv4:
    def test_valid(self):
        assert is_ipv4("192.168.1.1") is True
        assert is_ipv4(" 10.0.0.1 ") is True

    def test_invalid(self):
        assert is_ipv4("192.168.1.256") is False
        assert is_ipv4("dc01.corp.local") is False
        assert is_ipv4("10.0.0") is False
        assert is_ipv4("") is False


class TestParseNtlmHashes:
    """Tests for parse_ntlm_hashes function"""

    def test_none_input(self):
        assert parse_ntlm_hashes(None) == ("", "")

    def test_nt_hash_only(self):
        assert parse_ntlm_hashes("31d6cfe0d16ae931b73c59d7e0c089c0") == ("", "31d6cfe0d16ae931b73c59d7e0c089c0")

    def test_lm_nt_hash_format(self):
        lmhash, nthash = parse_ntlm_hashes("aad3b435b51404eeaad3b435b51404ee:31d6cfe0d16ae931b73c59d7e0c089c0")
        assert lmhash == "aad3b435b51404eeaad3b435b51404ee"
        assert nthash == "31d6cfe0d16ae931b73c59d7e0c089c0"

    def test_empty_lm_with_nt_hash(self):
        """Should handle empty LM hash with colon prefix"""
        assert parse_ntlm_hashes(":31d6cfe0d16ae931b73c59d7e0c089c0") == ("", "31d6cfe0d16ae931b73c59d7e0c089c0")
