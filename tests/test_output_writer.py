"""
Test suite for output writer functions.

Tests cover:
- _edges_to_dicts helper function
- write_json function
- write_csv function
- count_edges_by_type function
"""

import csv
import json

import pytest

from grouphound.models.membership import GroupMember
from grouphound.output.writer import (
    CSV_FIELDNAMES,
    _edges_to_dicts,
    count_edges_by_type,
    write_csv,
    write_json,
)


# ============================================================================
# Test Fixtures
# ============================================================================


@pytest.fixture
def sample_edges():
    return [
        GroupMember("ALICE@CORP.LOCAL", "IT ADMINS@CORP.LOCAL", "user"),
        GroupMember("HELPDESK@CORP.LOCAL", "IT ADMINS@CORP.LOCAL", "group"),
        GroupMember("DC01.CORP.LOCAL", "ENTERPRISE DOMAIN CONTROLLERS@CORP.LOCAL", "computer"),
    ]


# ============================================================================
# Test: _edges_to_dicts
# ============================================================================


class TestEdgesToDicts:
    """Tests for _edges_to_dicts helper"""

    def test_converts_group_members(self, sample_edges):
        dicts = _edges_to_dicts(sample_edges)

        assert dicts[0] == {
            "account_name": "ALICE@CORP.LOCAL",
            "group_name": "IT ADMINS@CORP.LOCAL",
            "object_type": "user",
        }

    def test_passes_dicts_through(self):
        row = {"account_name": "X", "group_name": "Y", "object_type": "user"}
        assert _edges_to_dicts([row]) == [row]

    def test_empty(self):
        assert _edges_to_dicts([]) == []


# ============================================================================
# Test: write_json
# ============================================================================


class TestWriteJson:
    """Tests for write_json function"""

    def test_writes_edge_list(self, tmp_path, sample_edges):
        path = tmp_path / "edges.json"

        write_json(str(path), sample_edges, silent=True)

        data = json.loads(path.read_text(encoding="utf-8"))
        assert len(data) == 3
        assert data[2]["account_name"] == "DC01.CORP.LOCAL"
        assert data[2]["object_type"] == "computer"

    def test_empty_list(self, tmp_path):
        path = tmp_path / "empty.json"

        write_json(str(path), [], silent=True)

        assert json.loads(path.read_text(encoding="utf-8")) == []


# ============================================================================
# Test: write_csv
# ============================================================================


class TestWriteCsv:
    """Tests for write_csv function"""

    def test_header_and_rows(self, tmp_path, sample_edges):
        path = tmp_path / "edges.csv"

        write_csv(str(path), sample_edges)

        with open(path, encoding="utf-8", newline="") as f:
            reader = csv.DictReader(f)
            rows = list(reader)
            assert reader.fieldnames == CSV_FIELDNAMES
        assert rows[1] == {
            "GroupName": "IT ADMINS@CORP.LOCAL",
            "AccountName": "HELPDESK@CORP.LOCAL",
            "AccountType": "group",
        }

    def test_names_with_commas_quoted(self, tmp_path):
        path = tmp_path / "edges.csv"
        write_csv(str(path), [GroupMember("SMITH, JOHN@CORP.LOCAL", "G@CORP.LOCAL", "user")])

        with open(path, encoding="utf-8", newline="") as f:
            rows = list(csv.DictReader(f))
        assert rows[0]["AccountName"] == "SMITH, JOHN@CORP.LOCAL"


class TestCountEdgesByType:
    def test_counts(self, sample_edges):
        assert count_edges_by_type(sample_edges) == {"user": 1, "group": 1, "computer": 1}

    def test_empty(self):
        assert count_edges_by_type([]) == {}
