import csv
import json
from typing import Any, Dict, List

from ..utils.logging import good

# Column order of the group membership CSV consumed by BloodHound ingestors
CSV_FIELDNAMES = ["GroupName", "AccountName", "AccountType"]


def _edges_to_dicts(edges: List[Any]) -> List[Dict]:
    """Convert GroupMember objects to dicts for serialization."""
    return [edge.to_dict() if hasattr(edge, "to_dict") else edge for edge in edges]


def write_json(path: str, edges: List[Any], silent: bool = False):
    with open(path, "w", encoding="utf-8") as f:
        json.dump(_edges_to_dicts(edges), f, indent=2)
    if not silent:
        good(f"Wrote JSON results to {path}")


def write_csv(path: str, edges: List[Any]):
    with open(path, "w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(f, fieldnames=CSV_FIELDNAMES)
        w.writeheader()
        for edge in _edges_to_dicts(edges):
            w.writerow(
                {
                    "GroupName": edge.get("group_name", ""),
                    "AccountName": edge.get("account_name", ""),
                    "AccountType": edge.get("object_type", ""),
                }
            )
    good(f"Wrote CSV results to {path}")


def count_edges_by_type(edges: List[Any]) -> Dict[str, int]:
    """Count edges per member object type."""
    counts: Dict[str, int] = {}
    for edge in _edges_to_dicts(edges):
        object_type = edge.get("object_type", "unknown")
        counts[object_type] = counts.get(object_type, 0) + 1
    return counts
