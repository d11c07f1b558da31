# Data models for GroupHound.
#
# This package contains dataclasses and type definitions for
# structured data used throughout the application.

from .entry import DirectoryEntry
from .membership import GroupMember, MappedPrincipal, ObjectType, ResolvedEntry

__all__ = ["DirectoryEntry", "GroupMember", "MappedPrincipal", "ObjectType", "ResolvedEntry"]
