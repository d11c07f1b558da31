"""GroupHound - Active Directory group membership collector."""

__version__ = "1.0.0"
