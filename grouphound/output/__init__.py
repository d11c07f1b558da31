"""Output module for GroupHound results."""
