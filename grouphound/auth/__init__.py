# Authentication context.
#
# Centralized AuthContext dataclass bundling credentials and DC settings.

from .context import AuthContext

__all__ = ["AuthContext"]
