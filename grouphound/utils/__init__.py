"""Utility modules for GroupHound.

Modules:
    console: Rich console output
    dn: Distinguished name helpers
    dns: Domain controller discovery
    helpers: General helper functions
    logging: Logging front-end
    principal_cache: Shared principal cache and forest bookkeeping
    sid: SID parsing and encoding
"""
