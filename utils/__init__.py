"""
utils/ - Shared Helpers
=======================
Logging setup and the package's own exception types.
"""
