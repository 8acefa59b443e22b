"""
D&D Beyond API collaborators: credentials and endpoint URLs.
"""

from dndbeyond.api import endpoints
from dndbeyond.api.auth import (
    AuthStatus,
    CobaltTokenProvider,
    CookieEntry,
    CredentialStore,
    check_auth,
)

__all__ = [
    "endpoints",
    "AuthStatus",
    "CobaltTokenProvider",
    "CookieEntry",
    "CredentialStore",
    "check_auth",
]
