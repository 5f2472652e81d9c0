"""Identity verification, capability gate and identity records."""

from orderdesk.auth.identity import (
    ROLE_CAPABILITIES,
    Capability,
    IdentityVerifier,
    Principal,
    Role,
    authorize,
    extract_credential,
)
from orderdesk.auth.users import User, UserStore

__all__ = [
    "ROLE_CAPABILITIES",
    "Capability",
    "IdentityVerifier",
    "Principal",
    "Role",
    "User",
    "UserStore",
    "authorize",
    "extract_credential",
]
