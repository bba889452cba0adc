"""Access control for pipeline types and caller identity claims."""
from .access import (
    DEFAULT_PIPELINE_ACCESS,
    AccessPolicy,
    Capability,
    Role,
    is_admin,
    is_authorized,
)
from .identity import CallerIdentity, identity_from_headers

__all__ = [
    "DEFAULT_PIPELINE_ACCESS",
    "AccessPolicy",
    "Capability",
    "Role",
    "is_admin",
    "is_authorized",
    "CallerIdentity",
    "identity_from_headers",
]
