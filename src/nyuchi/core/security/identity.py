"""Caller claims handed over by the identity provider.

The service sits behind a gateway that verifies credentials and forwards
the verified claims as request headers. Nothing here checks a password or
token; the claims are trusted as-is.
"""
from dataclasses import dataclass, field
from typing import Mapping

from ..errors import Forbidden, Unauthenticated
from .access import AccessPolicy, Capability, Role, is_admin

USER_ID_HEADER = "x-user-id"
ROLE_HEADER = "x-user-role"
CAPABILITIES_HEADER = "x-user-capabilities"


@dataclass(frozen=True)
class CallerIdentity:
    """Verified caller identity with role and capability set."""
    user_id: str
    role: Role = Role.USER
    capabilities: frozenset[Capability] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return is_admin(self.role, self.capabilities)

    def require_pipeline_access(self, policy: AccessPolicy, submission_type: str) -> None:
        """Raise Forbidden unless the caller may act on ``submission_type``."""
        if not policy.is_authorized(self.role, self.capabilities, submission_type):
            raise Forbidden(
                required_capabilities=policy.required_capabilities(submission_type)
            )

    def require_admin(self) -> None:
        if not self.is_admin:
            raise Forbidden("Admin access required", required_capabilities=[Capability.ADMIN.value])


def identity_from_headers(headers: Mapping[str, str]) -> CallerIdentity:
    """Build a CallerIdentity from forwarded claim headers.

    Raises:
        Unauthenticated: If no user id claim is present
    """
    user_id = (headers.get(USER_ID_HEADER) or "").strip()
    if not user_id:
        raise Unauthenticated()

    raw_capabilities = headers.get(CAPABILITIES_HEADER) or ""
    return CallerIdentity(
        user_id=user_id,
        role=Role.parse(headers.get(ROLE_HEADER)),
        capabilities=Capability.parse_many(raw_capabilities.split(",")),
    )
