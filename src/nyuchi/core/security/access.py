"""Role and capability based access to pipeline types."""
import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from ..models.submission import SubmissionType

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Coarse platform role supplied by the identity provider."""
    USER = "user"
    CONTRIBUTOR = "contributor"
    MODERATOR = "moderator"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Role":
        """Parse a role claim; anything unrecognised is a plain user."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.USER


class Capability(str, Enum):
    """Fine-grained permission tag granting access to pipeline types."""
    ADMIN = "admin"
    MODERATOR = "moderator"
    REVIEWER = "reviewer"

    @classmethod
    def parse_many(cls, values: Iterable[str]) -> frozenset["Capability"]:
        """Parse capability claims, dropping tags that grant nothing."""
        parsed = set()
        for value in values:
            tag = value.strip().lower()
            if not tag:
                continue
            try:
                parsed.add(cls(tag))
            except ValueError:
                logger.warning("Ignoring unknown capability tag: %r", value)
        return frozenset(parsed)


DEFAULT_PIPELINE_ACCESS: dict[SubmissionType, frozenset[Capability]] = {
    SubmissionType.CONTENT: frozenset({Capability.MODERATOR, Capability.ADMIN}),
    SubmissionType.EXPERT_APPLICATION: frozenset({Capability.REVIEWER, Capability.ADMIN}),
    SubmissionType.BUSINESS_APPLICATION: frozenset({Capability.REVIEWER, Capability.ADMIN}),
    SubmissionType.DIRECTORY_LISTING: frozenset({Capability.MODERATOR, Capability.ADMIN}),
    SubmissionType.TRAVEL_BUSINESS: frozenset({Capability.REVIEWER, Capability.ADMIN}),
}

# Unknown pipeline types fall back to this set
ADMIN_ONLY: frozenset[Capability] = frozenset({Capability.ADMIN})

STATS_CAPABILITIES: frozenset[Capability] = frozenset(
    {Capability.MODERATOR, Capability.REVIEWER, Capability.ADMIN}
)


def is_admin(role: Role, capabilities: Iterable[Capability]) -> bool:
    return role == Role.ADMIN or Capability.ADMIN in set(capabilities)


@dataclass(frozen=True)
class AccessPolicy:
    """Immutable mapping of pipeline type to the capabilities allowed on it.

    Built once at startup from configuration and handed to whatever needs
    to authorize a caller.
    """

    rules: Mapping[SubmissionType, frozenset[Capability]] = field(
        default_factory=lambda: dict(DEFAULT_PIPELINE_ACCESS)
    )

    def __post_init__(self):
        frozen = {
            SubmissionType(kind): frozenset(Capability(c) for c in caps)
            for kind, caps in self.rules.items()
        }
        object.__setattr__(self, "rules", MappingProxyType(frozen))

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Iterable[str]]) -> "AccessPolicy":
        """Build a policy from plain strings, e.g. a config section.

        Raises:
            ValueError: If a pipeline type or capability name is unknown
        """
        return cls(rules={
            SubmissionType(kind): frozenset(Capability(c) for c in caps)
            for kind, caps in mapping.items()
        })

    @property
    def pipeline_types(self) -> list[SubmissionType]:
        return list(self.rules)

    def required_capabilities(self, submission_type: str) -> frozenset[Capability]:
        """Capabilities that grant access to a pipeline type."""
        try:
            kind = SubmissionType(submission_type)
        except ValueError:
            return ADMIN_ONLY
        return self.rules.get(kind, ADMIN_ONLY)

    def is_authorized(
        self,
        role: Role,
        capabilities: Iterable[Capability],
        submission_type: str,
    ) -> bool:
        """Decide whether a caller may act on a pipeline type."""
        capabilities = frozenset(capabilities)
        if is_admin(role, capabilities):
            return True
        return bool(capabilities & self.required_capabilities(submission_type))

    def accessible_types(
        self, role: Role, capabilities: Iterable[Capability]
    ) -> list[SubmissionType]:
        """Pipeline types the caller may see, in policy order."""
        capabilities = frozenset(capabilities)
        if is_admin(role, capabilities):
            return self.pipeline_types
        return [kind for kind, caps in self.rules.items() if capabilities & caps]

    def can_view_stats(self, role: Role, capabilities: Iterable[Capability]) -> bool:
        capabilities = frozenset(capabilities)
        if role in (Role.MODERATOR, Role.ADMIN):
            return True
        return bool(capabilities & STATS_CAPABILITIES)


def is_authorized(
    role: Role,
    capabilities: Iterable[Capability],
    submission_type: str,
    policy: Optional[AccessPolicy] = None,
) -> bool:
    """Authorize a caller against ``policy`` (the default policy if omitted)."""
    return (policy or AccessPolicy()).is_authorized(role, capabilities, submission_type)
