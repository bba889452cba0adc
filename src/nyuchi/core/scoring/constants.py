"""Ubuntu points table, level tiers and their descriptions."""
from enum import Enum

from ..models.contribution import ContributionType
from ..models.submission import SubmissionType

UBUNTU_PRINCIPLE = "I am because we are"


class UbuntuLevel(str, Enum):
    """Standing tiers, lowest first."""
    NEWCOMER = "Newcomer"
    CONTRIBUTOR = "Contributor"
    COMMUNITY_LEADER = "Community Leader"
    UBUNTU_CHAMPION = "Ubuntu Champion"


UBUNTU_POINTS: dict[ContributionType, int] = {
    ContributionType.CONTENT_PUBLISHED: 100,
    ContributionType.LISTING_CREATED: 50,
    ContributionType.LISTING_VERIFIED: 75,
    ContributionType.COMMUNITY_HELP: 25,
    ContributionType.REVIEW_COMPLETED: 50,
    ContributionType.COLLABORATION: 150,
    ContributionType.KNOWLEDGE_SHARING: 75,
}

# Inclusive lower bounds; the top tier has no upper bound
LEVEL_THRESHOLDS: dict[UbuntuLevel, int] = {
    UbuntuLevel.NEWCOMER: 0,
    UbuntuLevel.CONTRIBUTOR: 500,
    UbuntuLevel.COMMUNITY_LEADER: 2000,
    UbuntuLevel.UBUNTU_CHAMPION: 5000,
}

LEVEL_DESCRIPTIONS: dict[UbuntuLevel, str] = {
    UbuntuLevel.NEWCOMER: "Welcome to the community! Every journey begins with a single step.",
    UbuntuLevel.CONTRIBUTOR: "Your contributions are making a difference. Keep sharing!",
    UbuntuLevel.COMMUNITY_LEADER: "You inspire others through your dedication and support.",
    UbuntuLevel.UBUNTU_CHAMPION: "You embody Ubuntu philosophy - a true community pillar.",
}

CONTRIBUTION_DESCRIPTIONS: dict[ContributionType, str] = {
    ContributionType.CONTENT_PUBLISHED: "Publish quality content that helps the community",
    ContributionType.LISTING_CREATED: "Create a verified directory listing",
    ContributionType.LISTING_VERIFIED: "Get your listing verified",
    ContributionType.COMMUNITY_HELP: "Help other community members",
    ContributionType.REVIEW_COMPLETED: "Complete moderation reviews",
    ContributionType.COLLABORATION: "Collaborate with other members",
    ContributionType.KNOWLEDGE_SHARING: "Share knowledge and expertise",
}

# Contribution credited to the submitter when a submission is awarded
SUBMISSION_AWARD_TYPES: dict[SubmissionType, ContributionType] = {
    SubmissionType.CONTENT: ContributionType.CONTENT_PUBLISHED,
    SubmissionType.EXPERT_APPLICATION: ContributionType.KNOWLEDGE_SHARING,
    SubmissionType.BUSINESS_APPLICATION: ContributionType.LISTING_VERIFIED,
    SubmissionType.DIRECTORY_LISTING: ContributionType.LISTING_CREATED,
    SubmissionType.TRAVEL_BUSINESS: ContributionType.LISTING_CREATED,
}
