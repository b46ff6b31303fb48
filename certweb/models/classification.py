"""Classification models for certsuite test cases."""

from dataclasses import dataclass, field
from enum import Enum


class RequirementLevel(str, Enum):
    """Requirement level of a test case for a deployment tier."""

    MANDATORY = "Mandatory"
    OPTIONAL = "Optional"


class DeploymentScenario(str, Enum):
    """Deployment scenario chosen by the operator.

    The four tier members map onto the classification table columns.
    ``ALL`` and ``NONE`` select or clear every test regardless of tier.
    """

    TELCO = "Telco"
    NON_TELCO = "NonTelco"
    EXTENDED = "Extended"
    FAR_EDGE = "FarEdge"
    ALL = "All"
    NONE = "None"

    @property
    def is_tier(self) -> bool:
        return self not in (DeploymentScenario.ALL, DeploymentScenario.NONE)

    @classmethod
    def tiers(cls) -> list["DeploymentScenario"]:
        """Scenarios that correspond to a classification column."""
        return [s for s in cls if s.is_tier]


# Fixed display order of the test groups (suite prefixes)
TEST_GROUP_PREFIXES: tuple[str, ...] = (
    "access-control",
    "affiliated-certification",
    "lifecycle",
    "manageability",
    "networking",
    "observability",
    "operator",
    "performance",
    "platform-alteration",
    "preflight",
)


def owning_group(test_id: str) -> str:
    """Return the group a test identifier belongs to.

    The longest fixed prefix wins; identifiers outside the fixed groups are
    owned by their leading segment.
    """
    matches = [p for p in TEST_GROUP_PREFIXES if test_id.startswith(p + "-")]
    if matches:
        return max(matches, key=len)
    return test_id.split("-", 1)[0]


@dataclass(frozen=True)
class TestEntry:
    """A single test case from the classification table."""

    __test__ = False  # not a pytest test class

    id: str  # e.g., "access-control-namespace"
    description: str
    remediation: str = ""
    best_practice_reference: str = ""
    classification: dict[str, RequirementLevel] = field(default_factory=dict)

    @property
    def group(self) -> str:
        return owning_group(self.id)

    def level_for(self, tier: str | DeploymentScenario) -> RequirementLevel:
        """Requirement level for a tier; tiers missing from the data are optional."""
        key = tier.value if isinstance(tier, DeploymentScenario) else tier
        return self.classification.get(key, RequirementLevel.OPTIONAL)

    def is_mandatory_for(self, tier: str | DeploymentScenario) -> bool:
        return self.level_for(tier) == RequirementLevel.MANDATORY
