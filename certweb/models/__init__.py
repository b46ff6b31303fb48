"""Domain models for certweb."""

from certweb.models.classification import (
    DeploymentScenario,
    RequirementLevel,
    TEST_GROUP_PREFIXES,
    TestEntry,
    owning_group,
)
from certweb.models.document import (
    SELECTED_TESTS_KEY,
    ConfigurationDocument,
    DocumentField,
    FieldKind,
    PairValue,
)

__all__ = [
    # Classification
    "DeploymentScenario",
    "RequirementLevel",
    "TEST_GROUP_PREFIXES",
    "TestEntry",
    "owning_group",
    # Document
    "SELECTED_TESTS_KEY",
    "ConfigurationDocument",
    "DocumentField",
    "FieldKind",
    "PairValue",
]
