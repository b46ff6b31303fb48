"""Classification table for certsuite test cases."""

from pathlib import Path
from typing import Any

import yaml

from certweb.models import (
    DeploymentScenario,
    RequirementLevel,
    TEST_GROUP_PREFIXES,
    TestEntry,
    owning_group,
)

DEFAULT_CLASSIFICATION_PATH = Path(__file__).resolve().parent.parent / "data" / "classification.yaml"


class ClassificationTable:
    """Registry of test cases and their per-tier requirement levels.

    Entries are kept in natural key order (sorted by identifier) regardless
    of the order they were registered in, so every consumer iterates the
    table the same way.
    """

    def __init__(self, version: str = ""):
        self.version = version
        self._entries: dict[str, TestEntry] = {}

    def register(self, entry: TestEntry) -> None:
        """Register a test entry.

        Raises:
            ValueError: If an entry with the same ID already exists.
        """
        out_of_order = bool(self._entries) and entry.id < next(reversed(self._entries))
        self._insert(entry)
        if out_of_order:
            self._sort()

    def _insert(self, entry: TestEntry) -> None:
        if entry.id in self._entries:
            raise ValueError(f"Test '{entry.id}' already registered")
        self._entries[entry.id] = entry

    def _sort(self) -> None:
        self._entries = dict(sorted(self._entries.items()))

    def get(self, test_id: str) -> TestEntry | None:
        return self._entries.get(test_id)

    def get_or_raise(self, test_id: str) -> TestEntry:
        """Get a test entry by ID.

        Raises:
            KeyError: If the test is not in the table.
        """
        if test_id not in self._entries:
            raise KeyError(f"Test '{test_id}' not found")
        return self._entries[test_id]

    def ids(self) -> list[str]:
        """All test identifiers in natural key order."""
        return list(self._entries.keys())

    def list_all(self) -> list[TestEntry]:
        return list(self._entries.values())

    def group_of(self, test_id: str) -> str:
        return owning_group(test_id)

    def groups(self) -> list[str]:
        """Fixed group prefixes, followed by any other owning groups in the data."""
        groups = list(TEST_GROUP_PREFIXES)
        for test_id in self._entries:
            group = owning_group(test_id)
            if group not in groups:
                groups.append(group)
        return groups

    def filter_by_group(self, prefix: str) -> list[TestEntry]:
        """Entries owned by a group; unknown groups yield an empty list."""
        return [e for e in self._entries.values() if e.group == prefix]

    def filter_by_level(
        self, tier: DeploymentScenario, level: RequirementLevel
    ) -> list[TestEntry]:
        """Entries with the given requirement level for a tier."""
        return [e for e in self._entries.values() if e.level_for(tier) == level]

    def level_for(self, test_id: str, tier: DeploymentScenario) -> RequirementLevel:
        return self.get_or_raise(test_id).level_for(tier)

    def load_from_yaml(self, path: str | Path) -> int:
        """Load test entries from a classification YAML file.

        Args:
            path: Path to the YAML file.

        Returns:
            Number of entries loaded.
        """
        path = Path(path)
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return self.load_from_mapping(data or {})

    def load_from_mapping(self, data: dict[str, Any]) -> int:
        """Load test entries from an already decoded mapping."""
        if data.get("version") is not None:
            self.version = str(data["version"])
        tests = data.get("tests") or {}
        try:
            for test_id, entry_data in tests.items():
                self._insert(self._parse_entry(str(test_id), entry_data or {}))
        finally:
            self._sort()
        return len(tests)

    def _parse_entry(self, test_id: str, data: dict[str, Any]) -> TestEntry:
        """Parse a single test entry from a dictionary."""
        classification = {}
        for tier in DeploymentScenario.tiers():
            raw = (data.get("categoryClassification") or {}).get(tier.value)
            if raw is None:
                classification[tier.value] = RequirementLevel.OPTIONAL
                continue
            try:
                classification[tier.value] = RequirementLevel(raw)
            except ValueError:
                raise ValueError(
                    f"Test '{test_id}' has unknown requirement level '{raw}' for {tier.value}"
                ) from None

        return TestEntry(
            id=test_id,
            description=data.get("description", ""),
            remediation=data.get("remediation", ""),
            best_practice_reference=data.get("bestPracticeReference", ""),
            classification=classification,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize the table using the data file schema."""
        return {
            "version": self.version,
            "tests": {
                e.id: {
                    "description": e.description,
                    "remediation": e.remediation,
                    "bestPracticeReference": e.best_practice_reference,
                    "categoryClassification": {
                        tier: level.value for tier, level in e.classification.items()
                    },
                }
                for e in self._entries.values()
            },
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, test_id: str) -> bool:
        return test_id in self._entries


# Global table instance
_default_table: ClassificationTable | None = None


def get_classification_table(path: str | Path | None = None) -> ClassificationTable:
    """Get the process-wide classification table, loading it on first use.

    Args:
        path: Data file to load instead of the packaged one. Only honored
            on the first call.
    """
    global _default_table
    if _default_table is None:
        table = ClassificationTable()
        table.load_from_yaml(path or DEFAULT_CLASSIFICATION_PATH)
        _default_table = table
    return _default_table
