"""Selection state for a configuration session."""

import logging

from certweb.errors import InvariantViolation
from certweb.models import DeploymentScenario, RequirementLevel
from certweb.registry import ClassificationTable
from certweb.selection.resolver import resolve_selection
from certweb.tracing import log_session_event

logger = logging.getLogger(__name__)


class SelectionStateStore:
    """Which tests are included in the run, with per-group running totals.

    Every identifier in the classification table always has a boolean. The
    per-group counters are kept in step with the booleans: toggles adjust
    the owning group by one, bulk operations recount.
    """

    def __init__(
        self,
        table: ClassificationTable,
        scenario: DeploymentScenario = DeploymentScenario.ALL,
        auto_check: RequirementLevel = RequirementLevel.MANDATORY,
    ):
        self.table = table
        self._groups = table.groups()
        self._owner = {test_id: table.group_of(test_id) for test_id in table.ids()}
        self._state: dict[str, bool] = {}
        self._counts: dict[str, int] = {}
        self.scenario = scenario
        self.auto_check = auto_check
        self.apply_scenario(scenario, auto_check)

    def apply_scenario(
        self,
        scenario: DeploymentScenario,
        auto_check: RequirementLevel = RequirementLevel.MANDATORY,
    ) -> None:
        """Replace every boolean with the scenario's default and recount."""
        self.scenario = DeploymentScenario(scenario)
        self.auto_check = RequirementLevel(auto_check)
        self._state = resolve_selection(self.scenario, self.table, self.auto_check)
        self._recount(self._groups)
        log_session_event(
            "scenario",
            "selection",
            f"Applied {self.scenario.value} ({self.auto_check.value})",
            {"selected": self.count_all_selected()},
        )

    def toggle(self, test_id: str) -> bool | None:
        """Flip one test and return its new value.

        Unknown identifiers are ignored and return None.
        """
        if test_id not in self._state:
            self._reject(f"toggle of unknown test '{test_id}'")
            return None
        return self._set(test_id, not self._state[test_id])

    def set_test(self, test_id: str, included: bool) -> bool | None:
        """Explicitly include or exclude one test."""
        if test_id not in self._state:
            self._reject(f"set of unknown test '{test_id}'")
            return None
        return self._set(test_id, bool(included))

    def set_group(self, prefix: str, included: bool) -> int:
        """Include or exclude every test whose identifier starts with ``prefix``.

        Returns:
            Number of tests that matched. Zero matches is not an error.
        """
        touched = set()
        matched = 0
        for test_id in self._state:
            if test_id.startswith(prefix):
                self._state[test_id] = bool(included)
                touched.add(self._owner[test_id])
                matched += 1
        self._recount(touched)
        logger.debug("set_group %s=%s matched %d tests", prefix, included, matched)
        return matched

    def count_selected(self, prefix: str) -> int:
        return self._counts.get(prefix, 0)

    def count_all_selected(self) -> int:
        return sum(self._counts.get(group, 0) for group in self._groups)

    def group_size(self, prefix: str) -> int:
        return sum(1 for owner in self._owner.values() if owner == prefix)

    def is_selected(self, test_id: str) -> bool:
        return self._state.get(test_id, False)

    def selected_ids(self) -> list[str]:
        """Selected identifiers in table order."""
        return [test_id for test_id, included in self._state.items() if included]

    def groups(self) -> list[str]:
        return list(self._groups)

    def snapshot(self) -> dict[str, bool]:
        return dict(self._state)

    def _set(self, test_id: str, included: bool) -> bool:
        previous = self._state[test_id]
        if previous != included:
            self._state[test_id] = included
            self._counts[self._owner[test_id]] += 1 if included else -1
        return included

    def _recount(self, groups) -> None:
        for group in groups:
            self._counts[group] = 0
        for test_id, included in self._state.items():
            owner = self._owner[test_id]
            if included and owner in groups:
                self._counts[owner] += 1

    def _reject(self, message: str) -> None:
        logger.warning("Ignored: %s", InvariantViolation(message))
