"""Scenario-driven default test selection."""

from certweb.models import DeploymentScenario, RequirementLevel
from certweb.registry import ClassificationTable


def resolve_selection(
    scenario: DeploymentScenario,
    table: ClassificationTable,
    auto_check: RequirementLevel = RequirementLevel.MANDATORY,
) -> dict[str, bool]:
    """Derive the selected/unselected state of every test for a scenario.

    Args:
        scenario: Deployment scenario chosen by the operator.
        table: Classification table to resolve against.
        auto_check: Requirement level that gets checked for tier scenarios.

    Returns:
        Mapping of every test identifier in the table, in table order,
        to whether it is included in the run.
    """
    scenario = DeploymentScenario(scenario)
    if scenario == DeploymentScenario.ALL:
        return {test_id: True for test_id in table.ids()}
    if scenario == DeploymentScenario.NONE:
        return {test_id: False for test_id in table.ids()}

    auto_check = RequirementLevel(auto_check)
    return {
        entry.id: entry.level_for(scenario) == auto_check
        for entry in table.list_all()
    }
