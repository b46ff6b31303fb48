"""Import a prior certsuite configuration into the form state."""

import logging
from dataclasses import dataclass, field
from typing import Any

import yaml

from certweb.errors import DecodeError
from certweb.forms.field_groups import FieldGroupManager
from certweb.forms.layout import DEFAULT_LAYOUT, FormLayout, GroupSpec
from certweb.tracing import log_session_event

logger = logging.getLogger(__name__)


@dataclass
class ImportReport:
    """What an import did with each top-level key."""

    groups: dict[str, int] = field(default_factory=dict)  # group -> instances added
    scalars: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)  # recognized, wrong shape
    ignored: list[str] = field(default_factory=list)  # unrecognized

    @property
    def total_instances(self) -> int:
        return sum(self.groups.values())


def decode_config(text: str | bytes) -> dict[str, Any]:
    """Decode a YAML (or JSON) configuration document.

    Raises:
        DecodeError: If the text is not YAML or its top level is not a mapping.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DecodeError(f"Invalid configuration document: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DecodeError(
            f"Configuration document must be a mapping, got {type(data).__name__}"
        )
    return data


def to_form_value(value: Any) -> str:
    """Render a decoded value as form text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def import_into(
    manager: FieldGroupManager,
    scalar_fields: dict[str, str],
    decoded: dict[str, Any],
    layout: FormLayout = DEFAULT_LAYOUT,
) -> ImportReport:
    """Populate field groups and scalar fields from a decoded configuration.

    New instances are appended after any existing ones. Keys the layout does
    not know are ignored; a known key with an unexpected shape is skipped
    without affecting the others.
    """
    report = ImportReport()
    scalar_keys = {spec.path[0] for spec in layout.scalars}

    for key, value in decoded.items():
        spec = layout.group_for_config_key(str(key))
        if spec is not None:
            added = _import_group(manager, spec, value)
            if added is None:
                report.skipped.append(key)
            else:
                report.groups[spec.name] = added
        elif key not in scalar_keys:
            report.ignored.append(key)

    for scalar in layout.scalars:
        found, value = _lookup(decoded, scalar.path)
        if not found:
            continue
        if isinstance(value, (dict, list)):
            logger.warning("Skipping %s: expected a scalar", scalar.config_path)
            report.skipped.append(scalar.config_path)
            continue
        scalar_fields[scalar.name] = to_form_value(value)
        report.scalars.append(scalar.name)

    log_session_event(
        "import",
        "importer",
        f"Imported {report.total_instances} instances, {len(report.scalars)} scalars",
        {"skipped": report.skipped, "ignored": report.ignored},
    )
    return report


def _import_group(manager: FieldGroupManager, spec: GroupSpec, value: Any) -> int | None:
    if value is None:
        return 0
    if not isinstance(value, list):
        logger.warning("Skipping %s: expected a list", spec.config_key)
        return None

    rows = []
    for item in value:
        row = _row_for(spec, item)
        if row is None:
            logger.warning("Skipping %s: unexpected item %r", spec.config_key, item)
            return None
        rows.append(row)

    # validated first so a bad item leaves the group untouched
    for row in rows:
        index = manager.add(spec.name, paired=spec.paired, sub_fields=spec.sub_fields)
        for sub_field, text in zip(spec.sub_fields, row):
            manager.set_sub_value(spec.name, index, sub_field, text)
    return len(rows)


def _row_for(spec: GroupSpec, item: Any) -> list[str] | None:
    if spec.paired:
        if not isinstance(item, dict):
            return None
        return [to_form_value(item.get(sub_field)) for sub_field in spec.sub_fields]
    if isinstance(item, dict):
        if spec.item_key is None or spec.item_key not in item:
            return None
        return [to_form_value(item[spec.item_key])]
    if isinstance(item, list):
        return None
    return [to_form_value(item)]


def _lookup(data: dict[str, Any], path: tuple[str, ...]) -> tuple[bool, Any]:
    current: Any = data
    for part in path:
        if not isinstance(current, dict) or part not in current:
            return False, None
        current = current[part]
    return True, current
