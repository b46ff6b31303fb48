"""Dynamically resizable groups of form fields."""

import logging
from dataclasses import dataclass, field

from certweb.errors import InvariantViolation
from certweb.forms.layout import FormLayout

logger = logging.getLogger(__name__)


@dataclass
class FieldGroup:
    """A named group of field instances.

    Instance ``i`` (1-based) is ``rows[i - 1]``; each row holds one value per
    sub-field. Indices are positional, so live indices are always
    ``[1..count]``.
    """

    name: str
    sub_fields: tuple[str, ...] = ("value",)
    rows: list[list[str]] = field(default_factory=list)

    @property
    def paired(self) -> bool:
        return len(self.sub_fields) == 2

    @property
    def count(self) -> int:
        return len(self.rows)

    def indices(self) -> list[int]:
        return list(range(1, self.count + 1))

    def field_id(self, index: int, sub_field: str | None = None) -> str:
        """Stable widget identity of one instance (or one half of a pair)."""
        if sub_field is None:
            return f"{self.name}{index}"
        return f"{self.name}{sub_field}{index}"


class FieldGroupManager:
    """Owns the field groups of one configuration form.

    Groups are created on their first ``add``. The last remaining instance
    of a group cannot be removed, so the form always offers an input row
    once a group has been opened.
    """

    def __init__(self, layout: FormLayout | None = None):
        self.layout = layout
        self._groups: dict[str, FieldGroup] = {}

    def add(
        self,
        group_name: str,
        paired: bool | None = None,
        sub_fields: tuple[str, ...] | None = None,
    ) -> int:
        """Append an instance and return its index.

        Args:
            group_name: Name of the group.
            paired: Create an ad-hoc paired group when the layout does not
                describe ``group_name``. Ignored for existing groups.
            sub_fields: Sub-field names for an ad-hoc group.

        Returns:
            The new highest index (1 for a fresh group).
        """
        group = self._groups.get(group_name)
        if group is None:
            group = self._create(group_name, paired, sub_fields)
        group.rows.append([""] * len(group.sub_fields))
        return group.count

    def remove(self, group_name: str) -> int | None:
        """Remove the highest-indexed instance.

        Returns:
            The removed index, or None when the group has one instance or
            fewer (nothing is removed).
        """
        group = self._groups.get(group_name)
        if group is None or group.count == 0:
            self._reject(f"remove on empty group '{group_name}'")
            return None
        if group.count == 1:
            return None
        removed = group.count
        group.rows.pop()
        return removed

    def current_count(self, group_name: str) -> int:
        group = self._groups.get(group_name)
        return group.count if group else 0

    def is_removable(self, group_name: str) -> bool:
        """Whether the remove affordance should be shown."""
        return self.current_count(group_name) > 1

    def indices(self, group_name: str) -> list[int]:
        group = self._groups.get(group_name)
        return group.indices() if group else []

    def set_value(self, group_name: str, index: int, value: str) -> bool:
        """Set the value of a single-field instance."""
        group = self._groups.get(group_name)
        if group is not None and group.paired:
            self._reject(f"set_value on paired group '{group_name}'")
            return False
        return self._write(group_name, index, 0, value)

    def set_pair(self, group_name: str, index: int, first: str, second: str) -> bool:
        """Set both halves of a paired instance."""
        group = self._groups.get(group_name)
        if group is None or not group.paired:
            self._reject(f"set_pair on non-paired group '{group_name}'")
            return False
        return self._write(group_name, index, 0, first) and self._write(
            group_name, index, 1, second
        )

    def set_sub_value(self, group_name: str, index: int, sub_field: str, value: str) -> bool:
        """Set one sub-field of an instance by name."""
        group = self._groups.get(group_name)
        if group is None or sub_field not in group.sub_fields:
            self._reject(f"unknown sub-field '{sub_field}' in group '{group_name}'")
            return False
        return self._write(group_name, index, group.sub_fields.index(sub_field), value)

    def get_value(self, group_name: str, index: int, sub_field: str | None = None) -> str:
        group = self._groups.get(group_name)
        if group is None or not 1 <= index <= group.count:
            return ""
        position = group.sub_fields.index(sub_field) if sub_field else 0
        return group.rows[index - 1][position]

    def values(self, group_name: str) -> list[str]:
        """Values of a single-field group in index order."""
        group = self._groups.get(group_name)
        return [row[0] for row in group.rows] if group else []

    def pairs(self, group_name: str) -> list[tuple[str, str]]:
        """Values of a paired group in index order."""
        group = self._groups.get(group_name)
        if group is None or not group.paired:
            return []
        return [(row[0], row[1]) for row in group.rows]

    def group(self, group_name: str) -> FieldGroup | None:
        return self._groups.get(group_name)

    def group_names(self) -> list[str]:
        return list(self._groups.keys())

    def clear(self) -> None:
        self._groups.clear()

    def _create(
        self,
        group_name: str,
        paired: bool | None,
        sub_fields: tuple[str, ...] | None,
    ) -> FieldGroup:
        spec = self.layout.group(group_name) if self.layout else None
        if spec is not None:
            fields = spec.sub_fields
        elif sub_fields:
            fields = tuple(sub_fields)
        elif paired:
            fields = ("first", "second")
        else:
            fields = ("value",)
        group = FieldGroup(name=group_name, sub_fields=fields)
        self._groups[group_name] = group
        logger.debug("Created field group %s %s", group_name, fields)
        return group

    def _write(self, group_name: str, index: int, position: int, value: str) -> bool:
        group = self._groups.get(group_name)
        if group is None or not 1 <= index <= group.count:
            self._reject(f"index {index} out of range for group '{group_name}'")
            return False
        group.rows[index - 1][position] = value
        return True

    def _reject(self, message: str) -> None:
        logger.warning("Ignored: %s", InvariantViolation(message))
