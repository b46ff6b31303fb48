"""Serialize form state into a configuration document."""

import logging
from typing import Any

from certweb.forms.field_groups import FieldGroupManager
from certweb.forms.layout import DEFAULT_LAYOUT, FormLayout, GroupSpec
from certweb.models import (
    SELECTED_TESTS_KEY,
    ConfigurationDocument,
    DocumentField,
    FieldKind,
    PairValue,
)
from certweb.selection import SelectionStateStore

logger = logging.getLogger(__name__)


def serialize(
    selection: SelectionStateStore,
    groups: FieldGroupManager,
    scalar_fields: dict[str, str],
    layout: FormLayout = DEFAULT_LAYOUT,
) -> ConfigurationDocument:
    """Build the configuration document for one submission.

    Every layout group is emitted, in layout order, even when it was never
    opened. Values keep their index order and empty values are kept so
    positions line up on the receiving side.
    """
    document = ConfigurationDocument(selected_tests=selection.selected_ids())

    names = [spec.name for spec in layout.groups]
    names += [name for name in groups.group_names() if name not in names]
    for name in names:
        if name == SELECTED_TESTS_KEY:
            logger.warning("Skipping field group %s: name is reserved", name)
            continue
        spec = layout.group(name)
        group = groups.group(name)
        sub_fields = group.sub_fields if group else spec.sub_fields
        if len(sub_fields) == 2:
            document.add(
                DocumentField.pairs(
                    name,
                    [PairValue(first, second) for first, second in groups.pairs(name)],
                    (sub_fields[0], sub_fields[1]),
                )
            )
        else:
            document.add(DocumentField.repeated(name, groups.values(name)))

    for name, value in scalar_fields.items():
        if name == SELECTED_TESTS_KEY or name in document.fields:
            logger.warning("Skipping scalar field %s: name is already used", name)
            continue
        document.add(DocumentField.scalar(name, "" if value is None else str(value)))

    return document


def to_certsuite_config(
    document: ConfigurationDocument,
    layout: FormLayout = DEFAULT_LAYOUT,
) -> dict[str, Any]:
    """Map a document onto the certsuite configuration file structure.

    This is the inverse of the import mapping: item properties are restored,
    boolean sub-fields become booleans again and dotted scalar paths are
    nested. Empty scalars are left out so they do not overwrite values
    already present in the file.
    """
    config: dict[str, Any] = {}
    for spec in layout.groups:
        doc_field = document.get(spec.name)
        if doc_field is None:
            continue
        config[spec.config_key] = _group_items(spec, doc_field)

    for scalar in layout.scalars:
        doc_field = document.get(scalar.name)
        if doc_field is None or doc_field.kind != FieldKind.SCALAR or doc_field.value == "":
            continue
        target = config
        for part in scalar.path[:-1]:
            target = target.setdefault(part, {})
        target[scalar.path[-1]] = doc_field.value

    return config


def _group_items(spec: GroupSpec, doc_field: DocumentField) -> list[Any]:
    if doc_field.kind == FieldKind.PAIR_LIST:
        items = []
        for pair in doc_field.value:
            item = {}
            for sub_field, text in zip(spec.sub_fields, (pair.first, pair.second)):
                item[sub_field] = _config_value(spec, sub_field, text)
            items.append(item)
        return items
    if spec.item_key:
        return [{spec.item_key: value} for value in doc_field.value]
    return list(doc_field.value)


def _config_value(spec: GroupSpec, sub_field: str, text: str) -> Any:
    if sub_field in spec.bool_fields:
        return text.strip().lower() != "false"
    return text


def deserialize(
    payload: dict[str, Any],
    layout: FormLayout = DEFAULT_LAYOUT,
) -> ConfigurationDocument:
    """Rebuild a document from its JSON payload.

    Raises:
        ValueError: If a field does not have the shape its layout entry expects.
    """
    selected = payload.get(SELECTED_TESTS_KEY) or []
    if not isinstance(selected, list) or not all(isinstance(s, str) for s in selected):
        raise ValueError(f"'{SELECTED_TESTS_KEY}' must be a list of test ids")
    document = ConfigurationDocument(selected_tests=list(selected))

    for key, value in payload.items():
        if key == SELECTED_TESTS_KEY:
            continue
        spec = layout.group(key)
        if spec is not None and spec.paired:
            document.add(_pair_field(spec, value))
        elif isinstance(value, list):
            if not all(isinstance(v, str) for v in value):
                raise ValueError(f"Field '{key}' must be a list of strings")
            document.add(DocumentField.repeated(key, value))
        elif isinstance(value, str):
            document.add(DocumentField.scalar(key, value))
        elif value is None:
            document.add(DocumentField.scalar(key, ""))
        else:
            raise ValueError(f"Field '{key}' has an unsupported value")
    return document


def _pair_field(spec: GroupSpec, value: Any) -> DocumentField:
    if not isinstance(value, list):
        raise ValueError(f"Field '{spec.name}' must be a list")
    first, second = spec.sub_fields
    pairs = []
    for item in value:
        if not isinstance(item, dict):
            raise ValueError(f"Field '{spec.name}' items must be mappings")
        pairs.append(PairValue(str(item.get(first) or ""), str(item.get(second) or "")))
    return DocumentField.pairs(spec.name, pairs, (first, second))
