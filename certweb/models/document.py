"""Serialized configuration document models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


SELECTED_TESTS_KEY = "selectedOptions"


class FieldKind(str, Enum):
    """Kind of value held by a document field."""

    SCALAR = "scalar"
    LIST = "list"
    PAIR_LIST = "pair_list"


@dataclass(frozen=True)
class PairValue:
    """One instance of a paired field group."""

    first: str
    second: str


@dataclass(frozen=True)
class DocumentField:
    """A tagged configuration value.

    ``value`` is a ``str`` for scalars, a ``list[str]`` for repeated single
    fields and a ``list[PairValue]`` for repeated paired fields. Pair lists
    also record their sub-field names so the payload can use them as keys.
    """

    key: str
    kind: FieldKind
    value: Any
    sub_fields: tuple[str, ...] = ()

    @classmethod
    def scalar(cls, key: str, value: str) -> "DocumentField":
        return cls(key=key, kind=FieldKind.SCALAR, value=value)

    @classmethod
    def repeated(cls, key: str, values: list[str]) -> "DocumentField":
        return cls(key=key, kind=FieldKind.LIST, value=list(values))

    @classmethod
    def pairs(
        cls, key: str, pairs: list[PairValue], sub_fields: tuple[str, str]
    ) -> "DocumentField":
        return cls(
            key=key,
            kind=FieldKind.PAIR_LIST,
            value=list(pairs),
            sub_fields=sub_fields,
        )

    def __post_init__(self):
        if self.kind == FieldKind.SCALAR and not isinstance(self.value, str):
            raise ValueError(f"Scalar field '{self.key}' must hold a string")
        if self.kind == FieldKind.LIST and not all(isinstance(v, str) for v in self.value):
            raise ValueError(f"List field '{self.key}' must hold strings")
        if self.kind == FieldKind.PAIR_LIST:
            if len(self.sub_fields) != 2:
                raise ValueError(f"Pair field '{self.key}' needs two sub-field names")
            if not all(isinstance(v, PairValue) for v in self.value):
                raise ValueError(f"Pair field '{self.key}' must hold PairValue items")

    def to_payload(self) -> Any:
        """JSON-ready value."""
        if self.kind == FieldKind.PAIR_LIST:
            first, second = self.sub_fields
            return [{first: p.first, second: p.second} for p in self.value]
        if self.kind == FieldKind.LIST:
            return list(self.value)
        return self.value


@dataclass
class ConfigurationDocument:
    """The assembled configuration handed to the submission gateway."""

    fields: dict[str, DocumentField] = field(default_factory=dict)
    selected_tests: list[str] = field(default_factory=list)

    def add(self, doc_field: DocumentField) -> None:
        """Add a field, rejecting duplicate keys."""
        if doc_field.key in self.fields or doc_field.key == SELECTED_TESTS_KEY:
            raise ValueError(f"Field '{doc_field.key}' already present")
        self.fields[doc_field.key] = doc_field

    def get(self, key: str) -> DocumentField | None:
        return self.fields.get(key)

    def value_of(self, key: str) -> Any:
        """Payload value of a field, or None when absent."""
        doc_field = self.fields.get(key)
        return doc_field.to_payload() if doc_field else None

    def to_payload(self) -> dict[str, Any]:
        """Convert to the JSON-ready mapping sent to the execution service."""
        payload: dict[str, Any] = {SELECTED_TESTS_KEY: list(self.selected_tests)}
        for key, doc_field in self.fields.items():
            payload[key] = doc_field.to_payload()
        return payload

    def label_filter(self) -> str:
        """Comma-joined selected test ids, as used for the certsuite label filter."""
        return ",".join(self.selected_tests)
