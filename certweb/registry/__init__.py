"""Registries for classification data."""

from certweb.registry.classification_registry import (
    DEFAULT_CLASSIFICATION_PATH,
    ClassificationTable,
    get_classification_table,
)

__all__ = [
    "DEFAULT_CLASSIFICATION_PATH",
    "ClassificationTable",
    "get_classification_table",
]
