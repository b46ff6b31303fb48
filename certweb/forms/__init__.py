"""Form layout, field groups, import and serialization."""

from certweb.forms.field_groups import FieldGroup, FieldGroupManager
from certweb.forms.importer import ImportReport, decode_config, import_into
from certweb.forms.layout import DEFAULT_LAYOUT, FormLayout, GroupSpec, ScalarSpec
from certweb.forms.serializer import deserialize, serialize, to_certsuite_config

__all__ = [
    "DEFAULT_LAYOUT",
    "FieldGroup",
    "FieldGroupManager",
    "FormLayout",
    "GroupSpec",
    "ImportReport",
    "ScalarSpec",
    "decode_config",
    "deserialize",
    "import_into",
    "serialize",
    "to_certsuite_config",
]
