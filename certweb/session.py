"""One configuration-editing session."""

from certweb.forms import (
    DEFAULT_LAYOUT,
    FieldGroupManager,
    FormLayout,
    ImportReport,
    decode_config,
    import_into,
    serialize,
)
from certweb.models import ConfigurationDocument
from certweb.registry import ClassificationTable, get_classification_table
from certweb.selection import SelectionStateStore


class ConfigSession:
    """Selection state, field groups and scalar fields edited together.

    The UI keeps one session per operator; nothing here is shared between
    sessions except the read-only classification table.
    """

    def __init__(
        self,
        table: ClassificationTable | None = None,
        layout: FormLayout | None = None,
    ):
        self.table = table or get_classification_table()
        self.layout = layout or DEFAULT_LAYOUT
        self.selection = SelectionStateStore(self.table)
        self.groups = FieldGroupManager(self.layout)
        self.scalars: dict[str, str] = {name: "" for name in self.layout.scalar_names()}

    def import_text(self, text: str | bytes) -> ImportReport:
        """Decode and import a configuration document.

        Raises:
            DecodeError: If the document cannot be decoded. The session is
                left untouched.
        """
        decoded = decode_config(text)
        return import_into(self.groups, self.scalars, decoded, self.layout)

    def serialize(self) -> ConfigurationDocument:
        return serialize(self.selection, self.groups, self.scalars, self.layout)
