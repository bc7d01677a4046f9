"""
Canonical enums for work items.

These define the closed sets the converters dispatch on: value kinds, the
system field names with special handling, JSON:API resource type strings and
the markup languages a description may use.
"""

from enum import Enum
from typing import Optional


class Kind(str, Enum):
    """Value kinds a work item type field can declare."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    INSTANT = "instant"
    DURATION = "duration"
    URL = "url"
    MARKUP = "markup"
    CODEBASE = "codebase"
    BOARD_COLUMN = "boardcolumn"
    USER = "user"
    ITERATION = "iteration"
    AREA = "area"
    LABEL = "label"
    LIST = "list"
    ENUM = "enum"

    @property
    def is_compound(self) -> bool:
        return self in (Kind.LIST, Kind.ENUM)

    @property
    def is_reference(self) -> bool:
        """True for kinds whose stored value is an id resolved against a store."""
        return self in REFERENCE_KINDS


REFERENCE_KINDS = frozenset(
    {Kind.USER, Kind.ITERATION, Kind.AREA, Kind.LABEL, Kind.BOARD_COLUMN}
)


class SystemField(str, Enum):
    """Field and attribute keys with dedicated conversion rules.

    Any key not listed here is a user-defined field and is copied through.
    """

    VERSION = "version"
    NUMBER = "system.number"
    TITLE = "system.title"
    DESCRIPTION = "system.description"
    DESCRIPTION_MARKUP = "system.description.markup"
    DESCRIPTION_RENDERED = "system.description.rendered"
    CODEBASE = "system.codebase"
    CREATOR = "system.creator"
    ASSIGNEES = "system.assignees"
    LABELS = "system.labels"
    BOARDCOLUMNS = "system.boardcolumns"
    ITERATION = "system.iteration"
    AREA = "system.area"
    STATE = "system.state"
    CREATED_AT = "system.created_at"
    UPDATED_AT = "system.updated_at"
    ORDER = "system.order"

    @classmethod
    def lookup(cls, key: str) -> Optional["SystemField"]:
        """Return the matching member, or None for a user-defined key."""
        try:
            return cls(key)
        except ValueError:
            return None


class ResourceType(str, Enum):
    """JSON:API ``type`` strings."""

    WORK_ITEM = "workitems"
    WORK_ITEM_TYPE = "workitemtypes"
    IDENTITY = "identities"
    ITERATION = "iterations"
    AREA = "areas"
    LABEL = "labels"
    BOARD_COLUMN = "boardcolumns"
    SPACE = "spaces"
    CODEBASE = "codebases"


class Markup(str, Enum):
    """Supported description markup languages."""

    PLAIN_TEXT = "PlainText"
    MARKDOWN = "Markdown"

    @classmethod
    def is_supported(cls, markup: Optional[str]) -> bool:
        return markup in {m.value for m in cls}


class OperationKind(str, Enum):
    """Whether a patch creates a new work item or updates an existing one."""

    CREATE = "create"
    UPDATE = "update"
