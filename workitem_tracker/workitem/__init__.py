"""
Work item domain model.

- Kind / SystemField: closed sets the converters dispatch on
- SimpleType / ListType / EnumType: field types and their string conversion
- MarkupContent / CodebaseContent: structured field values
- WorkItemType / WorkItem: runtime schema and the item's field bag
"""

# Enums
from .enums import Kind, Markup, OperationKind, ResourceType, SystemField

# Structured values
from .codebase import CodebaseContent
from .rendering import MarkupContent, render_markup_to_html

# Field types
from .field_types import EnumType, FieldType, ListType, SimpleType, enum_of, list_of, simple

# Models
from .work_item import (
    PARENT_CHILD_LINK_TYPE_ID,
    VERSION_UNSPECIFIED,
    Ancestor,
    FieldDefinition,
    WorkItem,
    WorkItemLink,
    WorkItemType,
)

__all__ = [
    # Enums
    "Kind",
    "Markup",
    "OperationKind",
    "ResourceType",
    "SystemField",
    # Structured values
    "CodebaseContent",
    "MarkupContent",
    "render_markup_to_html",
    # Field types
    "EnumType",
    "FieldType",
    "ListType",
    "SimpleType",
    "enum_of",
    "list_of",
    "simple",
    # Models
    "PARENT_CHILD_LINK_TYPE_ID",
    "VERSION_UNSPECIFIED",
    "Ancestor",
    "FieldDefinition",
    "WorkItem",
    "WorkItemLink",
    "WorkItemType",
]
