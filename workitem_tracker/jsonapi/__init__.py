"""
JSON:API representation of work items.
"""

from .hooks import IncludeHasChildren, IncludeParent
from .links import LinkBuilder
from .projector import (
    WorkItemConvertFunc,
    apply_patch,
    convert_work_items,
    get_version,
    setup_codebase,
    to_wire,
)
from .schemas import (
    GenericLinks,
    RelationData,
    RelationGeneric,
    RelationGenericList,
    WorkItemPayload,
    WorkItemRelationships,
    WorkItemResource,
    WorkItemResourceLinks,
)

__all__ = [
    "GenericLinks",
    "IncludeHasChildren",
    "IncludeParent",
    "LinkBuilder",
    "RelationData",
    "RelationGeneric",
    "RelationGenericList",
    "WorkItemConvertFunc",
    "WorkItemPayload",
    "WorkItemRelationships",
    "WorkItemResource",
    "WorkItemResourceLinks",
    "apply_patch",
    "convert_work_items",
    "get_version",
    "setup_codebase",
    "to_wire",
]
