"""
Work Item Tracker

Core of a work item tracker: a runtime-defined field type system, JSON:API
conversion of work items and CSV export.
"""

import importlib.metadata

__version__ = importlib.metadata.version("workitem-tracker")

from .collaborators import Application
from .config import Settings, get_settings
from .csv_export import convert_work_items_to_csv
from .errors import (
    BadParameterError,
    BadValueError,
    InternalError,
    NotFoundError,
    WorkItemError,
)
from .jsonapi import (
    IncludeHasChildren,
    IncludeParent,
    WorkItemPayload,
    WorkItemResource,
    apply_patch,
    convert_work_items,
    to_wire,
)
from .resolver import RelationshipResolver
from .services import WorkItemService
from .workitem import Kind, OperationKind, WorkItem, WorkItemType

__all__ = [
    "Application",
    "BadParameterError",
    "BadValueError",
    "IncludeHasChildren",
    "IncludeParent",
    "InternalError",
    "Kind",
    "NotFoundError",
    "OperationKind",
    "RelationshipResolver",
    "Settings",
    "WorkItem",
    "WorkItemError",
    "WorkItemPayload",
    "WorkItemResource",
    "WorkItemService",
    "WorkItemType",
    "apply_patch",
    "convert_work_items",
    "convert_work_items_to_csv",
    "get_settings",
    "to_wire",
]
