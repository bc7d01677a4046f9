"""
CSV export of work items.

Columns are the union of the fields declared by the items' types, sorted by
label, preceded by a ``_Type`` column holding the type name. Reference values
are resolved to display names through one resolver shared by the whole
export, so every distinct id is loaded at most once.
"""

from __future__ import annotations

import csv
import io
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

import structlog

from .collaborators import Application
from .config import Settings, get_settings
from .errors import InternalError, wrap_error
from .resolver import RelationshipResolver
from .workitem.field_types import ListType
from .workitem.work_item import WorkItem, WorkItemType

logger = structlog.get_logger()

TYPE_COLUMN_KEY = "_type"
TYPE_COLUMN_LABEL = "_Type"


def extract_columns(work_item_types: Sequence[WorkItemType]) -> Tuple[List[str], List[str]]:
    """Return the (keys, labels) of the export columns.

    A key declared by several types keeps the label of the first type that
    declares it. Columns are ordered by label, then key. The first column is
    always the synthetic type column, even when a type declares a field with
    the same key.
    """
    columns: Dict[str, str] = {}
    for work_item_type in work_item_types:
        for key, definition in work_item_type.fields.items():
            columns.setdefault(key, definition.label)
    ordered = sorted(columns.items(), key=lambda item: (item[1], item[0]))
    keys = [TYPE_COLUMN_KEY] + [key for key, _ in ordered]
    labels = [TYPE_COLUMN_LABEL] + [label for _, label in ordered]
    return keys, labels


def convert_field_values(
    resolver: RelationshipResolver,
    work_item_type: WorkItemType,
    work_item: WorkItem,
    list_delimiter: str = ";",
) -> Dict[str, str]:
    """Render every field the item's type declares to a single cell string."""
    values: Dict[str, str] = {}
    for key, definition in work_item_type.fields.items():
        field_type = definition.type
        tokens = field_type.convert_to_string_slice(work_item.fields.get(key), key)
        kind = field_type.element_kind
        if isinstance(field_type, ListType):
            values[key] = list_delimiter.join(
                resolver.resolve(kind, token, key) for token in tokens
            )
        elif tokens:
            values[key] = resolver.resolve(kind, tokens[0], key)
        else:
            values[key] = ""
    return values


def convert_work_items_to_csv(
    ctx: Any,
    app: Application,
    work_item_types: Sequence[WorkItemType],
    work_items: Sequence[WorkItem],
    include_header: bool = True,
    settings: Optional[Settings] = None,
) -> Tuple[str, List[str]]:
    """Export work items as CSV text.

    Returns the CSV text and the column labels. No items means no output:
    ``("", [])``. Any failure aborts the export without partial output.

    Raises:
        InternalError: an item's type is not among ``work_item_types``.
        BadValueError: a stored value does not match its field's kind.
        NotFoundError: a referenced entity no longer exists.
    """
    if not work_items:
        return "", []
    settings = settings or get_settings()

    types_by_id: Dict[UUID, WorkItemType] = {}
    for work_item_type in work_item_types:
        types_by_id.setdefault(work_item_type.id, work_item_type)
    column_keys, column_labels = extract_columns(list(types_by_id.values()))

    resolver = RelationshipResolver(ctx, app)
    rows: List[List[str]] = []
    if include_header:
        rows.append(list(column_labels))
    for work_item in work_items:
        work_item_type = types_by_id.get(work_item.type)
        if work_item_type is None:
            raise InternalError(
                f"work item {work_item.id} has unknown work item type {work_item.type}"
            )
        try:
            values = convert_field_values(
                resolver, work_item_type, work_item, settings.csv_list_delimiter
            )
        except Exception as e:
            raise wrap_error(e, f"failed to retrieve field values for work item {work_item.id}") from e
        # the type cell is positional so a field keyed "_type" keeps its column
        rows.append([work_item_type.name] + [values.get(key, "") for key in column_keys[1:]])

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerows(rows)
    logger.info(
        "work_items_exported",
        item_count=len(work_items),
        column_count=len(column_keys),
        include_header=include_header,
    )
    return buffer.getvalue(), column_labels
