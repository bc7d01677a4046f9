"""
Work item service layer.

Ties the projector, the hooks and the CSV exporter to the collaborator stores
for the operations a controller performs: preparing a new or updated work
item from a request payload, showing an item, listing its children and
exporting a set of items. Persisting the prepared item is the caller's job.
"""

from __future__ import annotations

from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID

import structlog

from .collaborators import Application
from .config import Settings, get_settings
from .csv_export import convert_work_items_to_csv
from .errors import BadParameterError, InternalError, wrap_error
from .jsonapi.hooks import IncludeHasChildren
from .jsonapi.links import LinkBuilder
from .jsonapi.projector import WorkItemConvertFunc, apply_patch, to_wire
from .jsonapi.schemas import WorkItemPayload, WorkItemResource
from .resolver import parse_id
from .workitem.enums import OperationKind, SystemField
from .workitem.field_types import parse_instant
from .workitem.work_item import WorkItem, WorkItemType

logger = structlog.get_logger()


def updated_at(work_item: WorkItem) -> Optional[datetime]:
    """Return the item's ``system.updated_at`` as an aware UTC datetime."""
    value = work_item.fields.get(SystemField.UPDATED_AT.value)
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = parse_instant(value)
        except ValueError as e:
            raise InternalError(
                f"work item {work_item.id} has malformed {SystemField.UPDATED_AT.value}: {value!r}"
            ) from e
    if not isinstance(value, datetime):
        raise InternalError(
            f"work item {work_item.id} has malformed {SystemField.UPDATED_AT.value}: {value!r}"
        )
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def last_modified(work_item: WorkItem) -> Optional[str]:
    """``Last-Modified`` header value (RFC 1123, second precision)."""
    value = updated_at(work_item)
    if value is None:
        return None
    return format_datetime(value.replace(microsecond=0), usegmt=True)


def find_last_modified(work_items: Sequence[WorkItem]) -> Optional[datetime]:
    """Most recent ``system.updated_at`` of ``work_items``, or None."""
    latest: Optional[datetime] = None
    for work_item in work_items:
        value = updated_at(work_item)
        if value is not None and (latest is None or value > latest):
            latest = value
    return latest


class WorkItemService:
    """Service for preparing, showing and exporting work items."""

    def __init__(self, app: Application, settings: Optional[Settings] = None):
        self.app = app
        self.settings = settings or get_settings()
        self.links = LinkBuilder(self.settings.api_base_url, self.settings.api_path_prefix)

    def _load_type(self, ctx: Any, type_id: UUID) -> WorkItemType:
        try:
            return self.app.work_item_types.load(ctx, type_id)
        except Exception as e:
            raise wrap_error(e, f"failed to load work item type {type_id}") from e

    def prepare_create(
        self,
        ctx: Any,
        payload: WorkItemPayload,
        space_id: UUID,
        creator_id: UUID,
    ) -> WorkItem:
        """Build a new, not yet persisted work item from a create request.

        Raises:
            BadParameterError: no base type given, or any invalid value.
            NotFoundError: the base type or a referenced entity is missing.
        """
        relationships = payload.data.relationships
        base_type = relationships.base_type if relationships is not None else None
        if base_type is None or base_type.data is None or base_type.data.id is None:
            raise BadParameterError("data.relationships.baseType.data.id", None)
        type_id = parse_id(base_type.data.id, "data.relationships.baseType.data.id")
        work_item_type = self._load_type(ctx, type_id)

        work_item = WorkItem(
            space_id=space_id,
            type=work_item_type.id,
            fields={SystemField.CREATOR.value: str(creator_id)},
        )
        apply_patch(
            ctx, self.app, payload.data, work_item, OperationKind.CREATE, space_id, self.settings
        )
        logger.info(
            "work_item_prepared",
            operation=OperationKind.CREATE.value,
            wi_id=str(work_item.id),
            space_id=str(space_id),
            type_id=str(work_item.type),
        )
        return work_item

    def prepare_update(self, ctx: Any, payload: WorkItemPayload, work_item: WorkItem) -> WorkItem:
        """Return an updated copy of ``work_item``; the original is not modified.

        Raises:
            BadParameterError: ``data.id`` is missing or names another item.
            InternalError: the stored item has no creator.
        """
        if payload.data.id is None:
            raise BadParameterError.from_message("missing data.ID element in request")
        if parse_id(payload.data.id, "data.id") != work_item.id:
            raise BadParameterError("data.id", payload.data.id)
        if not work_item.fields.get(SystemField.CREATOR.value):
            raise InternalError("work item doesn't have creator")

        updated = work_item.model_copy(deep=True)
        apply_patch(
            ctx,
            self.app,
            payload.data,
            updated,
            OperationKind.UPDATE,
            work_item.space_id,
            self.settings,
        )
        updated.number = work_item.number
        logger.info(
            "work_item_prepared",
            operation=OperationKind.UPDATE.value,
            wi_id=str(updated.id),
            space_id=str(updated.space_id),
            version=updated.version,
        )
        return updated

    def show(
        self, ctx: Any, work_item: WorkItem, *hooks: WorkItemConvertFunc
    ) -> WorkItemResource:
        """Project one work item, including whether it has children."""
        work_item_type = self._load_type(ctx, work_item.type)
        return to_wire(
            work_item_type,
            work_item,
            IncludeHasChildren(ctx, self.app.work_item_links),
            *hooks,
            links=self.links,
        )

    def page_limits(
        self, page_offset: Optional[int] = None, page_limit: Optional[int] = None
    ) -> Tuple[int, int]:
        """Normalize paging parameters to (offset, limit)."""
        offset = 0 if page_offset is None else page_offset
        if offset < 0:
            raise BadParameterError("page[offset]", page_offset)
        limit = self.settings.page_limit_default if page_limit is None else page_limit
        if limit < 1:
            raise BadParameterError("page[limit]", page_limit)
        return offset, min(limit, self.settings.page_limit_max)

    def list_children(
        self,
        ctx: Any,
        work_item_id: UUID,
        page_offset: Optional[int] = None,
        page_limit: Optional[int] = None,
    ) -> Tuple[List[WorkItemResource], int]:
        """Return one page of the item's children and the total child count."""
        link_store = self.app.work_item_links
        if link_store is None:
            raise InternalError("no work item link store configured")
        offset, limit = self.page_limits(page_offset, page_limit)
        try:
            children, total = link_store.list_children(ctx, work_item_id, offset, limit)
        except Exception as e:
            raise wrap_error(e, f"unable to list work item children of {work_item_id}") from e

        types: Dict[UUID, WorkItemType] = {}
        resources = []
        has_children = IncludeHasChildren(ctx, link_store)
        for child in children:
            if child.type not in types:
                types[child.type] = self._load_type(ctx, child.type)
            resources.append(to_wire(types[child.type], child, has_children, links=self.links))
        logger.debug(
            "work_item_children_listed",
            wi_id=str(work_item_id),
            offset=offset,
            limit=limit,
            total=total,
        )
        return resources, total

    def export_csv(
        self, ctx: Any, work_items: Sequence[WorkItem], include_header: bool = True
    ) -> Tuple[str, List[str]]:
        """Export items as CSV, loading each distinct type once."""
        types: Dict[UUID, WorkItemType] = {}
        for work_item in work_items:
            if work_item.type is not None and work_item.type not in types:
                types[work_item.type] = self._load_type(ctx, work_item.type)
        return convert_work_items_to_csv(
            ctx,
            self.app,
            list(types.values()),
            work_items,
            include_header=include_header,
            settings=self.settings,
        )
