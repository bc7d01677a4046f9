"""
Canonical projection hooks.

Hooks are callables ``(work_item, resource) -> None`` passed to ``to_wire``.
They carry the caller's ``ctx`` so any store query they make can be aborted
with the call.
"""

from __future__ import annotations

from typing import Any, List, Optional
from uuid import UUID

import structlog

from ..collaborators import WorkItemLinkStore
from ..errors import wrap_error
from ..workitem.enums import ResourceType
from ..workitem.work_item import (
    PARENT_CHILD_LINK_TYPE_ID,
    Ancestor,
    WorkItem,
    WorkItemLink,
    has_child_link,
    parent_from_ancestors,
    parent_from_links,
)
from .schemas import RelationData, RelationGeneric, WorkItemResource

logger = structlog.get_logger()


class IncludeHasChildren:
    """Set ``relationships.children.meta.hasChildren``.

    A supplied list of links is searched first; the link store is only
    queried when the list does not already show a child.
    """

    def __init__(
        self,
        ctx: Any,
        link_store: Optional[WorkItemLinkStore],
        child_links: Optional[List[WorkItemLink]] = None,
    ):
        self.ctx = ctx
        self.link_store = link_store
        self.child_links = child_links

    def __call__(self, work_item: WorkItem, resource: WorkItemResource) -> None:
        has_children = False
        if self.child_links is not None:
            has_children = has_child_link(self.child_links, work_item.id)
        if not has_children and self.link_store is not None:
            try:
                has_children = self.link_store.work_item_has_children(self.ctx, work_item.id)
            except Exception as e:
                logger.error("has_children_lookup_failed", wi_id=str(work_item.id), error=str(e))
                raise wrap_error(
                    e, f"unable to find out if work item {work_item.id} has children"
                ) from e

        children = resource.relationships.children or RelationGeneric()
        children.meta = {"hasChildren": has_children}
        resource.relationships.children = children


class IncludeParent:
    """Attach a ``parent`` stub to the resource.

    The parent is taken from the ancestor list, then the child link list,
    then the link store, whichever answers first. Without a parent the
    relationship is emitted with ``data: null``.
    """

    def __init__(
        self,
        ctx: Any,
        ancestors: Optional[List[Ancestor]] = None,
        child_links: Optional[List[WorkItemLink]] = None,
        link_store: Optional[WorkItemLinkStore] = None,
    ):
        self.ctx = ctx
        self.ancestors = ancestors
        self.child_links = child_links
        self.link_store = link_store

    def _find_parent(self, work_item_id: UUID) -> Optional[UUID]:
        if self.ancestors:
            parent_id = parent_from_ancestors(self.ancestors, work_item_id)
            if parent_id is not None:
                return parent_id
        if self.child_links:
            parent_id = parent_from_links(self.child_links, work_item_id)
            if parent_id is not None:
                return parent_id
        if self.link_store is None:
            return None
        try:
            return self.link_store.get_parent_id_of(
                self.ctx, work_item_id, PARENT_CHILD_LINK_TYPE_ID
            )
        except Exception as e:
            logger.error("parent_lookup_failed", wi_id=str(work_item_id), error=str(e))
            raise wrap_error(e, f"failed to find parent of work item {work_item_id}") from e

    def __call__(self, work_item: WorkItem, resource: WorkItemResource) -> None:
        parent_id = self._find_parent(work_item.id)
        parent = resource.relationships.parent or RelationGeneric()
        if parent_id is None:
            parent.data = None
        else:
            parent.data = RelationData(id=str(parent_id), type=ResourceType.WORK_ITEM.value)
        resource.relationships.parent = parent
