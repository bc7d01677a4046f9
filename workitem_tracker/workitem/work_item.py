"""
Work item and work item type models.

A WorkItemType declares its fields at runtime; a WorkItem stores its values
in a flat ``fields`` bag keyed by field key. Reference fields only ever hold
identifiers; display names are resolved at projection/export time.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, constr

from .field_types import FieldType

# Link type of parent/child links between work items.
PARENT_CHILD_LINK_TYPE_ID = UUID("25c326a7-6d03-4f5a-b23b-86a9ee4171e9")

# Version value meaning "no concurrency check requested".
VERSION_UNSPECIFIED = -1


class FieldDefinition(BaseModel):
    """One schema slot of a work item type."""

    model_config = ConfigDict(extra="forbid")

    label: constr(min_length=1, max_length=256) = Field(
        ..., description="Human readable label, used as CSV header"
    )
    type: FieldType = Field(..., description="Kind of the stored value")
    required: bool = Field(False, description="Whether the field must be set")
    description: str = Field("", description="Help text for the field")


class WorkItemType(BaseModel):
    """A dynamically defined work item schema."""

    model_config = ConfigDict(extra="forbid")

    id: UUID = Field(default_factory=uuid4, description="Work item type ID")
    name: constr(min_length=1, max_length=256) = Field(..., description="Type name")
    description: str = Field("", description="Type description")
    space_id: Optional[UUID] = Field(None, description="Space the type belongs to")
    fields: Dict[str, FieldDefinition] = Field(
        default_factory=dict, description="Field key -> definition"
    )


class WorkItem(BaseModel):
    """A work item with its untyped field bag.

    Invariants:
    - ``number`` is assigned once by the persistence layer and never changed
      by a patch.
    - ``version`` is the optimistic concurrency token; checking it is the
      persistence layer's job.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=False)

    id: UUID = Field(default_factory=uuid4, description="Work item ID")
    space_id: UUID = Field(..., description="Owning space")
    type: Optional[UUID] = Field(None, description="Work item type ID")
    number: Optional[int] = Field(None, description="Sequence number in the space")
    version: int = Field(0, description="Optimistic concurrency version")
    fields: Dict[str, Any] = Field(default_factory=dict, description="Field values")


class WorkItemLink(BaseModel):
    """A typed, directed link between two work items."""

    model_config = ConfigDict(extra="forbid")

    id: UUID = Field(default_factory=uuid4)
    link_type_id: UUID
    source_id: UUID
    target_id: UUID


class Ancestor(BaseModel):
    """A work item together with its parent in an ancestry chain."""

    model_config = ConfigDict(extra="forbid")

    id: UUID
    parent_id: Optional[UUID] = None


def parent_from_ancestors(ancestors: List[Ancestor], work_item_id: UUID) -> Optional[UUID]:
    """Return the parent of ``work_item_id`` found in an ancestor list."""
    for ancestor in ancestors:
        if ancestor.id == work_item_id:
            return ancestor.parent_id
    return None


def parent_from_links(
    links: List[WorkItemLink],
    work_item_id: UUID,
    link_type_id: UUID = PARENT_CHILD_LINK_TYPE_ID,
) -> Optional[UUID]:
    """Return the source of the first ``link_type_id`` link targeting the item."""
    for link in links:
        if link.link_type_id == link_type_id and link.target_id == work_item_id:
            return link.source_id
    return None


def has_child_link(links: List[WorkItemLink], work_item_id: UUID) -> bool:
    return any(
        link.link_type_id == PARENT_CHILD_LINK_TYPE_ID and link.source_id == work_item_id
        for link in links
    )
