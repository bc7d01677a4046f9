"""
JSON:API wire schemas for work items.

The same models describe inbound payloads and outbound documents. A
relationship that is absent from a payload is ``None``; a relationship
present with ``"data": null`` is a relation object whose ``data`` is ``None``.
The projector relies on that distinction.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GenericLinks(BaseModel):
    """``links`` object of a relationship or resource identifier."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    self_link: Optional[str] = Field(None, alias="self")
    related: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None


class RelationData(BaseModel):
    """Resource identifier object: ``{"id": ..., "type": ...}``."""

    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = None
    type: str
    links: Optional[GenericLinks] = None

    @field_validator("id", mode="before")
    @classmethod
    def _uuid_to_str(cls, value: Any) -> Any:
        if isinstance(value, UUID):
            return str(value)
        return value


class RelationGeneric(BaseModel):
    """To-one relationship."""

    model_config = ConfigDict(extra="forbid")

    data: Optional[RelationData] = None
    links: Optional[GenericLinks] = None
    meta: Optional[Dict[str, Any]] = None


class RelationGenericList(BaseModel):
    """To-many relationship."""

    model_config = ConfigDict(extra="forbid")

    data: Optional[List[RelationData]] = None
    links: Optional[GenericLinks] = None
    meta: Optional[Dict[str, Any]] = None


class WorkItemRelationships(BaseModel):
    """All relationships a work item document can carry."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    base_type: Optional[RelationGeneric] = Field(None, alias="baseType")
    space: Optional[RelationGeneric] = None
    creator: Optional[RelationGeneric] = None
    assignees: Optional[RelationGenericList] = None
    labels: Optional[RelationGenericList] = None
    boardcolumns: Optional[RelationGenericList] = None
    iteration: Optional[RelationGeneric] = None
    area: Optional[RelationGeneric] = None
    parent: Optional[RelationGeneric] = None
    children: Optional[RelationGeneric] = None
    events: Optional[RelationGeneric] = None
    comments: Optional[RelationGeneric] = None
    workitem_links: Optional[RelationGeneric] = Field(None, alias="workItemLinks")

    def is_empty(self, *ignored: str) -> bool:
        """True if every relationship except ``ignored`` is absent."""
        return all(
            getattr(self, name) is None
            for name in type(self).model_fields
            if name not in ignored
        )


class WorkItemResourceLinks(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    self_link: Optional[str] = Field(None, alias="self")
    related: Optional[str] = None
    edit_codebase: Optional[str] = Field(None, alias="edit-codebase")


class WorkItemResource(BaseModel):
    """A work item resource object."""

    model_config = ConfigDict(extra="forbid")

    id: Optional[str] = None
    type: str = "workitems"
    attributes: Dict[str, Any] = Field(default_factory=dict)
    relationships: Optional[WorkItemRelationships] = None
    links: Optional[WorkItemResourceLinks] = None

    @field_validator("id", mode="before")
    @classmethod
    def _uuid_to_str(cls, value: Any) -> Any:
        if isinstance(value, UUID):
            return str(value)
        return value

    def to_dict(self) -> Dict[str, Any]:
        """JSON document of this resource.

        Keys that were explicitly set (including ``"data": null``) are kept;
        keys never set are omitted.
        """
        return self.model_dump(by_alias=True, exclude_unset=True, mode="json")


class WorkItemPayload(BaseModel):
    """Request/response envelope: ``{"data": {...}}``."""

    model_config = ConfigDict(extra="forbid")

    data: WorkItemResource
