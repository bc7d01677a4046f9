"""
JSON:API projector for work items.

``apply_patch`` folds an inbound resource object into a WorkItem, validating
every reference against the collaborator stores. ``to_wire`` projects a stored
WorkItem back into a resource object, then runs the caller's hooks on it.
"""

from __future__ import annotations

import html
from typing import Any, Callable, Dict, List, Optional, Sequence
from uuid import UUID

import structlog

from ..collaborators import Application, Codebase
from ..config import Settings, get_settings
from ..errors import BadParameterError, InternalError, NotFoundError, wrap_error
from ..resolver import RelationshipResolver, parse_id
from ..workitem.codebase import CodebaseContent
from ..workitem.enums import Kind, Markup, OperationKind, ResourceType, SystemField
from ..workitem.rendering import MarkupContent
from ..workitem.work_item import VERSION_UNSPECIFIED, WorkItem, WorkItemType
from .links import LinkBuilder
from .schemas import (
    GenericLinks,
    RelationData,
    RelationGeneric,
    RelationGenericList,
    WorkItemRelationships,
    WorkItemResource,
    WorkItemResourceLinks,
)

logger = structlog.get_logger()

# A hook decorates a projected resource; raising aborts the projection.
WorkItemConvertFunc = Callable[[WorkItem, WorkItemResource], None]

VERSION_PARAMETER = "data.attributes.version"
BASE_TYPE_PARAMETER = "data.relationships.baseType.data.id"
MARKUP_PARAMETER = "data.relationships.attributes[system.description].markup"


def get_version(value: Any) -> int:
    """Parse the ``version`` attribute.

    Absent means VERSION_UNSPECIFIED. Integers, integral floats and decimal
    strings are accepted; anything else, or a negative number, is rejected.
    """
    if value is None:
        return VERSION_UNSPECIFIED
    if isinstance(value, bool):
        raise BadParameterError(VERSION_PARAMETER, value)
    if isinstance(value, int):
        version = value
    elif isinstance(value, float) and value.is_integer():
        version = int(value)
    elif isinstance(value, str):
        try:
            version = int(value)
        except ValueError as e:
            raise BadParameterError(VERSION_PARAMETER, value) from e
    else:
        raise BadParameterError(VERSION_PARAMETER, value)
    if version < 0:
        raise BadParameterError(VERSION_PARAMETER, value)
    return version


def setup_codebase(
    ctx: Any,
    app: Application,
    content: CodebaseContent,
    space_id: UUID,
    settings: Optional[Settings] = None,
) -> None:
    """Stamp ``content`` with the id of the space's codebase for its repository.

    Looks the codebase up by (space, repository URL) and creates it with the
    configured defaults if none exists. Content that already carries a
    codebase id is left alone.
    """
    if content.codebase_id:
        return
    settings = settings or get_settings()
    try:
        existing = app.codebases.load_by_repo(ctx, space_id, content.repository)
    except NotFoundError:
        existing = None
    except Exception as e:
        raise wrap_error(
            e, f"failed to load codebase for repository {content.repository}"
        ) from e
    if existing is not None:
        content.codebase_id = str(existing.id)
        return

    codebase = Codebase(
        space_id=space_id,
        type=settings.codebase_default_type,
        url=content.repository,
        stack_id=settings.codebase_default_stack_id,
    )
    try:
        created = app.codebases.create(ctx, codebase)
    except Exception as e:
        raise wrap_error(e, "failed to create codebase") from e
    content.codebase_id = str(created.id)
    logger.info(
        "codebase_created",
        space_id=str(space_id),
        codebase_id=content.codebase_id,
        repository=content.repository,
    )


# ----------------------------------------------------------------------
# Inbound: resource object -> WorkItem
# ----------------------------------------------------------------------


def _base_type_id(relationships: Optional[WorkItemRelationships]) -> Optional[UUID]:
    if relationships is None or relationships.base_type is None:
        return None
    data = relationships.base_type.data
    if data is None:
        return None
    if data.id is None:
        raise BadParameterError(BASE_TYPE_PARAMETER, None)
    return parse_id(data.id, BASE_TYPE_PARAMETER)


def _only_type_change(attributes: Dict[str, Any], relationships: WorkItemRelationships) -> bool:
    remaining = [key for key in attributes if key != SystemField.VERSION.value]
    return not remaining and relationships.is_empty("base_type")


def _apply_assignees(
    resolver: RelationshipResolver, relation: Optional[RelationGenericList], fields: Dict[str, Any]
) -> None:
    if relation is None:
        return
    if relation.data is None:
        fields.pop(SystemField.ASSIGNEES.value, None)
        return
    fields[SystemField.ASSIGNEES.value] = resolver.validate_identifiers(
        Kind.USER,
        [item.id for item in relation.data],
        "data.relationships.assignees.data.id",
    )


def _apply_distinct_list(
    resolver: RelationshipResolver,
    relation: Optional[RelationGenericList],
    fields: Dict[str, Any],
    kind: Kind,
    field: SystemField,
    path: str,
) -> None:
    if relation is None:
        return
    if relation.data is None:
        raise BadParameterError(f"{path}.data", None)
    fields[field.value] = resolver.validate_identifiers(
        kind, [item.id for item in relation.data], f"{path}.data.id", distinct=True
    )


def _apply_with_root_default(
    resolver: RelationshipResolver,
    relation: Optional[RelationGeneric],
    fields: Dict[str, Any],
    kind: Kind,
    field: SystemField,
    operation: OperationKind,
    space_id: UUID,
    log: Any,
) -> None:
    path = f"data.relationships.{kind.value}"
    if relation is None or relation.data is None:
        # Explicit null always resets; an absent relationship only on create.
        if relation is None and operation != OperationKind.CREATE:
            return
        if kind == Kind.ITERATION:
            fields[field.value] = resolver.root_iteration_id(space_id)
        else:
            fields[field.value] = resolver.root_area_id(space_id)
        log.debug("root_default_assigned", field=field.value, value=fields[field.value])
        return
    if relation.data.id is None:
        raise BadParameterError(f"{path}.data.id", None)
    fields[field.value] = resolver.ensure_exists(kind, relation.data.id, f"{path}.data.id")


def _ignore_attribute(fields: Dict[str, Any], key: str, value: Any) -> None:
    pass


def _copy_attribute(fields: Dict[str, Any], key: str, value: Any) -> None:
    fields[key] = value


def _apply_description(fields: Dict[str, Any], key: str, value: Any) -> None:
    if value is None:
        fields.pop(key, None)
        return
    submitted = MarkupContent.from_value(value)
    if submitted is None:
        raise BadParameterError(f"data.attributes[{key}]", value)
    existing = MarkupContent.from_value(fields.get(key))
    if existing is None:
        fields[key] = submitted
        return
    existing.content = submitted.content
    if isinstance(value, dict) and value.get("markup"):
        existing.markup = submitted.markup
    fields[key] = existing


def _apply_description_markup(fields: Dict[str, Any], key: str, value: Any) -> None:
    description_key = SystemField.DESCRIPTION.value
    if not isinstance(value, str):
        raise BadParameterError(f"data.attributes[{key}]", value)
    existing = MarkupContent.from_value(fields.get(description_key))
    if existing is None:
        existing = MarkupContent(content="", markup=value)
    else:
        existing.markup = value
    fields[description_key] = existing


def _apply_codebase(fields: Dict[str, Any], key: str, value: Any) -> None:
    if value is None:
        fields.pop(key, None)
        return
    try:
        fields[key] = CodebaseContent.from_value(value)
    except BadParameterError as e:
        raise e.wrap("failed to create new codebase from value") from e


_AttributeHandler = Callable[[Dict[str, Any], str, Any], None]

_ATTRIBUTE_HANDLERS: Dict[SystemField, _AttributeHandler] = {
    SystemField.VERSION: _ignore_attribute,
    SystemField.NUMBER: _ignore_attribute,
    SystemField.DESCRIPTION_RENDERED: _ignore_attribute,
    SystemField.DESCRIPTION: _apply_description,
    SystemField.DESCRIPTION_MARKUP: _apply_description_markup,
    SystemField.CODEBASE: _apply_codebase,
}


def _apply_attributes(attributes: Dict[str, Any], fields: Dict[str, Any]) -> None:
    for key, value in attributes.items():
        handler = _ATTRIBUTE_HANDLERS.get(SystemField.lookup(key), _copy_attribute)
        handler(fields, key, value)


def _validate_description_markup(fields: Dict[str, Any]) -> None:
    description = MarkupContent.from_value(fields.get(SystemField.DESCRIPTION.value))
    if description is not None and not Markup.is_supported(description.markup):
        raise BadParameterError(MARKUP_PARAMETER, description.markup)


def apply_patch(
    ctx: Any,
    app: Application,
    source: WorkItemResource,
    target: WorkItem,
    operation: OperationKind,
    space_id: UUID,
    settings: Optional[Settings] = None,
) -> None:
    """Apply a JSON:API resource object to ``target``.

    The patch is built on a deep copy and only committed to ``target`` once
    every check has passed, so a failure leaves ``target`` untouched. The
    work item number is never modified.

    Raises:
        BadParameterError: malformed version, ids or attribute values, or a
            type change combined with other changes.
        NotFoundError: a referenced iteration, area or space does not exist.
        InternalError: a collaborator failed.
    """
    log = logger.bind(wi_id=str(target.id), space_id=str(space_id), operation=operation.value)
    attributes = dict(source.attributes or {})
    relationships = source.relationships or WorkItemRelationships()

    version = get_version(attributes.get(SystemField.VERSION.value))
    base_type_id = _base_type_id(relationships)

    if (
        operation == OperationKind.UPDATE
        and base_type_id is not None
        and base_type_id != target.type
    ):
        if not _only_type_change(attributes, relationships):
            raise BadParameterError.from_message("cannot update type along with other fields")
        log.info("work_item_type_changed", old_type=str(target.type), new_type=str(base_type_id))
        target.version = version
        target.type = base_type_id
        return

    scratch = target.model_copy(deep=True)
    fields = scratch.fields
    resolver = RelationshipResolver(ctx, app)

    _apply_assignees(resolver, relationships.assignees, fields)
    _apply_distinct_list(
        resolver, relationships.labels, fields, Kind.LABEL, SystemField.LABELS,
        "data.relationships.labels",
    )
    _apply_distinct_list(
        resolver, relationships.boardcolumns, fields, Kind.BOARD_COLUMN,
        SystemField.BOARDCOLUMNS, "data.relationships.boardcolumns",
    )
    _apply_with_root_default(
        resolver, relationships.iteration, fields, Kind.ITERATION,
        SystemField.ITERATION, operation, space_id, log,
    )
    _apply_with_root_default(
        resolver, relationships.area, fields, Kind.AREA,
        SystemField.AREA, operation, space_id, log,
    )
    if base_type_id is not None:
        scratch.type = base_type_id

    _apply_attributes(attributes, fields)
    _validate_description_markup(fields)

    codebase = fields.get(SystemField.CODEBASE.value)
    if SystemField.CODEBASE.value in attributes and isinstance(codebase, CodebaseContent):
        setup_codebase(ctx, app, codebase, space_id, settings)

    target.version = version
    target.type = scratch.type
    target.fields = fields
    log.debug("patch_applied", field_count=len(fields))


# ----------------------------------------------------------------------
# Outbound: WorkItem -> resource object
# ----------------------------------------------------------------------


def _stub(resource_type: ResourceType, identifier: Any, self_link: str) -> RelationData:
    return RelationData(
        id=str(identifier),
        type=resource_type.value,
        links=GenericLinks(self_link=self_link),
    )


def _id_list(key: str, value: Any) -> List[Any]:
    if not isinstance(value, (list, tuple)):
        raise InternalError(f"field {key} must hold a list of ids, got {type(value).__name__}")
    return list(value)


def _project_assignees(resource: WorkItemResource, key: str, value: Any, links: LinkBuilder) -> None:
    if value is None:
        return
    resource.relationships.assignees = RelationGenericList(
        data=[_stub(ResourceType.IDENTITY, i, links.user(i)) for i in _id_list(key, value)]
    )


def _project_labels(resource: WorkItemResource, key: str, value: Any, links: LinkBuilder) -> None:
    if value is None:
        return
    resource.relationships.labels = RelationGenericList(
        data=[_stub(ResourceType.LABEL, i, links.label(i)) for i in _id_list(key, value)],
        links=GenericLinks(related=links.work_item(resource.id) + "/labels"),
    )


def _project_boardcolumns(resource: WorkItemResource, key: str, value: Any, links: LinkBuilder) -> None:
    if value is None:
        return
    resource.relationships.boardcolumns = RelationGenericList(
        data=[_stub(ResourceType.BOARD_COLUMN, i, links.board_column(i)) for i in _id_list(key, value)]
    )


def _to_one(resource_type: ResourceType, identifier: Any, href: str) -> RelationGeneric:
    return RelationGeneric(
        data=_stub(resource_type, identifier, href),
        links=GenericLinks(self_link=href, related=href),
    )


def _project_creator(resource: WorkItemResource, key: str, value: Any, links: LinkBuilder) -> None:
    if value is not None:
        resource.relationships.creator = _to_one(ResourceType.IDENTITY, value, links.user(value))


def _project_iteration(resource: WorkItemResource, key: str, value: Any, links: LinkBuilder) -> None:
    if value is not None:
        resource.relationships.iteration = _to_one(
            ResourceType.ITERATION, value, links.iteration(value)
        )


def _project_area(resource: WorkItemResource, key: str, value: Any, links: LinkBuilder) -> None:
    if value is not None:
        resource.relationships.area = _to_one(ResourceType.AREA, value, links.area(value))


def _project_title(resource: WorkItemResource, key: str, value: Any, links: LinkBuilder) -> None:
    resource.attributes[key] = html.escape(str(value)) if value is not None else None


def _project_description(resource: WorkItemResource, key: str, value: Any, links: LinkBuilder) -> None:
    description = MarkupContent.from_value(value)
    if description is None:
        return
    resource.attributes[SystemField.DESCRIPTION.value] = description.content
    resource.attributes[SystemField.DESCRIPTION_MARKUP.value] = description.markup
    resource.attributes[SystemField.DESCRIPTION_RENDERED.value] = description.render()


def _project_codebase(resource: WorkItemResource, key: str, value: Any, links: LinkBuilder) -> None:
    if value is None:
        return
    content = CodebaseContent.from_value(value)
    resource.attributes[key] = content.to_map()
    if content.codebase_id:
        resource.links.edit_codebase = links.codebase(content.codebase_id) + "/edit"


def _project_skipped(resource: WorkItemResource, key: str, value: Any, links: LinkBuilder) -> None:
    pass


def _project_attribute(resource: WorkItemResource, key: str, value: Any, links: LinkBuilder) -> None:
    resource.attributes[key] = value


_FieldProjector = Callable[[WorkItemResource, str, Any, LinkBuilder], None]

_FIELD_PROJECTORS: Dict[SystemField, _FieldProjector] = {
    SystemField.ASSIGNEES: _project_assignees,
    SystemField.LABELS: _project_labels,
    SystemField.BOARDCOLUMNS: _project_boardcolumns,
    SystemField.CREATOR: _project_creator,
    SystemField.ITERATION: _project_iteration,
    SystemField.AREA: _project_area,
    SystemField.TITLE: _project_title,
    SystemField.DESCRIPTION: _project_description,
    SystemField.CODEBASE: _project_codebase,
    # computed on the way out, never read from the bag
    SystemField.VERSION: _project_skipped,
    SystemField.NUMBER: _project_skipped,
    SystemField.DESCRIPTION_MARKUP: _project_skipped,
    SystemField.DESCRIPTION_RENDERED: _project_skipped,
}


def _fill_absent_relationships(resource: WorkItemResource, links: LinkBuilder) -> None:
    relationships = resource.relationships
    if relationships.creator is None:
        relationships.creator = RelationGeneric(data=None)
    if relationships.iteration is None:
        relationships.iteration = RelationGeneric(data=None)
    if relationships.area is None:
        relationships.area = RelationGeneric(data=None)
    if relationships.assignees is None:
        relationships.assignees = RelationGenericList(data=None)
    if relationships.labels is None:
        relationships.labels = RelationGenericList(
            data=[], links=GenericLinks(related=links.work_item(resource.id) + "/labels")
        )
    if relationships.boardcolumns is None:
        relationships.boardcolumns = RelationGenericList(data=[])


def to_wire(
    work_item_type: WorkItemType,
    work_item: WorkItem,
    *hooks: WorkItemConvertFunc,
    links: Optional[LinkBuilder] = None,
) -> WorkItemResource:
    """Project a stored work item to its JSON:API resource object.

    Hooks run in the given order on the finished resource; the first one to
    raise aborts the projection with its error.

    Raises:
        InternalError: ``work_item_type`` is not the item's type, or a stored
            reference field has the wrong shape.
    """
    if work_item_type.id != work_item.type:
        raise InternalError(
            f"work item {work_item.id} has type {work_item.type}, "
            f"not {work_item_type.id}"
        )
    links = links or LinkBuilder()
    wi_id = str(work_item.id)
    self_link = links.work_item(wi_id)
    space_link = links.space(work_item.space_id)

    resource = WorkItemResource(
        id=wi_id,
        type=ResourceType.WORK_ITEM.value,
        attributes={
            SystemField.VERSION.value: work_item.version,
            SystemField.NUMBER.value: work_item.number,
        },
        relationships=WorkItemRelationships(
            base_type=RelationGeneric(
                data=_stub(
                    ResourceType.WORK_ITEM_TYPE,
                    work_item.type,
                    links.work_item_type(work_item.type),
                ),
                links=GenericLinks(self_link=links.work_item_type(work_item.type)),
            ),
            space=RelationGeneric(
                data=_stub(ResourceType.SPACE, work_item.space_id, space_link),
                links=GenericLinks(self_link=space_link, related=space_link),
            ),
            workitem_links=RelationGeneric(links=GenericLinks(related=self_link + "/links")),
            children=RelationGeneric(links=GenericLinks(related=self_link + "/children")),
            events=RelationGeneric(links=GenericLinks(related=self_link + "/events")),
            comments=RelationGeneric(links=GenericLinks(related=self_link + "/comments")),
        ),
        links=WorkItemResourceLinks(self_link=self_link, related=self_link),
    )

    for key, value in work_item.fields.items():
        projector = _FIELD_PROJECTORS.get(SystemField.lookup(key), _project_attribute)
        projector(resource, key, value, links)
    _fill_absent_relationships(resource, links)

    for hook in hooks:
        hook(work_item, resource)
    return resource


def convert_work_items(
    work_item_types: Sequence[WorkItemType],
    work_items: Sequence[WorkItem],
    *hooks: WorkItemConvertFunc,
    links: Optional[LinkBuilder] = None,
) -> List[WorkItemResource]:
    """Project paired lists of types and items."""
    if len(work_item_types) != len(work_items):
        raise InternalError(
            f"got {len(work_item_types)} work item types for {len(work_items)} work items"
        )
    links = links or LinkBuilder()
    resources = []
    for work_item_type, work_item in zip(work_item_types, work_items):
        try:
            resources.append(to_wire(work_item_type, work_item, *hooks, links=links))
        except Exception as e:
            raise wrap_error(e, f"failed to convert work item {work_item.id}") from e
    return resources
