"""Test configuration and fixtures."""

from uuid import UUID, uuid4

import pytest

from fakes import BASE_URL, make_application
from workitem_tracker.collaborators import Application
from workitem_tracker.config import Settings, reset_settings
from workitem_tracker.jsonapi.links import LinkBuilder
from workitem_tracker.workitem.enums import Kind, SystemField
from workitem_tracker.workitem.field_types import list_of, simple
from workitem_tracker.workitem.work_item import FieldDefinition, WorkItem, WorkItemType


class Ctx:
    """Opaque call context; stores must receive this exact object."""

    def __repr__(self):
        return "<Ctx>"


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Keep tests independent of WIT_* variables in the environment."""
    for name in ("WIT_API_BASE_URL", "WIT_API_PATH_PREFIX", "WIT_CSV_LIST_DELIMITER"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings() -> Settings:
    return Settings(api_base_url=BASE_URL)


@pytest.fixture
def links() -> LinkBuilder:
    return LinkBuilder(BASE_URL, "/api")


@pytest.fixture
def ctx() -> Ctx:
    return Ctx()


@pytest.fixture
def space_id() -> UUID:
    return uuid4()


@pytest.fixture
def app(space_id) -> Application:
    """Application with one space that has a root iteration and a root area."""
    application = make_application()
    application.spaces.ids.add(space_id)
    application.iterations.add("Root iteration", space_id, root=True)
    application.areas.add("Root area", space_id, root=True)
    return application


@pytest.fixture
def task_type(space_id) -> WorkItemType:
    """A work item type declaring the common system fields."""
    return WorkItemType(
        name="Task",
        space_id=space_id,
        fields={
            SystemField.TITLE.value: FieldDefinition(label="Title", type=simple(Kind.STRING)),
            SystemField.DESCRIPTION.value: FieldDefinition(
                label="Description", type=simple(Kind.MARKUP)
            ),
            SystemField.ASSIGNEES.value: FieldDefinition(
                label="Assignees", type=list_of(Kind.USER)
            ),
            SystemField.LABELS.value: FieldDefinition(label="Labels", type=list_of(Kind.LABEL)),
            SystemField.ITERATION.value: FieldDefinition(
                label="Iteration", type=simple(Kind.ITERATION)
            ),
            SystemField.AREA.value: FieldDefinition(label="Area", type=simple(Kind.AREA)),
            SystemField.CREATOR.value: FieldDefinition(label="Creator", type=simple(Kind.USER)),
        },
    )


@pytest.fixture
def work_item(app, task_type, space_id) -> WorkItem:
    """A stored work item of ``task_type`` with a creator, root iteration and area."""
    app.work_item_types.add(task_type)
    creator = app.identities.add("creator")
    return WorkItem(
        space_id=space_id,
        type=task_type.id,
        number=7,
        version=3,
        fields={
            SystemField.TITLE.value: "Existing title",
            SystemField.CREATOR.value: str(creator.id),
            SystemField.ITERATION.value: str(app.iterations.roots[space_id].id),
            SystemField.AREA.value: str(app.areas.roots[space_id].id),
        },
    )
