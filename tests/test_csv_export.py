"""Unit tests for the CSV export engine."""

import csv
import io
from uuid import uuid4

import pytest

from workitem_tracker.config import Settings
from workitem_tracker.csv_export import convert_work_items_to_csv, extract_columns
from workitem_tracker.errors import BadValueError, InternalError, NotFoundError
from workitem_tracker.workitem.enums import Kind
from workitem_tracker.workitem.field_types import enum_of, list_of, simple
from workitem_tracker.workitem.work_item import FieldDefinition, WorkItem, WorkItemType


def make_type(name: str, **fields) -> WorkItemType:
    """Create a type whose fields are given as key=(label, field_type)."""
    return WorkItemType(
        name=name,
        fields={
            key: FieldDefinition(label=label, type=field_type)
            for key, (label, field_type) in fields.items()
        },
    )


def parse(text: str):
    return list(csv.reader(io.StringIO(text)))


class TestExtractColumns:
    """Tests for column ordering."""

    def test_sorted_by_label_with_type_first(self):
        t = make_type("T", b=("Zeta", simple(Kind.STRING)), a=("Alpha", simple(Kind.STRING)))
        assert extract_columns([t]) == (["_type", "a", "b"], ["_Type", "Alpha", "Zeta"])

    def test_first_label_wins_for_shared_key(self):
        t1 = make_type("T1", size=("Size", simple(Kind.INTEGER)))
        t2 = make_type("T2", size=("Estimate", simple(Kind.INTEGER)))
        assert extract_columns([t1, t2]) == (["_type", "size"], ["_Type", "Size"])

    def test_equal_labels_are_ordered_by_key(self):
        t = make_type("T", y=("Same", simple(Kind.STRING)), x=("Same", simple(Kind.STRING)))
        assert extract_columns([t])[0] == ["_type", "x", "y"]


class TestConvertWorkItemsToCsv:
    """Tests for the exported text."""

    def test_empty_export(self, ctx, app):
        assert convert_work_items_to_csv(ctx, app, [], []) == ("", [])

    def test_two_types(self, ctx, app, space_id):
        t1 = make_type("T1", title=("Title", simple(Kind.STRING)))
        t2 = make_type("T2", points=("Points", simple(Kind.INTEGER)))
        items = [
            WorkItem(space_id=space_id, type=t1.id, fields={"title": "Fix bug"}),
            WorkItem(space_id=space_id, type=t2.id, fields={"points": 5}),
        ]
        text, labels = convert_work_items_to_csv(ctx, app, [t1, t2], items)
        assert labels == ["_Type", "Points", "Title"]
        assert text == "_Type,Points,Title\nT1,,Fix bug\nT2,5,\n"

    def test_without_header(self, ctx, app, space_id):
        t1 = make_type("T1", title=("Title", simple(Kind.STRING)))
        items = [WorkItem(space_id=space_id, type=t1.id, fields={"title": "Fix bug"})]
        text, labels = convert_work_items_to_csv(ctx, app, [t1], items, include_header=False)
        assert text == "T1,Fix bug\n"
        assert labels == ["_Type", "Title"]

    def test_quotes_special_characters(self, ctx, app, space_id):
        t = make_type("Bug", title=("Title", simple(Kind.STRING)))
        title = 'Crash on "save", sometimes\nmultiline'
        items = [WorkItem(space_id=space_id, type=t.id, fields={"title": title})]
        text, _ = convert_work_items_to_csv(ctx, app, [t], items)
        assert parse(text) == [["_Type", "Title"], ["Bug", title]]

    def test_references_are_resolved(self, ctx, app, space_id):
        alice = app.identities.add("alice")
        bob = app.identities.add("bob")
        bug = app.labels.add("bug")
        sprint = app.iterations.add("Sprint 1", space_id)
        t = make_type(
            "Task",
            assignees=("Assignees", list_of(Kind.USER)),
            labels=("Labels", list_of(Kind.LABEL)),
            iteration=("Iteration", simple(Kind.ITERATION)),
        )
        item = WorkItem(
            space_id=space_id,
            type=t.id,
            fields={
                "assignees": [str(alice.id), str(bob.id)],
                "labels": [str(bug.id)],
                "iteration": str(sprint.id),
            },
        )
        text, _ = convert_work_items_to_csv(ctx, app, [t], [item])
        assert parse(text) == [
            ["_Type", "Assignees", "Iteration", "Labels"],
            ["Task", "alice;bob", "Sprint 1", "bug"],
        ]

    def test_list_delimiter_is_configurable(self, ctx, app, space_id):
        t = make_type("Task", tags=("Tags", list_of(Kind.STRING)))
        item = WorkItem(space_id=space_id, type=t.id, fields={"tags": ["a", "b"]})
        text, _ = convert_work_items_to_csv(
            ctx, app, [t], [item], settings=Settings(csv_list_delimiter="|")
        )
        assert parse(text)[1] == ["Task", "a|b"]

    def test_enum_and_missing_values(self, ctx, app, space_id):
        t = make_type(
            "Task",
            state=("State", enum_of(Kind.STRING, ["new", "closed"])),
            done=("Done", simple(Kind.BOOLEAN)),
            tags=("Tags", list_of(Kind.STRING)),
        )
        item = WorkItem(space_id=space_id, type=t.id, fields={"state": "closed"})
        text, _ = convert_work_items_to_csv(ctx, app, [t], [item])
        assert parse(text)[1] == ["Task", "", "closed", ""]

    def test_each_reference_is_loaded_once(self, ctx, app, space_id):
        alice = app.identities.add("alice")
        t = make_type("Task", assignees=("Assignees", list_of(Kind.USER)))
        items = [
            WorkItem(space_id=space_id, type=t.id, fields={"assignees": [str(alice.id)] * 2})
            for _ in range(3)
        ]
        convert_work_items_to_csv(ctx, app, [t], items)
        assert app.identities.loads[alice.id] == 1
        assert set(map(id, app.identities.contexts)) == {id(ctx)}

    def test_unknown_type_fails_naming_the_item(self, ctx, app, space_id):
        t = make_type("Task", title=("Title", simple(Kind.STRING)))
        stray = WorkItem(space_id=space_id, type=uuid4())
        items = [WorkItem(space_id=space_id, type=t.id), stray]
        with pytest.raises(InternalError, match=str(stray.id)):
            convert_work_items_to_csv(ctx, app, [t], items)

    def test_bad_value_fails_the_export(self, ctx, app, space_id):
        t = make_type("Task", points=("Points", simple(Kind.INTEGER)))
        item = WorkItem(space_id=space_id, type=t.id, fields={"points": "five"})
        with pytest.raises(BadValueError, match=str(item.id)):
            convert_work_items_to_csv(ctx, app, [t], [item])

    def test_missing_reference_fails_the_export(self, ctx, app, space_id):
        t = make_type("Task", owner=("Owner", simple(Kind.USER)))
        item = WorkItem(space_id=space_id, type=t.id, fields={"owner": str(uuid4())})
        with pytest.raises(NotFoundError, match="field key: owner"):
            convert_work_items_to_csv(ctx, app, [t], [item])

    def test_field_keyed_like_type_column_keeps_its_value(self, ctx, app, space_id):
        t = make_type("Task", _type=("Kind", simple(Kind.STRING)))
        item = WorkItem(space_id=space_id, type=t.id, fields={"_type": "custom"})
        text, labels = convert_work_items_to_csv(ctx, app, [t], [item])
        assert labels == ["_Type", "Kind"]
        assert parse(text) == [["_Type", "Kind"], ["Task", "custom"]]

    def test_duplicate_types_are_ignored(self, ctx, app, space_id):
        t = make_type("Task", title=("Title", simple(Kind.STRING)))
        item = WorkItem(space_id=space_id, type=t.id, fields={"title": "x"})
        text, labels = convert_work_items_to_csv(ctx, app, [t, t], [item])
        assert labels == ["_Type", "Title"]
        assert text == "_Type,Title\nTask,x\n"
