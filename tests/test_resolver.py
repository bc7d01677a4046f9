"""Unit tests for the relationship resolver."""

from uuid import uuid4

import pytest

from workitem_tracker.errors import BadParameterError, InternalError, NotFoundError
from workitem_tracker.resolver import RelationshipResolver
from workitem_tracker.workitem.enums import Kind

from fakes import make_application


class TestIsValid:
    """Tests for existence checks."""

    def test_known_user_is_valid(self, ctx, app):
        user = app.identities.add("alice")
        assert RelationshipResolver(ctx, app).is_valid(Kind.USER, user.id)

    def test_unknown_user_is_invalid(self, ctx, app):
        assert not RelationshipResolver(ctx, app).is_valid(Kind.USER, uuid4())

    def test_malformed_id_is_invalid(self, ctx, app):
        assert not RelationshipResolver(ctx, app).is_valid(Kind.LABEL, "not-a-uuid")

    def test_iteration_not_found_is_invalid(self, ctx, app):
        assert not RelationshipResolver(ctx, app).is_valid(Kind.ITERATION, uuid4())

    def test_non_reference_kind_is_internal_error(self, ctx, app):
        with pytest.raises(InternalError):
            RelationshipResolver(ctx, app).is_valid(Kind.STRING, "x")

    def test_board_column_without_store_accepts_any_uuid(self, ctx):
        app = make_application(with_board_columns=False)
        resolver = RelationshipResolver(ctx, app)
        column_id = uuid4()
        assert resolver.is_valid(Kind.BOARD_COLUMN, column_id)
        assert resolver.load(Kind.BOARD_COLUMN, column_id) == str(column_id)


class TestResolve:
    """Tests for display name resolution and caching."""

    def test_resolves_user_to_username(self, ctx, app):
        user = app.identities.add("alice")
        assert RelationshipResolver(ctx, app).resolve(Kind.USER, str(user.id)) == "alice"

    def test_resolves_each_reference_kind(self, ctx, app, space_id):
        label = app.labels.add("bug")
        column = app.board_columns.add("In Progress")
        iteration = app.iterations.add("Sprint 1", space_id)
        area = app.areas.add("Backend", space_id)
        resolver = RelationshipResolver(ctx, app)
        assert resolver.resolve(Kind.LABEL, str(label.id)) == "bug"
        assert resolver.resolve(Kind.BOARD_COLUMN, str(column.id)) == "In Progress"
        assert resolver.resolve(Kind.ITERATION, str(iteration.id)) == "Sprint 1"
        assert resolver.resolve(Kind.AREA, str(area.id)) == "Backend"

    def test_non_reference_tokens_pass_through(self, ctx, app):
        assert RelationshipResolver(ctx, app).resolve(Kind.STRING, "text") == "text"

    def test_cache_loads_each_id_once(self, ctx, app):
        user = app.identities.add("alice")
        resolver = RelationshipResolver(ctx, app)
        for _ in range(3):
            resolver.resolve(Kind.USER, str(user.id))
        assert app.identities.loads[user.id] == 1

    def test_cache_is_per_resolver(self, ctx, app):
        user = app.identities.add("alice")
        RelationshipResolver(ctx, app).resolve(Kind.USER, str(user.id))
        RelationshipResolver(ctx, app).resolve(Kind.USER, str(user.id))
        assert app.identities.loads[user.id] == 2

    def test_cache_is_keyed_by_kind(self, ctx, app, space_id):
        iteration = app.iterations.add("Sprint 1", space_id)
        resolver = RelationshipResolver(ctx, app)
        assert resolver.resolve(Kind.ITERATION, str(iteration.id)) == "Sprint 1"
        with pytest.raises(NotFoundError):
            resolver.resolve(Kind.AREA, str(iteration.id))

    def test_missing_entity_names_field_key(self, ctx, app):
        with pytest.raises(NotFoundError, match="for field key: system.assignees"):
            RelationshipResolver(ctx, app).resolve(Kind.USER, str(uuid4()), "system.assignees")

    def test_malformed_token_is_bad_parameter(self, ctx, app):
        with pytest.raises(BadParameterError):
            RelationshipResolver(ctx, app).resolve(Kind.USER, "nope", "system.creator")

    def test_passes_caller_context(self, ctx, app):
        user = app.identities.add("alice")
        RelationshipResolver(ctx, app).resolve(Kind.USER, str(user.id))
        assert app.identities.contexts == [ctx]


class TestValidateIdentifiers:
    """Tests for batch validation of relationship ids."""

    def test_returns_canonical_ids(self, ctx, app):
        user = app.identities.add("alice")
        result = RelationshipResolver(ctx, app).validate_identifiers(
            Kind.USER, [str(user.id).upper()], "data.relationships.assignees.data.id"
        )
        assert result == [str(user.id)]

    def test_keeps_duplicates_by_default(self, ctx, app):
        user = app.identities.add("alice")
        ids = [str(user.id), str(user.id)]
        result = RelationshipResolver(ctx, app).validate_identifiers(Kind.USER, ids, "p")
        assert result == ids

    def test_distinct_keeps_first_occurrence_order(self, ctx, app):
        a = app.labels.add("a")
        b = app.labels.add("b")
        ids = [str(b.id), str(a.id), str(b.id)]
        result = RelationshipResolver(ctx, app).validate_identifiers(
            Kind.LABEL, ids, "p", distinct=True
        )
        assert result == [str(b.id), str(a.id)]

    def test_unknown_id_names_path_and_value(self, ctx, app):
        missing = str(uuid4())
        with pytest.raises(BadParameterError) as exc_info:
            RelationshipResolver(ctx, app).validate_identifiers(
                Kind.LABEL, [missing], "data.relationships.labels.data.id"
            )
        assert exc_info.value.parameter == "data.relationships.labels.data.id"
        assert exc_info.value.value == missing

    def test_malformed_id_is_bad_parameter(self, ctx, app):
        with pytest.raises(BadParameterError):
            RelationshipResolver(ctx, app).validate_identifiers(Kind.USER, ["x"], "p")


class TestRoots:
    """Tests for root iteration/area lookups and existence checks."""

    def test_root_iteration(self, ctx, app, space_id):
        root = app.iterations.roots[space_id]
        assert RelationshipResolver(ctx, app).root_iteration_id(space_id) == str(root.id)

    def test_root_area(self, ctx, app, space_id):
        root = app.areas.roots[space_id]
        assert RelationshipResolver(ctx, app).root_area_id(space_id) == str(root.id)

    def test_unknown_space_is_not_found(self, ctx, app):
        with pytest.raises(NotFoundError) as exc_info:
            RelationshipResolver(ctx, app).root_iteration_id(uuid4())
        assert exc_info.value.entity == "space"

    def test_ensure_exists_missing_iteration(self, ctx, app):
        missing = str(uuid4())
        with pytest.raises(NotFoundError) as exc_info:
            RelationshipResolver(ctx, app).ensure_exists(
                Kind.ITERATION, missing, "data.relationships.iteration"
            )
        assert exc_info.value.entity == "data.relationships.iteration"

    def test_ensure_exists_malformed_is_bad_parameter(self, ctx, app):
        with pytest.raises(BadParameterError):
            RelationshipResolver(ctx, app).ensure_exists(
                Kind.AREA, "bad", "data.relationships.area"
            )

    def test_ensure_exists_rejects_other_kinds(self, ctx, app):
        with pytest.raises(InternalError):
            RelationshipResolver(ctx, app).ensure_exists(Kind.USER, uuid4(), "p")
