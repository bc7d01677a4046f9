"""
Relationship resolver.

Validates and resolves the identifiers stored in reference-kind fields (user,
iteration, area, label, board column) against the collaborator stores, and
supplies the root iteration/area defaults of a space.

A resolver instance belongs to exactly one logical call: one patch
application, one projection or one export. Its lookup cache lives as long as
the instance and is never shared between calls.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Tuple
from uuid import UUID

from .collaborators import Application
from .errors import BadParameterError, InternalError, NotFoundError, wrap_error
from .workitem.enums import Kind

logger = logging.getLogger(__name__)

_ENTITY_NAMES: Dict[Kind, str] = {
    Kind.USER: "user",
    Kind.ITERATION: "iteration",
    Kind.AREA: "area",
    Kind.LABEL: "label",
    Kind.BOARD_COLUMN: "board column",
}


def parse_id(value: Any, parameter: str) -> UUID:
    """Parse an identifier, raising BadParameterError naming ``parameter``."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError as e:
        raise BadParameterError(parameter, value) from e


class RelationshipResolver:
    """Call-scoped validator and name resolver for reference kinds."""

    def __init__(self, ctx: Any, app: Application):
        self.ctx = ctx
        self.app = app
        self._cache: Dict[Tuple[Kind, str], str] = {}
        self._probes: Dict[Kind, Callable[[UUID], bool]] = {
            Kind.USER: self._user_exists,
            Kind.LABEL: self._label_exists,
            Kind.BOARD_COLUMN: self._board_column_exists,
            Kind.ITERATION: self._iteration_exists,
            Kind.AREA: self._area_exists,
        }
        self._loaders: Dict[Kind, Callable[[UUID], str]] = {
            Kind.USER: self._load_user,
            Kind.LABEL: self._load_label,
            Kind.BOARD_COLUMN: self._load_board_column,
            Kind.ITERATION: self._load_iteration,
            Kind.AREA: self._load_area,
        }

    # ------------------------------------------------------------------
    # Existence probes and loaders, one per reference kind
    # ------------------------------------------------------------------

    def _user_exists(self, identifier: UUID) -> bool:
        return self.app.identities.is_valid(self.ctx, identifier)

    def _label_exists(self, identifier: UUID) -> bool:
        return self.app.labels.is_valid(self.ctx, identifier)

    def _board_column_exists(self, identifier: UUID) -> bool:
        # Without a board column store a well-formed id is all we can check.
        if self.app.board_columns is None:
            return True
        return self.app.board_columns.is_valid(self.ctx, identifier)

    def _iteration_exists(self, identifier: UUID) -> bool:
        try:
            self.app.iterations.check_exists(self.ctx, identifier)
        except NotFoundError:
            return False
        return True

    def _area_exists(self, identifier: UUID) -> bool:
        try:
            self.app.areas.check_exists(self.ctx, identifier)
        except NotFoundError:
            return False
        return True

    def _load_user(self, identifier: UUID) -> str:
        return self.app.identities.load(self.ctx, identifier).username

    def _load_label(self, identifier: UUID) -> str:
        return self.app.labels.load(self.ctx, identifier).name

    def _load_board_column(self, identifier: UUID) -> str:
        if self.app.board_columns is None:
            return str(identifier)
        return self.app.board_columns.load(self.ctx, identifier).name

    def _load_iteration(self, identifier: UUID) -> str:
        return self.app.iterations.load(self.ctx, identifier).name

    def _load_area(self, identifier: UUID) -> str:
        return self.app.areas.load(self.ctx, identifier).name

    def _require_reference(self, kind: Kind) -> None:
        if not kind.is_reference:
            raise InternalError(f"kind '{kind.value}' is not a reference kind")

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def is_valid(self, kind: Kind, identifier: Any) -> bool:
        """Return True if ``identifier`` is well formed and exists in its store."""
        self._require_reference(kind)
        try:
            parsed = UUID(str(identifier))
        except ValueError:
            return False
        return self._probes[kind](parsed)

    def load(self, kind: Kind, identifier: Any, field_key: str = "") -> str:
        """Fetch the display name of a referenced entity.

        Raises:
            BadParameterError: if the identifier is malformed.
            NotFoundError: if the entity does not exist.
        """
        self._require_reference(kind)
        parsed = parse_id(identifier, field_key or kind.value)
        try:
            return self._loaders[kind](parsed)
        except Exception as e:
            raise wrap_error(
                e, f"failed to retrieve {_ENTITY_NAMES[kind]} for field key: {field_key}"
            ) from e

    def resolve(self, kind: Kind, token: str, field_key: str = "") -> str:
        """Resolve a token to its display name, consulting the call cache first.

        Tokens of non-reference kinds are returned unchanged.
        """
        if not kind.is_reference:
            return token
        key = (kind, token)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        name = self.load(kind, token, field_key)
        self._cache[key] = name
        return name

    def validate_identifiers(
        self,
        kind: Kind,
        identifiers: Iterable[Any],
        path: str,
        distinct: bool = False,
    ) -> List[str]:
        """Check every identifier exists and return them in canonical form.

        The first invalid identifier raises BadParameterError naming ``path``
        and the offending value. With ``distinct`` repeated identifiers are
        dropped, keeping the first occurrence.
        """
        result: List[str] = []
        seen = set()
        for raw in identifiers:
            parsed = parse_id(raw, path)
            try:
                valid = self._probes[kind](parsed)
            except Exception as e:
                raise wrap_error(e, f"failed to validate {path} '{raw}'") from e
            if not valid:
                raise BadParameterError(path, raw)
            canonical = str(parsed)
            if distinct and canonical in seen:
                continue
            seen.add(canonical)
            result.append(canonical)
        return result

    def ensure_exists(self, kind: Kind, identifier: Any, path: str) -> str:
        """Check an iteration or area id exists and return it in canonical form."""
        if kind not in (Kind.ITERATION, Kind.AREA):
            raise InternalError(f"existence check not supported for kind '{kind.value}'")
        parsed = parse_id(identifier, path)
        store = self.app.iterations if kind == Kind.ITERATION else self.app.areas
        try:
            store.check_exists(self.ctx, parsed)
        except NotFoundError as e:
            raise NotFoundError(path, identifier) from e
        except Exception as e:
            raise wrap_error(
                e, f"unknown error when verifying the {_ENTITY_NAMES[kind]} id {identifier}"
            ) from e
        return str(parsed)

    def root_iteration_id(self, space_id: UUID) -> str:
        """Return the id of the space's root iteration."""
        self._check_space(space_id)
        logger.debug("Loading root iteration for space %s", space_id)
        try:
            root = self.app.iterations.root(self.ctx, space_id)
        except Exception as e:
            raise wrap_error(e, f"failed to load root iteration of space {space_id}") from e
        return str(root.id)

    def root_area_id(self, space_id: UUID) -> str:
        """Return the id of the space's root area."""
        self._check_space(space_id)
        logger.debug("Loading root area for space %s", space_id)
        try:
            root = self.app.areas.root(self.ctx, space_id)
        except Exception as e:
            raise wrap_error(e, f"failed to load root area of space {space_id}") from e
        return str(root.id)

    def _check_space(self, space_id: UUID) -> None:
        try:
            self.app.spaces.check_exists(self.ctx, space_id)
        except NotFoundError as e:
            raise NotFoundError("space", space_id) from e
