"""
Error taxonomy for the work item core.

Every failure raised by the field type system, the relationship resolver, the
JSON:API projector and the CSV exporter is one of these classes. Errors coming
from collaborator stores are wrapped with the offending field key or entity id
and re-raised, never dropped.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Optional


class WorkItemError(Exception):
    """Base class for all work item core errors.

    Attributes:
        code: Stable error code for programmatic handling
        message: Human-readable error description
        status_code: HTTP status a controller should map this error to
    """

    code = "INTERNAL"
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def wrap(self, context: str) -> "WorkItemError":
        """Return a copy of this error with ``context`` prepended to its message."""
        wrapped = copy.copy(self)
        wrapped.message = f"{context}: {self.message}"
        wrapped.args = (wrapped.message,)
        return wrapped

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "error": self.code.lower(),
            "code": self.code,
            "message": self.message,
        }


class BadParameterError(WorkItemError):
    """Raised when a request carries a malformed or disallowed value."""

    code = "BAD_PARAMETER"
    status_code = 400

    def __init__(self, parameter: str, value: Any = None, message: Optional[str] = None):
        self.parameter = parameter
        self.value = value
        if message is None:
            message = f"Bad value for parameter '{parameter}': '{value}'"
        super().__init__(message)

    @classmethod
    def from_message(cls, message: str) -> "BadParameterError":
        return cls(parameter="", value=None, message=message)


class BadValueError(BadParameterError):
    """Raised when a field value does not have the shape its Kind declares."""

    code = "BAD_VALUE"

    def __init__(self, field_key: str, kind: Any, value: Any):
        self.field_key = field_key
        self.kind = kind
        kind_name = getattr(kind, "value", kind)
        super().__init__(
            parameter=field_key,
            value=value,
            message=(
                f"Value {value!r} ({type(value).__name__}) for field '{field_key}' "
                f"does not match kind '{kind_name}'"
            ),
        )


class NotFoundError(WorkItemError):
    """Raised when a referenced entity does not exist."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with id '{entity_id}' not found")


class InternalError(WorkItemError):
    """Raised when an item or type is structurally inconsistent."""

    code = "INTERNAL"
    status_code = 500


def wrap_error(err: Exception, context: str) -> WorkItemError:
    """Wrap ``err`` with ``context``.

    Errors of this taxonomy keep their class; anything else raised by a
    collaborator becomes an InternalError. Callers raise the result ``from err``.
    """
    if isinstance(err, WorkItemError):
        return err.wrap(context)
    return InternalError(f"{context}: {err}")
