"""
Codebase content attached to a work item.

CodebaseContent points a work item at a location inside a git repository. The
``codebase_id`` links it to a Codebase entity owned by the codebase store; it is
stamped by the projector the first time the content is stored.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import BadParameterError

REPOSITORY_KEY = "repository"
BRANCH_KEY = "branch"
FILE_NAME_KEY = "filename"
LINE_NUMBER_KEY = "linenumber"
CODEBASE_ID_KEY = "codebaseid"

_GIT_URL_PATTERN = re.compile(
    r"^(?:git|ssh|https?|git@[-\w.]+):(//)?(.*?)(\.git)(/?|#[-\d\w._]+?)$"
)


class CodebaseContent(BaseModel):
    """Repository location referenced by a work item."""

    model_config = ConfigDict(extra="forbid")

    repository: str = Field(..., description="Git URL of the repository")
    branch: Optional[str] = Field(None, description="Branch name")
    file_name: Optional[str] = Field(None, description="Path of the file")
    line_number: Optional[int] = Field(None, ge=0, description="Line in the file")
    codebase_id: Optional[str] = Field(
        None, description="ID of the Codebase entity this content belongs to"
    )

    @classmethod
    def from_value(cls, value: Any) -> "CodebaseContent":
        """Parse a stored or submitted codebase value.

        Raises:
            BadParameterError: if the value is not a mapping, the repository is
                missing or is not a git URL.
        """
        if isinstance(value, CodebaseContent):
            return value.model_copy()
        if not isinstance(value, dict):
            raise BadParameterError("system.codebase", value)

        line_number = value.get(LINE_NUMBER_KEY)
        if isinstance(line_number, float) and line_number.is_integer():
            line_number = int(line_number)
        try:
            content = cls(
                repository=str(value.get(REPOSITORY_KEY) or ""),
                branch=value.get(BRANCH_KEY),
                file_name=value.get(FILE_NAME_KEY),
                line_number=line_number,
                codebase_id=value.get(CODEBASE_ID_KEY),
            )
        except ValidationError as e:
            raise BadParameterError("system.codebase", value) from e
        content.validate_repository()
        return content

    def validate_repository(self) -> None:
        if not self.repository.strip():
            raise BadParameterError(
                "system.codebase",
                message=f"{REPOSITORY_KEY} is mandatory",
            )
        if not _GIT_URL_PATTERN.match(self.repository):
            raise BadParameterError("system.codebase.repository", self.repository)

    def to_map(self) -> Dict[str, Any]:
        """Wire representation; optional keys are omitted when unset."""
        result: Dict[str, Any] = {REPOSITORY_KEY: self.repository}
        if self.branch:
            result[BRANCH_KEY] = self.branch
        if self.file_name:
            result[FILE_NAME_KEY] = self.file_name
        if self.line_number is not None:
            result[LINE_NUMBER_KEY] = self.line_number
        if self.codebase_id:
            result[CODEBASE_ID_KEY] = self.codebase_id
        return result
