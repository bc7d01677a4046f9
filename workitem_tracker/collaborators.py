"""
Collaborator store interfaces.

The core never persists anything. It reads from and validates against these
narrow interfaces, implemented by the persistence layer. Every method takes the
caller's opaque ``ctx`` first and must receive it unchanged, so a cancelled
caller can abort the store call.

Stores signal a missing entity by raising NotFoundError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from .workitem.work_item import WorkItem, WorkItemType


class Identity(BaseModel):
    """A user as seen by the work item core."""

    model_config = ConfigDict(extra="ignore")

    id: UUID
    username: str


class Iteration(BaseModel):
    """An iteration (sprint) of a space."""

    model_config = ConfigDict(extra="ignore")

    id: UUID
    name: str
    space_id: Optional[UUID] = None


class Area(BaseModel):
    """An area of a space."""

    model_config = ConfigDict(extra="ignore")

    id: UUID
    name: str
    space_id: Optional[UUID] = None


class Label(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: UUID
    name: str


class BoardColumn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: UUID
    name: str


class Codebase(BaseModel):
    """A repository registered with a space."""

    model_config = ConfigDict(extra="ignore")

    id: UUID = Field(default_factory=uuid4)
    space_id: UUID
    type: str = "git"
    url: str
    stack_id: Optional[str] = None


class IdentityStore(ABC):
    @abstractmethod
    def is_valid(self, ctx: Any, identity_id: UUID) -> bool:
        """Return True if the identity exists."""

    @abstractmethod
    def load(self, ctx: Any, identity_id: UUID) -> Identity:
        """Load an identity or raise NotFoundError."""


class LabelStore(ABC):
    @abstractmethod
    def is_valid(self, ctx: Any, label_id: UUID) -> bool:
        """Return True if the label exists."""

    @abstractmethod
    def load(self, ctx: Any, label_id: UUID) -> Label:
        """Load a label or raise NotFoundError."""


class BoardColumnStore(ABC):
    @abstractmethod
    def is_valid(self, ctx: Any, column_id: UUID) -> bool:
        """Return True if the board column exists."""

    @abstractmethod
    def load(self, ctx: Any, column_id: UUID) -> BoardColumn:
        """Load a board column or raise NotFoundError."""


class IterationStore(ABC):
    @abstractmethod
    def check_exists(self, ctx: Any, iteration_id: UUID) -> None:
        """Raise NotFoundError unless the iteration exists."""

    @abstractmethod
    def load(self, ctx: Any, iteration_id: UUID) -> Iteration:
        """Load an iteration or raise NotFoundError."""

    @abstractmethod
    def root(self, ctx: Any, space_id: UUID) -> Iteration:
        """Load the root iteration of a space."""


class AreaStore(ABC):
    @abstractmethod
    def check_exists(self, ctx: Any, area_id: UUID) -> None:
        """Raise NotFoundError unless the area exists."""

    @abstractmethod
    def load(self, ctx: Any, area_id: UUID) -> Area:
        """Load an area or raise NotFoundError."""

    @abstractmethod
    def root(self, ctx: Any, space_id: UUID) -> Area:
        """Load the root area of a space."""


class SpaceStore(ABC):
    @abstractmethod
    def check_exists(self, ctx: Any, space_id: UUID) -> None:
        """Raise NotFoundError unless the space exists."""


class CodebaseStore(ABC):
    @abstractmethod
    def load_by_repo(self, ctx: Any, space_id: UUID, url: str) -> Optional[Codebase]:
        """Return the space's codebase for a repository URL, or None."""

    @abstractmethod
    def create(self, ctx: Any, codebase: Codebase) -> Codebase:
        """Persist a new codebase and return it."""


class WorkItemTypeStore(ABC):
    @abstractmethod
    def load(self, ctx: Any, type_id: UUID) -> WorkItemType:
        """Load a work item type or raise NotFoundError."""


class WorkItemLinkStore(ABC):
    @abstractmethod
    def work_item_has_children(self, ctx: Any, work_item_id: UUID) -> bool:
        """Return True if the item is the source of any parent/child link."""

    @abstractmethod
    def list_children(
        self, ctx: Any, work_item_id: UUID, offset: int, limit: int
    ) -> Tuple[List[WorkItem], int]:
        """Return one page of child work items and the total child count."""

    @abstractmethod
    def get_parent_id_of(
        self, ctx: Any, work_item_id: UUID, link_type_id: UUID
    ) -> Optional[UUID]:
        """Return the parent of the item along ``link_type_id`` links, if any."""


@dataclass
class Application:
    """The set of stores one call of the core works against."""

    identities: IdentityStore
    labels: LabelStore
    iterations: IterationStore
    areas: AreaStore
    spaces: SpaceStore
    codebases: CodebaseStore
    work_item_types: WorkItemTypeStore
    work_item_links: Optional[WorkItemLinkStore] = None
    board_columns: Optional[BoardColumnStore] = None
