"""
Absolute resource links for JSON:API documents.
"""

from __future__ import annotations

from typing import Any, Optional

from ..config import get_settings


class LinkBuilder:
    """Builds ``{base_url}{prefix}/<collection>/<id>`` links."""

    def __init__(self, base_url: Optional[str] = None, path_prefix: Optional[str] = None):
        settings = get_settings()
        self.base_url = (base_url if base_url is not None else settings.api_base_url).rstrip("/")
        prefix = path_prefix if path_prefix is not None else settings.api_path_prefix
        self.path_prefix = "/" + prefix.strip("/") if prefix.strip("/") else ""

    def href(self, collection: str, identifier: Any) -> str:
        return f"{self.path_prefix}/{collection}/{identifier}"

    def absolute(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _link(self, collection: str, identifier: Any) -> str:
        return self.absolute(self.href(collection, identifier))

    def work_item(self, identifier: Any) -> str:
        return self._link("workitems", identifier)

    def work_item_type(self, identifier: Any) -> str:
        return self._link("workitemtypes", identifier)

    def space(self, identifier: Any) -> str:
        return self._link("spaces", identifier)

    def user(self, identifier: Any) -> str:
        return self._link("users", identifier)

    def iteration(self, identifier: Any) -> str:
        return self._link("iterations", identifier)

    def area(self, identifier: Any) -> str:
        return self._link("areas", identifier)

    def label(self, identifier: Any) -> str:
        return self._link("labels", identifier)

    def board_column(self, identifier: Any) -> str:
        return self._link("boardcolumns", identifier)

    def codebase(self, identifier: Any) -> str:
        return self._link("codebases", identifier)
