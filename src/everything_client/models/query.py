"""Query models — Options that modify a search, shared by every transport."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

SortField = Literal["name", "path", "size", "date", "run-count"]
SortOrder = Literal["asc", "desc"]


class SearchOptions(BaseModel):
    """Options controlling a single search.

    Transports express as many of these as they can and silently ignore the
    rest; an unsupported option never causes a failure.
    """

    match_case: bool = Field(default=False, description="Case-sensitive matching")
    match_path: bool = Field(default=False, description="Match against the full path, not only the name")
    match_whole_word: bool = Field(default=False, description="Match whole words only")
    regex: bool = Field(default=False, description="Interpret the query as a regular expression")
    max_results: int | None = Field(default=None, ge=0, description="Maximum number of results to return")
    offset: int | None = Field(default=None, ge=0, description="Offset of the first result (pagination)")
    sort_by: SortField | None = Field(default=None, description="Field to sort results by")
    sort_order: SortOrder = Field(default="asc", description="Sort direction")
    include_hidden: bool = Field(default=True, description="Include hidden files")
    include_system: bool = Field(default=True, description="Include system files")
    include_directories: bool = Field(default=True, description="Include directories")
    include_files: bool = Field(default=True, description="Include files")

    def apply_filters(self, query: str) -> str:
        """Append search-syntax modifiers for the inclusion toggles.

        The engine understands ``file:``, ``folder:`` and ``attrib:`` in the
        query text itself, so every transport can honour these toggles the
        same way.

        Example:
            >>> SearchOptions(include_hidden=False).apply_filters("*.log")
            '*.log !attrib:H'
        """
        modifiers: list[str] = []
        if not self.include_directories:
            modifiers.append("file:")
        if not self.include_files:
            modifiers.append("folder:")
        if not self.include_hidden:
            modifiers.append("!attrib:H")
        if not self.include_system:
            modifiers.append("!attrib:S")
        if not modifiers:
            return query
        return " ".join([query, *modifiers]) if query else " ".join(modifiers)
