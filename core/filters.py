"""
core/filters.py -- Filter state for the resource listing and its query string.

ResourceFilters is the single source of truth for what the home page shows:
the selected categories, how they combine (mode), the sort order and the
free-text search. The query string derived from it is both the URL of the
listing fetch and the key of the listing cache, so two equal states always
produce the same string.

The dataclass is frozen. Every mutator returns a new instance, which lets the
page build one link per category ("what the state would be if this tag were
clicked") without copying by hand.

Wire format (key order is fixed):
    categories=3;7&mode=in&sortBy=newest&search=python

Layer rule: pure functions over stdlib only. No imports from api/, web/,
auth/, directory/, or cache/.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from urllib.parse import quote

MODES = ("in", "all")
SORT_OPTIONS = ("newest", "oldest", "alphabetical")

DEFAULT_MODE = "in"
DEFAULT_SORT = "newest"

_SEPARATOR = ";"
_MAX_SEARCH_LENGTH = 200
# Largest value a SQL BIGINT / SQLite INTEGER column can hold.
MAX_ID = 2**63 - 1


def _parse_category_ids(raw: str | None) -> tuple[int, ...]:
    """Split a ';'-joined id list, dropping malformed tokens and duplicates.

    Only ASCII digits count: str.isdigit() also accepts superscripts such as
    "²", which int() rejects. Ids outside 1..MAX_ID are dropped.
    """
    if not raw:
        return ()
    seen: set[int] = set()
    result: list[int] = []
    for token in raw.split(_SEPARATOR):
        token = token.strip()
        if not (token.isascii() and token.isdigit()):
            continue
        value = int(token)
        if not 1 <= value <= MAX_ID:
            continue
        if value not in seen:
            seen.add(value)
            result.append(value)
    return tuple(result)


@dataclass(frozen=True)
class ResourceFilters:
    """Immutable listing filter state.

    categories -- selected category ids, in selection order
    mode       -- "in": any selected category matches; "all": every one must
    sort_by    -- "newest" | "oldest" | "alphabetical"
    search     -- free text, matched against title and description
    """

    categories: tuple[int, ...] = field(default_factory=tuple)
    mode: str = DEFAULT_MODE
    sort_by: str = DEFAULT_SORT
    search: str = ""

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_query(cls, params: Mapping[str, str]) -> ResourceFilters:
        """Build filters from query parameters, falling back to defaults.

        Accepts any mapping (Starlette QueryParams, a plain dict). Unknown
        modes and sort options are replaced by the defaults rather than
        rejected, so a hand-edited URL still renders a listing.
        """
        return cls(
            categories=_parse_category_ids(params.get("categories")),
            mode=_clean_mode(params.get("mode")),
            sort_by=_clean_sort(params.get("sortBy")),
            search=_clean_search(params.get("search")),
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def toggle_category(self, category_id: int) -> ResourceFilters:
        """Remove category_id if selected, append it otherwise."""
        if category_id in self.categories:
            remaining = tuple(c for c in self.categories if c != category_id)
            return replace(self, categories=remaining)
        return replace(self, categories=self.categories + (category_id,))

    def reset_categories(self) -> ResourceFilters:
        return replace(self, categories=())

    def with_mode(self, mode: str) -> ResourceFilters:
        return replace(self, mode=_clean_mode(mode))

    def with_sort(self, sort_by: str) -> ResourceFilters:
        return replace(self, sort_by=_clean_sort(sort_by))

    def with_search(self, search: str) -> ResourceFilters:
        return replace(self, search=_clean_search(search))

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    def is_selected(self, category_id: int) -> bool:
        return category_id in self.categories

    def to_query_string(self) -> str:
        """Serialize to the listing query string (fixed key order)."""
        pairs = [
            ("categories", _SEPARATOR.join(str(c) for c in self.categories)),
            ("mode", self.mode),
            ("sortBy", self.sort_by),
            ("search", self.search),
        ]
        return "&".join(f"{key}={quote(value, safe=_SEPARATOR)}" for key, value in pairs)

    def selected_label(self) -> str | None:
        """Human-readable count of selected categories, None when empty."""
        count = len(self.categories)
        if count == 0:
            return None
        if count == 1:
            return "1 category selected"
        return f"{count} categories selected"


# ---------------------------------------------------------------------------
# Sanitizers
# ---------------------------------------------------------------------------


def _clean_mode(mode: str | None) -> str:
    return mode if mode in MODES else DEFAULT_MODE


def _clean_sort(sort_by: str | None) -> str:
    return sort_by if sort_by in SORT_OPTIONS else DEFAULT_SORT


def _clean_search(search: str | None) -> str:
    return (search or "").strip()[:_MAX_SEARCH_LENGTH]
