"""
directory/models.py -- Domain dataclasses for the resource directory.

Pure data containers with zero logic. Filtering, sorting and persistence live
in directory/store.py; the filter state itself lives in core/filters.py.

id is None before the record is written to the database.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Category:
    """A label used to filter resources."""

    name: str
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert


@dataclass
class Resource:
    """A directory entry.

    category_ids holds every category the resource belongs to. The store keeps
    them in an association table; the list is ordered by category name so the
    cards render tags in a stable order.
    """

    title: str
    url: str
    description: str = ""
    category_ids: list[int] = field(default_factory=list)
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
