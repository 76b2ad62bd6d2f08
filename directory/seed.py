"""
directory/seed.py -- Bulk import of categories and resources from JSON.

Seed file shape:

    {
      "categories": [{"name": "Python"}, {"name": "Databases"}],
      "resources": [
        {
          "title": "SQLAlchemy docs",
          "url": "https://docs.sqlalchemy.org",
          "description": "Core and ORM reference",
          "categories": ["Python", "Databases"],
          "created_at": "2024-03-01T10:00:00+00:00"
        }
      ]
    }

Categories are matched by name: an existing category is reused, a missing one
is created, including names that only appear on a resource. Entries without a
title or url, or with a non-list "categories", are skipped and reported, never
fatal.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from directory.models import Category, Resource
from directory.store import ResourceStore

logger = logging.getLogger("resdir.seed")


@dataclass
class SeedResult:
    categories_created: int = 0
    resources_created: int = 0
    errors: list[str] = field(default_factory=list)


def load_seed_file(path: str) -> dict:
    """Read and parse a seed file. Raises ValueError on unreadable or invalid JSON."""
    file_path = Path(path).resolve()
    if not file_path.is_file():
        raise ValueError(f"'{path}' is not a readable file.")
    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Could not read seed file '{path}': {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("Seed file must contain a JSON object.")
    return data


def _list_field(data: dict, key: str, result: SeedResult) -> list:
    """Return data[key] when it is a list; record an error and return [] otherwise."""
    value = data.get(key, [])
    if isinstance(value, list):
        return value
    result.errors.append(f"'{key}' ignored (expected a list, got {type(value).__name__})")
    return []


def seed_directory(store: ResourceStore, data: dict) -> SeedResult:
    """Create the categories and resources described by data."""
    result = SeedResult()
    ids_by_name = {c.name: c.id for c in store.list_categories()}

    def category_id(name: str) -> int:
        if name not in ids_by_name:
            ids_by_name[name] = store.create_category(Category(name=name))
            result.categories_created += 1
        return ids_by_name[name]

    for entry in _list_field(data, "categories", result):
        name = str(entry.get("name", "")).strip() if isinstance(entry, dict) else ""
        if not name:
            result.errors.append(f"category skipped (no name): {entry!r}")
            continue
        category_id(name)

    for index, entry in enumerate(_list_field(data, "resources", result)):
        if not isinstance(entry, dict) or not entry.get("title") or not entry.get("url"):
            result.errors.append(f"resource #{index} skipped (title and url are required)")
            continue
        if not isinstance(entry.get("categories", []), list):
            result.errors.append(f"resource #{index} skipped (categories must be a list of names)")
            continue
        names = [str(n).strip() for n in entry.get("categories", []) if str(n).strip()]
        store.create_resource(
            Resource(
                title=str(entry["title"]).strip(),
                url=str(entry["url"]).strip(),
                description=str(entry.get("description") or "").strip(),
                category_ids=[category_id(n) for n in names],
                created_at=str(entry.get("created_at") or ""),
            )
        )
        result.resources_created += 1

    logger.info(
        "Seed complete: %d categories, %d resources, %d skipped",
        result.categories_created,
        result.resources_created,
        len(result.errors),
    )
    return result
