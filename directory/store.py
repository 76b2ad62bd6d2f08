"""
directory/store.py -- SQLAlchemy-backed persistence for resources and categories.

Uses SQLAlchemy Core (not ORM) so the dataclasses in directory/models.py stay
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change.

Pattern: Repository + Data Mapper. ResourceStore is the repository; the
_row_to_* functions are the mappers. Route handlers never touch SQL directly.

Filtering is driven by core.filters.ResourceFilters:
  mode "in"  -- a resource matches when it carries ANY selected category
  mode "all" -- a resource matches only when it carries EVERY selected category
  search     -- case-insensitive substring of title or description
  sort_by    -- newest / oldest by created_at (id breaks ties), or alphabetical

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = ResourceStore()
    cat_id = store.create_category(Category(name="Python"))
    store.create_resource(Resource(title="Docs", url="https://docs.python.org", category_ids=[cat_id]))
    resources = store.list_resources(ResourceFilters(categories=(cat_id,)))
    store.close()
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Column,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
    func,
    or_,
    select,
)
from sqlalchemy.engine import Engine

from core.config import get_settings
from core.filters import ResourceFilters
from directory.models import Category, Resource

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_categories = Table(
    "categories",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False, unique=True),
    Column("created_at", String(32), nullable=False),
)

_resources = Table(
    "resources",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(255), nullable=False),
    Column("description", Text, nullable=False, server_default=""),
    Column("url", String(2048), nullable=False),
    Column("created_at", String(32), nullable=False),
)

_resource_categories = Table(
    "resource_categories",
    metadata,
    Column("resource_id", Integer, ForeignKey("resources.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _order_clauses(sort_by: str) -> list:
    if sort_by == "oldest":
        return [_resources.c.created_at.asc(), _resources.c.id.asc()]
    if sort_by == "alphabetical":
        return [func.lower(_resources.c.title).asc(), _resources.c.id.asc()]
    return [_resources.c.created_at.desc(), _resources.c.id.desc()]


def _category_clause(filters: ResourceFilters):
    """Return a WHERE clause restricting resources to the selected categories.

    "all" mode groups the association rows per resource and keeps only those
    whose distinct matching category count equals the selection size.
    """
    ids = list(filters.categories)
    matching = select(_resource_categories.c.resource_id).where(_resource_categories.c.category_id.in_(ids))
    if filters.mode == "all":
        matching = matching.group_by(_resource_categories.c.resource_id).having(
            func.count(func.distinct(_resource_categories.c.category_id)) == len(ids)
        )
    return _resources.c.id.in_(matching)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ResourceStore:
    def __init__(self, db_url: Optional[str] = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            # FastAPI runs sync handlers in a thread pool, so the same pooled
            # connection may be used from several threads.
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def create_category(self, category: Category) -> int:
        """Insert a category and return its ID.

        Raises sqlalchemy.exc.IntegrityError if the name already exists.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_categories.insert().values(name=category.name, created_at=_now_iso()))
            conn.commit()
            return result.inserted_primary_key[0]

    def get_category_by_name(self, name: str) -> Optional[Category]:
        with self.engine.connect() as conn:
            row = conn.execute(_categories.select().where(_categories.c.name == name)).fetchone()
        return _row_to_category(row) if row is not None else None

    def list_categories(self) -> list[Category]:
        """Return all categories ordered by name."""
        with self.engine.connect() as conn:
            rows = conn.execute(_categories.select().order_by(_categories.c.name)).fetchall()
        return [_row_to_category(r) for r in rows]

    def count_categories(self) -> int:
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(_categories)).scalar() or 0

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def create_resource(self, resource: Resource) -> int:
        """Insert a resource with its category links and return its ID.

        created_at is kept when the caller provides one (seed files carrying
        original dates), otherwise stamped with the current time.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _resources.insert().values(
                    title=resource.title,
                    description=resource.description,
                    url=resource.url,
                    created_at=resource.created_at or _now_iso(),
                )
            )
            resource_id = result.inserted_primary_key[0]
            category_ids = list(dict.fromkeys(resource.category_ids))
            if category_ids:
                conn.execute(
                    _resource_categories.insert(),
                    [{"resource_id": resource_id, "category_id": cid} for cid in category_ids],
                )
            conn.commit()
            return resource_id

    def get_resource(self, resource_id: int) -> Optional[Resource]:
        with self.engine.connect() as conn:
            row = conn.execute(_resources.select().where(_resources.c.id == resource_id)).fetchone()
            if row is None:
                return None
            links = self._category_links(conn, [resource_id])
        return _row_to_resource(row, links.get(resource_id, []))

    def list_resources(self, filters: Optional[ResourceFilters] = None) -> list[Resource]:
        """Return the resources matching filters, in the requested order."""
        filters = filters or ResourceFilters()
        query = _resources.select()
        if filters.categories:
            query = query.where(_category_clause(filters))
        if filters.search:
            query = query.where(
                or_(
                    _resources.c.title.icontains(filters.search, autoescape=True),
                    _resources.c.description.icontains(filters.search, autoescape=True),
                )
            )
        query = query.order_by(*_order_clauses(filters.sort_by))

        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
            links = self._category_links(conn, [r.id for r in rows])
        return [_row_to_resource(r, links.get(r.id, [])) for r in rows]

    def count_resources(self) -> int:
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(_resources)).scalar() or 0

    def _category_links(self, conn, resource_ids: list[int]) -> dict[int, list[int]]:
        """Map resource id -> category ids ordered by category name (one query)."""
        if not resource_ids:
            return {}
        rows = conn.execute(
            select(_resource_categories.c.resource_id, _resource_categories.c.category_id)
            .join(_categories, _categories.c.id == _resource_categories.c.category_id)
            .where(_resource_categories.c.resource_id.in_(resource_ids))
            .order_by(_categories.c.name)
        ).fetchall()
        links: dict[int, list[int]] = {}
        for resource_id, category_id in rows:
            links.setdefault(resource_id, []).append(category_id)
        return links

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_category(row) -> Category:
    return Category(id=row.id, name=row.name, created_at=row.created_at)


def _row_to_resource(row, category_ids: list[int]) -> Resource:
    return Resource(
        id=row.id,
        title=row.title,
        description=row.description or "",
        url=row.url,
        category_ids=category_ids,
        created_at=row.created_at,
    )
