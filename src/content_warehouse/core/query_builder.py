"""Parameterized query construction for the ``content`` table.

Every read operation of the API is expressed as a SQLAlchemy Core
``select()`` built from a list of :class:`Predicate` objects.  A predicate
names one or more columns, an :class:`Operator` and a value; nothing is
rendered until :meth:`ContentQuery.where_clause` turns the accumulated
predicates into bound expressions.  User input therefore only ever reaches
the database as bind parameters, and column names are resolved against
the ``content`` table definition so an unknown field fails at build time.

Public helpers, one per read operation::

    build_list_query(type_, format_, author, page)   -> ListQuery
    build_get_by_id_query(content_id)                -> Select
    build_search_query(q, type_, page)               -> Select
    build_recent_query(limit, type_)                 -> Select
    build_by_author_query(author)                    -> Select
    build_stats_queries()                            -> dict[str, Select]

Optional filters whose value is ``None`` or an empty string are dropped
entirely; they never turn into ``IS NULL`` or ``= ''`` predicates.

All multi-row queries order by ``created_date`` newest first with NULL
dates last, then by ``id`` descending so that page boundaries are stable.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Iterable

import sqlalchemy as sa
from sqlalchemy.sql import ColumnElement, Select

from content_warehouse.core.models.content import (
    AUTHOR_COLUMNS,
    LIST_COLUMNS,
    RECENT_COLUMNS,
    SEARCH_COLUMNS,
    Content,
)

content_table: sa.Table = Content.__table__  # type: ignore[assignment]

# Fields a ``type`` filter is matched against.
TYPE_FIELDS: tuple[str, ...] = ("source_type", "media_type")

# Fields a free-text search is matched against.  ``ai_topics`` is JSONB and
# is compared through its text form.
SEARCH_FIELDS: tuple[str, ...] = ("title", "content_text", "author_name", "ai_topics")

LIKE_ESCAPE = "\\"


class Operator(str, enum.Enum):
    """Comparison applied by a :class:`Predicate`."""

    EQ = "eq"
    """Exact equality."""

    CONTAINS = "contains"
    """Case-insensitive substring match (``ILIKE '%value%'``)."""


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so *value* is matched literally.

    Args:
        value: Raw user-supplied text.

    Returns:
        The text with ``\\``, ``%`` and ``_`` prefixed by :data:`LIKE_ESCAPE`.
    """
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def _column(name: str) -> sa.Column:
    try:
        return content_table.c[name]
    except KeyError:
        raise ValueError(f"Unknown content column: {name!r}") from None


@dataclass(frozen=True)
class Predicate:
    """A single filter condition on one or more columns.

    When several fields are given the condition matches if it holds for any
    of them (the rendered expressions are ORed).

    Attributes:
        fields: Column names on ``content``.
        operator: Comparison to apply.
        value: Right-hand operand, supplied by the caller.
    """

    fields: tuple[str, ...]
    operator: Operator
    value: Any

    def render(self) -> ColumnElement[bool]:
        """Return the bound SQLAlchemy expression for this predicate."""
        if not self.fields:
            raise ValueError("Predicate requires at least one field")

        expressions: list[ColumnElement[bool]] = []
        if self.operator is Operator.EQ:
            for name in self.fields:
                expressions.append(_column(name) == self.value)
        elif self.operator is Operator.CONTAINS:
            pattern = f"%{escape_like(str(self.value))}%"
            for name in self.fields:
                column: ColumnElement[Any] = _column(name)
                if not isinstance(column.type, sa.String):
                    column = sa.cast(column, sa.Text)
                expressions.append(column.ilike(pattern, escape=LIKE_ESCAPE))
        else:  # pragma: no cover - exhaustive over Operator
            raise ValueError(f"Unsupported operator: {self.operator!r}")

        if len(expressions) == 1:
            return expressions[0]
        return sa.or_(*expressions)


@dataclass(frozen=True)
class Page:
    """Offset pagination window.

    Attributes:
        page: 1-based page number.
        limit: Maximum rows per page.
    """

    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def paginate(
    page: int | None,
    limit: int | None,
    *,
    default_limit: int,
    max_limit: int,
) -> Page:
    """Coerce raw ``page``/``limit`` values into a valid :class:`Page`.

    ``page`` below 1 becomes 1.  ``limit`` is clamped into
    ``[1, max_limit]``.  ``None`` selects page 1 / *default_limit*.

    Args:
        page: Requested page number, or ``None``.
        limit: Requested page size, or ``None``.
        default_limit: Page size used when *limit* is ``None``.
        max_limit: Largest page size ever sent to the store.

    Returns:
        The effective pagination window.
    """
    effective_page = 1 if page is None else max(1, int(page))
    effective_limit = default_limit if limit is None else int(limit)
    effective_limit = min(max(1, effective_limit), max_limit)
    return Page(page=effective_page, limit=effective_limit)


@dataclass
class ContentQuery:
    """Accumulates predicates and renders ``SELECT`` / ``COUNT`` statements.

    Usage::

        query = ContentQuery().where_any(TYPE_FIELDS, Operator.EQ, "video")
        stmt = query.select(LIST_COLUMNS).limit(10)
    """

    predicates: list[Predicate] = field(default_factory=list)

    def where_any(
        self,
        fields: Iterable[str],
        operator: Operator,
        value: Any,
    ) -> ContentQuery:
        """Add a predicate unless *value* is ``None`` or an empty string."""
        if value is None or value == "":
            return self
        self.predicates.append(Predicate(tuple(fields), operator, value))
        return self

    def where(self, field_name: str, operator: Operator, value: Any) -> ContentQuery:
        """Add a single-column predicate unless *value* is empty."""
        return self.where_any((field_name,), operator, value)

    def where_clause(self) -> ColumnElement[bool] | None:
        """Render the accumulated predicates joined with ``AND``."""
        if not self.predicates:
            return None
        return sa.and_(*(predicate.render() for predicate in self.predicates))

    def select(self, columns: Iterable[str] | None = None) -> Select:
        """Return a newest-first ``SELECT`` over *columns* (all when ``None``)."""
        selected = [_column(name) for name in columns] if columns else [content_table]
        stmt = sa.select(*selected)
        clause = self.where_clause()
        if clause is not None:
            stmt = stmt.where(clause)
        return stmt.order_by(
            content_table.c.created_date.desc().nulls_last(),
            content_table.c.id.desc(),
        )

    def count(self) -> Select:
        """Return ``SELECT count(*)`` sharing this query's WHERE clause."""
        stmt = sa.select(sa.func.count()).select_from(content_table)
        clause = self.where_clause()
        if clause is not None:
            stmt = stmt.where(clause)
        return stmt


# ---------------------------------------------------------------------------
# Operation builders
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ListQuery:
    """Paired statements for the list operation.

    Attributes:
        data: Paginated row query.
        count: Total-count query with the same filters and no pagination.
    """

    data: Select
    count: Select


def build_list_query(
    type_: str | None,
    format_: str | None,
    author: str | None,
    page: Page,
) -> ListQuery:
    """Build the filtered, paginated list query and its count query.

    Args:
        type_: Matches ``source_type`` or ``media_type`` exactly.
        format_: Matches ``file_format`` exactly.
        author: Case-insensitive substring of ``author_name``.
        page: Pagination window.
    """
    query = (
        ContentQuery()
        .where_any(TYPE_FIELDS, Operator.EQ, type_)
        .where("file_format", Operator.EQ, format_)
        .where("author_name", Operator.CONTAINS, author)
    )
    data = query.select(LIST_COLUMNS).limit(page.limit).offset(page.offset)
    return ListQuery(data=data, count=query.count())


def build_get_by_id_query(content_id: int) -> Select:
    """Build the full-row lookup for a single record."""
    return ContentQuery().where("id", Operator.EQ, content_id).select()


def build_search_query(q: str, type_: str | None, page: Page) -> Select:
    """Build the free-text search query.

    *q* is matched case-insensitively against :data:`SEARCH_FIELDS` (ORed);
    the optional type filter is ANDed in.
    """
    query = (
        ContentQuery()
        .where_any(SEARCH_FIELDS, Operator.CONTAINS, q)
        .where_any(TYPE_FIELDS, Operator.EQ, type_)
    )
    return query.select(SEARCH_COLUMNS).limit(page.limit).offset(page.offset)


def build_recent_query(limit: int, type_: str | None) -> Select:
    """Build the newest-content query (no offset)."""
    query = ContentQuery().where_any(TYPE_FIELDS, Operator.EQ, type_)
    return query.select(RECENT_COLUMNS).limit(limit)


def build_by_author_query(author: str) -> Select:
    """Build the unpaginated author substring query."""
    return ContentQuery().where("author_name", Operator.CONTAINS, author).select(AUTHOR_COLUMNS)


def build_stats_queries() -> dict[str, Select]:
    """Build the independent aggregate queries behind ``/api/stats``.

    Returns:
        Mapping of statistic name to statement.  Each statement can run on
        its own connection.
    """
    c = content_table.c
    count_all = sa.select(sa.func.count()).select_from(content_table)
    return {
        "total": count_all,
        "by_source_type": (
            sa.select(c.source_type, sa.func.count().label("count"))
            .group_by(c.source_type)
            .order_by(c.source_type)
        ),
        "by_media_type": (
            sa.select(c.media_type, sa.func.count().label("count"))
            .where(c.media_type.is_not(None))
            .group_by(c.media_type)
            .order_by(c.media_type)
        ),
        "processed": count_all.where(
            Predicate(("ai_processing_status",), Operator.EQ, "completed").render()
        ),
        "pending": count_all.where(
            Predicate(("ai_processing_status",), Operator.EQ, "pending").render()
        ),
        "average_word_count": sa.select(sa.func.avg(c.word_count)).where(
            c.word_count.is_not(None)
        ),
        "latest": (
            sa.select(c.created_date)
            .where(c.created_date.is_not(None))
            .order_by(c.created_date.desc())
            .limit(1)
        ),
    }
