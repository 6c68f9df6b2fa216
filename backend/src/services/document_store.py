"""
Generic document store over a SQLAlchemy table.

Each row carries one whole pydantic entity serialized in its JSON ``document``
column, next to a few scalar columns mirrored from the entity so filters, sorts
and the max-value query can run in SQL. Writes replace the whole document (last
write wins) and every call commits its own transaction.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar, Union

from pydantic import BaseModel
from sqlalchemy import and_, or_
from sqlalchemy import func
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=BaseModel)


# ---- Filter predicates ----

@dataclass(frozen=True)
class Eq:
    field: str
    value: Any


@dataclass(frozen=True)
class Ne:
    field: str
    value: Any


@dataclass(frozen=True)
class Range:
    field: str
    gte: Any = None
    lte: Any = None


@dataclass(frozen=True)
class Contains:
    """Case-insensitive substring match on any of ``fields``."""
    fields: Tuple[str, ...]
    term: str


Predicate = Union[Eq, Ne, Range, Contains]


def to_naive_utc(value):
    """Datetimes are stored as naive UTC so comparisons behave the same on every engine."""
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class DocumentStore(Generic[E]):
    def __init__(
        self,
        db: Session,
        model,
        entity_type: Type[E],
        mirror: Callable[[E], Dict[str, Any]],
        default_sort: Tuple[str, bool] = ("created_date", True),
    ):
        """
        Args:
            db: Session used for every call
            model: Declarative class with ``id`` and ``document`` columns
            entity_type: Pydantic model stored in ``document``
            mirror: Returns the scalar column values derived from an entity
            default_sort: (column name, descending) used when no sort is given
        """
        self.db = db
        self.model = model
        self.entity_type = entity_type
        self.mirror = mirror
        self.default_sort = default_sort

    def _column(self, field: str):
        col = getattr(self.model, field, None)
        if col is None or field == "document":
            raise ValueError(f"Unknown field: {field}")
        return col

    def _apply_row(self, row, entity: E) -> None:
        for name, value in self.mirror(entity).items():
            setattr(row, name, to_naive_utc(value))
        row.document = entity.model_dump(mode="json")

    def _to_entity(self, row) -> E:
        return self.entity_type.model_validate(row.document)

    # ---- CRUD ----

    def create(self, entity: E) -> str:
        row = self.model(id=entity.id)
        self._apply_row(row, entity)
        self.db.add(row)
        self.db.commit()
        return entity.id

    def get_by_id(self, entity_id: str) -> Optional[E]:
        row = self.db.query(self.model).filter(self.model.id == entity_id).first()
        if row is None:
            return None
        return self._to_entity(row)

    def update(self, entity_id: str, entity: E) -> bool:
        row = self.db.query(self.model).filter(self.model.id == entity_id).first()
        if row is None:
            return False
        self._apply_row(row, entity)
        self.db.commit()
        return True

    def delete(self, entity_id: str) -> bool:
        deleted = self.db.query(self.model).filter(self.model.id == entity_id).delete(synchronize_session=False)
        self.db.commit()
        return deleted > 0

    # ---- Queries ----

    def _condition(self, predicate: Predicate):
        if isinstance(predicate, Eq):
            return self._column(predicate.field) == to_naive_utc(predicate.value)
        if isinstance(predicate, Ne):
            return self._column(predicate.field) != to_naive_utc(predicate.value)
        if isinstance(predicate, Range):
            col = self._column(predicate.field)
            parts = []
            if predicate.gte is not None:
                parts.append(col >= to_naive_utc(predicate.gte))
            if predicate.lte is not None:
                parts.append(col <= to_naive_utc(predicate.lte))
            return and_(*parts) if parts else None
        if isinstance(predicate, Contains):
            pattern = f"%{_escape_like(predicate.term)}%"
            return or_(*[self._column(f).ilike(pattern, escape="\\") for f in predicate.fields])
        raise TypeError(f"Unsupported predicate: {predicate!r}")

    def search(
        self,
        predicates: Iterable[Predicate] = (),
        page: int = 1,
        page_size: int = 20,
        sort: Optional[Tuple[str, bool]] = None,
    ) -> Tuple[List[E], int]:
        """
        Filter (conjunction of predicates), sort on one column and paginate.

        Returns:
            (entities of the requested page, total matching count)
        """
        if not isinstance(page, int) or page < 1:
            raise ValueError("page must be a positive integer")
        if not isinstance(page_size, int) or page_size < 1:
            raise ValueError("page_size must be a positive integer")

        q = self.db.query(self.model)
        for predicate in predicates:
            cond = self._condition(predicate)
            if cond is not None:
                q = q.filter(cond)

        total = q.count()

        field, descending = sort or self.default_sort
        col = self._column(field)
        q = q.order_by(col.desc() if descending else col.asc(), self.model.id.asc())

        rows = q.offset((page - 1) * page_size).limit(page_size).all()
        return [self._to_entity(r) for r in rows], total

    def max_value(self, field: str):
        return self.db.query(func.max(self._column(field))).scalar()

    def count(self, predicates: Sequence[Predicate] = ()) -> int:
        q = self.db.query(self.model)
        for predicate in predicates:
            cond = self._condition(predicate)
            if cond is not None:
                q = q.filter(cond)
        return q.count()
