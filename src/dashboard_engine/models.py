"""Value types passed to and returned from the engine operators."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar

T = TypeVar("T")
R = TypeVar("R")

SortOrder = Literal["asc", "desc"]
FilterOperator = Literal[
    "eq",
    "ne",
    "gt",
    "gte",
    "lt",
    "lte",
    "contains",
    "startsWith",
    "endsWith",
    "in",
]
AggregateOperation = Literal["sum", "avg", "min", "max", "count"]


@dataclass(frozen=True)
class PaginationParams:
    """
    Page request shared by every list endpoint.

    ``page`` is 1-based. When ``sort_by`` is set the collection is sorted
    before the page is sliced out.
    """

    page: int = 1
    limit: int = 25
    sort_by: Optional[str] = None
    sort_order: SortOrder = "asc"


@dataclass(frozen=True)
class PaginationInfo:
    page: int
    limit: int
    total: int
    total_pages: int
    has_more: bool
    has_previous: bool

    def as_dict(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
            "hasMore": self.has_more,
            "hasPrevious": self.has_previous,
        }


@dataclass(frozen=True)
class PaginatedResult(Generic[T]):
    data: List[T]
    pagination: PaginationInfo

    def as_dict(self) -> Dict[str, Any]:
        """
        Convert into the JSON shape the dashboard UI reads.

        Records are passed through untouched; only the pagination block is
        renamed to camelCase.
        """

        return {"data": list(self.data), "pagination": self.pagination.as_dict()}


@dataclass(frozen=True)
class FilterConfig:
    """
    One predicate of a filter set. A filter set is the logical AND of its
    entries; there is no OR composition.
    """

    field: str
    operator: FilterOperator
    value: Any = None


@dataclass(frozen=True)
class AggregationSpec:
    field: str
    operation: AggregateOperation

    @property
    def output_key(self) -> str:
        return f"{self.field}_{self.operation}"


@dataclass
class CacheEntry:
    value: Any
    inserted_at: float
    ttl_ms: int

    def is_expired(self, now: float) -> bool:
        return (now - self.inserted_at) * 1000 > self.ttl_ms


@dataclass(frozen=True)
class CacheStats:
    size: int
    keys: List[str] = field(default_factory=list)
    hits: int = 0
    misses: int = 0

    def as_dict(self) -> Dict[str, Any]:
        return {"size": self.size, "keys": list(self.keys), "hits": self.hits, "misses": self.misses}


@dataclass(frozen=True)
class Timer:
    label: str
    started_at: float


@dataclass(frozen=True)
class MeasureResult(Generic[R]):
    result: R
    duration: float
