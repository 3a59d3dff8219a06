"""
Stateless operators that shape raw record collections into dashboard
responses: pagination, sorting, filtering, search, grouping, aggregation,
deduplication, mapping and sequential batch processing.

Every operator returns a new collection and leaves its input untouched.
None of them raise for missing or mistyped fields; see ``paths`` for how
values are resolved and coerced.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime
from functools import cmp_to_key
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    List,
    Sequence,
    TypeVar,
)

from .errors import InvalidParameterError
from .models import AggregationSpec, FilterConfig, PaginatedResult, PaginationInfo, PaginationParams, SortOrder
from .paths import FieldPath, is_number, stringify

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def paginate(data: Sequence[T], params: PaginationParams) -> PaginatedResult[T]:
    """
    Sort (when ``params.sort_by`` is set) and cut one page out of ``data``.

    ``total`` always reports the size of the full collection. Pages past the
    end come back with an empty ``data`` list.
    """

    page, limit = params.page, params.limit
    if page < 1:
        raise InvalidParameterError("page", page, "must be >= 1")
    if limit < 1:
        raise InvalidParameterError("limit", limit, "must be >= 1")

    if params.sort_by:
        processed = sort_data(data, params.sort_by, params.sort_order)
    else:
        processed = list(data)

    total = len(processed)
    total_pages = math.ceil(total / limit)
    start_index = (page - 1) * limit

    return PaginatedResult(
        data=processed[start_index:start_index + limit],
        pagination=PaginationInfo(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_more=page < total_pages,
            has_previous=page > 1,
        ),
    )


def sort_data(data: Iterable[T], sort_by: str, sort_order: SortOrder = "asc") -> List[T]:
    path = FieldPath.parse(sort_by)
    direction = -1 if sort_order == "desc" else 1
    decorated = [(path.resolve(item), item) for item in data]

    def _compare(left: tuple, right: tuple) -> int:
        return direction * _compare_values(left[0], right[0])

    # sorted() is stable, so equal keys keep their input order in both directions.
    return [item for _, item in sorted(decorated, key=cmp_to_key(_compare))]


def filter_data(data: Sequence[T], filters: Sequence[FilterConfig]) -> Sequence[T]:
    if not filters:
        return data

    compiled = [(FieldPath.parse(item.field), item.operator, item.value) for item in filters]
    return [
        item
        for item in data
        if all(_apply_filter(path.resolve(item), operator, value) for path, operator, value in compiled)
    ]


def search_data(data: Sequence[T], search_term: str, search_fields: Sequence[str]) -> Sequence[T]:
    normalized_term = (search_term or "").strip().lower()
    if not normalized_term:
        return data

    paths = [FieldPath.parse(field) for field in search_fields]
    return [
        item
        for item in data
        if any(normalized_term in stringify(path.resolve(item)).lower() for path in paths)
    ]


def group_by(data: Iterable[T], group_field: str) -> Dict[str, List[T]]:
    """
    Bucket records by the text form of ``group_field``.

    Groups appear in the order their first member was seen and each group
    keeps its members in input order. Records missing the field share the
    ``""`` bucket.
    """

    path = FieldPath.parse(group_field)
    groups: Dict[str, List[T]] = {}
    for item in data:
        groups.setdefault(stringify(path.resolve(item)), []).append(item)
    return groups


def aggregate(data: Sequence[Any], aggregations: Sequence[AggregationSpec]) -> Dict[str, float]:
    """
    Compute numeric summaries keyed ``"<field>_<operation>"``.

    Only real, non-NaN numbers take part. ``avg``, ``min`` and ``max`` fall
    back to ``0`` when no numeric value is found and ``count`` reports how
    many numeric values were seen, not how many records.
    """

    results: Dict[str, float] = {}
    for spec in aggregations:
        path = FieldPath.parse(spec.field)
        values = [value for value in (path.resolve(item) for item in data) if is_number(value)]
        operation = spec.operation

        if operation == "sum":
            results[spec.output_key] = sum(values)
        elif operation == "avg":
            results[spec.output_key] = sum(values) / len(values) if values else 0
        elif operation == "min":
            results[spec.output_key] = min(values) if values else 0
        elif operation == "max":
            results[spec.output_key] = max(values) if values else 0
        elif operation == "count":
            results[spec.output_key] = len(values)
        else:
            logger.debug("Skipping unknown aggregation operation %r on %s", operation, spec.field)
    return results


def deduplicate(data: Iterable[T], unique_field: str) -> List[T]:
    path = FieldPath.parse(unique_field)
    seen = set()
    result: List[T] = []
    for item in data:
        key = stringify(path.resolve(item))
        if key in seen:
            continue
        seen.add(key)
        result.append(item)
    return result


def transform(data: Sequence[T], transformer: Callable[[T, int], R]) -> List[R]:
    return [transformer(item, index) for index, item in enumerate(data)]


async def process_batches(
    data: Sequence[T],
    batch_size: int,
    processor: Callable[[List[T]], Awaitable[Sequence[R]]],
) -> List[R]:
    """
    Feed ``data`` to ``processor`` in consecutive chunks of ``batch_size``.

    Chunks are awaited one after another, never concurrently, which keeps at
    most one downstream call in flight and the combined results in chunk
    order.
    """

    if batch_size < 1:
        raise InvalidParameterError("batch_size", batch_size, "must be >= 1")

    results: List[R] = []
    for start in range(0, len(data), batch_size):
        batch = list(data[start:start + batch_size])
        results.extend(await processor(batch))
    return results


class DataProcessor:
    """Namespace bundling the operators for callers that prefer one import."""

    paginate = staticmethod(paginate)
    sort_data = staticmethod(sort_data)
    filter_data = staticmethod(filter_data)
    search_data = staticmethod(search_data)
    group_by = staticmethod(group_by)
    aggregate = staticmethod(aggregate)
    deduplicate = staticmethod(deduplicate)
    transform = staticmethod(transform)
    process_batches = staticmethod(process_batches)


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


def _is_real(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_date(value: Any) -> bool:
    return isinstance(value, (datetime, date))


def _time_value(value: date) -> float:
    if isinstance(value, datetime):
        return value.timestamp()
    return datetime(value.year, value.month, value.day).timestamp()


def _locale_compare(left: str, right: str) -> int:
    folded_left, folded_right = left.casefold(), right.casefold()
    if folded_left != folded_right:
        return -1 if folded_left < folded_right else 1
    # Same letters: lowercase sorts ahead of uppercase.
    return _sign_str(left.swapcase(), right.swapcase())


def _sign_str(left: str, right: str) -> int:
    if left == right:
        return 0
    return -1 if left < right else 1


def _compare_values(left: Any, right: Any) -> int:
    if _is_real(left) and _is_real(right):
        difference = left - right
        # NaN on either side compares as equal.
        if difference != difference:
            return 0
        return _sign(difference)
    if isinstance(left, str) and isinstance(right, str):
        return _locale_compare(left, right)
    if _is_date(left) and _is_date(right):
        return _sign(_time_value(left) - _time_value(right))
    return _locale_compare(stringify(left), stringify(right))


def _strict_equals(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    return left == right


def _numeric_compare(value: Any, filter_value: Any, compare: Callable[[float, float], bool]) -> bool:
    if not is_number(value) or not _is_real(filter_value):
        return False
    return compare(value, filter_value)


def _apply_filter(value: Any, operator: str, filter_value: Any) -> bool:
    if operator == "eq":
        return _strict_equals(value, filter_value)
    if operator == "ne":
        return not _strict_equals(value, filter_value)
    if operator == "gt":
        return _numeric_compare(value, filter_value, lambda a, b: a > b)
    if operator == "gte":
        return _numeric_compare(value, filter_value, lambda a, b: a >= b)
    if operator == "lt":
        return _numeric_compare(value, filter_value, lambda a, b: a < b)
    if operator == "lte":
        return _numeric_compare(value, filter_value, lambda a, b: a <= b)
    if operator == "contains":
        return stringify(filter_value).lower() in stringify(value).lower()
    if operator == "startsWith":
        return stringify(value).lower().startswith(stringify(filter_value).lower())
    if operator == "endsWith":
        return stringify(value).lower().endswith(stringify(filter_value).lower())
    if operator == "in":
        if not isinstance(filter_value, (list, tuple, set, frozenset)):
            return False
        return any(_strict_equals(value, candidate) for candidate in filter_value)
    return False
