from __future__ import annotations

import hashlib
import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import NoSuchTableError, SQLAlchemyError

from .cache import data_cache
from .config import load_engine_config
from .errors import EngineError
from .models import AggregationSpec, FilterConfig, PaginationParams
from .monitor import performance_monitor
from .paths import get_nested_value
from .processor import aggregate, deduplicate, filter_data, group_by, paginate, search_data, transform
from .repository import RecordRepository, build_repository_from_env

logger = logging.getLogger(__name__)

config = load_engine_config()
app = FastAPI(title="Dashboard Engine API", version="0.1.0")
repository: Optional[RecordRepository] = build_repository_from_env(config.repository)

_CLIENT_ERRORS = (HTTPException, EngineError)


class FilterPayload(BaseModel):
    field: str
    operator: Literal["eq", "ne", "gt", "gte", "lt", "lte", "contains", "startsWith", "endsWith", "in"]
    value: Any = None


class AggregationPayload(BaseModel):
    field: str
    operation: Literal["sum", "avg", "min", "max", "count"]


class DataSourceRequest(BaseModel):
    records: Optional[List[Dict[str, Any]]] = None
    table: Optional[str] = None
    filters: List[FilterPayload] = Field(default_factory=list)
    use_cache: bool = True


class QueryRequest(DataSourceRequest):
    search: Optional[str] = None
    search_fields: List[str] = Field(default_factory=list)
    dedupe_by: Optional[str] = None
    fields: Optional[List[str]] = None
    page: int = Field(1, ge=1)
    limit: Optional[int] = Field(None, ge=1)
    sort_by: Optional[str] = None
    sort_order: Literal["asc", "desc"] = "asc"

    @field_validator("limit")
    @classmethod
    def _validate_limit(cls, limit: Optional[int]) -> Optional[int]:
        if limit is not None and limit > config.pagination.max_page_size:
            raise ValueError(f"limit must not exceed {config.pagination.max_page_size}")
        return limit


class AggregateRequest(DataSourceRequest):
    group_by: Optional[str] = None
    aggregations: List[AggregationPayload] = Field(..., min_length=1)


class ApiResponse(BaseModel):
    success: bool
    data: Any = None
    pagination: Optional[Dict[str, Any]] = None
    meta: Dict[str, Any] = Field(default_factory=dict)
    timestamp: str
    request_id: str = Field(alias="requestId")


def _request_id() -> str:
    return f"req_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _success(data: Any, pagination: Optional[Dict[str, Any]] = None, **meta: Any) -> ApiResponse:
    return ApiResponse(
        success=True,
        data=data,
        pagination=pagination,
        meta=meta,
        timestamp=_timestamp(),
        requestId=_request_id(),
    )


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError) -> JSONResponse:
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": str(exc),
            "timestamp": _timestamp(),
            "requestId": _request_id(),
        },
    )


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/records/query", response_model=ApiResponse)
async def query_records(request: QueryRequest) -> ApiResponse:
    cache_key = _cache_key("records.query", request)
    cached = _read_cache(request, cache_key)
    if cached is not None:
        return _success(cached["data"], cached["pagination"], cached=True, durationMs=0.0)

    async def _run() -> Dict[str, Any]:
        records = await _load_records(request)
        records = filter_data(records, _to_filters(request.filters))
        records = search_data(records, request.search or "", request.search_fields)
        if request.dedupe_by:
            records = deduplicate(records, request.dedupe_by)
        result = paginate(
            records,
            PaginationParams(
                page=request.page,
                limit=request.limit or config.pagination.default_page_size,
                sort_by=request.sort_by,
                sort_order=request.sort_order,
            ),
        )
        page_data = result.data
        if request.fields:
            page_data = transform(page_data, lambda item, _: _project(item, request.fields))
        return {"data": page_data, "pagination": result.pagination.as_dict()}

    measured = await performance_monitor.measure("records.query", _run, expected=_CLIENT_ERRORS)
    _write_cache(request, cache_key, measured.result)
    return _success(
        measured.result["data"],
        measured.result["pagination"],
        cached=False,
        durationMs=round(measured.duration, 2),
    )


@app.post("/records/aggregate", response_model=ApiResponse)
async def aggregate_records(request: AggregateRequest) -> ApiResponse:
    cache_key = _cache_key("records.aggregate", request)
    cached = _read_cache(request, cache_key)
    if cached is not None:
        return _success(cached, cached=True, durationMs=0.0)

    specs = [AggregationSpec(field=item.field, operation=item.operation) for item in request.aggregations]

    async def _run() -> Dict[str, Any]:
        records = filter_data(await _load_records(request), _to_filters(request.filters))
        if not request.group_by:
            return {"total": len(records), "metrics": aggregate(records, specs)}
        groups = group_by(records, request.group_by)
        return {
            "total": len(records),
            "groups": [
                {"key": key, "count": len(members), "metrics": aggregate(members, specs)}
                for key, members in groups.items()
            ],
        }

    measured = await performance_monitor.measure("records.aggregate", _run, expected=_CLIENT_ERRORS)
    _write_cache(request, cache_key, measured.result)
    return _success(measured.result, cached=False, durationMs=round(measured.duration, 2))


@app.get("/cache/stats", response_model=ApiResponse)
async def cache_stats() -> ApiResponse:
    return _success(data_cache.get_stats().as_dict())


@app.delete("/cache", response_model=ApiResponse)
async def clear_cache(key: Optional[str] = Query(None)) -> ApiResponse:
    data_cache.clear(key)
    return _success({"cleared": key or "all"})


async def _load_records(request: DataSourceRequest) -> List[Dict[str, Any]]:
    if request.records is not None:
        return request.records

    if request.table is None:
        raise HTTPException(status_code=400, detail="Supply either inline records or a table name.")

    if repository is None:
        raise HTTPException(
            status_code=400,
            detail=(
                "DASHBOARD_ENGINE_DATABASE_URL is not configured; "
                "supply records in the request body for ad-hoc queries."
            ),
        )

    try:
        return await run_in_threadpool(repository.load, request.table)
    except NoSuchTableError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown table: {request.table}") from exc
    except SQLAlchemyError as exc:
        logger.warning("Failed to load records from %s: %s", request.table, exc)
        raise HTTPException(status_code=502, detail="Record source unavailable.") from exc


def _cache_key(prefix: str, request: DataSourceRequest) -> str:
    # Inline records enter the key as a digest so keys stay short and never
    # echo record contents through /cache/stats.
    params = request.model_dump(exclude={"use_cache", "records"})
    if request.records is not None:
        raw = json.dumps(request.records, sort_keys=True, separators=(",", ":"), default=str).encode("utf-8")
        params["records_sha256"] = hashlib.sha256(raw).hexdigest()
    return data_cache.create_key(prefix, params)


def _to_filters(payloads: List[FilterPayload]) -> List[FilterConfig]:
    return [FilterConfig(field=item.field, operator=item.operator, value=item.value) for item in payloads]


def _project(record: Dict[str, Any], fields: List[str]) -> Dict[str, Any]:
    return {field: get_nested_value(record, field) for field in fields}


def _read_cache(request: DataSourceRequest, key: str) -> Optional[Any]:
    if not (config.cache.enable and request.use_cache):
        return None
    return data_cache.get(key)


def _write_cache(request: DataSourceRequest, key: str, value: Any) -> None:
    if config.cache.enable and request.use_cache:
        data_cache.set(key, value, config.cache.default_ttl_seconds)
