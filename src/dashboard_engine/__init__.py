"""
Generic in-memory data-processing engine for dashboard handlers.

Handlers pass in raw records (lists of JSON-decoded dictionaries) and use
the operators here to filter, search, sort, paginate, group and aggregate
them, with an optional process-local TTL cache and timing helpers around
the work.
"""

from .cache import CacheBackend, DataCache, data_cache  # noqa: F401
from .config import EngineConfig, load_engine_config  # noqa: F401
from .errors import EngineError, InvalidParameterError  # noqa: F401
from .models import (  # noqa: F401
    AggregationSpec,
    CacheEntry,
    CacheStats,
    FilterConfig,
    MeasureResult,
    PaginatedResult,
    PaginationInfo,
    PaginationParams,
    Timer,
)
from .monitor import PerformanceMonitor, performance_monitor  # noqa: F401
from .paths import FieldPath, get_nested_value  # noqa: F401
from .processor import (  # noqa: F401
    DataProcessor,
    aggregate,
    deduplicate,
    filter_data,
    group_by,
    paginate,
    process_batches,
    search_data,
    sort_data,
    transform,
)
