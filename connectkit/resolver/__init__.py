"""
Resolver — The declarative REST-entity mechanism shared by every connector.

    filters ──translate──▶ QueryMap ──validate_required──▶ resolve(template)
        ──▶ HTTP call ──▶ extract(document, root) ──▶ records ──▶ PageWalker
"""

from connectkit.resolver.endpoints import (
    EndpointTable,
    EndpointTableBuilder,
    placeholders,
    resolve,
)
from connectkit.resolver.extractor import extract, has_path, normalize, resolve_path
from connectkit.resolver.filters import QueryMap, missing_keys, translate, validate_required
from connectkit.resolver.paging import (
    CursorPaging,
    CursorState,
    MaxResultsPaging,
    OffsetLimitPaging,
    PageRequest,
    PagingStrategy,
    SinglePagePaging,
    build_strategy,
)

__all__ = [
    "EndpointTable",
    "EndpointTableBuilder",
    "placeholders",
    "resolve",
    "extract",
    "has_path",
    "normalize",
    "resolve_path",
    "QueryMap",
    "missing_keys",
    "translate",
    "validate_required",
    "CursorPaging",
    "CursorState",
    "MaxResultsPaging",
    "OffsetLimitPaging",
    "PageRequest",
    "PagingStrategy",
    "SinglePagePaging",
    "build_strategy",
]
