"""
PageWalker — Pluggable pagination strategies.

Three vendor styles are supported:

  - OffsetLimitPaging: limit=<size>, offset=(page-1)*size
  - CursorPaging:      follow a next-cursor token until the target page or
                       until the vendor stops returning one
  - MaxResultsPaging:  vendor-capped page size with a 1-based start position
                       (QuickBooks) or a page-number parameter (AWS IoT, TikTok)

plus SinglePagePaging for APIs without server-side paging (the whole
collection is fetched and sliced locally).

Totals are best-effort. Unless a strategy is given a `total_path` pointing
at an authoritative count, `has_next_page` is inferred from a full page.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

import structlog

from connectkit.models import PagedResult, Record
from connectkit.resolver.extractor import extract, resolve_path

logger = structlog.get_logger(__name__)

Fetch = Callable[[dict[str, str]], Awaitable[Any]]


@dataclass(frozen=True)
class PageRequest:
    """
    Everything a strategy needs to issue one page call.

    `fetch` receives the full query parameters for the page and returns the
    parsed JSON document. `extract` turns that document into records.
    """

    fetch: Fetch
    params: Mapping[str, str] = field(default_factory=dict)
    root: str | None = None
    extract: Callable[[Any], list[Record]] | None = None

    def records(self, document: Any) -> list[Record]:
        if self.extract is not None:
            return self.extract(document)
        return extract(document, self.root)


def _read_total(document: Any, path: str | None) -> int | None:
    if not path:
        return None
    value = resolve_path(document, path)
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class PagingStrategy(ABC):
    """Base class for page walkers."""

    style: str = "abstract"

    def __init__(
        self,
        *,
        min_page_size: int = 1,
        max_page_size: int | None = None,
        total_path: str | None = None,
    ):
        self.min_page_size = max(1, min_page_size)
        self.max_page_size = max_page_size
        self.total_path = total_path

    def clamp(self, page_size: int) -> int:
        size = max(self.min_page_size, page_size)
        if self.max_page_size is not None:
            size = min(size, self.max_page_size)
        return size

    @abstractmethod
    async def walk(self, request: PageRequest, page_size: int, start_page: int = 1) -> PagedResult:
        """Fetch page `start_page` of `page_size` records."""
        ...

    async def iter_pages(
        self, request: PageRequest, page_size: int, max_pages: int | None = None
    ) -> AsyncIterator[PagedResult]:
        """Yield pages from the first until the vendor reports no more."""
        page_number = 1
        while True:
            page = await self.walk(request, page_size, page_number)
            yield page
            if not page.has_next_page or not page.data:
                return
            if max_pages is not None and page_number >= max_pages:
                return
            page_number += 1

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} style={self.style!r}>"


class SinglePagePaging(PagingStrategy):
    """Fetch everything once and slice locally."""

    style = "none"

    async def walk(self, request: PageRequest, page_size: int, start_page: int = 1) -> PagedResult:
        page_size = self.clamp(page_size)
        page_number = max(1, start_page)
        document = await request.fetch(dict(request.params))
        items = request.records(document)
        start = (page_number - 1) * page_size
        return PagedResult.estimate(
            items[start : start + page_size],
            page_number,
            page_size,
            total=len(items),
        )


class OffsetLimitPaging(PagingStrategy):
    """`limit=<size>&offset=(page-1)*size`."""

    style = "offset"

    def __init__(self, *, limit_param: str = "limit", offset_param: str = "offset", **kwargs):
        super().__init__(**kwargs)
        self.limit_param = limit_param
        self.offset_param = offset_param

    def page_params(self, page_size: int, page_number: int) -> dict[str, str]:
        return {
            self.limit_param: str(page_size),
            self.offset_param: str((page_number - 1) * page_size),
        }

    async def walk(self, request: PageRequest, page_size: int, start_page: int = 1) -> PagedResult:
        page_size = self.clamp(page_size)
        page_number = max(1, start_page)
        params = {**request.params, **self.page_params(page_size, page_number)}
        document = await request.fetch(params)
        items = request.records(document)
        return PagedResult.estimate(
            items, page_number, page_size, total=_read_total(document, self.total_path)
        )


class MaxResultsPaging(PagingStrategy):
    """
    Vendor-capped page size plus a position parameter.

    position_style="start": position = (page-1)*size + 1 (QuickBooks
    `startposition`). position_style="page": position = page number.
    By default the position is only sent for pages after the first.
    """

    style = "max_results"

    def __init__(
        self,
        *,
        size_param: str = "maxresults",
        position_param: str = "startposition",
        position_style: Literal["start", "page"] = "start",
        always_send_position: bool = False,
        max_page_size: int | None = 1000,
        **kwargs,
    ):
        super().__init__(max_page_size=max_page_size, **kwargs)
        self.size_param = size_param
        self.position_param = position_param
        self.position_style = position_style
        self.always_send_position = always_send_position

    def page_params(self, page_size: int, page_number: int) -> dict[str, str]:
        params = {self.size_param: str(page_size)}
        if page_number > 1 or self.always_send_position:
            if self.position_style == "start":
                position = (page_number - 1) * page_size + 1
            else:
                position = page_number
            params[self.position_param] = str(position)
        return params

    async def walk(self, request: PageRequest, page_size: int, start_page: int = 1) -> PagedResult:
        page_size = self.clamp(page_size)
        page_number = max(1, start_page)
        params = {**request.params, **self.page_params(page_size, page_number)}
        document = await request.fetch(params)
        items = request.records(document)
        return PagedResult.estimate(
            items, page_number, page_size, total=_read_total(document, self.total_path)
        )


class CursorState(str, enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    HAS_MORE = "has_more"
    EXHAUSTED = "exhausted"


class CursorPaging(PagingStrategy):
    """
    Follow `next_cursor` tokens.

    Reaching page N costs N calls: cursors are opaque, so there is no way
    to jump ahead.
    """

    style = "cursor"

    def __init__(
        self,
        *,
        cursor_param: str = "cursor",
        next_cursor_path: str = "response_metadata.next_cursor",
        size_param: str | None = "limit",
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.cursor_param = cursor_param
        self.next_cursor_path = next_cursor_path
        self.size_param = size_param

    def next_cursor(self, document: Any) -> str | None:
        token = resolve_path(document, self.next_cursor_path)
        if token is None or isinstance(token, (dict, list)):
            return None
        token = str(token).strip()
        return token or None

    def _base_params(self, request: PageRequest, page_size: int) -> dict[str, str]:
        params = dict(request.params)
        params.pop(self.cursor_param, None)
        if self.size_param:
            params[self.size_param] = str(page_size)
        return params

    async def walk(self, request: PageRequest, page_size: int, start_page: int = 1) -> PagedResult:
        page_size = self.clamp(page_size)
        target = max(1, start_page)
        params = self._base_params(request, page_size)

        state = CursorState.IDLE
        cursor: str | None = None
        pages_fetched = 0
        records_seen = 0
        items: list[Record] = []

        while state in (CursorState.IDLE, CursorState.HAS_MORE):
            state = CursorState.FETCHING
            call_params = dict(params)
            if cursor:
                call_params[self.cursor_param] = cursor
            document = await request.fetch(call_params)
            pages_fetched += 1
            items = request.records(document)
            records_seen += len(items)
            cursor = self.next_cursor(document)

            if cursor and pages_fetched < target:
                state = CursorState.HAS_MORE
                logger.debug("cursor_page_advanced", page=pages_fetched, target=target)
            else:
                state = CursorState.EXHAUSTED

        if pages_fetched < target:
            # The cursor ran out before the requested page existed.
            return PagedResult(
                data=[],
                page_number=target,
                page_size=page_size,
                total_records=records_seen,
                total_pages=pages_fetched,
                has_previous_page=target > 1,
                has_next_page=False,
            )

        return PagedResult(
            data=items,
            page_number=target,
            page_size=page_size,
            total_records=records_seen,
            total_pages=pages_fetched + 1 if cursor else pages_fetched,
            has_previous_page=target > 1,
            has_next_page=cursor is not None,
        )

    async def iter_pages(
        self, request: PageRequest, page_size: int, max_pages: int | None = None
    ) -> AsyncIterator[PagedResult]:
        page_size = self.clamp(page_size)
        params = self._base_params(request, page_size)
        cursor: str | None = None
        page_number = 0
        records_seen = 0

        while True:
            call_params = dict(params)
            if cursor:
                call_params[self.cursor_param] = cursor
            document = await request.fetch(call_params)
            page_number += 1
            items = request.records(document)
            records_seen += len(items)
            cursor = self.next_cursor(document)
            yield PagedResult(
                data=items,
                page_number=page_number,
                page_size=page_size,
                total_records=records_seen,
                total_pages=page_number + 1 if cursor else page_number,
                has_previous_page=page_number > 1,
                has_next_page=cursor is not None,
            )
            if cursor is None:
                return
            if max_pages is not None and page_number >= max_pages:
                return


def build_strategy(style: str, **options: Any) -> PagingStrategy:
    """Strategy instance for a manifest `paging.style` value."""
    strategies: dict[str, type[PagingStrategy]] = {
        "none": SinglePagePaging,
        "offset": OffsetLimitPaging,
        "cursor": CursorPaging,
        "max_results": MaxResultsPaging,
    }
    try:
        cls = strategies[style]
    except KeyError:
        raise ValueError(f"Unknown paging style '{style}'. Available: {sorted(strategies)}") from None
    return cls(**options)

