"""Pagination — page request derived from query parameters at construction time.

Invariants:
    - Two mutually exclusive modes: OFFSET (offset/limit, default) and PAGE (page/pageSize)
    - PAGE mode is selected iff the query carries a truthy `page`
    - Missing keys are filled from PaginationDefaults, both in the PageRequest and
      back into the request's query mapping (handlers reading the query see them)
    - Values pass through uninterpreted; window() is the only place that validates
    - Deterministic: identical (method, query, defaults) → identical PageRequest

Design Decisions:
    - Pure function over constructor logic: testable without building a RouteMap
    - Only methods listed in PaginationDefaults.methods are paged (GET by default),
      mirroring list semantics — a POST body is never a page
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, MutableMapping

from routemap.core.errors import BadRequestError


class PaginationMode(str, Enum):
    OFFSET = "offset"
    PAGE = "page"


@dataclass(frozen=True)
class PaginationDefaults:
    """Defaults applied when the relevant query keys are absent."""
    limit: int = 10
    offset: int = 0
    page_size: int = 10
    methods: tuple[str, ...] = ("GET",)


@dataclass(frozen=True)
class PageRequest:
    mode: PaginationMode
    offset: Any = None
    limit: Any = None
    page: Any = None
    page_size: Any = None

    def as_dict(self) -> dict[str, Any]:
        """Query-shaped view: {offset, limit} or {page, pageSize}."""
        if self.mode is PaginationMode.PAGE:
            return {"page": self.page, "pageSize": self.page_size}
        return {"offset": self.offset, "limit": self.limit}

    def window(self) -> tuple[int, int]:
        """Integer (offset, limit) for a data fetch. Raises BadRequestError if malformed."""
        try:
            if self.mode is PaginationMode.PAGE:
                page, size = int(self.page), int(self.page_size)
                if page < 1 or size < 1:
                    raise ValueError(f"page={page} pageSize={size}")
                return (page - 1) * size, size
            offset, limit = int(self.offset), int(self.limit)
            if offset < 0 or limit < 1:
                raise ValueError(f"offset={offset} limit={limit}")
            return offset, limit
        except (TypeError, ValueError) as e:
            raise BadRequestError("Invalid pagination parameters") from e


def derive_page_request(
    method: str,
    query: MutableMapping[str, Any],
    defaults: PaginationDefaults = PaginationDefaults(),
) -> PageRequest | None:
    """Build the PageRequest for a request, filling missing keys into `query`."""
    if method.upper() not in defaults.methods:
        return None
    if not query.get("page"):
        if not query.get("limit"):
            query["limit"] = defaults.limit
        if not query.get("offset"):
            query["offset"] = defaults.offset
        return PageRequest(
            mode=PaginationMode.OFFSET,
            offset=query["offset"],
            limit=query["limit"],
        )
    if not query.get("pageSize"):
        query["pageSize"] = defaults.page_size
    return PageRequest(
        mode=PaginationMode.PAGE,
        page=query["page"],
        page_size=query["pageSize"],
    )
