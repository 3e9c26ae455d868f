"""List-page helpers: status badges, search, pagination and view modes."""

import math
from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any, TypeVar

from mediation.models import Flow, FlowStatus

T = TypeVar("T")

STATUS_LABELS = {
    FlowStatus.RUNNING: "🟢 Running",
    FlowStatus.DEPLOYED: "🟡 Deployed",
    FlowStatus.DRAFT: "📝 Draft",
}


class ViewMode(str, Enum):
    LIST = "list"
    GRID = "grid"


def flow_status(flow: Flow) -> FlowStatus:
    return flow.status


def status_label(flow: Flow) -> str:
    return STATUS_LABELS[flow_status(flow)]


def deployment_label(is_deployed: bool) -> str:
    """Badge text for node families and parameters."""
    return "Deployed" if is_deployed else "Draft"


def search(items: Iterable[T], term: str, fields: Callable[[T], Iterable[Any]] | None = None) -> list[T]:
    """Case-insensitive substring filter.

    By default matches on ``name``; ``fields`` can return extra values to
    search (for example a subnode's node family name). ``None`` values are
    skipped.
    """
    needle = term.strip().lower()
    items = list(items)
    if not needle:
        return items

    def values(item: T) -> Iterable[Any]:
        return fields(item) if fields else [getattr(item, "name", None)]

    return [
        item
        for item in items
        if any(v is not None and needle in str(v).lower() for v in values(item))
    ]


def paginate(items: list[T], page: int = 1, page_size: int = 20) -> tuple[list[T], int]:
    """Return one page of ``items`` and the total page count.

    Pages are 1-based; a page past the end is empty. There is always at
    least one page.
    """
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    if page < 1:
        raise ValueError("page must be at least 1")
    total_pages = max(1, math.ceil(len(items) / page_size))
    start = (page - 1) * page_size
    return items[start : start + page_size], total_pages


def status_counts(flows: Iterable[Flow]) -> dict[FlowStatus, int]:
    """Number of flows in each status, every status present."""
    counts = {status: 0 for status in FlowStatus}
    for flow in flows:
        counts[flow_status(flow)] += 1
    return counts
