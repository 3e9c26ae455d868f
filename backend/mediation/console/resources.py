"""Cancellable data resources for console views.

A Resource holds the ``data``, ``loading`` and ``error`` state of one view's
fetch. ``start()`` kicks off the first load, ``refetch()`` reloads, and
``close()`` cancels whatever is in flight so a view that has gone away never
receives a late result.

Example:
    flows = Resource(lambda: flow_client.list_flows(), initial=[])
    flows.start()
    await flows.wait()
    ...
    await flows.close()
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from mediation.client.base import ApiResult, DataSource, user_message

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Resource(Generic[T]):
    """State of one asynchronous read."""

    def __init__(self, fetch: Callable[[], Awaitable[ApiResult[T]]], initial: T | None = None):
        self._fetch = fetch
        self.data: T | None = initial
        self.loading = False
        self.error: str | None = None
        self.source: DataSource | None = None
        self.notice: str | None = None
        self._task: asyncio.Task | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> asyncio.Task | None:
        """Begin loading in the background. Must be called inside a running loop."""
        if self._closed:
            return None
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self.loading = True
        self._task = asyncio.create_task(self._load())
        return self._task

    async def wait(self) -> None:
        """Wait for the current load, if any, to finish."""
        if self._task is not None:
            try:
                await self._task
            except asyncio.CancelledError:
                if not self._closed:
                    raise

    async def refetch(self) -> None:
        """Reload, replacing any load already in flight."""
        if self.start() is not None:
            await self.wait()

    async def close(self) -> None:
        """Cancel any in-flight load; the resource keeps its last state."""
        self._closed = True
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.loading = False

    async def _load(self) -> None:
        try:
            result = await self._fetch()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Resource load failed: {e}")
            self.error = user_message(e)
        else:
            self.data = result.data
            self.source = result.source
            self.error = None
            self.notice = user_message(result.error) if result.is_fallback else None
        finally:
            self.loading = False
