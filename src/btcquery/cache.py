"""
Keyed single-flight memoization for DataSource lookups.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from loguru import logger

from btcquery.models import Utxo

T = TypeVar("T")


class MemoCache:
    """
    Memoize coroutine results by key.

    - A None key bypasses the cache entirely.
    - Concurrent callers of an unseen key share one in-flight task.
    - Only successful results are stored; a failure removes the entry so
      the next call retries.
    """

    def __init__(self, name: str = "memo"):
        self.name = name
        self._values: dict[str, Any] = {}
        self._pending: dict[str, asyncio.Task[Any]] = {}
        self._lock = asyncio.Lock()

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    async def get_or_compute(self, key: str | None, producer: Callable[[], Awaitable[T]]) -> T:
        if key is None:
            return await producer()

        async with self._lock:
            if key in self._values:
                logger.debug(f"{self.name} cache hit: {key}")
                return self._values[key]

            task = self._pending.get(key)
            if task is None:
                logger.debug(f"{self.name} cache miss: {key}")
                task = asyncio.ensure_future(producer())
                self._pending[key] = task
                task.add_done_callback(lambda t, key=key: self._on_done(key, t))

        # Shielded so one cancelled waiter does not cancel the shared fetch
        return await asyncio.shield(task)

    def _on_done(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._pending.get(key) is task:
            del self._pending[key]
        if task.cancelled():
            return
        if task.exception() is None:
            self._values[key] = task.result()
        else:
            logger.debug(f"{self.name} not caching failed result for {key}")

    def clear(self) -> None:
        self._values.clear()


class DataCache:
    """Caches owned by a DataSource: UTXO lists and RGB++ asset checks"""

    def __init__(self) -> None:
        self.utxos: MemoCache = MemoCache("utxos")
        self.has_rgbpp_assets: MemoCache = MemoCache("has_rgbpp_assets")

    async def optional_cache_utxos(
        self, key: str | None, getter: Callable[[], Awaitable[list[Utxo]]]
    ) -> list[Utxo]:
        return await self.utxos.get_or_compute(key, getter)

    async def optional_cache_has_rgbpp_assets(
        self, key: str | None, getter: Callable[[], Awaitable[bool]]
    ) -> bool:
        return await self.has_rgbpp_assets.get_or_compute(key, getter)

    def clear(self) -> None:
        self.utxos.clear()
        self.has_rgbpp_assets.clear()
