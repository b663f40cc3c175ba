"""Offloading of blocking file-system calls."""

from __future__ import annotations

import asyncio
import inspect
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Awaitable, Callable, TypeVar, cast

import msgspec

T = TypeVar("T")


class ExecutionConfig(msgspec.Struct, frozen=True):
    """Configuration for :class:`TaskExecutor`."""

    max_workers: int = 4
    thread_name_prefix: str = "servestatic"


class TaskExecutor:
    """Run blocking callables on a lazily created thread pool."""

    def __init__(self, config: ExecutionConfig | None = None) -> None:
        self.config = config or ExecutionConfig()
        self._thread_pool: ThreadPoolExecutor | None = None

    async def __aenter__(self) -> "TaskExecutor":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.shutdown()

    async def run(
        self,
        func: Callable[..., Awaitable[T]] | Callable[..., T],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Execute ``func`` without blocking the running event loop."""

        if inspect.iscoroutinefunction(func):
            coroutine = cast(Callable[..., Awaitable[T]], func)
            return await coroutine(*args, **kwargs)

        loop = asyncio.get_running_loop()
        pool = self._thread_pool or ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix=self.config.thread_name_prefix,
        )
        self._thread_pool = pool
        return await loop.run_in_executor(pool, _invoke_callable, func, args, kwargs)

    async def shutdown(self) -> None:
        """Shutdown the backing thread pool."""

        if self._thread_pool is not None:
            self._thread_pool.shutdown(wait=False, cancel_futures=True)
            self._thread_pool = None


def _invoke_callable(func: Callable[..., T], args: tuple[Any, ...], kwargs: dict[str, Any]) -> T:
    return func(*args, **kwargs)


__all__ = ["ExecutionConfig", "TaskExecutor"]
