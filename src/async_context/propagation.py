"""Carry the current bindings across hand-offs that do not copy context.

asyncio tasks, loop callbacks and asyncio.to_thread already inherit the
caller's context. These helpers cover the rest:
- loop.run_in_executor() / submit() on a plain ThreadPoolExecutor
- threading.Thread targets
- callbacks stored by other libraries and fired later from a foreign context
"""

from __future__ import annotations

import contextvars
import functools
import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, TypeVar

from .config import get_settings

logger = logging.getLogger(__name__)

R = TypeVar("R")


def snapshot() -> Callable[..., Any]:
    """Capture the current bindings and return a runner that restores them.

    runner(fn, *args, **kwargs) calls fn inside a fresh copy of the captured
    context. Every call gets its own copy, so the runner can be used from
    several threads at once and bindings made inside one call stay there.

    Example:
        >>> runner = snapshot()
        >>> threading.Thread(target=runner, args=(worker, job)).start()
    """
    captured = contextvars.copy_context()

    def runner(fn: Callable[..., R], *args: Any, **kwargs: Any) -> R:
        return captured.copy().run(fn, *args, **kwargs)

    return runner


def bind_current(fn: Callable[..., R]) -> Callable[..., R]:
    """Wrap fn so it always runs with the bindings visible right now."""
    runner = snapshot()

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> R:
        return runner(fn, *args, **kwargs)

    return wrapper


class ContextAwareThreadPoolExecutor(ThreadPoolExecutor):
    """ThreadPoolExecutor that propagates the submitter's bindings to workers.

    A plain ThreadPoolExecutor runs callables in the worker thread's own
    context, so handles read their defaults there. This subclass takes a
    copy_context() snapshot in the submitting thread and runs the callable
    inside it. map() goes through submit(), so it is covered too, as is
    loop.run_in_executor().

    max_workers defaults to ContextSettings.max_workers when not given.
    """

    def __init__(self, max_workers: int | None = None, *args: Any, **kwargs: Any) -> None:
        if max_workers is None:
            max_workers = get_settings().max_workers
        super().__init__(max_workers, *args, **kwargs)
        logger.debug(f"ContextAwareThreadPoolExecutor started with max_workers={self._max_workers}")

    def submit(self, fn: Callable[..., R], /, *args: Any, **kwargs: Any) -> Future[R]:
        ctx = contextvars.copy_context()
        return super().submit(ctx.run, fn, *args, **kwargs)


__all__ = ["ContextAwareThreadPoolExecutor", "bind_current", "snapshot"]
