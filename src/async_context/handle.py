"""Context handles: typed, scoped access to one ambient value.

A handle binds a value for the extent of an operation. Everything that
operation awaits or spawns sees the value without it being passed as a
parameter, while concurrent operations keep seeing their own.

Example:
    >>> request_id = create_context("-")
    >>>
    >>> async def handler():
    ...     await asyncio.sleep(0.01)
    ...     return use(request_id)
    >>>
    >>> await request_id.run("req-42", handler)
    'req-42'
    >>> use(request_id)
    '-'
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Awaitable, Callable, Coroutine, Iterator
from contextlib import contextmanager
from typing import Any, Generic, Protocol, TypeVar, overload

from .carrier import MISSING, Carrier, ContextVarCarrier

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

_handle_ids = itertools.count(1)


class ContextRunner(Protocol):
    """Callable returned by run_with_context; typed like ContextHandle.run."""

    @overload
    def __call__(
        self, operation: Callable[..., Awaitable[R]], /, *args: Any, **kwargs: Any
    ) -> Coroutine[Any, Any, R]: ...

    @overload
    def __call__(self, operation: Callable[..., R], /, *args: Any, **kwargs: Any) -> R: ...


class ContextHandle(Generic[T]):
    """Capability object granting read/bind access to one context slot.

    Handles are compared by identity. Each one owns its carrier, so handles
    created with equal defaults are still independent.
    """

    def __init__(self, initial_value: T, carrier: Carrier[T], name: str) -> None:
        self._default = initial_value
        self._carrier = carrier
        self._name = name

    @property
    def default(self) -> T:
        """Value visible outside any run() call."""
        return self._default

    @property
    def name(self) -> str:
        """Diagnostic label; not part of identity."""
        return self._name

    def read(self) -> T:
        """Return the value bound for the current extent.

        Bindings are inherited from enclosing extents; when nothing in the
        causal chain bound this handle, the default is returned.
        """
        value = self._carrier.current_binding()
        if value is MISSING:
            return self._default
        return value  # type: ignore[return-value]

    @overload
    def run(
        self, value: T, operation: Callable[..., Awaitable[R]], *args: Any, **kwargs: Any
    ) -> Coroutine[Any, Any, R]: ...

    @overload
    def run(self, value: T, operation: Callable[..., R], *args: Any, **kwargs: Any) -> R: ...

    def run(self, value: T, operation: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Call operation(*args, **kwargs) with value bound.

        For a coroutine function (or anything returning an awaitable) the
        result is a coroutine to await, and the binding lasts until the
        awaitable settles:

            orders = await tenant.run("tenant-a", fetch_orders, limit=10)

        For a plain callable the result is returned directly. Either way the
        previous binding is visible again once the operation has returned or
        raised, and exceptions propagate unchanged.
        """
        return self._carrier.bind_for_extent(value, operation, *args, **kwargs)

    @contextmanager
    def bind(self, value: T) -> Iterator[T]:
        """Bind value for the body of a with-block.

        Usable inside coroutines as long as the block does not span tasks.
        The previous binding is restored when the block exits, including on
        exceptions.
        """
        with self._carrier.extent(value):
            yield value

    def __repr__(self) -> str:
        return f"ContextHandle(name={self._name!r}, default={self._default!r})"


def create_context(initial_value: T, *, name: str | None = None) -> ContextHandle[T]:
    """Create a new context handle.

    The carrier is seeded immediately, so reading the handle before any
    run() call returns initial_value.

    Args:
        initial_value: Value visible outside any run() call
        name: Optional label for logs and repr (not part of the handle's identity)

    Returns:
        A fresh handle, independent of every other handle
    """
    if name is None:
        name = f"async_context.{next(_handle_ids)}"
    carrier: ContextVarCarrier[T] = ContextVarCarrier(name)
    carrier.seed(initial_value)
    logger.debug(f"Created context handle {name!r} with default {initial_value!r}")
    return ContextHandle(initial_value, carrier, name)


def use(handle: ContextHandle[T]) -> T:
    """Return the value bound for handle in the current extent."""
    return handle.read()


def run_with_context(handle: ContextHandle[T], value: T) -> ContextRunner:
    """Return a runner that binds value on handle around each operation.

    Example:
        >>> as_admin = run_with_context(role, "admin")
        >>> await as_admin(delete_user, user_id)
        >>> await as_admin(audit_report)
    """

    def runner(operation: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        return handle.run(value, operation, *args, **kwargs)

    return runner


__all__ = ["ContextHandle", "ContextRunner", "create_context", "run_with_context", "use"]
