"""Propagation carrier: the boundary between handles and the host runtime.

A carrier owns one binding slot and knows how to make a value visible for the
extent of an operation and everything spawned from it. ContextHandle only
talks to the Carrier interface, so the bind/restore rules in handle.py do not
depend on which runtime facility actually moves the binding around.

ContextVarCarrier is the implementation used by create_context(). It relies
on contextvars, which asyncio already integrates with:
- every Task runs in a copy of the context it was created in
- call_soon / call_later / call_at callbacks capture the current context
- asyncio.to_thread runs the function in a copy of the caller's context

Nested extents are a stack of ContextVar tokens. Each extent resets its own
token when the operation settles, so siblings running in other tasks or
threads never see each other's bindings.
"""

from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Coroutine, Iterator
from contextlib import AbstractContextManager, contextmanager
from contextvars import ContextVar
from typing import Any, Final, Generic, TypeVar

from .config import get_settings
from .exceptions import CarrierSeedError

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class _Missing:
    """Marker for "nothing bound in this causal chain"."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()


class Carrier(ABC, Generic[T]):
    """Runtime facility that scopes a binding to an execution extent.

    Implementations must guarantee that:
    - a binding made for an extent is visible to everything running in it,
      including work spawned there and resumed after suspension
    - the previous binding is visible again once the extent ends, whether
      it ended normally or by an exception
    - concurrent extents never observe each other's bindings
    """

    @abstractmethod
    def seed(self, initial: T) -> None:
        """Establish the baseline binding seen outside any extent."""
        pass

    @abstractmethod
    def extent(self, value: T) -> AbstractContextManager[T]:
        """Context manager binding value until the with-block exits."""
        pass

    @abstractmethod
    def current_binding(self) -> T | _Missing:
        """Return the binding visible to the caller, or MISSING."""
        pass

    def bind_for_extent(
        self, value: T, operation: Callable[..., R], *args: Any, **kwargs: Any
    ) -> R | Coroutine[Any, Any, Any]:
        """Call operation with value bound, restoring the previous binding after.

        Plain results are returned once the binding has been restored. When the
        operation returns an awaitable (a coroutine, Task or Future) the binding
        is restored immediately and a coroutine is returned instead; awaiting it
        binds value again for the awaiting extent until the awaitable settles.
        A coroutine's body does not start until it is awaited, so it only ever
        runs with value bound.

        Exceptions from operation propagate unchanged after the restore.
        """
        with self.extent(value):
            result = operation(*args, **kwargs)

        if inspect.isawaitable(result):
            return self._settle(value, result)
        return result

    async def _settle(self, value: T, awaitable: Awaitable[R]) -> R:
        with self.extent(value):
            return await awaitable


class ContextVarCarrier(Carrier[T]):
    """Carrier backed by a dedicated contextvars.ContextVar.

    Each instance creates its own ContextVar, so two carriers never share a
    slot even when they carry equal values.
    """

    def __init__(self, name: str, *, trace: bool | None = None) -> None:
        """
        Initialize an unseeded carrier.

        Args:
            name: Diagnostic name, also used as the ContextVar name
            trace: Log every bind and restore at DEBUG. Defaults to
                ContextSettings.trace_bindings.
        """
        self.name = name
        self._var: ContextVar[T] = ContextVar(name)
        self._seeded = False
        self._bound = False
        self._trace = get_settings().trace_bindings if trace is None else trace

    def seed(self, initial: T) -> None:
        """Make initial the baseline binding in every context.

        The baseline becomes the ContextVar default, so it is visible from
        contexts that existed before the carrier was seeded as well as from
        unrelated threads.

        Raises:
            CarrierSeedError: If the carrier was already seeded, or if a
                binding was made through it before seeding
        """
        if self._seeded:
            raise CarrierSeedError(self.name)
        if self._bound:
            raise CarrierSeedError(self.name, "cannot be seeded after a binding was made")
        self._var = ContextVar(self.name, default=initial)
        self._seeded = True

    @contextmanager
    def extent(self, value: T) -> Iterator[T]:
        # Tokens belong to this ContextVar; seed() must never replace it from here on.
        self._bound = True
        token = self._var.set(value)
        if self._trace:
            logger.debug(f"Bound {self.name}={value!r}")
        try:
            yield value
        finally:
            # Tokens are per-context: the reset always happens in the context
            # (task or thread) that made the binding.
            self._var.reset(token)
            if self._trace:
                logger.debug(f"Restored {self.name}")

    def current_binding(self) -> T | _Missing:
        try:
            return self._var.get()
        except LookupError:
            return MISSING

    def __repr__(self) -> str:
        return f"ContextVarCarrier(name={self.name!r}, seeded={self._seeded})"


__all__ = ["MISSING", "Carrier", "ContextVarCarrier"]
