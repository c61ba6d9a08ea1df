"""Async context propagation for Python.

Bind a value for the extent of an operation and read it anywhere in the
call chain, across awaits, tasks, timers and context-aware thread pools,
without passing it as a parameter.

Key Components:

- create_context / ContextHandle: typed handle owning one binding slot
- use: read the value bound for the current extent
- ContextHandle.run / ContextHandle.bind: bind a value around an operation or block
- run_with_context: reusable runner for a fixed binding
- Carrier / ContextVarCarrier: runtime facility behind every handle
- snapshot / bind_current / ContextAwareThreadPoolExecutor: carry bindings
  across hand-offs that do not copy the context themselves
- ContextSettings / configure_logging: environment-driven configuration

Example:
    >>> from async_context import create_context, use
    >>>
    >>> tenant = create_context("public")
    >>>
    >>> async def list_orders():
    ...     await asyncio.sleep(0)
    ...     return f"orders for {use(tenant)}"
    >>>
    >>> await tenant.run("acme", list_orders)
    'orders for acme'
"""

from .carrier import MISSING, Carrier, ContextVarCarrier
from .config import ContextSettings, configure_logging, get_settings, reset_settings
from .exceptions import AsyncContextError, CarrierSeedError
from .handle import ContextHandle, ContextRunner, create_context, run_with_context, use
from .propagation import ContextAwareThreadPoolExecutor, bind_current, snapshot

__version__ = "1.0.0"

__all__ = [
    # Handles
    "ContextHandle",
    "create_context",
    "use",
    "run_with_context",
    "ContextRunner",
    # Carrier
    "Carrier",
    "ContextVarCarrier",
    "MISSING",
    # Propagation
    "snapshot",
    "bind_current",
    "ContextAwareThreadPoolExecutor",
    # Configuration
    "ContextSettings",
    "get_settings",
    "reset_settings",
    "configure_logging",
    # Exceptions
    "AsyncContextError",
    "CarrierSeedError",
]
