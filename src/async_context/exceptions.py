"""Exceptions for the async-context package.

The binding primitive itself has no failure modes: creating a handle and
reading it never fail, and ``ContextHandle.run`` re-raises whatever the
operation raised, unchanged. The classes here only cover misuse of the
lower-level carrier API.

Exception Hierarchy:
    AsyncContextError (base)
    └── CarrierSeedError (carrier seeded twice or after a bind)
"""


class AsyncContextError(Exception):
    """Base exception for all async-context errors."""

    pass


class CarrierSeedError(AsyncContextError):
    """Raised when a carrier's baseline cannot be established.

    The baseline binding is established exactly once, when the owning handle
    is created and before anything is bound through the carrier. Seeding a
    second time, or after a binding was made, would detach the existing
    bindings from the slot they were made in.

    Attributes:
        carrier_name: Name of the carrier that was seeded
        reason: Why the seed was rejected
    """

    def __init__(self, carrier_name: str, reason: str = "has already been seeded") -> None:
        """Initialize CarrierSeedError.

        Args:
            carrier_name: Name of the carrier that was seeded
            reason: Why the seed was rejected
        """
        self.carrier_name = carrier_name
        self.reason = reason
        super().__init__(f"Carrier '{carrier_name}' {reason}")

    def __repr__(self) -> str:
        """Developer-friendly representation."""
        return f"CarrierSeedError(carrier={self.carrier_name!r}, reason={self.reason!r})"
