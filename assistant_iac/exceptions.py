"""
Exception hierarchy for the AI assistant network.

Three failure families, each raised at a different stage:
- ConfigError: the NetworkSpec is invalid (user error, raised before any entity exists)
- TopologyError: a guarantee of the synthesizer itself was broken (internal fault)
- ProvisionError: the engine failed to create a resource (transient or permanent)

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the network package
"""

from typing import Any, Sequence


class NetworkIacException(Exception):
    """Base exception for all network infrastructure errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigError(NetworkIacException):
    """Raised when a NetworkSpec fails validation.

    Carries every violation found in the validation pass, not just the first.
    """

    def __init__(self, violations: Sequence[Any]) -> None:
        """
        Initialize config error.

        Args:
            violations: Every Violation reported for the input
        """
        self.violations = list(violations)
        lines = "; ".join(str(v) for v in self.violations)
        super().__init__(
            f"Invalid network configuration ({len(self.violations)} violation(s)): {lines}",
            {"fields": sorted({v.field for v in self.violations})},
        )


class TopologyError(NetworkIacException):
    """Raised when a synthesized topology breaks one of its own invariants."""

    def __init__(
        self,
        message: str,
        invariant: str,
        entity_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize topology error.

        Args:
            message: Error message
            invariant: Name of the invariant that was violated
            entity_id: Offending entity, if a single one is to blame
            details: Additional context
        """
        details = details or {}
        details["invariant"] = invariant
        if entity_id:
            details["entity_id"] = entity_id
        self.invariant = invariant
        self.entity_id = entity_id
        super().__init__(message, details)


# Error codes worth retrying; any "*.NotFound" code is an eventual-consistency race
TRANSIENT_ERROR_CODES: frozenset[str] = frozenset({
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "ServiceUnavailable",
    "InternalError",
    "DependencyViolation",
})


class ProvisionError(NetworkIacException):
    """Raised when the engine could not materialize an entity."""

    def __init__(
        self,
        entity_id: str,
        code: str,
        message: str,
        bundle_index: int | None = None,
    ) -> None:
        """
        Initialize provision error.

        Args:
            entity_id: Entity the engine failed to create
            code: Provider error code (e.g. 'RequestLimitExceeded')
            message: Provider error message, kept verbatim
            bundle_index: AZ bundle the entity belongs to, None for shared entities
        """
        self.entity_id = entity_id
        self.code = code
        self.bundle_index = bundle_index
        details: dict[str, Any] = {"entity_id": entity_id, "code": code}
        if bundle_index is not None:
            details["bundle_index"] = bundle_index
        super().__init__(message, details)

    @property
    def transient(self) -> bool:
        """Whether retrying the same request can succeed."""
        return self.code in TRANSIENT_ERROR_CODES or self.code.endswith(".NotFound")
