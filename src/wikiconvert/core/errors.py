"""
Structured error types for wikiconvert.

Every failure the conversion engine can observe is a ``ConverterError``
subclass that carries a category, an explicit retry flag, structured
context and the chained cause. The hierarchy mirrors the three stages of
a conversion run:

Manifesto:
    - **Typed Error Hierarchy:** Resolution, surface and precondition
      failures are different types, handled at different levels
    - **Explicit Retry Semantics:** Each error knows if it's retryable,
      but nothing in the engine retries on its own
    - **Rich Context:** Errors carry the reference, channel or item they
      concern for logging
    - **Error Chaining:** httpx and surface exceptions are kept as cause

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                      ConverterError                             │
        │  (category, retryable, context, cause)                          │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                 │
        │  ResolutionError            SurfaceError        PendingConflict │
        │  (kind: FailureKind)        (SURFACE)           (CONFLICT)      │
        │       │                          │                              │
        │  InvalidReferenceFormat     WaitTimeoutError                    │
        │  ReferenceNotFound          MissingControlError                 │
        │  NoMappingAvailable         ClassificationNotFound              │
        │  TransportError             RecoveryFailedError                 │
        │                                                                 │
        │  ConfigError (CONFIG)       InternalStateError (INTERNAL)       │
        └─────────────────────────────────────────────────────────────────┘

Propagation:
    - ResolutionError: caught by the orchestrator, reported as the reason
      for ``resolved=False``
    - SurfaceError: caught by the relationship converter, turned into an
      item-level FAILED outcome
    - PendingConflictError: raised by ``ConversionOrchestrator.run`` before
      any network call or mutation

Tags:
    error-handling, exception-hierarchy, error-context, wikiconvert

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

import builtins
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Attributes:
        NETWORK: Transport failures talking to the lookup services
        SOURCE: The lookup service answered, but not with what we need
        VALIDATION: Malformed input references
        SURFACE: The external edit surface did not behave as expected
        CONFLICT: Another edit is already pending on the surface
        CONFIG: Missing or invalid configuration
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    NETWORK = "NETWORK"
    SOURCE = "SOURCE"
    VALIDATION = "VALIDATION"
    SURFACE = "SURFACE"
    CONFLICT = "CONFLICT"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


class FailureKind(str, Enum):
    """Why a resolution attempt failed. Stored on ``ResolutionResult``."""

    INVALID_REFERENCE_FORMAT = "invalid_reference_format"
    NOT_FOUND = "not_found"
    NO_MAPPING_AVAILABLE = "no_mapping_available"
    TRANSPORT_ERROR = "transport_error"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Attributes:
        reference: Reference (URI) being converted
        channel: Dispatcher channel the failing call went through
        url: URL that was being accessed
        http_status: HTTP status code if applicable
        item: Description of the relationship item concerned
        metadata: Additional key-value pairs
    """

    reference: str | None = None
    channel: str | None = None
    url: str | None = None
    http_status: int | None = None
    item: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["reference", "channel", "url", "http_status", "item"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ConverterError(Exception):
    """
    Base exception for all wikiconvert errors.

    Subclasses set ``default_category`` and ``default_retryable`` to give
    sensible defaults for their stage.

    Examples:
        >>> error = ConverterError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(reference="https://en.wikipedia.org/wiki/Bj%C3%B6rk")
        ConverterError('Something went wrong', category=INTERNAL)
        >>> error.to_dict()["context"]["reference"]
        'https://en.wikipedia.org/wiki/Bj%C3%B6rk'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ConverterError:
        """
        Add context to this error (fluent API).

        Usage:
            raise TransportError("HTTP 503").with_context(
                channel="wikipedia",
                url="https://en.wikipedia.org/w/api.php",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# RESOLUTION ERRORS (terminal for one resolution attempt)
# =============================================================================


class ResolutionError(ConverterError):
    """
    The lookup service could not produce a target identifier.

    Every subclass maps to one ``FailureKind`` so the orchestrator can
    report why ``resolved`` is false without keeping the exception type
    around.
    """

    default_category = ErrorCategory.SOURCE
    kind: FailureKind = FailureKind.TRANSPORT_ERROR


class InvalidReferenceFormatError(ResolutionError):
    """Reference does not have the expected ``(namespace, locator)`` shape."""

    default_category = ErrorCategory.VALIDATION
    kind = FailureKind.INVALID_REFERENCE_FORMAT


class ReferenceNotFoundError(ResolutionError):
    """The lookup service reports the locator does not exist."""

    kind = FailureKind.NOT_FOUND


class NoMappingAvailableError(ResolutionError):
    """The page exists but carries no cross-reference identifier."""

    kind = FailureKind.NO_MAPPING_AVAILABLE


class TransportError(ResolutionError):
    """HTTP-layer failure talking to a lookup service.

    Retryable in principle; the resolver never retries, the caller may
    re-run the whole conversion.
    """

    default_category = ErrorCategory.NETWORK
    default_retryable = True
    kind = FailureKind.TRANSPORT_ERROR


# =============================================================================
# SURFACE ERRORS (caught by the relationship converter)
# =============================================================================


class SurfaceError(ConverterError):
    """The external edit surface did not reach the expected state."""

    default_category = ErrorCategory.SURFACE


class WaitTimeoutError(SurfaceError, builtins.TimeoutError):
    """A surface condition did not appear (or disappear) before its deadline.

    Inherits from the built-in ``TimeoutError`` so generic handlers catch it.

    Attributes:
        timeout: The deadline in seconds that elapsed
        description: What was being waited for
    """

    def __init__(self, description: str, timeout: float, **kwargs: Any):
        self.timeout = timeout
        self.description = description
        super().__init__(f"Timed out after {timeout}s waiting for {description}", **kwargs)


class MissingControlError(SurfaceError):
    """A control the procedure needs (commit, selector, search) is absent."""


class ClassificationNotFoundError(SurfaceError):
    """None of the accepted classification labels was offered."""


class RecoveryFailedError(SurfaceError):
    """The best-effort dialog recovery did not close the dialog.

    Reported in logs only; the item's FAILED outcome stands either way.
    """


# =============================================================================
# PRECONDITION / CONFIG / INTERNAL
# =============================================================================


class PendingConflictError(ConverterError):
    """The surface already has a conflicting edit in progress."""

    default_category = ErrorCategory.CONFLICT


class ConfigError(ConverterError):
    """Invalid or missing configuration (e.g. unknown dispatcher channel)."""

    default_category = ErrorCategory.CONFIG


class InternalStateError(ConverterError):
    """An engine invariant was violated."""

    default_category = ErrorCategory.INTERNAL


class InvalidTransitionError(InternalStateError):
    """Raised when an illegal converter state transition is attempted."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Invalid ConverterState transition: {current} → {target}")


# =============================================================================
# HELPERS
# =============================================================================


def is_retryable(error: BaseException) -> bool:
    """Check whether an error is worth retrying by the caller."""
    if isinstance(error, ConverterError):
        return error.retryable
    return isinstance(error, (ConnectionError, builtins.TimeoutError))


def categorize_error(error: BaseException) -> ErrorCategory:
    """Best-effort category for any exception."""
    if isinstance(error, ConverterError):
        return error.category
    if isinstance(error, (ConnectionError, builtins.TimeoutError)):
        return ErrorCategory.NETWORK
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN
