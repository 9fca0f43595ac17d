"""
wikiconvert core primitives: data model, surface protocols, errors,
settings and logging. Nothing here performs I/O.
"""

from wikiconvert.core.errors import (
    ClassificationNotFoundError,
    ConfigError,
    ConverterError,
    ErrorCategory,
    ErrorContext,
    FailureKind,
    InternalStateError,
    InvalidReferenceFormatError,
    InvalidTransitionError,
    MissingControlError,
    NoMappingAvailableError,
    PendingConflictError,
    RecoveryFailedError,
    ReferenceNotFoundError,
    ResolutionError,
    SurfaceError,
    TransportError,
    WaitTimeoutError,
    categorize_error,
    is_retryable,
)
from wikiconvert.core.models import (
    Classification,
    ConversionRequest,
    ConversionVerdict,
    ConverterState,
    ItemOutcome,
    RelationshipItem,
    ResolutionResult,
    VerdictStatus,
)
from wikiconvert.core.protocols import (
    ClassificationOption,
    Control,
    EditSurface,
    RelationshipDialog,
    RelationshipHandle,
    SearchField,
)

__all__ = [
    # errors
    "ConverterError",
    "ErrorCategory",
    "ErrorContext",
    "FailureKind",
    "ResolutionError",
    "InvalidReferenceFormatError",
    "ReferenceNotFoundError",
    "NoMappingAvailableError",
    "TransportError",
    "SurfaceError",
    "WaitTimeoutError",
    "MissingControlError",
    "ClassificationNotFoundError",
    "RecoveryFailedError",
    "PendingConflictError",
    "ConfigError",
    "InternalStateError",
    "InvalidTransitionError",
    "is_retryable",
    "categorize_error",
    # models
    "Classification",
    "ConversionRequest",
    "ConversionVerdict",
    "ConverterState",
    "ItemOutcome",
    "RelationshipItem",
    "ResolutionResult",
    "VerdictStatus",
    # protocols
    "Control",
    "SearchField",
    "ClassificationOption",
    "RelationshipDialog",
    "RelationshipHandle",
    "EditSurface",
]
