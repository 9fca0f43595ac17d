"""Tests for the structured error hierarchy."""

import httpx
import pytest

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
    NoMappingAvailableError,
    PendingConflictError,
    ReferenceNotFoundError,
    ResolutionError,
    SurfaceError,
    TransportError,
    WaitTimeoutError,
    categorize_error,
    is_retryable,
)


class TestErrorContext:
    def test_to_dict_skips_unset_fields(self):
        ctx = ErrorContext(reference="https://en.wikipedia.org/wiki/X", http_status=503)
        assert ctx.to_dict() == {"reference": "https://en.wikipedia.org/wiki/X", "http_status": 503}

    def test_metadata_is_merged(self):
        ctx = ErrorContext(channel="wikipedia", metadata={"title": "X"})
        assert ctx.to_dict() == {"channel": "wikipedia", "title": "X"}


class TestConverterError:
    """Tests for the base error."""

    def test_defaults(self):
        error = ConverterError("boom")
        assert error.message == "boom"
        assert error.category == ErrorCategory.INTERNAL
        assert error.retryable is False
        assert str(error) == "boom"

    def test_with_context_sets_known_fields_and_metadata(self):
        error = ConverterError("boom").with_context(url="https://x", language="de")
        assert error.context.url == "https://x"
        assert error.context.metadata == {"language": "de"}

    def test_with_context_is_fluent(self):
        error = TransportError("down")
        assert error.with_context(channel="wikipedia") is error

    def test_cause_is_chained(self):
        cause = httpx.ConnectError("refused")
        error = TransportError("down", cause=cause)
        assert error.__cause__ is cause
        assert error.to_dict()["cause"] == "refused"

    def test_to_dict(self):
        error = NoMappingAvailableError("no item").with_context(reference="ref")
        data = error.to_dict()
        assert data["error_type"] == "NoMappingAvailableError"
        assert data["category"] == "SOURCE"
        assert data["retryable"] is False
        assert data["context"] == {"reference": "ref"}

    def test_repr(self):
        assert repr(ConfigError("bad")) == "ConfigError('bad', category=CONFIG)"


class TestResolutionErrors:
    @pytest.mark.parametrize(
        ("cls", "kind"),
        [
            (InvalidReferenceFormatError, FailureKind.INVALID_REFERENCE_FORMAT),
            (ReferenceNotFoundError, FailureKind.NOT_FOUND),
            (NoMappingAvailableError, FailureKind.NO_MAPPING_AVAILABLE),
            (TransportError, FailureKind.TRANSPORT_ERROR),
        ],
    )
    def test_every_resolution_error_has_a_kind(self, cls, kind):
        error = cls("x")
        assert isinstance(error, ResolutionError)
        assert error.kind is kind

    def test_only_transport_errors_are_retryable(self):
        assert TransportError("x").retryable is True
        assert TransportError("x").category == ErrorCategory.NETWORK
        assert ReferenceNotFoundError("x").retryable is False
        assert InvalidReferenceFormatError("x").category == ErrorCategory.VALIDATION


class TestSurfaceErrors:
    def test_wait_timeout_message(self):
        error = WaitTimeoutError("relationship dialog", 5.0)
        assert error.message == "Timed out after 5.0s waiting for relationship dialog"
        assert error.timeout == 5.0
        assert error.description == "relationship dialog"

    def test_wait_timeout_is_a_builtin_timeout(self):
        error = WaitTimeoutError("x", 1.0)
        assert isinstance(error, SurfaceError)
        assert isinstance(error, TimeoutError)
        assert str(error) == "Timed out after 1.0s waiting for x"

    def test_surface_category(self):
        assert ClassificationNotFoundError("x").category == ErrorCategory.SURFACE

    def test_pending_conflict_is_not_a_surface_error(self):
        error = PendingConflictError("pending")
        assert not isinstance(error, SurfaceError)
        assert error.category == ErrorCategory.CONFLICT


class TestInvalidTransitionError:
    def test_message_and_attributes(self):
        error = InvalidTransitionError("failed", "pending")
        assert isinstance(error, InternalStateError)
        assert error.current == "failed"
        assert error.target == "pending"
        assert "failed → pending" in error.message


class TestHelpers:
    def test_is_retryable(self):
        assert is_retryable(TransportError("x"))
        assert not is_retryable(NoMappingAvailableError("x"))
        assert is_retryable(ConnectionError())
        assert not is_retryable(ValueError())

    def test_categorize_error(self):
        assert categorize_error(PendingConflictError("x")) == ErrorCategory.CONFLICT
        assert categorize_error(TimeoutError()) == ErrorCategory.NETWORK
        assert categorize_error(ValueError()) == ErrorCategory.VALIDATION
        assert categorize_error(RuntimeError()) == ErrorCategory.UNKNOWN
