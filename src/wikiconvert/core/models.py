"""Conversion domain models.

Defines the data structures that flow through a conversion run:
- ConversionRequest: the reference to convert plus its dependent items
- ResolutionResult: outcome of the identifier lookup, produced once
- RelationshipItem: one dependent annotation and its converter state
- ConversionVerdict: aggregate judgment computed after every item is terminal

Run state lives on these objects and is passed through the call chain;
nothing is kept in module-level flags.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from wikiconvert.core.errors import (
    FailureKind,
    InvalidTransitionError,
    ResolutionError,
)
from wikiconvert.core.links import is_wikidata_link, is_wikipedia_link
from wikiconvert.core.protocols import RelationshipHandle


class Classification(str, Enum):
    """Current relationship type of a dependent item."""

    WIKIPEDIA = "wikipedia"
    WIKIDATA = "wikidata"
    OTHER = "other"

    @classmethod
    def of_link(cls, link: str) -> Classification:
        """Classify a link; Wikidata wins over Wikipedia."""
        if is_wikidata_link(link):
            return cls.WIKIDATA
        if is_wikipedia_link(link):
            return cls.WIKIPEDIA
        return cls.OTHER


class ItemOutcome(str, Enum):
    """Terminal result of one item. Moves from PENDING exactly once."""

    PENDING = "pending"
    CONVERTED = "converted"
    REMOVED = "removed"
    FAILED = "failed"


class ConverterState(str, Enum):
    """State of the per-item re-classification procedure.

    Valid transition graph::

        PENDING                  → DIALOG_REQUESTED | CONFIRMED | REMOVAL_REQUESTED | FAILED
        DIALOG_REQUESTED         → DIALOG_OPEN | RECOVERY_ATTEMPTED
        DIALOG_OPEN              → TYPE_SELECTION_ATTEMPTED | RECOVERY_ATTEMPTED
        TYPE_SELECTION_ATTEMPTED → CONFIRMED | RECOVERY_ATTEMPTED
        RECOVERY_ATTEMPTED       → FAILED
        REMOVAL_REQUESTED        → REMOVED | FAILED
        CONFIRMED, REMOVED, FAILED → (terminal)

    ``PENDING → CONFIRMED`` covers items without an edit control, which
    need no re-classification. ``PENDING → FAILED`` covers removal of an
    item that has no remove control.
    """

    PENDING = "pending"
    DIALOG_REQUESTED = "dialog_requested"
    DIALOG_OPEN = "dialog_open"
    TYPE_SELECTION_ATTEMPTED = "type_selection_attempted"
    CONFIRMED = "confirmed"
    RECOVERY_ATTEMPTED = "recovery_attempted"
    FAILED = "failed"
    REMOVAL_REQUESTED = "removal_requested"
    REMOVED = "removed"


CONVERTER_VALID_TRANSITIONS: dict[ConverterState, frozenset[ConverterState]] = {
    ConverterState.PENDING: frozenset({
        ConverterState.DIALOG_REQUESTED,
        ConverterState.CONFIRMED,
        ConverterState.REMOVAL_REQUESTED,
        ConverterState.FAILED,
    }),
    ConverterState.DIALOG_REQUESTED: frozenset({
        ConverterState.DIALOG_OPEN,
        ConverterState.RECOVERY_ATTEMPTED,
    }),
    ConverterState.DIALOG_OPEN: frozenset({
        ConverterState.TYPE_SELECTION_ATTEMPTED,
        ConverterState.RECOVERY_ATTEMPTED,
    }),
    ConverterState.TYPE_SELECTION_ATTEMPTED: frozenset({
        ConverterState.CONFIRMED,
        ConverterState.RECOVERY_ATTEMPTED,
    }),
    ConverterState.RECOVERY_ATTEMPTED: frozenset({
        ConverterState.FAILED,
    }),
    ConverterState.REMOVAL_REQUESTED: frozenset({
        ConverterState.REMOVED,
        ConverterState.FAILED,
    }),
    ConverterState.CONFIRMED: frozenset(),  # terminal
    ConverterState.REMOVED: frozenset(),  # terminal
    ConverterState.FAILED: frozenset(),  # terminal
}

_TERMINAL_OUTCOMES: dict[ConverterState, ItemOutcome] = {
    ConverterState.CONFIRMED: ItemOutcome.CONVERTED,
    ConverterState.REMOVED: ItemOutcome.REMOVED,
    ConverterState.FAILED: ItemOutcome.FAILED,
}


def validate_converter_transition(current: ConverterState, target: ConverterState) -> None:
    """Raise :class:`InvalidTransitionError` if *current → target* is illegal.

    Example:
        >>> validate_converter_transition(ConverterState.PENDING, ConverterState.DIALOG_REQUESTED)
        >>> validate_converter_transition(ConverterState.FAILED, ConverterState.PENDING)
        Traceback (most recent call last):
        ...
        InvalidTransitionError: Invalid ConverterState transition: failed → pending
    """
    allowed = CONVERTER_VALID_TRANSITIONS.get(current, frozenset())
    if target not in allowed:
        raise InvalidTransitionError(current.value, target.value)


@dataclass
class RelationshipItem:
    """One dependent annotation tied to the primary reference.

    ``outcome`` is written only by :meth:`transition_to` when a terminal
    state is reached, so it changes at most once.
    """

    handle: RelationshipHandle
    classification: Classification = Classification.WIKIPEDIA
    label: str = ""
    state: ConverterState = ConverterState.PENDING
    outcome: ItemOutcome = ItemOutcome.PENDING
    history: list[ConverterState] = field(default_factory=lambda: [ConverterState.PENDING])
    failure_reason: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.outcome is not ItemOutcome.PENDING

    def transition_to(self, target: ConverterState) -> None:
        validate_converter_transition(self.state, target)
        self.state = target
        self.history.append(target)
        if target in _TERMINAL_OUTCOMES:
            self.outcome = _TERMINAL_OUTCOMES[target]

    def describe(self) -> str:
        return self.label or repr(self.handle)


@dataclass(frozen=True)
class ConversionRequest:
    """A single conversion trigger. Immutable once created."""

    source_reference: str
    scope_items: tuple[RelationshipItem, ...] = ()
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def create(
        cls,
        source_reference: str,
        handles: list[RelationshipHandle] | None = None,
        classification: Classification = Classification.WIKIPEDIA,
    ) -> ConversionRequest:
        """Wrap raw handles into fresh PENDING items."""
        items = tuple(
            RelationshipItem(handle=handle, classification=classification, label=f"item-{index}")
            for index, handle in enumerate(handles or [])
        )
        return cls(source_reference=source_reference, scope_items=items)

    @property
    def pending_items(self) -> list[RelationshipItem]:
        return [item for item in self.scope_items if not item.is_terminal]


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of one identifier resolution. Never mutated after creation."""

    success: bool
    target_identifier: str | None = None
    failure_reason: FailureKind | None = None
    error: ResolutionError | None = None

    @classmethod
    def ok(cls, target_identifier: str) -> ResolutionResult:
        return cls(success=True, target_identifier=target_identifier)

    @classmethod
    def failed(cls, error: ResolutionError) -> ResolutionResult:
        return cls(success=False, failure_reason=error.kind, error=error)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success}
        if self.target_identifier is not None:
            result["target_identifier"] = self.target_identifier
        if self.failure_reason is not None:
            result["failure_reason"] = self.failure_reason.value
        if self.error is not None:
            result["error"] = self.error.message
        return result


class VerdictStatus(str, Enum):
    """Aggregate judgment of a run."""

    CONVERTED = "converted"  # resolved, every item re-classified
    REMOVED = "removed"  # not resolved, every item removed
    NEEDS_REVIEW = "needs_review"  # anything else; left unsubmitted


@dataclass(frozen=True)
class ConversionVerdict:
    """Read-only verdict derived once from the final item outcomes."""

    resolved: bool
    all_items_handled: bool
    resolution: ResolutionResult
    item_count: int = 0
    finalized: bool = False

    @property
    def should_finalize(self) -> bool:
        # Both branches submit only when nothing is left half-done
        return self.all_items_handled

    @property
    def status(self) -> VerdictStatus:
        if not self.all_items_handled:
            return VerdictStatus.NEEDS_REVIEW
        return VerdictStatus.CONVERTED if self.resolved else VerdictStatus.REMOVED

    @property
    def failure_reason(self) -> FailureKind | None:
        return self.resolution.failure_reason

    def to_dict(self) -> dict[str, Any]:
        """Serialise for logging / CLI output."""
        return {
            "status": self.status.value,
            "resolved": self.resolved,
            "all_items_handled": self.all_items_handled,
            "finalized": self.finalized,
            "item_count": self.item_count,
            "resolution": self.resolution.to_dict(),
        }
