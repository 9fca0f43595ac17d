"""
Canonical protocol definitions for the external edit surface.

The conversion engine never touches layout, selectors or styling. It sees
the page it edits through three capabilities only:

    (i)   change notifications scoped to a subtree (``subscribe``)
    (ii)  synchronous state queries (``pending_conflict``,
          ``relationship_dialog``, ``classification_options``, ...)
    (iii) controls that request a mutation (``Control.invoke``,
          ``ClassificationOption.select``, ``SearchField.enter``, ...)

Architecture:
    ::

        protocols.py (YOU ARE HERE)
        ├── Control               — anything that can be clicked
        ├── SearchField           — free-text input feeding the option list
        ├── ClassificationOption  — one entry of the type selector list
        ├── RelationshipDialog    — the open editing dialog of one item
        ├── RelationshipHandle    — opaque handle to one dependent annotation
        └── EditSurface           — the page as a whole

    Consumers:
        execution/waiting.py (subscribe only),
        orchestration/converter.py, orchestration/orchestrator.py

    Implementations:
        a browser-automation adapter in the embedding application;
        tests/_support/fake_surface.py for the test suite.

Guardrails:
    ❌ DON'T: Block inside ``subscribe`` callbacks
    ✅ DO: Deliver notifications on the event loop thread

    ❌ DON'T: Perform mutations from query methods
    ✅ DO: Keep queries side-effect free so they can be re-checked freely

Tags:
    protocol, surface, subscription, wikiconvert, contracts

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Protocol, runtime_checkable

ChangeCallback = Callable[[], None]
Unsubscribe = Callable[[], None]

#: Scope names understood by ``EditSurface.subscribe``.
SCOPE_DOCUMENT = "document"
SCOPE_DIALOG = "dialog"
SCOPE_HEADER = "header"


@runtime_checkable
class Control(Protocol):
    """A control that can be invoked to request a mutation."""

    def invoke(self) -> None:
        """Request the mutation. The effect is observed asynchronously."""
        ...


@runtime_checkable
class SearchField(Protocol):
    """Text input whose value filters the classification options."""

    def enter(self, text: str) -> None:
        """Replace the field value and notify the surface of the input."""
        ...


@runtime_checkable
class ClassificationOption(Protocol):
    """One selectable relationship type in the classification list."""

    @property
    def label(self) -> str:
        """Visible text of the option."""
        ...

    def select(self) -> None:
        ...


@runtime_checkable
class RelationshipDialog(Protocol):
    """The editing dialog of a single relationship item."""

    def type_selector(self) -> Control | None:
        """Control that opens the classification list, if rendered yet."""
        ...

    def search_field(self) -> SearchField | None:
        ...

    def commit_control(self) -> Control | None:
        """The dialog's "Done" control, if present."""
        ...


@runtime_checkable
class RelationshipHandle(Protocol):
    """Opaque reference to one dependent annotation on the surface."""

    def edit_control(self) -> Control | None:
        """Control that opens this item's editing dialog, if any."""
        ...

    def remove_control(self) -> Control | None:
        """Control that marks this item for removal, if any."""
        ...


@runtime_checkable
class EditSurface(Protocol):
    """The externally-owned, mutable edit page."""

    def subscribe(self, scope: str, callback: ChangeCallback) -> Unsubscribe:
        """Register for change notifications within ``scope``.

        Returns:
            A zero-argument callable removing the subscription. Calling it
            more than once must be harmless.
        """
        ...

    def pending_conflict(self) -> bool:
        """True if a conflicting edit is already pending for this entity."""
        ...

    def relationship_dialog(self) -> RelationshipDialog | None:
        """The currently open relationship dialog, or None."""
        ...

    def classification_options(self) -> Sequence[ClassificationOption]:
        """Options currently offered by the classification list."""
        ...

    def rewrite_reference(self, uri: str) -> None:
        """Replace the primary reference value in place."""
        ...

    def mark_votable(self) -> None:
        """Flag the pending change as votable."""
        ...

    def submit_control(self) -> Control | None:
        """The control that submits the whole change, if present."""
        ...
