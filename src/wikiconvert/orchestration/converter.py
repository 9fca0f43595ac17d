"""Relationship converter — drives one dependent item to a terminal outcome.

Convert path::

    PENDING ─► DIALOG_REQUESTED ─► DIALOG_OPEN ─► TYPE_SELECTION_ATTEMPTED ─► CONFIRMED
       │              │                 │                    │
       │              └────── any failure (timeout, no match, no control) ──┐
       │                                                                    ▼
       │                                               RECOVERY_ATTEMPTED ─► FAILED
       └─► CONFIRMED            (no edit control: nothing to re-classify)

Removal path::

    PENDING ─► REMOVAL_REQUESTED ─► REMOVED | FAILED
       └─► FAILED               (no remove control)

Neither ``convert`` nor ``remove`` raises for surface failures: every
exit path ends in exactly one terminal outcome, and one item's failure
never stops the batch. Cancellation fails the item in flight before
propagating, so a repeated run never finds an item stuck mid-path.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from wikiconvert.core.errors import (
    ClassificationNotFoundError,
    InternalStateError,
    MissingControlError,
    RecoveryFailedError,
    SurfaceError,
)
from wikiconvert.core.logging import get_logger
from wikiconvert.core.models import Classification, ConverterState, ItemOutcome, RelationshipItem
from wikiconvert.core.protocols import (
    SCOPE_DIALOG,
    SCOPE_DOCUMENT,
    ClassificationOption,
    EditSurface,
    RelationshipDialog,
)
from wikiconvert.core.settings import (
    DEFAULT_ACCEPTED_LABELS,
    DEFAULT_CANONICAL_LABEL,
    ConversionTimings,
)
from wikiconvert.execution.waiting import StateWaiter

logger = get_logger(__name__)


class RelationshipConverter:
    """Re-classifies or removes relationship items on an edit surface.

    Parameters
    ----------
    surface : EditSurface
        The page being edited.
    waiter : StateWaiter
        Waiter bound to the same surface.
    timings : ConversionTimings
        Deadlines and settle delays.
    accepted_labels : Sequence[str]
        Option labels that count as the target classification.
    canonical_label : str
        Text typed into the search field when no preloaded option matches.
    """

    def __init__(
        self,
        surface: EditSurface,
        waiter: StateWaiter,
        *,
        timings: ConversionTimings | None = None,
        accepted_labels: Sequence[str] = tuple(DEFAULT_ACCEPTED_LABELS),
        canonical_label: str = DEFAULT_CANONICAL_LABEL,
    ) -> None:
        self._surface = surface
        self._waiter = waiter
        self._timings = timings or ConversionTimings()
        self._accepted = frozenset(label.strip() for label in accepted_labels)
        self._canonical_label = canonical_label

    # ── Convert ──────────────────────────────────────────────────────

    async def convert(self, item: RelationshipItem) -> ItemOutcome:
        """Drive ``item`` through the re-classification dialog."""
        if item.is_terminal:
            logger.debug("converter.already_terminal", item=item.describe(), outcome=item.outcome.value)
            return item.outcome
        if item.state is not ConverterState.PENDING:
            self._abandon(item, f"Item left in {item.state.value} by an earlier run")
            return item.outcome

        edit_control = item.handle.edit_control()
        if edit_control is None:
            logger.info("converter.no_edit_control", item=item.describe())
            item.transition_to(ConverterState.CONFIRMED)
            return item.outcome

        t = self._timings
        item.transition_to(ConverterState.DIALOG_REQUESTED)
        try:
            edit_control.invoke()
            dialog = await self._waiter.await_appearance(
                self._surface.relationship_dialog,
                t.dialog_timeout,
                scope=SCOPE_DOCUMENT,
                description="relationship dialog",
            )
            item.transition_to(ConverterState.DIALOG_OPEN)
            await self._waiter.settle(t.dialog_settle)

            await self._select_classification(dialog)
            item.transition_to(ConverterState.TYPE_SELECTION_ATTEMPTED)

            commit = dialog.commit_control()
            if commit is None:
                raise MissingControlError("Done button not found in relationship dialog")
            commit.invoke()
            await self._waiter.settle(t.commit_settle)
            await self._waiter.await_removal(
                self._surface.relationship_dialog,
                t.dialog_timeout,
                scope=SCOPE_DOCUMENT,
                description="relationship dialog",
            )
            await self._waiter.settle(t.close_settle)
        except asyncio.CancelledError:
            self._abandon(item, "Conversion cancelled")
            raise
        except InternalStateError:
            raise
        except Exception as e:
            item.failure_reason = e.message if isinstance(e, SurfaceError) else str(e)
            logger.warning(
                "converter.dialog_failed",
                item=item.describe(),
                state=item.state.value,
                error_type=type(e).__name__,
                error=item.failure_reason,
            )
            await self._recover(item)
            return item.outcome

        item.transition_to(ConverterState.CONFIRMED)
        item.classification = Classification.WIKIDATA
        logger.info("converter.converted", item=item.describe())
        return item.outcome

    async def _select_classification(self, dialog: RelationshipDialog) -> None:
        t = self._timings
        selector = await self._waiter.await_appearance(
            dialog.type_selector,
            t.control_timeout,
            scope=SCOPE_DIALOG,
            description="classification selector",
        )
        selector.invoke()
        await self._waiter.settle(t.selector_settle)

        option = self._match_option()
        if option is None:
            logger.info("converter.label_search_fallback", label=self._canonical_label)
            search = await self._waiter.await_appearance(
                dialog.search_field,
                t.control_timeout,
                scope=SCOPE_DIALOG,
                description="classification search field",
            )
            search.enter(self._canonical_label)
            await self._waiter.settle(t.search_settle)
            option = self._match_option()

        if option is None:
            raise ClassificationNotFoundError(
                f"No classification option matching {sorted(self._accepted)}"
            )
        option.select()
        await self._waiter.settle(t.selector_settle)

    def _match_option(self) -> ClassificationOption | None:
        for option in self._surface.classification_options():
            if option.label.strip() in self._accepted:
                return option
        return None

    async def _recover(self, item: RelationshipItem) -> None:
        """Best effort: commit a dialog left open, then mark the item FAILED."""
        t = self._timings
        item.transition_to(ConverterState.RECOVERY_ATTEMPTED)
        try:
            await self._force_close(item)
            await self._waiter.settle(t.recovery_settle)
        finally:
            item.transition_to(ConverterState.FAILED)

    async def _force_close(self, item: RelationshipItem) -> None:
        t = self._timings
        try:
            dialog = self._surface.relationship_dialog()
            if dialog is None:
                logger.debug("converter.recovery_not_needed", item=item.describe())
                return
            commit = dialog.commit_control()
            if commit is None:
                raise RecoveryFailedError("Done button not found in dialog during recovery")
            commit.invoke()
            await self._waiter.settle(t.recovery_click_settle)
            await self._waiter.await_removal(
                self._surface.relationship_dialog,
                t.recovery_timeout,
                scope=SCOPE_DOCUMENT,
                description="relationship dialog",
            )
        except Exception as e:
            failure = e if isinstance(e, RecoveryFailedError) else RecoveryFailedError(
                f"Failed to force-close dialog: {e}", cause=e
            )
            failure.with_context(item=item.describe())
            logger.error("converter.recovery_failed", **failure.to_dict())
            return
        logger.info("converter.recovered", item=item.describe())

    def _abandon(self, item: RelationshipItem, reason: str) -> None:
        """Fail a mid-flight item without touching the surface."""
        if item.is_terminal:
            return
        item.failure_reason = reason
        if item.state not in (ConverterState.RECOVERY_ATTEMPTED, ConverterState.REMOVAL_REQUESTED):
            item.transition_to(ConverterState.RECOVERY_ATTEMPTED)
        item.transition_to(ConverterState.FAILED)
        logger.warning("converter.abandoned", item=item.describe(), reason=reason)

    # ── Remove ───────────────────────────────────────────────────────

    async def remove(self, item: RelationshipItem) -> ItemOutcome:
        """Mark ``item`` for removal instead of converting it."""
        if item.is_terminal:
            logger.debug("converter.already_terminal", item=item.describe(), outcome=item.outcome.value)
            return item.outcome
        if item.state is not ConverterState.PENDING:
            self._abandon(item, f"Item left in {item.state.value} by an earlier run")
            return item.outcome

        remove_control = item.handle.remove_control()
        if remove_control is None:
            item.failure_reason = "Relationship item has no remove control"
            logger.warning("converter.no_remove_control", item=item.describe())
            item.transition_to(ConverterState.FAILED)
            return item.outcome

        item.transition_to(ConverterState.REMOVAL_REQUESTED)
        try:
            remove_control.invoke()
        except Exception as e:
            item.failure_reason = str(e)
            logger.error("converter.remove_failed", item=item.describe(), error=str(e))
            item.transition_to(ConverterState.FAILED)
            return item.outcome

        try:
            await self._waiter.settle(self._timings.removal_settle)
        except asyncio.CancelledError:
            self._abandon(item, "Removal cancelled")
            raise
        item.transition_to(ConverterState.REMOVED)
        logger.info("converter.removed", item=item.describe())
        return item.outcome
