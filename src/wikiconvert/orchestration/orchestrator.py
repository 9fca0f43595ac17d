"""
Conversion orchestrator — one conversion run from trigger to verdict.

Sequences the whole workflow against a single edit surface::

    run(request)
      0. pending conflict on the surface? ───────────► PendingConflictError
      1. resolver.attempt(source_reference)
           ok     → surface.rewrite_reference(target)
      2. resolved     → converter.convert(item)  for each item, in order
         not resolved → converter.remove(item)   for each item, in order
      3. verdict = {resolved, all_items_handled}
      4. all_items_handled → mark_votable, submit
         otherwise         → leave the change unsubmitted for review

Manifesto:
    Never submit a change that mixes converted (or removed) items with
    items still carrying the old classification.  A human reviewer looks
    at anything partial; the verdict says so, per-item errors do not.

    Items are processed strictly one after another: the surface is
    single-threaded and each mutation is observed before the next one is
    requested.

Tags:
    orchestration, workflow, verdict, wikiconvert

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import replace

from wikiconvert.core.errors import InternalStateError, PendingConflictError, WaitTimeoutError
from wikiconvert.core.logging import LogContext, get_logger
from wikiconvert.core.models import (
    ConversionRequest,
    ConversionVerdict,
    ItemOutcome,
    ResolutionResult,
)
from wikiconvert.core.protocols import SCOPE_HEADER, EditSurface
from wikiconvert.core.settings import ConversionTimings
from wikiconvert.execution.waiting import StateWaiter
from wikiconvert.orchestration.converter import RelationshipConverter
from wikiconvert.resolution.resolver import IdentifierResolver

logger = get_logger(__name__)


class ConversionOrchestrator:
    """Composes resolver, converter and waiter into a single conversion run.

    Parameters
    ----------
    surface : EditSurface
        The page being edited.
    resolver : IdentifierResolver
        Lookup of the target identifier.
    converter : RelationshipConverter
        Per-item state machine bound to ``surface``.
    waiter : StateWaiter
        Waiter bound to ``surface``.
    timings : ConversionTimings
        Pending-marker grace and pre-submit delay.
    """

    def __init__(
        self,
        surface: EditSurface,
        resolver: IdentifierResolver,
        converter: RelationshipConverter,
        waiter: StateWaiter,
        *,
        timings: ConversionTimings | None = None,
    ) -> None:
        self._surface = surface
        self._resolver = resolver
        self._converter = converter
        self._waiter = waiter
        self._timings = timings or ConversionTimings()

    async def run(self, request: ConversionRequest) -> ConversionVerdict:
        """Convert ``request.source_reference`` and its dependent items.

        Raises:
            PendingConflictError: The surface already has a pending edit.
                Nothing has been requested from any service or the surface.
        """
        async with LogContext(request_id=request.request_id, reference=request.source_reference):
            await self._check_pending_conflict()

            logger.info("orchestrator.start", items=len(request.scope_items))
            resolution = await self._resolver.attempt(request.source_reference)
            if resolution.success:
                self._rewrite(request, resolution)
                for item in request.scope_items:
                    await self._converter.convert(item)
                handled = ItemOutcome.CONVERTED
            else:
                for item in request.scope_items:
                    await self._converter.remove(item)
                handled = ItemOutcome.REMOVED

            verdict = self._verdict(request, resolution, handled)
            if verdict.should_finalize:
                verdict = await self._finalize(verdict)
            else:
                logger.warning(
                    "orchestrator.left_for_review",
                    resolved=verdict.resolved,
                    failed=[
                        item.describe()
                        for item in request.scope_items
                        if item.outcome is not handled
                    ],
                )

            logger.info("orchestrator.verdict", **verdict.to_dict())
            return verdict

    async def _check_pending_conflict(self) -> None:
        conflict = self._surface.pending_conflict()
        if not conflict and self._timings.pending_marker_grace > 0:
            # the marker may be rendered after the page itself
            try:
                await self._waiter.await_appearance(
                    self._surface.pending_conflict,
                    self._timings.pending_marker_grace,
                    scope=SCOPE_HEADER,
                    description="pending edit marker",
                )
                conflict = True
            except WaitTimeoutError:
                conflict = False

        if conflict:
            logger.warning("orchestrator.pending_conflict")
            raise PendingConflictError(
                "Pending edits detected. Automatic conversion/removal aborted; resolve pending edits manually."
            )

    def _rewrite(self, request: ConversionRequest, resolution: ResolutionResult) -> None:
        target = resolution.target_identifier
        if target is None:
            raise InternalStateError("Successful resolution without a target identifier")
        if target == request.source_reference:
            logger.debug("orchestrator.reference_unchanged", target=target)
            return
        self._surface.rewrite_reference(target)
        logger.info("orchestrator.reference_rewritten", old=request.source_reference, new=target)

    def _verdict(
        self,
        request: ConversionRequest,
        resolution: ResolutionResult,
        handled: ItemOutcome,
    ) -> ConversionVerdict:
        pending = request.pending_items
        if pending:
            raise InternalStateError(
                f"{len(pending)} item(s) still pending; refusing to compute a verdict"
            )
        handled_count = sum(1 for item in request.scope_items if item.outcome is handled)
        return ConversionVerdict(
            resolved=resolution.success,
            all_items_handled=handled_count == len(request.scope_items),
            resolution=resolution,
            item_count=len(request.scope_items),
        )

    async def _finalize(self, verdict: ConversionVerdict) -> ConversionVerdict:
        self._surface.mark_votable()
        await self._waiter.settle(self._timings.pre_submit_delay)

        submit = self._surface.submit_control()
        if submit is None:
            logger.warning("orchestrator.submit_missing")
            return verdict
        submit.invoke()
        logger.info("orchestrator.submitted", status=verdict.status.value)
        return replace(verdict, finalized=True)
