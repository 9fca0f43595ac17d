"""Deadline-bounded waits on externally-mutated surface state.

The edit surface is owned by another process; the engine cannot ask it
to do something and get a return value.  Instead it requests a mutation
and then waits for the effect to become observable.  ``StateWaiter``
does this without polling: it re-evaluates a condition on every change
notification the surface delivers and gives up when the deadline
elapses.

Architecture:
    ::

        await_appearance(check, deadline)
          │
          ├─ check() truthy? ──────────────────────────► return value
          │
          ├─ unsubscribe = surface.subscribe(scope, on_change)
          │     on_change: if not future.done() and check(): set_result
          │
          ├─ async with asyncio.timeout(deadline): await future
          │     └─ TimeoutError ─────────────────────► WaitTimeoutError
          │
          └─ finally: unsubscribe()      (success, timeout, cancellation)

    The future is the single arbiter between "condition observed" and
    "deadline elapsed": once it is done (or cancelled by the timeout) no
    later notification can resolve it.

Examples:
    >>> waiter = StateWaiter(surface)
    >>> dialog = await waiter.await_appearance(surface.relationship_dialog, 5.0,
    ...                                        description="relationship dialog")
    >>> await waiter.await_removal(surface.relationship_dialog, 5.0)

Guardrails:
    - ``check`` must be cheap and side-effect free; it runs on every notification
    - Exceptions raised by ``check`` propagate to the awaiting caller
    - A zero deadline still performs the immediate check

Tags:
    wait, deadline, subscription, resilience, wikiconvert

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, TypeVar

from wikiconvert.core.errors import WaitTimeoutError
from wikiconvert.core.logging import get_logger
from wikiconvert.core.protocols import SCOPE_DOCUMENT, EditSurface

logger = get_logger(__name__)

T = TypeVar("T")


class StateWaiter:
    """Awaits appearance or removal of a surface condition within a deadline.

    Only ``EditSurface.subscribe`` is used, so any event-emitting object
    with that method works.
    """

    def __init__(self, surface: EditSurface) -> None:
        self._surface = surface

    async def await_appearance(
        self,
        check: Callable[[], T | None],
        deadline: float,
        *,
        scope: str = SCOPE_DOCUMENT,
        description: str = "condition",
    ) -> T:
        """Resolve with the first truthy value returned by ``check``.

        Raises:
            WaitTimeoutError: If ``deadline`` seconds pass first.
        """
        value = check()
        if value:
            return value
        return await self._wait(lambda: check() or None, deadline, scope, description)

    async def await_removal(
        self,
        check: Callable[[], Any],
        deadline: float,
        *,
        scope: str = SCOPE_DOCUMENT,
        description: str = "condition",
    ) -> None:
        """Resolve once ``check`` stops returning a truthy value.

        Raises:
            WaitTimeoutError: If ``deadline`` seconds pass first.
        """
        if not check():
            return
        await self._wait(lambda: True if not check() else None, deadline, scope, f"removal of {description}")

    async def settle(self, seconds: float) -> None:
        """Let the surface finish rendering after a requested mutation."""
        if seconds > 0:
            await asyncio.sleep(seconds)

    async def _wait(
        self,
        condition: Callable[[], Any],
        deadline: float,
        scope: str,
        description: str,
    ) -> Any:
        if deadline < 0:
            raise ValueError(f"Deadline must be non-negative, got {deadline}")

        loop = asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()

        def on_change() -> None:
            if future.done():
                return
            try:
                value = condition()
            except Exception as e:
                future.set_exception(e)
                return
            if value is not None:
                future.set_result(value)

        unsubscribe = self._surface.subscribe(scope, on_change)
        try:
            # the state may have changed between the first check and subscribing
            on_change()
            async with asyncio.timeout(deadline):
                return await future
        except TimeoutError:
            logger.debug("waiter.timeout", description=description, deadline=deadline, scope=scope)
            raise WaitTimeoutError(description, deadline) from None
        finally:
            unsubscribe()
            if not future.done():
                future.cancel()
