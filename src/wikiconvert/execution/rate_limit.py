"""Rate Limiting — per-channel lane scheduler for outbound service calls.

Manifesto:
External lookup services (Wikipedia, MusicBrainz) enforce rate limits.
MusicBrainz bans clients that exceed one request per second.  The
dispatcher paces calls *before* they leave the process, so callers just
``await dispatcher.submit(channel, operation)`` and never think about it.

ARCHITECTURE
────────────
::

    RateLimitedDispatcher
      ├── ChannelConfig(interval, lanes)   ─ fixed per named channel
      └── _Channel
            └── _Lane × lanes              ─ {next_slot, sequence}

    submit(channel, op):
      lane  = channel.next_lane()                    # round-robin
      slot  = max(now, lane.next_slot)               # assigned synchronously
      lane.next_slot = slot + interval               # consumed even on failure
      sleep(slot - now); return await op()

Slots are handed out in submission order without suspending, so starts
within a lane are FIFO and at least ``interval`` apart.  With K lanes the
channel admits up to K starts per interval; ordering is kept per lane,
not globally.

Related modules:
    waiting.py     — deadline-bounded waits on the edit surface

Example::

    dispatcher = RateLimitedDispatcher({"musicbrainz": ChannelConfig(interval=1.0)})
    data = await dispatcher.submit("musicbrainz", lambda: client.get(url))

Tags:
    wikiconvert, execution, rate-limit, throttle, lanes

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar

from wikiconvert.core.errors import ConfigError
from wikiconvert.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ChannelConfig:
    """Pacing budget of one named channel.

    Attributes:
        interval: Minimum seconds between two starts on the same lane
        lanes: Number of parallel lanes (>= 1)
    """

    interval: float
    lanes: int = 1

    def __post_init__(self) -> None:
        if self.interval < 0:
            raise ConfigError(f"Channel interval must be non-negative, got {self.interval}")
        if self.lanes < 1:
            raise ConfigError(f"Channel needs at least one lane, got {self.lanes}")


@dataclass
class _Lane:
    """Dispatch slot bookkeeping for one lane."""

    index: int
    next_slot: float = 0.0
    sequence: int = 0

    def reserve(self, now: float, interval: float) -> tuple[float, int]:
        slot = max(now, self.next_slot)
        self.next_slot = slot + interval
        self.sequence += 1
        return slot, self.sequence


@dataclass
class _Channel:
    name: str
    config: ChannelConfig
    lanes: list[_Lane] = field(default_factory=list)
    _cursor: int = 0

    def __post_init__(self) -> None:
        self.lanes = [_Lane(index=i) for i in range(self.config.lanes)]

    def next_lane(self) -> _Lane:
        lane = self.lanes[self._cursor]
        self._cursor = (self._cursor + 1) % len(self.lanes)
        return lane


class RateLimitedDispatcher:
    """Serializes and paces zero-argument async operations per channel.

    Parameters
    ----------
    channels : Mapping[str, ChannelConfig]
        Channel configuration, fixed for the dispatcher's lifetime.
    clock : Callable[[], float] | None
        Monotonic clock; defaults to the running loop's ``time()``.
    """

    def __init__(
        self,
        channels: Mapping[str, ChannelConfig],
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._channels = {name: _Channel(name, config) for name, config in channels.items()}
        self._clock = clock

    def _now(self) -> float:
        if self._clock is not None:
            return self._clock()
        return asyncio.get_running_loop().time()

    def _channel(self, name: str) -> _Channel:
        try:
            return self._channels[name]
        except KeyError:
            raise ConfigError(f"Unknown dispatcher channel {name!r}").with_context(channel=name) from None

    async def submit(self, channel: str, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` on the next lane of ``channel`` once its slot is due.

        Args:
            channel: Configured channel name.
            operation: Zero-argument callable returning an awaitable.

        Returns:
            Whatever the operation returns.

        Raises:
            ConfigError: If the channel is not configured.
            Exception: Anything the operation raises, unchanged.
        """
        state = self._channel(channel)
        lane = state.next_lane()
        now = self._now()
        slot, sequence = lane.reserve(now, state.config.interval)
        delay = slot - now

        logger.debug(
            "dispatcher.submit",
            channel=channel,
            lane=lane.index,
            sequence=sequence,
            delay=round(delay, 3),
        )

        if delay > 0:
            await asyncio.sleep(delay)
        else:
            # yield once so starts stay in submission order when nothing is queued
            await asyncio.sleep(0)

        try:
            return await operation()
        except Exception as e:
            logger.debug(
                "dispatcher.operation_failed",
                channel=channel,
                lane=lane.index,
                sequence=sequence,
                error=str(e),
            )
            raise

    @property
    def channels(self) -> dict[str, ChannelConfig]:
        """Configured channels (read-only copy)."""
        return {name: state.config for name, state in self._channels.items()}

    def stats(self, channel: str) -> dict[str, Any]:
        """Per-lane submission counters for diagnostics."""
        state = self._channel(channel)
        return {
            "channel": channel,
            "interval": state.config.interval,
            "lanes": [{"lane": lane.index, "submitted": lane.sequence} for lane in state.lanes],
            "submitted": sum(lane.sequence for lane in state.lanes),
        }
