"""
Execution primitives shared by the resolver and the converter.

- :mod:`~wikiconvert.execution.rate_limit` — per-channel paced dispatch of service calls
- :mod:`~wikiconvert.execution.waiting` — deadline-bounded waits on the edit surface
"""

from wikiconvert.execution.rate_limit import ChannelConfig, RateLimitedDispatcher
from wikiconvert.execution.waiting import StateWaiter

__all__ = [
    "ChannelConfig",
    "RateLimitedDispatcher",
    "StateWaiter",
]
