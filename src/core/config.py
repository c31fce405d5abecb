"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ProcessorConfig:
    """Batch processing settings for the notification processor.

    persist_on_failure: store the item snapshot even when rendering or
    delivery of the event failed. The failed event's delta is then never
    reported again; set to False to retry it on the next sighting instead.
    """

    persist_on_failure: bool = True

