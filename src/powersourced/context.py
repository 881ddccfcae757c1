"""
Estimation context - the state shared by every stage of the pipeline.

One context exists per battery set and lives as long as the engine that
owns it. It is only mutated from inside a pipeline run, so callers must
serialize runs (the daemon does this by running everything on the GLib
main loop).
"""

from __future__ import annotations

import time
from typing import Any, Callable, Optional, Protocol


class Scheduler(Protocol):
    def schedule(self, delay: float, callback: Callable[[], None]) -> Any:
        ...

    def cancel(self, handle: Any) -> None:
        ...


class EstimationContext:
    def __init__(
        self,
        scheduler: Scheduler,
        *,
        clock: Callable[[], float] = time.monotonic,
        hardware_estimates_supported: bool = False,
    ) -> None:
        self.scheduler = scheduler
        self.clock = clock
        self.hardware_estimates_supported = hardware_estimates_supported

        self.estimates_invalid_until = 0.0
        self.use_hardware_time_estimate = False
        self.last_external_connected = False
        self.last_is_present = False
        self.pending_timer: Optional[Any] = None

    @property
    def ignoring_time_remaining_estimates(self) -> bool:
        return self.clock() < self.estimates_invalid_until

    def close_suppression_window(self) -> None:
        """End the suppression window now, even if the timer fired a bit early."""
        self.estimates_invalid_until = min(self.estimates_invalid_until, self.clock())
