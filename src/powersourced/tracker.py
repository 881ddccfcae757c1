"""
Discontinuity tracking.

Plugging in, unplugging and waking from sleep all leave the battery's
average current meaningless for a while. When one of those happens we
stop publishing time remaining estimates until the primary battery's
invalid-wake period has elapsed, then re-run the pipeline so consumers get
a fresh estimate without waiting for the next telemetry update.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from .context import EstimationContext
from .estimator import should_trust_battery_time_estimate
from .models import BatteryReading

logger = logging.getLogger(__name__)


class DiscontinuityTracker:
    def __init__(self, context: EstimationContext, on_window_closed: Callable[[], None]) -> None:
        self.context = context
        self.on_window_closed = on_window_closed
        self._primary: Optional[BatteryReading] = None

    def batteries_changed(self, readings: Sequence[BatteryReading]) -> None:
        """Check the primary battery for AC changes and insertion."""
        if not readings:
            # Whatever comes back next counts as an insertion.
            self._primary = None
            self.context.last_is_present = False
            return

        ctx = self.context
        primary = self._primary = readings[0]

        external = bool(primary.external_connected)
        if external != ctx.last_external_connected:
            logger.info("External power %s", "connected" if external else "disconnected")
            self.discontinuity_occurred()
        ctx.last_external_connected = external

        # On boot and on insertion of a new battery, decide whether we can
        # trust this battery's own time remaining estimate.
        present = bool(primary.is_present)
        if present and not ctx.last_is_present:
            ctx.use_hardware_time_estimate = should_trust_battery_time_estimate(
                primary, ctx.hardware_estimates_supported
            )
            logger.info(
                "Battery inserted, %s firmware time estimate",
                "using" if ctx.use_hardware_time_estimate else "not using",
            )
        ctx.last_is_present = present

    def system_did_wake(self) -> None:
        logger.info("System woke from sleep")
        self.discontinuity_occurred()

    def discontinuity_occurred(self) -> None:
        """Suppress time remaining estimates for the primary battery's invalid-wake period."""
        if self._primary is None:
            return

        ctx = self.context
        delay = float(self._primary.invalid_wake_secs)
        ctx.estimates_invalid_until = ctx.clock() + delay

        if ctx.pending_timer is not None:
            ctx.scheduler.cancel(ctx.pending_timer)
            ctx.pending_timer = None
        ctx.pending_timer = ctx.scheduler.schedule(delay, self._time_remaining_maybe_valid)
        logger.debug("Ignoring time remaining estimates for %.0fs", delay)

    def _time_remaining_maybe_valid(self) -> None:
        ctx = self.context
        ctx.pending_timer = None
        ctx.close_suppression_window()
        logger.debug("Time remaining estimates valid again")
        self.on_window_closed()
