"""
Power source engine.

Turns battery telemetry into published power source records:

    readings -> discontinuity tracker -> time remaining -> health -> publish

Every entry point runs the whole pipeline to completion. Calls must come
from a single thread (the daemon's GLib main loop).
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from .context import EstimationContext, Scheduler
from .estimator import populate_time_remaining
from .models import BatteryDerived, BatteryReading
from .publisher import SnapshotPublisher, build_snapshot
from .tracker import DiscontinuityTracker

logger = logging.getLogger(__name__)


def store_key_for(index: int, reading: BatteryReading) -> str:
    return reading.store_key or f"InternalBattery-{index}"


class PowerSourceEngine:
    def __init__(
        self,
        store,
        scheduler: Scheduler,
        *,
        clock=None,
        hardware_estimates_supported: bool = False,
    ) -> None:
        kwargs = {"hardware_estimates_supported": hardware_estimates_supported}
        if clock is not None:
            kwargs["clock"] = clock
        self.context = EstimationContext(scheduler, **kwargs)
        self.tracker = DiscontinuityTracker(self.context, self.refresh)
        self.publisher = SnapshotPublisher(store)
        self.derived: Dict[int, BatteryDerived] = {}
        self._readings: List[BatteryReading] = []
        self._keys: Dict[int, str] = {}

    @property
    def readings(self) -> List[BatteryReading]:
        return list(self._readings)

    def prime(self, readings: Sequence[BatteryReading]) -> None:
        """Populate and publish the initial state."""
        if not readings:
            logger.info("No batteries detected")
            return
        self.batteries_changed(readings)

    def batteries_changed(self, readings: Sequence[BatteryReading]) -> None:
        self._readings = list(readings)
        self._sync_derived()
        self.tracker.batteries_changed(self._readings)
        if not self._readings:
            return
        self._run()

    def system_did_wake(self) -> None:
        if not self._readings:
            return
        self.tracker.system_did_wake()
        self._run()

    def refresh(self) -> None:
        """Re-run the pipeline on the last readings received."""
        if not self._readings:
            return
        self._run()

    def time_remaining(self, index: int) -> Optional[int]:
        derived = self.derived.get(index)
        return derived.time_remaining if derived is not None else None

    def _sync_derived(self) -> None:
        count = len(self._readings)
        for index in [i for i in self.derived if i >= count]:
            logger.info("Battery %d removed", index)
            del self.derived[index]
            key = self._keys.pop(index, None)
            if key is not None:
                self.publisher.store.remove_value(key)
        for index in range(count):
            if index not in self.derived:
                logger.info("Battery %d detected", index)
                self.derived[index] = BatteryDerived()

    def _run(self) -> None:
        derived = [self.derived[i] for i in range(len(self._readings))]
        populate_time_remaining(self._readings, derived, self.context)

        for index, (reading, state) in enumerate(zip(self._readings, derived)):
            snapshot = build_snapshot(reading, state, self.context)
            key = store_key_for(index, reading)
            old_key = self._keys.get(index)
            if old_key is not None and old_key != key:
                logger.info("Battery %d moved from %s to %s", index, old_key, key)
                self.publisher.store.remove_value(old_key)
                state.last_published = None
            self._keys[index] = key
            self.publisher.publish(key, state, snapshot)
