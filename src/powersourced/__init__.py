"""
powersourced - battery time remaining and health publisher.

This package provides:
- Time remaining estimation with sleep/wake and AC change suppression
- Battery health and confidence rating with hysteresis
- De-duplicated publication of per-battery status records
- INA219 and fake (JSON snapshot) telemetry sources
- Privileged charge control commands
"""

__version__ = "1.0.0"

from .context import EstimationContext
from .control import BatteryManagerClient, ReturnCode, SysfsChargeController
from .engine import PowerSourceEngine
from .estimator import estimate_time_remaining
from .health import classify_health
from .models import (
    BatteryDerived,
    BatteryReading,
    PublishedSnapshot,
    Rating,
    ReplacementState,
)
from .publisher import SnapshotPublisher, build_snapshot
from .store import JsonFileStore, MemoryStore
from .telemetry import Ina219Source, SnapshotFileSource, TelemetryError

__all__ = [
    "EstimationContext",
    "BatteryManagerClient",
    "ReturnCode",
    "SysfsChargeController",
    "PowerSourceEngine",
    "estimate_time_remaining",
    "classify_health",
    "BatteryDerived",
    "BatteryReading",
    "PublishedSnapshot",
    "Rating",
    "ReplacementState",
    "SnapshotPublisher",
    "build_snapshot",
    "JsonFileStore",
    "MemoryStore",
    "Ina219Source",
    "SnapshotFileSource",
    "TelemetryError",
]
