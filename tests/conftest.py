import pytest

from powersourced.models import BatteryReading


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeScheduler:
    """Scheduler driven by a FakeClock; timers only fire from run_due()."""

    def __init__(self, clock):
        self.clock = clock
        self.pending = {}
        self.cancelled = []
        self._next = 0

    def schedule(self, delay, callback):
        self._next += 1
        self.pending[self._next] = (self.clock() + delay, callback)
        return self._next

    def cancel(self, handle):
        self.cancelled.append(handle)
        self.pending.pop(handle, None)

    def run_due(self):
        due = sorted(
            (deadline, handle) for handle, (deadline, _) in self.pending.items()
            if deadline <= self.clock()
        )
        for _, handle in due:
            _, callback = self.pending.pop(handle)
            callback()
        return len(due)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(clock):
    return FakeScheduler(clock)


def discharging(**overrides):
    values = dict(
        is_present=True,
        external_connected=False,
        is_charging=False,
        current_capacity=3000,
        max_capacity=5000,
        design_capacity=5500,
        cycle_count=100,
        avg_amperage=-1500,
        instant_amperage=-1500,
        has_instant_amperage=True,
        name="Main",
        invalid_wake_secs=30,
    )
    values.update(overrides)
    return BatteryReading(**values)


def charging(**overrides):
    values = dict(
        external_connected=True,
        is_charging=True,
        avg_amperage=2000,
        instant_amperage=2000,
    )
    values.update(overrides)
    return discharging(**values)
