"""
Pytest fixtures for Vitals Monitor tests.
"""
import sys
import itertools
import pytest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from dotenv import load_dotenv

# Ensure src/ and the repo root are on sys.path so tests can import
# vitals_monitor and the server package.
ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
for path in (SRC, ROOT):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

# Load environment variables
load_dotenv()

from vitals_monitor import BloodPressure, VitalsSeverityEngine, VitalsSnapshot  # noqa: E402


class FakeClock:
    """Manually advanced clock returning aware UTC datetimes."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def make_snapshot(
    heart_rate=None,
    systolic=None,
    diastolic=None,
    temperature=None,
    oxygen_saturation=None,
) -> VitalsSnapshot:
    """Build a snapshot with only the given metrics measured."""
    blood_pressure = None
    if systolic is not None or diastolic is not None:
        blood_pressure = BloodPressure(
            systolic=120 if systolic is None else systolic,
            diastolic=80 if diastolic is None else diastolic,
        )
    return VitalsSnapshot(
        heart_rate=heart_rate,
        blood_pressure=blood_pressure,
        temperature=temperature,
        oxygen_saturation=oxygen_saturation,
    )


# ============================================================================
# Snapshot Fixtures
# ============================================================================


@pytest.fixture
def normal_snapshot():
    """All metrics comfortably inside the normal range."""
    return make_snapshot(
        heart_rate=72, systolic=118, diastolic=78, temperature=36.6, oxygen_saturation=98
    )


@pytest.fixture
def warning_snapshot():
    """Heart rate mildly elevated, everything else normal."""
    return make_snapshot(heart_rate=105)


@pytest.fixture
def urgent_snapshot():
    """Oxygen saturation low enough to be urgent."""
    return make_snapshot(heart_rate=80, oxygen_saturation=88)


@pytest.fixture
def critical_snapshot():
    """Several metrics in the critical range."""
    return make_snapshot(
        heart_rate=35, systolic=180, diastolic=110, temperature=39.5, oxygen_saturation=80
    )


# ============================================================================
# Engine Fixtures
# ============================================================================


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sequential_ids():
    """Deterministic response id factory: emergency-1, emergency-2, ..."""
    counter = itertools.count(1)
    return lambda: f"emergency-{next(counter)}"


@pytest.fixture
def engine(clock, sequential_ids):
    """Engine with a controllable clock and predictable ids."""
    return VitalsSeverityEngine(clock=clock, id_factory=sequential_ids)
