"""
Mock vitals source.

Mostly normal readings with occasional mild, moderate and severe
abnormalities, for demos and the simulator script.
"""

import random
from typing import Optional

from .models import BloodPressure, VitalsSnapshot, utc_now


def generate_mock_snapshot(rng: Optional[random.Random] = None) -> VitalsSnapshot:
    """
    Generate one snapshot.

    Roughly 70% normal, 20% mild, 8% moderate and 2% severe.
    """
    rng = rng or random.Random()
    roll = rng.random()

    heart_rate = 75
    systolic = 120
    diastolic = 80
    temperature = 36.6
    oxygen = 98

    if roll > 0.98:
        # Severe
        heart_rate = 40 + rng.randrange(20)
        systolic = 70 + rng.randrange(20)
        diastolic = 40 + rng.randrange(10)
        temperature = 39 + rng.random()
        oxygen = 85 + rng.randrange(5)
    elif roll > 0.9:
        # Moderate
        heart_rate = 55 + rng.randrange(40)
        systolic = 90 + rng.randrange(40)
        diastolic = 50 + rng.randrange(20)
        temperature = 38 + rng.random() * 0.5
        oxygen = 90 + rng.randrange(5)
    elif roll > 0.7:
        # Mild
        heart_rate = 60 + rng.randrange(30)
        temperature = 37.5 + rng.random() * 0.3
    else:
        heart_rate = 65 + rng.randrange(15)
        systolic = 110 + rng.randrange(15)
        diastolic = 70 + rng.randrange(10)
        temperature = 36.3 + rng.random() * 0.4
        oxygen = 96 + rng.randrange(3)

    return VitalsSnapshot(
        heart_rate=heart_rate,
        blood_pressure=BloodPressure(systolic=systolic, diastolic=diastolic),
        temperature=round(temperature, 1),
        oxygen_saturation=oxygen,
        timestamp=utc_now(),
    )
