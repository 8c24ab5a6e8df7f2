#!/usr/bin/env python3
"""
Vitals Simulator for the Vitals Emergency API.

Posts simulated vitals snapshots to a running API so that emergency
responses, monitoring sessions and the SSE alert stream can be exercised
end to end.

Usage:
    python scripts/vitals_simulator.py --scenario random --interval 10
    python scripts/vitals_simulator.py --scenario deteriorating --interval 2
    python scripts/vitals_simulator.py --once --heart-rate 35 --spo2 82
    python scripts/vitals_simulator.py --scenario random --count 5 --dry-run
"""

import os
import sys
import time
import random
import argparse
from pathlib import Path
from typing import Iterator, List, Optional

import httpx
from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from vitals_monitor import (  # noqa: E402
    BloodPressure,
    VitalsSnapshot,
    classify,
    format_vitals_for_display,
    generate_mock_snapshot,
    severity_label,
)
from vitals_monitor.models import utc_now  # noqa: E402


# Load environment variables
load_dotenv()

DEFAULT_API_URL = os.getenv("VITALS_API_URL", "http://127.0.0.1:8083")
DEFAULT_USER_ID = os.getenv("VITALS_DEFAULT_USER_ID", "current-user")

# Fixed readings for scripted scenarios, mildest first
SCRIPTED_READINGS = {
    "normal": dict(heart_rate=72, systolic=118, diastolic=78, temperature=36.6, spo2=98),
    "warning": dict(heart_rate=108, systolic=150, diastolic=92, temperature=37.8, spo2=94),
    "urgent": dict(heart_rate=128, systolic=170, diastolic=105, temperature=38.6, spo2=89),
    "critical": dict(heart_rate=158, systolic=205, diastolic=125, temperature=40.3, spo2=83),
}

SCENARIOS = ["random", "deteriorating", "recovery", "critical"]


def build_snapshot(
    heart_rate: Optional[float] = None,
    systolic: Optional[float] = None,
    diastolic: Optional[float] = None,
    temperature: Optional[float] = None,
    spo2: Optional[float] = None,
) -> VitalsSnapshot:
    """Build a snapshot; blood pressure is included only with both components."""
    blood_pressure = None
    if systolic is not None and diastolic is not None:
        blood_pressure = BloodPressure(systolic=systolic, diastolic=diastolic)

    return VitalsSnapshot(
        heart_rate=heart_rate,
        blood_pressure=blood_pressure,
        temperature=temperature,
        oxygen_saturation=spo2,
        timestamp=utc_now(),
    )


def snapshot_to_payload(snapshot: VitalsSnapshot) -> dict:
    """Convert a snapshot to the camelCase JSON body the API accepts."""
    payload = {"timestamp": snapshot.timestamp.isoformat()}

    if snapshot.heart_rate is not None:
        payload["heartRate"] = snapshot.heart_rate
    if snapshot.blood_pressure is not None:
        payload["bloodPressure"] = {
            "systolic": snapshot.blood_pressure.systolic,
            "diastolic": snapshot.blood_pressure.diastolic,
        }
    if snapshot.temperature is not None:
        payload["temperature"] = snapshot.temperature
    if snapshot.oxygen_saturation is not None:
        payload["oxygenSaturation"] = snapshot.oxygen_saturation

    return payload


def scenario_snapshots(
    scenario: str,
    count: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> Iterator[VitalsSnapshot]:
    """
    Yield the snapshots of a scenario.

    ``random`` is unbounded unless count is given; the scripted scenarios
    have a fixed length.
    """
    if scenario == "random":
        rng = rng or random.Random()
        sent = 0
        while count is None or sent < count:
            yield generate_mock_snapshot(rng)
            sent += 1
        return

    if scenario == "deteriorating":
        steps: List[str] = ["normal", "warning", "urgent", "critical"]
    elif scenario == "recovery":
        steps = ["critical", "urgent", "warning", "normal"]
    elif scenario == "critical":
        steps = ["critical"]
    else:
        raise ValueError(f"Unknown scenario: {scenario}")

    for step in steps:
        yield build_snapshot(**SCRIPTED_READINGS[step])


def post_snapshot(
    client: httpx.Client,
    api_url: str,
    user_id: str,
    snapshot: VitalsSnapshot,
) -> dict:
    """Post one snapshot to the user's monitored check endpoint."""
    response = client.post(
        f"{api_url}/api/vitals/monitoring/{user_id}/check",
        json=snapshot_to_payload(snapshot),
    )
    response.raise_for_status()
    return response.json()


def ensure_monitoring(client: httpx.Client, api_url: str, user_id: str) -> None:
    """Start a session for the user unless one is already active."""
    response = client.post(f"{api_url}/api/vitals/monitoring/{user_id}/start")
    if response.status_code == 409:
        print(f"[INFO] {user_id} is already being monitored")
        return
    response.raise_for_status()
    print(f"[INFO] Started monitoring {user_id}")


def report(snapshot: VitalsSnapshot, result: Optional[dict] = None) -> None:
    severity = classify(snapshot)
    print(f"\n[VITALS] {format_vitals_for_display(snapshot)}")
    print(f"[SEVERITY] {severity_label(severity)}")
    if result and result.get("triggered"):
        emergency = result["response"]
        actions = ", ".join(a["type"] for a in emergency["responseActions"])
        print(f"[EMERGENCY] {emergency['id']} ({emergency['severity']}): {actions}")


def run(
    snapshots: Iterator[VitalsSnapshot],
    api_url: str,
    user_id: str,
    interval: float,
    dry_run: bool = False,
    client: Optional[httpx.Client] = None,
) -> int:
    """Send every snapshot, pausing between them. Returns the number sent."""
    sent = 0
    owns_client = client is None and not dry_run
    if owns_client:
        client = httpx.Client(timeout=10.0)

    try:
        if not dry_run:
            ensure_monitoring(client, api_url, user_id)

        for snapshot in snapshots:
            if sent and interval > 0:
                time.sleep(interval)

            if dry_run:
                report(snapshot)
            else:
                report(snapshot, post_snapshot(client, api_url, user_id, snapshot))
            sent += 1

    except KeyboardInterrupt:
        print(f"\n[INFO] Stopped after {sent} snapshots")
    finally:
        if owns_client:
            client.close()

    return sent


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Vitals Simulator for the Vitals Emergency API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Mock vitals every 10 seconds
  python scripts/vitals_simulator.py --scenario random --interval 10

  # Walk from normal to critical
  python scripts/vitals_simulator.py --scenario deteriorating --interval 2

  # Single reading
  python scripts/vitals_simulator.py --once --heart-rate 35 --spo2 82

  # Print readings and their severity without an API
  python scripts/vitals_simulator.py --count 5 --dry-run
        """,
    )

    parser.add_argument(
        "--scenario",
        choices=SCENARIOS,
        default="random",
        help="Scenario to run (default: random)",
    )
    parser.add_argument("--api-url", default=DEFAULT_API_URL, help="Vitals API base URL")
    parser.add_argument("--user", default=DEFAULT_USER_ID, help="User id to check vitals for")
    parser.add_argument(
        "--interval",
        type=float,
        default=10.0,
        help="Interval between snapshots in seconds (default: 10)",
    )
    parser.add_argument(
        "--count",
        type=int,
        help="Number of snapshots for the random scenario (default: unlimited)",
    )
    parser.add_argument("--seed", type=int, help="Random seed for reproducible runs")
    parser.add_argument("--once", action="store_true", help="Send a single reading and exit")
    parser.add_argument("--heart-rate", type=float, help="Heart rate in bpm (with --once)")
    parser.add_argument("--systolic", type=float, help="Systolic pressure (with --once)")
    parser.add_argument("--diastolic", type=float, help="Diastolic pressure (with --once)")
    parser.add_argument("--temperature", type=float, help="Temperature in °C (with --once)")
    parser.add_argument("--spo2", type=float, help="Oxygen saturation % (with --once)")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Classify locally and print, without contacting the API",
    )

    args = parser.parse_args(argv)

    if args.once:
        readings = [args.heart_rate, args.systolic, args.diastolic, args.temperature, args.spo2]
        if all(value is None for value in readings):
            parser.error("--once requires at least one reading")
        if (args.systolic is None) != (args.diastolic is None):
            parser.error("--systolic and --diastolic must be given together")
        snapshots = iter([
            build_snapshot(
                heart_rate=args.heart_rate,
                systolic=args.systolic,
                diastolic=args.diastolic,
                temperature=args.temperature,
                spo2=args.spo2,
            )
        ])
    else:
        rng = random.Random(args.seed) if args.seed is not None else None
        snapshots = scenario_snapshots(args.scenario, args.count, rng)

    if not args.dry_run:
        print(f"[INFO] Sending vitals for {args.user} to {args.api_url}")

    try:
        run(snapshots, args.api_url, args.user, args.interval, dry_run=args.dry_run)
    except httpx.HTTPError as e:
        print(f"[ERROR] API request failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
