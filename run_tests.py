#!/usr/bin/env python3
"""
Test runner for the trip notifier.

Usage:
    python run_tests.py                           # Run all tests
    python run_tests.py -k gate_change            # Run specific test pattern
    python run_tests.py --jobs                    # Run the scheduled job tests only
    python run_tests.py --pdb                     # Drop into debugger on failure
"""

import sys
import subprocess
from pathlib import Path

JOB_TESTS = [
    "tests/test_booking_reminder_job.py",
    "tests/test_flight_status_job.py",
    "tests/test_weather_alert_job.py",
    "tests/test_scheduler.py",
]


def run_tests(targets=None, args=None):
    """Run tests with pytest."""
    cmd = [
        sys.executable, "-m", "pytest",
        *(targets or ["tests"]),
        "-v",
        "--tb=short"
    ]
    cmd.extend(args or [])

    print(f"Running: {' '.join(cmd)}")
    result = subprocess.run(cmd, cwd=Path(__file__).parent)
    return result.returncode


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Run tests for the trip notifier")
    parser.add_argument("-k", "--keyword", help="Run tests matching keyword")
    parser.add_argument("--jobs", action="store_true", help="Run scheduled job tests only")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--pdb", action="store_true", help="Drop into debugger on failure")

    args = parser.parse_args()

    pytest_args = []

    if args.keyword:
        pytest_args.extend(["-k", args.keyword])

    if args.verbose:
        pytest_args.append("-vv")

    if args.pdb:
        pytest_args.append("--pdb")

    return run_tests(JOB_TESTS if args.jobs else None, pytest_args)


if __name__ == "__main__":
    sys.exit(main())
