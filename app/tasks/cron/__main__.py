"""
Trigger a scheduled job by hand.

Usage:
    python -m app.tasks.cron flight_status_job
"""

import argparse
import json
import sys

from app.tasks.cron import JOBS, run_job


def main():
    parser = argparse.ArgumentParser(description="Run a notification job once")
    parser.add_argument("job", choices=sorted(JOBS), help="Job to run")
    args = parser.parse_args()

    result = run_job(args.job)
    print(json.dumps(result, indent=2, default=str))
    return 0 if result.get("success") else 1


if __name__ == "__main__":
    sys.exit(main())
