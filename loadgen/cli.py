#!/usr/bin/env python3
"""
Command line front-end for the social network load tests

Usage:
    loadgen list
    loadgen show sweet
    loadgen seed
    loadgen iterate load -n 50
    loadgen run stress

BASE_URL selects the target deployment; everything else about a run lives
in the named profile.
"""

import argparse
import logging
import os
import subprocess
import sys
import time
from pathlib import Path
from typing import Optional

from loadgen import config
from loadgen.client import SocialNetworkClient
from loadgen.exceptions import LoadGenError
from loadgen.metrics import RecordingSink, StatusAccumulator
from loadgen.profiles import PROFILES, LoadProfile, get_profile
from loadgen.reporting import format_status_summary
from loadgen.workload import WorkloadGenerator

logger = logging.getLogger(__name__)

# Shipped inside the package so installed copies can run it
DEFAULT_LOCUSTFILE = Path(__file__).resolve().with_name("locustfile.py")


def build_locust_command(
    profile: LoadProfile,
    host: str,
    locustfile: Path = DEFAULT_LOCUSTFILE,
    results_dir: Path = config.RESULTS_DIR,
) -> list[str]:
    """Headless Locust invocation for a profile; the shape class drives users"""
    report_base = Path(results_dir) / f"{profile.name}_test"
    return [
        "locust",
        "-f", str(locustfile),
        "--host", host,
        "--headless",
        "--only-summary",
        "--html", f"{report_base}_report.html",
        "--csv", str(report_base),
    ]


def cmd_list(args) -> int:
    print(f"{'Profile':<15} {'Peak':>6} {'Minutes':>8}  Description")
    print("-" * 90)
    for name in sorted(PROFILES):
        profile = PROFILES[name]
        print(f"{name:<15} {profile.peak_users:>6} {profile.total_seconds / 60:>8.1f}  {profile.description}")
    return 0


def cmd_show(args) -> int:
    profile = get_profile(args.profile)
    print(f"{profile.name}: {profile.description}")
    print("\nStages:")
    for stage in profile.stages:
        print(f"  {stage.duration:>6} -> {stage.target} users")
    print("\nBranch weights:")
    total = sum(weight for _, weight in profile.weights)
    for branch, weight in profile.weights:
        print(f"  {branch:<20} {weight / total * 100:5.1f}%")
    print("\nThresholds:")
    for percentile, limit in profile.thresholds.percentiles().items():
        print(f"  p({int(percentile * 100)}) < {limit:.0f}ms")
    print(f"  errors < {profile.thresholds.max_failure_rate * 100:.0f}%")
    think = profile.think_time
    print(f"\nThink time: {think.minimum}s" + (f" + up to {think.spread}s" if think.spread else ""))
    print(f"Request timeout: {profile.request_timeout}s")
    print(f"Results file: {profile.results_file}")
    return 0


def cmd_seed(args) -> int:
    sink = RecordingSink()
    with SocialNetworkClient(args.host, sink) as client:
        context = WorkloadGenerator(client, get_profile("quick")).setup(config.SEED_USER_ID)
    return 0 if context.seed_ready else 1


def cmd_iterate(args) -> int:
    """Run iterations in this process, without Locust, and print the counters"""
    profile = get_profile(args.profile)
    accumulator = StatusAccumulator()
    sleep = (lambda seconds: None) if args.no_think else time.sleep

    with SocialNetworkClient(args.host, accumulator, timeout=profile.request_timeout) as client:
        generator = WorkloadGenerator(client, profile, sleep=sleep)
        context = generator.setup(config.SEED_USER_ID)
        for i in range(args.iterations):
            result = generator.run_iteration(context)
            logger.debug(f"Iteration {i + 1}: {result.branch} ({len(result.samples)} requests)")

    print(format_status_summary(accumulator.snapshot()))
    return 0


def cmd_run(args) -> int:
    profile = get_profile(args.profile)
    command = build_locust_command(profile, args.host, Path(args.locustfile), config.RESULTS_DIR)
    env = dict(os.environ, LOAD_PROFILE=profile.name, BASE_URL=args.host)

    logger.info(f"Running {profile.name}: {' '.join(command)}")
    return subprocess.call(command, env=env)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Social network load tests")
    parser.add_argument(
        "--host",
        default=config.BASE_URL,
        help=f"Target base URL (default: BASE_URL or {config.BASE_URL})",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List load profiles").set_defaults(func=cmd_list)

    show = sub.add_parser("show", help="Describe a load profile")
    show.add_argument("profile", choices=sorted(PROFILES))
    show.set_defaults(func=cmd_show)

    sub.add_parser("seed", help="Register the seed user").set_defaults(func=cmd_seed)

    iterate = sub.add_parser("iterate", help="Run iterations of a profile in-process")
    iterate.add_argument("profile", choices=sorted(PROFILES))
    iterate.add_argument("-n", "--iterations", type=int, default=10)
    iterate.add_argument("--no-think", action="store_true", help="Skip think time between iterations")
    iterate.set_defaults(func=cmd_iterate)

    run = sub.add_parser("run", help="Run a profile with headless Locust")
    run.add_argument("profile", choices=sorted(PROFILES))
    run.add_argument("--locustfile", default=str(DEFAULT_LOCUSTFILE))
    run.set_defaults(func=cmd_run)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point"""
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
    )

    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except LoadGenError:
        # Already logged with context on creation
        return 2
    except KeyboardInterrupt:
        print("\n\nInterrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
