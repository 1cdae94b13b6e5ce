"""
Locust entry point for the social network autoscaling tests.

The profile named by LOAD_PROFILE decides the ramp schedule, the branch mix
and think times (see loadgen.profiles):

- load:          35% home timeline, 30% user timeline, 15% compose,
                 10% follow, 5% unfollow, 5% register
- sweet / peak / constant / quick: register -> follow -> compose -> read
- stress / spike / soak / hpa_trigger / endurance: timeline-heavy mixes
- cpu_intensive: padded posts plus client-side CPU work

Run:
    BASE_URL=http://localhost:8080 LOAD_PROFILE=sweet \\
        locust -f loadgen/locustfile.py --headless --only-summary
"""

import logging
from datetime import datetime, timezone

from locust import User, constant, events, task
from locust.runners import WorkerRunner

from loadgen import config
from loadgen.client import SocialNetworkClient
from loadgen.locust_support import LocustEventSink, shape_for
from loadgen.metrics import FanOutSink, StatusAccumulator, get_prometheus_sink
from loadgen.models import SeedContext
from loadgen.profiles import get_profile
from loadgen.reporting import (
    build_results_document,
    evaluate_thresholds,
    format_run_summary,
    write_results,
)
from loadgen.workload import WorkloadGenerator

logger = logging.getLogger(__name__)

SLOW_REQUEST_MS = 2000

config.validate_config()
PROFILE = get_profile(config.LOAD_PROFILE)

# Status counters for this process; workers ship theirs to the master
ACCUMULATOR = StatusAccumulator()

RUN_STATE = {
    "context": SeedContext(seed_user_id=config.SEED_USER_ID, seed_ready=False),
    "generator": None,
    "started_at": None,
}

ProfileShape = shape_for(PROFILE)


class SocialNetworkUser(User):
    """
    One virtual user of the social network.

    Think time is slept inside each iteration, so Locust's own wait is zero.
    """

    host = config.BASE_URL
    wait_time = constant(0)

    def on_start(self):
        """Per-user HTTP client reporting to Locust and the status counters"""
        sinks = [LocustEventSink(self.environment), ACCUMULATOR]
        if config.ENABLE_PROMETHEUS:
            sinks.append(get_prometheus_sink(config.PROMETHEUS_PORT))

        self.api = SocialNetworkClient(
            self.host or config.BASE_URL,
            FanOutSink(sinks),
            timeout=PROFILE.request_timeout,
        )
        self.generator = WorkloadGenerator(self.api, PROFILE)

    def on_stop(self):
        self.api.close()

    @task
    def iteration(self):
        self.generator.run_iteration(RUN_STATE["context"])


# Event listeners for setup, teardown and distributed status counters

@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    """Register the seed user once per run (master or standalone only)"""
    if isinstance(environment.runner, WorkerRunner):
        return

    host = environment.host or config.BASE_URL
    print("\n" + "=" * 80)
    print(f"LOAD TEST STARTING: {PROFILE.name}")
    print("=" * 80)
    print(PROFILE.description)
    print(f"Target URL: {host}")
    print(f"Peak users: {PROFILE.peak_users} over {PROFILE.total_seconds / 60:.1f} minutes")
    print("=" * 80 + "\n")

    ACCUMULATOR.reset()
    client = SocialNetworkClient(host, LocustEventSink(environment), timeout=PROFILE.request_timeout)
    generator = WorkloadGenerator(client, PROFILE)
    try:
        RUN_STATE["context"] = generator.setup(config.SEED_USER_ID)
    finally:
        client.close()
    RUN_STATE["generator"] = generator
    RUN_STATE["started_at"] = datetime.now(timezone.utc)


@events.report_to_master.add_listener
def on_report_to_master(client_id, data, **kwargs):
    data["loadgen_status"] = ACCUMULATOR.drain()


@events.worker_report.add_listener
def on_worker_report(client_id, data, **kwargs):
    if "loadgen_status" in data:
        ACCUMULATOR.merge(data["loadgen_status"])


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    """Print the summary, write the JSON artifact and apply thresholds"""
    if isinstance(environment.runner, WorkerRunner):
        return

    context = RUN_STATE["context"]
    generator = RUN_STATE["generator"]
    snapshot = generator.teardown(context, ACCUMULATOR) if generator else ACCUMULATOR.snapshot()

    results = evaluate_thresholds(environment.stats.total, PROFILE.thresholds)
    print("\n" + format_run_summary(PROFILE, environment.stats, snapshot, results) + "\n")

    document = build_results_document(
        PROFILE,
        environment.host or config.BASE_URL,
        environment.stats,
        snapshot,
        results,
        started_at=RUN_STATE["started_at"],
    )
    write_results(document, config.RESULTS_DIR, PROFILE.results_file)

    if not all(result.passed for result in results):
        logger.warning("One or more thresholds failed")
        environment.process_exit_code = 1


@events.request.add_listener
def on_request(request_type, name, response_time, response_length, exception, **kwargs):
    """Log slow requests while the test runs"""
    if response_time > SLOW_REQUEST_MS:
        logger.warning(f"SLOW REQUEST: {name} took {response_time:.2f}ms")
