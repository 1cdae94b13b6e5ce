"""Adapters between the workload generator and the Locust runtime"""
from typing import Optional

from locust import LoadTestShape
from locust.exception import CatchResponseError

from loadgen.models import MetricSample
from loadgen.profiles import LoadProfile


class LocustEventSink:
    """
    Metrics sink that reports samples as Locust request events, so they
    show up in Locust's stats, percentiles, CSV and HTML reports.
    """

    def __init__(self, environment):
        self.environment = environment

    def record(self, sample: MetricSample) -> None:
        exception = None
        if not sample.success:
            exception = CatchResponseError(sample.error or f"Status {sample.status_code}")

        self.environment.events.request.fire(
            request_type=sample.method,
            name=sample.operation_name,
            response_time=sample.duration_ms,
            response_length=sample.response_length,
            exception=exception,
            context={"status_code": sample.status_code, "timed_out": sample.timed_out},
        )


class StagesShape(LoadTestShape):
    """
    Ramping schedule built from profile stages.

    The user count moves linearly from the previous stage's target to the
    current one over the stage duration; the test ends after the last stage.
    Subclasses set `stages` and `initial_users`.
    """

    abstract = True

    stages: tuple = ()
    initial_users: int = 0

    def users_at(self, run_time: float) -> Optional[tuple[int, float]]:
        previous = self.initial_users
        elapsed = 0.0
        for stage in self.stages:
            seconds = stage.seconds
            if seconds <= 0:
                previous = stage.target
                continue
            if run_time < elapsed + seconds:
                fraction = (run_time - elapsed) / seconds
                users = round(previous + (stage.target - previous) * fraction)
                spawn_rate = max(1.0, abs(stage.target - previous) / seconds, float(self.initial_users))
                return users, spawn_rate
            elapsed += seconds
            previous = stage.target
        return None

    def tick(self):
        return self.users_at(self.get_run_time())


def shape_for(profile: LoadProfile) -> type:
    """StagesShape subclass bound to a profile's schedule"""
    return type(
        f"{profile.name.title().replace('_', '')}Shape",
        (StagesShape,),
        {"stages": profile.stages, "initial_users": profile.initial_users, "abstract": False},
    )
