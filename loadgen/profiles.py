"""
Named load profiles

Each profile bundles a ramp schedule, pass/fail thresholds, the weighted
branch mix and think-time settings. The locustfile picks one by name via
LOAD_PROFILE; nothing here is exposed as a CLI flag.
"""
import random
import re
from dataclasses import dataclass, field
from typing import Optional

from loadgen.exceptions import ProfileError

# Branch names understood by WorkloadGenerator
READ_HOME_TIMELINE = "read_home_timeline"
READ_USER_TIMELINE = "read_user_timeline"
COMPOSE_POST = "compose_post"
FOLLOW_USER = "follow_user"
UNFOLLOW_USER = "unfollow_user"
REGISTER_USER = "register_user"
USER_JOURNEY = "user_journey"
TIMELINE_BURST = "timeline_burst"

BRANCHES = (
    READ_HOME_TIMELINE,
    READ_USER_TIMELINE,
    COMPOSE_POST,
    FOLLOW_USER,
    UNFOLLOW_USER,
    REGISTER_USER,
    USER_JOURNEY,
    TIMELINE_BURST,
)

_DURATION_RE = re.compile(r"(\d+(?:\.\d+)?)(h|m|s)")
_UNIT_SECONDS = {"h": 3600, "m": 60, "s": 1}


def parse_duration(value: str) -> float:
    """Seconds in a duration such as '30s', '1m30s' or '5h'"""
    value = value.strip()
    if not value:
        raise ProfileError("Empty duration")
    pos = 0
    total = 0.0
    for match in _DURATION_RE.finditer(value):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if pos != len(value):
        raise ProfileError(f"Cannot parse duration {value!r}")
    return total


@dataclass(frozen=True)
class Stage:
    """Move linearly to `target` users over `duration`"""
    duration: str
    target: int

    @property
    def seconds(self) -> float:
        return parse_duration(self.duration)


@dataclass(frozen=True)
class Thresholds:
    """Latency percentiles in ms and the tolerated failure ratio"""
    max_failure_rate: float
    p50_ms: Optional[float] = None
    p95_ms: Optional[float] = None
    p99_ms: Optional[float] = None

    def percentiles(self) -> dict[float, float]:
        limits = {0.50: self.p50_ms, 0.95: self.p95_ms, 0.99: self.p99_ms}
        return {p: ms for p, ms in limits.items() if ms is not None}


@dataclass(frozen=True)
class ThinkTime:
    """Pause of `minimum` seconds plus up to `spread` more, uniformly drawn"""
    minimum: float
    spread: float = 0.0

    def draw(self, rng: Optional[random.Random] = None) -> float:
        if not self.spread:
            return self.minimum
        return self.minimum + (rng or random).random() * self.spread


NO_PAUSE = ThinkTime(0.0)


@dataclass(frozen=True)
class LoadProfile:
    """
    Everything one run needs besides the target URL.

    step_pauses are slept after register, follow and compose on the chained
    branches. failure_pause replaces the think time after a failed
    registration; None keeps the regular think time.
    """
    name: str
    description: str
    stages: tuple[Stage, ...]
    thresholds: Thresholds
    weights: tuple[tuple[str, float], ...]
    think_time: ThinkTime
    initial_users: int = 0
    request_timeout: float = 10.0
    timeline_stop: int = 10
    step_pauses: tuple[ThinkTime, ThinkTime, ThinkTime] = (NO_PAUSE, NO_PAUSE, NO_PAUSE)
    failure_pause: Optional[float] = None
    heavy_posts: bool = False
    cpu_work_iterations: int = 0
    burst_reads: int = 2
    results_file: str = field(default="")

    def __post_init__(self):
        unknown = [name for name, _ in self.weights if name not in BRANCHES]
        if unknown:
            raise ProfileError(f"Unknown branches {unknown}", profile=self.name)
        if not self.stages:
            raise ProfileError("A profile needs at least one stage", profile=self.name)
        for stage in self.stages:
            parse_duration(stage.duration)
        if len(self.step_pauses) != 3:
            raise ProfileError("step_pauses needs one entry per journey step", profile=self.name)
        if not self.results_file:
            object.__setattr__(self, "results_file", f"{self.name.replace('_', '-')}-test-results.json")

    @property
    def total_seconds(self) -> float:
        return sum(stage.seconds for stage in self.stages)

    @property
    def peak_users(self) -> int:
        return max([self.initial_users] + [stage.target for stage in self.stages])


# Mix used by the timeline-heavy autoscaling profiles (40/30/20/10)
_READ_HEAVY_MIX = (
    (READ_HOME_TIMELINE, 0.40),
    (READ_USER_TIMELINE, 0.30),
    (COMPOSE_POST, 0.20),
    (FOLLOW_USER, 0.10),
)

PROFILES: dict[str, LoadProfile] = {}


def register_profile(profile: LoadProfile) -> LoadProfile:
    PROFILES[profile.name] = profile
    return profile


def get_profile(name: str) -> LoadProfile:
    try:
        return PROFILES[name]
    except KeyError:
        raise ProfileError(
            f"Unknown profile {name!r} (choose from {', '.join(sorted(PROFILES))})",
            profile=name,
        ) from None


register_profile(LoadProfile(
    name="quick",
    description="Smoke test: 10 users for 20 seconds running the full user journey",
    initial_users=10,
    stages=(Stage("20s", 10),),
    thresholds=Thresholds(max_failure_rate=0.05, p50_ms=500, p95_ms=1000, p99_ms=2000),
    weights=((USER_JOURNEY, 1.0),),
    think_time=ThinkTime(0.5),
    step_pauses=(ThinkTime(0.5), ThinkTime(0.3), ThinkTime(0.5)),
    failure_pause=0.5,
))

register_profile(LoadProfile(
    name="constant",
    description="Steady 50 users for one minute between short ramps",
    stages=(Stage("1m", 50), Stage("1m", 50), Stage("1m", 0)),
    thresholds=Thresholds(max_failure_rate=0.05, p50_ms=500, p95_ms=1000, p99_ms=2000),
    weights=((USER_JOURNEY, 1.0),),
    think_time=ThinkTime(2.0),
    step_pauses=(ThinkTime(1.0), ThinkTime(0.5), ThinkTime(1.0)),
    failure_pause=1.0,
))

register_profile(LoadProfile(
    name="load",
    description="Normal expected load: ramp to 50, hold, ramp to 100, hold, ramp down",
    stages=(
        Stage("2m", 50),
        Stage("5m", 50),
        Stage("2m", 100),
        Stage("3m", 100),
        Stage("2m", 0),
    ),
    thresholds=Thresholds(max_failure_rate=0.10, p95_ms=500, p99_ms=1000),
    weights=(
        (READ_HOME_TIMELINE, 0.35),
        (READ_USER_TIMELINE, 0.30),
        (COMPOSE_POST, 0.15),
        (FOLLOW_USER, 0.10),
        (UNFOLLOW_USER, 0.05),
        (REGISTER_USER, 0.05),
    ),
    think_time=ThinkTime(1.0, 2.0),
))

register_profile(LoadProfile(
    name="sweet",
    description="Challenging but achievable ramp to 1000 users and back down",
    stages=(
        Stage("1m30s", 50),
        Stage("1m30s", 200),
        Stage("2m", 400),
        Stage("2m", 600),
        Stage("2m", 800),
        Stage("2m", 1000),
        Stage("2m", 800),
        Stage("2m", 600),
        Stage("2m", 400),
        Stage("1m30s", 200),
        Stage("1m", 50),
        Stage("30s", 0),
    ),
    thresholds=Thresholds(max_failure_rate=0.15, p50_ms=800, p95_ms=2000, p99_ms=4000),
    weights=((USER_JOURNEY, 1.0),),
    think_time=ThinkTime(0.5, 1.5),
    step_pauses=(ThinkTime(0.5), ThinkTime(0.3), ThinkTime(0.5)),
    failure_pause=0.5,
))

register_profile(LoadProfile(
    name="peak",
    description="Sudden surge from 50 to 1000 users, then staged recovery",
    stages=(
        Stage("2m", 50),
        Stage("2m", 1000),
        Stage("2m", 500),
        Stage("2m", 100),
        Stage("2m", 50),
        Stage("1m", 0),
    ),
    thresholds=Thresholds(max_failure_rate=0.20, p50_ms=800, p95_ms=2000, p99_ms=5000),
    weights=((USER_JOURNEY, 1.0),),
    think_time=ThinkTime(0.0, 0.5),
    step_pauses=(ThinkTime(0.0, 0.5), ThinkTime(0.2), ThinkTime(0.3)),
    failure_pause=0.5,
))

register_profile(LoadProfile(
    name="stress",
    description="Step up to 600 users to find the breaking point, then recover",
    stages=(
        Stage("1m", 50),
        Stage("2m", 100),
        Stage("2m", 200),
        Stage("2m", 300),
        Stage("2m", 400),
        Stage("2m", 500),
        Stage("2m", 600),
        Stage("2m", 0),
    ),
    thresholds=Thresholds(max_failure_rate=0.50, p95_ms=2000),
    weights=_READ_HEAVY_MIX,
    think_time=ThinkTime(0.3),
))

register_profile(LoadProfile(
    name="spike",
    description="Three sudden spikes (300, 400, 500 users) with recovery between them",
    stages=(
        Stage("1m", 50),
        Stage("10s", 300),
        Stage("1m", 300),
        Stage("10s", 50),
        Stage("1m", 50),
        Stage("10s", 400),
        Stage("1m", 400),
        Stage("10s", 50),
        Stage("1m", 50),
        Stage("10s", 500),
        Stage("1m", 500),
        Stage("30s", 0),
    ),
    thresholds=Thresholds(max_failure_rate=0.30, p95_ms=3000),
    weights=(
        (READ_HOME_TIMELINE, 0.40),
        (READ_USER_TIMELINE, 0.30),
        (COMPOSE_POST, 0.15),
        (FOLLOW_USER, 0.10),
        (REGISTER_USER, 0.05),
    ),
    think_time=ThinkTime(0.1),
))

register_profile(LoadProfile(
    name="soak",
    description="75 users sustained for 26 minutes to surface slow degradation",
    stages=(Stage("2m", 75), Stage("26m", 75), Stage("2m", 0)),
    thresholds=Thresholds(max_failure_rate=0.05, p95_ms=500, p99_ms=1000),
    weights=(
        (READ_HOME_TIMELINE, 0.50),
        (READ_USER_TIMELINE, 0.30),
        (COMPOSE_POST, 0.15),
        (FOLLOW_USER, 0.05),
    ),
    think_time=ThinkTime(1.0, 3.0),
    request_timeout=30.0,
))

register_profile(LoadProfile(
    name="endurance",
    description="100 users for five hours; watch for leaks and pool exhaustion",
    stages=(Stage("10m", 100), Stage("5h", 100), Stage("10m", 0)),
    thresholds=Thresholds(max_failure_rate=0.01, p95_ms=500, p99_ms=1000),
    weights=(
        (READ_HOME_TIMELINE, 0.40),
        (READ_USER_TIMELINE, 0.40),
        (COMPOSE_POST, 0.20),
    ),
    think_time=ThinkTime(2.0, 5.0),
))

register_profile(LoadProfile(
    name="hpa_trigger",
    description="Heavy ramp to 800 users with minimal think time to force HPA scale-out",
    stages=(
        Stage("30s", 100),
        Stage("1m", 200),
        Stage("1m", 400),
        Stage("2m", 600),
        Stage("3m", 800),
        Stage("2m", 800),
        Stage("1m", 400),
        Stage("1m", 200),
        Stage("1m", 0),
    ),
    thresholds=Thresholds(max_failure_rate=0.80, p95_ms=5000),
    weights=_READ_HEAVY_MIX,
    think_time=ThinkTime(0.1),
    timeline_stop=20,
    heavy_posts=True,
))

register_profile(LoadProfile(
    name="cpu_intensive",
    description="CPU-bound mix with padded posts so CPU crosses its HPA target before memory",
    stages=(
        Stage("1m", 10),
        Stage("2m", 50),
        Stage("2m", 500),
        Stage("3m", 1000),
        Stage("3m", 500),
        Stage("3m", 250),
        Stage("3m", 100),
    ),
    thresholds=Thresholds(max_failure_rate=0.15, p50_ms=1000, p95_ms=3000, p99_ms=5000),
    weights=(
        (REGISTER_USER, 0.25),
        (COMPOSE_POST, 0.25),
        (TIMELINE_BURST, 0.50),
    ),
    think_time=ThinkTime(0.5, 1.0),
    timeline_stop=20,
    heavy_posts=True,
    cpu_work_iterations=500,
    burst_reads=2,
))
