"""
Workload generator for the social network benchmark

One WorkloadGenerator drives one virtual user. Each call to run_iteration
draws a branch from the profile's weights, issues that branch's requests in
dependency order (register -> follow -> compose -> read) and then sleeps the
think time. Concurrency, ramping and percentiles belong to the load runtime.
"""
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from loadgen import profiles
from loadgen.client import SocialNetworkClient
from loadgen.dispatcher import WeightedDispatcher
from loadgen.generators import (
    cpu_intensive_operation,
    generate_post,
    generate_user,
    random_dataset_user_id,
)
from loadgen.metrics import StatusAccumulator
from loadgen.models import FollowEdge, MetricSample, SeedContext, SyntheticUser
from loadgen.reporting import format_status_summary

logger = logging.getLogger(__name__)

SEED_USER_PASSWORD = "seedpassword123"

# Indexes into LoadProfile.step_pauses
AFTER_REGISTER, AFTER_FOLLOW, AFTER_COMPOSE = range(3)


@dataclass
class IterationResult:
    """What a single iteration did; completed is False after an early return"""
    branch: str
    samples: list[MetricSample] = field(default_factory=list)
    completed: bool = True


class WorkloadGenerator:
    """Per-virtual-user driver for one load profile"""

    def __init__(
        self,
        client: SocialNetworkClient,
        profile: profiles.LoadProfile,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.profile = profile
        self.rng = rng or random.Random()
        self.dispatcher = WeightedDispatcher(profile.weights, rng=self.rng)
        self._sleep = sleep
        self._handlers = {
            profiles.READ_HOME_TIMELINE: self._read_home_timeline,
            profiles.READ_USER_TIMELINE: self._read_user_timeline,
            profiles.COMPOSE_POST: self._compose_post,
            profiles.FOLLOW_USER: self._follow_user,
            profiles.UNFOLLOW_USER: self._unfollow_user,
            profiles.REGISTER_USER: self._register_user,
            profiles.USER_JOURNEY: self._user_journey,
            profiles.TIMELINE_BURST: self._timeline_burst,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def setup(self, seed_user_id: int = 1) -> SeedContext:
        """
        Register the seed user once per run.

        A 400 means the user already exists from an earlier run, which is
        just as good as a fresh registration.
        """
        seed = SyntheticUser(
            user_id=seed_user_id,
            username=f"seed_user_{seed_user_id}",
            first_name="Seed",
            last_name="User",
            password=SEED_USER_PASSWORD,
        )
        logger.info(f"Creating seed user (user_id {seed_user_id}) for follower relationships...")
        sample = self.client.register(seed, name="RegisterSeedUser")

        if sample.status_code == 200:
            logger.info("Seed user created successfully")
        elif sample.status_code == 400:
            logger.info("Seed user may already exist (status 400)")
        else:
            logger.warning(f"Seed user creation returned status {sample.status_code}")

        return SeedContext(seed_user_id=seed_user_id, seed_ready=sample.status_code in (200, 400))

    def teardown(self, context: SeedContext, accumulator: StatusAccumulator) -> dict:
        """Log status-code totals and success rate; returns the snapshot"""
        snapshot = accumulator.snapshot()
        logger.info(f"{self.profile.name} run finished (seed user {context.seed_user_id})")
        for line in format_status_summary(snapshot).splitlines():
            logger.info(line)
        return snapshot

    # ------------------------------------------------------------------
    # Iteration
    # ------------------------------------------------------------------

    def run_iteration(self, context: SeedContext) -> IterationResult:
        if self.profile.cpu_work_iterations:
            cpu_intensive_operation(self.profile.cpu_work_iterations)

        result = IterationResult(branch=self.dispatcher.choose())
        result.completed = self._handlers[result.branch](context, result.samples)

        if result.completed or self.profile.failure_pause is None:
            self._sleep(self.profile.think_time.draw(self.rng))
        else:
            self._sleep(self.profile.failure_pause)
        return result

    def ensure_follower(self, user_id: int, seed_user_id: int) -> MetricSample:
        """
        Have the seed user follow user_id.

        The compose path fails downstream for users without any follower, so
        every fresh user gets one. A failed follow is recorded and ignored.
        """
        return self.client.follow(FollowEdge(follower_id=seed_user_id, followee_id=user_id))

    # ------------------------------------------------------------------
    # Branches; each returns False when it stopped early
    # ------------------------------------------------------------------

    def _read_home_timeline(self, context: SeedContext, samples: list) -> bool:
        user_id = random_dataset_user_id(self.rng)
        samples.append(self.client.read_home_timeline(user_id, 0, self.profile.timeline_stop))
        return True

    def _read_user_timeline(self, context: SeedContext, samples: list) -> bool:
        user_id = random_dataset_user_id(self.rng)
        samples.append(self.client.read_user_timeline(user_id, 0, self.profile.timeline_stop))
        return True

    def _follow_user(self, context: SeedContext, samples: list) -> bool:
        edge = FollowEdge(
            follower_id=random_dataset_user_id(self.rng),
            followee_id=random_dataset_user_id(self.rng),
        )
        samples.append(self.client.follow(edge))
        return True

    def _unfollow_user(self, context: SeedContext, samples: list) -> bool:
        edge = FollowEdge(
            follower_id=random_dataset_user_id(self.rng),
            followee_id=random_dataset_user_id(self.rng),
        )
        samples.append(self.client.unfollow(edge))
        return True

    def _register_user(self, context: SeedContext, samples: list) -> bool:
        samples.append(self.client.register(generate_user(self.rng)))
        return True

    def _compose_post(self, context: SeedContext, samples: list) -> bool:
        return self._register_follow_compose(context, samples) is not None

    def _user_journey(self, context: SeedContext, samples: list) -> bool:
        user = self._register_follow_compose(context, samples)
        if user is None:
            return False

        self._pause(AFTER_COMPOSE)
        samples.append(self.client.read_home_timeline(user.user_id, 0, self.profile.timeline_stop))
        return True

    def _timeline_burst(self, context: SeedContext, samples: list) -> bool:
        user_id = random_dataset_user_id(self.rng)
        for _ in range(self.profile.burst_reads):
            if self.rng.random() < 0.5:
                samples.append(self.client.read_home_timeline(user_id, 0, self.profile.timeline_stop))
            else:
                samples.append(self.client.read_user_timeline(user_id, 0, self.profile.timeline_stop))
        return True

    def _register_follow_compose(self, context: SeedContext, samples: list) -> Optional[SyntheticUser]:
        """Register a fresh user, give it a follower and post as it"""
        user = generate_user(self.rng)
        registration = self.client.register(user)
        samples.append(registration)
        if not registration.success:
            return None

        self._pause(AFTER_REGISTER)
        samples.append(self.ensure_follower(user.user_id, context.seed_user_id))

        self._pause(AFTER_FOLLOW)
        post = generate_post(user, heavy=self.profile.heavy_posts, rng=self.rng)
        samples.append(self.client.compose(post))
        return user

    def _pause(self, step: int) -> None:
        seconds = self.profile.step_pauses[step].draw(self.rng)
        if seconds:
            self._sleep(seconds)
