"""Synthetic users, posts and ids for the social network workload"""
import itertools
import math
import random
import time
from datetime import datetime, timezone
from typing import Optional

from loadgen.models import Post, SyntheticUser

# Users preloaded by the benchmark's social graph dataset
DATASET_USER_COUNT = 962

LOREM = "Lorem ipsum dolor sit amet, consectetur adipiscing elit. "
HEAVY_FILLER_REPEAT = 50
HEAVY_MENTION_COUNT = 20

# Per-process nonce so two users drawn in the same millisecond still differ
_nonce = itertools.count()


def generate_user(rng: Optional[random.Random] = None) -> SyntheticUser:
    """Fresh identity with a random id and a timestamped, unique username"""
    rng = rng or random
    user_id = rng.randrange(1_000_000)
    username = f"user_{user_id}_{int(time.time() * 1000)}_{next(_nonce)}"
    return SyntheticUser(
        user_id=user_id,
        username=username,
        first_name=f"FirstName{user_id}",
        last_name=f"LastName{user_id}",
        password=f"password{user_id}",
    )


def generate_post(
    user: SyntheticUser,
    heavy: bool = False,
    rng: Optional[random.Random] = None,
) -> Post:
    """
    Build a compose payload for the given user.

    heavy=True pads the text with filler and @mentions so the text and
    mention services burn CPU, which is what CPU-based autoscaling reacts to.
    """
    rng = rng or random
    text = f"This is a test post from user {user.username} at {datetime.now(timezone.utc).isoformat()}"
    if heavy:
        mentions = "".join(f"@user{i} " for i in range(HEAVY_MENTION_COUNT))
        text = mentions + LOREM * HEAVY_FILLER_REPEAT + text
    return Post(
        user_id=user.user_id,
        username=user.username,
        post_type=rng.choice((0, 1, 2)),
        text=text,
    )


def random_dataset_user_id(rng: Optional[random.Random] = None) -> int:
    """Id of a user the benchmark dataset already contains (1..962)"""
    rng = rng or random
    return rng.randint(1, DATASET_USER_COUNT)


def cpu_intensive_operation(iterations: int = 1000) -> float:
    """Client-side busy work run before CPU-profile iterations"""
    result = 0.0
    for i in range(iterations):
        result += math.sqrt(i) * math.sin(i) * math.cos(i)
    return result
