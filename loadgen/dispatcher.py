"""Weighted branch selection from a single uniform draw"""
import random
from bisect import bisect_right
from typing import Optional, Sequence

from loadgen.exceptions import ProfileError


class WeightedDispatcher:
    """
    Picks a branch name from (name, weight) pairs.

    Weights are normalised into cumulative thresholds in declared order and
    one draw in [0, 1) selects the first branch whose threshold exceeds it.
    """

    def __init__(self, weights: Sequence[tuple[str, float]], rng: Optional[random.Random] = None):
        if not weights:
            raise ProfileError("At least one branch weight is required")
        if any(weight < 0 for _, weight in weights):
            raise ProfileError(f"Branch weights must be non-negative: {list(weights)}")

        total = float(sum(weight for _, weight in weights))
        if total <= 0:
            raise ProfileError("Branch weights must sum to a positive value")

        self.branches = [name for name, _ in weights]
        self.thresholds = []
        cumulative = 0.0
        for _, weight in weights:
            cumulative += weight / total
            self.thresholds.append(cumulative)
        # Float drift must not leave a gap just below 1.0
        self.thresholds[-1] = 1.0

        self.rng = rng or random.Random()

    def probability(self, branch: str) -> float:
        """Configured probability of a branch"""
        index = self.branches.index(branch)
        lower = self.thresholds[index - 1] if index else 0.0
        return self.thresholds[index] - lower

    def select(self, draw: float) -> str:
        """Branch for a given draw in [0, 1)"""
        index = bisect_right(self.thresholds, draw)
        # A zero-weight branch shares its threshold with the one before it and
        # is never reached; clamp for draws at or beyond 1.0
        return self.branches[min(index, len(self.branches) - 1)]

    def choose(self) -> str:
        return self.select(self.rng.random())
