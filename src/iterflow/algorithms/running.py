"""
Online accumulators for streaming statistics.

Each accumulator folds one observation at a time in O(1) work and never
revisits earlier data. They are shared by the synchronous and asynchronous
pipelines, which only differ in how they pull the next value.
"""

import math
from typing import Optional

from iterflow.config import config
from iterflow.errors import ValidationError
from iterflow.validation import validate_range


class RunningStats:
    """
    Running mean and variance using Welford's recurrence.

    Attributes:
        count: Number of observations folded in
        mean: Running mean
        m2: Sum of squared deviations from the running mean
    """

    __slots__ = ("count", "mean", "m2")

    def __init__(self):
        self.count = 0
        self.mean = 0.0
        self.m2 = 0.0

    def update(self, x: float) -> None:
        self.count += 1
        delta = x - self.mean
        self.mean += delta / self.count
        delta2 = x - self.mean
        self.m2 += delta * delta2

    @property
    def variance(self) -> Optional[float]:
        """Population variance, or None before the first observation."""
        if self.count == 0:
            return None
        return self.m2 / self.count

    @property
    def sample_variance(self) -> Optional[float]:
        """Sample variance (Bessel corrected), or None with fewer than two observations."""
        if self.count < 2:
            return None
        return self.m2 / (self.count - 1)

    @property
    def std_dev(self) -> Optional[float]:
        variance = self.variance
        return None if variance is None else math.sqrt(variance)

    def z_score(self, x: float) -> float:
        """
        Standardize ``x`` against the observations folded in so far.

        Returns NaN with fewer than two observations. With zero spread the
        score is 0 when ``x`` sits on the mean and a signed infinity otherwise.
        """
        if self.count < 2:
            return math.nan
        std = math.sqrt(self.m2 / self.count)
        diff = x - self.mean
        if std == 0:
            return 0.0 if diff == 0 else math.copysign(math.inf, diff)
        return diff / std

    def __repr__(self) -> str:
        return f"RunningStats(count={self.count}, mean={self.mean!r}, m2={self.m2!r})"


class RunningCovariance:
    """
    Running co-moment of paired observations.

    Matched Welford updates on both sides avoid the catastrophic cancellation
    of the textbook ``E[xy] - E[x]E[y]`` formula on large-magnitude data.
    """

    __slots__ = ("count", "mean_x", "mean_y", "c", "m2_x", "m2_y")

    def __init__(self):
        self.count = 0
        self.mean_x = 0.0
        self.mean_y = 0.0
        self.c = 0.0
        self.m2_x = 0.0
        self.m2_y = 0.0

    def update(self, x: float, y: float) -> None:
        self.count += 1
        dx = x - self.mean_x
        self.mean_x += dx / self.count
        dy = y - self.mean_y
        self.mean_y += dy / self.count
        # dx uses the old x mean, (y - mean_y) the updated y mean
        self.c += dx * (y - self.mean_y)
        self.m2_x += dx * (x - self.mean_x)
        self.m2_y += dy * (y - self.mean_y)

    @property
    def covariance(self) -> Optional[float]:
        """Population covariance, or None before the first pair."""
        if self.count == 0:
            return None
        return self.c / self.count

    @property
    def correlation(self) -> Optional[float]:
        """Pearson correlation, or None when either side has zero variance."""
        if self.count == 0 or self.m2_x <= 0 or self.m2_y <= 0:
            return None
        r = self.c / math.sqrt(self.m2_x * self.m2_y)
        if config.clamp_correlation:
            r = max(-1.0, min(1.0, r))
        return r

    def __repr__(self) -> str:
        return (f"RunningCovariance(count={self.count}, mean_x={self.mean_x!r}, "
                f"mean_y={self.mean_y!r}, c={self.c!r})")


class Ewma:
    """Exponentially weighted moving average seeded by the first observation."""

    __slots__ = ("alpha", "value")

    def __init__(self, alpha: float):
        validate_range(alpha, 0, 1, "alpha", "ewma")
        if alpha == 0:
            raise ValidationError(
                f"alpha must be greater than 0, got {alpha}",
                "ewma",
                {"param_name": "alpha", "value": alpha},
            )
        self.alpha = alpha
        self.value: Optional[float] = None

    def update(self, x: float) -> float:
        if self.value is None:
            self.value = x
        else:
            self.value = self.alpha * x + (1 - self.alpha) * self.value
        return self.value
