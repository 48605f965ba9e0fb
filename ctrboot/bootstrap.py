"""
Bootstrap estimation of the sampling variance of any CTR point estimator.

No closed form exists for the variance of a mean of ratios, so the engine
resamples campaigns with replacement and takes the sample variance of the
estimator output over the resamples.

Reproducibility: iteration ``k`` draws from its own generator seeded with
``seed + k``. Iterations therefore do not share random state and give the
same values whether they run serially or on a thread pool.
"""
import logging
import numbers
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional, Tuple

import numpy as np

from .dataset import CampaignDataset
from .estimators import BaseEstimator
from .exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BootstrapConfig:
    """Settings of a bootstrap run.

    Attributes:
        resample_count (int): Number of resampling iterations, at least 2.
        sample_size (int): Observations drawn per iteration. ``None`` means
            the size of the dataset.
        weighted (bool): Draw observations with probability proportional to
            their weight instead of uniformly.
        seed (int): Base seed. ``None`` draws one from system entropy.
        n_jobs (int): Number of worker threads running iterations.
    """
    resample_count: int = 1000
    sample_size: Optional[int] = None
    weighted: bool = False
    seed: Optional[int] = None
    n_jobs: int = 1

    def __post_init__(self):
        for name in ('resample_count', 'sample_size', 'seed', 'n_jobs'):
            value = getattr(self, name)
            if value is None and name in ('sample_size', 'seed'):
                continue
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise ValidationError(f"{name} must be an integer, got {value!r}")
            object.__setattr__(self, name, int(value))
        if not isinstance(self.weighted, (bool, np.bool_)):
            raise ValidationError(f"weighted must be a boolean, got {self.weighted!r}")
        if self.resample_count < 2:
            raise ValidationError(
                f"resample_count must be at least 2 to compute a variance, got {self.resample_count}")
        if self.sample_size is not None and self.sample_size < 1:
            raise ValidationError(f"sample_size must be at least 1, got {self.sample_size}")
        if self.seed is not None and self.seed < 0:
            raise ValidationError(f"seed must be non-negative, got {self.seed}")
        if self.n_jobs < 1:
            raise ValidationError(f"n_jobs must be at least 1, got {self.n_jobs}")

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> 'BootstrapConfig':
        """Build a config from a plain mapping, e.g. parsed from JSON or YAML."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(mapping) - known)
        if unknown:
            raise ValidationError(f"Unknown bootstrap settings: {unknown}")
        return cls(**mapping)


@dataclass(frozen=True)
class BootstrapResult:
    """Empirical distribution of an estimator over the resamples.

    Attributes:
        values (np.ndarray): Estimator output of each iteration, in iteration order.
        variance (float): Sample variance (ddof=1) of ``values``.
        seed (int): Base seed the run used.
        weighted (bool): Whether importance resampling was used.
        sample_size (int): Observations drawn per iteration.
    """
    values: np.ndarray
    variance: float
    seed: int
    weighted: bool
    sample_size: int

    @property
    def resample_count(self) -> int:
        return len(self.values)

    @property
    def standard_error(self) -> float:
        return float(np.sqrt(self.variance))

    @property
    def mean(self) -> float:
        return float(np.mean(self.values))

    def percentile_interval(self, alpha: float = 0.05) -> Tuple[float, float]:
        """Percentile confidence interval of the bootstrap distribution."""
        if not 0 < alpha < 1:
            raise ValidationError(f"alpha must be in (0, 1), got {alpha}")
        lower, upper = np.quantile(self.values, [alpha / 2, 1 - alpha / 2])
        return float(lower), float(upper)


def _draw_seed() -> int:
    return int(np.random.SeedSequence().generate_state(1)[0])


class BootstrapEngine:
    """Resampling engine estimating the variance of a point estimator.

    The estimator is treated as an opaque function of a dataset. With
    importance resampling the engine applies ``estimator.unweighted()`` to
    each resample: duplicated draws of high weight campaigns already carry
    the weighting, and weighting again would count it twice.

    Examples:
        >>> from ctrboot.estimators import MeanRatioEstimator
        >>> ds = CampaignDataset.from_records([(1, 100), (5, 100), (2, 50), (9, 300)])
        >>> engine = BootstrapEngine()
        >>> res = engine.run(ds, MeanRatioEstimator(), resample_count=200, seed=0)
        >>> len(res.values)
        200
        >>> res.variance > 0
        True
    """
    def __init__(self, n_jobs: int = 1):
        self.n_jobs = BootstrapConfig(n_jobs=n_jobs).n_jobs

    def run(self, dataset: CampaignDataset,
            estimator: BaseEstimator,
            resample_count: int = 1000,
            sample_size: Optional[int] = None,
            weighted: bool = False,
            seed: Optional[int] = None) -> BootstrapResult:
        """Resample ``dataset`` and collect the estimator output distribution.

        Args:
            dataset: Campaigns to resample.
            estimator: Point estimator applied to every resample.
            resample_count: Number of iterations, at least 2.
            sample_size: Observations drawn per iteration, defaults to the dataset size.
            weighted: Draw with probability proportional to the dataset weights.
            seed: Base seed; iteration ``k`` uses ``seed + k``.

        Returns:
            BootstrapResult holding the per-iteration values and their variance.
        """
        config = BootstrapConfig(resample_count=resample_count, sample_size=sample_size,
                                 weighted=weighted, seed=seed, n_jobs=self.n_jobs)
        return self.run_config(dataset, estimator, config)

    def run_config(self, dataset: CampaignDataset, estimator: BaseEstimator,
                   config: BootstrapConfig) -> BootstrapResult:
        """Same as :meth:`run` with the settings taken from ``config``."""
        n = dataset.size()
        sample_size = n if config.sample_size is None else config.sample_size
        seed = _draw_seed() if config.seed is None else config.seed
        probabilities = None
        if config.weighted:
            w = dataset.normalized_weights()
            total = w.sum()
            if total <= 0:
                raise ValidationError("Weighted resampling needs at least one positive weight")
            probabilities = w / total
            estimator = estimator.unweighted()
        logger.debug("Bootstrap of %r: %d resamples of size %d, weighted=%s, seed=%d, n_jobs=%d",
                     estimator, config.resample_count, sample_size, config.weighted,
                     seed, config.n_jobs)

        def iteration(k: int) -> float:
            rng = np.random.default_rng(seed + k)
            if probabilities is None:
                indices = rng.integers(0, n, size=sample_size)
            else:
                indices = rng.choice(n, size=sample_size, replace=True, p=probabilities)
            return estimator.estimate_scalar(dataset.sample(indices))

        iterations = range(config.resample_count)
        if config.n_jobs == 1:
            values = np.array([iteration(k) for k in iterations], dtype=np.float64)
        else:
            with ThreadPoolExecutor(max_workers=config.n_jobs) as executor:
                values = np.fromiter(executor.map(iteration, iterations),
                                     dtype=np.float64, count=config.resample_count)
        values.setflags(write=False)
        variance = float(np.var(values, ddof=1))
        return BootstrapResult(values=values, variance=variance, seed=seed,
                               weighted=config.weighted, sample_size=sample_size)


if __name__ == "__main__":
    import doctest
    doctest.testmod(verbose=False)
