"""
Single entry point combining a point estimate with its bootstrap variance.
"""
import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import numpy as np
from scipy.stats import norm

from .bootstrap import BootstrapConfig, BootstrapEngine, BootstrapResult
from .dataset import CampaignDataset
from .estimators import BaseEstimator, Method
from .exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EstimationResult:
    """Point estimate of the average CTR and its bootstrap variance.

    Attributes:
        point_estimate (float): Estimator applied to the full dataset.
        variance_estimate (float): Bootstrap sample variance of the estimator.
        resample_count (int): Number of bootstrap iterations.
        method (Method): Estimator used.
        bootstrap (BootstrapResult): Full bootstrap distribution.
    """
    point_estimate: float
    variance_estimate: float
    resample_count: int
    method: Method
    bootstrap: BootstrapResult

    @property
    def standard_error(self) -> float:
        return float(np.sqrt(self.variance_estimate))

    def confidence_interval(self, alpha: float = 0.05) -> Tuple[float, float]:
        """Normal approximation interval around the point estimate."""
        if not 0 < alpha < 1:
            raise ValidationError(f"alpha must be in (0, 1), got {alpha}")
        z = norm.ppf(1 - alpha / 2)
        half_width = z * self.standard_error
        return self.point_estimate - half_width, self.point_estimate + half_width

    def percentile_interval(self, alpha: float = 0.05) -> Tuple[float, float]:
        return self.bootstrap.percentile_interval(alpha)

    def to_dict(self) -> Dict[str, Any]:
        return {'point_estimate': self.point_estimate,
                'variance_estimate': self.variance_estimate,
                'standard_error': self.standard_error,
                'resample_count': self.resample_count,
                'method': self.method.value,
                'weighted': self.bootstrap.weighted,
                'seed': self.bootstrap.seed}


def estimate_ctr(dataset: CampaignDataset,
                 estimator: BaseEstimator,
                 bootstrap_config: Optional[BootstrapConfig] = None) -> EstimationResult:
    """Estimates the average CTR of ``dataset`` and its sampling variance.

    Resampling is weighted if and only if the estimator is weighted; a
    conflicting ``weighted`` flag in ``bootstrap_config`` is overridden.

    Args:
        dataset: Campaign observations.
        estimator: Point estimator. Per-campaign estimators are summarized
            with their ``estimate_scalar``.
        bootstrap_config: Resampling settings, defaults to ``BootstrapConfig()``.

    Returns:
        EstimationResult

    Examples:
        >>> from ctrboot.estimators import WeightedMeanRatioEstimator
        >>> ds = CampaignDataset.from_records([(1, 100, 1.0), (2, 200, 1.0)])
        >>> res = estimate_ctr(ds, WeightedMeanRatioEstimator(), BootstrapConfig(resample_count=10, seed=1))
        >>> print(f"{res.point_estimate:.2f}")
        0.01
        >>> res.method
        <Method.WEIGHTED_MEAN_RATIO: 'weighted_mean_ratio'>
    """
    config = bootstrap_config if bootstrap_config is not None else BootstrapConfig()
    if config.weighted != estimator.weighted:
        if bootstrap_config is not None:
            logger.warning("Overriding weighted=%s with weighted=%s to match %r",
                           config.weighted, estimator.weighted, estimator)
        config = dataclasses.replace(config, weighted=estimator.weighted)
    point = estimator.estimate_scalar(dataset)
    boot = BootstrapEngine(n_jobs=config.n_jobs).run_config(dataset, estimator, config)
    logger.info("%s estimate over %d campaigns: %.6g (variance %.3g, %d resamples)",
                estimator.method.value, dataset.size(), point, boot.variance,
                boot.resample_count)
    return EstimationResult(point_estimate=point,
                            variance_estimate=boot.variance,
                            resample_count=boot.resample_count,
                            method=estimator.method,
                            bootstrap=boot)
