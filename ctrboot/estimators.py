"""
Point estimators of the click-through rate across campaigns.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Union

import numpy as np

from .dataset import CampaignDataset
from .exceptions import DegenerateInputError, ValidationError


class Method(Enum):
    """Identifies the point estimator behind a result."""
    MEAN_RATIO = 'mean_ratio'
    WEIGHTED_MEAN_RATIO = 'weighted_mean_ratio'
    LAPLACE_BAYES = 'laplace_bayes'
    REGRESSION = 'regression'


class BaseEstimator(ABC):
    """Abstract strategy for CTR point estimation.

    All estimators share the one-argument ``estimate(dataset)`` contract so
    that the bootstrap engine can resample any of them without knowing which
    one it is running.

    Attributes:
        method (Method): Identifier of the estimator.
        weighted (bool): Whether the estimator uses the dataset importance weights.
    """
    method: Method
    weighted: bool = False

    @abstractmethod
    def estimate(self, dataset: CampaignDataset):
        """Returns the point estimate for ``dataset``."""
        pass

    def estimate_scalar(self, dataset: CampaignDataset) -> float:
        """Returns the estimate reduced to a single number.

        Aggregate estimators return their estimate unchanged, per-campaign
        estimators override this with a summary.
        """
        return float(self.estimate(dataset))

    def unweighted(self) -> 'BaseEstimator':
        """Estimator to apply to importance-resampled datasets.

        Importance resampling already reproduces the weights through
        duplicated draws, so weighted estimators hand back their unweighted
        counterpart here.
        """
        return self

    def __repr__(self):
        return f"{type(self).__name__}()"


class MeanRatioEstimator(BaseEstimator):
    """Unweighted arithmetic mean of the per-campaign ratios.

    Examples:
        >>> ds = CampaignDataset.from_records([(1, 100), (3, 100)])
        >>> print(f"{MeanRatioEstimator().estimate(ds):.3f}")
        0.020
    """
    method = Method.MEAN_RATIO

    def estimate(self, dataset: CampaignDataset) -> float:
        return float(np.mean(dataset.ratios()))


class WeightedMeanRatioEstimator(BaseEstimator):
    """Weighted mean of the per-campaign ratios.

    Formula: sum(w_i * clicks_i / impressions_i) / sum(w_i), with the weights
    taken from the dataset.

    Examples:
        >>> ds = CampaignDataset.from_records([(1, 100, 1.0), (6, 200, 3.0)])
        >>> print(f"{WeightedMeanRatioEstimator().estimate(ds):.4f}")
        0.0250
    """
    method = Method.WEIGHTED_MEAN_RATIO
    weighted = True

    def estimate(self, dataset: CampaignDataset) -> float:
        ratios = dataset.ratios()
        # non-negative by construction of CampaignObservation
        w = dataset.normalized_weights()
        total = w.sum()
        if total == 0:
            raise ValidationError("All weights are zero, the weighted mean is undefined")
        return float(np.sum(w * ratios) / total)

    def unweighted(self) -> BaseEstimator:
        return MeanRatioEstimator()


class LaplaceBayesEstimator(BaseEstimator):
    """Per-campaign CTR smoothed by a prior of virtual clicks and impressions.

    With the default Laplace prior each campaign starts with 1 virtual click
    over 2 virtual impressions, i.e. ``(1 + clicks) / (2 + impressions)``.
    Small campaigns are pulled toward 0.5 while large campaigns stay close to
    their raw ratio. The estimate is defined for campaigns with no
    impressions.

    When clicks exceed impressions the smoothed ratio can exceed 1. It is
    returned as is unless ``clip`` is set, in which case estimates are
    clamped to [0, 1].

    Args:
        prior_clicks: Number of virtual click-throughs added to every campaign.
        prior_impressions: Number of virtual impressions added to every campaign.
        clip: Clamp the smoothed ratios to [0, 1].

    Examples:
        >>> ds = CampaignDataset.from_records([(0, 100), (0, 10000)])
        >>> est = LaplaceBayesEstimator()
        >>> [f"{v:.5f}" for v in est.estimate(ds)]
        ['0.00980', '0.00010']
        >>> print(est.estimate(CampaignDataset.from_records([(5, 0)]))[0])
        3.0
        >>> print(LaplaceBayesEstimator(clip=True).estimate(CampaignDataset.from_records([(5, 0)]))[0])
        1.0
    """
    method = Method.LAPLACE_BAYES

    def __init__(self, prior_clicks: float = 1.0, prior_impressions: float = 2.0,
                 clip: bool = False):
        if prior_clicks < 0:
            raise ValidationError("prior_clicks must be non-negative")
        if prior_impressions <= 0:
            raise ValidationError("prior_impressions must be positive")
        self.prior_clicks = float(prior_clicks)
        self.prior_impressions = float(prior_impressions)
        self.clip = clip

    def estimate(self, dataset: CampaignDataset) -> np.ndarray:
        """Returns one smoothed ratio per campaign, in dataset order."""
        smoothed = ((self.prior_clicks + dataset.clicks)
                    / (self.prior_impressions + dataset.impressions))
        if self.clip:
            smoothed = np.clip(smoothed, 0.0, 1.0)
        return smoothed

    def estimate_scalar(self, dataset: CampaignDataset) -> float:
        """Mean of the smoothed per-campaign ratios."""
        return float(np.mean(self.estimate(dataset)))

    def __repr__(self):
        return (f"LaplaceBayesEstimator(prior_clicks={self.prior_clicks}, "
                f"prior_impressions={self.prior_impressions}, clip={self.clip})")


TRANSFORMS = {
    'identity': lambda x: x,
    'log1p': np.log1p,
}


class RegressionEstimator(BaseEstimator):
    """CTR as the slope of a no-intercept least squares fit.

    Fits ``clicks_i ~ b * f(impressions_i)`` and returns
    ``b = sum(w_i * f(x_i) * y_i) / sum(w_i * f(x_i) ** 2)``, with
    ``w_i = 1`` unless ``weighted`` is set.

    Args:
        transform: Either a name from ``TRANSFORMS`` ('identity', 'log1p')
            or a callable applied elementwise to the impression counts.
        weighted: Use the dataset weights (weighted least squares).

    Examples:
        >>> ds = CampaignDataset.from_records([(2, 100), (4, 200), (20, 1000)])
        >>> print(RegressionEstimator().estimate(ds))
        0.02
    """
    method = Method.REGRESSION

    def __init__(self, transform: Union[str, Callable[[np.ndarray], np.ndarray]] = 'identity',
                 weighted: bool = False):
        self._transform_arg = transform
        if isinstance(transform, str):
            if transform not in TRANSFORMS:
                raise ValidationError(
                    f"Unknown transform: {transform}. Options: {sorted(TRANSFORMS)}")
            self.transform_name = transform
            self.transform = TRANSFORMS[transform]
        elif callable(transform):
            self.transform_name = getattr(transform, '__name__', repr(transform))
            self.transform = transform
        else:
            raise ValidationError("transform must be a transform name or a callable")
        self.weighted = weighted

    def estimate(self, dataset: CampaignDataset) -> float:
        x = np.asarray(self.transform(dataset.impressions.astype(np.float64)),
                       dtype=np.float64)
        if x.shape != dataset.impressions.shape:
            raise ValidationError(
                f"Transform '{self.transform_name}' must preserve the shape of its input")
        if not np.all(np.isfinite(x)):
            bad = np.flatnonzero(~np.isfinite(x)).tolist()
            raise DegenerateInputError(
                f"Transform '{self.transform_name}' is not finite for campaigns at positions {bad}")
        y = dataset.clicks.astype(np.float64)
        w = dataset.normalized_weights() if self.weighted else np.ones_like(y)
        denominator = np.sum(w * x ** 2)
        if denominator == 0:
            raise DegenerateInputError(
                f"Regression denominator is zero under the '{self.transform_name}' transform")
        if not np.isfinite(denominator):
            raise DegenerateInputError(
                f"Regression denominator overflows under the '{self.transform_name}' transform")
        return float(np.sum(w * x * y) / denominator)

    def unweighted(self) -> BaseEstimator:
        if not self.weighted:
            return self
        return RegressionEstimator(transform=self._transform_arg, weighted=False)

    def __repr__(self):
        return f"RegressionEstimator(transform={self.transform_name!r}, weighted={self.weighted})"


if __name__ == "__main__":
    import doctest
    doctest.testmod(verbose=False)
