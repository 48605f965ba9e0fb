"""
Campaign observations and the read-only dataset the estimators work on.
"""
import numbers
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .exceptions import DivisionError, ValidationError


def _as_count(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        if isinstance(value, numbers.Real) and float(value).is_integer():
            value = int(value)
        else:
            raise ValidationError(f"{name} must be a non-negative integer, got {value!r}")
    value = int(value)
    if value < 0:
        raise ValidationError(f"{name} must be a non-negative integer, got {value}")
    return value


@dataclass(frozen=True)
class CampaignObservation:
    """Raw counts of a single campaign.

    ``clicks`` may exceed ``impressions``; that is a data quality matter and
    is left to the caller.

    Attributes:
        clicks (int): Number of click-throughs.
        impressions (int): Number of impressions.
        weight (float): Importance weight, defaults to 1.0.
    """
    clicks: int
    impressions: int
    weight: float = 1.0

    def __post_init__(self):
        object.__setattr__(self, 'clicks', _as_count(self.clicks, 'clicks'))
        object.__setattr__(self, 'impressions', _as_count(self.impressions, 'impressions'))
        try:
            weight = float(self.weight)
        except (TypeError, ValueError):
            raise ValidationError(f"weight must be a real number, got {self.weight!r}")
        if not np.isfinite(weight) or weight < 0:
            raise ValidationError(f"weight must be finite and non-negative, got {weight}")
        object.__setattr__(self, 'weight', weight)

    @property
    def ratio(self) -> float:
        """Raw click-through rate of the campaign."""
        if self.impressions == 0:
            raise DivisionError("Campaign has zero impressions, its CTR is undefined")
        return self.clicks / self.impressions


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


class CampaignDataset:
    """Ordered, immutable collection of :class:`CampaignObservation`.

    Validation of impressions is deferred to the estimators, since some of
    them (Laplace smoothing, regression on transformed counts) are defined
    for campaigns without impressions.

    Attributes:
        observations (tuple): The campaign observations, in input order.
        has_weights (bool): Whether any weight differs from 1.0.

    Examples:
        >>> ds = CampaignDataset.from_records([(1, 100), (2, 200)])
        >>> ds.size()
        2
        >>> ds.weights().tolist()
        [1.0, 1.0]
        >>> ds.sample([1, 1, 0]).clicks.tolist()
        [2, 2, 1]
    """
    def __init__(self, observations: Iterable[CampaignObservation]):
        observations = tuple(observations)
        if not observations:
            raise ValidationError("A campaign dataset needs at least one observation")
        for obs in observations:
            if not isinstance(obs, CampaignObservation):
                raise ValidationError(
                    f"Expected CampaignObservation instances, got {type(obs).__name__}")
        self._observations = observations
        self._clicks = _readonly(np.array([o.clicks for o in observations], dtype=np.int64))
        self._impressions = _readonly(np.array([o.impressions for o in observations],
                                               dtype=np.int64))
        self._weights = _readonly(np.array([o.weight for o in observations], dtype=np.float64))

    @classmethod
    def create(cls, observations: Iterable[CampaignObservation]) -> 'CampaignDataset':
        """Build a dataset from observations."""
        return cls(observations)

    @classmethod
    def from_records(cls, records: Iterable[Sequence]) -> 'CampaignDataset':
        """Build a dataset from ``(clicks, impressions)`` or ``(clicks, impressions, weight)`` tuples."""
        observations = []
        for rec in records:
            if len(rec) not in (2, 3):
                raise ValidationError(
                    f"Records must be (clicks, impressions[, weight]), got {rec!r}")
            observations.append(CampaignObservation(*rec))
        return cls(observations)

    @classmethod
    def from_arrays(cls, clicks: Union[np.ndarray, list],
                    impressions: Union[np.ndarray, list],
                    weights: Optional[Union[np.ndarray, list]] = None) -> 'CampaignDataset':
        """Build a dataset from aligned 1D arrays."""
        clicks = np.asarray(clicks)
        impressions = np.asarray(impressions)
        if clicks.shape != impressions.shape or clicks.ndim != 1:
            raise ValidationError("clicks and impressions must be 1D arrays of equal length")
        if weights is None:
            observations = [CampaignObservation(c, i) for c, i in zip(clicks, impressions)]
            return cls(observations)
        weights = np.asarray(weights, dtype=np.float64)
        if weights.shape != clicks.shape:
            raise ValidationError("weights must have the same length as clicks")
        observations = [CampaignObservation(c, i, w)
                        for c, i, w in zip(clicks, impressions, weights)]
        return cls(observations)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, clicks: str = 'clicks',
                       impressions: str = 'impressions',
                       weight: Optional[str] = None) -> 'CampaignDataset':
        """Build a dataset from the columns of a pandas DataFrame.

        Args:
            df: One row per campaign.
            clicks: Name of the click-through count column.
            impressions: Name of the impression count column.
            weight: Optional name of the importance weight column.
        """
        columns = [clicks, impressions] + ([weight] if weight is not None else [])
        missing = [c for c in columns if c not in df.columns]
        if missing:
            raise ValidationError(f"Columns missing from DataFrame: {missing}")
        if df[columns].isna().any().any():
            raise ValidationError("Campaign columns must not contain missing values")
        return cls.from_arrays(df[clicks].to_numpy(),
                               df[impressions].to_numpy(),
                               None if weight is None else df[weight].to_numpy())

    @property
    def observations(self) -> Tuple[CampaignObservation, ...]:
        return self._observations

    @property
    def has_weights(self) -> bool:
        return bool(np.any(self._weights != 1.0))

    @property
    def clicks(self) -> np.ndarray:
        return self._clicks

    @property
    def impressions(self) -> np.ndarray:
        return self._impressions

    def size(self) -> int:
        return len(self._observations)

    def __len__(self):
        return self.size()

    def __iter__(self):
        return iter(self._observations)

    def __getitem__(self, idx: int) -> CampaignObservation:
        return self._observations[idx]

    def __repr__(self):
        return (f"CampaignDataset(size={self.size()}, clicks={int(self._clicks.sum())}, "
                f"impressions={int(self._impressions.sum())}, has_weights={self.has_weights})")

    def weights(self) -> np.ndarray:
        """Ordered importance weights; all 1.0 when none were supplied."""
        return self._weights

    def normalized_weights(self) -> np.ndarray:
        """Weights scaled so that the largest is 1.0.

        Ratios of weights are unchanged, and sums stay finite however large
        the raw weights are. All-zero weights are returned as zeros.
        """
        top = self._weights.max()
        if top == 0:
            return np.zeros_like(self._weights)
        return self._weights / top

    def ratios(self) -> np.ndarray:
        """Per-campaign raw click-through rates."""
        if np.any(self._impressions == 0):
            zero = np.flatnonzero(self._impressions == 0).tolist()
            raise DivisionError(f"Campaigns at positions {zero} have zero impressions")
        return self._clicks / self._impressions

    def sample(self, indices: Union[Sequence[int], np.ndarray]) -> 'CampaignDataset':
        """New dataset holding the observations at ``indices`` (repeats allowed).

        Raises:
            IndexError: If any index lies outside ``[0, size())``.
        """
        idx = np.asarray(indices, dtype=np.int64)
        n = self.size()
        if idx.ndim != 1:
            raise ValidationError("indices must be a 1D sequence")
        if idx.size and (idx.min() < 0 or idx.max() >= n):
            bad = idx[(idx < 0) | (idx >= n)].tolist()
            raise IndexError(f"Indices {bad} out of range for dataset of size {n}")
        return CampaignDataset([self._observations[i] for i in idx])

    def with_weights(self, weights: Union[np.ndarray, list]) -> 'CampaignDataset':
        """Copy of the dataset carrying the given importance weights."""
        return CampaignDataset.from_arrays(self._clicks, self._impressions, weights)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({'clicks': self._clicks,
                             'impressions': self._impressions,
                             'weight': self._weights})


def log_impression_weights(dataset: CampaignDataset) -> np.ndarray:
    """Importance weights proportional to impression volume on a log scale.

    Weight is ``log(1 + impressions)``, so a campaign with no impressions
    gets no weight.
    """
    return np.log1p(dataset.impressions.astype(np.float64))
