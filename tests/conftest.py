import numpy as np
import pytest

from ctrboot import CampaignDataset


@pytest.fixture
def campaigns():
    """Twenty campaigns with positive impressions and unequal volumes."""
    rng = np.random.default_rng(7)
    impressions = rng.integers(50, 5000, size=20)
    clicks = rng.binomial(impressions, 0.02)
    return CampaignDataset.from_arrays(clicks, impressions)


@pytest.fixture
def weighted_campaigns(campaigns):
    weights = np.log1p(campaigns.impressions.astype(float))
    return campaigns.with_weights(weights)


@pytest.fixture
def zero_impressions():
    return CampaignDataset.from_records([(5, 0)])
