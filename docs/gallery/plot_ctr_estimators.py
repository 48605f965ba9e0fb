"""
CTR estimators and their bootstrap variance
===========================================

``ctr-bootstrap`` implements several estimators of the average click-through
rate across campaigns. This example compares their point estimates and
bootstrap standard errors on a synthetic set of campaigns with very
different volumes.
"""

import numpy as np
import matplotlib.pyplot as plt
import pandas as pd

from ctrboot import (
    BootstrapConfig,
    CampaignDataset,
    LaplaceBayesEstimator,
    MeanRatioEstimator,
    RegressionEstimator,
    WeightedMeanRatioEstimator,
    estimate_ctr,
    log_impression_weights,
)

##############################################################
# Simulate campaigns
# ------------------
#
# Impression volumes are log-normal, so a few campaigns are large and many
# are small. Each campaign has its own true CTR around 2%.

rng = np.random.default_rng(42)
n_campaigns = 200
impressions = np.maximum(rng.lognormal(mean=6, sigma=1.5, size=n_campaigns).astype(int), 1)
true_ctr = rng.beta(2, 98, size=n_campaigns)
clicks = rng.binomial(impressions, true_ctr)

df = pd.DataFrame({'clicks': clicks, 'impressions': impressions})
ds = CampaignDataset.from_dataframe(df)

###############################################################
# Compare estimators
# ------------------
#
# The weighted mean uses ``log(1 + impressions)`` as importance weight. Its
# variance comes from importance resampling: campaigns are drawn with
# probability proportional to their weight and each resample is summarized
# with the plain mean of ratios.

weighted_ds = ds.with_weights(log_impression_weights(ds))
config = BootstrapConfig(resample_count=1000, seed=42)

scenarios = {
    'Mean ratio': (ds, MeanRatioEstimator()),
    'Weighted mean ratio': (weighted_ds, WeightedMeanRatioEstimator()),
    'Laplace-Bayes': (ds, LaplaceBayesEstimator()),
    'Regression (identity)': (ds, RegressionEstimator()),
}

results = {name: estimate_ctr(data, est, config) for name, (data, est) in scenarios.items()}
for name, res in results.items():
    lower, upper = res.confidence_interval()
    print(f"{name:<24} {res.point_estimate:.4f}  SE={res.standard_error:.5f}  "
          f"95% CI=[{lower:.4f}, {upper:.4f}]")

###############################################################
# Bootstrap distributions
# -----------------------

fig, ax = plt.subplots(figsize=(8, 5))
for name, res in results.items():
    ax.hist(res.bootstrap.values, bins=40, alpha=0.5, label=name)
ax.axvline(true_ctr.mean(), color='black', linestyle='--', label='Mean of true CTRs')
ax.set_xlabel('Estimated average CTR')
ax.set_ylabel('Bootstrap count')
ax.legend()
plt.show()

###############################################################
# Laplace smoothing of small campaigns
# ------------------------------------
#
# Small campaigns are pulled toward 0.5 by the prior, large ones keep their
# raw ratio.

smoothed = LaplaceBayesEstimator().estimate(ds)
raw = clicks / impressions
fig, ax = plt.subplots(figsize=(8, 5))
ax.scatter(impressions, raw, s=8, label='Raw ratio')
ax.scatter(impressions, smoothed, s=8, label='Laplace-Bayes')
ax.set_xscale('log')
ax.set_xlabel('Impressions')
ax.set_ylabel('CTR')
ax.legend()
plt.show()
