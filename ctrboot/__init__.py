import logging

from .bootstrap import BootstrapConfig, BootstrapEngine, BootstrapResult
from .dataset import CampaignDataset, CampaignObservation, log_impression_weights
from .driver import EstimationResult, estimate_ctr
from .estimators import (BaseEstimator, LaplaceBayesEstimator, MeanRatioEstimator,
                         Method, RegressionEstimator, WeightedMeanRatioEstimator)
from .exceptions import CtrBootError, DegenerateInputError, DivisionError, ValidationError

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
