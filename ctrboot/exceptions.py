"""
Errors raised by the CTR estimation and resampling engine.
"""


class CtrBootError(Exception):
    """Base class for all errors raised by ctrboot."""


class ValidationError(CtrBootError, ValueError):
    """Malformed input or configuration (empty dataset, bad resample count, ...)."""


class DivisionError(CtrBootError, ZeroDivisionError):
    """A ratio estimator met a campaign with zero impressions."""


class DegenerateInputError(CtrBootError, ValueError):
    """The regression denominator is zero under the chosen transform."""
