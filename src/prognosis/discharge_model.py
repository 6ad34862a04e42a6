"""
Discharge-Probability Model
===========================

Logistic regression for the probability of discharge home:

    z = b0 + b_fim * FIM
           + b_age * (age - 75) / 10
           + b_alone * [household <= 1]
           + b_hh * max(0, household - 1)
           + [neglect] * w_neg + [aphasia] * w_aph + [apraxia] * w_apx
           + b_stairs * [stairs at home]
           + NIHSS band offset + pre-morbid mRS band offset

    P(home) = 1 / (1 + exp(-z))

The deficit weights w_neg/w_aph/w_apx are EXPLORATORY: they default to 0 and
are adjustable only to show how an assumed effect would move the estimate.

When NIHSS is unknown its offset is 0 unless the caller overrides the band,
which is how the uncertainty and sensitivity analyses probe the unknown range.
"""

import math
import logging
from typing import Optional

from .config import ModelConfig, DEFAULT_CONFIG, NihssBand, get_mrs_band
from .models import Covariates, ExplorationWeights

logger = logging.getLogger(__name__)

PROB_EPS = 1e-9


def logistic(z: float) -> float:
    """Numerically stable sigmoid; NaN passes through"""
    if math.isnan(z):
        return z
    if z >= 0:
        return 1.0 / (1.0 + math.exp(-z))
    e = math.exp(z)
    return e / (1.0 + e)


def logit(p: float) -> float:
    """Inverse sigmoid with both tails floored at 1e-9"""
    return math.log(max(PROB_EPS, p) / max(PROB_EPS, 1.0 - p))


def nihss_adjustment(covariates: Covariates,
                     config: ModelConfig = DEFAULT_CONFIG,
                     band_override: Optional[NihssBand] = None) -> float:
    """Offset for admission stroke severity"""
    band = band_override or covariates.nihss_band
    if band is None:
        return 0.0
    return config.coefficients.nihss_offset(band)


def mrs_adjustment(covariates: Covariates, config: ModelConfig = DEFAULT_CONFIG) -> float:
    """Offset for pre-morbid disability"""
    return config.coefficients.mrs_offset(get_mrs_band(covariates.premorbid_mrs))


def linear_predictor(
    projected_score: float,
    covariates: Covariates,
    weights: ExplorationWeights = ExplorationWeights(),
    config: ModelConfig = DEFAULT_CONFIG,
    band_override: Optional[NihssBand] = None
) -> float:
    """
    Logit of home discharge.

    Args:
        projected_score: clamped FIM-m at the target day
        covariates: patient covariates
        weights: exploratory deficit weights
        config: model configuration
        band_override: NIHSS band to use regardless of the recorded value

    Returns:
        z (NaN if projected_score is NaN)
    """
    c = config.coefficients
    cov = covariates
    x_age = (cov.age - 75) / 10

    z = (
        c.intercept
        + c.fim * projected_score
        + c.age * x_age
        + c.alone * (1 if cov.household_size <= 1 else 0)
        + c.household * max(0, cov.household_size - 1)
        + (weights.neglect if cov.neglect else 0.0)
        + (weights.aphasia if cov.aphasia else 0.0)
        + (weights.apraxia if cov.apraxia else 0.0)
        + c.stairs * (1 if cov.stairs else 0)
        + nihss_adjustment(cov, config, band_override)
        + mrs_adjustment(cov, config)
    )
    return z


def compute_discharge_probability(
    projected_score: float,
    covariates: Covariates,
    weights: ExplorationWeights = ExplorationWeights(),
    config: ModelConfig = DEFAULT_CONFIG,
    band_override: Optional[NihssBand] = None
) -> float:
    """P(home discharge) in [0, 1], or NaN if the score is not finite"""
    if not math.isfinite(projected_score):
        return math.nan
    z = linear_predictor(projected_score, covariates, weights, config, band_override)
    logger.debug(f"Discharge logit z = {z:.3f} at FIM-m {projected_score:.1f}")
    return logistic(z)
