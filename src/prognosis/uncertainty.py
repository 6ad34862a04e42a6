"""
Uncertainty Estimator
=====================

Monte Carlo interval around the home-discharge probability.

Each trial perturbs the inputs the model is least sure of:
- projected FIM-m, N(0, 1.0) (about +/-2 points at 95%)
- each exploratory deficit weight, N(0, 0.10)
- the NIHSS band, when NIHSS is unknown: trials cycle low/mid/high so the
  whole unknown range is represented in equal thirds

The 5th and 95th percentiles of the trial probabilities form a 90% interval.
This is an educational spread of plausible inputs, not a sampling
distribution of fitted coefficients.

The random source is injectable. Pass a seeded numpy Generator (or an int
seed) for reproducible output; the default is unseeded.
"""

import math
import logging
from typing import Optional, Sequence, Union

import numpy as np

from .config import ModelConfig, DEFAULT_CONFIG, NihssBand
from .discharge_model import compute_discharge_probability
from .models import PatientState, ExplorationWeights, DischargeInterval
from .recovery_curve import clamp_score

logger = logging.getLogger(__name__)

BAND_CYCLE = (NihssBand.LOW, NihssBand.MID, NihssBand.HIGH)

RandomSource = Union[np.random.Generator, int, None]


def quantile(sorted_values: Sequence[float], q: float) -> float:
    """
    Linear-interpolation quantile of an ascending sequence.

    index = q * (n - 1), interpolated between floor and ceiling.
    """
    if len(sorted_values) == 0:
        return math.nan
    x = min(max(q, 0.0), 1.0) * (len(sorted_values) - 1)
    i, j = math.floor(x), math.ceil(x)
    if i == j:
        return float(sorted_values[i])
    t = x - i
    return float(sorted_values[i] * (1 - t) + sorted_values[j] * t)


def sample_band(trial: int, state: PatientState) -> Optional[NihssBand]:
    """NIHSS band for a trial: cycled when unknown, else None (use recorded)"""
    if not state.covariates.nihss_unknown:
        return None
    return BAND_CYCLE[trial % len(BAND_CYCLE)]


def compute_interval(
    state: PatientState,
    projected_score: float,
    config: ModelConfig = DEFAULT_CONFIG,
    trial_count: Optional[int] = None,
    rng: RandomSource = None
) -> Optional[DischargeInterval]:
    """
    Bootstrap-style 90% interval for P(home).

    Args:
        state: input snapshot
        projected_score: clamped FIM-m at the target day
        config: model configuration (noise settings live in config.bootstrap)
        trial_count: number of trials (default config.bootstrap.trial_count)
        rng: numpy Generator, int seed, or None for an unseeded generator

    Returns:
        DischargeInterval, or None if the projected score is not finite
    """
    if not math.isfinite(projected_score):
        return None

    boot = config.bootstrap
    n = trial_count if trial_count is not None else boot.trial_count
    if not isinstance(rng, np.random.Generator):
        rng = np.random.default_rng(rng)

    w = state.weights
    probs = []
    for trial in range(n):
        score = clamp_score(projected_score + rng.normal(0.0, boot.score_sd))
        jittered = ExplorationWeights(
            neglect=w.neglect + rng.normal(0.0, boot.weight_sd),
            aphasia=w.aphasia + rng.normal(0.0, boot.weight_sd),
            apraxia=w.apraxia + rng.normal(0.0, boot.weight_sd),
        )
        probs.append(compute_discharge_probability(
            score, state.covariates, jittered, config,
            band_override=sample_band(trial, state)
        ))

    probs.sort()
    point = compute_discharge_probability(projected_score, state.covariates, state.weights, config)
    low = quantile(probs, boot.lower_quantile)
    high = quantile(probs, boot.upper_quantile)

    logger.debug(f"Interval over {n} trials: {low:.3f} - {high:.3f} (point {point:.3f})")
    return DischargeInterval(point_estimate=point, low=low, high=high, trial_count=n)
