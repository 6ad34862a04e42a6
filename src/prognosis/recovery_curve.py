"""
Recovery-Curve Estimator
========================

Two-point log-linear model of functional recovery:

    FIM(t) = FIM(t_A) + beta * (ln t - ln t_A)

beta (the recovery rate) is fitted from measurements A and B:

    beta = (FIM_B - FIM_A) / (ln t_B - ln t_A)

Recovery after stroke is fastest early and slows over weeks, which a
logarithm of elapsed days captures with a single parameter. Two points
identify the curve exactly; there is no error term.

Invalid inputs return NaN rather than raising so that "cannot compute"
propagates to every downstream estimate.
"""

import math
import logging

import numpy as np
import pandas as pd

from .config import SCORE_MIN, SCORE_MAX
from .models import MeasurementPair

logger = logging.getLogger(__name__)

LOG_EPS = 1e-9


def estimate_rate(pair: MeasurementPair) -> float:
    """Log-linear recovery rate from two measurements, NaN if undefined"""
    if not (pair.day_a > 0 and pair.day_b > pair.day_a):
        logger.debug(f"Invalid interval A={pair.day_a}, B={pair.day_b}")
        return math.nan
    den = np.log(pair.day_b) - np.log(pair.day_a)
    if abs(den) <= LOG_EPS:
        return math.nan
    return float((pair.score_b - pair.score_a) / den)


def project_score(day: float, pair: MeasurementPair, rate: float) -> float:
    """Unclamped FIM-m at `day`; NaN unless day, day_a > 0 and rate is finite"""
    if not (day > 0 and pair.day_a > 0 and math.isfinite(rate)):
        return math.nan
    return float(pair.score_a + rate * (np.log(day) - np.log(pair.day_a)))


def clamp_score(value: float) -> float:
    """Clamp to the FIM-m range; NaN passes through"""
    if math.isnan(value):
        return value
    return min(SCORE_MAX, max(SCORE_MIN, value))


def trajectory(pair: MeasurementPair, rate: float, target_day: float,
               window: int = 30) -> pd.DataFrame:
    """
    Projected FIM-m for each day around the target day.

    Covers max(1, target - window) .. target + window. Scores are clamped.

    Returns:
        DataFrame with columns day, score (empty if not computable)
    """
    if not (math.isfinite(rate) and math.isfinite(target_day)):
        return pd.DataFrame(columns=['day', 'score'])

    centre = max(1, int(target_day))
    days = np.arange(max(1, centre - window), centre + window + 1)
    scores = [clamp_score(project_score(d, pair, rate)) for d in days]
    return pd.DataFrame({'day': days, 'score': scores})
