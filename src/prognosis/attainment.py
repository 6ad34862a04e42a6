"""
Item-Attainment Model
=====================

Per-milestone probability that a projected FIM-m total is high enough for a
given motor item to be performed independently.

Each item i has a base threshold T_i. Cognitive deficits raise it:

    shift_i = s_neg * w_neg,i * m_neg + s_aph * w_aph,i * m_aph + s_apx * w_apx,i * m_apx
    T'_i    = T_i + shift_i
    P_i     = logistic(k * (FIM - T'_i))

m_* are deficit magnitudes that depend on the side of hemiparesis (zero when
the deficit is absent). k is the logistic slope: larger k means a sharper
transition around the threshold.
"""

import math
import logging
from typing import Dict, List, Optional, Tuple

from .config import ModelConfig, DEFAULT_CONFIG, DEFICIT_MAGNITUDES
from .discharge_model import logistic
from .models import Covariates, ItemAttainment

logger = logging.getLogger(__name__)

TIE_EPS = 1e-9


def deficit_magnitudes(covariates: Covariates) -> Dict[str, float]:
    """Magnitude of each present deficit given the hemiparesis side"""
    present = {
        "neglect": covariates.neglect,
        "aphasia": covariates.aphasia,
        "apraxia": covariates.apraxia,
    }
    magnitudes = {}
    for name, (amplifying_side, high, low) in DEFICIT_MAGNITUDES.items():
        if not present[name]:
            magnitudes[name] = 0.0
        else:
            magnitudes[name] = high if covariates.hemiparesis == amplifying_side else low
    return magnitudes


def threshold_shift(weights: Tuple[float, float, float], magnitudes: Dict[str, float],
                    config: ModelConfig = DEFAULT_CONFIG) -> float:
    """Threshold shift for one item's (neglect, aphasia, apraxia) weights"""
    s = config.deficit_scales
    w_neg, w_aph, w_apx = weights
    return (s.neglect * w_neg * magnitudes["neglect"]
            + s.aphasia * w_aph * magnitudes["aphasia"]
            + s.apraxia * w_apx * magnitudes["apraxia"])


def attainment_probability(projected_score: float, threshold: float, k: float) -> float:
    """logistic(k * (score - threshold)); NaN if the score is not finite"""
    if not math.isfinite(projected_score):
        return math.nan
    return logistic(k * (projected_score - threshold))


def is_tie(probability: float) -> bool:
    """True when the probability sits exactly on the 50% line"""
    return math.isfinite(probability) and abs(probability - 0.5) < TIE_EPS


def compute_item_attainments(
    projected_score: float,
    covariates: Covariates,
    config: ModelConfig = DEFAULT_CONFIG,
    k: Optional[float] = None
) -> List[ItemAttainment]:
    """
    Attainment probability for every configured milestone.

    Returns:
        Items sorted ascending by probability (least likely first);
        empty if the projected score is not finite.
    """
    if not math.isfinite(projected_score):
        return []
    if k is None:
        k = config.item_slope

    magnitudes = deficit_magnitudes(covariates)
    results = []
    for item in config.items:
        adjusted = item.base_threshold + threshold_shift(item.weights, magnitudes, config)
        p = attainment_probability(projected_score, adjusted, k)
        results.append(ItemAttainment(
            key=item.key,
            label=item.label,
            base_threshold=item.base_threshold,
            adjusted_threshold=adjusted,
            probability=p,
            is_tie=is_tie(p)
        ))

    results.sort(key=lambda r: r.probability)
    if results:
        logger.debug(f"Least likely milestone: {results[0].key} (p={results[0].probability:.3f})")
    return results
