"""
Sensitivity / Scenario Engine
=============================

Answers "how solid is this estimate, and what would move it?":

1. Bucket - classify P(home) against the dual thresholds
2. Robustness - does the bucket survive the unknown NIHSS range, and
   +/-2 points of FIM-m measurement error?
3. Minimum delta - FIM-m gain needed to reach the high threshold, and the
   days that gain would take at the current recovery rate
4. Scenarios - rank counterfactual covariate changes by probability change

Minimum Delta
-------------
The score enters the logit linearly, z = b_fim * FIM + r, so the FIM-m at
which P(home) equals the high threshold is

    FIM* = (logit(high) - r) / b_fim

Inverting the recovery curve, a gain of d points at rate beta takes
ln(t'/t) = d / beta, i.e. t' - t = t * (exp(d / beta) - 1) days.
"""

import math
import logging
from typing import List, Optional

import numpy as np

from .config import ModelConfig, DEFAULT_CONFIG, DecisionBucket, NihssBand, SCORE_MAX
from .discharge_model import compute_discharge_probability, linear_predictor, logit
from .models import PatientState, MinimumDelta, Scenario, SensitivityReport
from .recovery_curve import clamp_score

logger = logging.getLogger(__name__)

MEASUREMENT_ERROR = 2.0
SCENARIO_SCORE_STEP = 5.0
SCENARIO_AGE_STEP = 5
AGE_MIN, AGE_MAX = 18, 120

NOTE_NOT_COMPUTED = "not computed"
NOTE_ALREADY_HOME = "already high-confidence home"
NOTE_CEILING = "exceeds scale ceiling; unlikely to be reached"


def bucket(p: float, low: float, high: float) -> DecisionBucket:
    """Classify a probability against the low/high thresholds"""
    if not math.isfinite(p):
        return DecisionBucket.UNKNOWN
    if p >= high:
        return DecisionBucket.HOME
    if p <= low:
        return DecisionBucket.NONHOME
    return DecisionBucket.UNCERTAIN


def _probability(state: PatientState, score: float, config: ModelConfig,
                 band_override: Optional[NihssBand] = None) -> float:
    return compute_discharge_probability(score, state.covariates, state.weights,
                                         config, band_override)


def nihss_robust(state: PatientState, projected_score: float,
                 config: ModelConfig = DEFAULT_CONFIG) -> Optional[bool]:
    """
    Bucket agreement between the worst (high) and best (low) NIHSS band.

    Returns None when NIHSS is known or the projected score is not finite.
    """
    if not state.covariates.nihss_unknown or not math.isfinite(projected_score):
        return None
    thr = state.thresholds
    worst = _probability(state, projected_score, config, NihssBand.HIGH)
    best = _probability(state, projected_score, config, NihssBand.LOW)
    return bucket(worst, thr.low, thr.high) == bucket(best, thr.low, thr.high)


def measurement_robust(state: PatientState, projected_score: float,
                       baseline_probability: float,
                       config: ModelConfig = DEFAULT_CONFIG) -> Optional[bool]:
    """Bucket agreement at the score and at score -/+ 2 points; None if not computable"""
    if not (math.isfinite(projected_score) and math.isfinite(baseline_probability)):
        return None
    thr = state.thresholds
    minus = _probability(state, clamp_score(projected_score - MEASUREMENT_ERROR), config)
    plus = _probability(state, clamp_score(projected_score + MEASUREMENT_ERROR), config)
    b0 = bucket(baseline_probability, thr.low, thr.high)
    return b0 == bucket(minus, thr.low, thr.high) and b0 == bucket(plus, thr.low, thr.high)


def minimum_delta(state: PatientState, projected_score: float,
                  baseline_probability: float, rate: float,
                  config: ModelConfig = DEFAULT_CONFIG) -> MinimumDelta:
    """FIM-m gain (and days) needed to reach the high-confidence home threshold"""
    if not math.isfinite(baseline_probability):
        return MinimumDelta(needed=math.nan, days=math.nan, note=NOTE_NOT_COMPUTED)

    high = state.thresholds.high
    if baseline_probability >= high:
        return MinimumDelta(needed=0.0, days=0.0, note=NOTE_ALREADY_HOME,
                            required_score=projected_score)

    b_fim = config.coefficients.fim
    if not math.isfinite(b_fim) or b_fim == 0:
        logger.warning(f"FIM-m coefficient {b_fim} cannot be inverted")
        return MinimumDelta(needed=math.nan, days=math.nan, note=NOTE_NOT_COMPUTED)

    z = linear_predictor(projected_score, state.covariates, state.weights, config)
    remainder = z - b_fim * projected_score
    required = (logit(high) - remainder) / b_fim
    needed = max(0.0, required - projected_score)

    days = math.nan
    if math.isfinite(rate) and rate > 0 and needed > 0:
        with np.errstate(over='ignore'):
            growth = np.exp(needed / rate)
        estimate = state.target_day * (growth - 1)
        if math.isfinite(estimate) and estimate >= 0:
            days = float(round(estimate))

    ceiling = needed > 0 and required > SCORE_MAX
    logger.debug(f"Required FIM-m {required:.1f}, needed {needed:.1f}, days {days}")
    return MinimumDelta(
        needed=needed,
        days=days,
        note=NOTE_CEILING if ceiling else "",
        required_score=required,
        ceiling_exceeded=ceiling
    )


def rank_scenarios(state: PatientState, projected_score: float,
                   baseline_probability: float,
                   config: ModelConfig = DEFAULT_CONFIG,
                   include_age: bool = False) -> List[Scenario]:
    """
    Evaluate counterfactual changes and sort by probability change.

    Age scenarios are explanatory only (non-actionable) and are included
    on request.
    """
    if not math.isfinite(baseline_probability):
        return []

    cov = state.covariates
    candidates = [
        ("fim+5", "FIM-m +5", state,
         clamp_score(projected_score + SCENARIO_SCORE_STEP), True),
        ("fim-5", "FIM-m -5", state,
         clamp_score(projected_score - SCENARIO_SCORE_STEP), True),
        ("toCohab", "Alone -> cohabiting (added support)",
         state.with_covariates(lives_alone=False, household_size=max(2, cov.household_size)),
         projected_score, True),
        ("toAlone", "Cohabiting -> alone",
         state.with_covariates(lives_alone=True, household_size=1),
         projected_score, True),
        ("stairsOff", "Stairs removed (route change/adaptation)",
         state.with_covariates(stairs=False), projected_score, True),
        ("stairsOn", "Stairs present",
         state.with_covariates(stairs=True), projected_score, True),
    ]
    if include_age:
        older = min(AGE_MAX, max(AGE_MIN, cov.age + SCENARIO_AGE_STEP))
        younger = min(AGE_MAX, max(AGE_MIN, cov.age - SCENARIO_AGE_STEP))
        candidates.append(("age+5", "Age +5 (explanatory)",
                           state.with_covariates(age=older), projected_score, False))
        candidates.append(("age-5", "Age -5 (explanatory)",
                           state.with_covariates(age=younger), projected_score, False))

    scenarios = []
    for scenario_id, label, scenario_state, score, actionable in candidates:
        p = _probability(scenario_state, score, config)
        scenarios.append(Scenario(
            id=scenario_id,
            label=label,
            probability=p,
            delta=p - baseline_probability,
            actionable=actionable
        ))

    scenarios.sort(key=lambda s: s.delta, reverse=True)
    return scenarios


def compute_sensitivity(
    state: PatientState,
    projected_score: float,
    baseline_probability: float,
    rate: float,
    config: ModelConfig = DEFAULT_CONFIG,
    include_age: bool = False
) -> SensitivityReport:
    """Full sensitivity bundle for one input snapshot"""
    thr = state.thresholds
    if not thr.is_valid():
        logger.warning(f"Decision thresholds misconfigured: {'; '.join(thr.issues())}")

    return SensitivityReport(
        bucket=bucket(baseline_probability, thr.low, thr.high),
        nih_robust=nihss_robust(state, projected_score, config),
        measurement_robust=measurement_robust(state, projected_score, baseline_probability, config),
        minimum_delta=minimum_delta(state, projected_score, baseline_probability, rate, config),
        scenarios=rank_scenarios(state, projected_score, baseline_probability, config, include_age)
    )
