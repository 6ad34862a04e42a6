"""
Stroke Prognosis Engine - Validation Module
===========================================
Input consistency checks and engine self-checks.
"""

import math
from typing import Dict, List, Optional
from dataclasses import dataclass
from enum import Enum

import numpy as np

from .config import ModelConfig, DEFAULT_CONFIG, NihssBand
from .models import PatientState, MeasurementPair
from .recovery_curve import estimate_rate, project_score, clamp_score
from .attainment import attainment_probability, threshold_shift, is_tie, compute_item_attainments
from .discharge_model import logistic, compute_discharge_probability
from .uncertainty import compute_interval


class ValidationSeverity(Enum):
    PASS = "✅ PASS"
    WARNING = "⚠️ WARNING"
    FAIL = "❌ FAIL"
    INFO = "ℹ️ INFO"


@dataclass
class ValidationResult:
    name: str
    severity: ValidationSeverity
    message: str
    expected: Optional[str] = None
    actual: Optional[str] = None


def _check(name: str, ok: bool, message: str, failure=ValidationSeverity.FAIL) -> ValidationResult:
    return ValidationResult(
        name=name,
        severity=ValidationSeverity.PASS if ok else failure,
        message=message
    )


def validate_inputs(state: PatientState, config: ModelConfig = DEFAULT_CONFIG) -> List[ValidationResult]:
    """Consistency checks on a single input snapshot"""
    results = []
    m = state.measurement
    cov = state.covariates

    rate = estimate_rate(m)
    results.append(_check(
        "Input: Recovery rate",
        math.isfinite(rate),
        f"A=day {m.day_a}, B=day {m.day_b}" if math.isfinite(rate)
        else "Cannot compute: day A must be > 0 and day B later than day A"
    ))

    gap = m.day_b - m.day_a
    results.append(ValidationResult(
        name="Input: A-B interval",
        severity=ValidationSeverity.PASS if gap >= config.min_interval_days else ValidationSeverity.WARNING,
        message=f"{gap} days between measurements",
        expected=f">= {config.min_interval_days} days"
    ))

    results.append(_check(
        "Input: Household consistency",
        (cov.household_size <= 1) == cov.lives_alone,
        f"lives_alone={cov.lives_alone}, household_size={cov.household_size}",
        failure=ValidationSeverity.WARNING
    ))

    thr = state.thresholds
    issues = thr.issues()
    results.append(_check(
        "Config: Decision thresholds",
        not issues,
        f"low={thr.low}, high={thr.high}" if not issues else "; ".join(issues),
        failure=ValidationSeverity.WARNING
    ))

    if cov.nihss_unknown:
        results.append(ValidationResult(
            name="Input: NIHSS",
            severity=ValidationSeverity.INFO,
            message="NIHSS unknown - interval samples the low/mid/high range"
        ))

    return results


def run_self_checks(config: ModelConfig = DEFAULT_CONFIG,
                    state: Optional[PatientState] = None,
                    seed: Optional[int] = None) -> List[ValidationResult]:
    """
    Known-answer checks of the model functions.

    Args:
        config: model configuration under test
        state: snapshot used for state-dependent checks (default inputs if None)
        seed: seed for the interval check (unseeded if None)
    """
    state = state or PatientState()
    results = []

    b = estimate_rate(MeasurementPair(30, 40, 60, 55))
    results.append(_check("Rate: basic", math.isfinite(b), f"beta={b:.3f}"))

    f = project_score(90, MeasurementPair(30, 40, 60, 55), b)
    results.append(_check("Projection: monotonic", math.isfinite(f) and f > 40, f"FIM-m={f:.1f}"))

    bad = estimate_rate(MeasurementPair(30, 40, 20, 55))
    results.append(_check("Rate: invalid interval is NaN", math.isnan(bad), f"beta={bad}"))

    p1 = attainment_probability(40, 50, config.item_slope)
    p2 = attainment_probability(60, 50, config.item_slope)
    results.append(_check("Attainment: monotonic", p2 > p1, f"p1={p1:.3f}, p2={p2:.3f}"))

    ph = logistic(config.coefficients.intercept + config.coefficients.fim * f)
    results.append(_check("Discharge: range 0-1", 0 <= ph <= 1, f"p={ph:.3f}"))

    items = compute_item_attainments(clamp_score(f), state.covariates, config)
    results.append(_check("Attainment: item count", len(items) == len(config.items),
                          f"{len(items)}/{len(config.items)}"))

    p_eq = attainment_probability(100, 100, config.item_slope)
    results.append(_check("Attainment: 50% at threshold", is_tie(p_eq), f"p={p_eq:.3f}"))

    magnitudes = {"neglect": 1.0, "aphasia": 1.0, "apraxia": 1.0}
    s = config.deficit_scales
    shift = threshold_shift((2, 3, 4), magnitudes, config)
    expected = s.neglect * 2 + s.aphasia * 3 + s.apraxia * 4
    results.append(_check("Attainment: weight index mapping", abs(shift - expected) < 1e-9,
                          f"calc={shift:.2f}, expect={expected:.2f}"))

    score = clamp_score(f) if math.isfinite(f) else 50.0
    unknown = state.with_covariates(nihss=None)
    p_worst = compute_discharge_probability(score, unknown.covariates, unknown.weights,
                                            config, NihssBand.HIGH)
    p_best = compute_discharge_probability(score, unknown.covariates, unknown.weights,
                                           config, NihssBand.LOW)
    results.append(_check("Discharge: NIHSS range ordering", p_worst <= p_best,
                          f"high band={p_worst:.3f}, low band={p_best:.3f}"))

    ci = compute_interval(state, score, config, trial_count=100, rng=np.random.default_rng(seed))
    results.append(_check(
        "Interval: contains point estimate",
        ci is not None and ci.contains_point(),
        f"lo={ci.low:.3f}, hat={ci.point_estimate:.3f}, hi={ci.high:.3f}" if ci else "no interval",
        failure=ValidationSeverity.WARNING
    ))

    return results


def get_summary(results: List[ValidationResult]) -> Dict:
    return {
        'total': len(results),
        'passed': sum(1 for r in results if r.severity == ValidationSeverity.PASS),
        'warnings': sum(1 for r in results if r.severity == ValidationSeverity.WARNING),
        'failed': sum(1 for r in results if r.severity == ValidationSeverity.FAIL)
    }
