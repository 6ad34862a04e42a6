"""
Stroke Prognosis Engine
=======================

Runs the full estimation pipeline for one input snapshot:

    measurements -> recovery rate -> projected FIM-m (clamped 0-91)
                 -> item attainments
                 -> P(home discharge) -> bootstrap interval
                                      -> sensitivity / scenarios

Every step is a pure function of the snapshot and the configuration; the
engine object only holds the (immutable) configuration. The bootstrap
interval is the one stochastic step; pass `rng` to make it reproducible.

Limitations
-----------
- Coefficients are illustrative defaults, not a fitted model.
- The recovery curve is identified from exactly two points; measurement
  error in either propagates directly into the projection.
- Exploratory deficit weights default to 0 and are not evidence-based.

THIS IS NOT A MEDICAL DEVICE. For education and discussion only.
"""

import math
import logging
from typing import Optional

from .config import ModelConfig, DEFAULT_CONFIG, HemiparesisSide
from .models import (
    PatientState, MeasurementPair, Covariates, PrognosisResult
)
from .recovery_curve import estimate_rate, project_score, clamp_score
from .attainment import compute_item_attainments
from .discharge_model import compute_discharge_probability
from .uncertainty import compute_interval, RandomSource
from .sensitivity import compute_sensitivity
from .formatting import format_number, format_percent, format_days

logger = logging.getLogger(__name__)


class PrognosisEngine:
    """
    Post-stroke recovery and home-discharge estimator.

    Combines:
    1. A two-point log-linear recovery curve
    2. Deficit-adjusted logistic attainment curves for 13 FIM-m items
    3. A logistic home-discharge model
    4. A Monte Carlo interval and a sensitivity analysis
    """

    def __init__(self, config: Optional[ModelConfig] = None):
        """
        Initialise engine with a model configuration.

        Args:
            config: ModelConfig instance. If None, uses DEFAULT_CONFIG.
        """
        self.config = config or DEFAULT_CONFIG
        logger.info(f"PrognosisEngine initialised with config v{self.config.version} "
                    f"({len(self.config.items)} items)")

    def predict(
        self,
        state: PatientState,
        trial_count: Optional[int] = None,
        rng: RandomSource = None,
        include_age: bool = False
    ) -> PrognosisResult:
        """
        Generate the full prognosis for a snapshot.

        Steps:
        1. Fit recovery rate from measurements A and B
        2. Project and clamp FIM-m at the target day
        3. Item attainment probabilities
        4. Home-discharge probability
        5. Bootstrap interval
        6. Sensitivity analysis

        Args:
            state: PatientState snapshot
            trial_count: bootstrap trials (default from config)
            rng: numpy Generator or seed for the bootstrap
            include_age: add explanatory age +/-5 scenarios

        Returns:
            PrognosisResult; every estimate is NaN/empty when the recovery
            rate cannot be computed
        """
        warnings = []
        if not state.thresholds.is_valid():
            warnings.extend(state.thresholds.issues())

        # Step 1-2: recovery curve
        rate = estimate_rate(state.measurement)
        if not math.isfinite(rate):
            logger.warning(f"Recovery rate not computable for {state.measurement}")
            warnings.append("recovery rate cannot be computed from the measurement interval")
        projected = clamp_score(project_score(state.target_day, state.measurement, rate))
        logger.debug(f"Rate {rate:.3f}, projected FIM-m {projected:.1f} at day {state.target_day}")

        # Step 3: milestones
        items = compute_item_attainments(projected, state.covariates, self.config, state.item_slope)

        # Step 4: discharge
        p_home = compute_discharge_probability(projected, state.covariates, state.weights, self.config)

        # Step 5-6: uncertainty and sensitivity
        interval = compute_interval(state, projected, self.config, trial_count, rng)
        sensitivity = compute_sensitivity(state, projected, p_home, rate, self.config, include_age)

        logger.info(f"P(home) = {p_home:.3f}, bucket = {sensitivity.bucket.value}")

        return PrognosisResult(
            rate=rate,
            projected_score=projected,
            discharge_probability=p_home,
            items=items,
            interval=interval,
            sensitivity=sensitivity,
            warnings=warnings
        )

    def explain_prediction(self, result: PrognosisResult, state: PatientState,
                           max_items: int = 5) -> str:
        """
        Plain-language summary of a prediction.

        Returns text suitable for a printed discussion sheet.
        """
        lines = []

        lines.append("PROJECTED RECOVERY")
        lines.append("=" * 40)
        lines.append("")

        if not result.computable:
            lines.append("Cannot compute: check measurement days (A > 0, B later than A).")
            lines.append("")
            lines.append(DISCLAIMER)
            return "\n".join(lines)

        lines.append(f"Recovery rate (per ln day): {format_number(result.rate, 2)}")
        lines.append(f"Projected FIM-m at day {format_number(state.target_day, 0)}: "
                     f"{format_number(result.projected_score, 1)} / 91")
        lines.append("")
        lines.append("HOME DISCHARGE:")
        lines.append(f"  • Probability: {format_percent(result.discharge_probability)}")
        if result.interval:
            lines.append(f"  • 90% interval: {format_percent(result.interval.low)}"
                         f"–{format_percent(result.interval.high)} "
                         f"({result.interval.trial_count} trials)")
        sens = result.sensitivity
        lines.append(f"  • Decision: {sens.bucket.value.upper()}")
        lines.append("")

        lines.append("LEAST LIKELY MILESTONES:")
        for item in result.items[:max_items]:
            marker = " (50/50)" if item.is_tie else ""
            lines.append(f"  • {item.label}: {format_percent(item.probability)}{marker} "
                         f"(threshold {format_number(item.adjusted_threshold, 1)})")
        lines.append("")

        lines.append("ROBUSTNESS:")
        if sens.nih_robust is not None:
            lines.append(f"  • Across unknown NIHSS range: {'robust' if sens.nih_robust else 'NOT robust'}")
        if sens.measurement_robust is not None:
            lines.append(f"  • To ±2 FIM-m measurement error: "
                         f"{'robust' if sens.measurement_robust else 'NOT robust'}")
        lines.append("")

        md = sens.minimum_delta
        lines.append("TO REACH HIGH-CONFIDENCE HOME:")
        lines.append(f"  • FIM-m gain needed: {format_number(md.needed, 1)}")
        lines.append(f"  • Time at current rate: {format_days(md.days)}")
        if md.note:
            lines.append(f"  • Note: {md.note}")

        lever = sens.most_effective_lever
        if lever is not None:
            lines.append(f"  • Most effective lever: {lever.label} "
                         f"({lever.delta * 100:+.0f} points)")
        lines.append("")

        for warning in result.warnings:
            lines.append(f"Warning: {warning}")
        lines.append(DISCLAIMER)

        return "\n".join(lines)


DISCLAIMER = ("Not a medical device. Illustrative coefficients for education "
              "and discussion only.")


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def create_engine() -> PrognosisEngine:
    """Factory function to create an engine with the default configuration."""
    return PrognosisEngine()


def quick_predict(
    day_a: float,
    score_a: float,
    day_b: float,
    score_b: float,
    target_day: float,
    age: int = 70,
    household_size: int = 2,
    stairs: bool = True,
    nihss: Optional[int] = 10,
    premorbid_mrs: int = 0,
    hemiparesis: HemiparesisSide = HemiparesisSide.UNKNOWN,
    rng: RandomSource = None
) -> PrognosisResult:
    """
    Quick prediction with minimal inputs.

    Convenience wrapper for common use cases.
    """
    state = PatientState(
        measurement=MeasurementPair(day_a, score_a, day_b, score_b),
        target_day=target_day,
        covariates=Covariates(
            age=age,
            household_size=household_size,
            lives_alone=household_size <= 1,
            stairs=stairs,
            hemiparesis=hemiparesis,
            nihss=nihss,
            premorbid_mrs=premorbid_mrs
        )
    )
    return PrognosisEngine().predict(state, rng=rng)


# =============================================================================
# EXAMPLE USAGE
# =============================================================================

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    print("\n" + "=" * 60)
    print("EXAMPLE: FIM-m 30 -> 45 between day 7 and 14, projected to day 21")
    print("=" * 60)

    engine = PrognosisEngine()
    example = PatientState()
    print(engine.explain_prediction(engine.predict(example), example))
