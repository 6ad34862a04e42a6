"""
Stroke Prognosis Engine - Data Models
=====================================
Input snapshots and computation results.

Inputs are frozen: each calculation receives an immutable snapshot, and
counterfactual scenarios derive modified copies with dataclasses.replace.
Non-finite results are carried as float('nan'), never replaced by defaults.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional
import math

import pandas as pd

from .config import (
    HemiparesisSide, NihssBand, DecisionBucket, ExplorationPreset,
    DecisionThresholds, ModelConfig, DEFAULT_CONFIG, SlopePreset,
    get_nihss_band
)


# ============================================================
# INPUTS
# ============================================================

@dataclass(frozen=True)
class MeasurementPair:
    """Two serial FIM-m measurements (A earlier, B later)"""
    day_a: float = 7
    score_a: float = 30
    day_b: float = 14
    score_b: float = 45


@dataclass(frozen=True)
class Covariates:
    """
    Clinical and demographic covariates.

    nihss is the admission NIHSS total (0-42), or None when unknown.
    premorbid_mrs is the modified Rankin Scale before the stroke (0-6).
    """
    age: int = 70
    household_size: int = 2
    lives_alone: bool = False
    stairs: bool = True
    hemiparesis: HemiparesisSide = HemiparesisSide.UNKNOWN
    aphasia: bool = False
    neglect: bool = False
    apraxia: bool = False
    nihss: Optional[int] = 10
    premorbid_mrs: int = 0

    @property
    def nihss_unknown(self) -> bool:
        return self.nihss is None

    @property
    def nihss_band(self) -> Optional[NihssBand]:
        if self.nihss is None:
            return None
        return get_nihss_band(self.nihss)


@dataclass(frozen=True)
class ExplorationWeights:
    """
    Exploratory deficit weights added to the discharge logit.

    Default 0 (no influence). Negative values push toward non-home.
    """
    neglect: float = 0.0
    aphasia: float = 0.0
    apraxia: float = 0.0

    @classmethod
    def from_preset(cls, preset: ExplorationPreset,
                    config: ModelConfig = DEFAULT_CONFIG) -> "ExplorationWeights":
        w_neg, w_aph, w_apx = config.exploration_weights(preset)
        return cls(neglect=w_neg, aphasia=w_aph, apraxia=w_apx)


@dataclass(frozen=True)
class PatientState:
    """Complete input snapshot for one calculation"""
    measurement: MeasurementPair = field(default_factory=MeasurementPair)
    target_day: float = 21
    covariates: Covariates = field(default_factory=Covariates)
    weights: ExplorationWeights = field(default_factory=ExplorationWeights)
    thresholds: DecisionThresholds = field(default_factory=DecisionThresholds)
    item_slope: float = SlopePreset.STANDARD.value

    def with_covariates(self, **changes) -> "PatientState":
        return replace(self, covariates=replace(self.covariates, **changes))


# ============================================================
# RESULTS
# ============================================================

@dataclass(frozen=True)
class ItemAttainment:
    """Attainment probability for one FIM-m milestone"""
    key: str
    label: str
    base_threshold: float
    adjusted_threshold: float
    probability: float
    is_tie: bool = False

    def to_dict(self) -> dict:
        return {
            'key': self.key,
            'label': self.label,
            'base_threshold': self.base_threshold,
            'adjusted_threshold': round(self.adjusted_threshold, 4),
            'probability': self.probability,
            'is_tie': self.is_tie
        }


@dataclass(frozen=True)
class DischargeInterval:
    """90% bootstrap interval around the home-discharge probability"""
    point_estimate: float
    low: float
    high: float
    trial_count: int

    def contains_point(self) -> bool:
        return self.low <= self.point_estimate <= self.high


@dataclass(frozen=True)
class MinimumDelta:
    """
    FIM-m gain needed to reach the high-confidence home threshold.

    days is the additional time at the current recovery rate, NaN when
    unavailable.
    """
    needed: float
    days: float
    note: str = ""
    required_score: float = math.nan
    ceiling_exceeded: bool = False


@dataclass(frozen=True)
class Scenario:
    """A counterfactual covariate change and its effect"""
    id: str
    label: str
    probability: float
    delta: float
    actionable: bool = True

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'label': self.label,
            'probability': self.probability,
            'delta': self.delta,
            'actionable': self.actionable
        }


@dataclass(frozen=True)
class SensitivityReport:
    """Decision bucket, robustness and ranked levers"""
    bucket: DecisionBucket
    nih_robust: Optional[bool]  # None when NIHSS is known or not computable
    measurement_robust: Optional[bool]  # None when not computable
    minimum_delta: MinimumDelta
    scenarios: List[Scenario] = field(default_factory=list)

    @property
    def most_effective_lever(self) -> Optional[Scenario]:
        for s in self.scenarios:
            if s.actionable:
                return s
        return None


@dataclass(frozen=True)
class PrognosisResult:
    """Output of one full engine pass"""
    rate: float
    projected_score: float
    discharge_probability: float
    items: List[ItemAttainment]
    interval: Optional[DischargeInterval]
    sensitivity: SensitivityReport
    warnings: List[str] = field(default_factory=list)

    @property
    def computable(self) -> bool:
        return math.isfinite(self.rate) and math.isfinite(self.projected_score)

    def summary(self) -> Dict[str, object]:
        return {
            'rate': self.rate,
            'projected_score': self.projected_score,
            'discharge_probability': self.discharge_probability,
            'interval_low': self.interval.low if self.interval else math.nan,
            'interval_high': self.interval.high if self.interval else math.nan,
            'bucket': self.sensitivity.bucket.value,
        }


def items_to_frame(items: List[ItemAttainment]) -> pd.DataFrame:
    """Tabulate item attainments in their ranked order"""
    return pd.DataFrame([i.to_dict() for i in items],
                        columns=['key', 'label', 'base_threshold',
                                 'adjusted_threshold', 'probability', 'is_tie'])


def scenarios_to_frame(scenarios: List[Scenario]) -> pd.DataFrame:
    """Tabulate ranked scenarios"""
    return pd.DataFrame([s.to_dict() for s in scenarios],
                        columns=['id', 'label', 'probability', 'delta', 'actionable'])
