"""
Stroke Prognosis Engine - Configuration & Domain Types
======================================================

This module defines the configuration for the post-stroke recovery and
home-discharge estimation engine. All coefficients are ILLUSTRATIVE DEFAULTS
for clinical education. They have not been fitted or calibrated against any
cohort and must not be used for individual clinical decisions.

Functional Scale
----------------
Scores are motor FIM (FIM-m), an ordinal measure of independence in 13 motor
activities of daily living. Each item scores 1-7; the total used here is
bounded to [0, 91] where 91 means full independence.

Milestone Items
---------------
Each of the 13 items carries a base threshold: the total FIM-m at which that
item is typically attained. Cognitive deficits (neglect, aphasia, apraxia)
shift an item's threshold upward by an amount weighted per item.

Reference values are loaded from model_config.yaml when available; the same
numbers are reproduced in code as DEFAULT_CONFIG.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Dict, List, Tuple
import yaml
from pathlib import Path


SCORE_MIN = 0.0
SCORE_MAX = 91.0  # FIM-m ceiling (full independence)


class ConfigError(ValueError):
    """Raised when a model configuration file is incomplete or malformed."""
    pass


# =============================================================================
# CLINICAL CLASSIFICATION
# =============================================================================

class HemiparesisSide(Enum):
    """
    Side of motor weakness.

    Side modulates the magnitude of cognitive deficits (see
    DEFICIT_MAGNITUDES):
    - RIGHT: neglect takes its higher magnitude
    - LEFT: aphasia and apraxia take their higher magnitude
    - UNKNOWN: each deficit takes its lower magnitude
    """
    UNKNOWN = "unknown"
    LEFT = "left"
    RIGHT = "right"


class NihssBand(Enum):
    """
    Admission NIHSS severity bands.

    - LOW: 0-5
    - MID: 6-13
    - HIGH: 14-42
    """
    LOW = "low"
    MID = "mid"
    HIGH = "high"


class MrsBand(Enum):
    """Pre-morbid modified Rankin Scale bands."""
    MRS_0_2 = "mrs2"
    MRS_3 = "mrs3"
    MRS_4 = "mrs4"
    MRS_5_6 = "mrs5"


class DecisionBucket(Enum):
    """
    Decision classification against dual thresholds.

    - HOME: probability >= high threshold
    - NONHOME: probability <= low threshold
    - UNCERTAIN: in between
    - UNKNOWN: probability could not be computed
    """
    HOME = "home"
    NONHOME = "nonhome"
    UNCERTAIN = "uncertain"
    UNKNOWN = "unknown"


class ExplorationPreset(Enum):
    """
    Presets for the exploratory deficit weights (wNeg, wAph, wApx).

    These weights are NOT empirically validated. STRICT removes their
    influence entirely and is the default.
    """
    STRICT = "strict"
    FIXED = "fixed"
    WEAK = "weak"


class SlopePreset(Enum):
    """Logistic slope k for item attainment curves."""
    GENTLE = 0.08
    STANDARD = 0.12
    SHARP = 0.16


# Deficit magnitude by hemiparesis side: (amplified, baseline)
# Neglect amplified with right-sided deficits, aphasia/apraxia with left.
DEFICIT_MAGNITUDES: Dict[str, Tuple[HemiparesisSide, float, float]] = {
    "neglect": (HemiparesisSide.RIGHT, 0.8, 0.3),
    "aphasia": (HemiparesisSide.LEFT, 0.6, 0.2),
    "apraxia": (HemiparesisSide.LEFT, 0.7, 0.2),
}


# =============================================================================
# MODEL CONFIGURATION
# =============================================================================

@dataclass(frozen=True)
class MilestoneItem:
    """A FIM-m motor item and the total score at which it is usually attained."""
    key: str
    label: str
    base_threshold: float
    # (neglect, aphasia, apraxia) influence on this item's threshold
    weights: Tuple[float, float, float] = (0.0, 0.0, 0.0)


@dataclass(frozen=True)
class DeficitScales:
    """Points of threshold shift per unit weight x magnitude."""
    neglect: float = 12.0
    aphasia: float = 8.0
    apraxia: float = 10.0


@dataclass(frozen=True)
class DischargeCoefficients:
    """
    Logistic regression coefficients for home discharge.

    Age enters as (age - 75) / 10. Household size enters twice: a
    lives-alone indicator (household <= 1) and a per-extra-member slope.
    The deficit weights (neglect/aphasia/apraxia) here are reference values
    used by the FIXED exploration preset, not by the default model.
    """
    intercept: float = -3.0
    fim: float = 0.068
    age: float = -0.724
    alone: float = -0.82
    household: float = 0.64
    stairs: float = -0.3
    neglect: float = -0.4
    aphasia: float = -0.2
    apraxia: float = -0.2
    # Band offsets in enum order (NihssBand, MrsBand)
    nihss: Tuple[float, float, float] = (0.0, -0.6, -1.2)
    mrs: Tuple[float, float, float, float] = (0.0, -0.4, -0.8, -1.2)

    def nihss_offset(self, band: NihssBand) -> float:
        return self.nihss[list(NihssBand).index(band)]

    def mrs_offset(self, band: MrsBand) -> float:
        return self.mrs[list(MrsBand).index(band)]


@dataclass(frozen=True)
class BootstrapSettings:
    """Noise model for the discharge-probability interval."""
    trial_count: int = 200
    score_sd: float = 1.0    # ~ +/-2 FIM-m points
    weight_sd: float = 0.10  # wNeg/wAph/wApx jitter
    lower_quantile: float = 0.05
    upper_quantile: float = 0.95


@dataclass(frozen=True)
class DecisionThresholds:
    """Dual thresholds for the high-confidence decision mode."""
    low: float = 0.10
    high: float = 0.90
    min_gap: float = 0.20

    def issues(self) -> List[str]:
        """Describe why the thresholds are misconfigured (empty if valid)."""
        problems = []
        if not self.low < self.high:
            problems.append(f"low threshold {self.low} must be below high threshold {self.high}")
        elif (self.high - self.low) < self.min_gap - 1e-9:
            problems.append(
                f"gap {self.high - self.low:.2f} is narrower than the minimum {self.min_gap:.2f}"
            )
        return problems

    def is_valid(self) -> bool:
        return not self.issues()


@dataclass(frozen=True)
class ModelConfig:
    """Master configuration for the prognosis engine."""
    items: Tuple[MilestoneItem, ...]
    deficit_scales: DeficitScales = field(default_factory=DeficitScales)
    coefficients: DischargeCoefficients = field(default_factory=DischargeCoefficients)
    thresholds: DecisionThresholds = field(default_factory=DecisionThresholds)
    bootstrap: BootstrapSettings = field(default_factory=BootstrapSettings)
    item_slope: float = SlopePreset.STANDARD.value
    min_interval_days: int = 7
    version: str = "builtin"

    def exploration_weights(self, preset: ExplorationPreset) -> Tuple[float, float, float]:
        """(wNeg, wAph, wApx) for a preset."""
        if preset == ExplorationPreset.FIXED:
            c = self.coefficients
            return (c.neglect, c.aphasia, c.apraxia)
        elif preset == ExplorationPreset.WEAK:
            return (-0.2, -0.1, -0.1)
        return (0.0, 0.0, 0.0)


# Ordered from hardest to easiest milestone
DEFAULT_ITEMS: Tuple[MilestoneItem, ...] = (
    MilestoneItem("stairs", "Stairs", 89.2, (0.2, 2.5, 0.6)),
    MilestoneItem("tubTransfer", "Tub/shower transfer", 80.0, (0.4, 1.6, 1.2)),
    MilestoneItem("walk", "Locomotion (walk/wheelchair)", 74.2, (0.2, 2.8, 0.4)),
    MilestoneItem("dressU", "Dressing - upper body", 73.6, (1.1, 0.4, 1.2)),
    MilestoneItem("bathing", "Bathing", 70.3, (0.5, 1.0, 0.9)),
    MilestoneItem("toiletTransfer", "Toilet transfer", 65.9, (0.3, 1.1, 0.7)),
    MilestoneItem("bedChairTransfer", "Bed/chair transfer", 65.5, (0.2, 1.1, 0.6)),
    MilestoneItem("dressL", "Dressing - lower body", 64.5, (0.7, 0.5, 1.4)),
    MilestoneItem("toilet", "Toileting", 62.0, (0.5, 0.6, 0.3)),
    MilestoneItem("groom", "Grooming", 51.0, (1.3, 0.2, 0.6)),
    MilestoneItem("bladder", "Bladder management", 43.4, (0.2, 0.1, 0.1)),
    MilestoneItem("bowel", "Bowel management", 42.2, (0.2, 0.1, 0.1)),
    MilestoneItem("eating", "Eating", 34.1, (0.9, 0.1, 0.2)),
)


# =============================================================================
# YAML LOADER
# =============================================================================

REQUIRED_SECTIONS = ['items', 'weights', 'deficit_scales', 'discharge']


def _band_offsets(section: dict, bands, defaults: Tuple[float, ...]) -> Tuple[float, ...]:
    """Offsets keyed by band value in YAML, as a tuple in enum order"""
    return tuple(float(section.get(band.value, default)) for band, default in zip(bands, defaults))


def load_model_config(yaml_path: Optional[Path] = None) -> ModelConfig:
    """
    Load model configuration from YAML.

    Args:
        yaml_path: Path to a model_config.yaml. If None, uses the packaged one.

    Returns:
        Immutable ModelConfig

    Raises:
        ConfigError: if required sections or item weights are missing
    """
    if yaml_path is None:
        yaml_path = Path(__file__).parent / "model_config.yaml"

    with open(yaml_path, 'r') as f:
        data = yaml.safe_load(f) or {}

    missing = [k for k in REQUIRED_SECTIONS if k not in data]
    if missing:
        raise ConfigError(f"Missing config keys: {missing}")

    weights = data['weights']
    items = []
    for entry in data['items']:
        key, label, threshold = entry
        if key not in weights:
            raise ConfigError(f"No weight triple for item '{key}'")
        items.append(MilestoneItem(key, label, float(threshold), tuple(float(w) for w in weights[key])))

    scales = data['deficit_scales']
    home = data['discharge']
    coefficients = DischargeCoefficients(
        intercept=home.get('intercept', -3.0),
        fim=home.get('fim', 0.068),
        age=home.get('age', -0.724),
        alone=home.get('alone', -0.82),
        household=home.get('household', 0.64),
        stairs=home.get('stairs', -0.3),
        neglect=home.get('neglect', -0.4),
        aphasia=home.get('aphasia', -0.2),
        apraxia=home.get('apraxia', -0.2),
        nihss=_band_offsets(home.get('nihss', {}), NihssBand, DischargeCoefficients.nihss),
        mrs=_band_offsets(home.get('mrs', {}), MrsBand, DischargeCoefficients.mrs),
    )

    thr = data.get('thresholds', {})
    boot = data.get('bootstrap', {})

    return ModelConfig(
        items=tuple(items),
        deficit_scales=DeficitScales(
            neglect=scales.get('neglect', 12.0),
            aphasia=scales.get('aphasia', 8.0),
            apraxia=scales.get('apraxia', 10.0),
        ),
        coefficients=coefficients,
        thresholds=DecisionThresholds(
            low=thr.get('low', 0.10),
            high=thr.get('high', 0.90),
            min_gap=thr.get('min_gap', 0.20),
        ),
        bootstrap=BootstrapSettings(
            trial_count=boot.get('trial_count', 200),
            score_sd=boot.get('score_sd', 1.0),
            weight_sd=boot.get('weight_sd', 0.10),
            lower_quantile=boot.get('lower_quantile', 0.05),
            upper_quantile=boot.get('upper_quantile', 0.95),
        ),
        item_slope=data.get('item_slope', SlopePreset.STANDARD.value),
        min_interval_days=data.get('min_interval_days', 7),
        version=str(data.get('metadata', {}).get('version', 'unknown')),
    )


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_nihss_band(nihss: int) -> NihssBand:
    """Convert an NIHSS total to its band"""
    if nihss <= 5:
        return NihssBand.LOW
    elif nihss <= 13:
        return NihssBand.MID
    else:
        return NihssBand.HIGH


def get_mrs_band(mrs: int) -> MrsBand:
    """Convert pre-morbid mRS to its band"""
    if mrs <= 2:
        return MrsBand.MRS_0_2
    elif mrs == 3:
        return MrsBand.MRS_3
    elif mrs == 4:
        return MrsBand.MRS_4
    else:
        return MrsBand.MRS_5_6


# Default config instance
DEFAULT_CONFIG = ModelConfig(items=DEFAULT_ITEMS)
