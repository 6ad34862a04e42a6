"""
Stroke Prognosis Engine
=======================
Estimate post-stroke FIM-m recovery and home-discharge probability from
two serial measurements. For education and discussion, not diagnosis.
"""

from .config import (
    ModelConfig,
    DEFAULT_CONFIG,
    HemiparesisSide,
    NihssBand,
    DecisionBucket,
    DecisionThresholds,
    ExplorationPreset,
    SlopePreset,
    ConfigError,
    load_model_config
)

from .models import (
    MeasurementPair,
    Covariates,
    ExplorationWeights,
    PatientState,
    PrognosisResult
)

from .recovery_curve import estimate_rate, project_score
from .attainment import compute_item_attainments
from .discharge_model import compute_discharge_probability
from .uncertainty import compute_interval
from .sensitivity import compute_sensitivity

from .engine import PrognosisEngine, quick_predict

__version__ = "0.9.0"
