"""
Prognosis engine - Integration Tests
====================================
End-to-end runs of the full pipeline.
"""

import math
import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from prognosis import (
    PrognosisEngine, quick_predict, load_model_config,
    PatientState, MeasurementPair, DecisionBucket, DecisionThresholds
)
from prognosis.engine import DISCLAIMER, create_engine


@pytest.fixture
def engine():
    return PrognosisEngine()


class TestPredict:
    """Full pipeline on the reference snapshot"""

    def test_reference_result(self, engine):
        result = engine.predict(PatientState(), rng=42)
        assert result.computable
        assert result.rate == pytest.approx(21.64, abs=1e-2)
        assert result.projected_score == pytest.approx(53.8, abs=0.1)
        assert result.discharge_probability == pytest.approx(0.681, abs=1e-3)
        assert len(result.items) == 13
        assert result.interval.trial_count == 200
        assert result.interval.contains_point()
        assert result.sensitivity.bucket == DecisionBucket.UNCERTAIN
        assert result.warnings == []

    def test_seeded_runs_identical(self, engine):
        a = engine.predict(PatientState(), rng=3)
        b = engine.predict(PatientState(), rng=3)
        assert a == b

    def test_deterministic_parts_ignore_rng(self, engine):
        """Only the interval depends on the random source"""
        a = engine.predict(PatientState(), rng=1)
        b = engine.predict(PatientState(), rng=2)
        assert a.discharge_probability == b.discharge_probability
        assert a.items == b.items
        assert a.sensitivity == b.sensitivity

    def test_trial_count_override(self, engine):
        result = engine.predict(PatientState(), trial_count=50, rng=0)
        assert result.interval.trial_count == 50

    def test_include_age(self, engine):
        result = engine.predict(PatientState(), rng=0, include_age=True)
        assert len(result.sensitivity.scenarios) == 8

    def test_yaml_config_matches_builtin(self):
        yaml_engine = PrognosisEngine(load_model_config())
        builtin = PrognosisEngine()
        a = yaml_engine.predict(PatientState(), rng=0)
        b = builtin.predict(PatientState(), rng=0)
        assert a.discharge_probability == pytest.approx(b.discharge_probability)
        assert [i.key for i in a.items] == [i.key for i in b.items]

    def test_threshold_issues_reported(self, engine):
        state = PatientState(thresholds=DecisionThresholds(low=0.5, high=0.6))
        result = engine.predict(state, rng=0)
        assert result.warnings
        assert result.computable


class TestNotComputable:
    """Invalid measurement interval propagates as NaN/empty"""

    @pytest.fixture
    def result(self, engine):
        state = PatientState(measurement=MeasurementPair(day_a=0, score_a=30, day_b=14, score_b=45))
        return engine.predict(state, rng=0)

    def test_estimates_missing(self, result):
        assert not result.computable
        assert math.isnan(result.rate)
        assert math.isnan(result.projected_score)
        assert math.isnan(result.discharge_probability)

    def test_derived_outputs_empty(self, result):
        assert result.items == []
        assert result.interval is None
        assert result.sensitivity.bucket == DecisionBucket.UNKNOWN
        assert result.sensitivity.scenarios == []
        assert math.isnan(result.sensitivity.minimum_delta.needed)
        assert result.sensitivity.measurement_robust is None
        assert result.sensitivity.nih_robust is None

    def test_unknown_nihss_not_labelled_robust(self, engine):
        """Robustness flags stay unset when nothing could be computed"""
        state = PatientState(
            measurement=MeasurementPair(day_a=0, score_a=30, day_b=14, score_b=45)
        ).with_covariates(nihss=None)
        sens = engine.predict(state, rng=0).sensitivity
        assert sens.bucket == DecisionBucket.UNKNOWN
        assert sens.nih_robust is None
        assert sens.measurement_robust is None

    def test_warning_recorded(self, result):
        assert any("rate" in w for w in result.warnings)

    def test_summary(self, result):
        summary = result.summary()
        assert summary['bucket'] == 'unknown'
        assert math.isnan(summary['interval_low'])


class TestExplain:
    """Text report"""

    def test_reference_report(self, engine):
        state = PatientState()
        text = engine.explain_prediction(engine.predict(state, rng=0), state)
        assert "PROJECTED RECOVERY" in text
        assert "68%" in text
        assert "UNCERTAIN" in text
        assert "Stairs" in text
        assert "Most effective lever: FIM-m +5" in text
        assert text.endswith(DISCLAIMER)

    def test_not_computable_report(self, engine):
        state = PatientState(measurement=MeasurementPair(day_a=14, day_b=7))
        text = engine.explain_prediction(engine.predict(state, rng=0), state)
        assert "Cannot compute" in text
        assert "nan" not in text

    def test_max_items(self, engine):
        state = PatientState()
        text = engine.explain_prediction(engine.predict(state, rng=0), state, max_items=2)
        assert "Stairs" in text
        assert "Eating" not in text


class TestQuickPredict:
    """Convenience wrapper"""

    def test_reference(self):
        result = quick_predict(7, 30, 14, 45, 21, nihss=10, rng=0)
        assert result.discharge_probability == pytest.approx(0.681, abs=1e-3)

    def test_unknown_nihss_checks_range(self):
        result = quick_predict(7, 30, 14, 45, 21, nihss=None, rng=0)
        assert result.sensitivity.nih_robust is not None

    def test_defaults_match_patient_state(self, engine):
        """Same default patient through either entry point"""
        quick = quick_predict(7, 30, 14, 45, 21, rng=0)
        full = engine.predict(PatientState(), rng=0)
        assert quick.discharge_probability == full.discharge_probability
        assert quick.sensitivity == full.sensitivity

    def test_single_person_household_lives_alone(self):
        alone = quick_predict(7, 30, 14, 45, 21, household_size=1, nihss=10, rng=0)
        together = quick_predict(7, 30, 14, 45, 21, household_size=2, nihss=10, rng=0)
        assert alone.discharge_probability < together.discharge_probability

    def test_create_engine(self):
        assert create_engine().config.version == "builtin"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
