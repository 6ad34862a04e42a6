"""
Configuration, formatting and validation - Unit Tests
=====================================================
"""

import sys
from pathlib import Path

import pytest
import yaml

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from prognosis.config import (
    DEFAULT_CONFIG, DEFAULT_ITEMS, ConfigError, DecisionThresholds,
    ExplorationPreset, SlopePreset, ModelConfig, NihssBand, MrsBand,
    load_model_config
)
from prognosis.models import ExplorationWeights, PatientState, MeasurementPair
from prognosis.formatting import (
    PLACEHOLDER, format_number, format_number_or_zero, format_percent, format_days
)
from prognosis.validation import (
    ValidationSeverity, validate_inputs, run_self_checks, get_summary
)


class TestLoadModelConfig:
    """YAML configuration loader"""

    def test_packaged_config_matches_builtin(self):
        config = load_model_config()
        assert config.items == DEFAULT_ITEMS
        assert config.coefficients == DEFAULT_CONFIG.coefficients
        assert config.deficit_scales == DEFAULT_CONFIG.deficit_scales
        assert config.thresholds == DEFAULT_CONFIG.thresholds
        assert config.bootstrap == DEFAULT_CONFIG.bootstrap
        assert config.version == "0.9.0"

    def test_missing_section(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text(yaml.safe_dump({'items': [], 'weights': {}}))
        with pytest.raises(ConfigError, match="Missing config keys"):
            load_model_config(path)

    def test_missing_item_weights(self, tmp_path):
        path = tmp_path / "noweights.yaml"
        path.write_text(yaml.safe_dump({
            'items': [['eating', 'Eating', 34.1]],
            'weights': {},
            'deficit_scales': {},
            'discharge': {}
        }))
        with pytest.raises(ConfigError, match="eating"):
            load_model_config(path)

    def test_partial_sections_use_defaults(self, tmp_path):
        path = tmp_path / "minimal.yaml"
        path.write_text(yaml.safe_dump({
            'items': [['eating', 'Eating', 34.1]],
            'weights': {'eating': [0.9, 0.1, 0.2]},
            'deficit_scales': {},
            'discharge': {'fim': 0.05}
        }))
        config = load_model_config(path)
        assert len(config.items) == 1
        assert config.coefficients.fim == 0.05
        assert config.coefficients.intercept == -3.0
        assert config.version == "unknown"

    def test_config_error_is_value_error(self):
        assert issubclass(ConfigError, ValueError)

    def test_band_offsets_from_yaml(self, tmp_path):
        path = tmp_path / "bands.yaml"
        path.write_text(yaml.safe_dump({
            'items': [['eating', 'Eating', 34.1]],
            'weights': {'eating': [0.9, 0.1, 0.2]},
            'deficit_scales': {},
            'discharge': {'nihss': {'high': -2.0}, 'mrs': {'mrs4': -1.0}}
        }))
        c = load_model_config(path).coefficients
        assert c.nihss_offset(NihssBand.HIGH) == -2.0
        assert c.nihss_offset(NihssBand.MID) == -0.6
        assert c.mrs_offset(MrsBand.MRS_4) == -1.0
        assert c.mrs_offset(MrsBand.MRS_5_6) == -1.2


class TestHashableConfig:
    """Configuration as a cache key"""

    def test_default_config_hashable(self):
        cache = {DEFAULT_CONFIG: "builtin"}
        assert cache[ModelConfig(items=DEFAULT_ITEMS)] == "builtin"

    def test_loaded_config_hashable(self):
        config = load_model_config()
        assert hash(config) == hash(load_model_config())


class TestPresets:
    """Exploration and slope presets"""

    def test_strict_is_zero(self):
        assert ExplorationWeights.from_preset(ExplorationPreset.STRICT) == ExplorationWeights()

    def test_fixed_uses_reference_coefficients(self):
        w = ExplorationWeights.from_preset(ExplorationPreset.FIXED)
        assert (w.neglect, w.aphasia, w.apraxia) == (-0.4, -0.2, -0.2)

    def test_weak(self):
        w = ExplorationWeights.from_preset(ExplorationPreset.WEAK)
        assert (w.neglect, w.aphasia, w.apraxia) == (-0.2, -0.1, -0.1)

    def test_slopes(self):
        assert [s.value for s in SlopePreset] == [0.08, 0.12, 0.16]


class TestThresholds:
    """Dual-threshold validity"""

    @pytest.mark.parametrize("low,high,valid", [
        (0.1, 0.9, True),
        (0.4, 0.6, True),
        (0.5, 0.6, False),
        (0.6, 0.5, False),
    ])
    def test_validity(self, low, high, valid):
        assert DecisionThresholds(low=low, high=high).is_valid() is valid


class TestFormatting:
    """Display helpers"""

    def test_format_number(self):
        assert format_number(1.2345, 2) == "1.23"
        assert format_number("12", 0) == "12"

    @pytest.mark.parametrize("value", [None, "abc", float('nan'), float('inf')])
    def test_placeholder(self, value):
        assert format_number(value) == PLACEHOLDER

    def test_digits_clamped(self):
        assert format_number(1.2, -5) == "1"
        assert format_number(1.2, 50) == "1.200000"

    def test_or_zero(self):
        assert format_number_or_zero(None, 2) == "0.00"
        assert format_number_or_zero("abc", 1) == "0.0"
        assert format_number_or_zero(3.14159, 3) == "3.142"

    def test_percent(self):
        assert format_percent(0.681) == "68%"
        assert format_percent(float('nan')) == PLACEHOLDER

    def test_days(self):
        assert format_days(35.0) == "35 days"
        assert format_days(float('nan')) == PLACEHOLDER


class TestValidateInputs:
    """Input consistency checks"""

    def test_default_state_passes(self):
        results = validate_inputs(PatientState())
        assert all(r.severity == ValidationSeverity.PASS for r in results)

    def test_invalid_interval_fails(self):
        state = PatientState(measurement=MeasurementPair(day_a=14, day_b=7))
        results = {r.name: r for r in validate_inputs(state)}
        assert results["Input: Recovery rate"].severity == ValidationSeverity.FAIL

    def test_short_interval_warns(self):
        state = PatientState(measurement=MeasurementPair(day_a=7, day_b=10))
        results = {r.name: r for r in validate_inputs(state)}
        assert results["Input: A-B interval"].severity == ValidationSeverity.WARNING

    def test_household_mismatch_warns(self):
        state = PatientState().with_covariates(household_size=1, lives_alone=False)
        results = {r.name: r for r in validate_inputs(state)}
        assert results["Input: Household consistency"].severity == ValidationSeverity.WARNING

    def test_unknown_nihss_info(self):
        state = PatientState().with_covariates(nihss=None)
        results = {r.name: r for r in validate_inputs(state)}
        assert results["Input: NIHSS"].severity == ValidationSeverity.INFO


class TestSelfChecks:
    """Known-answer engine checks"""

    def test_no_failures(self):
        results = run_self_checks(seed=1)
        summary = get_summary(results)
        assert summary['failed'] == 0
        assert summary['total'] == 10

    def test_yaml_config_passes(self):
        results = run_self_checks(load_model_config(), seed=1)
        assert not any(r.severity == ValidationSeverity.FAIL for r in results)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
