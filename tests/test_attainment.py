"""
Item attainment - Unit Tests
============================
"""

import math
import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from prognosis.config import DEFAULT_CONFIG, HemiparesisSide
from prognosis.models import Covariates, items_to_frame
from prognosis.attainment import (
    deficit_magnitudes, threshold_shift, attainment_probability,
    is_tie, compute_item_attainments
)


class TestDeficitMagnitudes:
    """Side-dependent deficit magnitudes"""

    def test_absent_deficits_are_zero(self):
        m = deficit_magnitudes(Covariates(hemiparesis=HemiparesisSide.RIGHT))
        assert m == {"neglect": 0.0, "aphasia": 0.0, "apraxia": 0.0}

    def test_right_side_amplifies_neglect(self):
        cov = Covariates(hemiparesis=HemiparesisSide.RIGHT, neglect=True, aphasia=True, apraxia=True)
        m = deficit_magnitudes(cov)
        assert m["neglect"] == 0.8
        assert m["aphasia"] == 0.2
        assert m["apraxia"] == 0.2

    def test_left_side_amplifies_aphasia_apraxia(self):
        cov = Covariates(hemiparesis=HemiparesisSide.LEFT, neglect=True, aphasia=True, apraxia=True)
        m = deficit_magnitudes(cov)
        assert m["neglect"] == 0.3
        assert m["aphasia"] == 0.6
        assert m["apraxia"] == 0.7

    def test_unknown_side_uses_lower_magnitudes(self):
        cov = Covariates(neglect=True, aphasia=True, apraxia=True)
        m = deficit_magnitudes(cov)
        assert m == {"neglect": 0.3, "aphasia": 0.2, "apraxia": 0.2}


class TestThresholdShift:
    """Per-item threshold adjustment"""

    def test_weight_index_mapping(self):
        """Weights map to (neglect, aphasia, apraxia) in order"""
        ones = {"neglect": 1.0, "aphasia": 1.0, "apraxia": 1.0}
        assert threshold_shift((2, 3, 4), ones) == pytest.approx(12 * 2 + 8 * 3 + 10 * 4)

    def test_grooming_with_right_neglect(self):
        cov = Covariates(hemiparesis=HemiparesisSide.RIGHT, neglect=True)
        items = {i.key: i for i in compute_item_attainments(60.0, cov)}
        assert items["groom"].adjusted_threshold == pytest.approx(51.0 + 12 * 1.3 * 0.8)


class TestAttainmentProbability:
    """Logistic attainment curve"""

    def test_monotonic_in_score(self):
        """Strictly increasing for fixed threshold and k > 0"""
        probs = [attainment_probability(s, 60.0, 0.12) for s in range(0, 92, 7)]
        assert all(b > a for a, b in zip(probs, probs[1:]))

    def test_half_at_threshold(self):
        p = attainment_probability(100, 100, 0.12)
        assert abs(p - 0.5) < 1e-9
        assert is_tie(p)

    def test_nan_score(self):
        assert math.isnan(attainment_probability(math.nan, 60, 0.12))
        assert not is_tie(math.nan)


class TestComputeItemAttainments:
    """Ranked milestone list"""

    def test_all_items_present(self):
        items = compute_item_attainments(53.8, Covariates())
        assert len(items) == len(DEFAULT_CONFIG.items) == 13

    def test_sorted_ascending(self):
        items = compute_item_attainments(53.8, Covariates())
        probs = [i.probability for i in items]
        assert probs == sorted(probs)
        assert items[0].key == "stairs"
        assert items[-1].key == "eating"

    def test_no_deficits_no_shift(self):
        for item in compute_item_attainments(53.8, Covariates()):
            assert item.adjusted_threshold == item.base_threshold

    def test_tie_flag(self):
        items = {i.key: i for i in compute_item_attainments(62.0, Covariates())}
        assert items["toilet"].is_tie
        assert not items["eating"].is_tie

    def test_slope_sharpens(self):
        gentle = {i.key: i.probability for i in compute_item_attainments(70.0, Covariates(), k=0.08)}
        sharp = {i.key: i.probability for i in compute_item_attainments(70.0, Covariates(), k=0.16)}
        assert sharp["eating"] > gentle["eating"]
        assert sharp["stairs"] < gentle["stairs"]

    def test_nan_score_gives_empty(self):
        assert compute_item_attainments(math.nan, Covariates()) == []

    def test_frame(self):
        df = items_to_frame(compute_item_attainments(53.8, Covariates()))
        assert len(df) == 13
        assert df['probability'].is_monotonic_increasing


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
