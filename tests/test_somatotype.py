"""
Tests for the Heath-Carter somatotype.
"""

import pytest

from clinical_calc.core.exceptions import MissingInputError
from clinical_calc.services.somatotype import (
    calculate_ectomorphy,
    calculate_endomorphy,
    calculate_somatotype,
    classify_somatotype,
    component_level,
    height_weight_ratio,
    round_half_up,
    somatochart_coordinates,
)


class TestSomatotype:

    def test_reference_adult(self, measurements):
        """Adult male reference session rates 3.0-5.1-2.3."""
        result = calculate_somatotype(measurements)
        assert result["endomorphy"] == 3.0
        assert result["mesomorphy"] == 5.1
        assert result["ectomorphy"] == 2.3
        assert result["classification"] == "Meso-Endomórfico"

    def test_somatochart_position(self, measurements):
        result = calculate_somatotype(measurements)
        assert result["somato_x"] == pytest.approx(-0.7)
        assert result["somato_y"] == pytest.approx(4.9)

    def test_missing_measurement(self, measurements):
        """Every one of the ten inputs is required."""
        measurements["skinfolds"]["supraspinale"] = 0
        measurements["girths"]["arm_flexed"] = None
        with pytest.raises(MissingInputError) as exc:
            calculate_somatotype(measurements)
        assert exc.value.fields == ["skinfolds.supraspinale", "girths.arm_flexed"]

    def test_idempotent(self, measurements):
        assert calculate_somatotype(measurements) == calculate_somatotype(measurements)

    def test_component_levels(self, measurements):
        levels = calculate_somatotype(measurements)["levels"]
        assert levels == {"endomorphy": "Moderado", "mesomorphy": "Moderado", "ectomorphy": "Bajo"}


class TestComponents:

    @pytest.mark.parametrize("value, expected", [(2.25, 2.3), (0.25, 0.3), (3.04, 3.0), (5.149, 5.1)])
    def test_exact_halves_round_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_hwr_on_upper_boundary_uses_upper_equation(self):
        """HWR exactly 40.75 (1 kg makes HWR equal height): 0.732 × 40.75 − 28.58."""
        assert height_weight_ratio(40.75, 1.0) == 40.75
        assert calculate_ectomorphy(40.75, 1.0) == pytest.approx(0.732 * 40.75 - 28.58)

    def test_hwr_on_lower_boundary_is_floor(self):
        """HWR exactly 38.25 falls in the 0.1 band."""
        assert height_weight_ratio(38.25, 1.0) == 38.25
        assert calculate_ectomorphy(38.25, 1.0) == 0.1

    def test_hwr_just_above_lower_boundary(self):
        assert calculate_ectomorphy(38.5, 1.0) == pytest.approx(0.463 * 38.5 - 17.63)

    def test_endomorphy_floor(self):
        """Very lean subjects bottom out at 0.1."""
        assert calculate_endomorphy(1, 1, 1, 180) == 0.1

    def test_ectomorphy_floor_for_low_hwr(self):
        """HWR ≤ 38.25 (stocky build) rates 0.1."""
        assert calculate_ectomorphy(170, 100) == 0.1

    def test_ectomorphy_middle_band(self):
        """HWR between 38.25 and 40.75 uses 0.463·HWR − 17.63."""
        hwr = 175 / 80 ** (1 / 3)
        assert 38.25 < hwr < 40.75
        assert calculate_ectomorphy(175, 80) == pytest.approx(0.463 * hwr - 17.63)

    def test_somatochart_coordinates(self):
        assert somatochart_coordinates(3.0, 5.0, 2.0) == (-1.0, 5.0)


class TestClassification:

    @pytest.mark.parametrize("endo, meso, ecto, expected", [
        (3.0, 3.5, 3.0, "Central"),
        (6.0, 3.0, 3.2, "Endomorfo Balanceado"),
        (6.0, 4.0, 2.0, "Endo-Mesomórfico"),
        (2.0, 6.0, 2.2, "Mesomorfo Balanceado"),
        (2.0, 6.0, 4.0, "Meso-Ectomórfico"),
        (1.5, 3.0, 5.0, "Ecto-Mesomórfico"),
        (5.0, 5.2, 1.5, "Mesomorfo-Endomorfo"),
    ])
    def test_categories(self, endo, meso, ecto, expected):
        assert classify_somatotype(endo, meso, ecto) == expected

    @pytest.mark.parametrize("value, level", [(2.0, "Bajo"), (4.0, "Moderado"), (6.0, "Alto"), (8.0, "Muy Alto")])
    def test_component_level(self, value, level):
        assert component_level(value) == level
