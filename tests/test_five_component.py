"""
Tests for the five-component (Kerr) fractionation.
"""

import pytest

from clinical_calc.core.exceptions import MissingInputError, ValidationFailureError
from clinical_calc.services.five_component import (
    calculate_cormic_index,
    calculate_five_component,
    kerr_skinfolds,
    missing_fractionation_inputs,
    phantom_z_score,
)

COMPONENTS = ("skin", "adipose", "muscle", "bone", "residual")


class TestFractionation:

    def test_components_add_up_to_body_weight(self, measurements):
        """After proportional scaling the five masses equal body weight (up to rounding)."""
        result = calculate_five_component(measurements)
        total = sum(result[c]["kg"] for c in COMPONENTS)
        assert total == pytest.approx(75.0, abs=0.3)
        assert sum(result[c]["percent"] for c in COMPONENTS) == pytest.approx(100.0, abs=0.5)

    def test_all_masses_positive(self, measurements):
        result = calculate_five_component(measurements)
        assert all(result[c]["kg"] > 0 for c in COMPONENTS)

    def test_lipid_fat_is_eighty_percent_of_adipose(self, measurements):
        result = calculate_five_component(measurements)
        assert result["lipid_fat_percent"] == pytest.approx(result["adipose_percent"] * 0.8, abs=0.06)

    def test_body_density_matches_lipid_fat(self, measurements):
        """Siri applied to the reported density gives back the lipid fat %."""
        result = calculate_five_component(measurements)
        assert result["fat_percent"] == pytest.approx(result["lipid_fat_percent"], abs=0.1)

    def test_residual_from_trunk_measures(self, measurements):
        result = calculate_five_component(measurements)
        assert result["residual_is_estimated"] is False

    def test_residual_estimated_without_trunk_measures(self, measurements):
        measurements["girths"]["head"] = 0
        measurements["breadths"]["biacromial"] = 0
        measurements["breadths"]["biiliocristal"] = 0
        result = calculate_five_component(measurements)
        assert result["residual_is_estimated"] is True

    def test_skinfold_sum_and_cormic(self, measurements):
        result = calculate_five_component(measurements)
        assert result["skinfold_sum"] == 76.0
        assert result["cormic"]["index"] == pytest.approx(51.69, abs=0.01)
        assert result["obesity_warning"] is None

    def test_large_deviation_is_flagged(self, measurements):
        """Doubling the weight leaves the raw tissue sum far from body weight."""
        measurements["bio_data"]["weight"] = 150.0
        result = calculate_five_component(measurements)
        assert "KERR_DEVIATION_HIGH" in [f["code"] for f in result["flags"]]

    def test_obesity_warning(self, measurements):
        measurements["skinfolds"].update(
            {"triceps": 30, "subscapular": 35, "supraspinale": 30, "abdominal": 45, "thigh": 30}
        )
        result = calculate_five_component(measurements)
        assert result["skinfold_sum"] > 150
        assert result["obesity_warning"]["alternative_formulas"]

    def test_idempotent(self, measurements):
        assert calculate_five_component(measurements) == calculate_five_component(measurements)


class TestMissingInputs:

    def test_missing_breadths(self, measurements):
        measurements["breadths"] = {}
        with pytest.raises(MissingInputError) as exc:
            calculate_five_component(measurements)
        assert exc.value.fields == ["breadths.humerus", "breadths.femur"]

    def test_too_few_skinfolds(self):
        data = {
            "bio_data": {"weight": 70, "height": 170},
            "skinfolds": {"triceps": 10, "subscapular": 12},
            "girths": {"arm_relaxed": 30, "calf": 36},
            "breadths": {"humerus": 6.8, "femur": 9.5},
        }
        missing = missing_fractionation_inputs(data)
        assert "skinfolds.supraspinale" in missing
        assert "skinfolds.abdominal" in missing

    def test_complete_session_has_nothing_missing(self, measurements):
        assert missing_fractionation_inputs(measurements) == []


class TestAgeLimit:

    def test_six_year_old_is_refused(self, measurements):
        """The adult Phantom does not fit a 22 kg, 118 cm child."""
        measurements["bio_data"].update({"age": 6, "weight": 22.0, "height": 118.0})
        with pytest.raises(ValidationFailureError) as exc:
            calculate_five_component(measurements)
        assert exc.value.report["errors"][0]["field"] == "bio_data.age"

    @pytest.mark.parametrize("age, allowed", [(13.9, False), (14, True), (30, True)])
    def test_threshold_is_fourteen(self, measurements, age, allowed):
        measurements["bio_data"]["age"] = age
        if allowed:
            assert calculate_five_component(measurements)["muscle"]["kg"] > 0
        else:
            with pytest.raises(ValidationFailureError):
                calculate_five_component(measurements)


class TestHelpers:

    def test_iliac_crest_stands_in_for_supraspinale(self):
        assert kerr_skinfolds({"iliac_crest": 15})["supraspinale"] == 15

    def test_phantom_z_score_unmeasured(self):
        assert phantom_z_score(0, 170, 15.4, 4.47) is None

    def test_phantom_z_score_at_phantom_height(self):
        """At 170.18 cm a value equal to P has z = 0."""
        assert phantom_z_score(15.4, 170.18, 15.4, 4.47) == pytest.approx(0.0)

    @pytest.mark.parametrize("sitting, expected", [
        (85, "Braquicórmico"),
        (90, "Metriocórmico"),
        (95, "Macrocórmico"),
    ])
    def test_cormic_interpretation(self, sitting, expected):
        assert calculate_cormic_index(sitting, 175)["interpretation"].startswith(expected)
