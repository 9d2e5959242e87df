"""
Tests for the body fat equations and the age-based selector.

Test matrix:
  1. Siri conversion reference values and clamping
  2. Slaughter (8-18 years) by maturation stage
  3. Durnin-Womersley + Siri for adults, with estimated sites
  4. Selector routing and its failures (missing sites, under 8 years)
"""

import pytest

from clinical_calc.core.exceptions import (
    InvalidFormulaSelectorError,
    MissingInputError,
    ValidationFailureError,
)
from clinical_calc.services.body_fat import (
    BODY_FAT_MAX_PERCENT,
    BODY_FAT_MIN_PERCENT,
    body_density_to_fat_percent,
    calculate_body_fat_slaughter,
    calculate_body_fat_smart,
    calculate_density_durnin,
)


class TestSiri:

    def test_density_1_07(self):
        """1.07 g/cm³ -> ~12.6 %."""
        assert body_density_to_fat_percent(1.07) == pytest.approx(12.66, abs=0.1)

    def test_density_1_05(self):
        """1.05 g/cm³ -> ~21.4 %."""
        assert body_density_to_fat_percent(1.05) == pytest.approx(21.43, abs=0.1)

    def test_result_is_clamped(self):
        """Implausible densities are clamped to the physiological range."""
        assert body_density_to_fat_percent(1.2) == BODY_FAT_MIN_PERCENT
        assert body_density_to_fat_percent(0.9) == BODY_FAT_MAX_PERCENT

    def test_non_positive_density(self):
        with pytest.raises(MissingInputError):
            body_density_to_fat_percent(0)

    def test_higher_density_means_less_fat(self):
        assert body_density_to_fat_percent(1.08) < body_density_to_fat_percent(1.04)


class TestSlaughter:

    def test_pubertal_boy(self):
        """S = 17 mm: 1.21·17 − 0.008·289 − 3.4 = 14.86 %."""
        assert calculate_body_fat_slaughter(10, 7, "puber", "male") == pytest.approx(14.86)

    def test_pre_pubertal_girl(self):
        """S = 20 mm: 1.33·20 − 0.013·400 − 2.5 = 18.9 %."""
        assert calculate_body_fat_slaughter(12, 8, "pre-puber", "female") == pytest.approx(18.9)

    def test_stage_changes_intercept(self):
        pre = calculate_body_fat_slaughter(10, 7, "pre-puber", "male")
        post = calculate_body_fat_slaughter(10, 7, "post-puber", "male")
        assert pre - post == pytest.approx(3.8)

    def test_unknown_stage(self):
        with pytest.raises(InvalidFormulaSelectorError):
            calculate_body_fat_slaughter(10, 7, "adult", "male")


class TestDurnin:

    def test_density_adult_male_30(self):
        """Sum 42 mm, male 30-39 band: 1.1422 − 0.0544·log10(42)."""
        assert calculate_density_durnin(5, 10, 12, 15, 30, "male") == pytest.approx(1.053895, abs=1e-6)

    def test_age_band_boundary(self):
        """Age 29.9 uses the 20-29 band, 30 the 30-39 band."""
        younger = calculate_density_durnin(5, 10, 12, 15, 29.9, "male")
        older = calculate_density_durnin(5, 10, 12, 15, 30, "male")
        assert younger != older


class TestSmartSelector:

    def test_adult_uses_durnin_siri(self, measurements):
        result = calculate_body_fat_smart(30, "male", measurements["skinfolds"])
        assert result["method"] == "durnin_siri"
        assert result["estimated_sites"] == []
        assert result["percentage"] == pytest.approx(19.69, abs=0.05)

    def test_adult_missing_sites_are_estimated(self):
        result = calculate_body_fat_smart(40, "female", {"triceps": 20, "subscapular": 18})
        assert result["estimated_sites"] == ["biceps", "suprailiac"]
        assert BODY_FAT_MIN_PERCENT <= result["percentage"] <= BODY_FAT_MAX_PERCENT

    def test_child_uses_slaughter(self):
        result = calculate_body_fat_smart(12, "male", {"triceps": 10, "subscapular": 7})
        assert result["method"] == "slaughter"
        assert result["percentage"] == pytest.approx(14.86)
        assert result["body_density"] is None

    def test_eighteen_is_still_pediatric(self):
        result = calculate_body_fat_smart(18, "female", {"triceps": 15, "subscapular": 12}, "post-puber")
        assert result["method"] == "slaughter"

    def test_under_eight_is_a_validation_failure(self):
        with pytest.raises(ValidationFailureError) as exc:
            calculate_body_fat_smart(5, "male", {"triceps": 8, "subscapular": 6})
        assert exc.value.report["errors"][0]["field"] == "bio_data.age"

    def test_missing_triceps(self):
        with pytest.raises(MissingInputError) as exc:
            calculate_body_fat_smart(30, "male", {"subscapular": 12})
        assert exc.value.fields == ["triceps"]

    def test_idempotent(self, measurements):
        first = calculate_body_fat_smart(30, "male", measurements["skinfolds"])
        second = calculate_body_fat_smart(30, "male", measurements["skinfolds"])
        assert first == second
