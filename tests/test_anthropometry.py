"""
Tests for the full evaluation pipeline and its result envelopes.
"""

import copy

import pytest

from clinical_calc.core.exceptions import InvalidActivityLevelError, MissingInputError
from clinical_calc.services import anthropometry
from clinical_calc.services.anthropometry import (
    INTERNAL_ERROR_MESSAGE,
    calculate_anthropometry,
    envelope_status_code,
    merge_replicates,
    run_calculation,
)


class TestEnvelopes:

    def test_success_shape(self, measurements):
        envelope = calculate_anthropometry(measurements)
        assert envelope["success"] is True
        assert set(envelope["result"]) == {
            "validation", "tem", "five_component", "sanity", "somatotype",
            "body_fat", "cardiometabolic", "hydration", "summary",
        }

    def test_validation_failure_carries_the_report(self, measurements):
        measurements["bio_data"]["weight"] = 500
        envelope = calculate_anthropometry(measurements)
        assert envelope["success"] is False
        assert envelope["code"] == "VALIDATION_FAILURE"
        assert envelope["validation"]["is_valid"] is False
        assert envelope["validation"]["errors"][0]["field"] == "bio_data.weight"
        assert envelope_status_code(envelope) == 422

    def test_missing_weight(self, measurements):
        measurements["bio_data"]["weight"] = 0
        envelope = calculate_anthropometry(measurements)
        assert envelope["code"] == "VALIDATION_FAILURE"
        assert "bio_data.weight" in envelope["validation"]["missing"]

    def test_unknown_sex(self, measurements):
        measurements["bio_data"]["sex"] = "other"
        envelope = calculate_anthropometry(measurements)
        assert envelope["code"] == "MISSING_INPUT"
        assert envelope["validation"] is None

    def test_unexpected_error_is_generic(self, measurements, monkeypatch):
        def _boom(data):
            raise RuntimeError("database password is hunter2")

        monkeypatch.setattr(anthropometry, "calculate_somatotype", _boom)
        envelope = calculate_anthropometry(measurements)
        assert envelope == {
            "success": False,
            "error": INTERNAL_ERROR_MESSAGE,
            "code": "INTERNAL_ERROR",
            "validation": None,
        }
        assert envelope_status_code(envelope) == 500

    def test_run_calculation_wraps_domain_errors(self):
        def _needs_tibia():
            raise MissingInputError(["tibia_length_cm"], "Stevenson")

        envelope = run_calculation(_needs_tibia)
        assert envelope["success"] is False
        assert envelope["code"] == "MISSING_INPUT"
        assert "tibia_length_cm" in envelope["error"]

    def test_selector_errors_are_400(self):
        def _bad_level():
            raise InvalidActivityLevelError("couch")

        assert envelope_status_code(run_calculation(_bad_level)) == 400


class TestEvaluation:

    def test_complete_session(self, measurements):
        result = calculate_anthropometry(measurements)["result"]

        assert result["validation"]["is_valid"] is True
        assert result["tem"] is None
        assert result["sanity"]["is_valid"] is True
        assert result["somatotype"]["classification"] == "Meso-Endomórfico"
        assert result["body_fat"]["method"] == "durnin_siri"
        assert result["body_fat"]["percentage"] == pytest.approx(19.69, abs=0.05)
        assert result["cardiometabolic"]["overall_risk"] == "moderado"
        assert result["hydration"] is None

    def test_summary(self, measurements):
        summary = calculate_anthropometry(measurements)["result"]["summary"]
        assert summary["bmi"] == pytest.approx(23.7, abs=0.05)
        assert summary["somatotype"] == "3.0-5.1-2.3"
        assert summary["cardiometabolic_risk"] == "moderado"
        assert 0 <= summary["confidence_score"] <= 100
        assert summary["muscle_kg"] > 0

    def test_unmeasured_breadth_marks_sections_unavailable(self, measurements):
        """Without the humerus breadth, fractionation and somatotype cannot run."""
        del measurements["breadths"]["humerus"]
        result = calculate_anthropometry(measurements)["result"]

        assert result["five_component"]["available"] is False
        assert "breadths.humerus" in result["five_component"]["missing"]
        assert result["somatotype"]["available"] is False
        assert result["sanity"] is None
        assert result["body_fat"]["available"] is True
        assert result["summary"]["fat_percent"] == result["body_fat"]["percentage"]
        assert result["summary"]["muscle_kg"] is None

    def test_no_waist_skips_cardiometabolic(self, measurements):
        measurements["girths"]["waist"] = 0
        result = calculate_anthropometry(measurements)["result"]
        assert result["cardiometabolic"] is None
        assert result["summary"]["cardiometabolic_risk"] is None

    def test_hydration_options(self, measurements):
        measurements["hydration"] = {"activity_level": "moderada"}
        hydration = calculate_anthropometry(measurements)["result"]["hydration"]
        assert hydration["baseline_ml"] == round(75 * 35)
        assert hydration["activity_adjustment_ml"] == 500

    def test_bad_hydration_activity_fails_the_envelope(self, measurements):
        measurements["hydration"] = {"activity_level": "couch"}
        envelope = calculate_anthropometry(measurements)
        assert envelope["code"] == "INVALID_ACTIVITY_LEVEL"

    def test_young_child_sections_unavailable(self, measurements):
        measurements["bio_data"].update({"age": 6, "weight": 22.0, "height": 118.0, "sitting_height": 64.0})
        result = calculate_anthropometry(measurements)["result"]
        assert result["body_fat"]["available"] is False
        assert result["five_component"]["available"] is False
        assert result["five_component"]["missing"] == []
        assert "age" in result["five_component"]["error"]
        assert result["sanity"] is None
        assert result["summary"]["muscle_kg"] is None
        assert "endomorphy" in result["somatotype"]

    def test_idempotent_and_input_untouched(self, measurements):
        measurements["replicates"] = {"skinfolds": {"triceps": [10.0, 10.4, 10.2]}}
        original = copy.deepcopy(measurements)

        first = calculate_anthropometry(measurements)
        second = calculate_anthropometry(measurements)

        assert first == second
        assert measurements == original


class TestReplicates:

    def test_replicates_override_single_values(self, measurements):
        measurements["replicates"] = {"skinfolds": {"triceps": [11.0, 11.4, 11.2]}}
        data = merge_replicates(measurements)
        assert data["skinfolds"]["triceps"] == pytest.approx(11.2)
        assert measurements["skinfolds"]["triceps"] == 10.0

    def test_tem_reported(self, measurements):
        measurements["replicates"] = {
            "skinfolds": {"triceps": [10.0, 10.2], "subscapular": [12.0, 12.1]},
        }
        tem = calculate_anthropometry(measurements)["result"]["tem"]
        assert len(tem["sites"]) == 2
        assert tem["meets_isak_standard"] is True

    def test_misspelled_group_is_reported(self, measurements):
        """A replicate group with an unknown name is ignored, with a warning."""
        measurements["replicates"] = {"skinfold": {"triceps": [30.0, 30.2]}}
        result = calculate_anthropometry(measurements)["result"]

        warnings = result["validation"]["warnings"]
        assert any(w["field"] == "replicates.skinfold" for w in warnings)
        assert result["tem"] is None
        assert "skinfold" not in merge_replicates(measurements)

    def test_bio_data_replicates_are_kept(self, measurements):
        measurements["replicates"] = {"bio_data": {"weight": [75.2, 75.4]}}
        data = merge_replicates(measurements)
        assert data["bio_data"]["weight"] == pytest.approx(75.3)
