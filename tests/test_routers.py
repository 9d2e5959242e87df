"""
HTTP tests for the API routers: envelope bodies and their status codes.
"""

import pytest


# ── Anthropometry ──────────────────────────────────────────────

@pytest.mark.asyncio
async def test_calculate_success(client, measurements):
    response = await client.post("/anthropometry/calculate", json=measurements)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["result"]["summary"]["somatotype"] == "3.0-5.1-2.3"


@pytest.mark.asyncio
async def test_calculate_accepts_spanish_sex(client, measurements):
    measurements["bio_data"]["sex"] = "Masculino"
    response = await client.post("/anthropometry/calculate", json=measurements)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_calculate_validation_failure(client, measurements):
    measurements["skinfolds"]["triceps"] = 80
    response = await client.post("/anthropometry/calculate", json=measurements)
    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "VALIDATION_FAILURE"
    assert body["validation"]["errors"][0]["field"] == "skinfolds.triceps"


@pytest.mark.asyncio
async def test_unknown_sex_label_is_rejected(client, measurements):
    measurements["bio_data"]["sex"] = "x"
    response = await client.post("/anthropometry/calculate", json=measurements)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_validate_endpoint(client, measurements):
    measurements["bio_data"]["height"] = 0
    response = await client.post("/anthropometry/validate", json=measurements)
    assert response.status_code == 200
    body = response.json()
    assert body["is_valid"] is False
    assert body["missing"] == ["bio_data.height"]


@pytest.mark.asyncio
async def test_validate_endpoint_warns_on_unknown_replicate_group(client, measurements):
    measurements["replicates"] = {"girth": {"waist": [82.0, 82.4]}}
    response = await client.post("/anthropometry/validate", json=measurements)
    body = response.json()
    assert body["is_valid"] is True
    assert [w["field"] for w in body["warnings"]] == ["replicates.girth"]


# ── History ────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_store_and_read_history(client, measurements):
    later = {**measurements, "measured_at": "2024-04-01T10:00:00"}
    earlier = {**measurements, "measured_at": "2024-03-01T10:00:00", "full_name": "Ana Pérez"}

    first = await client.post("/patients/A-1/measurements", json=later)
    second = await client.post("/patients/A-1/measurements", json=earlier)
    assert first.status_code == 200
    assert second.json()["record_id"] > first.json()["record_id"]

    response = await client.get("/patients/A-1/measurements")
    assert response.status_code == 200
    dates = [r["measured_at"][:10] for r in response.json()]
    assert dates == ["2024-03-01", "2024-04-01"]


@pytest.mark.asyncio
async def test_failed_evaluation_is_not_stored(client, measurements):
    measurements["bio_data"]["weight"] = 500
    response = await client.post("/patients/A-2/measurements", json=measurements)
    assert response.status_code == 422

    history = await client.get("/patients/A-2/measurements")
    assert history.json() == []


@pytest.mark.asyncio
async def test_get_and_delete_measurement(client, measurements):
    created = await client.post("/patients/A-3/measurements", json=measurements)
    record_id = created.json()["record_id"]

    response = await client.get(f"/measurements/{record_id}")
    assert response.status_code == 200
    assert response.json()["sex"] == "male"

    deleted = await client.delete(f"/measurements/{record_id}")
    assert deleted.status_code == 200

    assert (await client.get(f"/measurements/{record_id}")).status_code == 404
    assert (await client.delete(f"/measurements/{record_id}")).status_code == 404


# ── Clinical, energy and hydration ─────────────────────────────

@pytest.mark.asyncio
async def test_atalah(client):
    response = await client.post("/clinical/pregnancy/atalah", json={"bmi": 25, "gestational_weeks": 20})
    assert response.status_code == 200
    assert response.json()["result"]["classification"] == "Normal"


@pytest.mark.asyncio
async def test_cerebral_palsy_height_requires_a_segment(client):
    response = await client.post("/clinical/cerebral-palsy/height", json={})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_cerebral_palsy_invalid_level(client):
    response = await client.post(
        "/clinical/cerebral-palsy/risk",
        json={"gmfcs_level": "VII", "weight_for_age_percentile": 10},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_FORMULA_SELECTOR"


@pytest.mark.asyncio
async def test_cardiometabolic(client):
    response = await client.post(
        "/clinical/cardiometabolic",
        json={"waist_cm": 95, "height_cm": 170, "sex": "hombre", "age_years": 40, "hip_cm": 100},
    )
    assert response.json()["result"]["overall_risk"] == "alto"


@pytest.mark.asyncio
async def test_body_fat_missing_skinfold(client):
    response = await client.post(
        "/clinical/body-fat", json={"age_years": 30, "sex": "female", "triceps": 15},
    )
    assert response.status_code == 422
    assert response.json()["code"] == "MISSING_INPUT"


@pytest.mark.asyncio
async def test_tdee_pediatric_override(client):
    response = await client.post(
        "/energy/tdee",
        json={"weight_kg": 35, "height_cm": 140, "age_years": 10, "sex": "male",
              "activity_level": "moderada", "formula": "mifflin"},
    )
    result = response.json()["result"]
    assert result["tdee"] == 2260
    assert result["formula"] == "IOM 2005"


@pytest.mark.asyncio
async def test_pediatric_eer_toddler_routed_to_fao(client):
    response = await client.post(
        "/energy/pediatric-eer",
        json={"age_years": 2, "weight_kg": 12, "height_cm": 85, "sex": "female",
              "activity_level": "light", "method": "iom"},
    )
    assert response.status_code == 200
    assert response.json()["result"]["formula"] == "FAO/OMS (Schofield)"


@pytest.mark.asyncio
async def test_tdee_unknown_activity(client):
    response = await client.post(
        "/energy/tdee",
        json={"weight_kg": 70, "height_cm": 170, "age_years": 30, "sex": "female",
              "activity_level": "couch"},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_ACTIVITY_LEVEL"


@pytest.mark.asyncio
async def test_hydration_daily(client):
    response = await client.post(
        "/hydration/daily", json={"weight_kg": 70, "activity_level": "moderada", "age_years": 30},
    )
    assert response.json()["result"]["total_daily_ml"] == 2950


@pytest.mark.asyncio
async def test_hydration_quick(client):
    response = await client.get("/hydration/quick", params={"weight_kg": 60, "activity_level": "moderada"})
    assert response.json()["result"] == {"liters_per_day": 2.6, "glasses_per_day": 11}


@pytest.mark.asyncio
async def test_sweat_rate(client):
    response = await client.post(
        "/hydration/sweat-rate",
        json={"weight_pre_kg": 70, "weight_post_kg": 69, "intake_ml": 500, "exercise_duration_min": 60},
    )
    assert response.json()["result"]["rate_l_per_hour"] == pytest.approx(1.5)


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
