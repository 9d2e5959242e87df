"""
Tests for per-patient measurement history persistence.
"""

from datetime import datetime

import pytest

from clinical_calc.services.anthropometry import calculate_anthropometry
from clinical_calc.services.history import (
    delete_record,
    get_patient,
    get_record,
    list_history,
    save_measurement,
)


async def _store(db, patient_id, payload, measured_at):
    envelope = calculate_anthropometry(payload)
    assert envelope["success"] is True
    return await save_measurement(db, patient_id, payload, envelope["result"], measured_at=measured_at)


@pytest.mark.asyncio
async def test_save_creates_patient_and_headline_values(db, measurements):
    record = await _store(db, "P-001", measurements, datetime(2024, 3, 1, 9, 0))

    patient = await get_patient(db, "P-001")
    assert patient is not None
    assert patient.sex == "male"
    assert record.patient_id == patient.id
    assert record.weight_kg == 75.0
    assert record.endomorphy == 3.0
    assert record.mesomorphy == 5.1
    assert record.muscle_mass_kg is not None
    assert record.raw_input["bio_data"]["height"] == 178.0


@pytest.mark.asyncio
async def test_history_is_chronological(db, measurements):
    """Sessions inserted out of order come back oldest first."""
    for day, weight in ((15, 74.0), (1, 75.0), (30, 73.5)):
        payload = {**measurements, "bio_data": {**measurements["bio_data"], "weight": weight}}
        await _store(db, "P-002", payload, datetime(2024, 5, day))

    history = await list_history(db, "P-002")
    assert [r.weight_kg for r in history] == [75.0, 74.0, 73.5]
    assert [r.measured_at.day for r in history] == [1, 15, 30]


@pytest.mark.asyncio
async def test_history_date_window_and_limit(db, measurements):
    for day in (1, 10, 20):
        await _store(db, "P-003", measurements, datetime(2024, 6, day))

    window = await list_history(db, "P-003", start=datetime(2024, 6, 5), end=datetime(2024, 6, 25))
    assert [r.measured_at.day for r in window] == [10, 20]

    first = await list_history(db, "P-003", limit=1)
    assert [r.measured_at.day for r in first] == [1]


@pytest.mark.asyncio
async def test_histories_are_per_patient(db, measurements):
    await _store(db, "P-004", measurements, datetime(2024, 1, 1))
    await _store(db, "P-005", measurements, datetime(2024, 1, 2))

    assert len(await list_history(db, "P-004")) == 1
    assert len(await list_history(db, "P-005")) == 1


@pytest.mark.asyncio
async def test_unknown_patient_has_empty_history(db):
    assert await list_history(db, "nobody") == []


@pytest.mark.asyncio
async def test_delete_record(db, measurements):
    record = await _store(db, "P-006", measurements, datetime(2024, 2, 1))

    assert await delete_record(db, record.id) is True
    assert await get_record(db, record.id) is None
    assert await delete_record(db, record.id) is False
