"""
Measurement History Service
============================
Stores evaluated measurement sessions per patient and reads them back in
chronological order (oldest first), which is the order growth charts and
progress comparisons expect.

A patient is created the first time a measurement is stored for an
external identifier.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clinical_calc.core.config import settings
from clinical_calc.models import AnthropometryRecord, Patient

logger = logging.getLogger(__name__)


async def get_patient(db: AsyncSession, external_id: str) -> Patient | None:
    stmt = select(Patient).where(Patient.external_id == external_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_or_create_patient(
    db: AsyncSession,
    external_id: str,
    sex: str | None = None,
    full_name: str | None = None,
) -> Patient:
    patient = await get_patient(db, external_id)
    if patient:
        return patient

    patient = Patient(external_id=external_id, sex=sex, full_name=full_name)
    db.add(patient)
    await db.flush()
    logger.info(f"Created patient '{external_id}' (id={patient.id})")
    return patient


def _headline_values(result: dict) -> dict:
    """Columns duplicated out of the result JSON for cheap history queries."""
    five = result.get("five_component") or {}
    somatotype = result.get("somatotype") or {}
    summary = result.get("summary") or {}

    has_five = five.get("available", True) and "muscle" in five
    has_somatotype = somatotype.get("available", True) and "endomorphy" in somatotype

    return {
        "body_fat_percent": summary.get("fat_percent"),
        "muscle_mass_kg": five["muscle"]["kg"] if has_five else None,
        "endomorphy": somatotype["endomorphy"] if has_somatotype else None,
        "mesomorphy": somatotype["mesomorphy"] if has_somatotype else None,
        "ectomorphy": somatotype["ectomorphy"] if has_somatotype else None,
    }


async def save_measurement(
    db: AsyncSession,
    patient_external_id: str,
    payload: dict,
    result: dict,
    measured_at: datetime | None = None,
    full_name: str | None = None,
) -> AnthropometryRecord:
    """
    Persist one evaluated measurement session.

    Args:
        db: Async database session
        patient_external_id: Caller's patient identifier
        payload: Raw measurement input (JSON-serialisable)
        result: The `result` part of a successful calculation envelope
        measured_at: When the measurement was taken (defaults to now, UTC)
        full_name: Stored on the patient when it is created

    Returns:
        The stored AnthropometryRecord (refreshed, with its id).
    """
    bio = payload["bio_data"]
    patient = await get_or_create_patient(
        db, patient_external_id, sex=bio.get("sex"), full_name=full_name
    )

    record = AnthropometryRecord(
        patient_id=patient.id,
        measured_at=measured_at or datetime.now(timezone.utc),
        weight_kg=bio["weight"],
        height_cm=bio["height"],
        age_years=bio["age"],
        sex=bio["sex"],
        raw_input=payload,
        result=result,
        **_headline_values(result),
    )
    db.add(record)
    await db.commit()
    await db.refresh(record)

    logger.info(
        f"Stored measurement {record.id} for patient '{patient_external_id}' "
        f"at {record.measured_at}"
    )
    return record


async def list_history(
    db: AsyncSession,
    patient_external_id: str,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int | None = None,
) -> list[AnthropometryRecord]:
    """
    A patient's measurements, oldest first.

    Records measured at the same instant keep their insertion order. An
    unknown patient simply has no history.
    """
    limit = min(limit or settings.HISTORY_PAGE_LIMIT, settings.HISTORY_PAGE_LIMIT)

    stmt = (
        select(AnthropometryRecord)
        .join(Patient)
        .where(Patient.external_id == patient_external_id)
    )
    if start:
        stmt = stmt.where(AnthropometryRecord.measured_at >= start)
    if end:
        stmt = stmt.where(AnthropometryRecord.measured_at <= end)

    stmt = stmt.order_by(
        AnthropometryRecord.measured_at.asc(), AnthropometryRecord.id.asc()
    ).limit(limit)

    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_record(db: AsyncSession, record_id: int) -> AnthropometryRecord | None:
    stmt = select(AnthropometryRecord).where(AnthropometryRecord.id == record_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def delete_record(db: AsyncSession, record_id: int) -> bool:
    """Delete a record. Returns False when it does not exist."""
    record = await get_record(db, record_id)
    if not record:
        return False

    await db.delete(record)
    await db.commit()
    logger.info(f"Deleted measurement {record_id}")
    return True
