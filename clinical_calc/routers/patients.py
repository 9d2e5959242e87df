"""
Patient History Router
=======================
Endpoints for storing evaluated measurements and reading a patient's
history back in chronological order.

Endpoints:
  POST   /patients/{external_id}/measurements  - Evaluate and store a session
  GET    /patients/{external_id}/measurements  - History, oldest first
  GET    /measurements/{record_id}             - A stored session
  DELETE /measurements/{record_id}             - Remove a stored session
"""

import datetime
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from clinical_calc.core.config import settings
from clinical_calc.core.database import get_db
from clinical_calc.core.responses import envelope_response
from clinical_calc.schemas import (
    CalculationEnvelope,
    MeasurementCreate,
    MeasurementRecordResponse,
    MessageResponse,
)
from clinical_calc.services.anthropometry import calculate_anthropometry
from clinical_calc.services.history import (
    delete_record,
    get_record,
    list_history,
    save_measurement,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Measurement History"])


@router.post("/patients/{external_id}/measurements", response_model=CalculationEnvelope)
async def create_measurement(
    external_id: str,
    measurement: MeasurementCreate,
    db: AsyncSession = Depends(get_db),
):
    """
    Evaluate a session and, when the evaluation succeeds, store it.

    Failed evaluations are returned with their error envelope and nothing
    is stored. The patient is created on first use.
    """
    payload = measurement.model_dump(mode="json", exclude={"measured_at", "full_name"})
    envelope = calculate_anthropometry(payload)
    if not envelope["success"]:
        return envelope_response(envelope)

    record = await save_measurement(
        db,
        external_id,
        payload,
        envelope["result"],
        measured_at=measurement.measured_at,
        full_name=measurement.full_name,
    )
    envelope["record_id"] = record.id
    return envelope_response(envelope)


@router.get("/patients/{external_id}/measurements", response_model=list[MeasurementRecordResponse])
async def list_measurements(
    external_id: str,
    start: Optional[datetime.datetime] = Query(
        default=None, description="Only sessions measured at or after this instant"
    ),
    end: Optional[datetime.datetime] = Query(
        default=None, description="Only sessions measured at or before this instant"
    ),
    limit: int = Query(default=settings.HISTORY_PAGE_LIMIT, ge=1, le=settings.HISTORY_PAGE_LIMIT),
    db: AsyncSession = Depends(get_db),
):
    """
    A patient's measurement history ordered by measurement time, oldest first.
    An unknown patient has an empty history.
    """
    records = await list_history(db, external_id, start=start, end=end, limit=limit)
    return [MeasurementRecordResponse.model_validate(r) for r in records]


@router.get("/measurements/{record_id}", response_model=MeasurementRecordResponse)
async def get_measurement(
    record_id: int,
    db: AsyncSession = Depends(get_db),
):
    record = await get_record(db, record_id)
    if not record:
        raise HTTPException(
            status_code=404,
            detail=f"Measurement with ID {record_id} not found."
        )
    return MeasurementRecordResponse.model_validate(record)


@router.delete("/measurements/{record_id}", response_model=MessageResponse)
async def delete_measurement(
    record_id: int,
    db: AsyncSession = Depends(get_db),
):
    if not await delete_record(db, record_id):
        raise HTTPException(
            status_code=404,
            detail=f"Measurement with ID {record_id} not found."
        )
    return MessageResponse(
        message="Measurement deleted successfully.",
        detail=f"Deleted measurement ID {record_id}.",
    )
