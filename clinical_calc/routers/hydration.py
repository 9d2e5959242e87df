"""
Hydration Router
=================
Endpoints:
  POST /hydration/daily       - Daily water recommendation
  POST /hydration/sweat-rate  - Exercise sweat rate and replacement volume
  GET  /hydration/quick       - Litres and glasses for display
"""

import logging

from fastapi import APIRouter, Query

from clinical_calc.core.responses import calculation_response
from clinical_calc.schemas import CalculationEnvelope, HydrationRequest, SweatRateRequest
from clinical_calc.services.hydration import calculate_hydration, calculate_sweat_rate, quick_hydration

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/hydration", tags=["Hydration"])


@router.post("/daily", response_model=CalculationEnvelope)
async def daily_hydration_endpoint(request: HydrationRequest):
    """
    Baseline by age (Holliday-Segar under 19, 30 ml/kg from 60, else 35-40 ml/kg)
    plus activity, climate and pathology adjustments, clamped to a safe band.
    """
    return calculation_response(
        calculate_hydration,
        request.weight_kg,
        activity_level=request.activity_level,
        age_years=request.age_years,
        pathologies=request.pathologies,
        is_athlete=request.is_athlete,
        climate=request.climate,
    )


@router.post("/sweat-rate", response_model=CalculationEnvelope)
async def sweat_rate_endpoint(request: SweatRateRequest):
    return calculation_response(
        calculate_sweat_rate,
        request.weight_pre_kg,
        request.weight_post_kg,
        request.intake_ml,
        request.exercise_duration_min,
        urine_ml=request.urine_ml,
    )


@router.get("/quick", response_model=CalculationEnvelope)
async def quick_hydration_endpoint(
    weight_kg: float = Query(..., gt=0, description="Body weight (kg)"),
    activity_level: str = Query(default="moderada", description="Activity label (es/en)"),
):
    return calculation_response(quick_hydration, weight_kg, activity_level)
