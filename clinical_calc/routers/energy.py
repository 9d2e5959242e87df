"""
Energy Router
==============
Endpoints:
  POST /energy/tdee           - BMR and total daily energy expenditure
  POST /energy/pediatric-eer  - Pediatric estimated energy requirement
"""

import logging

from fastapi import APIRouter

from clinical_calc.core.responses import calculation_response
from clinical_calc.schemas import CalculationEnvelope, PediatricEerRequest, TdeeRequest
from clinical_calc.services.energy import calculate_pediatric_eer, calculate_tdee

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/energy", tags=["Energy"])


@router.post("/tdee", response_model=CalculationEnvelope)
async def tdee_endpoint(request: TdeeRequest):
    """
    Total daily energy expenditure.

    Subjects aged 18 or younger are routed to a pediatric equation (IOM 2005
    unless "fao" or "henry" is requested); `formula` in the result names the
    equation actually used.
    """
    return calculation_response(
        calculate_tdee,
        request.weight_kg,
        request.height_cm,
        request.age_years,
        request.sex,
        request.activity_level,
        formula=request.formula,
        fat_percent=request.fat_percent,
        include_tef=request.include_tef,
    )


@router.post("/pediatric-eer", response_model=CalculationEnvelope)
async def pediatric_eer_endpoint(request: PediatricEerRequest):
    return calculation_response(
        calculate_pediatric_eer,
        request.age_years,
        request.weight_kg,
        request.height_cm,
        request.sex,
        request.activity_level,
        method=request.method.strip().lower(),
    )
