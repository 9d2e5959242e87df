"""
Clinical Formulas Router
=========================
Stand-alone clinical calculators for special populations.

Endpoints:
  POST /clinical/pregnancy/atalah          - Gestational BMI classification
  POST /clinical/pregnancy/iom-goals       - IOM weight-gain goals
  POST /clinical/pregnancy/evaluate        - Weight gain vs. IOM band at this week
  POST /clinical/cerebral-palsy/height     - Stevenson segmental height
  POST /clinical/cerebral-palsy/risk       - GMFCS nutritional risk
  POST /clinical/cardiometabolic           - WHtR, WHR and abdominal obesity
  POST /clinical/body-fat                  - Age-appropriate skinfold body fat

All endpoints answer with a calculation envelope.
"""

import logging

from fastapi import APIRouter

from clinical_calc.core.responses import calculation_response
from clinical_calc.schemas import (
    AtalahRequest,
    BodyFatRequest,
    CalculationEnvelope,
    CardiometabolicRequest,
    CerebralPalsyHeightRequest,
    CerebralPalsyRiskRequest,
    IomGoalsRequest,
    PregnancyEvaluationRequest,
)
from clinical_calc.services.body_fat import calculate_body_fat_smart
from clinical_calc.services.cardiometabolic import calculate_cardiometabolic_risk
from clinical_calc.services.cerebral_palsy import (
    assess_cerebral_palsy,
    estimate_height_from_upper_arm,
    estimate_height_stevenson,
)
from clinical_calc.services.pregnancy import (
    atalah_thresholds,
    classify_atalah,
    evaluate_pregnancy_weight_gain,
    get_iom_weight_gain_goals,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clinical", tags=["Clinical Formulas"])


# ----- Pregnancy -----

def _atalah(bmi: float, weeks: float) -> dict:
    low, normal, overweight = atalah_thresholds(weeks)
    return {
        "classification": classify_atalah(bmi, weeks),
        "thresholds": {"low": low, "normal": normal, "overweight": overweight},
    }


@router.post("/pregnancy/atalah", response_model=CalculationEnvelope)
async def atalah_endpoint(request: AtalahRequest):
    """Classify a pregnant woman's BMI on the Atalah curve for her gestational week."""
    return calculation_response(_atalah, request.bmi, request.gestational_weeks)


@router.post("/pregnancy/iom-goals", response_model=CalculationEnvelope)
async def iom_goals_endpoint(request: IomGoalsRequest):
    return calculation_response(
        get_iom_weight_gain_goals, request.pre_pregnancy_bmi, request.is_twin
    )


@router.post("/pregnancy/evaluate", response_model=CalculationEnvelope)
async def pregnancy_evaluation_endpoint(request: PregnancyEvaluationRequest):
    """Compare the weight gained so far with the IOM band expected at this week."""
    return calculation_response(
        evaluate_pregnancy_weight_gain,
        request.current_weight,
        request.pre_pregnancy_weight,
        request.gestational_weeks,
        request.pre_pregnancy_bmi,
        request.is_twin,
    )


# ----- Cerebral palsy -----

def _segmental_height(tibia_length_cm: float | None, upper_arm_length_cm: float | None) -> dict:
    if tibia_length_cm:
        return {"height_cm": estimate_height_stevenson(tibia_length_cm), "method": "stevenson_tibia"}
    return {
        "height_cm": estimate_height_from_upper_arm(upper_arm_length_cm),
        "method": "stevenson_upper_arm",
    }


@router.post("/cerebral-palsy/height", response_model=CalculationEnvelope)
async def cerebral_palsy_height_endpoint(request: CerebralPalsyHeightRequest):
    """
    Estimate standing height from a segment length (Stevenson, 1995).
    Tibia length is preferred when both are given.
    """
    return calculation_response(
        _segmental_height, request.tibia_length_cm, request.upper_arm_length_cm
    )


@router.post("/cerebral-palsy/risk", response_model=CalculationEnvelope)
async def cerebral_palsy_risk_endpoint(request: CerebralPalsyRiskRequest):
    return calculation_response(
        assess_cerebral_palsy,
        request.gmfcs_level,
        request.weight_for_age_percentile,
        tibia_length_cm=request.tibia_length_cm,
        upper_arm_length_cm=request.upper_arm_length_cm,
    )


# ----- Adiposity -----

@router.post("/cardiometabolic", response_model=CalculationEnvelope)
async def cardiometabolic_endpoint(request: CardiometabolicRequest):
    """Waist-to-height ratio, abdominal obesity and (with hip girth) waist-hip ratio."""
    return calculation_response(
        calculate_cardiometabolic_risk,
        request.waist_cm,
        request.height_cm,
        request.sex,
        request.age_years,
        hip_cm=request.hip_cm,
    )


@router.post("/body-fat", response_model=CalculationEnvelope)
async def body_fat_endpoint(request: BodyFatRequest):
    """
    Body fat % with the equation validated for the subject's age:
    Slaughter for 8-18 years, Durnin-Womersley + Siri for adults.
    """
    skinfolds = request.model_dump(
        include={"triceps", "subscapular", "biceps", "suprailiac"}
    )
    return calculation_response(
        calculate_body_fat_smart,
        request.age_years,
        request.sex,
        skinfolds,
        request.maturation_stage,
    )
