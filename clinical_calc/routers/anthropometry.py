"""
Anthropometry Router
=====================
Endpoints for validating and evaluating a measurement session without
storing it.

Endpoints:
  POST /anthropometry/validate   - Range and consistency checks only
  POST /anthropometry/calculate  - Full evaluation (five-component, somatotype, ...)
"""

import logging

from fastapi import APIRouter

from clinical_calc.core.responses import envelope_response
from clinical_calc.schemas import CalculationEnvelope, MeasurementInput, ValidationResult
from clinical_calc.services.anthropometry import calculate_anthropometry, validate_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/anthropometry", tags=["Anthropometry"])


@router.post("/validate", response_model=ValidationResult)
async def validate_endpoint(measurements: MeasurementInput):
    """
    Check every measurement against its ISAK range and the anatomical
    consistency rules. Always answers 200; `is_valid` tells the outcome.
    """
    _, report = validate_session(measurements.model_dump())
    return report


@router.post("/calculate", response_model=CalculationEnvelope)
async def calculate_endpoint(measurements: MeasurementInput):
    """
    Evaluate a measurement session.

    HOW IT WORKS:
      1. Replicate readings (if any) are reduced per site and their TEM computed
      2. Measurements are validated; any error stops here with a 422 envelope
      3. Five-component fractionation, sanity checks, somatotype, body fat,
         cardiometabolic risk (when waist is present) and hydration (when
         requested) are computed independently
      4. Sub-results whose measurements were not taken come back as
         {"available": false, "missing": [...]}
    """
    return envelope_response(calculate_anthropometry(measurements.model_dump()))
