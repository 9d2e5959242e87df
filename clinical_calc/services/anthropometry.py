"""
Anthropometry Calculation Pipeline
===================================
Entry point for a full anthropometric evaluation:

  raw input -> (replicate aggregation + TEM) -> validation
            -> {five-component, sanity checks, somatotype, body fat,
                cardiometabolic risk, hydration} -> result envelope

Domain errors never cross this boundary. They come back as values:

  success: {"success": True, "result": {...}}
  failure: {"success": False, "error": str, "code": str, "validation": dict | None}

A sub-result whose inputs were not measured is reported as
{"available": False, "missing": [...]} while the other sub-results still
compute. Anything unexpected is logged with its traceback and reported with
a generic message.
"""

import copy
import logging

from clinical_calc.core.exceptions import (
    ClinicalCalcError,
    InvalidActivityLevelError,
    InvalidFormulaSelectorError,
    MissingInputError,
    ValidationFailureError,
)
from clinical_calc.services.body_fat import calculate_body_fat_smart
from clinical_calc.services.cardiometabolic import calculate_cardiometabolic_risk
from clinical_calc.services.five_component import calculate_five_component
from clinical_calc.services.hydration import calculate_hydration
from clinical_calc.services.measurements import (
    aggregate_measurement_groups,
    calculate_overall_reliability,
)
from clinical_calc.services.sanity_checks import run_sanity_checks
from clinical_calc.services.somatotype import calculate_somatotype
from clinical_calc.services.validation import validate_measurements

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal error while calculating. Please try again."
INTERNAL_ERROR_CODE = "INTERNAL_ERROR"

STATUS_BY_CODE = {
    ValidationFailureError.code: ValidationFailureError.status_code,
    MissingInputError.code: MissingInputError.status_code,
    InvalidActivityLevelError.code: InvalidActivityLevelError.status_code,
    InvalidFormulaSelectorError.code: InvalidFormulaSelectorError.status_code,
    ClinicalCalcError.code: ClinicalCalcError.status_code,
    INTERNAL_ERROR_CODE: 500,
}

MEASUREMENT_GROUPS = ("skinfolds", "girths", "breadths")
REPLICATE_GROUPS = ("bio_data",) + MEASUREMENT_GROUPS


# ── Envelopes ──

def success_envelope(result: dict) -> dict:
    return {"success": True, "result": result}


def error_envelope(exc: ClinicalCalcError) -> dict:
    validation = exc.report if isinstance(exc, ValidationFailureError) else None
    return {
        "success": False,
        "error": str(exc),
        "code": exc.code,
        "validation": validation,
    }


def internal_error_envelope() -> dict:
    return {
        "success": False,
        "error": INTERNAL_ERROR_MESSAGE,
        "code": INTERNAL_ERROR_CODE,
        "validation": None,
    }


def envelope_status_code(envelope: dict) -> int:
    """HTTP status matching an envelope (200 on success)."""
    if envelope["success"]:
        return 200
    return STATUS_BY_CODE.get(envelope["code"], 400)


def run_calculation(func, *args, **kwargs) -> dict:
    """
    Call a calculation and wrap its outcome in an envelope.

    Domain errors become error envelopes; any other exception is logged and
    replaced with the generic internal-error envelope.
    """
    try:
        return success_envelope(func(*args, **kwargs))
    except ClinicalCalcError as e:
        logger.info(f"{func.__name__} rejected input: [{e.code}] {e}")
        return error_envelope(e)
    except Exception:
        logger.exception(f"Unexpected error in {func.__name__}")
        return internal_error_envelope()


# ── Pipeline steps ──

def known_replicates(replicates: dict) -> dict:
    return {group: sites for group, sites in replicates.items() if group in REPLICATE_GROUPS}


def unknown_replicate_groups(replicates: dict) -> list[str]:
    return [group for group in replicates if group not in REPLICATE_GROUPS]


def merge_replicates(payload: dict) -> dict:
    """
    Measurement dict with replicate series reduced to one value per site.

    Reduced replicate values replace any single value sent for the same site.
    Groups other than bio_data, skinfolds, girths and breadths are ignored.
    The payload itself is left untouched.
    """
    data = {
        "bio_data": dict(payload.get("bio_data") or {}),
        **{group: dict(payload.get(group) or {}) for group in MEASUREMENT_GROUPS},
    }
    replicates = payload.get("replicates") or {}
    for group, sites in aggregate_measurement_groups(known_replicates(replicates)).items():
        data.setdefault(group, {}).update(
            {site: value for site, value in sites.items() if value > 0}
        )
    return data


def validate_session(payload: dict) -> tuple[dict, dict]:
    """
    Merge replicates and validate the result.

    Returns:
        (merged measurement dict, validation report). Replicate groups with
        an unknown name are reported as warnings.
    """
    data = merge_replicates(payload)
    report = validate_measurements(data)
    for group in unknown_replicate_groups(payload.get("replicates") or {}):
        report["warnings"].append({
            "field": f"replicates.{group}",
            "message": f"Unknown measurement group '{group}' in replicates; its readings were ignored",
        })
    return data, report


def _unavailable(e: MissingInputError) -> dict:
    return {"available": False, "missing": e.fields, "error": str(e)}


def _refused(e: ValidationFailureError) -> dict:
    return {"available": False, "missing": [], "error": str(e)}


def _five_component_section(data: dict, sex: str) -> tuple[dict, dict | None]:
    """Fractionation and its sanity checks; no sanity report without a fractionation."""
    try:
        five = calculate_five_component(data)
    except MissingInputError as e:
        return _unavailable(e), None
    except ValidationFailureError as e:
        return _refused(e), None
    return five, run_sanity_checks(five, data["bio_data"]["weight"], sex, five["skinfold_sum"])


def _body_fat_section(data: dict, sex: str, maturation_stage: str | None) -> dict:
    age = data["bio_data"]["age"]
    try:
        return {"available": True, **calculate_body_fat_smart(age, sex, data["skinfolds"], maturation_stage)}
    except MissingInputError as e:
        return _unavailable(e)
    except ValidationFailureError as e:
        return _refused(e)


def _cardiometabolic_section(data: dict, sex: str) -> dict | None:
    waist = data["girths"].get("waist") or 0
    if waist <= 0:
        return None
    bio = data["bio_data"]
    return calculate_cardiometabolic_risk(
        waist,
        bio["height"],
        sex,
        bio.get("age") or 0,
        hip_cm=data["girths"].get("hip") or None,
    )


def _hydration_section(data: dict, options: dict | None) -> dict | None:
    if options is None:
        return None
    bio = data["bio_data"]
    return calculate_hydration(
        bio["weight"],
        activity_level=options.get("activity_level") or "sedentary",
        age_years=bio.get("age"),
        pathologies=options.get("pathologies") or [],
        is_athlete=bool(options.get("is_athlete")),
        climate=options.get("climate") or "normal",
    )


def _summary(data: dict, five: dict, somatotype: dict, body_fat: dict, cardio: dict | None, sanity: dict | None) -> dict:
    bio = data["bio_data"]
    weight, height = bio["weight"], bio["height"]
    fractionated = five.get("available", True)

    fat_percent = None
    if fractionated and five.get("fat_percent") is not None:
        fat_percent = five["fat_percent"]
    elif body_fat.get("available"):
        fat_percent = body_fat["percentage"]

    somatotype_label = None
    if somatotype.get("available", True):
        somatotype_label = (
            f"{somatotype['endomorphy']}-{somatotype['mesomorphy']}-{somatotype['ectomorphy']}"
        )

    return {
        "weight_kg": weight,
        "height_cm": height,
        "bmi": round(weight / (height / 100) ** 2, 1),
        "fat_percent": fat_percent,
        "muscle_kg": five["muscle"]["kg"] if fractionated else None,
        "somatotype": somatotype_label,
        "cardiometabolic_risk": cardio["overall_risk"] if cardio else None,
        "confidence_score": sanity["confidence_score"] if sanity else None,
    }


def evaluate(payload: dict) -> dict:
    """
    Full evaluation of one measurement session. Raises domain errors.

    Args:
        payload: Nested measurement dict (bio_data, skinfolds, girths, breadths)
                 plus the optional keys:
                   - replicates: {group: {site: [values]}}
                   - maturation_stage: for the pediatric body fat equation
                   - hydration: {activity_level, pathologies, is_athlete, climate}

    Returns:
        dict with keys: validation, tem, five_component, sanity, somatotype,
        body_fat, cardiometabolic, hydration, summary
    """
    data, report = validate_session(payload)
    replicates = known_replicates(payload.get("replicates") or {})
    tem = calculate_overall_reliability(replicates) if replicates else None

    if not report["is_valid"]:
        raise ValidationFailureError(report)

    sex = data["bio_data"].get("sex")
    if sex not in ("male", "female"):
        raise MissingInputError(["bio_data.sex"], "anthropometric evaluation")

    five, sanity = _five_component_section(data, sex)

    try:
        somatotype = calculate_somatotype(data)
    except MissingInputError as e:
        somatotype = _unavailable(e)

    body_fat = _body_fat_section(data, sex, payload.get("maturation_stage"))
    cardio = _cardiometabolic_section(data, sex)
    hydration = _hydration_section(data, payload.get("hydration"))

    return {
        "validation": report,
        "tem": tem,
        "five_component": five,
        "sanity": sanity,
        "somatotype": somatotype,
        "body_fat": body_fat,
        "cardiometabolic": cardio,
        "hydration": hydration,
        "summary": _summary(data, five, somatotype, body_fat, cardio, sanity),
    }


def calculate_anthropometry(payload: dict) -> dict:
    """
    Evaluate a measurement session and return a JSON-ready envelope.

    The payload is deep-copied first so callers can reuse it; calling twice
    with the same payload gives identical envelopes.
    """
    envelope = run_calculation(evaluate, copy.deepcopy(payload))
    if envelope["success"]:
        logger.info(f"Anthropometry evaluated: {envelope['result']['summary']}")
    return envelope
