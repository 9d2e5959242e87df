"""
Cardiometabolic Risk Service
=============================
Central-adiposity indices and their combined risk.

  Waist-to-height ratio (WHtR):  < 0.50 minimo | 0.50-0.59 moderado | >= 0.60 alto
  Abdominal obesity:             waist >= 90 cm (male), >= 80 cm (female)
  Waist-hip ratio (WHR):         sex- and age-banded cut-offs (WHO 2008)
                                 < bajo -> bajo | < moderado -> moderado
                                 < alto -> alto | else muy_alto

The overall risk is the most severe of the individual indicators, with
abdominal obesity counting as "alto".
"""

import logging

logger = logging.getLogger(__name__)

RISK_ORDER = ["minimo", "bajo", "moderado", "alto", "muy_alto"]

WHTR_MODERATE = 0.5
WHTR_HIGH = 0.6

ABDOMINAL_OBESITY_WAIST_CM = {"male": 90, "female": 80}

# (upper age bound exclusive, bajo, moderado, alto)
WHR_RISK_TABLE = {
    "male": [
        (30, 0.83, 0.88, 0.94),
        (40, 0.84, 0.91, 0.96),
        (50, 0.88, 0.95, 1.00),
        (60, 0.90, 0.96, 1.02),
        (float("inf"), 0.91, 0.98, 1.03),
    ],
    "female": [
        (30, 0.71, 0.77, 0.82),
        (40, 0.72, 0.78, 0.84),
        (50, 0.73, 0.79, 0.87),
        (60, 0.74, 0.81, 0.88),
        (float("inf"), 0.76, 0.83, 0.90),
    ],
}

WHTR_INTERPRETATIONS = {
    "minimo": "No cardiometabolic risk associated with central adiposity",
    "moderado": "Moderate cardiometabolic risk, monitor",
    "alto": "High cardiometabolic risk, intervention recommended",
}
WHR_INTERPRETATIONS = {
    "bajo": "Healthy fat distribution",
    "moderado": "Moderate cardiovascular risk",
    "alto": "High cardiovascular risk",
    "muy_alto": "Very high cardiovascular risk, urgent intervention recommended",
}


def calculate_waist_to_height_ratio(waist_cm: float, height_cm: float) -> dict:
    ratio = waist_cm / height_cm
    if ratio < WHTR_MODERATE:
        risk = "minimo"
    elif ratio < WHTR_HIGH:
        risk = "moderado"
    else:
        risk = "alto"
    return {
        "ratio": round(ratio, 2),
        "risk": risk,
        "interpretation": WHTR_INTERPRETATIONS[risk],
    }


def has_abdominal_obesity(waist_cm: float, sex: str) -> bool:
    return waist_cm >= ABDOMINAL_OBESITY_WAIST_CM[sex]


def calculate_waist_hip_ratio(waist_cm: float, hip_cm: float, age_years: float, sex: str) -> dict:
    ratio = waist_cm / hip_cm
    _, low, moderate, high = next(
        row for row in WHR_RISK_TABLE[sex] if age_years < row[0]
    )
    if ratio < low:
        risk = "bajo"
    elif ratio < moderate:
        risk = "moderado"
    elif ratio < high:
        risk = "alto"
    else:
        risk = "muy_alto"
    return {
        "ratio": round(ratio, 2),
        "risk": risk,
        "interpretation": WHR_INTERPRETATIONS[risk],
    }


def highest_risk(risks: list[str]) -> str:
    return max(risks, key=RISK_ORDER.index, default="minimo")


def calculate_cardiometabolic_risk(
    waist_cm: float,
    height_cm: float,
    sex: str,
    age_years: float,
    hip_cm: float | None = None,
) -> dict:
    """
    Evaluate WHtR, abdominal obesity and (when hip is measured) WHR together.

    Returns:
        dict with keys: waist_to_height, abdominal_obesity, waist_hip_ratio
        (None without hip girth) and overall_risk.
    """
    waist_to_height = calculate_waist_to_height_ratio(waist_cm, height_cm)
    abdominal_obesity = has_abdominal_obesity(waist_cm, sex)
    waist_hip = calculate_waist_hip_ratio(waist_cm, hip_cm, age_years, sex) if hip_cm else None

    risks = [waist_to_height["risk"]]
    if waist_hip:
        risks.append(waist_hip["risk"])
    if abdominal_obesity:
        risks.append("alto")
    overall = highest_risk(risks)

    logger.info(
        f"Cardiometabolic: WHtR={waist_to_height['ratio']}, "
        f"abdominal_obesity={abdominal_obesity}, overall={overall}"
    )

    return {
        "waist_to_height": waist_to_height,
        "abdominal_obesity": abdominal_obesity,
        "waist_hip_ratio": waist_hip,
        "overall_risk": overall,
    }
