"""
Body Composition Sanity Checks
===============================
Physiological plausibility checks over a five-component result, run before
the result is stored or shown. They catch measurement or data-entry errors
that pass the per-field range checks but give an impossible body.

Each failed check lowers a confidence score that starts at 100.
Limits follow ACSM guidelines and the ISAK standards.
"""

import logging

logger = logging.getLogger(__name__)


FAT_PERCENT_LIMITS = {
    # (essential minimum, severe-obesity ceiling)
    "male": (2.0, 50.0),
    "female": (8.0, 55.0),
}
FAT_PERCENT_IMPOSSIBLE = 1.0

BONE_PERCENT_RANGE = (5.0, 20.0)
MUSCLE_TO_BONE_RANGE = (3.0, 8.0)
MASS_BALANCE_RANGE = (95.0, 105.0)
SKINFOLD_SUM_WARNING_MM = 200
SKINFOLD_SUM_CRITICAL_MM = 300


def run_sanity_checks(result: dict, weight_kg: float, sex: str, skinfold_sum: float = 0.0) -> dict:
    """
    Check a five-component result for physiologically impossible values.

    Args:
        result: Output of `calculate_five_component`
        weight_kg: Body weight used for the calculation
        sex: "male" or "female"
        skinfold_sum: Sum of the measured skinfolds in mm (0 skips the check)

    Returns:
        dict with keys:
            - is_valid: False when any critical error was found
            - errors: list of {code, field, value, expected_range, message, severity}
            - warnings: list of {code, message, recommendation}
            - confidence_score: 0-100
    """
    errors = []
    warnings = []
    score = 100

    # ── Mass balance ──
    total = sum(result[c]["kg"] for c in ("adipose", "muscle", "bone", "residual", "skin"))
    balance = total / weight_kg * 100
    low, high = MASS_BALANCE_RANGE
    if not low <= balance <= high:
        errors.append({
            "code": "MASS_SUM_OOB",
            "field": "total_mass",
            "value": round(balance, 1),
            "expected_range": [low, high],
            "message": f"Component mass sum ({balance:.1f}% of weight) is out of range",
            "severity": "critical",
        })
        score -= 30

    # ── Fat percentage ──
    fat = result["lipid_fat_percent"]
    essential, obese = FAT_PERCENT_LIMITS[sex]
    if fat < essential:
        warnings.append({
            "code": "FAT_PERCENT_VERY_LOW",
            "message": f"Fat ({fat:.1f}%) is below essential fat. Elite athlete or measurement error.",
            "recommendation": "Re-check skinfold measurements before accepting the result.",
        })
        score -= 10
    if fat < FAT_PERCENT_IMPOSSIBLE:
        errors.append({
            "code": "FAT_PERCENT_IMPOSSIBLE",
            "field": "fat_percent",
            "value": fat,
            "expected_range": [essential, obese],
            "message": f"Fat ({fat:.1f}%) is physiologically impossible",
            "severity": "critical",
        })
        score -= 25
    if fat > obese:
        warnings.append({
            "code": "FAT_PERCENT_VERY_HIGH",
            "message": f"Fat ({fat:.1f}%) indicates severe obesity.",
            "recommendation": "Consider segmental bioimpedance or DXA for better precision.",
        })
        score -= 5

    # ── Non-positive masses ──
    for component in ("adipose", "muscle", "bone", "residual", "skin"):
        kg = result[component]["kg"]
        if kg <= 0:
            errors.append({
                "code": "NEGATIVE_MASS",
                "field": component,
                "value": kg,
                "expected_range": [0.1, None],
                "message": f"{component.capitalize()} mass ({kg:.2f} kg) is zero or negative",
                "severity": "critical",
            })
            score -= 15

    # ── Bone mass ──
    bone_percent = result["bone"]["kg"] / weight_kg * 100
    low, high = BONE_PERCENT_RANGE
    if bone_percent < low:
        warnings.append({
            "code": "BONE_MASS_LOW",
            "message": f"Bone mass ({bone_percent:.1f}% of weight) is unusually low.",
            "recommendation": "Verify bone breadths; consider densitometry if clinically indicated.",
        })
        score -= 5
    if bone_percent > high:
        errors.append({
            "code": "BONE_MASS_HIGH",
            "field": "bone",
            "value": round(bone_percent, 1),
            "expected_range": [low, high],
            "message": f"Bone mass ({bone_percent:.1f}%) is excessively high",
            "severity": "high",
        })
        score -= 15

    # ── Muscle to bone ratio ──
    if result["bone"]["kg"] > 0:
        ratio = result["muscle"]["kg"] / result["bone"]["kg"]
        low, high = MUSCLE_TO_BONE_RANGE
        if ratio < low:
            warnings.append({
                "code": "MUSCLE_BONE_RATIO_LOW",
                "message": f"Muscle/bone ratio ({ratio:.1f}:1) is low. Possible sarcopenia.",
                "recommendation": "Review corrected girths; low values in older adults may indicate sarcopenia.",
            })
            score -= 5
        elif ratio > high:
            warnings.append({
                "code": "MUSCLE_BONE_RATIO_HIGH",
                "message": f"Muscle/bone ratio ({ratio:.1f}:1) is very high.",
                "recommendation": "Unless the patient is a strength athlete, review girths and breadths.",
            })
            score -= 3

    # ── Skinfold sum ──
    if skinfold_sum > SKINFOLD_SUM_CRITICAL_MM:
        errors.append({
            "code": "SKINFOLD_SUM_CRITICAL",
            "field": "skinfold_sum",
            "value": skinfold_sum,
            "expected_range": [0, SKINFOLD_SUM_WARNING_MM],
            "message": f"Skinfold sum ({skinfold_sum} mm) is extremely high; anthropometry is unreliable",
            "severity": "high",
        })
        score -= 20
    elif skinfold_sum > SKINFOLD_SUM_WARNING_MM:
        warnings.append({
            "code": "SKINFOLD_SUM_HIGH",
            "message": f"Skinfold sum ({skinfold_sum} mm) is high; tissue compressibility may affect precision.",
            "recommendation": "Consider a two-compartment method (BIA, DXA).",
        })
        score -= 10

    is_valid = not any(e["severity"] == "critical" for e in errors)
    if errors:
        logger.warning(f"Sanity checks: {[e['code'] for e in errors]}")

    return {
        "is_valid": is_valid,
        "errors": errors,
        "warnings": warnings,
        "confidence_score": max(0, score),
    }

