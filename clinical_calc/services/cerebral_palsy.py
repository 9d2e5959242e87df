"""
Cerebral Palsy Nutrition Service
==================================
Height estimation from segment lengths and nutritional-risk screening for
patients who cannot be measured standing.

STEVENSON (1995) segmental equations:
  Height (cm) = 3.26 × knee-to-heel tibia length + 30.8
  Height (cm) = 4.35 × upper-arm length + 21.8

GMFCS nutritional risk (Brooks et al., 2011 growth charts):
  Levels I-II  : at risk when weight-for-age percentile < 5
  Levels III-V : at risk when weight-for-age percentile < 20
"""

import logging

from clinical_calc.core.exceptions import InvalidFormulaSelectorError, MissingInputError

logger = logging.getLogger(__name__)

GMFCS_LEVELS = ("I", "II", "III", "IV", "V")
AMBULATORY_LEVELS = ("I", "II")
AMBULATORY_RISK_PERCENTILE = 5
NON_AMBULATORY_RISK_PERCENTILE = 20

GMFCS_DESCRIPTIONS = {
    "I": "Walks without limitations",
    "II": "Walks with limitations",
    "III": "Walks using a hand-held mobility device",
    "IV": "Self-mobility with limitations; may use powered mobility",
    "V": "Transported in a manual wheelchair",
}


def estimate_height_stevenson(tibia_length_cm: float) -> float:
    """Standing height (cm) from knee-to-heel tibia length (Stevenson, 1995)."""
    if tibia_length_cm <= 0:
        raise MissingInputError(["tibia_length"], "Stevenson height")
    return round(3.26 * tibia_length_cm + 30.8, 1)


def estimate_height_from_upper_arm(upper_arm_length_cm: float) -> float:
    """Standing height (cm) from upper-arm length (Stevenson, 1995)."""
    if upper_arm_length_cm <= 0:
        raise MissingInputError(["upper_arm_length"], "Stevenson height")
    return round(4.35 * upper_arm_length_cm + 21.8, 1)


def _check_level(level: str) -> str:
    normalized = level.strip().upper()
    if normalized not in GMFCS_LEVELS:
        raise InvalidFormulaSelectorError(level, list(GMFCS_LEVELS))
    return normalized


def is_nutritional_risk_cp(gmfcs_level: str, weight_for_age_percentile: float) -> bool:
    """
    Nutritional-risk flag for a child with cerebral palsy.

    The cut-off depends on mobility: ambulatory children (I-II) are flagged
    below the 5th percentile, non-ambulatory ones (III-V) below the 20th.
    """
    level = _check_level(gmfcs_level)
    threshold = (
        AMBULATORY_RISK_PERCENTILE if level in AMBULATORY_LEVELS
        else NON_AMBULATORY_RISK_PERCENTILE
    )
    return weight_for_age_percentile < threshold


def gmfcs_description(gmfcs_level: str) -> str:
    return GMFCS_DESCRIPTIONS[_check_level(gmfcs_level)]


def assess_cerebral_palsy(
    gmfcs_level: str,
    weight_for_age_percentile: float,
    tibia_length_cm: float | None = None,
    upper_arm_length_cm: float | None = None,
) -> dict:
    """Combined CP assessment: risk flag, GMFCS description and estimated height."""
    level = _check_level(gmfcs_level)
    at_risk = is_nutritional_risk_cp(level, weight_for_age_percentile)

    estimated_height = None
    method = None
    if tibia_length_cm:
        estimated_height = estimate_height_stevenson(tibia_length_cm)
        method = "stevenson_tibia"
    elif upper_arm_length_cm:
        estimated_height = estimate_height_from_upper_arm(upper_arm_length_cm)
        method = "stevenson_upper_arm"

    if at_risk:
        logger.info(
            f"CP nutritional risk: GMFCS {level}, percentile {weight_for_age_percentile}"
        )

    return {
        "gmfcs_level": level,
        "description": GMFCS_DESCRIPTIONS[level],
        "nutritional_risk": at_risk,
        "risk_threshold_percentile": (
            AMBULATORY_RISK_PERCENTILE if level in AMBULATORY_LEVELS
            else NON_AMBULATORY_RISK_PERCENTILE
        ),
        "estimated_height_cm": estimated_height,
        "height_method": method,
    }
