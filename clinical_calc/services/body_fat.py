"""
Body Fat Calculation Service
==============================
Skinfold-based body fat equations and the age-appropriate selector.

Children and adults need different equations: density-based equations
assume adult fat-free-mass density, which does not hold before maturity.
The selector routes each subject to the family validated for their age.

SLAUGHTER (1988), ages 8 to 18, by sex and maturation stage:
  S = triceps + subscapular (mm)
  Body Fat % = a × S − b × S² + c

DURNIN & WOMERSLEY (1974), adults, by sex and age band:
  S = biceps + triceps + subscapular + suprailiac (mm)
  Body Density = c − m × log10(S)

SIRI EQUATION (1961):
  Body Fat % = (495 / Body Density) − 450
"""

import logging
import math

from clinical_calc.core.exceptions import (
    InvalidFormulaSelectorError,
    MissingInputError,
    ValidationFailureError,
)

logger = logging.getLogger(__name__)

# Physiological clamp for reported body fat %
BODY_FAT_MIN_PERCENT = 3.0
BODY_FAT_MAX_PERCENT = 50.0

SLAUGHTER_MIN_AGE = 8
SLAUGHTER_MAX_AGE = 18

MATURATION_STAGES = ("pre-puber", "puber", "post-puber")

# (a, b, c) per sex and maturation stage
SLAUGHTER_COEFFICIENTS = {
    "male": {
        "pre-puber": (1.21, 0.008, -1.7),
        "puber": (1.21, 0.008, -3.4),
        "post-puber": (1.21, 0.008, -5.5),
    },
    "female": {
        "pre-puber": (1.33, 0.013, -2.5),
        "puber": (1.33, 0.013, -3.0),
        "post-puber": (1.33, 0.013, -3.0),
    },
}

# (upper age bound exclusive, c, m) per sex; the last band is open-ended
DURNIN_COEFFICIENTS = {
    "male": [
        (20, 1.1620, 0.0630),
        (30, 1.1631, 0.0632),
        (40, 1.1422, 0.0544),
        (50, 1.1620, 0.0700),
        (math.inf, 1.1715, 0.0779),
    ],
    "female": [
        (20, 1.1549, 0.0678),
        (30, 1.1599, 0.0717),
        (40, 1.1423, 0.0632),
        (50, 1.1333, 0.0612),
        (math.inf, 1.1339, 0.0645),
    ],
}

# Estimates used when a Durnin site was not measured
BICEPS_FROM_TRICEPS = 0.6
SUPRAILIAC_FROM_SUBSCAPULAR = 1.2


def siri_fat_percent(body_density: float) -> float:
    """Raw Siri conversion, no clamping. Used where the density is itself derived from fat %."""
    return (495.0 / body_density) - 450.0


def body_density_to_fat_percent(body_density: float) -> float:
    """
    Convert body density to body fat percentage using the Siri equation.

    Formula:
        Body Fat % = (495 / Body Density) - 450

    Args:
        body_density: Body density in g/cm³

    Returns:
        Body fat percentage clamped to the physiological range [3, 50],
        rounded to 2 decimals.

    Reference:
        Siri, W.E. (1961). Body composition from fluid spaces and density:
        Analysis of methods. In J. Brozek & A. Henschel (Eds.), Techniques for
        Measuring Body Composition (pp. 223-224). Washington, DC: National
        Academy of Sciences.
    """
    if body_density <= 0:
        raise MissingInputError(["body_density"], "Siri equation")

    fat_percent = siri_fat_percent(body_density)
    clamped = max(BODY_FAT_MIN_PERCENT, min(fat_percent, BODY_FAT_MAX_PERCENT))

    if clamped != fat_percent:
        logger.warning(f"Siri result {fat_percent:.2f}% clamped to {clamped}%")
    logger.info(f"Siri equation: density={body_density:.6f} -> fat={clamped:.2f}%")

    return round(clamped, 2)


def calculate_body_fat_slaughter(
    triceps: float,
    subscapular: float,
    maturation_stage: str,
    sex: str,
) -> float:
    """
    Body fat % for children and adolescents (Slaughter et al., 1988).

    Args:
        triceps: Triceps skinfold in mm
        subscapular: Subscapular skinfold in mm
        maturation_stage: "pre-puber", "puber" or "post-puber"
        sex: "male" or "female"

    Returns:
        Body fat percentage clamped to [3, 50], rounded to 2 decimals.
    """
    if maturation_stage not in MATURATION_STAGES:
        raise InvalidFormulaSelectorError(maturation_stage, list(MATURATION_STAGES))

    a, b, c = SLAUGHTER_COEFFICIENTS[sex][maturation_stage]
    s = triceps + subscapular
    fat_percent = a * s - b * s * s + c

    logger.info(
        f"Slaughter ({sex}, {maturation_stage}): sum={s}mm -> fat={fat_percent:.2f}%"
    )
    return round(max(BODY_FAT_MIN_PERCENT, min(fat_percent, BODY_FAT_MAX_PERCENT)), 2)


def calculate_density_durnin(
    biceps: float,
    triceps: float,
    subscapular: float,
    suprailiac: float,
    age_years: float,
    sex: str,
) -> float:
    """
    Body density from four skinfolds (Durnin & Womersley, 1974).

    Reference:
        Durnin, J.V. & Womersley, J. (1974). Body fat assessed from total body
        density and its estimation from skinfold thickness. British Journal of
        Nutrition, 32, 77-97.
    """
    s = biceps + triceps + subscapular + suprailiac
    if s <= 0:
        raise MissingInputError(["biceps", "triceps", "subscapular", "suprailiac"], "Durnin-Womersley")

    c, m = next(
        (c, m) for upper, c, m in DURNIN_COEFFICIENTS[sex] if age_years < upper
    )
    body_density = c - m * math.log10(s)

    logger.info(
        f"Durnin-Womersley ({sex}, age={age_years}): sum={s}mm -> "
        f"density={body_density:.6f} g/cm³"
    )
    return round(body_density, 6)


def calculate_body_fat_smart(
    age_years: float,
    sex: str,
    skinfolds: dict,
    maturation_stage: str | None = None,
) -> dict:
    """
    Pick the body fat equation validated for the subject's age.

    Routing:
        - 8 to 18 years: Slaughter (maturation stage defaults to "puber")
        - over 18 years: Durnin-Womersley density + Siri. A missing biceps
          is estimated as triceps × 0.6 and a missing suprailiac as
          subscapular × 1.2 before the density is computed.
        - under 8 years: no validated equation, reported as a validation failure.

    Args:
        age_years: Age in years
        sex: "male" or "female"
        skinfolds: dict with triceps, subscapular and optionally biceps and
                   suprailiac (or iliac_crest), in mm; 0/None = not measured
        maturation_stage: Tanner-based stage for pediatric subjects

    Returns:
        dict with keys: percentage, method ("slaughter" | "durnin_siri"),
        formula, estimated_sites, body_density (adults only)
    """
    triceps = skinfolds.get("triceps") or 0
    subscapular = skinfolds.get("subscapular") or 0

    missing = [
        name for name, value in (("triceps", triceps), ("subscapular", subscapular))
        if value <= 0
    ]
    if missing:
        raise MissingInputError(missing, "skinfold body fat")

    if age_years < SLAUGHTER_MIN_AGE:
        raise ValidationFailureError({
            "is_valid": False,
            "errors": [{
                "field": "bio_data.age",
                "message": (
                    f"No validated skinfold equation below {SLAUGHTER_MIN_AGE} years "
                    f"(age {age_years})"
                ),
            }],
            "warnings": [],
            "missing": [],
        })

    if age_years <= SLAUGHTER_MAX_AGE:
        stage = maturation_stage or "puber"
        percentage = calculate_body_fat_slaughter(triceps, subscapular, stage, sex)
        return {
            "percentage": percentage,
            "method": "slaughter",
            "formula": f"Slaughter (1988) - {stage}",
            "estimated_sites": [],
            "body_density": None,
        }

    estimated = []
    biceps = skinfolds.get("biceps") or 0
    if biceps <= 0:
        biceps = triceps * BICEPS_FROM_TRICEPS
        estimated.append("biceps")

    suprailiac = skinfolds.get("suprailiac") or skinfolds.get("iliac_crest") or 0
    if suprailiac <= 0:
        suprailiac = subscapular * SUPRAILIAC_FROM_SUBSCAPULAR
        estimated.append("suprailiac")

    if estimated:
        logger.info(f"Durnin-Womersley: estimated missing sites {estimated}")

    body_density = calculate_density_durnin(
        biceps, triceps, subscapular, suprailiac, age_years, sex
    )
    return {
        "percentage": body_density_to_fat_percent(body_density),
        "method": "durnin_siri",
        "formula": "Durnin & Womersley (1974) + Siri (1961)",
        "estimated_sites": estimated,
        "body_density": body_density,
    }
