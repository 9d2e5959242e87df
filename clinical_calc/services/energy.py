"""
Energy Expenditure Service
===========================
Basal metabolic rate, total daily energy expenditure and pediatric
estimated energy requirement (EER).

ADULT BMR:
  Mifflin-St Jeor : 10·W + 6.25·H − 5·A + 5 (male) / − 161 (female)
  Harris-Benedict : 88.362 + 13.397·W + 4.799·H − 5.677·A (male)
                    447.593 + 9.247·W + 3.098·H − 4.330·A (female)
  FAO/OMS, Henry  : age-banded linear equations in weight
  Katch-McArdle   : 370 + 21.6·FFM
  Cunningham      : 500 + 22·FFM
  TDEE = BMR × activity factor (+ 10% thermic effect of food)

PEDIATRIC (3 to 18 years):
  IOM 2005 EER (boys)  = 88.5 − 61.9·A + PA·(26.7·W + 903·H_m) + 20
  IOM 2005 EER (girls) = 135.3 − 30.8·A + PA·(10.0·W + 934·H_m) + 20
  FAO/OMS (Schofield) and Henry (2005): BMR × activity factor

An adult equation is never applied to a child: any formula other than an
explicit "fao" or "henry" is routed to IOM 2005 for ages 3 to 18. Under 3
years, FAO/OMS (Schofield) is the default and "henry" is honored; this holds
for direct pediatric EER requests too. Every override is logged.

Reference:
  Institute of Medicine (2005). Dietary Reference Intakes for Energy.
  Henry, C.J.K. (2005). Basal metabolic rate studies in humans.
  Public Health Nutrition, 8(7A), 1133-1152.
"""

import logging
from enum import Enum

from clinical_calc.core.exceptions import InvalidActivityLevelError, InvalidFormulaSelectorError

logger = logging.getLogger(__name__)


class ActivityLevel(str, Enum):
    """Canonical physical activity level, whatever language the caller used."""

    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"
    EXTREME = "extreme"
    ELITE = "elite"
    ULTRA = "ultra"

    def activity_factor(self) -> float:
        return ACTIVITY_FACTORS[self]


ACTIVITY_ALIASES = {
    "sedentary": ActivityLevel.SEDENTARY,
    "sedentaria": ActivityLevel.SEDENTARY,
    "sedentario": ActivityLevel.SEDENTARY,
    "light": ActivityLevel.LIGHT,
    "ligera": ActivityLevel.LIGHT,
    "ligero": ActivityLevel.LIGHT,
    "moderate": ActivityLevel.MODERATE,
    "moderada": ActivityLevel.MODERATE,
    "moderado": ActivityLevel.MODERATE,
    "active": ActivityLevel.ACTIVE,
    "activa": ActivityLevel.ACTIVE,
    "activo": ActivityLevel.ACTIVE,
    "very_active": ActivityLevel.VERY_ACTIVE,
    "muy_activa": ActivityLevel.VERY_ACTIVE,
    "muy_activo": ActivityLevel.VERY_ACTIVE,
    "intensa": ActivityLevel.VERY_ACTIVE,
    "intense": ActivityLevel.VERY_ACTIVE,
    "muy_intensa": ActivityLevel.EXTREME,
    "extreme": ActivityLevel.EXTREME,
    "elite": ActivityLevel.ELITE,
    "ultra": ActivityLevel.ULTRA,
}

ACTIVITY_FACTORS = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
    ActivityLevel.EXTREME: 1.9,
    ActivityLevel.ELITE: 2.2,
    ActivityLevel.ULTRA: 2.5,
}

# IOM 2005 physical activity coefficients, ages 3-18
PEDIATRIC_PA_COEFFICIENTS = {
    "male": {"sedentary": 1.00, "light": 1.13, "moderate": 1.26, "very_active": 1.42},
    "female": {"sedentary": 1.00, "light": 1.16, "moderate": 1.31, "very_active": 1.56},
}

IOM_PA_CATEGORY = {
    ActivityLevel.SEDENTARY: "sedentary",
    ActivityLevel.LIGHT: "light",
    ActivityLevel.MODERATE: "moderate",
    ActivityLevel.ACTIVE: "moderate",
    ActivityLevel.VERY_ACTIVE: "very_active",
    ActivityLevel.EXTREME: "very_active",
    ActivityLevel.ELITE: "very_active",
    ActivityLevel.ULTRA: "very_active",
}

# ── Age-banded BMR equations: (upper age exclusive, slope per kg, intercept) ──
FAO_BMR_BANDS = {
    "male": [
        (3, 60.9, -54), (10, 22.7, 495), (18, 17.5, 651),
        (30, 15.3, 679), (60, 11.6, 879), (float("inf"), 13.5, 487),
    ],
    "female": [
        (3, 61.0, -51), (10, 22.5, 499), (18, 12.2, 746),
        (30, 14.7, 496), (60, 8.7, 829), (float("inf"), 10.5, 596),
    ],
}
HENRY_BMR_BANDS = {
    "male": [
        (3, 61.0, -33.7), (10, 23.3, 514), (18, 18.4, 581),
        (30, 16.0, 545), (60, 14.2, 593), (float("inf"), 13.5, 514),
    ],
    "female": [
        (3, 58.3, -31.1), (10, 22.5, 499), (18, 12.2, 746),
        (30, 10.1, 569), (60, 11.0, 543), (float("inf"), 10.9, 514),
    ],
}

FORMULA_NAMES = {
    "iom": "IOM 2005",
    "fao_pediatric": "FAO/OMS (Schofield)",
    "henry": "Henry (2005)",
    "mifflin": "Mifflin-St Jeor",
    "harris": "Harris-Benedict",
    "fao": "FAO/OMS",
    "katch": "Katch-McArdle",
    "cunningham": "Cunningham",
    "fallback": "Mifflin-St Jeor (fallback)",
}

ADULT_FORMULAS = ("mifflin", "harris", "fao", "henry", "katch", "cunningham")
PEDIATRIC_FORMULAS = ("iom", "fao", "henry")
ALL_FORMULAS = ADULT_FORMULAS + ("iom",)

PEDIATRIC_MIN_AGE = 3
PEDIATRIC_MAX_AGE = 18
TEF_FACTOR = 0.10


def normalize_activity_level(level: str) -> ActivityLevel:
    """
    Map a Spanish or English activity token to its canonical level.

    "Muy Activa", "muy-activa" and "very_active" all resolve to VERY_ACTIVE.
    Unknown tokens raise InvalidActivityLevelError instead of defaulting.
    """
    if isinstance(level, ActivityLevel):
        return level
    key = (level or "").strip().lower().replace(" ", "_").replace("-", "_")
    try:
        return ACTIVITY_ALIASES[key]
    except KeyError:
        raise InvalidActivityLevelError(level) from None


def normalize_formula(formula: str | None) -> str:
    key = (formula or "mifflin").strip().lower()
    if key not in ALL_FORMULAS:
        raise InvalidFormulaSelectorError(formula, list(ALL_FORMULAS))
    return key


# ── Basal equations ──

def calculate_mifflin_st_jeor(weight_kg: float, height_cm: float, age_years: float, sex: str) -> float:
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age_years
    return base + 5 if sex == "male" else base - 161


def calculate_harris_benedict(weight_kg: float, height_cm: float, age_years: float, sex: str) -> float:
    if sex == "male":
        return 88.362 + 13.397 * weight_kg + 4.799 * height_cm - 5.677 * age_years
    return 447.593 + 9.247 * weight_kg + 3.098 * height_cm - 4.330 * age_years


def _banded_bmr(bands: dict, weight_kg: float, age_years: float, sex: str) -> float:
    _, slope, intercept = next(row for row in bands[sex] if age_years < row[0])
    return slope * weight_kg + intercept


def calculate_fao_who(weight_kg: float, age_years: float, sex: str) -> float:
    """FAO/WHO/UNU (Schofield) BMR."""
    return _banded_bmr(FAO_BMR_BANDS, weight_kg, age_years, sex)


def calculate_henry(weight_kg: float, age_years: float, sex: str) -> float:
    """Henry (Oxford, 2005) BMR."""
    return _banded_bmr(HENRY_BMR_BANDS, weight_kg, age_years, sex)


def fat_free_mass(weight_kg: float, fat_percent: float) -> float:
    return weight_kg * (1 - fat_percent / 100)


def calculate_katch_mcardle(weight_kg: float, fat_percent: float) -> float:
    return 370 + 21.6 * fat_free_mass(weight_kg, fat_percent)


def calculate_cunningham(weight_kg: float, fat_percent: float) -> float:
    return 500 + 22 * fat_free_mass(weight_kg, fat_percent)


# ── Pediatric EER ──

def calculate_pediatric_eer(
    age_years: float,
    weight_kg: float,
    height_cm: float,
    sex: str,
    activity_level: str,
    method: str = "iom",
) -> dict:
    """
    Estimated energy requirement for children and adolescents.

    Args:
        age_years: Age in years
        weight_kg: Weight in kg
        height_cm: Height in cm
        sex: "male" or "female"
        activity_level: Activity token (Spanish or English)
        method: "iom", "fao" or "henry". Under 3 years "iom" is replaced
                by FAO/OMS (see `pediatric_method_for`).

    Returns:
        dict with keys: eer (kcal, rounded), bmr (None for IOM), formula,
        pa (IOM physical activity coefficient or activity factor)
    """
    level = normalize_activity_level(activity_level)
    if method not in PEDIATRIC_FORMULAS:
        raise InvalidFormulaSelectorError(method, list(PEDIATRIC_FORMULAS))
    method = pediatric_method_for(age_years, method)

    if method == "iom":
        pa = PEDIATRIC_PA_COEFFICIENTS[sex][IOM_PA_CATEGORY[level]]
        height_m = height_cm / 100
        if sex == "male":
            eer = 88.5 - 61.9 * age_years + pa * (26.7 * weight_kg + 903 * height_m) + 20
        else:
            eer = 135.3 - 30.8 * age_years + pa * (10.0 * weight_kg + 934 * height_m) + 20
        logger.info(f"IOM 2005 EER ({sex}, {age_years}y, PA={pa}): {eer:.1f} kcal")
        return {"eer": round(eer), "bmr": None, "formula": FORMULA_NAMES["iom"], "pa": pa}

    if method == "fao":
        bmr = calculate_fao_who(weight_kg, age_years, sex)
        formula = FORMULA_NAMES["fao_pediatric"]
    else:
        bmr = calculate_henry(weight_kg, age_years, sex)
        formula = FORMULA_NAMES["henry"]

    factor = level.activity_factor()
    logger.info(f"{formula} pediatric BMR={bmr:.1f} kcal × {factor}")
    return {"eer": round(bmr * factor), "bmr": round(bmr), "formula": formula, "pa": factor}


def pediatric_method_for(age_years: float, formula: str) -> str:
    """
    Pediatric formula actually used for a child.

    Ages 3-18 default to IOM 2005 and only an explicit "fao" or "henry"
    overrides it. Under 3 the IOM equations do not apply, so FAO/OMS is
    the default and "henry" is honored.
    """
    if age_years < PEDIATRIC_MIN_AGE:
        method = "henry" if formula == "henry" else "fao"
    elif formula in ("fao", "henry"):
        method = formula
    else:
        method = "iom"

    if method != formula:
        logger.info(
            f"Formula '{formula}' overridden by {FORMULA_NAMES[method]} for age {age_years}"
        )
    return method


# ── TDEE ──

def calculate_bmr(
    weight_kg: float,
    height_cm: float,
    age_years: float,
    sex: str,
    formula: str = "mifflin",
    fat_percent: float | None = None,
) -> tuple[float, str]:
    """Adult BMR by formula. Returns (bmr, formula name)."""
    if formula == "mifflin":
        return calculate_mifflin_st_jeor(weight_kg, height_cm, age_years, sex), FORMULA_NAMES["mifflin"]
    if formula == "harris":
        return calculate_harris_benedict(weight_kg, height_cm, age_years, sex), FORMULA_NAMES["harris"]
    if formula == "fao":
        return calculate_fao_who(weight_kg, age_years, sex), FORMULA_NAMES["fao"]
    if formula == "henry":
        return calculate_henry(weight_kg, age_years, sex), FORMULA_NAMES["henry"]
    if formula in ("katch", "cunningham"):
        if fat_percent is None:
            logger.warning(f"{FORMULA_NAMES[formula]} needs body fat %; using Mifflin-St Jeor")
            return calculate_mifflin_st_jeor(weight_kg, height_cm, age_years, sex), FORMULA_NAMES["fallback"]
        if formula == "katch":
            return calculate_katch_mcardle(weight_kg, fat_percent), FORMULA_NAMES["katch"]
        return calculate_cunningham(weight_kg, fat_percent), FORMULA_NAMES["cunningham"]
    raise InvalidFormulaSelectorError(formula, list(ADULT_FORMULAS))


def calculate_tdee(
    weight_kg: float,
    height_cm: float,
    age_years: float,
    sex: str,
    activity_level: str,
    formula: str | None = "mifflin",
    fat_percent: float | None = None,
    include_tef: bool = True,
) -> dict:
    """
    Total daily energy expenditure with pediatric routing.

    Subjects aged 18 or younger are always sent to a pediatric equation, whatever
    adult formula was requested; the formula actually used is reported.

    Returns:
        dict with keys: bmr, activity_factor, tef, tdee (kcal, rounded),
        formula (name of the equation actually applied), is_pediatric
    """
    level = normalize_activity_level(activity_level)
    requested = normalize_formula(formula)

    if age_years <= PEDIATRIC_MAX_AGE:
        method = pediatric_method_for(age_years, requested)
        result = calculate_pediatric_eer(age_years, weight_kg, height_cm, sex, level, method)
        bmr = result["bmr"] if result["bmr"] is not None else round(result["eer"] / 1.2)
        return {
            "bmr": bmr,
            "activity_factor": result["pa"],
            "tef": 0,
            "tdee": result["eer"],
            "formula": result["formula"],
            "is_pediatric": True,
        }

    bmr, formula_name = calculate_bmr(weight_kg, height_cm, age_years, sex, requested, fat_percent)
    factor = level.activity_factor()
    base = bmr * factor
    tef = base * TEF_FACTOR if include_tef else 0
    tdee = base + tef

    logger.info(
        f"TDEE ({formula_name}): BMR={bmr:.1f} × {factor} + TEF={tef:.1f} = {tdee:.1f} kcal"
    )

    return {
        "bmr": round(bmr),
        "activity_factor": factor,
        "tef": round(tef),
        "tdee": round(tdee),
        "formula": formula_name,
        "is_pediatric": False,
    }
