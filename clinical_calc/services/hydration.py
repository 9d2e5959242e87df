"""
Hydration Service
==================
Daily water requirement and exercise sweat rate.

BASELINE (by age):
  < 19 years : Holiday-Segar, 100 ml/kg for the first 10 kg,
               50 ml/kg for the next 10 kg, 20 ml/kg beyond 20 kg
  >= 60 years: 30 ml/kg, never below 1500 ml
  otherwise  : 35 ml/kg (40 ml/kg for athletes)

TOTAL = baseline + activity increment + climate increment + pathology adjustments,
clamped to [1500, 4000] ml (6000 ml for athletes).

SWEAT RATE:
  loss (L)  = (pre − post weight) + intake (L) − urine (L)
  rate      = loss / exercise hours
  replace   = 150% of loss

References:
  EFSA (2010) Scientific Opinion on Dietary Reference Values for water.
  Holliday, M.A. & Segar, W.E. (1957). Pediatrics, 19(5), 823-832.
"""

import logging
import math

from clinical_calc.core.exceptions import InvalidFormulaSelectorError
from clinical_calc.services.energy import ActivityLevel, normalize_activity_level

logger = logging.getLogger(__name__)

ACTIVITY_INCREMENTS_ML = {
    ActivityLevel.SEDENTARY: 0,
    ActivityLevel.LIGHT: 300,
    ActivityLevel.MODERATE: 500,
    ActivityLevel.ACTIVE: 750,
    ActivityLevel.VERY_ACTIVE: 1000,
    ActivityLevel.EXTREME: 1500,
    ActivityLevel.ELITE: 1500,
    ActivityLevel.ULTRA: 1500,
}

CLIMATE_INCREMENTS_ML = {
    "normal": 0,
    "hot": 500,
    "very_hot": 1000,
}

# pathology: (adjustment ml, clinical warning)
PATHOLOGY_ADJUSTMENTS = {
    "renal_cr": (-500, "Chronic kidney disease: consult the nephrologist for a personalised fluid limit."),
    "hipertension": (0, "Hypertension: avoid sodium-containing drinks, prefer plain water."),
    "diabetes_t1": (300, "Diabetes: steady hydration helps glycaemic control."),
    "diabetes_t2": (300, "Diabetes: steady hydration helps glycaemic control."),
}

PEDIATRIC_MAX_AGE = 19
GERIATRIC_MIN_AGE = 60
ADULT_ML_PER_KG = 35
ATHLETE_ML_PER_KG = 40
GERIATRIC_ML_PER_KG = 30
SAFE_MIN_ML = 1500
SAFE_MAX_ML = 4000
ATHLETE_SAFE_MAX_ML = 6000
GLASS_ML = 250
SWEAT_REPLACEMENT_FACTOR = 1.5


def holliday_segar(weight_kg: float) -> float:
    if weight_kg <= 10:
        return weight_kg * 100
    if weight_kg <= 20:
        return 1000 + (weight_kg - 10) * 50
    return 1500 + (weight_kg - 20) * 20


def calculate_hydration(
    weight_kg: float,
    activity_level: str = "sedentary",
    age_years: float | None = None,
    pathologies: list[str] | None = None,
    is_athlete: bool = False,
    climate: str = "normal",
) -> dict:
    """
    Daily water recommendation.

    Args:
        weight_kg: Body weight
        activity_level: Activity token (Spanish or English)
        age_years: Age in years; None is treated as adult
        pathologies: e.g. ["renal_cr", "Diabetes T2"]; unknown entries are ignored
        is_athlete: Raises the adult factor and the safety ceiling
        climate: "normal", "hot" or "very_hot"

    Returns:
        dict with keys: baseline_ml, activity_adjustment_ml, clinical_adjustment_ml,
        total_daily_ml, glasses_per_day, warnings, tips
    """
    level = normalize_activity_level(activity_level)
    if climate not in CLIMATE_INCREMENTS_ML:
        raise InvalidFormulaSelectorError(climate, list(CLIMATE_INCREMENTS_ML))

    warnings = []
    tips = []

    if age_years is not None and age_years < PEDIATRIC_MAX_AGE:
        baseline = holliday_segar(weight_kg)
        tips.append("Pediatric: Holliday-Segar formula applied for the baseline.")
    elif age_years is not None and age_years >= GERIATRIC_MIN_AGE:
        baseline = max(SAFE_MIN_ML, weight_kg * GERIATRIC_ML_PER_KG)
        tips.append("Older adult: at least 1.5 L a day, drink even without feeling thirsty.")
    else:
        baseline = weight_kg * (ATHLETE_ML_PER_KG if is_athlete else ADULT_ML_PER_KG)

    activity_adjustment = ACTIVITY_INCREMENTS_ML[level]

    clinical_adjustment = CLIMATE_INCREMENTS_ML[climate]
    if climate == "hot":
        tips.append("Hot weather: increase fluid intake.")
    elif climate == "very_hot":
        tips.append("Very hot weather: drink before feeling thirsty.")

    for pathology in pathologies or []:
        key = pathology.strip().lower().replace(" ", "_")
        if key in PATHOLOGY_ADJUSTMENTS:
            adjustment, warning = PATHOLOGY_ADJUSTMENTS[key]
            clinical_adjustment += adjustment
            warnings.append(warning)

    tips.append("High-protein diets need extra water to support kidney function.")

    total = round(baseline + activity_adjustment + clinical_adjustment)
    ceiling = ATHLETE_SAFE_MAX_ML if is_athlete else SAFE_MAX_ML
    safe_total = max(SAFE_MIN_ML, min(total, ceiling))

    if total > SAFE_MAX_ML and not is_athlete:
        warnings.append("Safety limit: at most 4 L a day for non-athlete adults.")
        logger.warning(f"Hydration total {total}ml clamped to {safe_total}ml")

    logger.info(
        f"Hydration: baseline={baseline:.0f}ml + activity={activity_adjustment}ml "
        f"+ clinical={clinical_adjustment}ml -> {safe_total}ml"
    )

    return {
        "baseline_ml": round(baseline),
        "activity_adjustment_ml": activity_adjustment,
        "clinical_adjustment_ml": clinical_adjustment,
        "total_daily_ml": safe_total,
        "glasses_per_day": math.ceil(safe_total / GLASS_ML),
        "warnings": warnings,
        "tips": tips,
    }


def quick_hydration(weight_kg: float, activity_level: str = "moderada") -> dict:
    """Short form for display: litres (1 decimal) and 250 ml glasses."""
    result = calculate_hydration(weight_kg, activity_level)
    return {
        "liters_per_day": round(result["total_daily_ml"] / 1000, 1),
        "glasses_per_day": result["glasses_per_day"],
    }


def calculate_sweat_rate(
    weight_pre_kg: float,
    weight_post_kg: float,
    intake_ml: float,
    exercise_duration_min: float,
    urine_ml: float = 0,
) -> dict:
    """
    Hourly sweat loss and the recommended replacement volume.

    Returns:
        dict with keys: rate_l_per_hour, total_loss_l, fluid_replacement_l
        (0 rate when the duration is 0)
    """
    total_loss = (weight_pre_kg - weight_post_kg) + intake_ml / 1000 - urine_ml / 1000
    hours = exercise_duration_min / 60
    rate = total_loss / hours if hours > 0 else 0

    return {
        "rate_l_per_hour": round(rate, 2),
        "total_loss_l": round(total_loss, 2),
        "fluid_replacement_l": round(total_loss * SWEAT_REPLACEMENT_FACTOR, 2),
    }
