"""
Pregnancy Nutrition Service
============================
Gestational nutritional status and weight-gain monitoring.

ATALAH CURVE (Atalah et al., 1997; Chilean MINSAL reference):
  BMI cut-offs shift with gestational week (6 to 42). For a week W:
    BMI <  low(W)                    -> "Bajo Peso"
    low(W)    <= BMI < normal(W)     -> "Normal"
    normal(W) <= BMI < overweight(W) -> "Sobrepeso"
    BMI >= overweight(W)             -> "Obesidad"
  Fractional weeks are linearly interpolated between the two surrounding
  weekly rows; weeks outside 6-42 are clamped.

IOM 2009 GESTATIONAL WEIGHT GAIN:
  Total and 2nd/3rd-trimester weekly gain goals by pre-pregnancy BMI
  category (< 18.5, < 25, < 30, >= 30) for singleton and twin pregnancies.

WEIGHT-GAIN EVALUATION:
  Week <= 13 : expected gain 0.5 to 2.0 kg, prorated by week / 13
  Week  > 13 : 1.5 kg + (week − 13) × IOM weekly rate (min and max)
  gain < 0.9 × min -> "bajo";  gain > 1.1 × max -> "excesivo";  else "adecuado"
"""

import logging
import math

logger = logging.getLogger(__name__)


ATALAH_MIN_WEEK = 6
ATALAH_MAX_WEEK = 42

# week: (low weight limit, normal limit, overweight limit)
ATALAH_TABLE = {
    6: (20.0, 25.0, 30.0),
    7: (20.0, 25.0, 30.0),
    8: (20.0, 25.0, 30.0),
    9: (20.0, 25.0, 30.0),
    10: (20.0, 25.5, 30.0),
    11: (20.0, 25.5, 30.0),
    12: (20.5, 26.0, 30.0),
    13: (20.5, 26.0, 30.5),
    14: (21.0, 26.5, 30.5),
    15: (21.0, 26.5, 31.0),
    16: (21.5, 27.0, 31.0),
    17: (21.5, 27.0, 31.5),
    18: (22.0, 27.5, 31.5),
    19: (22.0, 27.5, 32.0),
    20: (22.5, 28.0, 32.0),
    21: (22.5, 28.0, 32.5),
    22: (23.0, 28.5, 32.5),
    23: (23.0, 28.5, 33.0),
    24: (23.5, 29.0, 33.0),
    25: (23.5, 29.0, 33.5),
    26: (24.0, 29.5, 33.5),
    27: (24.0, 29.5, 34.0),
    28: (24.5, 30.0, 34.0),
    29: (24.5, 30.0, 34.5),
    30: (25.0, 30.5, 34.5),
    31: (25.0, 30.5, 35.0),
    32: (25.0, 30.5, 35.0),
    33: (25.5, 31.0, 35.0),
    34: (25.5, 31.0, 35.5),
    35: (26.0, 31.5, 35.5),
    36: (26.0, 31.5, 36.0),
    37: (26.0, 32.0, 36.0),
    38: (26.5, 32.0, 36.5),
    39: (26.5, 32.0, 36.5),
    40: (27.0, 32.5, 37.0),
    41: (27.0, 32.5, 37.0),
    42: (27.0, 32.5, 37.0),
}

# ── IOM 2009 goals: (min total, max total, weekly min, weekly max) in kg ──
IOM_GAIN_GOALS = {
    "singleton": {
        "underweight": (12.5, 18.0, 0.44, 0.58),
        "normal": (11.5, 16.0, 0.35, 0.50),
        "overweight": (7.0, 11.5, 0.23, 0.33),
        "obese": (5.0, 9.0, 0.17, 0.27),
    },
    "twin": {
        "underweight": (22.7, 28.1, 0.57, 0.70),
        "normal": (16.7, 24.5, 0.42, 0.61),
        "overweight": (14.0, 22.6, 0.35, 0.57),
        "obese": (11.3, 19.0, 0.28, 0.48),
    },
}

FIRST_TRIMESTER_END_WEEK = 13
FIRST_TRIMESTER_GAIN_RANGE = (0.5, 2.0)
FIRST_TRIMESTER_AVERAGE_GAIN = 1.5
LOW_GAIN_TOLERANCE = 0.9
HIGH_GAIN_TOLERANCE = 1.1


def atalah_thresholds(gestational_weeks: float) -> tuple[float, float, float]:
    """BMI cut-offs for a gestational week, interpolating fractional weeks."""
    week = max(ATALAH_MIN_WEEK, min(ATALAH_MAX_WEEK, gestational_weeks))
    lower = math.floor(week)
    upper = math.ceil(week)
    if lower == upper:
        return ATALAH_TABLE[lower]

    fraction = week - lower
    return tuple(
        round(a + (b - a) * fraction, 3)
        for a, b in zip(ATALAH_TABLE[lower], ATALAH_TABLE[upper])
    )


def classify_atalah(bmi: float, gestational_weeks: float) -> str:
    """
    Classify a pregnant woman's BMI on the Atalah curve.

    Args:
        bmi: Current BMI (kg/m²)
        gestational_weeks: Gestational age in weeks

    Returns:
        "Bajo Peso", "Normal", "Sobrepeso" or "Obesidad"
    """
    low, normal, overweight = atalah_thresholds(gestational_weeks)

    if bmi < low:
        return "Bajo Peso"
    if bmi < normal:
        return "Normal"
    if bmi < overweight:
        return "Sobrepeso"
    return "Obesidad"


def pre_pregnancy_bmi_category(bmi: float) -> str:
    if bmi < 18.5:
        return "underweight"
    if bmi < 25.0:
        return "normal"
    if bmi < 30.0:
        return "overweight"
    return "obese"


def get_iom_weight_gain_goals(pre_pregnancy_bmi: float, is_twin: bool = False) -> dict:
    """
    IOM total and weekly gestational weight-gain goals.

    Returns:
        dict with keys: category, min_gain, max_gain, weekly_min, weekly_max (kg)
    """
    category = pre_pregnancy_bmi_category(pre_pregnancy_bmi)
    min_gain, max_gain, weekly_min, weekly_max = IOM_GAIN_GOALS[
        "twin" if is_twin else "singleton"
    ][category]

    return {
        "category": category,
        "min_gain": min_gain,
        "max_gain": max_gain,
        "weekly_min": weekly_min,
        "weekly_max": weekly_max,
    }


def evaluate_pregnancy_weight_gain(
    current_weight: float,
    pre_pregnancy_weight: float,
    gestational_weeks: float,
    pre_pregnancy_bmi: float,
    is_twin: bool = False,
) -> dict:
    """
    Compare actual gestational weight gain with the IOM band prorated to this week.

    Returns:
        dict with keys:
            - gain: float (kg, current − pre-pregnancy)
            - status: "bajo" | "adecuado" | "excesivo"
            - expected_min, expected_max: float (kg at this week)
            - goals: the full IOM goals dict
    """
    goals = get_iom_weight_gain_goals(pre_pregnancy_bmi, is_twin)
    gain = current_weight - pre_pregnancy_weight

    if gestational_weeks <= FIRST_TRIMESTER_END_WEEK:
        fraction = gestational_weeks / FIRST_TRIMESTER_END_WEEK
        expected_min = FIRST_TRIMESTER_GAIN_RANGE[0] * fraction
        expected_max = FIRST_TRIMESTER_GAIN_RANGE[1] * fraction
    else:
        weeks_after = gestational_weeks - FIRST_TRIMESTER_END_WEEK
        expected_min = FIRST_TRIMESTER_AVERAGE_GAIN + weeks_after * goals["weekly_min"]
        expected_max = FIRST_TRIMESTER_AVERAGE_GAIN + weeks_after * goals["weekly_max"]

    if gain < expected_min * LOW_GAIN_TOLERANCE:
        status = "bajo"
    elif gain > expected_max * HIGH_GAIN_TOLERANCE:
        status = "excesivo"
    else:
        status = "adecuado"

    logger.info(
        f"Pregnancy gain at week {gestational_weeks}: {gain:.2f}kg "
        f"(expected {expected_min:.2f}-{expected_max:.2f}kg) -> {status}"
    )

    return {
        "gain": round(gain, 2),
        "status": status,
        "expected_min": round(expected_min, 2),
        "expected_max": round(expected_max, 2),
        "goals": goals,
    }
