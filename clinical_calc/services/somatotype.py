"""
Somatotype Calculation Service (Heath-Carter)
===============================================
Rates physique on three independent components.

ENDOMORPHY (relative adiposity):
  X = (triceps + subscapular + supraspinale) × 170.18 / height
  Endo = −0.7182 + 0.1451·X − 0.00068·X² + 0.0000014·X³        (min 0.1)

MESOMORPHY (musculoskeletal robustness relative to height):
  Meso = 0.858·humerus + 0.601·femur
       + 0.188·(flexed arm girth − triceps/10)
       + 0.161·(calf girth − calf skinfold/10)
       − 0.131·height + 4.5                                      (min 0.5)

ECTOMORPHY (linearity), from HWR = height / weight^(1/3):
  HWR ≥ 40.75          : Ecto = 0.732·HWR − 28.58
  38.25 < HWR < 40.75  : Ecto = 0.463·HWR − 17.63
  HWR ≤ 38.25          : Ecto = 0.1
                                                                 (min 0.1)
SOMATOCHART:
  X = ecto − endo
  Y = 2·meso − (endo + ecto)

Reference:
  Carter, J.E.L. & Heath, B.H. (1990). Somatotyping: Development and
  Applications. Cambridge University Press.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from clinical_calc.core.exceptions import MissingInputError

logger = logging.getLogger(__name__)

PHANTOM_HEIGHT_CM = 170.18

HWR_UPPER_THRESHOLD = 40.75
HWR_LOWER_THRESHOLD = 38.25

ENDOMORPHY_MIN = 0.1
MESOMORPHY_MIN = 0.5
ECTOMORPHY_MIN = 0.1


def round_half_up(value: float, places: int = 1) -> float:
    """Round with exact halves going up (2.25 -> 2.3), as published ratings are."""
    step = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(step, rounding=ROUND_HALF_UP))


def calculate_endomorphy(triceps: float, subscapular: float, supraspinale: float, height_cm: float) -> float:
    x = (triceps + subscapular + supraspinale) * (PHANTOM_HEIGHT_CM / height_cm)
    endo = -0.7182 + 0.1451 * x - 0.00068 * x ** 2 + 0.0000014 * x ** 3
    return max(ENDOMORPHY_MIN, endo)


def calculate_mesomorphy(
    humerus: float,
    femur: float,
    arm_flexed_girth: float,
    calf_girth: float,
    triceps: float,
    calf_skinfold: float,
    height_cm: float,
) -> float:
    arm_corrected = arm_flexed_girth - triceps / 10
    calf_corrected = calf_girth - calf_skinfold / 10
    meso = (
        0.858 * humerus
        + 0.601 * femur
        + 0.188 * arm_corrected
        + 0.161 * calf_corrected
        - 0.131 * height_cm
        + 4.5
    )
    return max(MESOMORPHY_MIN, meso)


def height_weight_ratio(height_cm: float, weight_kg: float) -> float:
    return height_cm / weight_kg ** (1 / 3)


def calculate_ectomorphy(height_cm: float, weight_kg: float) -> float:
    hwr = height_weight_ratio(height_cm, weight_kg)
    if hwr >= HWR_UPPER_THRESHOLD:
        ecto = 0.732 * hwr - 28.58
    elif hwr > HWR_LOWER_THRESHOLD:
        ecto = 0.463 * hwr - 17.63
    else:
        ecto = ECTOMORPHY_MIN
    return max(ECTOMORPHY_MIN, ecto)


def _missing_inputs(data: dict) -> list[str]:
    required = {
        "bio_data": ("weight", "height"),
        "skinfolds": ("triceps", "subscapular", "supraspinale", "calf"),
        "girths": ("arm_flexed", "calf"),
        "breadths": ("humerus", "femur"),
    }
    return [
        f"{group}.{name}"
        for group, names in required.items()
        for name in names
        if ((data.get(group) or {}).get(name) or 0) <= 0
    ]


def calculate_somatotype(data: dict) -> dict:
    """
    Heath-Carter anthropometric somatotype.

    Args:
        data: Nested measurement dict with bio_data (weight, height),
              skinfolds (triceps, subscapular, supraspinale, calf),
              girths (arm_flexed, calf) and breadths (humerus, femur).

    Returns:
        dict with keys endomorphy, mesomorphy, ectomorphy, somato_x,
        somato_y, hwr, classification and levels (Bajo / Moderado / Alto /
        Muy Alto per component). Ratings are rounded half-up to 1 decimal.

    Raises:
        MissingInputError: when any of the ten required measurements is absent.
    """
    missing = _missing_inputs(data)
    if missing:
        raise MissingInputError(missing, "Heath-Carter somatotype")

    bio = data["bio_data"]
    sf = data["skinfolds"]
    girths = data["girths"]
    breadths = data["breadths"]

    endo = calculate_endomorphy(sf["triceps"], sf["subscapular"], sf["supraspinale"], bio["height"])
    meso = calculate_mesomorphy(
        breadths["humerus"],
        breadths["femur"],
        girths["arm_flexed"],
        girths["calf"],
        sf["triceps"],
        sf["calf"],
        bio["height"],
    )
    ecto = calculate_ectomorphy(bio["height"], bio["weight"])

    endo, meso, ecto = round_half_up(endo), round_half_up(meso), round_half_up(ecto)
    x, y = somatochart_coordinates(endo, meso, ecto)

    logger.info(f"Somatotype: {endo}-{meso}-{ecto} (x={x}, y={y})")

    return {
        "endomorphy": endo,
        "mesomorphy": meso,
        "ectomorphy": ecto,
        "somato_x": x,
        "somato_y": y,
        "hwr": round_half_up(height_weight_ratio(bio["height"], bio["weight"]), 2),
        "classification": classify_somatotype(endo, meso, ecto),
        "levels": {
            "endomorphy": component_level(endo),
            "mesomorphy": component_level(meso),
            "ectomorphy": component_level(ecto),
        },
    }


def somatochart_coordinates(endo: float, meso: float, ecto: float) -> tuple[float, float]:
    """Somatochart (X, Y) position of a somatotype."""
    return round_half_up(ecto - endo), round_half_up(2 * meso - (endo + ecto))


def classify_somatotype(endo: float, meso: float, ecto: float) -> str:
    """One of the 13 Heath-Carter somatotype categories."""
    d_endo_meso = abs(endo - meso)
    d_meso_ecto = abs(meso - ecto)
    d_ecto_endo = abs(ecto - endo)

    if d_endo_meso <= 1 and d_meso_ecto <= 1 and d_ecto_endo <= 1:
        return "Central"

    if endo > meso + 0.5 and endo > ecto + 0.5:
        if d_meso_ecto <= 0.5:
            return "Endomorfo Balanceado"
        return "Endo-Mesomórfico" if meso > ecto else "Endo-Ectomórfico"

    if meso > endo + 0.5 and meso > ecto + 0.5:
        if d_ecto_endo <= 0.5:
            return "Mesomorfo Balanceado"
        return "Meso-Endomórfico" if endo > ecto else "Meso-Ectomórfico"

    if ecto > endo + 0.5 and ecto > meso + 0.5:
        if d_endo_meso <= 0.5:
            return "Ectomorfo Balanceado"
        return "Ecto-Mesomórfico" if meso > endo else "Ecto-Endomórfico"

    # Two components tie for dominance
    if d_endo_meso <= 0.5 and endo > ecto and meso > ecto:
        return "Mesomorfo-Endomorfo"
    if d_meso_ecto <= 0.5 and meso > endo and ecto > endo:
        return "Mesomorfo-Ectomorfo"
    if d_ecto_endo <= 0.5 and endo > meso and ecto > meso:
        return "Endomorfo-Ectomorfo"

    if endo >= meso and endo >= ecto:
        return "Endomorfo"
    if meso >= endo and meso >= ecto:
        return "Mesomorfo"
    return "Ectomorfo"


def component_level(value: float) -> str:
    """Bajo (< 3), Moderado (3-5.5), Alto (5.5-7.5), Muy Alto (> 7.5)."""
    if value < 3:
        return "Bajo"
    if value <= 5.5:
        return "Moderado"
    if value <= 7.5:
        return "Alto"
    return "Muy Alto"
