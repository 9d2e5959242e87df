"""
Five-Component Body Mass Fractionation (Kerr, 1988)
=====================================================
Splits body mass into skin, adipose, muscle, bone and residual tissue.

Each tissue (except skin) is predicted from the Phantom stratagem
(Ross & Wilson, 1974): every measurement is scaled to the Phantom height
of 170.18 cm and expressed as a z-score against the Phantom reference,

  z = (v × 170.18 / h − p) / s

The mean z-score of a tissue's measurements is turned back into a mass,

  M = (z × S + P) × (h / 170.18)³

where (P, S) are the Phantom mean and SD for that tissue mass.

SKIN uses body surface area (Du Bois):
  SA (cm²) = 71.84 × W^0.425 × H^0.725
  Skin (kg) = SA × thickness(cm) × density / 1000

The five raw masses never add up to body weight exactly, so each one is
scaled by weight / Σ masses. A deviation above 5% is flagged.

FAT ESTIMATE:
  Adipose tissue is ~80% lipid, so lipid fat % = adipose % × 0.8, and the
  matching density follows from the inverse Siri equation,
  D = 495 / (lipid% + 450).

The Phantom is an adult reference: subjects younger than 14 are refused.
"""

import logging
import math
from statistics import mean

from clinical_calc.core.exceptions import MissingInputError, ValidationFailureError
from clinical_calc.services.body_fat import siri_fat_percent

logger = logging.getLogger(__name__)


PHANTOM_HEIGHT_CM = 170.18
MIN_AGE_YEARS = 14

# (P, S) Phantom reference values
PHANTOM_SKINFOLDS = {
    "triceps": (15.4, 4.47),
    "subscapular": (17.2, 5.07),
    "supraspinale": (15.4, 4.47),
    "abdominal": (25.4, 7.78),
    "thigh": (27.0, 8.33),
    "calf": (16.0, 4.67),
}
PHANTOM_GIRTHS = {
    "arm_relaxed": (26.89, 2.33),
    "arm_flexed": (29.41, 2.37),
    "forearm": (25.13, 1.41),
    "chest": (87.86, 5.18),
    "waist": (71.91, 4.45),
    "mid_thigh": (55.82, 4.23),
    "calf": (35.25, 2.30),
}
PHANTOM_BREADTHS = {
    "humerus": (6.48, 0.35),
    "femur": (9.52, 0.48),
    "wrist": (5.21, 0.28),
    "ankle": (6.68, 0.36),
    "biacromial": (38.04, 1.92),
    "biiliocristal": (28.84, 1.75),
    "head": (57.20, 1.52),
}
PHANTOM_MASSES = {
    "skin": (2.07, 0.28),
    "adipose": (12.13, 3.25),
    "muscle": (25.55, 2.99),
    "bone": (6.68, 0.85),
    "residual": (6.35, 1.24),
}

SKIN_THICKNESS_MM = 2.07
SKIN_DENSITY = 1.05
LIPID_FRACTION_OF_ADIPOSE = 0.8

KERR_DEVIATION_LIMIT_PERCENT = 5.0
MIN_ADIPOSE_SKINFOLDS = 4
MIN_MUSCLE_GIRTHS = 2

# Skinfold sums above which compressibility degrades accuracy
OBESITY_SKINFOLD_SUM_MM = 150
HIGH_SKINFOLD_SUM_MM = 120
OBESITY_ALTERNATIVE_FORMULAS = [
    "Weltman (1988) - obesity-specific equation using abdominal girth",
    "Peterson (2008) - four-compartment model validated against DXA",
    "Bioelectrical impedance (BIA) - alternative method for validation",
]


# ── Phantom helpers ──

def phantom_z_score(value: float | None, height_cm: float, p: float, s: float) -> float | None:
    """Height-scaled Phantom z-score, or None when the value was not measured."""
    if value is None or value <= 0 or height_cm <= 0 or s == 0:
        return None
    return (value * (PHANTOM_HEIGHT_CM / height_cm) - p) / s


def _mean_z(z_scores: list[float | None]) -> float:
    valid = [z for z in z_scores if z is not None]
    return mean(valid) if valid else 0.0


def _phantom_mass(z: float, tissue: str, height_cm: float) -> float:
    p, s = PHANTOM_MASSES[tissue]
    return max(0.0, (z * s + p) * (height_cm / PHANTOM_HEIGHT_CM) ** 3)


def du_bois_surface_area(weight_kg: float, height_cm: float) -> float:
    """Body surface area in cm² (Du Bois & Du Bois, 1916)."""
    return 71.84 * weight_kg ** 0.425 * height_cm ** 0.725


# ── Tissue masses ──

def calculate_skin_mass(weight_kg: float, height_cm: float) -> float:
    area = du_bois_surface_area(weight_kg, height_cm)
    return max(0.0, area * (SKIN_THICKNESS_MM / 10) * SKIN_DENSITY / 1000)


def calculate_adipose_mass(skinfolds: dict, height_cm: float) -> tuple[float, float]:
    """Adipose mass from six skinfolds: triceps, subscapular, supraspinale, abdominal, thigh, calf."""
    z = _mean_z([
        phantom_z_score(skinfolds.get(site), height_cm, p, s)
        for site, (p, s) in PHANTOM_SKINFOLDS.items()
    ])
    return _phantom_mass(z, "adipose", height_cm), z


def calculate_muscle_mass(skinfolds: dict, girths: dict, height_cm: float) -> tuple[float, float]:
    """
    Muscle mass from skinfold-corrected girths.

    Corrected girth = girth − π × skinfold(cm), for relaxed arm (triceps),
    mid-thigh (thigh) and calf (calf). Forearm is added uncorrected when present.
    """
    z_scores = []
    for girth_site, skinfold_site in (
        ("arm_relaxed", "triceps"),
        ("mid_thigh", "thigh"),
        ("calf", "calf"),
    ):
        girth = girths.get(girth_site) or 0
        if girth <= 0:
            continue
        corrected = girth - math.pi * ((skinfolds.get(skinfold_site) or 0) / 10)
        p, s = PHANTOM_GIRTHS[girth_site]
        z_scores.append(phantom_z_score(corrected, height_cm, p, s))

    p, s = PHANTOM_GIRTHS["forearm"]
    z_scores.append(phantom_z_score(girths.get("forearm"), height_cm, p, s))

    z = _mean_z(z_scores)
    return _phantom_mass(z, "muscle", height_cm), z


def calculate_bone_mass(breadths: dict, height_cm: float) -> tuple[float, float]:
    """Bone mass from humerus and femur, plus wrist, ankle and trunk breadths when taken."""
    z = _mean_z([
        phantom_z_score(breadths.get(site), height_cm, *PHANTOM_BREADTHS[site])
        for site in ("humerus", "femur", "wrist", "ankle", "biacromial", "biiliocristal")
    ])
    return _phantom_mass(z, "bone", height_cm), z


def calculate_residual_mass(
    girths: dict,
    breadths: dict,
    height_cm: float,
    z_adipose: float,
    z_muscle: float,
    z_bone: float,
) -> tuple[float, float, bool]:
    """
    Residual mass from head circumference and trunk breadths.

    When none of them was measured, the z-score is estimated as the mean of
    the adipose, muscle and bone z-scores.

    Returns:
        (mass_kg, z_score, is_estimated)
    """
    trunk = [
        phantom_z_score(girths.get("head"), height_cm, *PHANTOM_BREADTHS["head"]),
        phantom_z_score(breadths.get("biacromial"), height_cm, *PHANTOM_BREADTHS["biacromial"]),
        phantom_z_score(breadths.get("biiliocristal"), height_cm, *PHANTOM_BREADTHS["biiliocristal"]),
    ]
    if any(z is not None for z in trunk):
        z = _mean_z(trunk)
        is_estimated = False
    else:
        z = (z_adipose + z_muscle + z_bone) / 3
        is_estimated = True

    return _phantom_mass(z, "residual", height_cm), z, is_estimated


# ── Derived indices ──

def calculate_cormic_index(sitting_height_cm: float, height_cm: float) -> dict:
    """Cormic index = sitting height / height × 100, with its ISAK interpretation."""
    index = sitting_height_cm / height_cm * 100
    if index < 51:
        interpretation = "Braquicórmico (long legs / short trunk)"
    elif index <= 53:
        interpretation = "Metriocórmico (proportional)"
    else:
        interpretation = "Macrocórmico (short legs / long trunk)"
    return {"index": round(index, 2), "interpretation": interpretation}


def _obesity_warning(skinfold_sum: float) -> dict | None:
    if skinfold_sum > OBESITY_SKINFOLD_SUM_MM:
        return {
            "skinfold_sum": round(skinfold_sum, 1),
            "message": (
                f"High skinfold sum ({round(skinfold_sum, 1)} mm). Tissue compressibility "
                "in high adiposity can reduce caliper accuracy."
            ),
            "alternative_formulas": list(OBESITY_ALTERNATIVE_FORMULAS),
        }
    if skinfold_sum > HIGH_SKINFOLD_SUM_MM:
        return {
            "skinfold_sum": round(skinfold_sum, 1),
            "message": (
                f"Moderately high skinfold sum ({round(skinfold_sum, 1)} mm). "
                "Verify measurement technique."
            ),
            "alternative_formulas": [],
        }
    return None


def kerr_skinfolds(skinfolds: dict) -> dict:
    """Skinfolds keyed for the Kerr model (iliac crest stands in for a missing supraspinale)."""
    result = {site: skinfolds.get(site) or 0 for site in PHANTOM_SKINFOLDS}
    if result["supraspinale"] <= 0:
        result["supraspinale"] = skinfolds.get("iliac_crest") or 0
    return result


def missing_fractionation_inputs(data: dict) -> list[str]:
    """Field paths the fractionation needs but were not measured."""
    bio = data.get("bio_data") or {}
    skinfolds = kerr_skinfolds(data.get("skinfolds") or {})
    girths = data.get("girths") or {}
    breadths = data.get("breadths") or {}
    missing = []

    for name in ("weight", "height"):
        if (bio.get(name) or 0) <= 0:
            missing.append(f"bio_data.{name}")

    if sum(1 for v in skinfolds.values() if v > 0) < MIN_ADIPOSE_SKINFOLDS:
        for site in ("triceps", "subscapular", "supraspinale", "abdominal"):
            if skinfolds[site] <= 0:
                missing.append(f"skinfolds.{site}")

    girth_sites = ("arm_relaxed", "mid_thigh", "calf")
    if sum(1 for site in girth_sites if (girths.get(site) or 0) > 0) < MIN_MUSCLE_GIRTHS:
        for site in girth_sites:
            if (girths.get(site) or 0) <= 0:
                missing.append(f"girths.{site}")

    for site in ("humerus", "femur"):
        if (breadths.get(site) or 0) <= 0:
            missing.append(f"breadths.{site}")

    return missing


def calculate_five_component(data: dict) -> dict:
    """
    Fractionate body mass into five tissues.

    Args:
        data: Validated nested measurement dict (bio_data, skinfolds, girths, breadths).

    Returns:
        dict with keys:
            - skin, adipose, muscle, bone, residual: {"kg", "percent"}
            - adipose_percent, lipid_fat_percent, fat_percent (Siri), body_density
            - z_scores: {adipose, muscle, bone, residual}
            - residual_is_estimated, scale_factor, deviation_percent, flags
            - cormic (or None), skinfold_sum, obesity_warning (or None)

    Raises:
        MissingInputError: when a required measurement was not taken.
        ValidationFailureError: when the subject is younger than 14 years.
    """
    missing = missing_fractionation_inputs(data)
    if missing:
        raise MissingInputError(missing, "five-component fractionation")

    bio = data["bio_data"]
    age = bio.get("age")
    if age is not None and age < MIN_AGE_YEARS:
        raise ValidationFailureError({
            "is_valid": False,
            "errors": [{
                "field": "bio_data.age",
                "message": (
                    f"Five-component fractionation needs age >= {MIN_AGE_YEARS} years "
                    f"(age {age}); the adult Phantom does not apply to children"
                ),
            }],
            "warnings": [],
            "missing": [],
        })

    weight = bio["weight"]
    height = bio["height"]
    skinfolds = kerr_skinfolds(data.get("skinfolds") or {})
    girths = data.get("girths") or {}
    breadths = data.get("breadths") or {}

    skin_kg = calculate_skin_mass(weight, height)
    adipose_kg, z_adipose = calculate_adipose_mass(skinfolds, height)
    muscle_kg, z_muscle = calculate_muscle_mass(skinfolds, girths, height)
    bone_kg, z_bone = calculate_bone_mass(breadths, height)
    residual_kg, z_residual, residual_is_estimated = calculate_residual_mass(
        girths, breadths, height, z_adipose, z_muscle, z_bone
    )

    raw_total = skin_kg + adipose_kg + muscle_kg + bone_kg + residual_kg
    scale_factor = weight / raw_total if raw_total > 0 else 1.0
    deviation = abs(1 - scale_factor) * 100

    flags = []
    if deviation > KERR_DEVIATION_LIMIT_PERCENT:
        flags.append({
            "level": "warning",
            "code": "KERR_DEVIATION_HIGH",
            "message": (
                f"Kerr model deviation is high ({deviation:.1f}%). The raw component "
                "sum differs markedly from body weight."
            ),
        })
        logger.warning(f"Kerr deviation {deviation:.1f}% (raw total {raw_total:.2f} kg)")

    def _component(kg: float) -> dict:
        adjusted = kg * scale_factor
        return {"kg": round(adjusted, 1), "percent": round(adjusted / weight * 100, 1)}

    components = {
        "skin": _component(skin_kg),
        "adipose": _component(adipose_kg),
        "muscle": _component(muscle_kg),
        "bone": _component(bone_kg),
        "residual": _component(residual_kg),
    }

    adipose_percent = components["adipose"]["percent"]
    lipid_fat_percent = round(adipose_percent * LIPID_FRACTION_OF_ADIPOSE, 1)
    if lipid_fat_percent > 0:
        body_density = round(495 / (lipid_fat_percent + 450), 4)
        fat_percent = round(siri_fat_percent(body_density), 1)
    else:
        body_density = None
        fat_percent = None

    cormic = None
    sitting_height = bio.get("sitting_height") or 0
    if sitting_height > 0:
        cormic = calculate_cormic_index(sitting_height, height)

    raw_skinfolds = data.get("skinfolds") or {}
    skinfold_sum = sum(
        raw_skinfolds.get(site) or 0
        for site in ("triceps", "subscapular", "biceps", "abdominal", "thigh", "calf")
    ) + skinfolds["supraspinale"]

    logger.info(
        f"Five-component: weight={weight}kg, raw_total={raw_total:.2f}kg, "
        f"scale={scale_factor:.4f}, adipose={adipose_percent}%, "
        f"muscle={components['muscle']['percent']}%"
    )

    return {
        **components,
        "adipose_percent": adipose_percent,
        "lipid_fat_percent": lipid_fat_percent,
        "fat_percent": fat_percent,
        "body_density": body_density,
        "z_scores": {
            "adipose": round(z_adipose, 2),
            "muscle": round(z_muscle, 2),
            "bone": round(z_bone, 2),
            "residual": round(z_residual, 2),
        },
        "residual_is_estimated": residual_is_estimated,
        "raw_total_kg": round(raw_total, 2),
        "scale_factor": round(scale_factor, 4),
        "deviation_percent": round(deviation, 1),
        "flags": flags,
        "cormic": cormic,
        "skinfold_sum": round(skinfold_sum, 1),
        "obesity_warning": _obesity_warning(skinfold_sum),
    }
