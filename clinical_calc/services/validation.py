"""
Anthropometric Input Validation
================================
Range and anatomical-consistency checks over raw measurement input.

The validator never raises and never mutates its input. It walks a sequence
of independent checks, each appending issues to a shared report, so the
caller always sees every problem at once instead of only the first one.

INPUT SHAPE (plain dict, as produced by `MeasurementInput.model_dump()`):
  {
    "bio_data":  {"weight", "height", "age", "sex", "sitting_height"},
    "skinfolds": {"triceps", "subscapular", "biceps", "iliac_crest",
                  "supraspinale", "abdominal", "thigh", "calf"},       # mm
    "girths":    {"arm_relaxed", "arm_flexed", "forearm", "waist", "hip",
                  "mid_thigh", "calf", "head"},                        # cm
    "breadths":  {"humerus", "femur", "biacromial", "biiliocristal",
                  "wrist", "ankle"},                                   # cm
  }

CONVENTIONS:
  - A value of exactly 0 (or None) means "not measured" and is skipped.
  - Any other value outside its closed [min, max] interval is one error
    naming the field and the violated bound.
  - Cross-field checks only run when every operand was measured and passed
    its own range check, so each field carries at most one error.
"""

import logging
import math
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


# ── Plausible ranges (ISAK) ──
# (min, max, unit, label)
VALIDATION_RANGES: dict[str, dict[str, tuple[float, float, str, str]]] = {
    "bio_data": {
        "weight": (2, 250, "kg", "Weight"),
        "height": (40, 230, "cm", "Height"),
        "sitting_height": (30, 110, "cm", "Sitting height"),
        "age": (0, 110, "years", "Age"),
    },
    "skinfolds": {
        "triceps": (2, 60, "mm", "Triceps skinfold"),
        "subscapular": (3, 60, "mm", "Subscapular skinfold"),
        "biceps": (2, 40, "mm", "Biceps skinfold"),
        "iliac_crest": (3, 60, "mm", "Iliac crest skinfold"),
        "supraspinale": (3, 60, "mm", "Supraspinale skinfold"),
        "abdominal": (4, 80, "mm", "Abdominal skinfold"),
        "thigh": (4, 70, "mm", "Front thigh skinfold"),
        "calf": (3, 50, "mm", "Medial calf skinfold"),
    },
    "girths": {
        "arm_relaxed": (18, 60, "cm", "Relaxed arm girth"),
        "arm_flexed": (20, 65, "cm", "Flexed arm girth"),
        "forearm": (18, 40, "cm", "Forearm girth"),
        "waist": (45, 200, "cm", "Waist girth"),
        "hip": (50, 200, "cm", "Hip girth"),
        "mid_thigh": (35, 100, "cm", "Mid-thigh girth"),
        "calf": (20, 60, "cm", "Calf girth"),
        "head": (25, 65, "cm", "Head circumference"),
    },
    "breadths": {
        "humerus": (5, 12, "cm", "Humerus breadth"),
        "femur": (7, 16, "cm", "Femur breadth"),
        "biacromial": (30, 60, "cm", "Biacromial breadth"),
        "biiliocristal": (22, 55, "cm", "Biiliocristal breadth"),
        "wrist": (4, 8, "cm", "Wrist breadth"),
        "ankle": (6, 10, "cm", "Ankle breadth"),
    },
}

# Skinfolds above these (but still in range) are flagged for re-measurement
SKINFOLD_WARNING_LEVELS = {
    "triceps": 35,
    "subscapular": 40,
    "biceps": 20,
    "iliac_crest": 45,
    "supraspinale": 45,
    "abdominal": 55,
    "thigh": 50,
    "calf": 28,
}

SKINFOLD_SUM_WARNING_MM = 250

# (skinfold site, girth site) pairs for the cylinder rule
CYLINDER_RULE_PAIRS = [
    ("triceps", "arm_relaxed"),
    ("thigh", "mid_thigh"),
    ("calf", "calf"),
    ("abdominal", "waist"),
]


@dataclass
class ValidationReport:
    """Issue accumulator shared by all checks."""

    errors: list[dict] = field(default_factory=list)
    warnings: list[dict] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)

    def add_error(self, field_path: str, message: str) -> None:
        self.errors.append({"field": field_path, "message": message})

    def add_warning(self, field_path: str, message: str) -> None:
        self.warnings.append({"field": field_path, "message": message})

    def has_error(self, field_path: str) -> bool:
        return any(issue["field"] == field_path for issue in self.errors)

    @property
    def is_valid(self) -> bool:
        return not self.errors and not self.missing

    def as_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "missing": list(self.missing),
        }


def is_measured(value) -> bool:
    """True when a measurement was actually taken (0 and None mean absent)."""
    return value is not None and value != 0


def validate_measurements(data: dict) -> dict:
    """
    Run every range and consistency check over a measurement input.

    Args:
        data: Nested measurement dict (see module docstring). Missing groups
              or fields are treated as not measured.

    Returns:
        dict with keys:
            - is_valid: bool (no errors and nothing missing)
            - errors: list of {field, message}, in check order
            - warnings: list of {field, message}
            - missing: list of required field paths that were not provided
    """
    report = ValidationReport()

    _check_required_bio_data(data, report)
    for group in VALIDATION_RANGES:
        _check_group_ranges(data, group, report)
    _check_skinfold_warnings(data, report)
    _check_girth_and_breadth_proportions(data, report)
    _check_cylinder_rule(data, report)
    _check_sitting_height(data, report)

    result = report.as_dict()
    if not report.is_valid:
        logger.warning(
            f"Validation failed: {len(report.errors)} error(s), "
            f"missing={report.missing}"
        )
    return result


# ── Individual checks ──

def _get(data: dict, group: str, name: str):
    return (data.get(group) or {}).get(name)


def _usable(data: dict, report: ValidationReport, group: str, name: str):
    """Return the value when measured and not already flagged, else None."""
    value = _get(data, group, name)
    if not is_measured(value) or report.has_error(f"{group}.{name}"):
        return None
    return value


def _check_required_bio_data(data: dict, report: ValidationReport) -> None:
    for name in ("weight", "height"):
        value = _get(data, "bio_data", name)
        if value is None or value <= 0:
            report.missing.append(f"bio_data.{name}")
    if _get(data, "bio_data", "age") is None:
        report.missing.append("bio_data.age")


def _check_group_ranges(data: dict, group: str, report: ValidationReport) -> None:
    values = data.get(group) or {}
    for name, (low, high, unit, label) in VALIDATION_RANGES[group].items():
        value = values.get(name)
        if value is None:
            continue
        # age 0 is a newborn, every other 0 means "not measured"
        if value == 0 and not (group == "bio_data" and name == "age"):
            continue
        if group == "bio_data" and name in ("weight", "height") and value < 0:
            continue  # already reported as missing
        path = f"{group}.{name}"
        if value < low:
            report.add_error(
                path, f"{label} ({value} {unit}) is below the minimum ({low} {unit})"
            )
        elif value > high:
            report.add_error(
                path, f"{label} ({value} {unit}) exceeds the maximum ({high} {unit})"
            )


def _check_skinfold_warnings(data: dict, report: ValidationReport) -> None:
    skinfolds = data.get("skinfolds") or {}
    for name, warn_level in SKINFOLD_WARNING_LEVELS.items():
        value = _usable(data, report, "skinfolds", name)
        if value is not None and value > warn_level:
            label = VALIDATION_RANGES["skinfolds"][name][3]
            report.add_warning(
                f"skinfolds.{name}",
                f"{label} ({value} mm) is unusually high, verify the measurement",
            )

    total = sum(v for v in skinfolds.values() if is_measured(v))
    if total > SKINFOLD_SUM_WARNING_MM:
        report.add_warning(
            "skinfolds",
            f"Skinfold sum ({round(total, 1)} mm) is very high, verify the measurements",
        )


def _check_girth_and_breadth_proportions(data: dict, report: ValidationReport) -> None:
    thigh = _usable(data, report, "girths", "mid_thigh")
    calf = _usable(data, report, "girths", "calf")
    if thigh is not None and calf is not None and thigh < calf:
        report.add_error(
            "girths.mid_thigh",
            f"Mid-thigh girth ({thigh} cm) cannot be smaller than calf girth ({calf} cm)",
        )

    femur = _usable(data, report, "breadths", "femur")
    humerus = _usable(data, report, "breadths", "humerus")
    if femur is not None and humerus is not None and femur < humerus:
        report.add_error(
            "breadths.femur",
            f"Femur breadth ({femur} cm) cannot be smaller than humerus breadth ({humerus} cm)",
        )

    waist = _usable(data, report, "girths", "waist")
    arm = _usable(data, report, "girths", "arm_relaxed")
    if waist is not None and arm is not None and waist < arm:
        report.add_error(
            "girths.waist",
            f"Waist girth ({waist} cm) cannot be smaller than relaxed arm girth ({arm} cm)",
        )


def _check_cylinder_rule(data: dict, report: ValidationReport) -> None:
    """A compressed skinfold (mm/10 -> cm) must fit inside the limb diameter (girth/pi)."""
    for skinfold_name, girth_name in CYLINDER_RULE_PAIRS:
        skinfold = _usable(data, report, "skinfolds", skinfold_name)
        girth = _usable(data, report, "girths", girth_name)
        if skinfold is None or girth is None:
            continue
        if skinfold / 10 >= girth / math.pi:
            label = VALIDATION_RANGES["skinfolds"][skinfold_name][3]
            girth_label = VALIDATION_RANGES["girths"][girth_name][3]
            report.add_error(
                f"skinfolds.{skinfold_name}",
                f"{label} ({skinfold} mm) does not fit inside the limb diameter "
                f"implied by {girth_label.lower()} ({girth} cm)",
            )


def _check_sitting_height(data: dict, report: ValidationReport) -> None:
    sitting = _usable(data, report, "bio_data", "sitting_height")
    height = _usable(data, report, "bio_data", "height")
    if sitting is not None and height is not None and sitting >= height:
        report.add_error(
            "bio_data.sitting_height",
            f"Sitting height ({sitting} cm) must be less than standing height ({height} cm)",
        )
