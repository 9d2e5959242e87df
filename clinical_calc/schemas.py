"""
Pydantic V2 Schemas (Request/Response Models)
================================================
These schemas define the shape of data that flows in and out of the API.

Naming Convention:
  - *Input / *Request : POST request bodies
  - *Create           : request bodies that are also stored
  - *Response         : API responses (what the client receives back)

Measurement values are deliberately unconstrained here: range and
consistency problems are reported by the validation service with
field-level detail, not rejected by Pydantic. A value of 0 or None means
"not measured".

Sex accepts English or Spanish labels and is normalised to "male"/"female".
"""

import datetime

from pydantic import BaseModel, Field, model_validator

SEX_ALIASES = {
    "male": "male",
    "m": "male",
    "masculino": "male",
    "hombre": "male",
    "female": "female",
    "f": "female",
    "femenino": "female",
    "mujer": "female",
}


def normalize_sex(value: str) -> str:
    try:
        return SEX_ALIASES[value.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown sex {value!r}; expected male/female (or masculino/femenino)") from None


class SexNormalizedModel(BaseModel):
    """Base for request bodies that carry a `sex` field."""

    @model_validator(mode="after")
    def normalize_sex_label(self):
        if getattr(self, "sex", None) is not None:
            self.sex = normalize_sex(self.sex)
        return self


# ============================================================
# MEASUREMENT INPUT SCHEMAS
# ============================================================

class BioData(SexNormalizedModel):
    weight: float | None = Field(default=None, description="Body weight (kg)")
    height: float | None = Field(default=None, description="Standing height (cm)")
    age: float | None = Field(default=None, description="Age (years, decimals allowed)")
    sex: str = Field(..., description="male / female (masculino / femenino accepted)")
    sitting_height: float | None = Field(default=None, description="Sitting height (cm)")


class SkinfoldSet(BaseModel):
    """Skinfold thicknesses in mm."""
    triceps: float | None = None
    subscapular: float | None = None
    biceps: float | None = None
    iliac_crest: float | None = None
    supraspinale: float | None = None
    abdominal: float | None = None
    thigh: float | None = None
    calf: float | None = None


class GirthSet(BaseModel):
    """Girths in cm."""
    arm_relaxed: float | None = None
    arm_flexed: float | None = None
    forearm: float | None = None
    waist: float | None = None
    hip: float | None = None
    mid_thigh: float | None = None
    calf: float | None = None
    head: float | None = None


class BreadthSet(BaseModel):
    """Bone breadths in cm."""
    humerus: float | None = None
    femur: float | None = None
    biacromial: float | None = None
    biiliocristal: float | None = None
    wrist: float | None = None
    ankle: float | None = None


class HydrationOptions(BaseModel):
    activity_level: str = Field(default="sedentary", description="Activity label (es/en)")
    pathologies: list[str] = Field(default_factory=list, description="e.g. renal_cr, diabetes_t2")
    is_athlete: bool = False
    climate: str = Field(default="normal", description="normal / hot / very_hot")


class MeasurementInput(BaseModel):
    """
    One anthropometric measurement session.

    `replicates` carries repeated readings per site, e.g.
    {"skinfolds": {"triceps": [10.1, 10.4, 10.2]}}; they are reduced to a
    single value (mean of two, median of three or more) and also used for
    the technical error of measurement.
    """
    bio_data: BioData
    skinfolds: SkinfoldSet = Field(default_factory=SkinfoldSet)
    girths: GirthSet = Field(default_factory=GirthSet)
    breadths: BreadthSet = Field(default_factory=BreadthSet)
    replicates: dict[str, dict[str, list[float]]] | None = None
    maturation_stage: str | None = Field(
        default=None, description="pre-puber / puber / post-puber (ages 8-18)"
    )
    hydration: HydrationOptions | None = None


class MeasurementCreate(MeasurementInput):
    """Measurement session to evaluate and store in the patient's history."""
    measured_at: datetime.datetime | None = Field(
        default=None, description="When the measurement was taken (defaults to now)"
    )
    full_name: str | None = Field(
        default=None, max_length=255, description="Stored on the patient when first seen"
    )


# ============================================================
# VALIDATION / ENVELOPE SCHEMAS
# ============================================================

class ValidationIssue(BaseModel):
    field: str
    message: str


class ValidationResult(BaseModel):
    is_valid: bool
    errors: list[ValidationIssue]
    warnings: list[ValidationIssue]
    missing: list[str]


class CalculationEnvelope(BaseModel):
    """Every calculation endpoint answers with this shape."""
    success: bool
    result: dict | None = None
    error: str | None = None
    code: str | None = None
    validation: ValidationResult | None = None
    record_id: int | None = None


# ============================================================
# HISTORY SCHEMAS
# ============================================================

class MeasurementRecordResponse(BaseModel):
    id: int
    patient_id: int
    measured_at: datetime.datetime
    weight_kg: float
    height_cm: float
    age_years: float
    sex: str
    body_fat_percent: float | None
    muscle_mass_kg: float | None
    endomorphy: float | None
    mesomorphy: float | None
    ectomorphy: float | None
    raw_input: dict
    result: dict
    created_at: datetime.datetime | None

    model_config = {"from_attributes": True}  # Allows creating from SQLAlchemy model


class MessageResponse(BaseModel):
    """Generic message response for operations like delete."""
    message: str
    detail: str | None = None


# ============================================================
# CLINICAL FORMULA SCHEMAS
# ============================================================

class AtalahRequest(BaseModel):
    bmi: float = Field(..., gt=0, description="Current BMI (kg/m²)")
    gestational_weeks: float = Field(..., ge=0, le=45)


class IomGoalsRequest(BaseModel):
    pre_pregnancy_bmi: float = Field(..., gt=0)
    is_twin: bool = False


class PregnancyEvaluationRequest(BaseModel):
    current_weight: float = Field(..., gt=0, description="Current weight (kg)")
    pre_pregnancy_weight: float = Field(..., gt=0, description="Pre-pregnancy weight (kg)")
    gestational_weeks: float = Field(..., ge=0, le=45)
    pre_pregnancy_bmi: float = Field(..., gt=0)
    is_twin: bool = False


class CerebralPalsyHeightRequest(BaseModel):
    tibia_length_cm: float | None = Field(default=None, gt=0, description="Knee-to-heel length")
    upper_arm_length_cm: float | None = Field(default=None, gt=0, description="Shoulder-to-elbow length")

    @model_validator(mode="after")
    def require_one_segment(self) -> "CerebralPalsyHeightRequest":
        if self.tibia_length_cm is None and self.upper_arm_length_cm is None:
            raise ValueError("Provide tibia_length_cm or upper_arm_length_cm")
        return self


class CerebralPalsyRiskRequest(BaseModel):
    gmfcs_level: str = Field(..., description="GMFCS level I-V")
    weight_for_age_percentile: float = Field(..., ge=0, le=100)
    tibia_length_cm: float | None = Field(default=None, gt=0)
    upper_arm_length_cm: float | None = Field(default=None, gt=0)


class CardiometabolicRequest(SexNormalizedModel):
    waist_cm: float = Field(..., gt=0)
    height_cm: float = Field(..., gt=0)
    sex: str
    age_years: float = Field(..., ge=0)
    hip_cm: float | None = Field(default=None, gt=0)


class BodyFatRequest(SexNormalizedModel):
    age_years: float = Field(..., ge=0)
    sex: str
    triceps: float | None = None
    subscapular: float | None = None
    biceps: float | None = None
    suprailiac: float | None = None
    maturation_stage: str | None = None


class TdeeRequest(SexNormalizedModel):
    weight_kg: float = Field(..., gt=0)
    height_cm: float = Field(..., gt=0)
    age_years: float = Field(..., ge=0)
    sex: str
    activity_level: str = Field(default="moderate", description="Activity label (es/en)")
    formula: str = Field(
        default="mifflin", description="mifflin, harris, fao, henry, katch, cunningham or iom"
    )
    fat_percent: float | None = Field(default=None, ge=0, lt=100)
    include_tef: bool = True


class PediatricEerRequest(SexNormalizedModel):
    age_years: float = Field(..., ge=0, le=18)
    weight_kg: float = Field(..., gt=0)
    height_cm: float = Field(..., gt=0)
    sex: str
    activity_level: str = "moderate"
    method: str = Field(default="iom", description="iom, fao or henry")


class HydrationRequest(BaseModel):
    weight_kg: float = Field(..., gt=0)
    activity_level: str = "sedentary"
    age_years: float | None = Field(default=None, ge=0)
    pathologies: list[str] = Field(default_factory=list)
    is_athlete: bool = False
    climate: str = "normal"


class SweatRateRequest(BaseModel):
    weight_pre_kg: float = Field(..., gt=0)
    weight_post_kg: float = Field(..., gt=0)
    intake_ml: float = Field(default=0, ge=0)
    exercise_duration_min: float = Field(..., ge=0)
    urine_ml: float = Field(default=0, ge=0)
