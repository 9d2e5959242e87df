"""
Domain Errors
=============
Exceptions raised inside the calculation services.

They never escape the library boundary: `services.anthropometry` and the
routers turn them into result envelopes of the form

    {"success": False, "error": "<message>", "code": "<code>", "validation": ...}

Anything that is not a ClinicalCalcError is treated as an internal error.
"""


class ClinicalCalcError(Exception):
    """Base exception for clinical calculation errors."""

    code = "CLINICAL_ERROR"
    status_code = 400


class ValidationFailureError(ClinicalCalcError):
    """Raised when measurements are out of range or anatomically inconsistent."""

    code = "VALIDATION_FAILURE"
    status_code = 422

    def __init__(self, report: dict):
        errors = report.get("errors", [])
        if errors:
            message = errors[0]["message"]
        else:
            message = f"Missing data: {', '.join(report.get('missing', []))}"
        super().__init__(message)
        self.report = report


class MissingInputError(ClinicalCalcError):
    """Raised when a formula needs a measurement that was not taken (0 / absent)."""

    code = "MISSING_INPUT"
    status_code = 422

    def __init__(self, fields: list[str], formula: str = ""):
        target = f" for {formula}" if formula else ""
        super().__init__(f"Missing required measurements{target}: {', '.join(fields)}")
        self.fields = fields
        self.formula = formula


class InvalidActivityLevelError(ClinicalCalcError):
    """Raised when an activity-level label cannot be mapped to a known level."""

    code = "INVALID_ACTIVITY_LEVEL"

    def __init__(self, token: str):
        super().__init__(f"Unknown activity level: {token!r}")
        self.token = token


class InvalidFormulaSelectorError(ClinicalCalcError):
    """Raised when a formula or category selector is not recognised."""

    code = "INVALID_FORMULA_SELECTOR"

    def __init__(self, name: str, allowed: list[str]):
        super().__init__(
            f"Unknown selector {name!r}. Expected one of: {', '.join(allowed)}"
        )
        self.name = name
        self.allowed = allowed
