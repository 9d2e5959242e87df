"""
Envelope Responses
==================
Turns calculation envelopes into HTTP responses whose status code matches
the outcome (200, 400, 422 or 500) while the body keeps the envelope shape.
"""

from fastapi.responses import JSONResponse

from clinical_calc.services.anthropometry import envelope_status_code, run_calculation


def envelope_response(envelope: dict) -> JSONResponse:
    return JSONResponse(status_code=envelope_status_code(envelope), content=envelope)


def calculation_response(func, *args, **kwargs) -> JSONResponse:
    """Run a calculation at the HTTP boundary and answer with its envelope."""
    return envelope_response(run_calculation(func, *args, **kwargs))
