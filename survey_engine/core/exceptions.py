"""
Domain errors raised by the survey services.

Each error carries the HTTP status and error type used by the API exception
handler, so services never import FastAPI.
"""
from typing import Any, Dict, Optional


class SurveyError(Exception):
    """Base class for all survey domain errors."""

    status_code: int = 400
    error_type: str = "survey_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body = {"message": self.message, "type": self.error_type, "status_code": self.status_code}
        if self.details:
            body["details"] = self.details
        return body


class InstrumentNotFound(SurveyError):
    status_code = 404
    error_type = "instrument_not_found"


class InstrumentAlreadyExists(SurveyError):
    status_code = 409
    error_type = "instrument_already_exists"


class AnswerCountMismatch(SurveyError):
    status_code = 400
    error_type = "answer_count_mismatch"

    def __init__(self, expected: int, received: int):
        super().__init__(
            f"Expected {expected} answers, received {received}",
            {"expected": expected, "received": received},
        )


class AnswerOutOfRange(SurveyError):
    status_code = 400
    error_type = "answer_out_of_range"

    def __init__(self, position: int, value: float, min_scale: float, max_scale: float):
        super().__init__(
            f"Answer {position} ({value}) is not a point on the scale [{min_scale}, {max_scale}]",
            {"position": position, "value": value, "min_scale": min_scale, "max_scale": max_scale},
        )


class Forbidden(SurveyError):
    status_code = 403
    error_type = "forbidden"


class InvalidInstrumentDefinition(SurveyError):
    status_code = 422
    error_type = "invalid_instrument_definition"


class BandConfigurationError(InvalidInstrumentDefinition):
    error_type = "band_configuration_error"


class StorageUnavailable(SurveyError):
    status_code = 500
    error_type = "storage_unavailable"
