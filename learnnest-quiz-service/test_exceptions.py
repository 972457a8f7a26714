"""Tests for the service error hierarchy."""
import pytest

from exceptions import (
    AuditLogError, FailedPreconditionError, InvalidArgumentError, LearnNestError,
    UnauthenticatedError, create_error_response, http_status_for
)


def test_to_dict_carries_all_fields():
    error = InvalidArgumentError("Missing text or userId", technical_details="text=None")
    assert error.to_dict() == {
        "error_code": "INVALID_ARGUMENT",
        "message": "Missing text or userId",
        "user_message": "Missing text or userId",
        "technical_details": "text=None",
        "recovery_action": "Check the request payload and try again",
    }


def test_to_dict_uses_class_defaults():
    data = FailedPreconditionError().to_dict()
    assert data["error_code"] == "FAILED_PRECONDITION"
    assert data["message"] == "Required service not configured"
    assert data["user_message"] == "The AI service is not configured."
    assert data["technical_details"] is None


@pytest.mark.parametrize("error, status", [
    (UnauthenticatedError(), 401),
    (InvalidArgumentError(), 400),
    (FailedPreconditionError(), 412),
    (AuditLogError(), 500),
    (LearnNestError(), 500),
])
def test_http_status(error, status):
    assert http_status_for(error) == status


def test_error_response_matches_to_dict():
    error = AuditLogError(technical_details="disk I/O error")
    data = error.to_dict()
    response = create_error_response(error)
    assert response == {
        "success": False,
        "error": {
            "code": data["error_code"],
            "message": data["user_message"],
            "recovery_action": data["recovery_action"],
        },
    }


def test_error_response_technical_details_opt_in():
    error = AuditLogError(technical_details="disk I/O error")
    assert create_error_response(error, include_technical=True)["error"]["technical_details"] == "disk I/O error"
    assert "technical_details" not in create_error_response(AuditLogError(), include_technical=True)["error"]
