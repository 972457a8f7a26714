"""
Custom exception classes for the LearnNest quiz service
Caller-facing kinds carry a stable error code; internal kinds are recovered inside the pipeline
"""
from typing import Dict, Any

class LearnNestError(Exception):
    """Base exception class for all quiz service errors"""

    def __init__(
        self,
        message: str = None,
        user_message: str = None,
        technical_details: str = None,
        recovery_action: str = None,
        error_code: str = None
    ):
        self.message = message or self.default_message
        self.user_message = user_message or message or self.default_user_message
        self.technical_details = technical_details
        self.recovery_action = recovery_action or self.default_recovery_action
        self.error_code = error_code or self.default_error_code
        super().__init__(self.message)

    # Default values to be overridden by subclasses
    default_message = "An error occurred in the quiz service"
    default_user_message = "Something went wrong. Please try again."
    default_recovery_action = "Contact support if the problem persists"
    default_error_code = "INTERNAL"
    http_status = 500

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API responses"""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "user_message": self.user_message,
            "technical_details": self.technical_details,
            "recovery_action": self.recovery_action,
        }

# =============================================================================
# Caller-facing Errors
# =============================================================================

class UnauthenticatedError(LearnNestError):
    """Caller identity is missing"""
    default_message = "Authentication required."
    default_user_message = "Authentication required."
    default_recovery_action = "Sign in and retry the request"
    default_error_code = "UNAUTHENTICATED"
    http_status = 401

class InvalidArgumentError(LearnNestError):
    """Required request fields are missing or malformed"""
    default_message = "Invalid argument"
    default_user_message = "The request is missing required fields."
    default_recovery_action = "Check the request payload and try again"
    default_error_code = "INVALID_ARGUMENT"
    http_status = 400

class FailedPreconditionError(LearnNestError):
    """A required AI capability is not configured"""
    default_message = "Required service not configured"
    default_user_message = "The AI service is not configured."
    default_recovery_action = "Set OPENAI_API_KEY and GEMINI_API_KEY in the service environment"
    default_error_code = "FAILED_PRECONDITION"
    http_status = 412

# =============================================================================
# Internal Errors
# =============================================================================

class GenerationParseError(LearnNestError):
    """Model output could not be coerced into the expected JSON shape"""
    default_message = "Failed to parse quiz JSON from model"
    default_user_message = "The AI service returned an unreadable response."
    default_recovery_action = "Try again; the model output is not deterministic"
    default_error_code = "GENERATION_PARSE_ERROR"

class RetrievalError(LearnNestError):
    """Context retrieval failed; the pipeline continues without context"""
    default_message = "Context retrieval failed"
    default_user_message = "Supporting sources could not be retrieved."
    default_recovery_action = "No action needed; questions are generated without sources"
    default_error_code = "RETRIEVAL_ERROR"

class SemanticValidationError(LearnNestError):
    """Semantic validation failed; every question defaults to valid"""
    default_message = "Semantic validation failed"
    default_user_message = "Questions could not be fact-checked."
    default_recovery_action = "No action needed; structural checks still apply"
    default_error_code = "SEMANTIC_VALIDATION_ERROR"

class AuditLogError(LearnNestError):
    """Audit record could not be written"""
    default_message = "Failed to write audit record"
    default_user_message = "Usage could not be recorded."
    default_recovery_action = "Check the audit database path and permissions"
    default_error_code = "AUDIT_LOG_ERROR"

# =============================================================================
# Utility Functions
# =============================================================================

def http_status_for(error: LearnNestError) -> int:
    """HTTP status code for a service error"""
    return getattr(error, "http_status", 500)

def create_error_response(error: LearnNestError, include_technical: bool = False) -> Dict[str, Any]:
    """Create standardized error response for API"""
    details = error.to_dict()
    response = {
        "success": False,
        "error": {
            "code": details["error_code"],
            "message": details["user_message"],
            "recovery_action": details["recovery_action"]
        }
    }

    if include_technical and details["technical_details"]:
        response["error"]["technical_details"] = details["technical_details"]

    return response
