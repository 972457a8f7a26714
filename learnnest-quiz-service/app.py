"""
Main FastAPI application for the LearnNest quiz service
Validated quiz generation, attempt scoring and progressive hints
"""
from fastapi import Depends, FastAPI, Header
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
import uvicorn
import logging
import traceback
from datetime import datetime
from functools import lru_cache
from typing import Optional

from config import settings
from models import (
    GenerateQuizRequest, QuizResult, QuizAttemptRequest, QuizAttemptResult,
    HintRequest, HintResponse, HealthResponse
)
from audit import SQLiteAuditStore
from attempts import submit_quiz_attempt
from exceptions import LearnNestError, UnauthenticatedError, create_error_response, http_status_for
from hints import generate_question_hint
from llm_clients import TextGenerator, create_gemini_generator
from pipeline import QuizPipeline, create_pipeline, generate_validated_quiz

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="LearnNest Quiz Service",
    version="1.0.0",
    description="AI quiz generation with retrieval grounding and two-model validation",
    docs_url="/api/docs",
    redoc_url="/api/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# =============================================================================
# Capabilities (built once per process, overridable in tests)
# =============================================================================

@lru_cache()
def get_pipeline() -> QuizPipeline:
    return create_pipeline()

@lru_cache()
def get_audit_store() -> SQLiteAuditStore:
    return SQLiteAuditStore()

@lru_cache()
def get_assist_generator() -> Optional[TextGenerator]:
    """Fast secondary model used for focus areas and hints"""
    return create_gemini_generator(model=settings.GEMINI_HINT_MODEL)

async def get_caller_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Authenticated caller identity; token verification happens upstream"""
    if not x_user_id:
        raise UnauthenticatedError()
    return x_user_id

# =============================================================================
# Event Handlers
# =============================================================================

@app.on_event("startup")
async def startup_event():
    logger.info("Starting LearnNest quiz service...")
    settings.ensure_directories_exist()
    if not settings.is_openai_configured():
        logger.warning("OPENAI_API_KEY not set: quiz generation will fail with FAILED_PRECONDITION")
    if not settings.is_gemini_configured():
        logger.warning("GEMINI_API_KEY not set: validation and hints are unavailable")
    logger.info("LearnNest quiz service started")

# =============================================================================
# Global Error Handlers
# =============================================================================

@app.exception_handler(LearnNestError)
async def learnnest_error_handler(request, exc: LearnNestError):
    """Map service errors to their HTTP status"""
    status_code = http_status_for(exc)
    if status_code >= 500:
        logger.error(f"Service error: {exc.error_code} - {exc.message}")
    else:
        logger.info(f"Request rejected: {exc.error_code} - {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content=create_error_response(exc, include_technical=settings.DEBUG)
    )

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request, exc: RequestValidationError):
    """Handle request validation errors"""
    error = LearnNestError(
        message="Request validation failed",
        user_message="Invalid request data. Please check your input.",
        technical_details=str(exc),
        error_code="VALIDATION_ERROR"
    )
    return JSONResponse(
        status_code=422,
        content=create_error_response(error, include_technical=settings.DEBUG)
    )

@app.exception_handler(Exception)
async def general_error_handler(request, exc: Exception):
    """Handle unexpected errors"""
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    error = LearnNestError(
        message=str(exc),
        user_message="An unexpected error occurred. Please try again or contact support.",
        technical_details=traceback.format_exc() if settings.DEBUG else None,
        error_code="UNEXPECTED_ERROR"
    )
    return JSONResponse(
        status_code=500,
        content=create_error_response(error, include_technical=settings.DEBUG)
    )

# =============================================================================
# API Routes
# =============================================================================

@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Simple health check endpoint"""
    return HealthResponse(
        status="healthy",
        openai_status="configured" if settings.is_openai_configured() else "missing",
        gemini_status="configured" if settings.is_gemini_configured() else "missing",
        timestamp=datetime.now()
    )

@app.post("/api/quizzes/generate", response_model=QuizResult)
async def generate_quiz(
    request: GenerateQuizRequest,
    caller_id: str = Depends(get_caller_id),
    pipeline: QuizPipeline = Depends(get_pipeline)
):
    """Generate a validated quiz from study text"""
    return await generate_validated_quiz(request, caller_id, pipeline)

@app.post("/api/quizzes/{quiz_id}/attempts", response_model=QuizAttemptResult)
async def submit_attempt(
    quiz_id: str,
    attempt: QuizAttemptRequest,
    caller_id: str = Depends(get_caller_id),
    store: SQLiteAuditStore = Depends(get_audit_store),
    generator: Optional[TextGenerator] = Depends(get_assist_generator)
):
    """Score an attempt and update the quiz's aggregate stats"""
    attempt.quiz_id = quiz_id
    return await submit_quiz_attempt(attempt, generator, store)

@app.post("/api/questions/hint", response_model=HintResponse)
async def question_hint(
    request: HintRequest,
    caller_id: str = Depends(get_caller_id),
    generator: Optional[TextGenerator] = Depends(get_assist_generator)
):
    """Progressive hints for one question"""
    return await generate_question_hint(request.question, request.language_code, generator)

# =============================================================================
# Main execution
# =============================================================================

if __name__ == "__main__":
    uvicorn.run(
        "app:app",
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        reload=settings.DEBUG
    )
