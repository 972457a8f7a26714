"""
Pydantic models for the LearnNest quiz service
Wire format is camelCase (aliases); Python code uses snake_case field names
"""
from pydantic import BaseModel, Field, validator
from typing import List, Optional, Dict, Any, Union
from enum import Enum
from datetime import datetime

# =============================================================================
# Enums
# =============================================================================

class DifficultyLevel(str, Enum):
    """Difficulty levels for quizzes"""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

class QuestionType(str, Enum):
    """Types of quiz questions"""
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    FILL_IN_THE_BLANK = "fill-in-the-blank"
    SHORT_ANSWER = "short-answer"

class BloomLevel(str, Enum):
    """Cognitive levels of Bloom's taxonomy"""
    REMEMBER = "remember"
    UNDERSTAND = "understand"
    APPLY = "apply"
    ANALYZE = "analyze"
    EVALUATE = "evaluate"
    CREATE = "create"

class ContentSource(str, Enum):
    """Where the quiz source text came from"""
    NOTE = "note"
    PASTE = "paste"
    FILE = "file"
    TRANSCRIPT = "transcript"

class StepStatus(str, Enum):
    """Outcome of an optional pipeline sub-step"""
    OK = "ok"
    DEGRADED = "degraded"

DEFAULT_QUESTION_TYPES = [
    QuestionType.MULTIPLE_CHOICE,
    QuestionType.TRUE_FALSE,
    QuestionType.SHORT_ANSWER,
]

def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value if isinstance(value, str) else str(value)

# =============================================================================
# Retrieval Models
# =============================================================================

class RetrievedSource(BaseModel):
    """Provenance record for a passage retrieved from the vector index"""
    id: str
    title: str = "Untitled Source"
    url: Optional[str] = None
    score: Optional[float] = None

class VectorMatch(BaseModel):
    """Single nearest-neighbour hit returned by a vector index"""
    id: str
    score: Optional[float] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

class RetrievalResult(BaseModel):
    """Context passages and their sources for one pipeline run"""
    context: str = ""
    sources: List[RetrievedSource] = Field(default_factory=list)

class TextChunk(BaseModel):
    """Contiguous slice of the source text [start, end)"""
    text: str
    start: int = Field(..., ge=0)
    end: int = Field(..., ge=0)

    @property
    def weight(self) -> int:
        return len(self.text)

# =============================================================================
# Question Models
# =============================================================================

class SourceReference(BaseModel):
    """Source cited by a generated question"""
    id: Optional[str] = None
    title: Optional[str] = None

class QuizQuestion(BaseModel):
    """Candidate quiz question as produced by the generator"""
    id: Optional[str] = None
    type: str = QuestionType.MULTIPLE_CHOICE.value
    question_text: Optional[str] = Field(default=None, alias="questionText")
    options: Optional[List[str]] = None
    correct_answer: Union[str, List[str]] = Field(default="", alias="correctAnswer")
    explanation: Optional[str] = None
    bloom_level: Optional[str] = Field(default=None, alias="bloomLevel")
    sources: List[SourceReference] = Field(default_factory=list)
    language: Optional[str] = None
    accessibility_notes: Optional[str] = Field(default=None, alias="accessibilityNotes")

    class Config:
        populate_by_name = True

    @validator('options', pre=True)
    def stringify_options(cls, v):
        if isinstance(v, list):
            return [_stringify(item) for item in v]
        return v

    @validator('correct_answer', pre=True)
    def stringify_answer(cls, v):
        if v is None:
            return ""
        if isinstance(v, list):
            return [_stringify(item) for item in v]
        return _stringify(v)

    @validator('sources', pre=True)
    def normalize_sources(cls, v):
        """Models sometimes cite sources by bare title"""
        if v is None:
            return []
        if isinstance(v, list):
            return [{"title": item} if isinstance(item, str) else item for item in v]
        return v

    @property
    def is_multiple_choice(self) -> bool:
        return self.type == QuestionType.MULTIPLE_CHOICE.value

class ValidationVerdict(BaseModel):
    """Validity verdict for a single question"""
    question_id: Optional[str] = None
    valid: bool = True
    reasons: List[str] = Field(default_factory=list)

    def merge(self, other: "ValidationVerdict") -> "ValidationVerdict":
        """Combine two verdicts: validity is ANDed, reasons are concatenated"""
        return ValidationVerdict(
            question_id=self.question_id or other.question_id,
            valid=self.valid and other.valid,
            reasons=self.reasons + other.reasons
        )

class ValidationIssue(BaseModel):
    """Rejected question and why"""
    id: Optional[str] = None
    reasons: List[str] = Field(default_factory=list)

class SelectionResult(BaseModel):
    """Output of merge/fallback selection"""
    accepted: List[QuizQuestion] = Field(default_factory=list)
    rejected: List[ValidationIssue] = Field(default_factory=list)
    fallback_used: bool = False

# =============================================================================
# Request/Response Models
# =============================================================================

class QuizConfig(BaseModel):
    """Generation options for one pipeline run"""
    number_of_questions: int = Field(default=8, ge=1, le=100, alias="numberOfQuestions")
    difficulty: DifficultyLevel = DifficultyLevel.MEDIUM
    question_types: List[QuestionType] = Field(
        default_factory=lambda: list(DEFAULT_QUESTION_TYPES), alias="questionTypes"
    )
    language_code: str = Field(default="en", alias="languageCode")
    content_source: ContentSource = Field(default=ContentSource.PASTE, alias="contentSource")

    class Config:
        populate_by_name = True

    @validator('question_types')
    def validate_question_types(cls, v):
        if not v:
            raise ValueError("At least one question type is required")
        return v

class GenerateQuizRequest(QuizConfig):
    """Caller-facing request for validated quiz generation"""
    text: Optional[str] = None
    user_id: Optional[str] = Field(default=None, alias="userId")

class ValidationReport(BaseModel):
    """Summary of what the validators kept and rejected"""
    total: int = 0
    passed: int = 0
    filtered_out: int = Field(default=0, alias="filteredOut")
    issues: List[ValidationIssue] = Field(default_factory=list)

    class Config:
        populate_by_name = True

class StepDiagnostic(BaseModel):
    """Entry in a run's diagnostic trail"""
    step: str
    status: StepStatus
    detail: Optional[str] = None

class QuizResult(BaseModel):
    """Final, immutable result of one pipeline run"""
    title: str
    difficulty: DifficultyLevel
    requested_count: int = Field(..., alias="requestedCount")
    # questions precedes question_count so the count validator can see it
    questions: List[QuizQuestion] = Field(default_factory=list)
    question_count: int = Field(..., alias="questionCount")
    language: str = "en"
    content_source: ContentSource = Field(default=ContentSource.PASTE, alias="contentSource")
    validation_report: ValidationReport = Field(default_factory=ValidationReport, alias="validationReport")
    retrieved_sources: List[RetrievedSource] = Field(default_factory=list, alias="retrievedSources")
    diagnostics: List[StepDiagnostic] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=datetime.now, alias="generatedAt")

    class Config:
        populate_by_name = True
        frozen = True

    @validator('question_count')
    def validate_count_matches_questions(cls, v, values):
        questions = values.get('questions')
        if questions is not None and v != len(questions):
            raise ValueError("questionCount must match the length of questions list")
        return v

# =============================================================================
# Quiz Attempts and Hints
# =============================================================================

class QuizAttemptRequest(BaseModel):
    """Submitted answers for a quiz attempt"""
    user_id: Optional[str] = Field(default=None, alias="userId")
    quiz_id: Optional[str] = Field(default=None, alias="quizId")
    answers: Optional[List[Any]] = None
    correct_count: Optional[int] = Field(default=None, alias="correctCount")
    total_count: Optional[int] = Field(default=None, alias="totalCount")
    time_per_question: List[float] = Field(default_factory=list, alias="timePerQuestion")
    confidence: List[Any] = Field(default_factory=list)
    questions: List[QuizQuestion] = Field(default_factory=list)

    class Config:
        populate_by_name = True

class QuizAttemptResult(BaseModel):
    """Scoring and personalization for a submitted attempt"""
    attempt_id: str = Field(..., alias="attemptId")
    accuracy: float
    recommended_difficulty: DifficultyLevel = Field(..., alias="recommendedDifficulty")
    focus_areas: List[str] = Field(default_factory=list, alias="focusAreas")

    class Config:
        populate_by_name = True

class HintRequest(BaseModel):
    """Request for progressive hints on one question"""
    question: Optional[Dict[str, Any]] = None
    language_code: str = Field(default="en", alias="languageCode")

    class Config:
        populate_by_name = True

class HintResponse(BaseModel):
    """Progressive disclosure hints"""
    hints: List[str] = Field(default_factory=list)
    explanation: str = ""

    @validator('hints', pre=True)
    def stringify_hints(cls, v):
        if isinstance(v, str):
            return [v]
        if isinstance(v, list):
            return [_stringify(item) for item in v]
        return v

class HealthResponse(BaseModel):
    """Response model for health check"""
    status: str
    openai_status: str
    gemini_status: str
    timestamp: datetime
