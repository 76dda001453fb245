from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TranscriptionResult(BaseModel):
    text: str
    segments: List[Dict[str, Any]] = Field(default_factory=list)
    language: str = "en"
    is_fallback: bool = False


class ErrorContext(BaseModel):
    text: str
    offset: int = 0
    length: int = 0


class GrammarError(BaseModel):
    """
    One grammar finding, normalized at the client boundary.
    `source` tells whether it came from the live checker or the regex heuristic;
    `description` is the live checker's rule description when it has one.
    """

    source: Literal["languagetool", "heuristic"]
    message: str
    description: Optional[str] = None
    type: str = "grammar"
    context: ErrorContext

    @property
    def label(self) -> str:
        return self.description or self.message


class GrammarResult(BaseModel):
    score: int = Field(ge=1, le=10)
    comments: str
    errors: List[GrammarError] = Field(default_factory=list)
    is_fallback: bool = False


class ConfidenceMetrics(CamelModel):
    word_count: int = 0
    estimated_duration: float = 0.0
    speaking_rate: float = 0.0
    pause_rate: float = 0.0
    filler_word_rate: float = 0.0
    pitch_variation: float = 0.0
    volume_variation: float = 0.0


class ConfidenceResult(BaseModel):
    score: int = Field(ge=1, le=10)
    comments: str
    metrics: ConfidenceMetrics
    is_fallback: bool = False


class ContentResult(CamelModel):
    score: int = Field(ge=1, le=10)
    comments: str
    strengths: List[str] = Field(default_factory=list, max_length=3)
    weaknesses: List[str] = Field(default_factory=list, max_length=3)
    improvement_suggestions: List[str] = Field(default_factory=list, max_length=3)
    is_fallback: bool = False


class FeedbackReport(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    question: str
    transcription: str
    grammar_score: int
    grammar_comments: str
    confidence_score: int
    confidence_comments: str
    confidence_metrics: ConfidenceMetrics
    content_score: int
    content_comments: str
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    improvement_suggestions: List[str] = Field(default_factory=list)


class QuestionOut(BaseModel):
    index: int
    total: int
    question: str
