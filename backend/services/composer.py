# backend/services/composer.py
from schemas.feedback import (
    ConfidenceResult,
    ContentResult,
    FeedbackReport,
    GrammarResult,
    TranscriptionResult,
)


def compose_report(
    question: str,
    transcription: TranscriptionResult,
    grammar: GrammarResult,
    confidence: ConfidenceResult,
    content: ContentResult,
) -> FeedbackReport:
    """Field selection only; same inputs always give the same report."""
    return FeedbackReport(
        question=question,
        transcription=transcription.text,
        grammar_score=grammar.score,
        grammar_comments=grammar.comments,
        confidence_score=confidence.score,
        confidence_comments=confidence.comments,
        confidence_metrics=confidence.metrics,
        content_score=content.score,
        content_comments=content.comments,
        strengths=list(content.strengths or []),
        weaknesses=list(content.weaknesses or []),
        improvement_suggestions=list(content.improvement_suggestions or []),
    )
