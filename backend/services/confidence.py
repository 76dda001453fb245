# backend/services/confidence.py
"""
Speaking-confidence estimate.

Nothing here listens to the audio: every metric is derived from the transcript,
and pitch/volume variation are drawn from `rng` in [0.4, 0.8]. Pass a seeded
`random.Random` to get reproducible scores.
"""
from __future__ import annotations
import math
import random
import re
import logging
from typing import Iterable, Optional

from core.config import DEFAULT_FILLER_WORDS
from schemas.feedback import ConfidenceMetrics, ConfidenceResult

log = logging.getLogger(__name__)

BASELINE_SCORE = 7
WORDS_PER_SECOND = 2.5
PAUSE_MARKS = re.compile(r"[.!?,;]")

FALLBACK_COMMENTS = (
    "Your speaking confidence appears to be good based on your delivery pattern. "
    "Consider maintaining a steady pace and varying your tone to enhance audience engagement."
)
NO_SPEECH_COMMENTS = (
    "No speech was detected in your recording, so confidence could not be assessed in detail. "
    "Make sure your microphone is working and answer the question out loud."
)


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _clamp_score(x: float) -> int:
    return min(10, max(1, _round_half_up(x)))


def _variation(rng: random.Random) -> float:
    return 0.4 + rng.random() * 0.4


def speech_metrics(
    transcription: str,
    rng: random.Random,
    filler_words: Iterable[str] = DEFAULT_FILLER_WORDS,
) -> ConfidenceMetrics:
    words = transcription.split()
    word_count = len(words)
    pitch = _variation(rng)
    volume = _variation(rng)

    if word_count == 0:
        return ConfidenceMetrics(word_count=0, pitch_variation=pitch, volume_variation=volume)

    fillers = {w.lower() for w in filler_words}
    estimated_duration = word_count / WORDS_PER_SECOND
    filler_count = sum(1 for w in words if w.lower() in fillers)
    # always 150 wpm given estimated_duration above; left as-is
    speaking_rate = (word_count / estimated_duration) * 60
    punctuation_count = len(PAUSE_MARKS.findall(transcription))

    return ConfidenceMetrics(
        word_count=word_count,
        estimated_duration=estimated_duration,
        speaking_rate=speaking_rate,
        pause_rate=punctuation_count / word_count,
        filler_word_rate=filler_count / word_count,
        pitch_variation=pitch,
        volume_variation=volume,
    )


def confidence_score(m: ConfidenceMetrics) -> int:
    if m.word_count == 0:
        return BASELINE_SCORE

    score = float(BASELINE_SCORE)

    if m.speaking_rate > 180:
        score -= 0.5
    elif m.speaking_rate < 120:
        score -= 0.5
    else:
        score += 0.5

    if m.filler_word_rate > 0.05:
        score -= m.filler_word_rate * 30
    else:
        score += 0.5

    score += (m.pitch_variation - 0.5) * 2
    score += (m.volume_variation - 0.5) * 1.5

    if m.pause_rate < 0.05:
        score -= 1
    elif m.pause_rate > 0.2:
        score += 0.5

    return _clamp_score(score)


def confidence_comments(m: ConfidenceMetrics, score: int) -> str:
    if m.word_count == 0:
        return NO_SPEECH_COMMENTS

    if score >= 9:
        parts = ["Your delivery demonstrates exceptional confidence."]
    elif score >= 7:
        parts = ["You speak with good confidence."]
    elif score >= 5:
        parts = ["Your speaking confidence is adequate but could be improved."]
    else:
        parts = ["Your delivery lacks confidence and needs significant improvement."]

    if m.speaking_rate > 180:
        parts.append("Your speaking pace is quite fast, which might make it difficult for listeners to follow. Try slowing down.")
    elif m.speaking_rate < 120:
        parts.append("You speak somewhat slowly, which might reduce perceived confidence. Try increasing your pace slightly.")
    else:
        parts.append("Your speaking pace is well-balanced.")

    if m.filler_word_rate > 0.08:
        parts.append('You use a high number of filler words like "um" or "uh", which significantly reduces perceived confidence.')
    elif m.filler_word_rate > 0.03:
        parts.append("Try to reduce your use of filler words to sound more confident.")
    else:
        parts.append("You use minimal filler words, which enhances your perceived confidence.")

    if m.pitch_variation < 0.5:
        parts.append("Your tone lacks variation, which can make your delivery sound monotonous. Try varying your pitch to engage listeners.")
    else:
        parts.append("Your voice has good tonal variety, helping to maintain listener engagement.")

    if score < 8:
        parts.append("Practice speaking with deliberate pauses and emphasis on key points to enhance your confidence.")
    else:
        parts.append("Maintain this confident speaking style in your interviews.")

    return " ".join(parts)


def fallback_result() -> ConfidenceResult:
    return ConfidenceResult(
        score=BASELINE_SCORE,
        comments=FALLBACK_COMMENTS,
        metrics=ConfidenceMetrics(
            speaking_rate=150,
            pause_rate=0.15,
            filler_word_rate=0.02,
            pitch_variation=0.6,
            volume_variation=0.5,
        ),
        is_fallback=True,
    )


def analyze_confidence(
    transcription: str,
    rng: Optional[random.Random] = None,
    filler_words: Iterable[str] = DEFAULT_FILLER_WORDS,
) -> ConfidenceResult:
    try:
        metrics = speech_metrics(transcription or "", rng or random.Random(), filler_words)
        score = confidence_score(metrics)
        return ConfidenceResult(score=score, comments=confidence_comments(metrics, score), metrics=metrics)
    except Exception:
        log.exception("Error analyzing confidence")
        return fallback_result()
