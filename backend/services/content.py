# backend/services/content.py
"""
Content relevance/quality analysis.

Primary path asks a hosted chat-completion model (Mistral) for a JSON critique.
When no API key is configured, the call fails, or the reply cannot be parsed,
a keyword-overlap heuristic produces the same shape instead.
"""
from __future__ import annotations
import json
import re
import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx

from core.config import DEFAULT_STOP_WORDS, Settings
from schemas.feedback import ContentResult

log = logging.getLogger(__name__)

MAX_ITEMS = 3
MAX_KEYWORDS = 10

SYS_PROMPT = (
    "You are an expert interview coach who analyzes interview responses "
    "and provides structured feedback in JSON format."
)

USER_TPL = """You are an expert interview coach analyzing an HR interview response.

Question: "{question}"

Response: "{response}"

Please analyze this interview response in terms of content relevance, depth, and quality. Provide the following in JSON format:
1. A score from 1-10
2. Brief comments on the overall quality
3. List of 2-3 strengths
4. List of 2-3 weaknesses
5. List of 2-3 improvement suggestions

Format your response as JSON with the following keys: score, comments, strengths, weaknesses, improvementSuggestions"""

DEFAULT_COMMENTS = "Your response is relevant to the question and provides good detail."
DEFAULT_STRENGTHS = ["Addresses the question", "Shows relevant experience"]
DEFAULT_WEAKNESSES = ["Could be more specific", "Lacks concrete examples"]
DEFAULT_SUGGESTIONS = ["Add specific examples", "Quantify your achievements"]


class ContentParseError(ValueError):
    pass


def _clamp(score: float) -> int:
    return min(10, max(1, int(score)))


def _cap(items: Iterable[Any]) -> List[str]:
    return [str(i).strip() for i in items if str(i).strip()][:MAX_ITEMS]


# ------------------------------
# Keywords / heuristic
# ------------------------------
def extract_keywords(text: str, stop_words: Iterable[str] = DEFAULT_STOP_WORDS) -> List[str]:
    stop = set(stop_words)
    words = re.sub(r"[^\w\s]", "", (text or "").lower()).split()
    return [w for w in words if w not in stop and len(w) > 2][:MAX_KEYWORDS]


def keyword_match_rate(question_keywords: List[str], response_keywords: List[str]) -> float:
    if not question_keywords:
        return 0.5
    hits = sum(
        1 for kw in question_keywords
        if any(kw in rk or rk in kw for rk in response_keywords)
    )
    return hits / len(question_keywords)


def heuristic_analysis(
    question: str,
    response: str,
    stop_words: Iterable[str] = DEFAULT_STOP_WORDS,
) -> ContentResult:
    words = response.split()
    word_count = len(words)
    sentence_count = len(re.findall(r"[.!?]+", response))
    avg_sentence_len = word_count / max(1, sentence_count)

    stop_words = list(stop_words)
    match_rate = keyword_match_rate(
        extract_keywords(question, stop_words),
        extract_keywords(response, stop_words),
    )

    complex_words = sum(1 for w in words if len(w) > 8)
    complexity_rate = complex_words / max(1, word_count)

    score = 5.0
    score += match_rate * 3

    if word_count < 50:
        score -= 2
    elif word_count < 100:
        score -= 1
    elif word_count > 200:
        score += 0.5
    else:
        score += 1

    score += min(1, complexity_rate * 5)

    if avg_sentence_len > 25:
        score -= 0.5
    elif avg_sentence_len < 10:
        score -= 0.5
    else:
        score += 0.5

    content_score = min(10, max(1, int(score + 0.5)))

    lower = response.lower()
    tokens = set(re.sub(r"[^\w\s]", "", lower).split())

    strengths: List[str] = []
    if match_rate > 0.7:
        strengths.append("Your response is highly relevant to the question")
    if word_count > 100:
        strengths.append("You provided a detailed response with good depth")
    if complexity_rate > 0.1:
        strengths.append("You used sophisticated vocabulary and concepts")
    if any(k in lower for k in ("example", "instance", "specifically")):
        strengths.append("You included specific examples to illustrate your points")

    weaknesses: List[str] = []
    if match_rate < 0.5:
        weaknesses.append("Your response could be more closely aligned with the question")
    if word_count < 75:
        weaknesses.append("Your answer lacks sufficient detail and development")
    if word_count > 250:
        weaknesses.append("Your response is verbose and could be more concise")
    if "i" not in tokens or "my" not in tokens:
        weaknesses.append("Your answer lacks personal experience or examples")

    if not strengths:
        strengths = [
            "You addressed the basic requirements of the question",
            "Your response has a logical structure",
        ]
    if not weaknesses:
        weaknesses = ["Consider adding more detail to strengthen your response"]

    suggestions: List[str] = []
    if match_rate < 0.6:
        suggestions.append("Make sure to directly address the key aspects of the question")
    if word_count < 100:
        suggestions.append("Provide more specific examples or details to support your response")
    if content_score < 7:
        suggestions.append("Structure your answer using the STAR method (Situation, Task, Action, Result)")
    if not any(k in lower for k in ("achieve", "success", "accomplish")):
        suggestions.append("Include specific achievements or successes to make your answer more impactful")

    if content_score >= 9:
        comment = ["Your response is excellent, demonstrating strong relevance to the question with appropriate detail and examples."]
    elif content_score >= 7:
        comment = ["Your response is good, addressing the question well with adequate detail."]
    elif content_score >= 5:
        comment = ["Your response is adequate but could be improved in terms of relevance and detail."]
    else:
        comment = ["Your response needs significant improvement to adequately address the question."]

    if match_rate < 0.5:
        comment.append("Your answer doesn't fully address the key aspects of the question.")
    if word_count < 75:
        comment.append("Consider providing more detail and examples in your response.")
    elif word_count > 250:
        comment.append("Your response is detailed but could be more concise.")
    comment.append("Remember that interviewers are looking for specific examples that demonstrate your skills and experience.")

    return ContentResult(
        score=content_score,
        comments=" ".join(comment),
        strengths=_cap(strengths),
        weaknesses=_cap(weaknesses),
        improvement_suggestions=_cap(suggestions),
    )


def fallback_result() -> ContentResult:
    return ContentResult(
        score=7,
        comments="Your response is relevant to the question and provides adequate detail.",
        strengths=["Addresses the question directly", "Provides some supporting details"],
        weaknesses=["Could include more specific examples"],
        improvement_suggestions=["Consider adding specific achievements to strengthen your answer"],
        is_fallback=True,
    )


# ------------------------------
# LLM reply parsing
# ------------------------------
def _bullets(section: Optional[re.Match]) -> List[str]:
    if not section:
        return []
    return _cap(re.findall(r"[-*]\s*([^\n]+)", section.group(1)))


def _leading_int(value: Any) -> int:
    """Integer prefix of a score such as 8, 8.5, "8/10" or " 9 points"; 0 when there is none."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    m = re.match(r"\s*([+-]?\d+)", str(value or ""))
    return int(m.group(1)) if m else 0


def extract_structured_data(text: str) -> Dict[str, Any]:
    """Last-resort reader for free-text replies: score, comments and bulleted sections."""
    out: Dict[str, Any] = {
        "score": 7,
        "comments": "",
        "strengths": [],
        "weaknesses": [],
        "improvementSuggestions": [],
    }

    m = re.search(r"score[:\s]*(\d+)", text, re.I) or re.search(r"rating[:\s]*(\d+)", text, re.I)
    if m:
        out["score"] = _clamp(int(m.group(1)))

    m = re.search(r"comments[:\s]*([^\n]+)", text, re.I) or re.search(r"feedback[:\s]*([^\n]+)", text, re.I)
    if m:
        out["comments"] = m.group(1).strip()
    else:
        paragraphs = [p.strip() for p in text.split("\n") if p.strip() and not p.lstrip().startswith("#")]
        if paragraphs:
            out["comments"] = paragraphs[0]

    out["strengths"] = _bullets(re.search(r"strengths[:\s]*([\s\S]*?)(?=weaknesses|improvement|$)", text, re.I))
    out["weaknesses"] = _bullets(re.search(r"weaknesses[:\s]*([\s\S]*?)(?=strengths|improvement|$)", text, re.I))
    out["improvementSuggestions"] = _bullets(
        re.search(r"suggestions[:\s]*([\s\S]*?)(?=strengths|weaknesses|$)", text, re.I)
        or re.search(r"improvements[:\s]*([\s\S]*?)(?=strengths|weaknesses|$)", text, re.I)
    )
    return out


def parse_llm_reply(text: str) -> ContentResult:
    """
    Fenced ```json block, else the widest {...} span, else regex extraction.
    Raises ContentParseError when a JSON candidate is found but does not parse.
    """
    fenced = re.search(r"```json\s*\n([\s\S]*?)\n\s*```", text)
    bare = None if fenced else re.search(r"\{[\s\S]*\}", text)

    if fenced or bare:
        blob = fenced.group(1) if fenced else bare.group(0)
        try:
            data = json.loads(blob)
        except ValueError as e:
            raise ContentParseError(f"Unparsable JSON in LLM reply: {e}") from e
        if not isinstance(data, dict):
            raise ContentParseError("LLM JSON reply is not an object")
    else:
        data = extract_structured_data(text)

    raw_score = _leading_int(data.get("score"))
    score = _clamp(raw_score) if raw_score else 7

    def _list(key: str, default: List[str]) -> List[str]:
        val = data.get(key)
        return _cap(val) if isinstance(val, list) and val else list(default)

    return ContentResult(
        score=score,
        comments=str(data.get("comments") or DEFAULT_COMMENTS),
        strengths=_list("strengths", DEFAULT_STRENGTHS),
        weaknesses=_list("weaknesses", DEFAULT_WEAKNESSES),
        improvement_suggestions=_list("improvementSuggestions", DEFAULT_SUGGESTIONS),
    )


# ------------------------------
# Client
# ------------------------------
async def _mistral_call(prompt: str, http: httpx.AsyncClient, settings: Settings) -> str:
    headers = {"Authorization": f"Bearer {settings.mistral_api_key}"}
    payload = {
        "model": settings.mistral_model,
        "messages": [
            {"role": "system", "content": SYS_PROMPT},
            {"role": "user", "content": prompt},
        ],
        "temperature": 0.3,
        "max_tokens": 800,
    }
    r = await http.post(settings.mistral_url, headers=headers, json=payload)
    r.raise_for_status()
    data = r.json()
    return data["choices"][0]["message"]["content"]


def _heuristic_or_fallback(question: str, response: str, settings: Settings) -> ContentResult:
    try:
        result = heuristic_analysis(question, response, settings.stop_words)
        return result.model_copy(update={"is_fallback": True})
    except Exception:
        log.exception("Heuristic content analysis failed")
        return fallback_result()


async def analyze_content(
    question: str,
    response: str,
    http: httpx.AsyncClient,
    settings: Settings,
) -> ContentResult:
    question = question or ""
    response = response or ""

    if not settings.mistral_api_key:
        log.warning("Mistral API key not found, using simulated analysis")
        return _heuristic_or_fallback(question, response, settings)

    log.info("Sending content to Mistral AI for analysis")
    try:
        reply = await _mistral_call(USER_TPL.format(question=question, response=response), http, settings)
    except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
        log.warning("Mistral call failed (%s); using simulated analysis", e)
        return _heuristic_or_fallback(question, response, settings)

    try:
        return parse_llm_reply(reply)
    except Exception as e:
        log.warning("Error parsing Mistral reply (%s); using simulated analysis", e)
        return _heuristic_or_fallback(question, response, settings)
