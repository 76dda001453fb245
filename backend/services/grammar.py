# backend/services/grammar.py
from __future__ import annotations
import math
import random
import re
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import httpx

from core.config import Settings
from schemas.feedback import ErrorContext, GrammarError, GrammarResult

log = logging.getLogger(__name__)

CONTEXT_RADIUS = 15

FALLBACK_RESULT_COMMENTS = (
    "Unable to perform detailed grammar analysis. Overall, your response appears to have "
    "generally correct grammar with possibly a few minor issues."
)


@dataclass(frozen=True)
class GrammarRule:
    message: str
    pattern: re.Pattern
    type: str


DEFAULT_RULES: List[GrammarRule] = [
    GrammarRule(
        "Use of passive voice",
        re.compile(r"\b(is|are|was|were|be|been|being)\s+\w+ed\b", re.I),
        "style",
    ),
    GrammarRule("Double spaces between words", re.compile(r"\s{2,}"), "typographical"),
    GrammarRule(
        "Missing comma after introductory phrase",
        re.compile(
            r"^(however|therefore|moreover|furthermore|consequently|nevertheless|additionally)\s+(?!,)",
            re.I,
        ),
        "punctuation",
    ),
    GrammarRule(
        "Run-on sentence",
        re.compile(r"\b(and|but|or|so|for|yet|nor)\b" + r"\s+\w+" * 9, re.I),
        "grammar",
    ),
    GrammarRule(
        "Possible subject-verb agreement error",
        re.compile(r"\b(the team|everyone|somebody|anybody|nobody|everybody)\s+\b(are|were|have)\b", re.I),
        "grammar",
    ),
]


# ------------------------------
# Normalization (live matches vs heuristic matches)
# ------------------------------
def from_languagetool_match(match: Dict[str, Any]) -> GrammarError:
    ctx = match.get("context") or {}
    rule = match.get("rule") or {}
    return GrammarError(
        source="languagetool",
        message=match.get("message") or rule.get("description") or "Grammar issue",
        description=rule.get("description"),
        type=rule.get("issueType") or (rule.get("category") or {}).get("id") or "grammar",
        context=ErrorContext(
            text=ctx.get("text", ""),
            offset=int(ctx.get("offset", 0) or 0),
            length=int(ctx.get("length", 0) or 0),
        ),
    )


def heuristic_check(
    text: str,
    rng: random.Random,
    rules: Sequence[GrammarRule] = DEFAULT_RULES,
) -> List[GrammarError]:
    """
    Regex stand-in for the live checker: each rule fires at most once,
    then 1-2 of the hits are kept (the extra one picked by `rng`).
    """
    found: List[GrammarError] = []
    for rule in rules:
        m = rule.pattern.search(text)
        if not m:
            continue
        start, end = m.start(), m.end()
        ctx_start = max(0, start - CONTEXT_RADIUS)
        ctx_end = min(len(text), end + CONTEXT_RADIUS)
        found.append(GrammarError(
            source="heuristic",
            message=rule.message,
            type=rule.type,
            context=ErrorContext(text=text[ctx_start:ctx_end], offset=start - ctx_start, length=end - start),
        ))

    extra = rng.randrange(2)
    return found[: 1 + extra]


# ------------------------------
# Scoring
# ------------------------------
def grammar_score(error_count: int, text: str) -> int:
    if error_count == 0:
        return 10
    word_count = len(text.split(" "))
    density = error_count / word_count
    penalty = min(5, math.ceil(density * 100))
    return max(5, 10 - penalty)


def grammar_comments(errors: List[GrammarError]) -> str:
    n = len(errors)
    if n == 0:
        comments = "Your grammar is excellent. No significant issues were found in your response."
    elif n < 3:
        comments = f"Your grammar is generally good with only {n} minor issues that could be improved."
    elif n < 7:
        comments = f"There are {n} grammar issues in your response that should be addressed to improve clarity."
    else:
        comments = (
            f"Your response contains {n} grammar issues that significantly impact "
            "readability and professionalism."
        )

    if errors:
        examples = "; ".join(f'"{e.context.text}" ({e.label})' for e in errors[:3])
        comments += f" Examples include: {examples}."
    return comments


def fallback_result() -> GrammarResult:
    return GrammarResult(score=7, comments=FALLBACK_RESULT_COMMENTS, errors=[], is_fallback=True)


# ------------------------------
# Client
# ------------------------------
async def _languagetool_check(text: str, http: httpx.AsyncClient, url: str) -> List[GrammarError]:
    r = await http.post(
        url,
        data={"text": text, "language": "en-US", "disabledRules": "WHITESPACE_RULE"},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    r.raise_for_status()
    matches = (r.json() or {}).get("matches") or []
    return [from_languagetool_match(m) for m in matches]


async def check_grammar(
    text: str,
    http: httpx.AsyncClient,
    settings: Settings,
    rng: Optional[random.Random] = None,
    rules: Sequence[GrammarRule] = DEFAULT_RULES,
) -> GrammarResult:
    rng = rng or random.Random()
    try:
        used_fallback = False
        try:
            errors = await _languagetool_check(text, http, settings.languagetool_url)
            log.info("Found %d grammar issues with LanguageTool", len(errors))
        except Exception as e:
            log.warning("LanguageTool call failed (%s); using heuristic grammar check", e)
            errors = heuristic_check(text, rng, rules)
            used_fallback = True

        return GrammarResult(
            score=grammar_score(len(errors), text),
            comments=grammar_comments(errors),
            errors=errors,
            is_fallback=used_fallback,
        )
    except Exception:
        log.exception("Error checking grammar")
        return fallback_result()
