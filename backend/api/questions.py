# backend/api/questions.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_settings
from core.config import Settings
from schemas.feedback import QuestionOut

router = APIRouter(prefix="/api/questions", tags=["questions"])


def pick_question(questions: List[str], answered: int) -> QuestionOut:
    index = answered % len(questions)
    return QuestionOut(index=index, total=len(questions), question=questions[index])


@router.get("", response_model=List[str])
def list_questions(settings: Settings = Depends(get_settings)):
    return settings.questions


@router.get("/next", response_model=QuestionOut)
def next_question(
    answered: int = Query(0, ge=0),
    settings: Settings = Depends(get_settings),
):
    """Question for a session that has already answered `answered` questions."""
    if not settings.questions:
        raise HTTPException(status_code=404, detail="Question bank is empty")
    return pick_question(settings.questions, answered)
