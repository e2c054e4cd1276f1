from fastapi import APIRouter, Depends
from typing import Optional
import logging

from ..core.security import TokenUser, get_current_user
from ..models.quiz import QuizRequest, QuizResponse, QuoteResponse
from ..services.ai_service import (
    FALLBACK_QUOTE, QuizService, get_quiz_service, get_quote_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["ai"])


@router.post("/quiz/generate", response_model=QuizResponse)
def generate_quiz(
    request: QuizRequest,
    current_user: TokenUser = Depends(get_current_user),
    quiz_service: QuizService = Depends(get_quiz_service),
):
    """Multiple-choice quiz for a subject, generated by the chat model"""
    logger.info(f"User {current_user.id} requested a {request.subject} quiz")
    questions = quiz_service.generate_quiz(request.subject, request.count)
    return {"subject": request.subject, "questions": questions}


@router.get("/quote", response_model=QuoteResponse)
def motivational_quote(quote_service: Optional[QuizService] = Depends(get_quote_service)):
    """Short motivational line for the home page; never fails"""
    if quote_service is None:
        return {"quote": FALLBACK_QUOTE}
    return {"quote": quote_service.motivational_quote()}
