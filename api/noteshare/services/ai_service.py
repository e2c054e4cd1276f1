"""
Generative-AI features: subject quizzes and the motivational quote.

Both go through a LangChain chat model (Gemini by default, OpenAI when
AI_PROVIDER=openai). Nothing here writes to the database; a failed quiz
generation surfaces as UpstreamError, a failed quote falls back to a
fixed line.
"""
import json
import logging
import re
from typing import List, Optional

from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI
from pydantic import ValidationError as PydanticValidationError

from ..config.settings import (
    AI_MAX_RETRIES, AI_PROVIDER, AI_REQUEST_TIMEOUT, CHAT_MODEL,
    GOOGLE_API_KEY, OPENAI_API_KEY, QUIZ_QUESTION_COUNT,
)
from ..core.errors import UpstreamError
from ..models.quiz import QuizQuestion

logger = logging.getLogger(__name__)

QUIZ_FAILURE_MESSAGE = "Failed to generate quiz. Please try again."
FALLBACK_QUOTE = "Success is the sum of small efforts, repeated day in and day out."

QUIZ_PROMPT = """Generate {count} multiple choice questions for the subject: {subject}.
Each question should have 4 options and one correct answer. Provide an explanation for the correct answer.

Return only a JSON array, no additional text. Each element must be an object with:
- "question": the question text
- "options": an array of exactly 4 strings
- "correctAnswer": the index of the correct option (0-3)
- "explanation": why the correct option is right"""

QUOTE_PROMPT = (
    "Give me a short, powerful, and unique motivational quote for a college student "
    "aiming to be a topper. Keep it under 20 words."
)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def get_chat_model(temperature: float = 0.7, request_timeout: int = AI_REQUEST_TIMEOUT, max_retries: int = AI_MAX_RETRIES):
    """Get chat model based on configured AI provider"""
    if AI_PROVIDER == "google":
        if not GOOGLE_API_KEY:
            raise UpstreamError("GOOGLE_API_KEY is required when AI_PROVIDER is set to 'google'")
        return ChatGoogleGenerativeAI(
            model=CHAT_MODEL,
            temperature=temperature,
            google_api_key=GOOGLE_API_KEY,
            timeout=request_timeout,
            max_retries=max_retries,
        )
    if not OPENAI_API_KEY:
        raise UpstreamError("OPENAI_API_KEY is required when AI_PROVIDER is set to 'openai'")
    return ChatOpenAI(
        model=CHAT_MODEL,
        temperature=temperature,
        api_key=OPENAI_API_KEY,
        timeout=request_timeout,
        max_retries=max_retries,
    )


def message_text(message) -> str:
    """Plain text of a chat response; some providers return content parts"""
    content = getattr(message, "content", message)
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        content = "".join(parts)
    return (content or "").strip()


def parse_quiz_payload(text: str) -> List[QuizQuestion]:
    """
    Parse the model's JSON answer into validated questions.

    Accepts a bare array, an array wrapped in a markdown code fence, or an
    object holding the array under "questions".

    Raises:
        ValueError: not JSON, wrong shape, or an invalid question
    """
    cleaned = _FENCE_RE.sub("", text.strip())
    data = json.loads(cleaned)
    if isinstance(data, dict):
        data = data.get("questions")
    if not isinstance(data, list) or not data:
        raise ValueError("expected a non-empty JSON array of questions")
    try:
        return [QuizQuestion.model_validate(item) for item in data]
    except PydanticValidationError as e:
        raise ValueError(f"invalid question in payload: {e}") from e


class QuizService:
    def __init__(self, chat_model):
        self.chat_model = chat_model

    def generate_quiz(self, subject: str, count: Optional[int] = None) -> List[QuizQuestion]:
        count = count or QUIZ_QUESTION_COUNT
        prompt = QUIZ_PROMPT.format(count=count, subject=subject)

        try:
            response = self.chat_model.invoke(prompt)
        except Exception as e:
            logger.error(f"Quiz generation call failed for '{subject}': {type(e).__name__}: {e}")
            raise UpstreamError(QUIZ_FAILURE_MESSAGE) from e

        try:
            questions = parse_quiz_payload(message_text(response))
        except ValueError as e:
            logger.error(f"Unusable quiz payload for '{subject}': {e}")
            raise UpstreamError(QUIZ_FAILURE_MESSAGE) from e

        logger.info(f"Generated {len(questions)} quiz questions for '{subject}'")
        return questions

    def motivational_quote(self) -> str:
        try:
            quote = message_text(self.chat_model.invoke(QUOTE_PROMPT)).strip('"')
        except Exception as e:
            logger.warning(f"Quote generation failed, using fallback: {type(e).__name__}: {e}")
            return FALLBACK_QUOTE
        return quote or FALLBACK_QUOTE


def get_quiz_service() -> QuizService:
    return QuizService(get_chat_model())


def get_quote_service() -> Optional[QuizService]:
    """Quote generation never fails the request, even without an API key"""
    try:
        return QuizService(get_chat_model(temperature=0.9))
    except UpstreamError as e:
        logger.warning(f"Quote model unavailable: {e.message}")
        return None
