from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class QuizRequest(BaseModel):
    subject: str = Field(..., min_length=1)
    count: Optional[int] = Field(None, ge=1, le=20, description="Number of questions, defaults to QUIZ_QUESTION_COUNT")


class QuizQuestion(BaseModel):
    question: str = Field(..., min_length=1)
    options: List[str]
    correctAnswer: int = Field(..., description="Index of the correct option (0-3)")
    explanation: str = ""

    @model_validator(mode="after")
    def check_answer_index(self):
        if len(self.options) != 4:
            raise ValueError("each question needs exactly 4 options")
        if not 0 <= self.correctAnswer < len(self.options):
            raise ValueError("correctAnswer must index one of the options")
        return self


class QuizResponse(BaseModel):
    subject: str
    questions: List[QuizQuestion]


class QuoteResponse(BaseModel):
    quote: str
