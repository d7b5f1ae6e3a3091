"""Pydantic schemas for quizzes."""
from pydantic import BaseModel, Field, model_validator

OPTIONS_PER_QUESTION = 4


class QuizQuestion(BaseModel):
    question: str = Field(min_length=1)
    options: list[str] = Field(min_length=OPTIONS_PER_QUESTION, max_length=OPTIONS_PER_QUESTION)
    correctAnswer: str = Field(min_length=1)

    @model_validator(mode="after")
    def correct_answer_is_an_option(self):
        if self.correctAnswer not in self.options:
            raise ValueError("correctAnswer must be one of the options")
        return self


class QuizOutSchema(BaseModel):
    quizId: str
    quiz: list[QuizQuestion]
