from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator

class QuizCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)

class Quiz(BaseModel):
    id: int
    course_id: int
    title: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

class QuestionCreate(BaseModel):
    prompt: str = Field(min_length=1)
    choices: List[str] = Field(min_length=2)
    correct_index: int = Field(ge=0)

    @model_validator(mode="after")
    def _index_in_choices(self):
        if self.correct_index >= len(self.choices):
            raise ValueError("correct_index must point at one of the choices")
        return self

class QuestionUpdate(BaseModel):
    prompt: Optional[str] = Field(default=None, min_length=1)
    choices: Optional[List[str]] = Field(default=None, min_length=2)
    correct_index: Optional[int] = Field(default=None, ge=0)

class PublicQuestion(BaseModel):
    id: int
    quiz_id: int
    prompt: str
    choices: List[str]

    model_config = {"from_attributes": True}

class Question(PublicQuestion):
    correct_index: int

class QuizDetail(BaseModel):
    quiz: Quiz
    # students get PublicQuestion, owners and admins get Question
    questions: List[Question | PublicQuestion]

class SubmitQuizRequest(BaseModel):
    answers: List[int] = Field(min_length=1)

    @model_validator(mode="after")
    def _non_negative(self):
        if any(a < 0 for a in self.answers):
            raise ValueError("answers must be non-negative choice indices")
        return self

class SubmissionCreate(BaseModel):
    quiz_id: int
    user_id: int
    answers: List[int]
    score: float

class QuestionResult(BaseModel):
    id: int
    correct: bool

class SubmissionResult(BaseModel):
    total: int
    correct: int
    score: float
    questions: List[QuestionResult]

class Submission(BaseModel):
    id: int
    quiz_id: int
    user_id: int
    answers: List[int]
    score: float
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

class Submitter(BaseModel):
    id: int
    name: str
    email: str

class SubmissionWithUser(BaseModel):
    id: int
    user: Submitter
    score: float
    answers: List[int]
    created_at: Optional[datetime] = None
