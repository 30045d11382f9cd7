from pydantic import BaseModel
from typing import Dict, List, Literal, Optional
from omnia.schemas.question_bank import Option

class DeliveryQuestion(BaseModel):
    """A question as shown to a student, without its answer key."""
    id: int
    question_text: str
    options: List[Option]
    image_url: Optional[str] = None

class Session(BaseModel):
    session_id: str
    exam_id: int
    title: str
    duration_minutes: int
    status: str
    time_left: int
    current_index: int
    question_count: int
    current_question: DeliveryQuestion
    questions: List[DeliveryQuestion]
    answers: Dict[int, str]
    attempt_id: Optional[int] = None

class StartIn(BaseModel):
    name: str
    email: str

class AnswerIn(BaseModel):
    option: str

class NavigateIn(BaseModel):
    direction: Optional[Literal["next", "previous"]] = None
    index: Optional[int] = None

class SubmitOut(BaseModel):
    attempt_id: int
    score: int
    time_taken_seconds: int
    results_url: str
