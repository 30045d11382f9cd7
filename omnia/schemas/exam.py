from pydantic import BaseModel, Field
from datetime import datetime

class ExamCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    duration_minutes: int = 60
    question_set_id: int

class Exam(BaseModel):
    id: int
    title: str
    duration_minutes: int
    created_at: datetime
    question_count: int
    link: str

class ExamCreated(BaseModel):
    id: int
    link: str
