from pydantic import BaseModel
from typing import List, Optional

class Mistake(BaseModel):
    question_id: int
    question_text: str
    image_url: Optional[str] = None
    youtube_link: Optional[str] = None
    selected_option: str
    correct_option: str

class TopicGroup(BaseModel):
    topic_name: str
    topic_video_link: Optional[str] = None
    questions: List[Mistake]

class ResultView(BaseModel):
    attempt_id: int
    exam_title: str
    student_name: str
    score: int
    time_taken_seconds: int
    time_taken_display: str
    mistake_count: int
    topics: List[TopicGroup]
