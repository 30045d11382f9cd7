from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

class Option(BaseModel):
    value: str

class OptionIn(Option):
    is_correct: bool = False

class QuestionCreate(BaseModel):
    question_text: str = ""
    options: List[OptionIn] = Field(default_factory=list)
    # Either an existing chapter/topic id or a name to create one
    chapter_id: Optional[int] = None
    new_chapter_name: Optional[str] = None
    topic_id: Optional[int] = None
    new_topic_name: Optional[str] = None
    topic_youtube_link: Optional[str] = None
    youtube_link: Optional[str] = None
    image_url: Optional[str] = None

class Question(BaseModel):
    id: int
    question_text: str
    options: List[Option]
    correct_option: str
    question_set_id: int
    chapter_id: Optional[int] = None
    topic_id: Optional[int] = None
    youtube_link: Optional[str] = None
    image_url: Optional[str] = None

    class Config:
        from_attributes = True

class QuestionSetCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)

class QuestionSet(BaseModel):
    id: int
    name: str
    created_at: datetime

    class Config:
        from_attributes = True

class QuestionSetDetail(QuestionSet):
    questions: List[Question]

class ChapterCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)

class Chapter(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True

class TopicCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    youtube_link: Optional[str] = None

class TopicVideoUpdate(BaseModel):
    youtube_link: Optional[str] = None

class Topic(BaseModel):
    id: int
    name: str
    chapter_id: int
    youtube_link: Optional[str] = None

    class Config:
        from_attributes = True

class ImageUpload(BaseModel):
    url: str
