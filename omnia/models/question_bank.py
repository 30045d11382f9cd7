from sqlalchemy import Column, Integer, String, Text, ForeignKey, JSON, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from omnia.db.base_class import Base

class QuestionSet(Base):
    __tablename__ = "question_sets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    questions = relationship(
        "Question",
        back_populates="question_set",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Question.id",
    )

class Chapter(Base):
    __tablename__ = "chapters"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), unique=True, nullable=False)

    topics = relationship("Topic", back_populates="chapter", cascade="all, delete-orphan", passive_deletes=True)

class Topic(Base):
    __tablename__ = "topics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    chapter_id = Column(Integer, ForeignKey("chapters.id", ondelete="CASCADE"), nullable=False, index=True)
    youtube_link = Column(String(500))

    chapter = relationship("Chapter", back_populates="topics")

class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    question_text = Column(Text, nullable=False)
    options = Column(JSON, nullable=False)  # [{"value": "..."}, ...]
    correct_option = Column(Text, nullable=False)  # matched by value, not position
    question_set_id = Column(Integer, ForeignKey("question_sets.id", ondelete="CASCADE"), nullable=False, index=True)
    chapter_id = Column(Integer, ForeignKey("chapters.id", ondelete="SET NULL"), index=True)
    topic_id = Column(Integer, ForeignKey("topics.id", ondelete="SET NULL"), index=True)
    youtube_link = Column(String(500))
    image_url = Column(String(500))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    question_set = relationship("QuestionSet", back_populates="questions")
    topic = relationship("Topic", lazy="selectin")

    @property
    def option_values(self):
        return [option["value"] for option in self.options or []]
