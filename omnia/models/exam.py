from sqlalchemy import Column, Integer, String, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from omnia.db.base_class import Base

class Exam(Base):
    __tablename__ = "exams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    duration_minutes = Column(Integer, nullable=False)  # whole exam, not per question
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    exam_questions = relationship("ExamQuestion", back_populates="exam", cascade="all, delete-orphan", passive_deletes=True)

class ExamQuestion(Base):
    """Snapshot of the question ids an exam was composed from."""
    __tablename__ = "exam_questions"

    exam_id = Column(Integer, ForeignKey("exams.id", ondelete="CASCADE"), primary_key=True)
    # Questions in a composed exam cannot be deleted
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="RESTRICT"), primary_key=True)

    exam = relationship("Exam", back_populates="exam_questions")
    question = relationship("Question", lazy="selectin")
