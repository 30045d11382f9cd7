from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from omnia.db.base_class import Base

class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(200), unique=True, index=True, nullable=False)

class StudentExam(Base):
    """One row per attempt."""
    __tablename__ = "student_exams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    started_at = Column(DateTime(timezone=True), nullable=False)
    submitted_at = Column(DateTime(timezone=True))
    score = Column(Integer)  # 0-100
    time_taken_seconds = Column(Integer)

    # Relationships
    student = relationship("Student")
    exam = relationship("Exam")
    answers = relationship(
        "StudentAnswer",
        back_populates="student_exam",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="StudentAnswer.id",
    )

class StudentAnswer(Base):
    __tablename__ = "student_answers"
    __table_args__ = (
        UniqueConstraint("student_exam_id", "question_id", name="uq_student_answers_attempt_question"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_exam_id = Column(Integer, ForeignKey("student_exams.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="SET NULL"))
    selected_option = Column(Text, nullable=False, default="")  # "" when unanswered
    is_correct = Column(Boolean, nullable=False, default=False)

    student_exam = relationship("StudentExam", back_populates="answers")
    question = relationship("Question")
