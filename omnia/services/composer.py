import logging
from typing import List

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from omnia.core.config import settings
from omnia.core.errors import EmptySetError, NotFoundError, ValidationError, store_error
from omnia.models.exam import Exam, ExamQuestion
from omnia.models.question_bank import Question, QuestionSet

logger = logging.getLogger(__name__)


def exam_link(exam_id: int) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/exam/{exam_id}"


async def compose_exam(db: AsyncSession, title: str, duration_minutes: int, question_set_id: int) -> int:
    """Create an exam holding a snapshot of the set's current questions.

    The exam row and its exam_questions rows are committed together.
    """
    if not title or not title.strip():
        raise ValidationError("Exam title is required", field="title")
    if duration_minutes is None or duration_minutes <= 0:
        raise ValidationError("Duration must be a positive number of minutes", field="duration_minutes")

    question_set = await db.get(QuestionSet, question_set_id)
    if not question_set:
        raise NotFoundError(f"Question set with ID {question_set_id} does not exist", field="question_set_id")

    try:
        result = await db.execute(
            select(Question.id)
            .where(Question.question_set_id == question_set_id)
            .order_by(Question.id)
        )
        question_ids = list(result.scalars().all())
    except SQLAlchemyError as e:
        raise store_error("loading questions", e)

    if not question_ids:
        raise EmptySetError(
            "Could not find questions for this set, or the set is empty.",
            field="question_set_id",
        )

    try:
        exam = Exam(title=title.strip(), duration_minutes=duration_minutes)
        db.add(exam)
        await db.flush()  # Flush to get the exam ID
        for question_id in question_ids:
            db.add(ExamQuestion(exam_id=exam.id, question_id=question_id))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise store_error("creating exam", e)

    logger.info(f"Composed exam {exam.id} from set {question_set_id} with {len(question_ids)} questions")
    return exam.id


async def list_exams(db: AsyncSession) -> List[dict]:
    result = await db.execute(
        select(Exam, func.count(ExamQuestion.question_id))
        .outerjoin(ExamQuestion, ExamQuestion.exam_id == Exam.id)
        .group_by(Exam.id)
        .order_by(Exam.created_at.desc(), Exam.id.desc())
    )
    return [
        {
            "id": exam.id,
            "title": exam.title,
            "duration_minutes": exam.duration_minutes,
            "created_at": exam.created_at,
            "question_count": count,
            "link": exam_link(exam.id),
        }
        for exam, count in result.all()
    ]


async def delete_exam(db: AsyncSession, exam_id: int) -> None:
    exam = await db.get(Exam, exam_id)
    if not exam:
        raise NotFoundError(f"Exam with ID {exam_id} does not exist", field="exam_id")
    try:
        await db.delete(exam)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise store_error("deleting exam", e)
    logger.info(f"Deleted exam {exam_id}")
