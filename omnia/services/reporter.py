from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from omnia.core.errors import NotFoundError, store_error
from omnia.core.utils import format_duration
from omnia.models.attempt import StudentAnswer, StudentExam
from omnia.schemas.results import Mistake, ResultView, TopicGroup

NO_TOPIC = "No Topic"


def group_mistakes(answers: List[StudentAnswer]) -> List[TopicGroup]:
    """Group wrong answers by topic, keeping first-seen topic and answer order."""
    groups: Dict[str, TopicGroup] = {}
    for answer in answers:
        question = answer.question
        if answer.is_correct or question is None:
            continue
        topic = question.topic
        topic_name = topic.name if topic and topic.name else NO_TOPIC
        if topic_name not in groups:
            groups[topic_name] = TopicGroup(
                topic_name=topic_name,
                topic_video_link=topic.youtube_link if topic else None,
                questions=[],
            )
        groups[topic_name].questions.append(Mistake(
            question_id=question.id,
            question_text=question.question_text,
            image_url=question.image_url,
            youtube_link=question.youtube_link,
            selected_option=answer.selected_option,
            correct_option=question.correct_option,
        ))
    return list(groups.values())


async def load_results(db: AsyncSession, attempt_id: int) -> ResultView:
    try:
        result = await db.execute(
            select(StudentExam)
            .options(
                selectinload(StudentExam.exam),
                selectinload(StudentExam.student),
                selectinload(StudentExam.answers).selectinload(StudentAnswer.question),
            )
            .where(StudentExam.id == attempt_id)
            .execution_options(populate_existing=True)
        )
        attempt = result.scalar_one_or_none()
    except SQLAlchemyError as e:
        raise store_error("loading results", e)

    if not attempt or attempt.submitted_at is None:
        raise NotFoundError(f"Results for attempt {attempt_id} do not exist", field="attempt_id")

    topics = group_mistakes(attempt.answers)
    time_taken = attempt.time_taken_seconds or 0
    return ResultView(
        attempt_id=attempt.id,
        exam_title=attempt.exam.title,
        student_name=attempt.student.name,
        score=attempt.score or 0,
        time_taken_seconds=time_taken,
        time_taken_display=format_duration(time_taken),
        mistake_count=sum(len(group.questions) for group in topics),
        topics=topics,
    )
