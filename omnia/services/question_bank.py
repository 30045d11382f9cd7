import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from omnia.core.errors import NotFoundError, ValidationError, store_error
from omnia.core.utils import object_path_for
from omnia.models.exam import ExamQuestion
from omnia.models.question_bank import Chapter, Question, QuestionSet, Topic
from omnia.schemas.question_bank import QuestionCreate
from omnia.services.storage import ObjectStorage

logger = logging.getLogger(__name__)


async def create_question_set(db: AsyncSession, name: str) -> QuestionSet:
    question_set = QuestionSet(name=name)
    db.add(question_set)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise store_error("creating question set", e)
    await db.refresh(question_set)
    return question_set


async def list_question_sets(db: AsyncSession) -> List[QuestionSet]:
    result = await db.execute(
        select(QuestionSet).order_by(QuestionSet.created_at.desc(), QuestionSet.id.desc())
    )
    return list(result.scalars().all())


async def get_question_set(db: AsyncSession, question_set_id: int) -> QuestionSet:
    result = await db.execute(
        select(QuestionSet)
        .options(selectinload(QuestionSet.questions))
        .where(QuestionSet.id == question_set_id)
    )
    question_set = result.scalar_one_or_none()
    if not question_set:
        raise NotFoundError(f"Question set with ID {question_set_id} does not exist", field="question_set_id")
    return question_set


async def delete_question_set(db: AsyncSession, question_set_id: int) -> None:
    """Delete a set together with every question in it.

    Refused while any exam was composed from the set, since an exam keeps
    the questions it was created with.
    """
    question_set = await get_question_set(db, question_set_id)
    try:
        result = await db.execute(
            select(ExamQuestion.exam_id)
            .join(Question, Question.id == ExamQuestion.question_id)
            .where(Question.question_set_id == question_set_id)
            .distinct()
            .order_by(ExamQuestion.exam_id)
        )
        exam_ids = list(result.scalars().all())
        if exam_ids:
            raise ValidationError(
                f"Question set {question_set_id} is used by exams {exam_ids}; delete those exams first.",
                field="question_set_id",
            )
        for question in question_set.questions:
            await db.delete(question)
        await db.delete(question_set)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise store_error("deleting set", e)
    logger.info(f"Deleted question set {question_set_id}")


async def list_chapters(db: AsyncSession) -> List[Chapter]:
    result = await db.execute(select(Chapter).order_by(Chapter.name))
    return list(result.scalars().all())


async def create_chapter(db: AsyncSession, name: str) -> Chapter:
    name = name.strip()
    if not name:
        raise ValidationError("Chapter name is required", field="name")
    chapter = Chapter(name=name)
    db.add(chapter)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise store_error("creating chapter", e)
    await db.refresh(chapter)
    return chapter


async def get_chapter(db: AsyncSession, chapter_id: int) -> Chapter:
    chapter = await db.get(Chapter, chapter_id)
    if not chapter:
        raise NotFoundError(f"Chapter with ID {chapter_id} does not exist", field="chapter_id")
    return chapter


async def list_topics(db: AsyncSession, chapter_id: int) -> List[Topic]:
    await get_chapter(db, chapter_id)
    result = await db.execute(
        select(Topic).where(Topic.chapter_id == chapter_id).order_by(Topic.name)
    )
    return list(result.scalars().all())


async def create_topic(db: AsyncSession, chapter_id: int, name: str, youtube_link: Optional[str] = None) -> Topic:
    await get_chapter(db, chapter_id)
    name = name.strip()
    if not name:
        raise ValidationError("Topic name is required", field="name")
    topic = Topic(name=name, chapter_id=chapter_id, youtube_link=youtube_link or None)
    db.add(topic)
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise store_error("creating topic", e)
    await db.refresh(topic)
    return topic


async def update_topic_video(db: AsyncSession, topic_id: int, youtube_link: Optional[str]) -> Topic:
    topic = await db.get(Topic, topic_id)
    if not topic:
        raise NotFoundError(f"Topic with ID {topic_id} does not exist", field="topic_id")
    topic.youtube_link = youtube_link or None
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise store_error("updating topic video", e)
    await db.refresh(topic)
    return topic


def _correct_option(payload: QuestionCreate) -> str:
    marked = [o for o in payload.options if o.is_correct]
    if not payload.question_text.strip() or len(marked) != 1 or not marked[0].value:
        raise ValidationError(
            "Please provide a question and mark one option as correct.",
            field="options",
        )
    values = [o.value for o in payload.options]
    if len(set(values)) != len(values):
        raise ValidationError("Option values must be unique", field="options")
    return marked[0].value


async def add_question(db: AsyncSession, question_set_id: int, payload: QuestionCreate) -> Question:
    """Add a question to a set, creating its chapter and topic on the fly when named."""
    await get_question_set(db, question_set_id)
    correct_option = _correct_option(payload)

    try:
        if payload.new_chapter_name and payload.new_chapter_name.strip():
            chapter = Chapter(name=payload.new_chapter_name.strip())
            db.add(chapter)
            await db.flush()
            chapter_id = chapter.id
        elif payload.chapter_id:
            chapter_id = (await get_chapter(db, payload.chapter_id)).id
        else:
            raise ValidationError("Please select or create a chapter.", field="chapter_id")

        if payload.new_topic_name and payload.new_topic_name.strip():
            topic = Topic(
                name=payload.new_topic_name.strip(),
                chapter_id=chapter_id,
                youtube_link=payload.topic_youtube_link or None,
            )
            db.add(topic)
            await db.flush()
        elif payload.topic_id:
            topic = await db.get(Topic, payload.topic_id)
            if not topic or topic.chapter_id != chapter_id:
                raise NotFoundError(
                    f"Topic with ID {payload.topic_id} does not exist in chapter {chapter_id}",
                    field="topic_id",
                )
            if payload.topic_youtube_link is not None and payload.topic_youtube_link != (topic.youtube_link or ""):
                topic.youtube_link = payload.topic_youtube_link or None
        else:
            raise ValidationError("Please select or create a topic.", field="topic_id")

        question = Question(
            question_text=payload.question_text,
            options=[{"value": o.value} for o in payload.options],
            correct_option=correct_option,
            question_set_id=question_set_id,
            chapter_id=chapter_id,
            topic_id=topic.id,
            youtube_link=payload.youtube_link or None,
            image_url=payload.image_url or None,
        )
        db.add(question)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise store_error("creating question", e)
    except (ValidationError, NotFoundError):
        await db.rollback()
        raise

    await db.refresh(question)
    logger.debug(f"Added question {question.id} to set {question_set_id}")
    return question


async def upload_question_image(
    db: AsyncSession,
    storage: ObjectStorage,
    question_set_id: int,
    filename: str,
    data: bytes,
) -> str:
    await get_question_set(db, question_set_id)
    if not data:
        raise ValidationError("Uploaded image is empty", field="file")
    path = object_path_for(question_set_id, filename)
    try:
        return await storage.upload(path, data)
    except OSError as e:
        raise store_error("uploading image", e)
