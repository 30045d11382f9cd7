import pytest
from sqlalchemy import func, select

from omnia.core.errors import NotFoundError, ValidationError
from omnia.models.exam import ExamQuestion
from omnia.models.question_bank import Chapter, Question, Topic
from omnia.schemas.question_bank import OptionIn, QuestionCreate
from omnia.services import composer, question_bank


def payload(**overrides):
    data = dict(
        question_text="\\frac{1}{2} + \\frac{1}{2} = ?",
        options=[OptionIn(value="1", is_correct=True), OptionIn(value="2")],
        new_chapter_name="Fractions",
        new_topic_name="Adding fractions",
        topic_youtube_link="https://youtu.be/fractions",
        youtube_link="https://youtu.be/solution",
    )
    data.update(overrides)
    return QuestionCreate(**data)


async def test_add_question_creates_chapter_and_topic(db):
    question_set = await question_bank.create_question_set(db, "Fractions set")

    question = await question_bank.add_question(db, question_set.id, payload())

    assert question.correct_option == "1"
    assert question.options == [{"value": "1"}, {"value": "2"}]
    chapter = await db.get(Chapter, question.chapter_id)
    topic = await db.get(Topic, question.topic_id)
    assert chapter.name == "Fractions"
    assert topic.name == "Adding fractions"
    assert topic.youtube_link == "https://youtu.be/fractions"

    detail = await question_bank.get_question_set(db, question_set.id)
    assert [q.id for q in detail.questions] == [question.id]


async def test_existing_topic_video_is_updated(db):
    question_set = await question_bank.create_question_set(db, "Fractions set")
    chapter = await question_bank.create_chapter(db, "Fractions")
    topic = await question_bank.create_topic(db, chapter.id, "Adding fractions")

    await question_bank.add_question(db, question_set.id, payload(
        new_chapter_name=None,
        new_topic_name=None,
        chapter_id=chapter.id,
        topic_id=topic.id,
        topic_youtube_link="https://youtu.be/new-video",
    ))

    await db.refresh(topic)
    assert topic.youtube_link == "https://youtu.be/new-video"


@pytest.mark.parametrize("overrides", [
    {"question_text": ""},
    {"options": [OptionIn(value="1"), OptionIn(value="2")]},
    {"options": [OptionIn(value="1", is_correct=True), OptionIn(value="2", is_correct=True)]},
    {"options": [OptionIn(value="1", is_correct=True), OptionIn(value="1")]},
    {"new_chapter_name": None},
    {"new_topic_name": None},
])
async def test_add_question_validation(db, overrides):
    question_set = await question_bank.create_question_set(db, "Fractions set")

    with pytest.raises(ValidationError):
        await question_bank.add_question(db, question_set.id, payload(**overrides))

    assert await db.scalar(select(func.count()).select_from(Question)) == 0


async def test_add_question_to_unknown_set(db):
    with pytest.raises(NotFoundError):
        await question_bank.add_question(db, 42, payload())


async def test_delete_set_removes_its_questions(db):
    question_set = await question_bank.create_question_set(db, "Fractions set")
    await question_bank.add_question(db, question_set.id, payload())

    await question_bank.delete_question_set(db, question_set.id)

    assert await question_bank.list_question_sets(db) == []
    assert await db.scalar(select(func.count()).select_from(Question)) == 0


async def test_set_used_by_exam_cannot_be_deleted(db):
    question_set = await question_bank.create_question_set(db, "Fractions set")
    await question_bank.add_question(db, question_set.id, payload())
    exam_id = await composer.compose_exam(db, "Fractions quiz", 10, question_set.id)

    with pytest.raises(ValidationError) as exc_info:
        await question_bank.delete_question_set(db, question_set.id)
    assert exc_info.value.details[0]["field"] == "question_set_id"
    assert await db.scalar(select(func.count()).select_from(Question)) == 1
    assert await db.scalar(select(func.count()).select_from(ExamQuestion)) == 1

    await composer.delete_exam(db, exam_id)
    await question_bank.delete_question_set(db, question_set.id)
    assert await db.scalar(select(func.count()).select_from(Question)) == 0


async def test_topics_listed_by_chapter(db):
    algebra = await question_bank.create_chapter(db, "Algebra")
    geometry = await question_bank.create_chapter(db, "Geometry")
    await question_bank.create_topic(db, algebra.id, "Linear equations")
    await question_bank.create_topic(db, algebra.id, "Factoring")
    await question_bank.create_topic(db, geometry.id, "Triangles")

    topics = await question_bank.list_topics(db, algebra.id)
    assert [t.name for t in topics] == ["Factoring", "Linear equations"]
    assert [c.name for c in await question_bank.list_chapters(db)] == ["Algebra", "Geometry"]

    with pytest.raises(NotFoundError):
        await question_bank.list_topics(db, 999)


async def test_image_upload_is_namespaced_by_set(db, storage):
    question_set = await question_bank.create_question_set(db, "Geometry set")

    first = await question_bank.upload_question_image(db, storage, question_set.id, "Triangle.PNG", b"\x89PNG")
    second = await question_bank.upload_question_image(db, storage, question_set.id, "Triangle.PNG", b"\x89PNG")

    assert first != second
    for path in storage.objects:
        assert path.startswith(f"{question_set.id}/")
        assert path.endswith(".png")

    with pytest.raises(ValidationError):
        await question_bank.upload_question_image(db, storage, question_set.id, "empty.png", b"")
