import pytest
from sqlalchemy import func, select

from omnia.core.errors import EmptySetError, NotFoundError, ValidationError
from omnia.models.exam import Exam, ExamQuestion
from omnia.models.question_bank import Question, QuestionSet
from omnia.services.composer import compose_exam, delete_exam, list_exams


async def test_compose_exam_snapshots_question_ids(db, make_question_set, two_questions):
    question_set_id = await make_question_set(two_questions)

    exam_id = await compose_exam(db, "Midterm", 30, question_set_id)

    result = await db.execute(select(ExamQuestion.question_id).where(ExamQuestion.exam_id == exam_id))
    linked = set(result.scalars().all())
    result = await db.execute(select(Question.id).where(Question.question_set_id == question_set_id))
    assert linked == set(result.scalars().all())

    exam = await db.get(Exam, exam_id)
    assert exam.title == "Midterm"
    assert exam.duration_minutes == 30


async def test_questions_added_later_do_not_change_existing_exam(db, make_question_set, two_questions):
    question_set_id = await make_question_set(two_questions)
    exam_id = await compose_exam(db, "Midterm", 30, question_set_id)

    db.add(Question(
        question_text="1 + 1 = ?",
        options=[{"value": "2"}, {"value": "3"}],
        correct_option="2",
        question_set_id=question_set_id,
    ))
    await db.commit()

    count = await db.scalar(
        select(func.count()).select_from(ExamQuestion).where(ExamQuestion.exam_id == exam_id)
    )
    assert count == 2


async def test_empty_set_is_rejected_without_creating_exam(db):
    question_set = QuestionSet(name="Empty")
    db.add(question_set)
    await db.commit()

    with pytest.raises(EmptySetError):
        await compose_exam(db, "Nothing here", 10, question_set.id)

    assert await db.scalar(select(func.count()).select_from(Exam)) == 0


async def test_unknown_set_and_bad_duration(db, make_question_set, two_questions):
    with pytest.raises(NotFoundError):
        await compose_exam(db, "Ghost", 10, 999)

    question_set_id = await make_question_set(two_questions)
    with pytest.raises(ValidationError):
        await compose_exam(db, "Too short", 0, question_set_id)
    with pytest.raises(ValidationError):
        await compose_exam(db, "   ", 10, question_set_id)


async def test_list_and_delete_exams(db, make_question_set, two_questions):
    question_set_id = await make_question_set(two_questions)
    first = await compose_exam(db, "First", 10, question_set_id)
    second = await compose_exam(db, "Second", 10, question_set_id)

    exams = await list_exams(db)
    assert [e["id"] for e in exams] == [second, first]
    assert exams[0]["question_count"] == 2
    assert exams[0]["link"].endswith(f"/exam/{second}")

    await delete_exam(db, first)
    assert [e["id"] for e in await list_exams(db)] == [second]

    with pytest.raises(NotFoundError):
        await delete_exam(db, first)
