from fastapi import APIRouter, Depends, File, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from omnia.db.session import get_db
from omnia.schemas.exam import Exam as ExamSchema, ExamCreate, ExamCreated
from omnia.schemas.question_bank import (
    Chapter as ChapterSchema,
    ChapterCreate,
    ImageUpload,
    Question as QuestionSchema,
    QuestionCreate,
    QuestionSet as QuestionSetSchema,
    QuestionSetCreate,
    QuestionSetDetail,
    Topic as TopicSchema,
    TopicCreate,
    TopicVideoUpdate,
)
from omnia.services import composer, question_bank

router = APIRouter(prefix="/admin")

# Question sets

@router.get("/question-sets", response_model=List[QuestionSetSchema])
async def list_question_sets(db: AsyncSession = Depends(get_db)):
    return await question_bank.list_question_sets(db)

@router.post("/question-sets", response_model=QuestionSetSchema, status_code=status.HTTP_201_CREATED)
async def create_question_set(payload: QuestionSetCreate, db: AsyncSession = Depends(get_db)):
    return await question_bank.create_question_set(db, payload.name)

@router.get("/question-sets/{question_set_id}", response_model=QuestionSetDetail)
async def get_question_set(question_set_id: int, db: AsyncSession = Depends(get_db)):
    return await question_bank.get_question_set(db, question_set_id)

@router.delete("/question-sets/{question_set_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_question_set(question_set_id: int, db: AsyncSession = Depends(get_db)):
    await question_bank.delete_question_set(db, question_set_id)

@router.post(
    "/question-sets/{question_set_id}/questions",
    response_model=QuestionSchema,
    status_code=status.HTTP_201_CREATED,
)
async def add_question(question_set_id: int, payload: QuestionCreate, db: AsyncSession = Depends(get_db)):
    """Add a question, creating its chapter/topic when new names are given."""
    return await question_bank.add_question(db, question_set_id, payload)

@router.post(
    "/question-sets/{question_set_id}/images",
    response_model=ImageUpload,
    status_code=status.HTTP_201_CREATED,
)
async def upload_image(
    question_set_id: int,
    request: Request,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
):
    data = await file.read()
    url = await question_bank.upload_question_image(
        db, request.app.state.storage, question_set_id, file.filename, data
    )
    return {"url": url}

# Chapters and topics

@router.get("/chapters", response_model=List[ChapterSchema])
async def list_chapters(db: AsyncSession = Depends(get_db)):
    return await question_bank.list_chapters(db)

@router.post("/chapters", response_model=ChapterSchema, status_code=status.HTTP_201_CREATED)
async def create_chapter(payload: ChapterCreate, db: AsyncSession = Depends(get_db)):
    return await question_bank.create_chapter(db, payload.name)

@router.get("/chapters/{chapter_id}/topics", response_model=List[TopicSchema])
async def list_topics(chapter_id: int, db: AsyncSession = Depends(get_db)):
    return await question_bank.list_topics(db, chapter_id)

@router.post("/chapters/{chapter_id}/topics", response_model=TopicSchema, status_code=status.HTTP_201_CREATED)
async def create_topic(chapter_id: int, payload: TopicCreate, db: AsyncSession = Depends(get_db)):
    return await question_bank.create_topic(db, chapter_id, payload.name, payload.youtube_link)

@router.patch("/topics/{topic_id}", response_model=TopicSchema)
async def update_topic_video(topic_id: int, payload: TopicVideoUpdate, db: AsyncSession = Depends(get_db)):
    return await question_bank.update_topic_video(db, topic_id, payload.youtube_link)

# Exams

@router.get("/exams", response_model=List[ExamSchema])
async def list_exams(db: AsyncSession = Depends(get_db)):
    return await composer.list_exams(db)

@router.post("/exams", response_model=ExamCreated, status_code=status.HTTP_201_CREATED)
async def create_exam(payload: ExamCreate, db: AsyncSession = Depends(get_db)):
    """Compose an exam from a snapshot of a question set."""
    exam_id = await composer.compose_exam(db, payload.title, payload.duration_minutes, payload.question_set_id)
    return {"id": exam_id, "link": composer.exam_link(exam_id)}

@router.delete("/exams/{exam_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_exam(exam_id: int, db: AsyncSession = Depends(get_db)):
    await composer.delete_exam(db, exam_id)
