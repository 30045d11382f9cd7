import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from omnia.core.config import settings
from omnia.core.security import create_access_token
from omnia.db.base_class import Base
from omnia.db.session import get_db
from omnia.main import create_app
from omnia.models.exam import Exam, ExamQuestion
from omnia.models.question_bank import Chapter, Question, QuestionSet, Topic


class MemoryStorage:
    def __init__(self):
        self.objects = {}

    async def upload(self, path: str, data: bytes) -> str:
        self.objects[path] = data
        return f"https://cdn.test/{path}"


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
async def app(session_factory, storage):
    app = create_app(session_factory=session_factory, storage=storage, tick_seconds=0.05)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield app
    await app.state.session_manager.shutdown()


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
async def admin_client(app):
    token = create_access_token({"sub": settings.ADMIN_EMAIL})
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        cookies={settings.SESSION_COOKIE_NAME: token},
    ) as client:
        yield client


@pytest.fixture
def make_question_set(db):
    """Create a question set holding the given (text, options, correct, topic) rows."""

    async def _make(questions, name="Algebra basics"):
        question_set = QuestionSet(name=name)
        db.add(question_set)
        await db.flush()
        chapter = Chapter(name=f"{name} chapter {question_set.id}")
        db.add(chapter)
        await db.flush()

        topics = {}
        for _, _, _, topic_name in questions:
            if topic_name and topic_name not in topics:
                topic = Topic(name=topic_name, chapter_id=chapter.id, youtube_link=f"https://youtu.be/{topic_name.lower()}")
                db.add(topic)
                topics[topic_name] = topic
        await db.flush()

        for text, options, correct, topic_name in questions:
            db.add(Question(
                question_text=text,
                options=[{"value": o} for o in options],
                correct_option=correct,
                question_set_id=question_set.id,
                chapter_id=chapter.id,
                topic_id=topics[topic_name].id if topic_name else None,
            ))
        await db.commit()
        return question_set.id

    return _make


@pytest.fixture
def make_exam(db, make_question_set):
    async def _make(questions, duration_minutes=1, title="Practice exam"):
        question_set_id = await make_question_set(questions)
        exam = Exam(title=title, duration_minutes=duration_minutes)
        db.add(exam)
        await db.flush()
        result = await db.execute(select(Question.id).where(Question.question_set_id == question_set_id))
        for question_id in result.scalars().all():
            db.add(ExamQuestion(exam_id=exam.id, question_id=question_id))
        await db.commit()
        return exam.id

    return _make


TWO_QUESTIONS = [
    ("2 + 2 = ?", ["3", "4", "5"], "4", "Addition"),
    ("3 * 3 = ?", ["6", "9", "12"], "9", "Multiplication"),
]


@pytest.fixture
def two_questions():
    return list(TWO_QUESTIONS)
