"""Exam delivery: per-viewing sessions, the attempt countdown and submission.

A session is created each time a student opens an exam link. It owns the
shuffled question order, the answer mapping, the current index and one
AttemptTimer. Sessions go NOT_STARTED -> IN_PROGRESS -> SUBMITTING -> SUBMITTED
and never move back. SUBMITTING means the clock is stopped and the answers are
frozen, but the attempt is not stored yet; only submit() may be retried there.
"""
import asyncio
import enum
import logging
import random
import time
import traceback
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional, Set, Tuple

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from omnia.core.config import settings
from omnia.core.errors import NotFoundError, OmniaError, ValidationError, store_error
from omnia.core.utils import percentage_score
from omnia.models.attempt import Student, StudentAnswer, StudentExam
from omnia.models.exam import Exam, ExamQuestion
from omnia.models.question_bank import Question

logger = logging.getLogger(__name__)


class SessionStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"


@dataclass(frozen=True)
class SessionQuestion:
    id: int
    question_text: str
    options: Tuple[str, ...]
    correct_option: str
    image_url: Optional[str] = None


@dataclass(frozen=True)
class SubmissionResult:
    attempt_id: int
    score: int
    time_taken_seconds: int


def grade_answers(questions: List[SessionQuestion], answers: Dict[int, str]) -> Tuple[int, List[dict]]:
    """Compare each recorded answer (or "") with the answer key by value."""
    correct = 0
    rows = []
    for question in questions:
        selected = answers.get(question.id, "")
        is_correct = selected == question.correct_option
        if is_correct:
            correct += 1
        rows.append({
            "question_id": question.id,
            "selected_option": selected,
            "is_correct": is_correct,
        })
    return correct, rows


class AttemptTimer:
    """Countdown owned by a single attempt.

    start() and stop() are idempotent; at most one tick task is ever alive
    and a stopped timer cannot be restarted.
    """

    def __init__(
        self,
        seconds: int,
        on_expire: Callable[[], Awaitable[None]],
        on_tick: Optional[Callable[[int], None]] = None,
        tick_seconds: float = settings.TIMER_TICK_SECONDS,
    ):
        self.time_left = seconds
        self.tick_seconds = tick_seconds
        self._on_expire = on_expire
        self._on_tick = on_tick
        self._task: Optional[asyncio.Task] = None
        self._stopped = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done() and not self._stopped

    def start(self):
        if self._stopped or self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self):
        self._stopped = True
        task = self._task
        # The expiry callback stops the timer from inside its own task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def aclose(self):
        self.stop()
        task = self._task
        if task is not None and task is not asyncio.current_task():
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _run(self):
        try:
            while self.time_left > 0 and not self._stopped:
                await asyncio.sleep(self.tick_seconds)
                if self._stopped:
                    return
                self.time_left -= 1
                if self._on_tick is not None:
                    self._on_tick(self.time_left)
            if not self._stopped:
                logger.debug("Countdown reached zero, auto-submitting")
                await self._on_expire()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Timer callback failed: {str(e)}")
            logger.error(f"Stack trace: {traceback.format_exc()}")


async def upsert_student(db: AsyncSession, name: str, email: str) -> Student:
    """Reuse the student registered under email, refreshing the name."""
    result = await db.execute(select(Student).where(Student.email == email))
    student = result.scalar_one_or_none()
    if student:
        student.name = name
    else:
        student = Student(name=name, email=email)
        db.add(student)
    await db.flush()
    return student


class ExamSession:
    def __init__(
        self,
        session_id: str,
        exam_id: int,
        title: str,
        duration_minutes: int,
        questions: List[SessionQuestion],
        session_factory: async_sessionmaker,
        tick_seconds: float = settings.TIMER_TICK_SECONDS,
    ):
        self.session_id = session_id
        self.exam_id = exam_id
        self.title = title
        self.duration_minutes = duration_minutes
        self.questions = questions
        self.status = SessionStatus.NOT_STARTED
        self.current_index = 0
        self.answers: Dict[int, str] = {}
        self.attempt_id: Optional[int] = None
        self.result: Optional[SubmissionResult] = None
        self.created_at = time.monotonic()

        self._session_factory = session_factory
        self._lock = asyncio.Lock()
        self._submitted = asyncio.Event()
        self._listeners: Set[asyncio.Queue] = set()
        self.timer = AttemptTimer(
            duration_minutes * 60,
            on_expire=self._auto_submit,
            on_tick=self._on_tick,
            tick_seconds=tick_seconds,
        )

    @property
    def duration_seconds(self) -> int:
        return self.duration_minutes * 60

    @property
    def time_left(self) -> int:
        return self.timer.time_left

    @property
    def current_question(self) -> SessionQuestion:
        return self.questions[self.current_index]

    # Listeners

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._listeners.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue):
        self._listeners.discard(queue)

    def _publish(self, message: dict):
        for queue in list(self._listeners):
            queue.put_nowait(message)

    def _on_tick(self, time_left: int):
        self._publish({"type": "tick", "time_left": time_left})

    # Lifecycle

    async def start(self, name: str, email: str) -> int:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required", field="name")
        try:
            email = validate_email((email or "").strip(), check_deliverability=False).normalized
        except EmailNotValidError as e:
            raise ValidationError(f"Invalid email: {str(e)}", field="email")

        async with self._lock:
            if self.status is not SessionStatus.NOT_STARTED:
                raise ValidationError("Exam already started", field="session_id")

            async with self._session_factory() as db:
                try:
                    student = await upsert_student(db, name, email)
                    attempt = StudentExam(
                        student_id=student.id,
                        exam_id=self.exam_id,
                        started_at=datetime.now(timezone.utc),
                    )
                    db.add(attempt)
                    await db.commit()
                except SQLAlchemyError as e:
                    await db.rollback()
                    raise store_error("starting exam", e)

            self.attempt_id = attempt.id
            self.status = SessionStatus.IN_PROGRESS
            self.timer.start()

        logger.info(f"Session {self.session_id} started attempt {self.attempt_id} for exam {self.exam_id}")
        return self.attempt_id

    def _require_in_progress(self):
        if self.status is not SessionStatus.IN_PROGRESS:
            raise ValidationError(f"Exam is {self.status.value.replace('_', ' ')}", field="session_id")

    def select(self, question_id: int, option: str):
        self._require_in_progress()
        question = next((q for q in self.questions if q.id == question_id), None)
        if question is None:
            raise NotFoundError(f"Question {question_id} is not part of this exam", field="question_id")
        if option not in question.options:
            raise ValidationError(f"'{option}' is not an option of question {question_id}", field="option")
        self.answers[question_id] = option

    def go_to(self, index: int) -> int:
        self.current_index = max(0, min(index, len(self.questions) - 1))
        return self.current_index

    def next(self) -> int:
        return self.go_to(self.current_index + 1)

    def previous(self) -> int:
        return self.go_to(self.current_index - 1)

    async def _auto_submit(self):
        try:
            await self.submit()
        except OmniaError as e:
            logger.error(f"Auto-submit failed for session {self.session_id}: {e.message}")

    async def submit(self) -> SubmissionResult:
        """Grade and persist the attempt; further calls return the first result."""
        async with self._lock:
            if self.status is SessionStatus.SUBMITTED:
                return self.result
            if self.status is SessionStatus.NOT_STARTED:
                raise ValidationError("Exam not started or invalid state.", field="session_id")

            # Answers and clock stay frozen from here on, even if the write below fails
            self.status = SessionStatus.SUBMITTING
            self.timer.stop()
            correct, rows = grade_answers(self.questions, self.answers)
            score = percentage_score(correct, len(self.questions))
            time_taken = max(0, min(self.duration_seconds, self.duration_seconds - self.timer.time_left))

            async with self._session_factory() as db:
                try:
                    attempt = await db.get(StudentExam, self.attempt_id)
                    if attempt is None:
                        raise NotFoundError(f"Attempt {self.attempt_id} does not exist", field="attempt_id")
                    if attempt.submitted_at is None:
                        db.add_all([StudentAnswer(student_exam_id=attempt.id, **row) for row in rows])
                        attempt.score = score
                        attempt.time_taken_seconds = time_taken
                        attempt.submitted_at = datetime.now(timezone.utc)
                        await db.commit()
                    else:
                        logger.warning(f"Attempt {attempt.id} was already submitted, keeping stored score")
                        score = attempt.score
                        time_taken = attempt.time_taken_seconds
                except SQLAlchemyError as e:
                    await db.rollback()
                    raise store_error("saving answers", e)

            self.result = SubmissionResult(
                attempt_id=self.attempt_id,
                score=score,
                time_taken_seconds=time_taken,
            )
            self.status = SessionStatus.SUBMITTED
            self._submitted.set()

        logger.info(f"Attempt {self.attempt_id} submitted: score={score} time_taken={time_taken}s")
        self._publish({
            "type": "submitted",
            "attempt_id": self.result.attempt_id,
            "score": self.result.score,
            "time_taken_seconds": self.result.time_taken_seconds,
        })
        return self.result

    async def wait_submitted(self) -> SubmissionResult:
        await self._submitted.wait()
        return self.result

    async def finish(self) -> SubmissionResult:
        """Manual submission, which is offered on the last question only."""
        if self.status is SessionStatus.IN_PROGRESS and self.current_index != len(self.questions) - 1:
            raise ValidationError("Go to the last question to submit the exam", field="current_index")
        return await self.submit()


class SessionManager:
    """Registry of live exam sessions, one per page load."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        tick_seconds: float = settings.TIMER_TICK_SECONDS,
        ttl_seconds: int = settings.SESSION_TTL_SECONDS,
        shuffle: Callable[[list], None] = random.shuffle,
    ):
        self.session_factory = session_factory
        self.tick_seconds = tick_seconds
        self.ttl_seconds = ttl_seconds
        self.shuffle = shuffle
        self.sessions: Dict[str, ExamSession] = {}

    async def _load_exam(self, exam_id: int) -> Tuple[Exam, List[SessionQuestion]]:
        async with self.session_factory() as db:
            try:
                exam = await db.get(Exam, exam_id)
                if not exam:
                    raise NotFoundError(f"Exam with ID {exam_id} does not exist", field="exam_id")
                result = await db.execute(
                    select(Question)
                    .join(ExamQuestion, ExamQuestion.question_id == Question.id)
                    .where(ExamQuestion.exam_id == exam_id)
                    .order_by(Question.id)
                )
                questions = [
                    SessionQuestion(
                        id=q.id,
                        question_text=q.question_text,
                        options=tuple(q.option_values),
                        correct_option=q.correct_option,
                        image_url=q.image_url,
                    )
                    for q in result.scalars().all()
                ]
            except SQLAlchemyError as e:
                raise store_error("loading exam", e)
        return exam, questions

    async def open(self, exam_id: int) -> ExamSession:
        self.purge_stale()
        exam, questions = await self._load_exam(exam_id)
        if not questions:
            raise NotFoundError(f"Exam with ID {exam_id} has no questions", field="exam_id")

        self.shuffle(questions)
        session = ExamSession(
            session_id=uuid.uuid4().hex,
            exam_id=exam.id,
            title=exam.title,
            duration_minutes=exam.duration_minutes,
            questions=questions,
            session_factory=self.session_factory,
            tick_seconds=self.tick_seconds,
        )
        self.sessions[session.session_id] = session
        logger.debug(f"Opened session {session.session_id} for exam {exam_id}")
        return session

    def get(self, session_id: str) -> ExamSession:
        session = self.sessions.get(session_id)
        if session is None:
            raise NotFoundError(f"Session {session_id} does not exist", field="session_id")
        return session

    async def close(self, session_id: str):
        session = self.sessions.pop(session_id, None)
        if session is not None:
            await session.timer.aclose()

    def purge_stale(self, now: Optional[float] = None):
        """Drop sessions older than the TTL whose clock is not running."""
        now = time.monotonic() if now is None else now
        for session_id, session in list(self.sessions.items()):
            if session.timer.running:
                continue
            if now - session.created_at > self.ttl_seconds:
                session.timer.stop()
                del self.sessions[session_id]

    async def shutdown(self):
        for session in list(self.sessions.values()):
            await session.timer.aclose()
        self.sessions.clear()
