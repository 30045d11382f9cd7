from fastapi import APIRouter, Depends, Request, status
from omnia.schemas.attempt import AnswerIn, NavigateIn, Session as SessionSchema, StartIn, SubmitOut
from omnia.services.delivery import ExamSession, SessionManager

router = APIRouter()

def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager

def serialize_session(session: ExamSession) -> dict:
    """Session state as shown to the student; the answer key is never included."""
    questions = [
        {
            "id": q.id,
            "question_text": q.question_text,
            "options": [{"value": value} for value in q.options],
            "image_url": q.image_url,
        }
        for q in session.questions
    ]
    return {
        "session_id": session.session_id,
        "exam_id": session.exam_id,
        "title": session.title,
        "duration_minutes": session.duration_minutes,
        "status": session.status.value,
        "time_left": session.time_left,
        "current_index": session.current_index,
        "question_count": len(questions),
        "current_question": questions[session.current_index],
        "questions": questions,
        "answers": session.answers,
        "attempt_id": session.attempt_id,
    }

def results_url(attempt_id: int) -> str:
    return f"/results/{attempt_id}"

@router.post("/exams/{exam_id}/sessions", response_model=SessionSchema, status_code=status.HTTP_201_CREATED)
async def open_session(exam_id: int, manager: SessionManager = Depends(get_session_manager)):
    """Load an exam for a new viewing, in a fresh random order."""
    session = await manager.open(exam_id)
    return serialize_session(session)

@router.get("/sessions/{session_id}", response_model=SessionSchema)
async def get_session(session_id: str, manager: SessionManager = Depends(get_session_manager)):
    return serialize_session(manager.get(session_id))

@router.post("/sessions/{session_id}/start", response_model=SessionSchema)
async def start_session(session_id: str, payload: StartIn, manager: SessionManager = Depends(get_session_manager)):
    session = manager.get(session_id)
    await session.start(payload.name, payload.email)
    return serialize_session(session)

@router.put("/sessions/{session_id}/answers/{question_id}", response_model=SessionSchema)
async def select_answer(
    session_id: str,
    question_id: int,
    payload: AnswerIn,
    manager: SessionManager = Depends(get_session_manager),
):
    session = manager.get(session_id)
    session.select(question_id, payload.option)
    return serialize_session(session)

@router.post("/sessions/{session_id}/navigate", response_model=SessionSchema)
async def navigate(session_id: str, payload: NavigateIn, manager: SessionManager = Depends(get_session_manager)):
    session = manager.get(session_id)
    if payload.index is not None:
        session.go_to(payload.index)
    elif payload.direction == "next":
        session.next()
    elif payload.direction == "previous":
        session.previous()
    return serialize_session(session)

@router.post("/sessions/{session_id}/submit", response_model=SubmitOut)
async def submit_session(session_id: str, manager: SessionManager = Depends(get_session_manager)):
    session = manager.get(session_id)
    result = await session.finish()
    return {
        "attempt_id": result.attempt_id,
        "score": result.score,
        "time_taken_seconds": result.time_taken_seconds,
        "results_url": results_url(result.attempt_id),
    }

@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(session_id: str, manager: SessionManager = Depends(get_session_manager)):
    """Abandon a viewing; an attempt that was never submitted stays unscored."""
    manager.get(session_id)
    await manager.close(session_id)
