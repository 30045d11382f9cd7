from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from omnia.db.session import get_db
from omnia.schemas.results import ResultView
from omnia.services.reporter import load_results

router = APIRouter()

@router.get("/results/{attempt_id}", response_model=ResultView)
async def get_results(attempt_id: int, db: AsyncSession = Depends(get_db)):
    """Score report with mistakes grouped by topic."""
    return await load_results(db, attempt_id)
