# athletrack/routers/insights.py
from fastapi import APIRouter, Depends

from athletrack.auth import get_current_user_id
from athletrack.database.dependencies import get_repositories
from athletrack.services.workouts import WorkoutService

router = APIRouter(prefix="/api/insights", tags=["AI Insights"])


@router.get("")
def performance_insights(user_id: str = Depends(get_current_user_id), repos=Depends(get_repositories)):
    return WorkoutService(repos).insights(user_id)
