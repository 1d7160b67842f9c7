# athletrack/routers/goals.py
from typing import Optional

from fastapi import APIRouter, Depends

from athletrack.auth import get_current_user_id
from athletrack.database.dependencies import get_repositories
from athletrack.models.goal import GoalIn, GoalStatus, GoalUpdate
from athletrack.services.goals import GoalTracker
from athletrack.utils.helpers import serialize

router = APIRouter(prefix="/api/goals", tags=["Goals"])


@router.get("")
def list_goals(status: Optional[GoalStatus] = None, user_id: str = Depends(get_current_user_id),
               repos=Depends(get_repositories)):
    result = GoalTracker(repos).list_goals(user_id, status)
    return {"goals": [serialize(g) for g in result["goals"]], "summary": result["summary"]}


@router.post("", status_code=201)
def create_goal(payload: GoalIn, user_id: str = Depends(get_current_user_id), repos=Depends(get_repositories)):
    return serialize(GoalTracker(repos).create(user_id, payload.dict()))


@router.put("/{goal_id}")
def update_goal(goal_id: str, payload: GoalUpdate, user_id: str = Depends(get_current_user_id),
                repos=Depends(get_repositories)):
    return serialize(GoalTracker(repos).update(user_id, goal_id, payload.dict(exclude_none=True)))


@router.delete("/{goal_id}")
def delete_goal(goal_id: str, user_id: str = Depends(get_current_user_id), repos=Depends(get_repositories)):
    GoalTracker(repos).delete(user_id, goal_id)
    return {"message": "Goal deleted"}
