# athletrack/routers/workouts.py
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile

from athletrack.auth import get_current_user_id
from athletrack.database.dependencies import get_repositories
from athletrack.models.workout import WorkoutIn, WorkoutKind, WorkoutUpdate
from athletrack.services.workouts import WorkoutService
from athletrack.utils.helpers import convert_objectids_to_strings, serialize

router = APIRouter(prefix="/api/workouts", tags=["Workouts"])


@router.post("", status_code=201)
def create_workout(payload: WorkoutIn, user_id: str = Depends(get_current_user_id),
                   repos=Depends(get_repositories)):
    result = WorkoutService(repos).create(user_id, payload.dict(exclude_none=True))
    out = convert_objectids_to_strings(result)
    out["workout"] = serialize(result["workout"])
    return out


@router.post("/upload", status_code=201)
async def upload_workout(file: UploadFile = File(...), user_id: str = Depends(get_current_user_id),
                         repos=Depends(get_repositories)):
    """Import a run from a GPX track or CSV export"""
    content = await file.read()
    result = WorkoutService(repos).import_file(user_id, file.filename, content)
    out = convert_objectids_to_strings(result)
    out["workout"] = serialize(result["workout"])
    return out


@router.get("")
def list_workouts(
    kind: Optional[WorkoutKind] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    repos=Depends(get_repositories),
):
    result = WorkoutService(repos).list(user_id, kind=kind, start=start, end=end, page=page, limit=limit)
    return {"workouts": [serialize(w) for w in result["workouts"]], "pagination": result["pagination"]}


@router.get("/stats/weekly")
def weekly_stats(user_id: str = Depends(get_current_user_id), repos=Depends(get_repositories)):
    return WorkoutService(repos).weekly_stats(user_id)


@router.get("/{workout_id}")
def get_workout(workout_id: str, user_id: str = Depends(get_current_user_id), repos=Depends(get_repositories)):
    return serialize(WorkoutService(repos).get(user_id, workout_id))


@router.put("/{workout_id}")
def update_workout(workout_id: str, payload: WorkoutUpdate, user_id: str = Depends(get_current_user_id),
                   repos=Depends(get_repositories)):
    return serialize(WorkoutService(repos).update(user_id, workout_id, payload.dict(exclude_none=True)))


@router.delete("/{workout_id}")
def delete_workout(workout_id: str, user_id: str = Depends(get_current_user_id), repos=Depends(get_repositories)):
    WorkoutService(repos).delete(user_id, workout_id)
    return {"message": "Workout deleted"}
