# athletrack/routers/recovery.py
from fastapi import APIRouter, Depends

from athletrack.auth import get_current_user_id
from athletrack.database.dependencies import get_repositories
from athletrack.services.recovery import RecoveryService

router = APIRouter(prefix="/api/recovery", tags=["Recovery"])


@router.get("")
def recovery_score(user_id: str = Depends(get_current_user_id), repos=Depends(get_repositories)):
    return RecoveryService(repos).score(user_id)
