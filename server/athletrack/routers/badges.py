# athletrack/routers/badges.py
from fastapi import APIRouter, Depends

from athletrack.auth import get_current_user_id
from athletrack.database.dependencies import get_repositories
from athletrack.services.badges import BadgeEngine
from athletrack.utils.helpers import convert_objectids_to_strings

router = APIRouter(prefix="/api/badges", tags=["Badges"])


@router.get("")
def list_badges(user_id: str = Depends(get_current_user_id), repos=Depends(get_repositories)):
    return convert_objectids_to_strings(BadgeEngine(repos).user_badges(user_id))


@router.post("/sync")
def sync_badges(user_id: str = Depends(get_current_user_id), repos=Depends(get_repositories)):
    """Recompute every badge rule from the full history"""
    granted = BadgeEngine(repos).retro_sync(user_id)
    return {"new_badges": convert_objectids_to_strings(granted), "count": len(granted)}
