# athletrack/routers/records.py
from fastapi import APIRouter, Depends

from athletrack.auth import get_current_user_id
from athletrack.database.dependencies import get_repositories
from athletrack.services.personal_records import PersonalRecordEngine
from athletrack.utils.helpers import convert_objectids_to_strings

router = APIRouter(prefix="/api/records", tags=["Personal Records"])


@router.get("")
def list_records(user_id: str = Depends(get_current_user_id), repos=Depends(get_repositories)):
    return convert_objectids_to_strings(PersonalRecordEngine(repos).grouped(user_id))


@router.get("/{record_type}")
def record_history(record_type: str, user_id: str = Depends(get_current_user_id), repos=Depends(get_repositories)):
    return convert_objectids_to_strings(PersonalRecordEngine(repos).history(user_id, record_type))
