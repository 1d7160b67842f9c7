# athletrack/routers/challenges.py
from typing import Optional

from fastapi import APIRouter, Depends

from athletrack.auth import get_current_user_id
from athletrack.database.dependencies import get_repositories
from athletrack.models.challenge import ChallengeCategory, ChallengeIn, JoinChallengeIn
from athletrack.services.challenges import ChallengeService
from athletrack.utils.helpers import convert_objectids_to_strings, serialize

router = APIRouter(prefix="/api/challenges", tags=["Challenges"])


def _out(challenge: dict) -> dict:
    out = serialize(challenge)
    # only the creator hands out the code
    if not challenge.get("is_creator"):
        out.pop("invite_code", None)
    return out


@router.get("")
def my_challenges(status: Optional[str] = None, user_id: str = Depends(get_current_user_id),
                  repos=Depends(get_repositories)):
    return {"challenges": [_out(c) for c in ChallengeService(repos).mine(user_id, status)]}


@router.get("/discover")
def discover_challenges(category: Optional[ChallengeCategory] = None, user_id: str = Depends(get_current_user_id),
                        repos=Depends(get_repositories)):
    return {"challenges": [_out(c) for c in ChallengeService(repos).discover(user_id, category)]}


@router.post("", status_code=201)
def create_challenge(payload: ChallengeIn, user_id: str = Depends(get_current_user_id),
                     repos=Depends(get_repositories)):
    return serialize(ChallengeService(repos).create(user_id, payload.dict()))


@router.post("/sweep")
def status_sweep(user_id: str = Depends(get_current_user_id), repos=Depends(get_repositories)):
    completed = ChallengeService(repos).run_status_sweep()
    return {"completed": [str(c) for c in completed]}


@router.get("/{challenge_id}")
def get_challenge(challenge_id: str, user_id: str = Depends(get_current_user_id), repos=Depends(get_repositories)):
    return _out(ChallengeService(repos).get(challenge_id, user_id))


@router.post("/{challenge_id}/join")
def join_challenge(challenge_id: str, payload: JoinChallengeIn = None, user_id: str = Depends(get_current_user_id),
                   repos=Depends(get_repositories)):
    invite_code = payload.invite_code if payload else None
    return _out(ChallengeService(repos).join(challenge_id, user_id, invite_code))


@router.get("/{challenge_id}/leaderboard")
def challenge_leaderboard(challenge_id: str, user_id: str = Depends(get_current_user_id),
                          repos=Depends(get_repositories)):
    return {"leaderboard": convert_objectids_to_strings(ChallengeService(repos).leaderboard(challenge_id, user_id))}


@router.post("/{challenge_id}/sync")
def sync_progress(challenge_id: str, user_id: str = Depends(get_current_user_id), repos=Depends(get_repositories)):
    return convert_objectids_to_strings(ChallengeService(repos).sync_for(challenge_id, user_id))


@router.delete("/{challenge_id}")
def delete_challenge(challenge_id: str, user_id: str = Depends(get_current_user_id),
                     repos=Depends(get_repositories)):
    ChallengeService(repos).delete(challenge_id, user_id)
    return {"message": "Challenge deleted"}
