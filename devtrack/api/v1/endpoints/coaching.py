import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException

from devtrack.coaching.bridge import request_coaching
from devtrack.coaching.oracle import default_oracle
from devtrack.core.config import settings
from devtrack.core.dependencies import get_repository, get_user_or_404
from devtrack.models.user import User
from devtrack.schemas.coaching import CoachingAnalysis
from devtrack.schemas.profile import SkillProfile
from devtrack.services.repository import Repository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{user_id}", response_model=CoachingAnalysis)
async def get_coaching(
    refresh: bool = False,
    user: User = Depends(get_user_or_404),
    repo: Repository = Depends(get_repository),
):
    record = await repo.load_profile(user.id)
    if record is None:
        raise HTTPException(status_code=404, detail="No skill profile yet, run a sync first")

    cached = await repo.load_coaching(user.id)
    if cached is not None and not refresh:
        generated = cached.generated_at
        if generated.tzinfo is None:
            generated = generated.replace(tzinfo=timezone.utc)
        if datetime.now(timezone.utc) - generated < timedelta(minutes=settings.COACHING_CACHE_MINUTES):
            return CoachingAnalysis.model_validate(cached.analysis)

    profile = SkillProfile.model_validate(record.payload)
    sessions = await repo.load_sessions(user.id)
    analysis = await request_coaching(profile, sessions, default_oracle())

    # fallback answers are not cached so the next request retries the oracle
    if analysis.source == "oracle":
        await repo.save_coaching(user.id, analysis)
    return analysis
