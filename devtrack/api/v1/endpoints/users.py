from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from devtrack.core.dependencies import get_repository, get_user_or_404
from devtrack.data.roadmap import get_topic
from devtrack.models.user import User
from devtrack.preprocess.normalize import StudySessionEntry
from devtrack.schemas.user import (
    HandlesUpdate,
    RoadmapProgressUpdate,
    RoadmapTopicResponse,
    StudySessionCreate,
    StudySessionResponse,
    UserCreate,
    UserResponse,
)
from devtrack.services.repository import Repository

router = APIRouter()


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(data: UserCreate, repo: Repository = Depends(get_repository)):
    if await repo.get_user_by_username(data.username):
        raise HTTPException(status_code=400, detail="Username already taken")
    return await repo.create_user(
        username=data.username,
        batch=data.batch,
        codeforces_handle=data.codeforces_handle,
        leetcode_username=data.leetcode_username,
        github_username=data.github_username,
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user: User = Depends(get_user_or_404)):
    return user


@router.put("/{user_id}/handles", response_model=UserResponse)
async def update_handles(
    data: HandlesUpdate,
    user: User = Depends(get_user_or_404),
    repo: Repository = Depends(get_repository),
):
    return await repo.update_handles(user, **data.model_dump(exclude_unset=True))


@router.post("/{user_id}/sessions", response_model=StudySessionResponse, status_code=status.HTTP_201_CREATED)
async def log_session(
    data: StudySessionCreate,
    user: User = Depends(get_user_or_404),
    repo: Repository = Depends(get_repository),
):
    entry = StudySessionEntry(
        date=data.date,
        topic=data.topic,
        category=data.category,
        duration_minutes=data.duration_minutes,
        difficulty=data.difficulty,
    )
    return await repo.add_session(user.id, entry)


@router.get("/{user_id}/roadmap", response_model=List[RoadmapTopicResponse])
async def get_roadmap(user: User = Depends(get_user_or_404), repo: Repository = Depends(get_repository)):
    return [RoadmapTopicResponse(**vars(s)) for s in await repo.load_roadmap(user.id)]


@router.put("/{user_id}/roadmap/{topic_id}", response_model=RoadmapTopicResponse)
async def update_roadmap_topic(
    topic_id: str,
    data: RoadmapProgressUpdate,
    user: User = Depends(get_user_or_404),
    repo: Repository = Depends(get_repository),
):
    topic = get_topic(topic_id)
    if topic is None:
        raise HTTPException(status_code=404, detail="Unknown roadmap topic")

    completed = data.completed or data.progress >= 100
    row = await repo.set_roadmap_progress(user.id, topic_id, 100.0 if completed else data.progress, completed)
    return RoadmapTopicResponse(
        topic_id=topic.topic_id,
        title=topic.title,
        category=topic.category,
        progress=row.progress,
        completed=row.completed,
    )
