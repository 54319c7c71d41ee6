from fastapi import Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from devtrack.db.session import get_db
from devtrack.models.user import User
from devtrack.services.repository import Repository


async def get_repository(db: AsyncSession = Depends(get_db)) -> Repository:
    return Repository(db)


async def get_user_or_404(user_id: int, repo: Repository = Depends(get_repository)) -> User:
    user = await repo.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user
