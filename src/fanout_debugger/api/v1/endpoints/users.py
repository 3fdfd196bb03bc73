"""User, follower and notification inbox endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from fanout_debugger.api.v1.dependencies import RepositoryDep
from fanout_debugger.schemas.event import NotificationList, NotificationOut
from fanout_debugger.schemas.user import UserDetail, UserList, UserOut, UserRef

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=UserList)
async def list_users(repo: RepositoryDep) -> UserList:
    """List all users ordered by username."""
    return UserList(data=[UserOut.model_validate(user) for user in repo.list_users()])


@router.get("/{user_id}", response_model=UserDetail)
async def get_user(user_id: str, repo: RepositoryDep) -> UserDetail:
    """Return a user with follower and following summaries."""
    user = repo.get_user_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    followers = repo.get_followers(user_id)
    following = repo.get_following(user_id)
    return UserDetail(
        id=user.id,
        username=user.username,
        email=user.email,
        created_at=user.created_at,
        followers_count=len(followers),
        following_count=len(following),
        followers=[UserRef.model_validate(f) for f in followers],
        following=[UserRef.model_validate(f) for f in following],
    )


@router.get("/{user_id}/notifications", response_model=NotificationList)
async def list_user_notifications(user_id: str, repo: RepositoryDep) -> NotificationList:
    """Return a user's notifications, newest first."""
    return NotificationList(
        data=[NotificationOut.model_validate(n) for n in repo.get_notifications_for_user(user_id)]
    )


@router.post("/{user_id}/notifications/{notification_id}/read", response_model=NotificationOut)
async def mark_notification_read(
    user_id: str,
    notification_id: str,
    repo: RepositoryDep,
) -> NotificationOut:
    """Mark one of the user's notifications as read."""
    notification = repo.mark_notification_read(notification_id, user_id=user_id)
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return NotificationOut.model_validate(notification)
