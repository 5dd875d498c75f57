"""
User Profile Endpoints

Endpoints:
- GET /users/me - Current user's profile, rating and earnings
- PUT /users/me - Update name and profile data
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from marketplace.api.v1.deps import get_current_user
from marketplace.db.session import get_db
from marketplace.models.user import User
from marketplace.schemas.user import UserResponse, UserUpdate
from marketplace.services import auth_service

router = APIRouter()


@router.get("/me", response_model=UserResponse, summary="Get current user profile")
def get_me(current_user: User = Depends(get_current_user)):
    return UserResponse.from_user(current_user)


@router.put("/me", response_model=UserResponse, summary="Update current user profile")
def update_me(
    user_data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Update the caller's name and/or profile data.

    Example request body:
        {"profile_data": {"phone": "555-0101", "bio": "20 years of plumbing"}}
    """
    user = auth_service.update_user(db, current_user, user_data)
    return UserResponse.from_user(user)
