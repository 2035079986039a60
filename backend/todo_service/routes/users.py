from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..auth import get_current_user_id
from ..database import get_db
from ..ratelimit import limit_by_user
from .. import crud, schemas

router = APIRouter(prefix="/api/users", tags=["User"], dependencies=[Depends(limit_by_user)])


@router.get("", response_model=list[schemas.UserSummary], summary="List users with todo/post counts")
def list_all(db: Session = Depends(get_db), current_user: str = Depends(get_current_user_id)):
    return [
        schemas.UserSummary(id=row.id, email=row.email, count=schemas.CountOut(todos=row.todos, posts=row.posts))
        for row in crud.list_users_with_counts(db)
    ]


@router.get("/me", response_model=Optional[schemas.UserProfile], summary="Profile of the caller")
def get_me(db: Session = Depends(get_db), current_user: str = Depends(get_current_user_id)):
    return crud.get_user(db, current_user)


@router.get("/{user_id}", response_model=schemas.UserProfile, summary="Profile by id (own profile only)")
def get_one(user_id: str, db: Session = Depends(get_db), current_user: str = Depends(get_current_user_id)):
    if user_id != current_user:
        raise HTTPException(403, "You can only view your own profile")
    user = crud.get_user(db, user_id)
    if not user:
        raise HTTPException(404, "User not found")
    return user
