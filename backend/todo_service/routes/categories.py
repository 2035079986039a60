from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Security
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from ..auth import bearer, get_current_user_id, get_optional_user_id, token_cookie
from ..config import Settings, get_settings
from ..database import get_db
from ..models import Category
from ..ratelimit import public_rate_limit
from .. import crud, schemas

router = APIRouter(prefix="/api/categories", tags=["Category"], dependencies=[Depends(public_rate_limit)])


async def category_reader(
        request: Request,
        settings: Settings = Depends(get_settings),
        credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer),
        cookie: Optional[str] = Security(token_cookie),
) -> Optional[str]:
    """Categories are readable anonymously unless PUBLIC_CATEGORIES is switched off."""
    if settings.public_categories:
        return await get_optional_user_id(request, credentials, cookie)
    return await get_current_user_id(request, credentials, cookie)


def _shape(db: Session, categories: List[Category], include_todos: bool, user_id: Optional[str]):
    if not include_todos:
        return [schemas.CategoryOut(id=c.id, name=c.name) for c in categories]

    # nested todos are limited to the caller's own
    grouped = crud.todos_by_category(db, [c.id for c in categories], user_id) if user_id else {}
    return [
        schemas.CategoryOut(
            id=c.id,
            name=c.name,
            todos=[schemas.TodoOut.model_validate(t) for t in grouped.get(c.id, [])],
        )
        for c in categories
    ]


@router.get("", response_model=list[schemas.CategoryOut], summary="Get all categories")
def list_all(include_todos: bool = Query(False, alias="includeTodos"), db: Session = Depends(get_db),
             user_id: Optional[str] = Depends(category_reader)):
    return _shape(db, crud.list_categories(db), include_todos, user_id)


@router.get("/{category_id}", response_model=Optional[schemas.CategoryOut], summary="Get category by ID")
def get_one(category_id: int, include_todos: bool = Query(False, alias="includeTodos"),
            db: Session = Depends(get_db), user_id: Optional[str] = Depends(category_reader)):
    category = crud.get_category(db, category_id)
    if not category:
        return None
    return _shape(db, [category], include_todos, user_id)[0]
