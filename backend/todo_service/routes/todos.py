from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..auth import get_current_user_id
from ..database import get_db
from ..models import Todo
from ..ratelimit import limit_by_user
from .. import crud, schemas

router = APIRouter(prefix="/api/todos", tags=["Todo"], dependencies=[Depends(limit_by_user)])


def _owned_todo(db: Session, todo_id: str, user_id: str) -> Todo:
    obj = crud.get_todo(db, todo_id)
    if not obj:
        raise HTTPException(404, "Todo not found")
    if obj.user_id != user_id:
        raise HTTPException(403, "You do not have access to this todo")
    return obj


@router.get("", response_model=list[schemas.TodoOut])
def list_all(category_id: Optional[int] = Query(None, alias="categoryId"),
             db: Session = Depends(get_db), current_user: str = Depends(get_current_user_id)):
    return crud.list_todos(db, current_user, category_id)


@router.get("/{todo_id}", response_model=schemas.TodoOut)
def get_one(todo_id: str, db: Session = Depends(get_db), current_user: str = Depends(get_current_user_id)):
    return _owned_todo(db, todo_id, current_user)


@router.post("", response_model=schemas.TodoOut)
def create(data: schemas.TodoCreate, db: Session = Depends(get_db), current_user: str = Depends(get_current_user_id)):
    return crud.create_todo(db, data, current_user)


@router.put("/{todo_id}", response_model=schemas.TodoOut)
def update(todo_id: str, data: schemas.TodoUpdate, db: Session = Depends(get_db),
           current_user: str = Depends(get_current_user_id)):
    obj = _owned_todo(db, todo_id, current_user)
    return crud.update_todo(db, obj, data)


@router.delete("/{todo_id}", response_model=schemas.TodoDeleted)
def delete(todo_id: str, db: Session = Depends(get_db), current_user: str = Depends(get_current_user_id)):
    obj = _owned_todo(db, todo_id, current_user)
    deleted_id = crud.delete_todo(db, obj)
    return schemas.TodoDeleted(message="Todo deleted successfully", id=deleted_id)
