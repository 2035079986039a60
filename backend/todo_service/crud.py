from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from .auth import hash_password
from .errors import AppError, InvalidUserDataError, UserAlreadyExistsError, database_error, unexpected_error
from .models import Category, Post, Todo, User
from .schemas import TodoCreate, TodoUpdate


# users

def sign_up(db: Session, email: str, password: str, rounds: int = 10) -> User:
    """
    Create a user with a bcrypt-hashed password.
    Uniqueness of the email is left to the database index; the resulting
    IntegrityError is reported as UserAlreadyExistsError.
    """
    try:
        if not email or not password:
            raise InvalidUserDataError({
                "email": None if email else "Email is required",
                "password": None if password else "Password is required",
            })
        if "@" not in email:
            raise InvalidUserDataError({"email": "Invalid email"})

        user = User(email=email, password=hash_password(password, rounds))
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    except IntegrityError:
        db.rollback()
        raise UserAlreadyExistsError(email)
    except SQLAlchemyError as e:
        db.rollback()
        raise database_error(e)
    except AppError:
        raise
    except Exception as e:
        db.rollback()
        raise unexpected_error(e)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def get_user(db: Session, user_id: str) -> Optional[User]:
    return (
        db.query(User)
        .options(selectinload(User.todos), selectinload(User.posts))
        .filter(User.id == user_id)
        .first()
    )


def list_users_with_counts(db: Session):
    todo_count = (
        select(func.count(Todo.id)).where(Todo.user_id == User.id).correlate(User).scalar_subquery()
    )
    post_count = (
        select(func.count(Post.id)).where(Post.author_id == User.id).correlate(User).scalar_subquery()
    )
    rows = db.execute(
        select(User.id, User.email, todo_count.label("todos"), post_count.label("posts")).order_by(User.email)
    )
    return rows.all()


# categories

def list_categories(db: Session) -> List[Category]:
    return db.query(Category).order_by(Category.id).all()


def get_category(db: Session, category_id: int) -> Optional[Category]:
    return db.get(Category, category_id)


def first_category(db: Session) -> Optional[Category]:
    return db.query(Category).order_by(Category.id).first()


def todos_by_category(db: Session, category_ids: List[int], owner_id: str) -> dict:
    grouped = {category_id: [] for category_id in category_ids}
    if not category_ids:
        return grouped
    todos = (
        db.query(Todo)
        .filter(Todo.category_id.in_(category_ids), Todo.user_id == owner_id)
        .order_by(Todo.created_at)
        .all()
    )
    for todo in todos:
        grouped[todo.category_id].append(todo)
    return grouped


# todos

def list_todos(db: Session, user_id: str, category_id: Optional[int] = None) -> List[Todo]:
    query = db.query(Todo).filter(Todo.user_id == user_id)
    if category_id is not None:
        query = query.filter(Todo.category_id == category_id)
    return query.order_by(Todo.created_at.desc()).all()


def get_todo(db: Session, todo_id: str) -> Optional[Todo]:
    return db.get(Todo, todo_id)


def _resolve_category(db: Session, category_id: Optional[int]) -> int:
    if category_id is None:
        category = first_category(db)
        if not category:
            raise AppError("No category available", "NO_CATEGORY", 400)
        return category.id
    if not get_category(db, category_id):
        raise AppError("Category not found", "CATEGORY_NOT_FOUND", 400, {"categoryId": category_id})
    return category_id


def create_todo(db: Session, data: TodoCreate, user_id: str) -> Todo:
    obj = Todo(
        title=data.title,
        completed=data.completed,
        category_id=_resolve_category(db, data.category_id),
        user_id=user_id,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def update_todo(db: Session, todo: Todo, patch: TodoUpdate) -> Todo:
    changes = patch.model_dump(exclude_unset=True, exclude_none=True)
    if "category_id" in changes:
        changes["category_id"] = _resolve_category(db, changes["category_id"])
    for name, value in changes.items():
        setattr(todo, name, value)
    todo.updated_at = func.now()
    db.commit()
    db.refresh(todo)
    return todo


def delete_todo(db: Session, todo: Todo) -> str:
    todo_id = todo.id
    db.delete(todo)
    db.commit()
    return todo_id
