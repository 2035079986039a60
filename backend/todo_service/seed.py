# python -m todo_service.seed
# creates the schema and fills it with demo users, categories and todos

from sqlalchemy.orm import Session

from . import crud
from .config import Settings
from .database import Base, build_engine
from .errors import UserAlreadyExistsError
from .logs import configure_logging, logger
from .models import Category, Todo, User

USERS = ["test1@test.com", "test2@test.com", "aaron@test.com", "alex@test.com", "jason@test.com"]
DEFAULT_PASSWORD = "password"

CATEGORIES = ["Default", "Study", "Work", "Personal", "Other"]

TODOS = [
    {"title": "Learn FastAPI", "category": "Study"},
    {"title": "Learn SQLAlchemy", "category": "Study"},
    {"title": "Learn pytest", "category": "Study"},
    {"title": "Finish Project", "category": "Work"},
    {"title": "Buy Groceries", "category": "Personal"},
    {"title": "Lorem dolor esse exercitation enim", "category": "Other"},
    {"title": "Lorem ipsum dolor sit amet consectetur adipisicing elit. Quisquam, quos.", "category": "Other"},
    {"title": "Culpa nulla deserunt ex nisi exercitation elit ad sint do aliquip in non.", "category": "Other"},
]


def seed_users(session: Session, rounds: int = 10) -> None:
    for email in USERS:
        try:
            crud.sign_up(session, email, DEFAULT_PASSWORD, rounds)
        except UserAlreadyExistsError:
            logger.debug("user %s already exists", email)


def seed_categories(session: Session) -> None:
    for name in CATEGORIES:
        exists = session.query(Category).filter_by(name=name).first()
        if not exists:
            session.add(Category(name=name))
    session.commit()


def seed_todos(session: Session) -> None:
    categories = {c.name: c.id for c in session.query(Category).all()}
    for item in TODOS:
        exists = session.query(Todo).filter_by(title=item["title"]).first()
        if not exists:
            session.add(Todo(title=item["title"], category_id=categories[item["category"]]))
    session.commit()


def assign_todo_owners(session: Session, first_email: str = "aaron@test.com",
                       second_email: str = "alex@test.com") -> None:
    """Give the first half of all todos to one user and the rest to another, all or nothing."""
    with session.begin():
        first = session.query(User).filter_by(email=first_email).one()
        second = session.query(User).filter_by(email=second_email).one()
        todos = session.query(Todo).order_by(Todo.created_at, Todo.id).all()
        half = len(todos) // 2
        for todo in todos[:half]:
            todo.user_id = first.id
        for todo in todos[half:]:
            todo.user_id = second.id


def seed(session: Session, rounds: int = 10) -> None:
    seed_users(session, rounds)
    seed_categories(session)
    seed_todos(session)
    assign_todo_owners(session)


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings)
    engine = build_engine(settings.database_url)
    Base.metadata.create_all(bind=engine)
    with Session(engine) as session:
        seed(session, settings.bcrypt_rounds)
    engine.dispose()
    logger.info("Seed complete")


if __name__ == "__main__":
    main()
