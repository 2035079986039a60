import uuid

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"
    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(320), unique=True, index=True, nullable=False)
    password = Column(String(128), nullable=False)

    todos = relationship("Todo", back_populates="user", passive_deletes=True)
    posts = relationship("Post", back_populates="author", cascade="all, delete-orphan")
    comments = relationship("Comment", back_populates="author", cascade="all, delete-orphan")


class Category(Base):
    __tablename__ = "categories"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)

    todos = relationship("Todo", back_populates="category", passive_deletes=True)


class Todo(Base):
    __tablename__ = "todos"
    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(200), nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), index=True, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    category = relationship("Category", back_populates="todos")
    user = relationship("User", back_populates="todos")


class Post(Base):
    __tablename__ = "posts"
    id = Column(String(36), primary_key=True, default=_new_id)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=True)
    published = Column(Boolean, nullable=False, default=False)
    author_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    author = relationship("User", back_populates="posts")
    comments = relationship("Comment", back_populates="post", cascade="all, delete-orphan")


class Comment(Base):
    __tablename__ = "comments"
    id = Column(String(36), primary_key=True, default=_new_id)
    content = Column(Text, nullable=False)
    post_id = Column(String(36), ForeignKey("posts.id", ondelete="CASCADE"), index=True, nullable=False)
    author_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    post = relationship("Post", back_populates="comments")
    author = relationship("User", back_populates="comments")
