"""
Blog models: accounts, users, categories, posts, comments, tags.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from restpipe import RelationDef
from restpipe.service import Base


post_tags = Table(
    "post_tags",
    Base.metadata,
    Column("post_id", ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120))

    posts: Mapped[list["Post"]] = relationship(back_populates="writer")
    comments: Mapped[list["Comment"]] = relationship(back_populates="writer")


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True)
    password: Mapped[str] = mapped_column(String(255))
    type: Mapped[str] = mapped_column(String(20), default="user")  # admin | user
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    owner: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)

    user: Mapped[Optional[User]] = relationship()


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120))
    parent_id: Mapped[Optional[int]] = mapped_column(ForeignKey("categories.id"), nullable=True)

    posts: Mapped[list["Post"]] = relationship(back_populates="category")


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255))
    content: Mapped[str] = mapped_column(Text, default="")
    writer_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)
    category_id: Mapped[Optional[int]] = mapped_column(ForeignKey("categories.id"), nullable=True)

    writer: Mapped[Optional[User]] = relationship(back_populates="posts")
    category: Mapped[Optional[Category]] = relationship(back_populates="posts")
    comments: Mapped[list["Comment"]] = relationship(back_populates="post", cascade="all, delete-orphan")
    tags: Mapped[list["Tag"]] = relationship(secondary=post_tags, back_populates="posts")


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    content: Mapped[str] = mapped_column(Text)
    post_id: Mapped[int] = mapped_column(ForeignKey("posts.id"))
    writer_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)

    post: Mapped[Post] = relationship(back_populates="comments")
    writer: Mapped[Optional[User]] = relationship(back_populates="comments")


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(60), unique=True)

    posts: Mapped[list[Post]] = relationship(secondary=post_tags, back_populates="tags")


relations = [
    RelationDef("user", source="Account", target="User", foreign_key="owner"),
    RelationDef("posts", source="User", target="Post", foreign_key="writer_id", cardinality="many"),
    RelationDef("comments", source="User", target="Comment", foreign_key="writer_id", cardinality="many"),
    RelationDef("posts", source="Category", target="Post", foreign_key="category_id", cardinality="many"),
    RelationDef("writer", source="Post", target="User", foreign_key="writer_id"),
    RelationDef("category", source="Post", target="Category", foreign_key="category_id"),
    RelationDef("comments", source="Post", target="Comment", foreign_key="post_id", cardinality="many"),
    RelationDef("tags", source="Post", target="Tag", cardinality="many"),
    RelationDef("post", source="Comment", target="Post", foreign_key="post_id"),
    RelationDef("writer", source="Comment", target="User", foreign_key="writer_id"),
    RelationDef("posts", source="Tag", target="Post", cardinality="many"),
]
