"""Test fixtures: a small blog schema and its seed rows.

people ─┬─< articles ─┬─< comments >── people
        │             └─<> tags  (article_tags)
        └── profiles (has-one)
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, ForeignKey, Table
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, relationship

from jsonapi_params import snake_case


class Base(DeclarativeBase):
    __jsonapi_formatter__ = staticmethod(snake_case)


article_tags = Table(
    "article_tags",
    Base.metadata,
    Column("article_id", ForeignKey("articles.id"), primary_key=True),
    Column("tag_id", ForeignKey("tags.id"), primary_key=True),
)


class Person(Base):
    __tablename__ = "people"

    id: Mapped[int] = mapped_column(primary_key=True)
    first_name: Mapped[str]
    last_name: Mapped[str]

    articles: Mapped[list[Article]] = relationship(back_populates="author")
    profile: Mapped[Profile] = relationship(back_populates="person", uselist=False)


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(primary_key=True)
    person_id: Mapped[int] = mapped_column(ForeignKey("people.id"))
    bio: Mapped[str]

    person: Mapped[Person] = relationship(back_populates="profile")


class Article(Base):
    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str]
    body: Mapped[str]
    status: Mapped[str]
    created_at: Mapped[datetime]
    author_id: Mapped[int] = mapped_column(ForeignKey("people.id"))

    author: Mapped[Person] = relationship(back_populates="articles")
    comments: Mapped[list[Comment]] = relationship(
        back_populates="article", order_by="Comment.id"
    )
    tags: Mapped[list[Tag]] = relationship(secondary=article_tags, order_by="Tag.id")


class Comment(Base):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(primary_key=True)
    body: Mapped[str]
    created_at: Mapped[datetime]
    article_id: Mapped[int] = mapped_column(ForeignKey("articles.id"))
    author_id: Mapped[int] = mapped_column(ForeignKey("people.id"))

    article: Mapped[Article] = relationship(back_populates="comments")
    author: Mapped[Person] = relationship()


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str]


def seed(session: Session) -> None:
    """Insert the canonical rows and commit."""
    ada = Person(id=1, first_name="Ada", last_name="Lovelace")
    alan = Person(id=2, first_name="Alan", last_name="Turing")
    python = Tag(id=1, name="python")
    sql = Tag(id=2, name="sql")

    session.add_all([
        ada,
        alan,
        Profile(id=1, person_id=1, bio="Analyst"),
        python,
        sql,
        Article(id=1, title="First", body="one", status="published",
                created_at=datetime(2024, 1, 1), author_id=1, tags=[python, sql]),
        Article(id=2, title="Second", body="two", status="draft",
                created_at=datetime(2024, 2, 1), author_id=2),
        Article(id=3, title="Third", body="three", status="published",
                created_at=datetime(2024, 3, 1), author_id=1, tags=[python]),
        Comment(id=1, body="Nice", created_at=datetime(2024, 1, 2),
                article_id=1, author_id=2),
        Comment(id=2, body="Agreed", created_at=datetime(2024, 1, 3),
                article_id=1, author_id=1),
        Comment(id=3, body="Hmm", created_at=datetime(2024, 3, 2),
                article_id=3, author_id=2),
    ])
    session.commit()
