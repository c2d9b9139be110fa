from datetime import datetime, timezone
from typing import List, Optional

from sqlmodel import Field, SQLModel
from sqlalchemy import Column, JSON, Text


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    username: str = Field(index=True, unique=True)
    full_name: Optional[str] = None
    hashed_password: str
    created_at: datetime = Field(default_factory=utcnow)


class Content(SQLModel, table=True):
    id: str = Field(primary_key=True)
    user_id: Optional[int] = Field(default=None, foreign_key="user.id")
    filename: str
    title: str
    raw_text: str = Field(sa_column=Column(Text))
    processed_text: str = Field(sa_column=Column(Text))
    word_count: int
    key_topics: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    concepts: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    learning_objectives: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    readability: dict = Field(default_factory=dict, sa_column=Column(JSON))
    summary: str = ""
    subject: str = "General"
    difficulty: str = "beginner"
    uploaded_at: datetime = Field(default_factory=utcnow)


class Quiz(SQLModel, table=True):
    id: str = Field(primary_key=True)
    content_id: Optional[str] = Field(default=None, foreign_key="content.id", index=True)
    title: str
    description: str = ""
    difficulty: str
    questions: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    quiz_metadata: dict = Field(default_factory=dict, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow)


class Story(SQLModel, table=True):
    id: str = Field(primary_key=True)
    content_id: Optional[str] = Field(default=None, foreign_key="content.id", index=True)
    title: str
    story: str = Field(sa_column=Column(Text))
    chapters: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    characters: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    themes: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    summary: str = ""
    moral: Optional[str] = None
    story_metadata: dict = Field(default_factory=dict, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow)
